import logging
from typing import Annotated, Optional

import sqlalchemy
from fastapi import APIRouter, Body, Depends, Request, Response
from formapi.database import (
    database,
    passwordreset_table,
    temporaryuser_table,
    user_table,
    utcnow,
)
from formapi.errors import (
    BadRequestError,
    ConflictError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
)
from formapi.mail import send_mail
from formapi.models.user import (
    ChangePasswordIn,
    EmailIn,
    LoginIn,
    OtpIn,
    PasswordResetIn,
    PasswordResetRequestIn,
    RefreshIn,
    User,
    UserIn,
)
from formapi.responses import api_response
from formapi.security import (
    DEFAULT_LOGIN_ACCESS_TOKEN_LIFETIME,
    access_token_lifetime,
    authenticate_user,
    find_user,
    generate_otp,
    get_current_user,
    get_password_hash,
    get_user,
    get_user_by_id,
    issue_tokens,
    otp_expiry,
    rotate_refresh_token,
    set_auth_cookies,
    set_password,
    verify_password,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", status_code=200)
async def register(user: UserIn):
    existing = await find_user(username=user.username, email=user.email)
    if existing is not None:
        raise ConflictError("User with this email and username already exists")

    # an unexpired sign-up from another email still holds the username
    held = temporaryuser_table.select().where(
        temporaryuser_table.c.username == user.username,
        temporaryuser_table.c.email != user.email,
        temporaryuser_table.c.expires_at >= utcnow(),
    )
    if await database.fetch_one(held) is not None:
        raise ConflictError("Username is already taken")

    otp = generate_otp()
    async with database.transaction():
        # a new attempt replaces earlier pending registrations for this email
        # and expired ones for this username
        stale = temporaryuser_table.delete().where(
            sqlalchemy.or_(
                temporaryuser_table.c.email == user.email,
                temporaryuser_table.c.username == user.username,
            )
        )
        logger.debug(stale)
        await database.execute(stale)

        query = temporaryuser_table.insert().values(
            email=user.email,
            username=user.username,
            full_name=user.full_name,
            password_hash=get_password_hash(user.password),
            otp=otp,
            expires_at=otp_expiry(),
            created_at=utcnow(),
        )
        logger.debug(query)
        await database.execute(query)

    await send_mail(user.email, "Your OTP Code", f"Your OTP Code is {otp}")
    return api_response(
        200,
        {"email": user.email},
        "OTP sent to your email. Please verify to complete registration.",
    )


@router.post("/verify-otp", status_code=200)
async def verify_otp(payload: OtpIn, response: Response):
    email = payload.email.strip().lower()
    query = temporaryuser_table.select().where(temporaryuser_table.c.email == email)
    pending = await database.fetch_one(query)
    if pending is None or pending.expires_at < utcnow() or pending.otp != payload.otp.strip():
        raise BadRequestError("Invalid or expired otp")

    if await find_user(username=pending.username, email=pending.email) is not None:
        raise ConflictError("User with this email and username already exists")

    now = utcnow()
    async with database.transaction():
        insert = user_table.insert().values(
            username=pending.username,
            email=pending.email,
            full_name=pending.full_name,
            password_hash=pending.password_hash,
            token_version=0,
            created_at=now,
            updated_at=now,
        )
        logger.debug(insert)
        user_id = await database.execute(insert)
        await database.execute(
            temporaryuser_table.delete().where(temporaryuser_table.c.id == pending.id)
        )

    user = await get_user_by_id(user_id)
    if user is None:
        raise InternalError(
            "Something went wrong while registering the user",
            internal=f"user {user_id} missing right after insert",
        )
    access_token, refresh_token = await issue_tokens(user)
    set_auth_cookies(response, access_token, refresh_token)
    return api_response(
        200,
        {"user": user.public(), "accessToken": access_token},
        "User registered successfully",
    )


@router.post("/login", status_code=200)
async def login(credentials: LoginIn, response: Response):
    if not (credentials.email or credentials.username) or not credentials.password:
        raise BadRequestError("All fields are required")

    user = await authenticate_user(
        credentials.password, username=credentials.username, email=credentials.email
    )
    lifetime = access_token_lifetime(DEFAULT_LOGIN_ACCESS_TOKEN_LIFETIME)
    access_token, refresh_token = await issue_tokens(user, lifetime)
    set_auth_cookies(response, access_token, refresh_token, lifetime)
    return api_response(
        200,
        {"user": user.public(), "accessToken": access_token},
        "User logged in successfully",
    )


@router.post("/refresh-token", status_code=200)
async def refresh_access_token(
    request: Request,
    response: Response,
    payload: Annotated[Optional[RefreshIn], Body()] = None,
):
    incoming = request.cookies.get("refreshToken") or (payload.refresh_token if payload else None)
    if not incoming:
        raise UnauthorizedError("Unauthorized request")

    _, access_token, refresh_token = await rotate_refresh_token(incoming)
    set_auth_cookies(response, access_token, refresh_token)
    return api_response(
        200, {"accessToken": access_token}, "Access Token refreshed successfully"
    )


@router.get("/current-user", status_code=200)
async def current_user(user: Annotated[User, Depends(get_current_user)]):
    return api_response(200, user.public(), "Current User fetched successfully")


@router.get("/check-auth", status_code=200)
async def check_auth(user: Annotated[User, Depends(get_current_user)]):
    return api_response(200, {"authenticated": True, "user": user.public()}, "User is authenticated")


@router.post("/change-password", status_code=200)
async def change_password(payload: ChangePasswordIn):
    user = await get_user(payload.email)
    if user is None:
        raise NotFoundError("User not found")
    if not verify_password(payload.old_password, user.password_hash):
        raise BadRequestError("Invalid password")

    await set_password(user.id, payload.new_password)
    return api_response(200, {}, "Password changed successfully")


@router.post("/send-password-reset-otp", status_code=200)
async def send_password_reset_otp(payload: PasswordResetRequestIn):
    user = await get_user(payload.email)
    if user is None:
        raise NotFoundError("User not found")

    otp = generate_otp()
    async with database.transaction():
        await database.execute(
            passwordreset_table.delete().where(passwordreset_table.c.email == user.email)
        )
        query = passwordreset_table.insert().values(
            email=user.email, otp=otp, expires_at=otp_expiry(), created_at=utcnow()
        )
        logger.debug(query)
        await database.execute(query)

    await send_mail(user.email, "Your Password Reset OTP", f"Your password reset OTP is {otp}")
    return api_response(200, {"email": user.email}, "Password reset OTP sent to your email")


@router.post("/verify-otp-and-change-password", status_code=200)
async def verify_otp_and_change_password(payload: PasswordResetIn):
    email = payload.email.strip().lower()
    query = passwordreset_table.select().where(passwordreset_table.c.email == email)
    reset = await database.fetch_one(query)
    if reset is None or reset.expires_at < utcnow() or reset.otp != payload.otp.strip():
        raise BadRequestError("Invalid or expired otp")

    user = await get_user(email)
    if user is None:
        raise NotFoundError("User not found")

    async with database.transaction():
        await set_password(user.id, payload.new_password)
        await database.execute(
            passwordreset_table.delete().where(passwordreset_table.c.id == reset.id)
        )
    return api_response(200, {}, "Password changed successfully")


@router.post("/send-email", status_code=200)
async def send_email(payload: EmailIn, user: Annotated[User, Depends(get_current_user)]):
    logger.debug(f"User {user.id} sending email to {payload.email}")
    sent = await send_mail(payload.email, payload.subject, payload.text)
    return api_response(200, {"email": payload.email, "sent": sent}, "Email processed")
