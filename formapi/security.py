import datetime
import logging
import re
import secrets
import uuid
from typing import Literal, Optional

import sqlalchemy
from fastapi import Request, Response
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from formapi.config import config
from formapi.database import database, user_table, utcnow
from formapi.errors import NotFoundError, UnauthorizedError
from formapi.models.user import User

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
# bcrypt reads at most 72 bytes; refresh tokens are longer than that
pwd_context = CryptContext(schemes=["bcrypt"])
refresh_context = CryptContext(schemes=["bcrypt_sha256"])

DEFAULT_ACCESS_TOKEN_LIFETIME = datetime.timedelta(minutes=15)
DEFAULT_LOGIN_ACCESS_TOKEN_LIFETIME = datetime.timedelta(hours=2)
DEFAULT_REFRESH_TOKEN_LIFETIME = datetime.timedelta(days=7)
OTP_LIFETIME = datetime.timedelta(minutes=5)

_DURATION_RE = re.compile(r"^(\d+)([smhd])$")
_DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def parse_duration(duration: str) -> datetime.timedelta:
    """Parse a compact duration such as ``15m`` or ``7d``."""
    match = _DURATION_RE.match(duration)
    if not match:
        raise ValueError("Invalid duration format")
    value, unit = match.groups()
    return datetime.timedelta(**{_DURATION_UNITS[unit]: int(value)})


def token_lifetime(duration: Optional[str], default: datetime.timedelta) -> datetime.timedelta:
    if duration is None:
        return default
    try:
        return parse_duration(duration)
    except ValueError:
        logger.warning(f"Invalid token expiry {duration!r}, using default {default}")
        return default


def access_token_lifetime(default: datetime.timedelta = DEFAULT_ACCESS_TOKEN_LIFETIME) -> datetime.timedelta:
    return token_lifetime(config.ACCESS_TOKEN_EXPIRY, default)


def refresh_token_lifetime() -> datetime.timedelta:
    return token_lifetime(config.REFRESH_TOKEN_EXPIRY, DEFAULT_REFRESH_TOKEN_LIFETIME)


def generate_otp() -> str:
    return str(1000 + secrets.randbelow(9000))


def otp_expiry() -> datetime.datetime:
    return utcnow() + OTP_LIFETIME


def create_access_token(user: User, expires_delta: Optional[datetime.timedelta] = None) -> str:
    logger.debug("Creating access token", extra={"email": user.email})
    expire = datetime.datetime.now(datetime.timezone.utc) + (
        expires_delta or access_token_lifetime()
    )
    jwt_data = {
        "sub": str(user.id),
        "email": user.email,
        "username": user.username,
        "fullName": user.full_name,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(jwt_data, key=config.ACCESS_TOKEN_SECRET, algorithm=ALGORITHM)


def create_refresh_token(user_id: int, token_version: int) -> str:
    logger.debug("Creating refresh token", extra={"user_id": user_id})
    expire = datetime.datetime.now(datetime.timezone.utc) + refresh_token_lifetime()
    jwt_data = {
        "sub": str(user_id),
        "tokenVersion": token_version,
        "jti": uuid.uuid4().hex,
        "exp": expire,
        "type": "refresh",
    }
    return jwt.encode(jwt_data, key=config.REFRESH_TOKEN_SECRET, algorithm=ALGORITHM)


def decode_token(token: str, type: Literal["access", "refresh"]) -> dict:
    secret = config.ACCESS_TOKEN_SECRET if type == "access" else config.REFRESH_TOKEN_SECRET
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except ExpiredSignatureError as e:
        raise UnauthorizedError("Token has expired") from e
    except JWTError as e:
        raise UnauthorizedError("Invalid token") from e

    if payload.get("sub") is None:
        raise UnauthorizedError("Token is missing 'sub' field")

    token_type = payload.get("type")
    if token_type is None or token_type != type:
        raise UnauthorizedError(
            f"Token has incorrect type, expected '{type}'"
        )

    return payload


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _user_from_row(row) -> Optional[User]:
    if row is None:
        return None
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        full_name=row.full_name,
        password_hash=row.password_hash,
        refresh_token_hash=row.refresh_token_hash,
        token_version=row.token_version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


async def get_user(email: str) -> Optional[User]:
    query = user_table.select().where(user_table.c.email == email.strip().lower())
    return _user_from_row(await database.fetch_one(query))


async def get_user_by_id(user_id: int) -> Optional[User]:
    query = user_table.select().where(user_table.c.id == user_id)
    return _user_from_row(await database.fetch_one(query))


async def find_user(username: Optional[str] = None, email: Optional[str] = None) -> Optional[User]:
    """Return the user matching either the username or the email."""
    conditions = []
    if username:
        conditions.append(user_table.c.username == username.strip().lower())
    if email:
        conditions.append(user_table.c.email == email.strip().lower())
    if not conditions:
        return None
    query = user_table.select().where(sqlalchemy.or_(*conditions))
    return _user_from_row(await database.fetch_one(query))


async def store_refresh_token(user_id: int, refresh_token: Optional[str]):
    """Overwrite the stored refresh-token hash, invalidating the previous token."""
    token_hash = refresh_context.hash(refresh_token) if refresh_token else None
    query = (
        user_table.update()
        .where(user_table.c.id == user_id)
        .values(refresh_token_hash=token_hash, updated_at=utcnow())
    )
    logger.debug(query)
    await database.execute(query)


async def issue_tokens(
    user: User, access_lifetime: Optional[datetime.timedelta] = None
) -> tuple[str, str]:
    access_token = create_access_token(user, access_lifetime)
    refresh_token = create_refresh_token(user.id, user.token_version)
    await store_refresh_token(user.id, refresh_token)
    return access_token, refresh_token


async def authenticate_user(password: str, username: Optional[str] = None, email: Optional[str] = None) -> User:
    logger.debug("Authenticating user", extra={"email": email, "username": username})
    user = await find_user(username=username, email=email)
    if not user:
        raise NotFoundError("User does not exist")
    if not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid user credentials")
    return user


async def rotate_refresh_token(refresh_token: str) -> tuple[User, str, str]:
    """Verify a refresh token against the stored hash and issue a fresh pair."""
    payload = decode_token(refresh_token, "refresh")
    user = await get_user_by_id(int(payload["sub"]))
    if user is None or not user.refresh_token_hash:
        raise UnauthorizedError("Invalid refresh token or user not found.")
    if not refresh_context.verify(refresh_token, user.refresh_token_hash):
        raise UnauthorizedError("Invalid refresh token or user not found.")
    if payload.get("tokenVersion") != user.token_version:
        raise UnauthorizedError("Refresh token has been revoked")

    access_token, new_refresh_token = await issue_tokens(user)
    return user, access_token, new_refresh_token


async def set_password(user_id: int, password: str):
    """Replace the password and revoke every outstanding refresh token."""
    query = (
        user_table.update()
        .where(user_table.c.id == user_id)
        .values(
            password_hash=get_password_hash(password),
            token_version=user_table.c.token_version + 1,
            refresh_token_hash=None,
            updated_at=utcnow(),
        )
    )
    logger.debug(query)
    await database.execute(query)


def _bearer_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization")
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
        if token:
            return token
    return request.cookies.get("accessToken")


async def get_current_user(request: Request) -> User:
    token = _bearer_token(request)
    if not token:
        raise UnauthorizedError("Unauthorized request")
    payload = decode_token(token, "access")
    user = await get_user_by_id(int(payload["sub"]))
    if user is None:
        raise UnauthorizedError("Invalid Access Token")
    return user


def set_auth_cookies(
    response: Response,
    access_token: str,
    refresh_token: str,
    access_lifetime: Optional[datetime.timedelta] = None,
):
    options = {
        "httponly": True,
        "secure": config.COOKIE_SECURE,
        "samesite": config.COOKIE_SAMESITE,
    }
    response.set_cookie(
        "accessToken",
        access_token,
        max_age=int((access_lifetime or access_token_lifetime()).total_seconds()),
        **options,
    )
    response.set_cookie(
        "refreshToken",
        refresh_token,
        max_age=int(refresh_token_lifetime().total_seconds()),
        **options,
    )
