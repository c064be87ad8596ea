import datetime

from pydantic import EmailStr, field_validator
from formapi.models.base import CamelModel


class User(CamelModel):
    id: int | None = None
    username: str
    email: str
    full_name: str
    password_hash: str | None = None
    refresh_token_hash: str | None = None
    token_version: int = 0
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None

    def public(self) -> dict:
        """Wire form of the user, without credentials."""
        return self.model_dump(
            by_alias=True, exclude={"password_hash", "refresh_token_hash"}
        )


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("All fields are required")
    return value


class UserIn(CamelModel):
    username: str
    full_name: str
    email: EmailStr
    password: str

    @field_validator("username", "full_name", "password")
    @classmethod
    def required(cls, value: str) -> str:
        return _not_blank(value)

    @field_validator("username", "email")
    @classmethod
    def lowercase(cls, value: str) -> str:
        return value.strip().lower()


class LoginIn(CamelModel):
    email: str | None = None
    username: str | None = None
    password: str


class OtpIn(CamelModel):
    email: str
    otp: str


class RefreshIn(CamelModel):
    refresh_token: str | None = None


class ChangePasswordIn(CamelModel):
    email: str
    old_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def required(cls, value: str) -> str:
        return _not_blank(value)


class PasswordResetRequestIn(CamelModel):
    email: str


class PasswordResetIn(CamelModel):
    email: str
    otp: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def required(cls, value: str) -> str:
        return _not_blank(value)


class EmailIn(CamelModel):
    email: EmailStr
    subject: str
    text: str
