from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    ENV_STATE: Optional[str] = None

    """Loads the dotenv file."""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class GlobalConfig(BaseConfig):
    DATABASE_URL: Optional[str] = None
    DB_FORCE_ROLL_BACK: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGIN: str = "http://localhost:5173"
    # JWT
    ACCESS_TOKEN_SECRET: str
    REFRESH_TOKEN_SECRET: str
    ACCESS_TOKEN_EXPIRY: Optional[str] = None
    REFRESH_TOKEN_EXPIRY: Optional[str] = None
    # Cookies
    COOKIE_SECURE: bool = False
    COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"
    # SMTP relay
    SMTP_HOST: str = "smtp-relay.brevo.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SENDER_EMAIL: Optional[str] = None


class DevConfig(GlobalConfig):
    DATABASE_URL: Optional[str] = "sqlite:///formiverse.db"
    LOG_LEVEL: str = "DEBUG"
    model_config = SettingsConfigDict(env_prefix="DEV_")


class ProdConfig(GlobalConfig):
    DATABASE_URL: str
    COOKIE_SECURE: bool = True
    COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "none"
    model_config = SettingsConfigDict(env_prefix="PROD_")


class TestConfig(GlobalConfig):
    DATABASE_URL: Optional[str] = "sqlite:///test.db"
    DB_FORCE_ROLL_BACK: bool = True
    ACCESS_TOKEN_SECRET: str = "test-access-token-secret"
    REFRESH_TOKEN_SECRET: str = "test-refresh-token-secret"
    ACCESS_TOKEN_EXPIRY: Optional[str] = "15m"
    REFRESH_TOKEN_EXPIRY: Optional[str] = "7d"
    SENDER_EMAIL: Optional[str] = "no-reply@formiverse.test"
    model_config = SettingsConfigDict(env_prefix="TEST_")


@lru_cache()
def get_config(env_state: str):
    """Instantiate config based on the environment."""
    configs = {"dev": DevConfig, "prod": ProdConfig, "test": TestConfig}
    return configs[env_state]()


config = get_config(BaseConfig().ENV_STATE or "dev")
