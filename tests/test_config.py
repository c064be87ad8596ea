import pytest
from pydantic import ValidationError

from formapi.config import ProdConfig


@pytest.fixture()
def prod_env(monkeypatch):
    monkeypatch.setenv("PROD_ACCESS_TOKEN_SECRET", "access")
    monkeypatch.setenv("PROD_REFRESH_TOKEN_SECRET", "refresh")
    monkeypatch.delenv("PROD_DATABASE_URL", raising=False)


def test_prod_requires_database_url(prod_env):
    with pytest.raises(ValidationError, match="DATABASE_URL"):
        ProdConfig(_env_file=None)


def test_prod_cookies_are_cross_site(prod_env, monkeypatch):
    monkeypatch.setenv("PROD_DATABASE_URL", "sqlite:///prod.db")

    config = ProdConfig(_env_file=None)

    assert config.DATABASE_URL == "sqlite:///prod.db"
    assert config.COOKIE_SECURE is True
    assert config.COOKIE_SAMESITE == "none"
