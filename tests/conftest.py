import os
from typing import AsyncGenerator, Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

os.environ["ENV_STATE"] = "test"
from formapi.database import database  # noqa: E402
from formapi.main import app  # noqa: E402
from tests.helpers import API, auth, register_user  # noqa: E402


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def client() -> Generator:
    yield TestClient(app)


@pytest.fixture()
async def db() -> AsyncGenerator:
    await database.connect()
    yield database
    await database.disconnect()


@pytest.fixture()
async def async_client(client, db) -> AsyncGenerator:
    async with AsyncClient(transport=ASGITransport(app=app), base_url=client.base_url) as ac:
        yield ac


@pytest.fixture(autouse=True)
def mock_send_mail(monkeypatch) -> AsyncMock:
    mock = AsyncMock(return_value=True)
    monkeypatch.setattr("formapi.routers.user.send_mail", mock)
    monkeypatch.setattr("formapi.routers.form.send_mail", mock)
    return mock


@pytest.fixture()
async def registered_user(async_client, mock_send_mail) -> dict:
    return await register_user(async_client, mock_send_mail)


@pytest.fixture()
async def other_user(async_client, mock_send_mail, registered_user) -> dict:
    return await register_user(
        async_client,
        mock_send_mail,
        username="other",
        email="other@example.com",
        password="other123",
        full_name="Other User",
    )


@pytest.fixture()
async def created_form(async_client, registered_user) -> dict:
    response = await async_client.post(
        f"{API}/create-form",
        json={"formType": "party_invite"},
        headers=auth(registered_user["access_token"]),
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]
