import re
from unittest.mock import AsyncMock

from httpx import AsyncClient

API = "/api/v1/users"


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def last_otp(mock_send_mail: AsyncMock) -> str:
    text = mock_send_mail.call_args.args[2]
    return re.search(r"\b(\d{4})\b", text).group(1)


async def register_user(
    async_client: AsyncClient,
    mock_send_mail: AsyncMock,
    username: str = "abc",
    email: str = "abc@example.com",
    password: str = "pw12345",
    full_name: str = "A B",
) -> dict:
    """Register and verify a user, returning its id, credentials and tokens."""
    response = await async_client.post(
        f"{API}/register",
        json={"username": username, "fullName": full_name, "email": email, "password": password},
    )
    assert response.status_code == 200, response.text
    otp = last_otp(mock_send_mail)

    response = await async_client.post(f"{API}/verify-otp", json={"email": email, "otp": otp})
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    return {
        "id": data["user"]["id"],
        "username": username,
        "email": email,
        "password": password,
        "access_token": data["accessToken"],
        "refresh_token": response.cookies["refreshToken"],
    }
