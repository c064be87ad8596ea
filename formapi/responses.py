from typing import Any


def api_response(status_code: int, data: Any, message: str = "Success") -> dict:
    return {"status": status_code, "data": data, "message": message}
