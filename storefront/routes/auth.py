from typing import Any, Dict

from fastapi import Request


class MockApiError(Exception):
    """Rendered by the stub API as `{"error": title, "message": message}`."""

    def __init__(self, status_code: int, title: str, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.title = title
        self.message = message


def require_user(request: Request) -> Dict[str, Any]:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    user = request.app.state.mock.users.get(token.strip()) if scheme.lower() == "bearer" else None
    if user is None:
        raise MockApiError(401, "Unauthorized", "Missing or invalid bearer token.")
    return user
