import os
from typing import Annotated

from fastapi import Depends, Header
from pydantic import BaseModel

from errors import AppError, AuthenticationError


class CurrentUser(BaseModel):
    id: int
    is_admin: bool = False


# Read per request so the server picks up rotated secrets without a restart
def _admin_token() -> str:
    return os.getenv("ADMIN_TOKEN", "")


def _is_admin(token: str | None) -> bool:
    expected = _admin_token()
    return bool(expected) and token == expected


def require_admin(
    x_admin_token: Annotated[str | None, Header(alias="x-admin-token")] = None,
) -> None:
    """
    Strict admin-only guard. Requires the X-Admin-Token header to match ADMIN_TOKEN.
    """
    if not _admin_token():
        raise AppError("ADMIN_TOKEN not configured on server.")
    if not _is_admin(x_admin_token):
        raise AuthenticationError()


def require_client(
    x_api_key: Annotated[str | None, Header(alias="x-api-key")] = None,
    x_admin_token: Annotated[str | None, Header(alias="x-admin-token")] = None,
) -> None:
    """
    Client/API guard. Accepts either:
      - X-Admin-Token that matches ADMIN_TOKEN (admins always allowed), or
      - X-Api-Key that matches GRADING_API_KEY, when one is configured.
    """
    if _is_admin(x_admin_token):
        return

    expected = os.getenv("GRADING_API_KEY", "")
    if expected and x_api_key != expected:
        raise AuthenticationError()


def current_user(
    _client: Annotated[None, Depends(require_client)],
    x_user_id: Annotated[str | None, Header(alias="x-user-id")] = None,
    x_admin_token: Annotated[str | None, Header(alias="x-admin-token")] = None,
) -> CurrentUser:
    """
    The authenticated user, as forwarded by the auth layer in front of us.
    """
    try:
        user_id = int(x_user_id or "")
    except ValueError:
        raise AuthenticationError("User not authenticated")
    if user_id <= 0:
        raise AuthenticationError("User not authenticated")
    return CurrentUser(id=user_id, is_admin=_is_admin(x_admin_token))
