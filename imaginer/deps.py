"""Shared FastAPI dependencies."""

from fastapi import Request

from imaginer.core.exceptions import UnauthorizedError
from imaginer.core.logging import bind_user_id
from imaginer.core.security import load_session_cookie
from imaginer.models.user import User
from imaginer.services.search import ImageSearch
from imaginer.services.users import get_user_by_auth_id

SESSION_COOKIE_NAME = "imaginer_session"


async def get_current_user(request: Request) -> User:
    """Dependency: resolve the signed session's auth provider id to a User."""
    cookie = request.cookies.get(SESSION_COOKIE_NAME)
    if not cookie:
        raise UnauthorizedError("Not authenticated")
    payload = load_session_cookie(cookie)
    if not payload:
        raise UnauthorizedError("Invalid or expired session")
    auth_id = payload.get("auth_id")
    if not auth_id:
        raise UnauthorizedError("Invalid session")
    user = await get_user_by_auth_id(auth_id)
    if not user:
        raise UnauthorizedError("User not found")
    bind_user_id(user.id)
    return user


def get_image_search(request: Request) -> ImageSearch | None:
    """Dependency: search collaborator built at startup (None when not configured)."""
    return getattr(request.app.state, "image_search", None)
