from fastapi import Cookie, Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from nightshift.core.config import Settings, get_settings
from nightshift.core.database import get_db
from nightshift.core.exceptions import UnauthenticatedError
from nightshift.core.security import Identity, decode_access_token
from nightshift.models.user import User
from nightshift.services import user_service

__all__ = ["Pagination", "get_current_identity", "get_current_user", "get_db", "get_pagination"]

# Optional so the identity cookie can be used instead of the header.
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    token: str | None = Cookie(None),
    settings: Settings = Depends(get_settings),
) -> Identity:
    raw_token = credentials.credentials if credentials else token
    if not raw_token:
        raise UnauthenticatedError()
    return decode_access_token(raw_token, settings)


async def get_current_user(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> User:
    return await user_service.sync_identity(db, identity)


class Pagination:
    def __init__(self, page: int, page_size: int) -> None:
        self.page = page
        self.page_size = page_size


def get_pagination(
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    settings: Settings = Depends(get_settings),
) -> Pagination:
    size = min(page_size or settings.default_page_size, settings.max_page_size)
    return Pagination(page=page, page_size=size)
