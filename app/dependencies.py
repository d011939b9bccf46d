from typing import Annotated

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.core.security import verify_access_token
from app.core.exceptions import UnauthorizedException
from app.services.cache_service import CacheService, CacheKeys
from app.services.storage_service import ImageStore, get_image_store

# Tokens are issued by the auth service; tokenUrl only feeds the OpenAPI docs.
# auto_error is off so a missing token is reported as UnauthorizedException.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

# Cache TTL for user data (2 minutes - short enough to catch deactivations)
USER_CACHE_TTL = 120


async def _resolve_user(token: str, db: AsyncSession) -> User | None:
    """
    Resolve an access token to an active user, or None.
    Uses Redis cache to avoid a username lookup on every request.
    """
    payload = verify_access_token(token)
    if payload is None:
        return None

    username = payload["sub"]
    user_id = payload.get("user_id")

    cache_key = f"{CacheKeys.USER_AUTH}{user_id}" if user_id else f"{CacheKeys.USER_AUTH_BY_NAME}{username}"
    cached_user_data = await CacheService.get_json(cache_key)

    if cached_user_data:
        result = await db.execute(
            select(User).where(User.id == cached_user_data["id"])
        )
        user = result.scalar_one_or_none()
        if user and user.is_active:
            return user
        # Cache is stale, user deleted or deactivated - continue to DB lookup

    result = await db.execute(
        select(User).where(User.username == username)
    )
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        return None

    await CacheService.set_json(
        f"{CacheKeys.USER_AUTH}{user.id}",
        {"id": user.id, "username": user.username, "is_active": user.is_active},
        ttl=USER_CACHE_TTL
    )
    return user


async def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> User:
    """
    Dependency that extracts and validates the current user from JWT token.

    Usage:
        @app.get("/protected")
        async def protected_route(current_user: User = Depends(get_current_user)):
            ...
    """
    if token is None:
        raise UnauthorizedException("Not authenticated")
    user = await _resolve_user(token, db)
    if user is None:
        raise UnauthorizedException()
    return user


async def get_optional_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> User | None:
    """
    Dependency that optionally extracts the current user.
    Returns None if no token or invalid token, instead of raising an exception.
    """
    if token is None:
        return None
    return await _resolve_user(token, db)


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]
Store = Annotated[ImageStore, Depends(get_image_store)]
