import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.models.artwork import Artwork
from app.models.user import User
from app.services.artwork_repository import ArtworkRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LikeToggleResult:
    liked: bool
    like_count: int


class EngagementService:
    """View counting and like toggling."""

    @staticmethod
    async def record_view(db: AsyncSession, artwork: Artwork) -> Artwork:
        """
        Count one view and return the artwork reloaded with the new total.

        The increment is committed before the caller builds its response.
        """
        await ArtworkRepository.increment_views(db, artwork.id)
        await db.commit()
        return await ArtworkRepository.get_by_uuid(db, artwork.uuid, refresh=True)

    @staticmethod
    async def toggle_like(db: AsyncSession, artwork_uuid: UUID, user: User) -> LikeToggleResult:
        """
        Like the artwork, or remove the like if the user already liked it.

        Both branches are single statements against the (user, artwork) unique
        constraint, so a double submission never stores two likes.
        """
        result = await db.execute(select(Artwork).where(Artwork.uuid == artwork_uuid))
        artwork = result.scalar_one_or_none()
        if not artwork or not artwork.is_visible_to(user):
            raise NotFoundException("Artwork not found")

        if await ArtworkRepository.remove_like(db, artwork.id, user.id):
            liked = False
        else:
            await ArtworkRepository.add_like(db, artwork.id, user.id)
            liked = True

        await db.commit()

        like_count = await ArtworkRepository.count_likes(db, artwork.id)
        logger.debug(f"User {user.id} {'liked' if liked else 'unliked'} artwork {artwork.uuid}")
        return LikeToggleResult(liked=liked, like_count=like_count)
