import math
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.models.user import User
from app.schemas.artwork import (
    ArtworkListParams,
    ArtworkListResponse,
    ArtworkResponse,
    PaginationInfo,
)
from app.services.artwork_repository import ArtworkRepository
from app.services.engagement_service import EngagementService
from app.services.storage_service import ImageStore
from app.utils.batch_queries import build_artwork_responses_batch

DEFAULT_RELATED_LIMIT = 6


class ArtworkListingService:
    """Read paths: public listing, single artwork and related artworks."""

    @staticmethod
    async def list_artworks(
        db: AsyncSession,
        store: ImageStore,
        params: ArtworkListParams,
        viewer: User | None = None,
    ) -> ArtworkListResponse:
        """
        One page of published, public artworks matching every supplied filter.

        Ordering is by the requested field with the id as tie-break, so pages
        never overlap for a fixed data set.
        """
        artworks, total = await ArtworkRepository.list_page(db, params)
        responses = await build_artwork_responses_batch(
            artworks, db, store, viewer.id if viewer else None
        )

        return ArtworkListResponse(
            artworks=responses,
            pagination=PaginationInfo(
                current_page=params.page,
                total_pages=math.ceil(total / params.limit),
                total_items=total,
                items_per_page=params.limit,
            ),
        )

    @staticmethod
    async def get_artwork(
        db: AsyncSession,
        store: ImageStore,
        artwork_uuid: UUID,
        viewer: User | None = None,
    ) -> ArtworkResponse:
        """
        Fetch one artwork, counting a view unless the viewer is its artist.

        Hidden artworks answer exactly like missing ones for anyone who may not
        manage them.
        """
        artwork = await ArtworkRepository.get_by_uuid(db, artwork_uuid)
        if not artwork or not artwork.is_visible_to(viewer):
            raise NotFoundException("Artwork not found")

        if viewer is None or viewer.id != artwork.artist_id:
            artwork = await EngagementService.record_view(db, artwork)

        responses = await build_artwork_responses_batch(
            [artwork], db, store, viewer.id if viewer else None
        )
        return responses[0]

    @staticmethod
    async def related_artworks(
        db: AsyncSession,
        store: ImageStore,
        artwork_uuid: UUID,
        limit: int = DEFAULT_RELATED_LIMIT,
        viewer: User | None = None,
    ) -> list[ArtworkResponse]:
        artwork = await ArtworkRepository.get_by_uuid(db, artwork_uuid)
        if not artwork or not artwork.is_visible_to(viewer):
            raise NotFoundException("Artwork not found")

        related = await ArtworkRepository.related(db, artwork, limit)
        return await build_artwork_responses_batch(
            related, db, store, viewer.id if viewer else None
        )
