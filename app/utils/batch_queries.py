"""
Batch query utilities to avoid N+1 query problems when building artwork responses.
"""
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.artwork import Artwork, ArtworkLike
from app.schemas.artwork import (
    ArtworkResponse,
    ArtworkImageResponse,
    ArtistSummary,
    Dimensions,
)
from app.services.storage_service import ImageStore


async def batch_load_like_stats(
    artwork_ids: list[int],
    db: AsyncSession,
    current_user_id: int | None = None
) -> dict:
    """
    Load like counts and the current user's likes for multiple artworks in batch.

    Instead of 2 queries per artwork (N+1 problem), this does 2 queries total.

    Args:
        artwork_ids: List of artwork IDs to load stats for
        db: Database session
        current_user_id: Optional current user ID to check if they liked

    Returns:
        Dict with 'likes' and 'user_liked' mappings
    """
    if not artwork_ids:
        return {"likes": {}, "user_liked": set()}

    # Query 1: Like counts per artwork
    like_counts_result = await db.execute(
        select(ArtworkLike.artwork_id, func.count(ArtworkLike.id))
        .where(ArtworkLike.artwork_id.in_(artwork_ids))
        .group_by(ArtworkLike.artwork_id)
    )
    likes_map = dict(like_counts_result.all())

    # Query 2: Which artworks the current user liked
    user_liked: set[int] = set()
    if current_user_id:
        liked_result = await db.execute(
            select(ArtworkLike.artwork_id)
            .where(
                ArtworkLike.artwork_id.in_(artwork_ids),
                ArtworkLike.user_id == current_user_id
            )
        )
        user_liked = {row[0] for row in liked_result.all()}

    return {"likes": likes_map, "user_liked": user_liked}


def build_artwork_response(
    artwork: Artwork,
    store: ImageStore,
    like_count: int = 0,
    is_liked: bool | None = None,
) -> ArtworkResponse:
    """Build an ArtworkResponse from a fully loaded artwork (images, tags, artist)."""
    images = [
        ArtworkImageResponse(
            id=image.id,
            url=image.url,
            public_id=image.public_id,
            is_main=image.is_main,
            position=image.position,
            variants=store.variants_for(image.public_id) if image.public_id else None,
        )
        for image in artwork.images
    ]

    return ArtworkResponse(
        id=artwork.uuid,
        title=artwork.title,
        description=artwork.description,
        category=artwork.category,
        medium=artwork.medium,
        style=artwork.style,
        dimensions=Dimensions(
            width=artwork.width,
            height=artwork.height,
            depth=artwork.depth,
            unit=artwork.dimension_unit or "cm",
        ),
        price=float(artwork.price) if artwork.price is not None else None,
        is_for_sale=artwork.is_for_sale,
        is_commissionable=artwork.is_commissionable,
        availability=artwork.availability,
        status=artwork.status,
        is_public=artwork.is_public,
        featured=artwork.featured,
        tags=artwork.tag_names,
        images=images,
        artist=ArtistSummary(
            id=artwork.artist.id,
            username=artwork.artist.username,
            display_name=artwork.artist.display_name,
            is_verified=artwork.artist.is_verified,
        ),
        views=artwork.views,
        created_at=artwork.created_at,
        updated_at=artwork.updated_at,
        like_count=like_count,
        is_liked=is_liked,
    )


async def build_artwork_responses_batch(
    artworks: list[Artwork],
    db: AsyncSession,
    store: ImageStore,
    current_user_id: int | None = None
) -> list[ArtworkResponse]:
    """
    Build ArtworkResponse objects for multiple artworks efficiently.

    Args:
        artworks: Artworks with images, tags and artist already loaded
        db: Database session
        store: Image store used to derive image variants
        current_user_id: Optional current user ID

    Returns:
        List of ArtworkResponse objects in the same order as input
    """
    if not artworks:
        return []

    stats = await batch_load_like_stats([artwork.id for artwork in artworks], db, current_user_id)

    return [
        build_artwork_response(
            artwork,
            store,
            like_count=stats["likes"].get(artwork.id, 0),
            is_liked=artwork.id in stats["user_liked"] if current_user_id else None,
        )
        for artwork in artworks
    ]
