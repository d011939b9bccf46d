from decimal import Decimal
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Query, Request, status
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from app.config import get_settings
from app.core.exceptions import ValidationException, describe_validation_errors
from app.dependencies import CurrentUser, OptionalUser, DbSession, Store
from app.schemas.artwork import (
    ArtworkCreate,
    ArtworkUpdate,
    ArtworkListParams,
    ArtworkListResponse,
    ArtworkDetailResponse,
    ArtworkMutationResponse,
    RelatedArtworksResponse,
    LikeResponse,
    MessageResponse,
    MAX_QUERY_INT,
    SortField,
    SortOrder,
)
from app.services.artwork_service import ArtworkService
from app.services.engagement_service import EngagementService
from app.services.listing_service import ArtworkListingService, DEFAULT_RELATED_LIMIT
from app.services.storage_service import UploadedImage
from app.utils.batch_queries import build_artwork_responses_batch

router = APIRouter()
settings = get_settings()

IMAGE_FIELDS = ("images", "images[]")


# ============== Helper Functions ==============

async def _read_artwork_payload(request: Request) -> tuple[dict[str, Any], list[UploadedImage]]:
    """
    Split a JSON or multipart body into field values and uploaded images.

    A nested ``dimensions`` object is flattened into width/height/depth/dimensionUnit.
    """
    content_type = request.headers.get("content-type", "")
    files: list[UploadedImage] = []

    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError:
            raise ValidationException("Malformed JSON body")
        if not isinstance(payload, dict):
            raise ValidationException("Request body must be a JSON object")
    else:
        form = await request.form()
        payload = {}
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key in IMAGE_FIELDS and value.filename:
                    # Reject from the multipart size before pulling the file into memory
                    if value.size is not None and value.size > settings.max_upload_size_bytes:
                        raise ValidationException(
                            f"{value.filename} is too large (max {settings.max_upload_size_mb}MB)"
                        )
                    files.append(UploadedImage(
                        filename=value.filename,
                        content_type=value.content_type,
                        data=await value.read(),
                    ))
            else:
                payload[key] = value

    dimensions = payload.pop("dimensions", None)
    if isinstance(dimensions, dict):
        for key in ("width", "height", "depth"):
            if key in dimensions:
                payload.setdefault(key, dimensions[key])
        if "unit" in dimensions:
            payload.setdefault("dimensionUnit", dimensions["unit"])

    return payload, files


def _parse(schema, payload: dict[str, Any]):
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        raise ValidationException(describe_validation_errors(e.errors()))


# ============== Listing ==============

@router.get(
    "",
    response_model=ArtworkListResponse,
    summary="List published artworks",
)
async def list_artworks(
    db: DbSession,
    store: Store,
    current_user: OptionalUser = None,
    page: int = Query(1, ge=1, le=MAX_QUERY_INT),
    limit: int | None = Query(None, ge=1, le=settings.max_page_size),
    category: str | None = Query(None),
    min_price: Decimal | None = Query(None, ge=0, alias="minPrice"),
    max_price: Decimal | None = Query(None, ge=0, alias="maxPrice"),
    medium: str | None = Query(None, description="Case-insensitive substring"),
    style: str | None = Query(None, description="Case-insensitive substring"),
    search: str | None = Query(None, description="Full-text search"),
    featured: bool | None = Query(None),
    artist_id: int | None = Query(None, le=MAX_QUERY_INT, alias="artistId"),
    sort_by: SortField = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
):
    """
    Browse published, public artworks.

    - Every filter narrows the result (logical AND)
    - Price range is inclusive
    - Results are sorted by **sortBy** then by id, so pages never overlap
    """
    params = _parse(ArtworkListParams, {
        "page": page,
        "limit": limit or settings.default_page_size,
        "category": category,
        "min_price": min_price,
        "max_price": max_price,
        "medium": medium,
        "style": style,
        "search": search,
        "featured": featured,
        "artist_id": artist_id,
        "sort_by": sort_by,
        "sort_order": sort_order,
    })
    return await ArtworkListingService.list_artworks(db, store, params, current_user)


# ============== Artwork CRUD ==============

@router.post(
    "",
    response_model=ArtworkMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an artwork",
)
async def create_artwork(
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
    store: Store,
):
    """
    Create an artwork from a multipart form.

    - **title** is required
    - Up to 5 **images**, each an image file of at most 10MB
    - The first image becomes the main image
    """
    payload, files = await _read_artwork_payload(request)
    data = _parse(ArtworkCreate, payload)

    artwork = await ArtworkService.create_artwork(db, store, data, files, current_user)
    responses = await build_artwork_responses_batch([artwork], db, store, current_user.id)

    return ArtworkMutationResponse(message="Artwork created successfully", artwork=responses[0])


@router.get(
    "/{artwork_uuid}",
    response_model=ArtworkDetailResponse,
    summary="Get an artwork",
)
async def get_artwork(
    artwork_uuid: UUID,
    db: DbSession,
    store: Store,
    current_user: OptionalUser = None,
):
    """Get a single artwork. Counts a view unless the caller is the artist."""
    artwork = await ArtworkListingService.get_artwork(db, store, artwork_uuid, current_user)
    return ArtworkDetailResponse(artwork=artwork)


@router.put(
    "/{artwork_uuid}",
    response_model=ArtworkMutationResponse,
    summary="Update an artwork",
)
async def update_artwork(
    artwork_uuid: UUID,
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
    store: Store,
):
    """
    Update an artwork with a JSON or multipart body.

    Only the artist or an admin can update. Uploaded **images** are appended.
    """
    payload, files = await _read_artwork_payload(request)
    data = _parse(ArtworkUpdate, payload)

    artwork = await ArtworkService.update_artwork(db, store, artwork_uuid, data, files, current_user)
    responses = await build_artwork_responses_batch([artwork], db, store, current_user.id)

    return ArtworkMutationResponse(message="Artwork updated successfully", artwork=responses[0])


@router.delete(
    "/{artwork_uuid}",
    response_model=MessageResponse,
    summary="Delete an artwork",
)
async def delete_artwork(
    artwork_uuid: UUID,
    current_user: CurrentUser,
    db: DbSession,
    store: Store,
):
    """
    Delete an artwork and its images.

    Only the artist or an admin can delete.
    """
    await ArtworkService.delete_artwork(db, store, artwork_uuid, current_user)
    return MessageResponse(message="Artwork deleted successfully")


# ============== Images ==============

@router.delete(
    "/{artwork_uuid}/images/{image_id}",
    response_model=MessageResponse,
    summary="Remove an image from an artwork",
)
async def remove_image(
    artwork_uuid: UUID,
    image_id: int,
    current_user: CurrentUser,
    db: DbSession,
    store: Store,
):
    """Remove an image. If it was the main image, the next one takes its place."""
    await ArtworkService.remove_image(db, store, artwork_uuid, image_id, current_user)
    return MessageResponse(message="Image removed successfully")


@router.put(
    "/{artwork_uuid}/images/{image_id}/main",
    response_model=MessageResponse,
    summary="Set the main image of an artwork",
)
async def set_main_image(
    artwork_uuid: UUID,
    image_id: int,
    current_user: CurrentUser,
    db: DbSession,
):
    await ArtworkService.set_main_image(db, artwork_uuid, image_id, current_user)
    return MessageResponse(message="Main image updated successfully")


# ============== Likes ==============

@router.post(
    "/{artwork_uuid}/like",
    response_model=LikeResponse,
    summary="Toggle like on an artwork",
)
async def toggle_like(
    artwork_uuid: UUID,
    current_user: CurrentUser,
    db: DbSession,
):
    """Toggle like on an artwork. If already liked, removes the like."""
    result = await EngagementService.toggle_like(db, artwork_uuid, current_user)
    return LikeResponse(
        message="Artwork liked" if result.liked else "Artwork unliked",
        liked=result.liked,
        like_count=result.like_count,
    )


# ============== Related ==============

@router.get(
    "/{artwork_uuid}/related",
    response_model=RelatedArtworksResponse,
    summary="Get related artworks",
)
async def get_related_artworks(
    artwork_uuid: UUID,
    db: DbSession,
    store: Store,
    current_user: OptionalUser = None,
    limit: int = Query(DEFAULT_RELATED_LIMIT, ge=1, le=24),
):
    """Published artworks sharing the category, style, artist or a tag, newest first."""
    related = await ArtworkListingService.related_artworks(
        db, store, artwork_uuid, limit, current_user
    )
    return RelatedArtworksResponse(related_artworks=related)
