"""
Artwork lifecycle: create, update, delete and image management.

Existence and ownership are checked before anything is uploaded or changed.
Failed uploads abort the operation; failed deletes on the image host are
logged and never block the database change.
"""
import enum
import uuid
import logging
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.exceptions import (
    NotFoundException,
    ForbiddenException,
    ValidationException,
    DeleteError,
)
from app.models.artwork import Artwork, ArtworkImage, ArtworkTag
from app.models.user import User, UserRole
from app.schemas.artwork import ArtworkCreate, ArtworkUpdate
from app.services.artwork_repository import ArtworkRepository
from app.services.storage_service import ImageStore, StoredImage, UploadedImage

logger = logging.getLogger(__name__)

# Columns that reject NULL; an explicit null in an update is ignored for these
NON_NULLABLE_FIELDS = {
    "title",
    "dimension_unit",
    "is_for_sale",
    "is_commissionable",
    "availability",
    "status",
    "is_public",
    "featured",
}


def image_namespace(artist_id: int) -> str:
    return f"artists/{artist_id}"


class ArtworkService:
    """Write paths for artworks and their images."""

    # ============== Helpers ==============

    @staticmethod
    def validate_images(files: list[UploadedImage], existing_count: int = 0) -> None:
        """Reject uploads that break count, type or size limits before any upload happens."""
        settings = get_settings()

        if existing_count + len(files) > settings.max_images_per_artwork:
            raise ValidationException(
                f"Maximum {settings.max_images_per_artwork} images allowed per artwork"
            )

        for file in files:
            name = file.filename or "file"
            if not (file.content_type or "").startswith(settings.allowed_image_prefix):
                raise ValidationException(f"{name} is not an image file")
            if file.size == 0:
                raise ValidationException(f"{name} is empty")
            if file.size > settings.max_upload_size_bytes:
                raise ValidationException(
                    f"{name} is too large (max {settings.max_upload_size_mb}MB)"
                )

    @staticmethod
    async def get_managed_artwork(
        db: AsyncSession,
        artwork_uuid: UUID,
        user: User,
        action: str = "modify",
    ) -> Artwork:
        """Load an artwork the user may change: 404 if missing, 403 if not owner or admin."""
        artwork = await ArtworkRepository.get_by_uuid(db, artwork_uuid)
        if not artwork:
            raise NotFoundException("Artwork not found")
        if not artwork.is_managed_by(user):
            raise ForbiddenException(f"Not authorized to {action} this artwork")
        return artwork

    @staticmethod
    def _apply_fields(artwork: Artwork, values: dict[str, Any]) -> None:
        for field, value in values.items():
            if isinstance(value, enum.Enum):
                value = value.value
            setattr(artwork, field, value)

    @staticmethod
    def _replace_tags(artwork: Artwork, tags: list[str]) -> None:
        # Keep surviving rows so the (artwork_id, name) constraint never sees a re-insert
        wanted = set(tags)
        for tag in list(artwork.tags):
            if tag.name not in wanted:
                artwork.tags.remove(tag)
        existing = set(artwork.tag_names)
        for name in tags:
            if name not in existing:
                artwork.tags.append(ArtworkTag(name=name))

    @staticmethod
    def _append_images(artwork: Artwork, stored: list[StoredImage]) -> None:
        had_images = bool(artwork.images)
        start = len(artwork.images)
        for index, image in enumerate(stored):
            artwork.images.append(ArtworkImage(
                url=image.url,
                public_id=image.public_id,
                position=start + index,
                is_main=not had_images and index == 0,
            ))

    @staticmethod
    def _ensure_single_main(artwork: Artwork) -> None:
        """Leave exactly one main image when the artwork has any images."""
        if not artwork.images:
            return
        main_seen = False
        for image in artwork.images:
            if image.is_main and not main_seen:
                main_seen = True
            elif image.is_main:
                image.is_main = False
        if not main_seen:
            artwork.images[0].is_main = True

    @staticmethod
    async def _discard_uploads(store: ImageStore, stored: list[StoredImage]) -> None:
        if not stored:
            return
        try:
            await store.delete_many([image.public_id for image in stored])
        except DeleteError:
            logger.error(f"Could not clean up {len(stored)} uploaded image(s) after a failed save")

    @staticmethod
    async def _commit_or_discard(db: AsyncSession, store: ImageStore, stored: list[StoredImage]) -> None:
        try:
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            await ArtworkService._discard_uploads(store, stored)
            raise

    # ============== Create ==============

    @staticmethod
    async def create_artwork(
        db: AsyncSession,
        store: ImageStore,
        data: ArtworkCreate,
        files: list[UploadedImage],
        artist: User,
    ) -> Artwork:
        """
        Upload the images and create the artwork owned by ``artist``.

        The first image becomes the main image. If any upload fails nothing
        is stored and the images that did upload are removed again.
        """
        if artist.role not in (UserRole.ARTIST.value, UserRole.ADMIN.value):
            raise ForbiddenException("Only artists can upload artworks")

        ArtworkService.validate_images(files)
        stored = await store.upload_many(files, image_namespace(artist.id))

        artwork = Artwork(uuid=uuid.uuid4(), artist_id=artist.id)
        ArtworkService._apply_fields(artwork, data.model_dump(exclude_none=True, exclude={"tags"}))
        artwork.tags = [ArtworkTag(name=name) for name in data.tags or []]
        artwork.images = [
            ArtworkImage(
                url=image.url,
                public_id=image.public_id,
                position=index,
                is_main=index == 0,
            )
            for index, image in enumerate(stored)
        ]
        db.add(artwork)
        await ArtworkService._commit_or_discard(db, store, stored)

        logger.info(f"Artist {artist.id} created artwork {artwork.uuid} with {len(stored)} image(s)")
        return await ArtworkRepository.get_by_uuid(db, artwork.uuid, refresh=True)

    # ============== Update ==============

    @staticmethod
    async def update_artwork(
        db: AsyncSession,
        store: ImageStore,
        artwork_uuid: UUID,
        data: ArtworkUpdate,
        files: list[UploadedImage],
        user: User,
    ) -> Artwork:
        """
        Merge the supplied fields and append any new images.

        New images go after the existing ones; the first of them becomes main
        only when the artwork had no images.
        """
        artwork = await ArtworkService.get_managed_artwork(db, artwork_uuid, user, "update")

        values = data.model_dump(exclude_unset=True)
        values = {
            field: value for field, value in values.items()
            if value is not None or field not in NON_NULLABLE_FIELDS
        }
        if "featured" in values and not user.is_admin:
            # Echoing the current flag back is allowed; only a change needs an admin
            if values.pop("featured") != artwork.featured:
                raise ForbiddenException("Only admins can feature artworks")

        ArtworkService.validate_images(files, existing_count=len(artwork.images))
        stored = await store.upload_many(files, image_namespace(artwork.artist_id)) if files else []

        tags = values.pop("tags", None)
        ArtworkService._apply_fields(artwork, values)
        if tags is not None:
            ArtworkService._replace_tags(artwork, tags)
        ArtworkService._append_images(artwork, stored)
        ArtworkService._ensure_single_main(artwork)

        await ArtworkService._commit_or_discard(db, store, stored)

        logger.info(f"User {user.id} updated artwork {artwork.uuid} ({len(stored)} new image(s))")
        return await ArtworkRepository.get_by_uuid(db, artwork.uuid, refresh=True)

    # ============== Images ==============

    @staticmethod
    async def remove_image(
        db: AsyncSession,
        store: ImageStore,
        artwork_uuid: UUID,
        image_id: int,
        user: User,
    ) -> None:
        """
        Remove one image. If it was the main image, the new first image takes over.

        A failure to delete the file from the image host is logged only.
        """
        artwork = await ArtworkService.get_managed_artwork(db, artwork_uuid, user)

        image = next((image for image in artwork.images if image.id == image_id), None)
        if image is None:
            raise NotFoundException("Image not found")

        if image.public_id:
            try:
                await store.delete_many([image.public_id])
            except DeleteError:
                logger.warning(
                    f"Image host delete failed for image {image.id} of artwork {artwork.uuid}; removing record anyway"
                )

        was_main = image.is_main
        artwork.images.remove(image)
        for position, remaining in enumerate(artwork.images):
            remaining.position = position
        if was_main and artwork.images:
            artwork.images[0].is_main = True

        await db.commit()
        logger.info(f"User {user.id} removed image {image_id} from artwork {artwork.uuid}")

    @staticmethod
    async def set_main_image(
        db: AsyncSession,
        artwork_uuid: UUID,
        image_id: int,
        user: User,
    ) -> None:
        """Make ``image_id`` the only main image. Unknown ids are a 404."""
        artwork = await ArtworkService.get_managed_artwork(db, artwork_uuid, user)

        if not any(image.id == image_id for image in artwork.images):
            raise NotFoundException("Image not found")

        for image in artwork.images:
            image.is_main = image.id == image_id

        await db.commit()

    # ============== Delete ==============

    @staticmethod
    async def delete_artwork(
        db: AsyncSession,
        store: ImageStore,
        artwork_uuid: UUID,
        user: User,
    ) -> None:
        """
        Delete the artwork and, best effort, its images on the image host.

        Only a failure to delete the record itself is reported.
        """
        artwork = await ArtworkService.get_managed_artwork(db, artwork_uuid, user, "delete")

        public_ids = [image.public_id for image in artwork.images if image.public_id]
        if public_ids:
            try:
                await store.delete_many(public_ids)
            except DeleteError:
                logger.error(
                    f"Image host delete failed for {len(public_ids)} image(s) of artwork {artwork.uuid}; "
                    "deleting record anyway"
                )

        try:
            await db.delete(artwork)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to delete artwork {artwork_uuid}: {type(e).__name__}: {e}")
            raise DeleteError("Failed to delete artwork") from e

        logger.info(f"User {user.id} deleted artwork {artwork_uuid}")
