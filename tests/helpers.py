"""Shared test doubles and data builders."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.core.exceptions import UploadError, DeleteError
from app.core.security import create_access_token
from app.database import Database
from app.models import User, Artwork, ArtworkImage, ArtworkTag, ArtworkLike
from app.services.storage_service import StoredImage, UploadedImage

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeImageStore:
    """In-memory ImageStore recording every call."""

    def __init__(self):
        self.upload_calls: list[list[UploadedImage]] = []
        self.deleted: list[list[str]] = []
        self.fail_upload = False
        self.fail_delete = False
        self._counter = 0

    async def upload_many(self, files: list[UploadedImage], namespace: str) -> list[StoredImage]:
        self.upload_calls.append(list(files))
        if self.fail_upload:
            raise UploadError()
        results = []
        for file in files:
            self._counter += 1
            public_id = f"{namespace}/{self._counter}-{file.filename}"
            results.append(StoredImage(url=f"https://cdn.test/{public_id}", public_id=public_id))
        return results

    async def delete_many(self, public_ids: list[str]) -> None:
        if self.fail_delete:
            raise DeleteError()
        self.deleted.append(list(public_ids))

    def variants_for(self, public_id: str) -> dict[str, str]:
        return {
            "thumbnail": f"https://cdn.test/thumb/{public_id}",
            "large": f"https://cdn.test/large/{public_id}",
        }


# ============== Data Builders ==============

async def create_user(database: Database, username: str, role: str = "buyer", **fields) -> User:
    async with database.session_factory() as session:
        user = User(username=username, email=f"{username}@example.com", role=role, **fields)
        session.add(user)
        await session.commit()
        return user


async def create_artwork(
    database: Database,
    artist: User,
    title: str = "Untitled",
    images: list[str] | None = None,
    tags: list[str] | None = None,
    minutes_ago: int = 0,
    **fields,
) -> Artwork:
    """
    Insert an artwork directly. ``images`` are public ids; the first is main.
    Defaults to a published, public artwork.
    """
    fields.setdefault("status", "published")
    fields.setdefault("is_public", True)
    if fields.get("price") is not None:
        fields["price"] = Decimal(str(fields["price"]))

    async with database.session_factory() as session:
        artwork = Artwork(
            artist_id=artist.id,
            title=title,
            created_at=BASE_TIME - timedelta(minutes=minutes_ago),
            updated_at=BASE_TIME - timedelta(minutes=minutes_ago),
            **fields,
        )
        artwork.images = [
            ArtworkImage(
                url=f"https://cdn.test/{public_id}",
                public_id=public_id,
                position=index,
                is_main=index == 0,
            )
            for index, public_id in enumerate(images or [])
        ]
        artwork.tags = [ArtworkTag(name=name) for name in tags or []]
        session.add(artwork)
        await session.commit()
        artwork_id = artwork.id

    return await load_artwork(database, artwork_id)


async def load_artwork(database: Database, artwork_id: int) -> Artwork | None:
    async with database.session_factory() as session:
        result = await session.execute(
            select(Artwork)
            .options(selectinload(Artwork.images), selectinload(Artwork.tags))
            .where(Artwork.id == artwork_id)
        )
        return result.scalar_one_or_none()


async def count_rows(database: Database, model) -> int:
    async with database.session_factory() as session:
        result = await session.execute(select(model))
        return len(result.scalars().all())


async def like_rows(database: Database, artwork_id: int) -> list[ArtworkLike]:
    async with database.session_factory() as session:
        result = await session.execute(
            select(ArtworkLike).where(ArtworkLike.artwork_id == artwork_id)
        )
        return list(result.scalars().all())


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(subject=user.username, user_id=user.id)
    return {"Authorization": f"Bearer {token}"}


def image_file(name: str = "art.jpg", content_type: str = "image/jpeg", size: int = 64):
    return ("images", (name, b"\xff" * size, content_type))
