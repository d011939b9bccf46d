"""
Image Store Gateway.

``ImageStore`` is the capability the artwork services depend on; the
production implementation talks to Supabase Storage over its REST API.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

import httpx

from app.config import Settings, get_settings
from app.core.exceptions import UploadError, DeleteError
from app.services.http_client import get_http_client

logger = logging.getLogger(__name__)

# name -> (width, height); height None keeps the aspect ratio
IMAGE_VARIANTS: dict[str, tuple[int, int | None]] = {
    "thumbnail": (150, 150),
    "small": (300, None),
    "medium": (600, None),
    "large": (1200, None),
}

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


@dataclass(frozen=True)
class UploadedImage:
    """Raw image received from the client, held in memory for the request."""
    filename: str | None
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        if self.filename and "." in self.filename:
            return self.filename.rsplit(".", 1)[-1].lower()
        return CONTENT_TYPE_EXTENSIONS.get(self.content_type or "", "jpg")


@dataclass(frozen=True)
class StoredImage:
    """Location of an uploaded image on the image host."""
    url: str
    public_id: str


class ImageStore(Protocol):
    async def upload_many(self, files: list[UploadedImage], namespace: str) -> list[StoredImage]:
        """Upload files, returning results in input order. Raises UploadError."""
        ...

    async def delete_many(self, public_ids: list[str]) -> None:
        """Delete objects by public id. Raises DeleteError."""
        ...

    def variants_for(self, public_id: str) -> dict[str, str]:
        """Derive resized rendition URLs for a stored image."""
        ...


class SupabaseImageStore:
    """ImageStore backed by a public Supabase Storage bucket."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self.bucket = settings.supabase_bucket_artworks
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_http_client()

    @property
    def base_url(self) -> str | None:
        return self.settings.supabase_url.rstrip("/") if self.settings.supabase_url else None

    def _auth_headers(self) -> dict[str, str] | None:
        # Service role key bypasses RLS; fall back to the anon key
        storage_key = self.settings.supabase_service_role_key or self.settings.supabase_key
        if not self.base_url or not storage_key:
            return None
        return {
            "Authorization": f"Bearer {storage_key}",
            "apikey": storage_key,
        }

    def public_url(self, public_id: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(public_id)}"

    async def _upload_one(self, file: UploadedImage, namespace: str, headers: dict[str, str]) -> StoredImage:
        public_id = f"{namespace}/{uuid.uuid4()}.{file.extension}"
        response = await self.client.post(
            f"{self.base_url}/storage/v1/object/{self.bucket}/{quote(public_id)}",
            content=file.data,
            headers={**headers, "Content-Type": file.content_type or "application/octet-stream"},
            timeout=self.settings.storage_timeout_seconds,
        )
        if response.status_code not in (200, 201):
            logger.warning(
                f"[ImageStore] Upload of {file.filename!r} rejected with status {response.status_code}: "
                f"{response.text[:200] if response.text else 'empty'}"
            )
            raise UploadError()
        return StoredImage(url=self.public_url(public_id), public_id=public_id)

    async def upload_many(self, files: list[UploadedImage], namespace: str) -> list[StoredImage]:
        if not files:
            return []

        headers = self._auth_headers()
        if headers is None:
            logger.error("[ImageStore] Storage is not configured (supabase_url / key missing)")
            raise UploadError("Image storage is not configured")

        # Uploads run concurrently; gather keeps results in input order
        results = await asyncio.gather(
            *(self._upload_one(file, namespace, headers) for file in files),
            return_exceptions=True,
        )
        uploaded = [result for result in results if isinstance(result, StoredImage)]
        failures = [result for result in results if isinstance(result, BaseException)]

        if failures:
            for failure in failures:
                if not isinstance(failure, UploadError):
                    logger.error(f"[ImageStore] Upload failed: {type(failure).__name__}: {failure}")
            if uploaded:
                try:
                    await self.delete_many([image.public_id for image in uploaded])
                except DeleteError:
                    logger.error(
                        f"[ImageStore] Could not roll back {len(uploaded)} uploaded image(s) after a failed batch"
                    )
            raise UploadError()

        logger.info(f"[ImageStore] Uploaded {len(uploaded)} image(s) to {namespace}/")
        return uploaded

    async def delete_many(self, public_ids: list[str]) -> None:
        public_ids = [public_id for public_id in public_ids if public_id]
        if not public_ids:
            return

        headers = self._auth_headers()
        if headers is None:
            logger.error("[ImageStore] Storage is not configured (supabase_url / key missing)")
            raise DeleteError("Image storage is not configured")

        try:
            response = await self.client.request(
                "DELETE",
                f"{self.base_url}/storage/v1/object/{self.bucket}",
                json={"prefixes": public_ids},
                headers=headers,
                timeout=self.settings.storage_timeout_seconds,
            )
        except httpx.HTTPError as e:
            logger.error(f"[ImageStore] Delete request failed: {type(e).__name__}: {e}")
            raise DeleteError() from e

        if response.status_code != 200:
            logger.warning(f"[ImageStore] Delete rejected with status {response.status_code}")
            raise DeleteError()

        logger.info(f"[ImageStore] Deleted {len(public_ids)} image(s)")

    def variants_for(self, public_id: str) -> dict[str, str]:
        base = f"{self.base_url}/storage/v1/render/image/public/{self.bucket}/{quote(public_id)}"
        variants = {}
        for name, (width, height) in IMAGE_VARIANTS.items():
            if height is None:
                variants[name] = f"{base}?width={width}&resize=contain"
            else:
                variants[name] = f"{base}?width={width}&height={height}&resize=cover"
        return variants


def get_image_store() -> ImageStore:
    """Dependency returning the configured image store."""
    return SupabaseImageStore(get_settings())
