"""
Global HTTP Client with connection pooling for external API calls.

This module provides a singleton HTTP client that should be used for all
requests to the image host so that:
1. TCP connections are reused (connection pooling)
2. Every call carries a bounded timeout
3. The client is closed cleanly on application shutdown
"""
import httpx
from typing import Optional

from app.config import get_settings


class HTTPClientManager:
    """Manages a global httpx.AsyncClient with connection pooling."""

    _client: Optional[httpx.AsyncClient] = None

    @classmethod
    def get_client(cls) -> httpx.AsyncClient:
        """
        Get or create the global HTTP client.

        The client is created lazily on first use but then reused.
        """
        if cls._client is None:
            settings = get_settings()
            cls._client = httpx.AsyncClient(
                limits=httpx.Limits(
                    max_keepalive_connections=20,
                    max_connections=50,
                    keepalive_expiry=30.0,
                ),
                # Uploads are at most max_upload_size_mb, so writes get the same timeout as reads
                timeout=httpx.Timeout(
                    connect=5.0,
                    read=settings.storage_timeout_seconds,
                    write=settings.storage_timeout_seconds,
                    pool=5.0,
                ),
                http2=True,
                follow_redirects=True,
            )
        return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close the HTTP client. Call this on app shutdown."""
        if cls._client is not None:
            await cls._client.aclose()
            cls._client = None

    @classmethod
    async def warmup(cls) -> None:
        """
        Warm up the HTTP client by creating it early.
        Call this in the app lifespan startup.
        """
        cls.get_client()


# Convenience function for getting the client
def get_http_client() -> httpx.AsyncClient:
    """Get the global HTTP client instance."""
    return HTTPClientManager.get_client()
