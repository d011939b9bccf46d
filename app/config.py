from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Artmarket API"
    debug: bool = False
    log_level: str = "INFO"
    api_v1_prefix: str = "/api/v1"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Database
    database_url: str

    # JWT verification (tokens are issued by the auth service)
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"

    # Redis
    redis_url: str = "redis://localhost:6379"
    cache_enabled: bool = True

    # Supabase Storage (image host)
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_service_role_key: Optional[str] = None  # Bypasses RLS - use for server-side uploads
    supabase_bucket_artworks: str = "artworks"
    storage_timeout_seconds: float = 20.0

    # File uploads
    max_upload_size_mb: int = 10
    max_images_per_artwork: int = 5
    allowed_image_prefix: str = "image/"

    # Listing
    default_page_size: int = 12
    max_page_size: int = 100

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
