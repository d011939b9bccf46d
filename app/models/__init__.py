# Import all models so Alembic can detect them
from app.models.user import User, UserRole
from app.models.artwork import (
    Artwork,
    ArtworkImage,
    ArtworkTag,
    ArtworkLike,
    ArtworkStatus,
    Availability,
)

__all__ = [
    "User",
    "UserRole",
    "Artwork",
    "ArtworkImage",
    "ArtworkTag",
    "ArtworkLike",
    "ArtworkStatus",
    "Availability",
]
