import enum
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Boolean, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.artwork import Artwork, ArtworkLike


class UserRole(str, enum.Enum):
    ARTIST = "artist"
    ADMIN = "admin"
    BUYER = "buyer"


class User(Base):
    """
    Marketplace user.

    Accounts are managed by the auth service; this service only reads them
    to resolve the caller and to embed the artist on artworks.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    role: Mapped[str] = mapped_column(String(20), default=UserRole.BUYER.value)

    # Profile
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    artist_name: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)

    # Status flags
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    # Relationships
    artworks: Mapped[list["Artwork"]] = relationship(
        back_populates="artist",
        cascade="all, delete-orphan"
    )
    artwork_likes: Mapped[list["ArtworkLike"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def display_name(self) -> str:
        if self.artist_name:
            return self.artist_name
        full_name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full_name or self.username

    def __repr__(self) -> str:
        return f"<User {self.username}>"
