import enum
import uuid as uuid_lib
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    String,
    Integer,
    Text,
    Boolean,
    DateTime,
    Numeric,
    Float,
    ForeignKey,
    UniqueConstraint,
    Index,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.user import User


class ArtworkStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Availability(str, enum.Enum):
    AVAILABLE = "available"
    SOLD = "sold"
    RESERVED = "reserved"
    NOT_FOR_SALE = "not_for_sale"


class Artwork(Base):
    """An artwork listed by an artist."""

    __tablename__ = "artworks"

    id: Mapped[int] = mapped_column(primary_key=True)
    uuid: Mapped[uuid_lib.UUID] = mapped_column(
        Uuid(as_uuid=True),
        default=uuid_lib.uuid4,
        unique=True,
        index=True,
        nullable=False
    )
    artist_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True
    )

    # Content
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    medium: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    style: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Dimensions
    width: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    height: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    depth: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dimension_unit: Mapped[str] = mapped_column(String(10), default="cm")

    # Sale
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True, index=True)
    is_for_sale: Mapped[bool] = mapped_column(Boolean, default=True)
    is_commissionable: Mapped[bool] = mapped_column(Boolean, default=False)
    availability: Mapped[str] = mapped_column(String(20), default=Availability.AVAILABLE.value)

    # Visibility
    status: Mapped[str] = mapped_column(String(20), default=ArtworkStatus.DRAFT.value)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True)
    featured: Mapped[bool] = mapped_column(Boolean, default=False)

    # Engagement
    views: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_artworks_listing", "status", "is_public", "created_at"),
    )

    # Relationships
    artist: Mapped["User"] = relationship(back_populates="artworks")
    images: Mapped[list["ArtworkImage"]] = relationship(
        back_populates="artwork",
        cascade="all, delete-orphan",
        order_by="ArtworkImage.position",
    )
    tags: Mapped[list["ArtworkTag"]] = relationship(
        back_populates="artwork",
        cascade="all, delete-orphan",
        order_by="ArtworkTag.name",
    )
    likes: Mapped[list["ArtworkLike"]] = relationship(
        back_populates="artwork",
        cascade="all, delete-orphan",
    )

    @property
    def tag_names(self) -> list[str]:
        return [tag.name for tag in self.tags]

    def is_visible_to_everyone(self) -> bool:
        # Records that are neither public nor published are owner/admin only
        return self.is_public or self.status == ArtworkStatus.PUBLISHED.value

    def is_managed_by(self, user: Optional["User"]) -> bool:
        return user is not None and (user.id == self.artist_id or user.is_admin)

    def is_visible_to(self, user: Optional["User"]) -> bool:
        return self.is_visible_to_everyone() or self.is_managed_by(user)

    def __repr__(self) -> str:
        return f"<Artwork {self.title!r} by {self.artist_id}>"


class ArtworkImage(Base):
    """Image of an artwork. Position defines display order; at most one is main."""

    __tablename__ = "artwork_images"

    id: Mapped[int] = mapped_column(primary_key=True)
    artwork_id: Mapped[int] = mapped_column(
        ForeignKey("artworks.id", ondelete="CASCADE"),
        index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    url: Mapped[str] = mapped_column(String(500))
    public_id: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_main: Mapped[bool] = mapped_column(Boolean, default=False)

    artwork: Mapped["Artwork"] = relationship(back_populates="images")

    def __repr__(self) -> str:
        return f"<ArtworkImage {self.id} of {self.artwork_id}{' (main)' if self.is_main else ''}>"


class ArtworkTag(Base):
    """Lowercased free-form tag attached to an artwork."""

    __tablename__ = "artwork_tags"

    id: Mapped[int] = mapped_column(primary_key=True)
    artwork_id: Mapped[int] = mapped_column(
        ForeignKey("artworks.id", ondelete="CASCADE"),
        index=True
    )
    name: Mapped[str] = mapped_column(String(50), index=True)

    __table_args__ = (
        UniqueConstraint("artwork_id", "name", name="unique_artwork_tag"),
    )

    artwork: Mapped["Artwork"] = relationship(back_populates="tags")

    def __repr__(self) -> str:
        return f"<ArtworkTag {self.name}>"


class ArtworkLike(Base):
    """Like on an artwork."""

    __tablename__ = "artwork_likes"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True
    )
    artwork_id: Mapped[int] = mapped_column(
        ForeignKey("artworks.id", ondelete="CASCADE"),
        index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    # Unique constraint: user can only like an artwork once
    __table_args__ = (
        UniqueConstraint("user_id", "artwork_id", name="unique_user_artwork_like"),
    )

    user: Mapped["User"] = relationship(back_populates="artwork_likes")
    artwork: Mapped["Artwork"] = relationship(back_populates="likes")

    def __repr__(self) -> str:
        return f"<ArtworkLike {self.user_id} -> {self.artwork_id}>"
