import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.models.artwork import ArtworkStatus, Availability

# Listing sort keys exposed to clients
SortField = Literal["createdAt", "updatedAt", "price", "views", "title"]
SortOrder = Literal["asc", "desc"]

MAX_TAGS = 20
MAX_TAG_LENGTH = 50

# Upper bound for integer query values; keeps ids and page offsets inside database integers
MAX_QUERY_INT = 2**31 - 1


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def normalize_tags(value: Any) -> list[str] | None:
    """
    Accept a list, a JSON array string or a comma-separated string and
    return lowercased, de-duplicated, non-blank tags in input order.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                value = json.loads(text)
            except json.JSONDecodeError:
                raise ValueError("tags must be a JSON array or a comma-separated string")
        else:
            value = text.split(",")
    if not isinstance(value, (list, tuple)):
        raise ValueError("tags must be a list of strings")

    tags: list[str] = []
    for raw in value:
        tag = str(raw).strip().lower()
        if not tag or tag in tags:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"tags may be at most {MAX_TAG_LENGTH} characters")
        tags.append(tag)
    if len(tags) > MAX_TAGS:
        raise ValueError(f"at most {MAX_TAGS} tags are allowed")
    return tags


# ============== Input Schemas ==============

class ArtworkFields(CamelModel):
    """Editable artwork fields shared by create and update."""

    description: Optional[str] = Field(None, max_length=5000)
    category: Optional[str] = Field(None, max_length=100)
    medium: Optional[str] = Field(None, max_length=100)
    style: Optional[str] = Field(None, max_length=100)
    width: Optional[float] = Field(None, gt=0)
    height: Optional[float] = Field(None, gt=0)
    depth: Optional[float] = Field(None, gt=0)
    dimension_unit: Optional[str] = Field(None, max_length=10)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    is_for_sale: Optional[bool] = None
    is_commissionable: Optional[bool] = None
    availability: Optional[Availability] = None
    status: Optional[ArtworkStatus] = None
    is_public: Optional[bool] = None
    tags: Optional[list[str]] = None

    @model_validator(mode="before")
    @classmethod
    def blank_form_values_are_missing(cls, data: Any) -> Any:
        # Multipart forms send "" for untouched optional inputs
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value != ""}
        return data

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, value: Any) -> list[str] | None:
        return normalize_tags(value)


class ArtworkCreate(ArtworkFields):
    """Schema for creating an artwork (multipart form fields)."""

    title: str = Field(..., max_length=200)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title is required")
        return value


class ArtworkUpdate(ArtworkFields):
    """
    Schema for updating an artwork.

    Only fields listed here can be changed; anything else in the request is
    ignored. Fields that are not sent are left untouched.
    """

    title: Optional[str] = Field(None, max_length=200)
    featured: Optional[bool] = None  # Honoured for admins only

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("title cannot be blank")
        return value


class ArtworkListParams(CamelModel):
    """Filter, sort and page parameters for the public listing."""

    page: int = Field(1, ge=1, le=MAX_QUERY_INT)
    limit: int = Field(12, ge=1)
    category: Optional[str] = None
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    medium: Optional[str] = None
    style: Optional[str] = None
    search: Optional[str] = None
    featured: Optional[bool] = None
    artist_id: Optional[int] = Field(None, le=MAX_QUERY_INT)
    sort_by: SortField = "createdAt"
    sort_order: SortOrder = "desc"

    @model_validator(mode="after")
    def price_range_is_ordered(self) -> "ArtworkListParams":
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("minPrice cannot be greater than maxPrice")
        return self

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# ============== Response Schemas ==============

class ArtworkImageResponse(CamelModel):
    """Image with derived rendition URLs."""
    id: int
    url: str
    public_id: Optional[str] = None
    is_main: bool
    position: int
    variants: Optional[dict[str, str]] = None


class ArtistSummary(CamelModel):
    """Artist embedded in artwork responses."""
    id: int
    username: str
    display_name: str
    is_verified: bool = False


class Dimensions(CamelModel):
    width: Optional[float] = None
    height: Optional[float] = None
    depth: Optional[float] = None
    unit: str = "cm"


class ArtworkResponse(CamelModel):
    """Schema for artwork response."""
    id: UUID
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    medium: Optional[str] = None
    style: Optional[str] = None
    dimensions: Dimensions
    price: Optional[float] = None
    is_for_sale: bool
    is_commissionable: bool
    availability: str
    status: str
    is_public: bool
    featured: bool
    tags: list[str] = []
    images: list[ArtworkImageResponse] = []
    artist: ArtistSummary
    views: int = 0
    created_at: datetime
    updated_at: datetime

    # Engagement stats
    like_count: int = 0
    is_liked: Optional[bool] = None  # Whether current user liked this


class PaginationInfo(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class ArtworkListResponse(CamelModel):
    """Schema for paginated artwork list."""
    artworks: list[ArtworkResponse]
    pagination: PaginationInfo


class ArtworkDetailResponse(CamelModel):
    artwork: ArtworkResponse


class ArtworkMutationResponse(CamelModel):
    message: str
    artwork: ArtworkResponse


class RelatedArtworksResponse(CamelModel):
    related_artworks: list[ArtworkResponse]


class LikeResponse(CamelModel):
    """Schema for like toggle response."""
    message: str
    liked: bool
    like_count: int


class MessageResponse(BaseModel):
    """Generic message response."""
    message: str
