"""
Persistence operations for artworks.

All reads load images, tags and the artist eagerly so responses can be built
without lazy loads on the async session.
"""
from uuid import UUID

from sqlalchemy import Select, String, select, func, update, delete, and_, or_, literal_column
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.artwork import Artwork, ArtworkLike, ArtworkTag, ArtworkStatus
from app.schemas.artwork import ArtworkListParams


SORT_COLUMNS = {
    "createdAt": Artwork.created_at,
    "updatedAt": Artwork.updated_at,
    "price": Artwork.price,
    "views": Artwork.views,
    "title": Artwork.title,
}

# Columns searched by the non-PostgreSQL fallback and indexed by the full-text query
SEARCH_COLUMNS = (
    Artwork.title,
    Artwork.description,
    Artwork.category,
    Artwork.medium,
    Artwork.style,
)


def publicly_listed():
    """Baseline condition for every public listing."""
    return and_(
        Artwork.status == ArtworkStatus.PUBLISHED.value,
        Artwork.is_public.is_(True),
    )


def search_vector():
    """
    tsvector over SEARCH_COLUMNS, written exactly as ix_artworks_search indexes it.

    Built from literals and IMMUTABLE functions only, since PostgreSQL rejects
    anything else in an index expression.
    """
    separator = literal_column("' '", String)
    document = None
    for column in SEARCH_COLUMNS:
        part = func.coalesce(column, literal_column("''", String))
        document = part if document is None else document + separator + part
    return func.to_tsvector(literal_column("'english'::regconfig"), document)


def _dialect_name(db: AsyncSession) -> str:
    return db.bind.dialect.name


class ArtworkRepository:
    """Query helpers for the artworks table and its children."""

    @staticmethod
    def with_relations(query: Select) -> Select:
        return query.options(
            selectinload(Artwork.images),
            selectinload(Artwork.tags),
            selectinload(Artwork.artist),
        )

    @staticmethod
    async def get_by_uuid(db: AsyncSession, artwork_uuid: UUID, refresh: bool = False) -> Artwork | None:
        """
        Load an artwork with its relations.

        ``refresh`` overwrites any instance already in the session, picking up
        server-side values (timestamps, atomic counters) after a write.
        """
        query = ArtworkRepository.with_relations(
            select(Artwork).where(Artwork.uuid == artwork_uuid)
        )
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    # ============== Listing ==============

    @staticmethod
    def _search_condition(db: AsyncSession, search: str):
        if _dialect_name(db) == "postgresql":
            text_match = search_vector().op("@@")(
                func.plainto_tsquery("english", search)
            )
            tag_match = Artwork.id.in_(
                select(ArtworkTag.artwork_id).where(ArtworkTag.name == search.strip().lower())
            )
            return or_(text_match, tag_match)

        # Every term must appear somewhere in the searchable text or tags
        term_conditions = []
        for term in search.split():
            term_conditions.append(or_(
                *(column.icontains(term, autoescape=True) for column in SEARCH_COLUMNS),
                Artwork.id.in_(
                    select(ArtworkTag.artwork_id).where(
                        ArtworkTag.name.icontains(term.lower(), autoescape=True)
                    )
                ),
            ))
        return and_(*term_conditions)

    @staticmethod
    def listing_conditions(db: AsyncSession, params: ArtworkListParams) -> list:
        conditions = [publicly_listed()]

        if params.category:
            conditions.append(Artwork.category == params.category)
        if params.min_price is not None:
            conditions.append(Artwork.price >= params.min_price)
        if params.max_price is not None:
            conditions.append(Artwork.price <= params.max_price)
        if params.medium:
            conditions.append(Artwork.medium.icontains(params.medium, autoescape=True))
        if params.style:
            conditions.append(Artwork.style.icontains(params.style, autoescape=True))
        if params.featured is not None:
            conditions.append(Artwork.featured.is_(params.featured))
        if params.artist_id is not None:
            conditions.append(Artwork.artist_id == params.artist_id)
        if params.search and params.search.strip():
            conditions.append(ArtworkRepository._search_condition(db, params.search))

        return conditions

    @staticmethod
    async def list_page(db: AsyncSession, params: ArtworkListParams) -> tuple[list[Artwork], int]:
        """Return one page of publicly listed artworks and the total match count."""
        conditions = ArtworkRepository.listing_conditions(db, params)

        total_result = await db.execute(
            select(func.count()).select_from(Artwork).where(*conditions)
        )
        total = total_result.scalar() or 0

        sort_column = SORT_COLUMNS[params.sort_by]
        if params.sort_order == "asc":
            ordering = (sort_column.asc(), Artwork.id.asc())
        else:
            ordering = (sort_column.desc(), Artwork.id.desc())

        result = await db.execute(
            ArtworkRepository.with_relations(select(Artwork))
            .where(*conditions)
            .order_by(*ordering)
            .offset(params.offset)
            .limit(params.limit)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def related(db: AsyncSession, artwork: Artwork, limit: int) -> list[Artwork]:
        """Other listed artworks sharing category, style, artist or a tag, newest first."""
        similarity = [Artwork.artist_id == artwork.artist_id]
        if artwork.category:
            similarity.append(Artwork.category == artwork.category)
        if artwork.style:
            similarity.append(Artwork.style == artwork.style)
        if artwork.tags:
            similarity.append(Artwork.id.in_(
                select(ArtworkTag.artwork_id).where(ArtworkTag.name.in_(artwork.tag_names))
            ))

        result = await db.execute(
            ArtworkRepository.with_relations(select(Artwork))
            .where(
                Artwork.id != artwork.id,
                publicly_listed(),
                or_(*similarity),
            )
            .order_by(Artwork.created_at.desc(), Artwork.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # ============== Engagement ==============

    @staticmethod
    async def increment_views(db: AsyncSession, artwork_id: int) -> None:
        """Atomic ``views = views + 1``. Leaves ``updated_at`` untouched."""
        await db.execute(
            update(Artwork)
            .where(Artwork.id == artwork_id)
            .values(views=Artwork.views + 1, updated_at=Artwork.updated_at)
        )

    @staticmethod
    async def add_like(db: AsyncSession, artwork_id: int, user_id: int) -> bool:
        """Insert a like unless one exists. Returns True if a row was added."""
        values = {"artwork_id": artwork_id, "user_id": user_id}
        dialect = _dialect_name(db)

        if dialect in ("postgresql", "sqlite"):
            insert = pg_insert if dialect == "postgresql" else sqlite_insert
            result = await db.execute(
                insert(ArtworkLike)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["user_id", "artwork_id"])
            )
            return result.rowcount > 0

        try:
            async with db.begin_nested():
                db.add(ArtworkLike(**values))
        except IntegrityError:
            return False
        return True

    @staticmethod
    async def remove_like(db: AsyncSession, artwork_id: int, user_id: int) -> bool:
        """Delete the user's like. Returns True if a row was removed."""
        result = await db.execute(
            delete(ArtworkLike).where(
                ArtworkLike.artwork_id == artwork_id,
                ArtworkLike.user_id == user_id,
            )
        )
        return result.rowcount > 0

    @staticmethod
    async def count_likes(db: AsyncSession, artwork_id: int) -> int:
        result = await db.execute(
            select(func.count()).select_from(ArtworkLike).where(ArtworkLike.artwork_id == artwork_id)
        )
        return result.scalar() or 0
