"""
Persistence for tutor listings and their reviews.
"""

from collections.abc import Iterable

from peerpresence.db.helpers import fetch_all, fetch_one, with_db_retry
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.models.domain.tutor_domain import (
    RatingStats,
    ReviewAuthor,
    TutorListing,
    TutorReview,
)

logger = get_logger(__name__)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TutorRepository:
    """Queries against ``tutor_listings`` and ``tutor_reviews``."""

    SELECT_COLUMNS = """
        id, name, email, avatar, bio, subjects, rating, reviews_count,
        person_id, created_at, updated_at
    """

    @classmethod
    def _row_to_listing(cls, row: dict | None) -> TutorListing | None:
        if not row:
            return None

        return TutorListing(
            id=str(row["id"]),
            name=row["name"],
            email=row["email"],
            avatar=row.get("avatar") or "",
            bio=row.get("bio") or "",
            subjects=list(row.get("subjects") or []),
            rating=float(row.get("rating") or 0),
            reviews_count=row.get("reviews_count") or 0,
            person_id=str(row["person_id"]) if row.get("person_id") else None,
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    @classmethod
    @with_db_retry(max_retries=2)
    async def get(cls, listing_id: str) -> TutorListing | None:
        query = f"SELECT {cls.SELECT_COLUMNS} FROM tutor_listings WHERE id = %s"
        return cls._row_to_listing(await fetch_one(query, (listing_id,)))

    @classmethod
    async def link_person(cls, listing_id: str, person_id: str) -> str | None:
        """
        Link the listing to a person unless it is already linked.

        Returns the person id the listing ends up linked to, which is the
        earlier winner when a concurrent request linked first.
        """
        query = """
            UPDATE tutor_listings
            SET person_id = %s, updated_at = NOW()
            WHERE id = %s AND person_id IS NULL
            RETURNING person_id
        """
        row = await fetch_one(query, (person_id, listing_id))
        if row:
            logger.info("Tutor listing linked", listing_id=listing_id, person_id=person_id)
            return str(row["person_id"])

        current = await fetch_one(
            "SELECT person_id FROM tutor_listings WHERE id = %s", (listing_id,)
        )
        if current and current["person_id"]:
            return str(current["person_id"])
        return None

    @classmethod
    async def find_by_person_ids(cls, person_ids: Iterable[str]) -> dict[str, TutorListing]:
        ids = list(dict.fromkeys(person_ids))
        if not ids:
            return {}

        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM tutor_listings
            WHERE person_id = ANY(%s::uuid[])
        """
        listings = (cls._row_to_listing(row) for row in await fetch_all(query, (ids,)))
        return {listing.person_id: listing for listing in listings}

    @classmethod
    async def list_all(cls, q: str | None = None) -> list[TutorListing]:
        if q:
            pattern = f"%{escape_like(q)}%"
            query = f"""
                SELECT {cls.SELECT_COLUMNS}
                FROM tutor_listings
                WHERE name ILIKE %s
                   OR bio ILIKE %s
                   OR EXISTS (SELECT 1 FROM unnest(subjects) s WHERE s ILIKE %s)
                ORDER BY name ASC
            """
            rows = await fetch_all(query, (pattern, pattern, pattern))
        else:
            rows = await fetch_all(
                f"SELECT {cls.SELECT_COLUMNS} FROM tutor_listings ORDER BY name ASC"
            )
        return [cls._row_to_listing(row) for row in rows]

    @classmethod
    async def search_by_subject(cls, term: str, limit: int) -> list[TutorListing]:
        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM tutor_listings
            WHERE EXISTS (SELECT 1 FROM unnest(subjects) s WHERE s ILIKE %s)
            ORDER BY rating DESC, name ASC
            LIMIT %s
        """
        rows = await fetch_all(query, (f"%{escape_like(term)}%", limit))
        return [cls._row_to_listing(row) for row in rows]

    @classmethod
    async def search_candidates(cls, term: str, cap: int = 100) -> list[TutorListing]:
        """Unranked name/bio/subject matches; ranking happens in the service."""
        pattern = f"%{escape_like(term)}%"
        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM tutor_listings
            WHERE name ILIKE %s
               OR bio ILIKE %s
               OR EXISTS (SELECT 1 FROM unnest(subjects) s WHERE s ILIKE %s)
            LIMIT %s
        """
        rows = await fetch_all(query, (pattern, pattern, pattern, cap))
        return [cls._row_to_listing(row) for row in rows]

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    @classmethod
    def _row_to_review(cls, row: dict) -> TutorReview:
        return TutorReview(
            id=str(row["id"]),
            tutor_id=str(row["tutor_id"]),
            author=ReviewAuthor(
                id=str(row["author_id"]),
                name=row.get("author_name") or "User",
                avatar_url=row.get("author_avatar_url") or "",
            ),
            rating=row["rating"],
            comment=row.get("comment") or "",
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    @classmethod
    async def rating_stats(cls, listing_id: str) -> RatingStats:
        query = """
            SELECT COALESCE(AVG(rating), 0) AS rating_avg, COUNT(*) AS rating_count
            FROM tutor_reviews
            WHERE tutor_id = %s
        """
        row = await fetch_one(query, (listing_id,))
        if not row:
            return RatingStats()
        return RatingStats(
            rating_avg=float(row["rating_avg"] or 0), rating_count=int(row["rating_count"] or 0)
        )

    @classmethod
    async def list_reviews(cls, listing_id: str) -> list[TutorReview]:
        query = """
            SELECT r.id, r.tutor_id, r.author_id, r.rating, r.comment,
                   r.created_at, r.updated_at,
                   p.name AS author_name, p.avatar_url AS author_avatar_url
            FROM tutor_reviews r
            JOIN persons p ON p.id = r.author_id
            WHERE r.tutor_id = %s
            ORDER BY r.created_at DESC
        """
        return [cls._row_to_review(row) for row in await fetch_all(query, (listing_id,))]

    @classmethod
    async def upsert_review(
        cls, listing_id: str, author_id: str, rating: int, comment: str
    ) -> TutorReview:
        """One review per author per listing; a second submission replaces the first."""
        query = """
            WITH saved AS (
                INSERT INTO tutor_reviews (tutor_id, author_id, rating, comment)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (tutor_id, author_id)
                DO UPDATE SET rating = EXCLUDED.rating,
                              comment = EXCLUDED.comment,
                              updated_at = NOW()
                RETURNING id, tutor_id, author_id, rating, comment, created_at, updated_at
            )
            SELECT saved.*, p.name AS author_name, p.avatar_url AS author_avatar_url
            FROM saved
            JOIN persons p ON p.id = saved.author_id
        """
        row = await fetch_one(query, (listing_id, author_id, rating, comment))
        return cls._row_to_review(row)
