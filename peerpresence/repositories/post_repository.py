"""
Persistence for feed posts, votes and favorites.
"""

from peerpresence.db.helpers import execute_query, fetch_all, fetch_one, fetch_val
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.models.domain.feed_domain import Post

logger = get_logger(__name__)


class PostRepository:
    """Posts with per-viewer aggregates (score, own vote, saved flag)."""

    # %(viewer)s may be NULL for anonymous readers; every comparison with it is then false
    AGGREGATE_SELECT = """
        SELECT p.id, p.title, p.description, p.image_url, p.author_id,
               p.created_at, p.updated_at,
               COALESCE((SELECT SUM(v.value) FROM post_votes v WHERE v.post_id = p.id), 0) AS score,
               COALESCE((SELECT v.value FROM post_votes v
                         WHERE v.post_id = p.id AND v.person_id = %(viewer)s::uuid), 0) AS my_vote,
               EXISTS (SELECT 1 FROM post_favorites f
                       WHERE f.post_id = p.id AND f.person_id = %(viewer)s::uuid) AS saved,
               (SELECT COUNT(*) FROM post_favorites f WHERE f.post_id = p.id) AS favorites_count
        FROM posts p
    """

    @classmethod
    def _row_to_post(cls, row: dict | None) -> Post | None:
        if not row:
            return None

        return Post(
            id=str(row["id"]),
            title=row["title"],
            description=row["description"],
            image_url=row.get("image_url") or "",
            author_id=str(row["author_id"]) if row.get("author_id") else None,
            score=int(row.get("score") or 0),
            my_vote=int(row.get("my_vote") or 0),
            saved=bool(row.get("saved")),
            favorites_count=int(row.get("favorites_count") or 0),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    @classmethod
    async def list_for_viewer(cls, viewer_id: str | None) -> list[Post]:
        query = f"{cls.AGGREGATE_SELECT} ORDER BY p.created_at DESC"
        rows = await fetch_all(query, {"viewer": viewer_id})
        return [cls._row_to_post(row) for row in rows]

    @classmethod
    async def list_saved(cls, person_id: str) -> list[Post]:
        query = f"""
            {cls.AGGREGATE_SELECT}
            WHERE EXISTS (
                SELECT 1 FROM post_favorites f
                WHERE f.post_id = p.id AND f.person_id = %(viewer)s::uuid
            )
            ORDER BY p.created_at DESC
        """
        rows = await fetch_all(query, {"viewer": person_id})
        return [cls._row_to_post(row) for row in rows]

    @classmethod
    async def exists(cls, post_id: str) -> bool:
        return bool(await fetch_val("SELECT EXISTS(SELECT 1 FROM posts WHERE id = %s)", (post_id,)))

    @classmethod
    async def create(
        cls, author_id: str, title: str, description: str, image_url: str = ""
    ) -> Post:
        query = """
            INSERT INTO posts (title, description, image_url, author_id)
            VALUES (%s, %s, %s, %s)
            RETURNING id, title, description, image_url, author_id, created_at, updated_at
        """
        post = cls._row_to_post(await fetch_one(query, (title, description, image_url, author_id)))
        logger.info("Post created", post_id=post.id, author_id=author_id)
        return post

    # ------------------------------------------------------------------
    # Votes
    # ------------------------------------------------------------------

    @classmethod
    async def get_vote(cls, post_id: str, person_id: str) -> int | None:
        return await fetch_val(
            "SELECT value FROM post_votes WHERE post_id = %s AND person_id = %s",
            (post_id, person_id),
        )

    @classmethod
    async def set_vote(cls, post_id: str, person_id: str, value: int) -> None:
        query = """
            INSERT INTO post_votes (post_id, person_id, value)
            VALUES (%s, %s, %s)
            ON CONFLICT (post_id, person_id) DO UPDATE SET value = EXCLUDED.value
        """
        await execute_query(query, (post_id, person_id, value))

    @classmethod
    async def delete_vote(cls, post_id: str, person_id: str) -> None:
        await execute_query(
            "DELETE FROM post_votes WHERE post_id = %s AND person_id = %s", (post_id, person_id)
        )

    @classmethod
    async def score(cls, post_id: str) -> int:
        value = await fetch_val(
            "SELECT COALESCE(SUM(value), 0) FROM post_votes WHERE post_id = %s", (post_id,)
        )
        return int(value or 0)

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    @classmethod
    async def is_favorite(cls, post_id: str, person_id: str) -> bool:
        query = "SELECT EXISTS(SELECT 1 FROM post_favorites WHERE post_id = %s AND person_id = %s)"
        return bool(await fetch_val(query, (post_id, person_id)))

    @classmethod
    async def add_favorite(cls, post_id: str, person_id: str) -> None:
        query = """
            INSERT INTO post_favorites (post_id, person_id)
            VALUES (%s, %s)
            ON CONFLICT (post_id, person_id) DO NOTHING
        """
        await execute_query(query, (post_id, person_id))

    @classmethod
    async def remove_favorite(cls, post_id: str, person_id: str) -> None:
        await execute_query(
            "DELETE FROM post_favorites WHERE post_id = %s AND person_id = %s",
            (post_id, person_id),
        )

    @classmethod
    async def favorites_count(cls, post_id: str) -> int:
        value = await fetch_val("SELECT COUNT(*) FROM post_favorites WHERE post_id = %s", (post_id,))
        return int(value or 0)
