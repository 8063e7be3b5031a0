"""
Read-mostly catalog tables: courses and subjects.
"""

from peerpresence.db.helpers import fetch_all
from peerpresence.models.domain.feed_domain import Course, Subject
from peerpresence.repositories.tutor_repository import escape_like


class CourseRepository:
    @classmethod
    async def list_all(cls) -> list[Course]:
        query = """
            SELECT id, title, description, image_url, created_at
            FROM courses
            ORDER BY created_at ASC
        """
        return [
            Course(
                id=str(row["id"]),
                title=row["title"],
                description=row.get("description") or "",
                image_url=row.get("image_url") or "",
                created_at=row.get("created_at"),
            )
            for row in await fetch_all(query)
        ]


class SubjectRepository:
    @classmethod
    def _row_to_subject(cls, row: dict) -> Subject:
        return Subject(
            id=str(row["id"]),
            name=row["name"],
            description=row.get("description") or "",
            created_at=row.get("created_at"),
        )

    @classmethod
    async def list_all(cls) -> list[Subject]:
        rows = await fetch_all(
            "SELECT id, name, description, created_at FROM subjects ORDER BY name ASC"
        )
        return [cls._row_to_subject(row) for row in rows]

    @classmethod
    async def search(cls, term: str, limit: int) -> list[Subject]:
        query = """
            SELECT id, name, description, created_at
            FROM subjects
            WHERE name ILIKE %s OR description ILIKE %s
            ORDER BY name ASC
            LIMIT %s
        """
        pattern = f"%{escape_like(term)}%"
        return [cls._row_to_subject(row) for row in await fetch_all(query, (pattern, pattern, limit))]
