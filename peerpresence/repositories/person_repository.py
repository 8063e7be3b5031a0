"""
Persistence for Person accounts and their subject history.
"""

from collections.abc import Iterable

import psycopg
from psycopg.types.json import Jsonb

from peerpresence.db.helpers import execute_query, fetch_all, fetch_one, fetch_val, with_db_retry
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.models.domain.person_domain import Person, SubjectInterest

logger = get_logger(__name__)


class PersonRepository:
    """Queries against ``persons`` and ``person_subjects``."""

    SELECT_COLUMNS = "id, name, email, role, bio, avatar_url, created_at, updated_at"

    # Columns a profile edit may touch
    EDITABLE_COLUMNS = ("name", "email", "bio", "avatar_url")

    @classmethod
    def _row_to_person(cls, row: dict | None) -> Person | None:
        if not row:
            return None

        return Person(
            id=str(row["id"]),
            name=row["name"],
            email=row["email"],
            role=row["role"],
            bio=row.get("bio") or "",
            avatar_url=row.get("avatar_url") or "",
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    @classmethod
    @with_db_retry(max_retries=2)
    async def get(cls, person_id: str) -> Person | None:
        query = f"SELECT {cls.SELECT_COLUMNS} FROM persons WHERE id = %s"
        return cls._row_to_person(await fetch_one(query, (person_id,)))

    @classmethod
    @with_db_retry(max_retries=2)
    async def exists(cls, person_id: str) -> bool:
        return bool(await fetch_val("SELECT EXISTS(SELECT 1 FROM persons WHERE id = %s)", (person_id,)))

    @classmethod
    async def get_by_email(cls, email: str) -> Person | None:
        query = f"SELECT {cls.SELECT_COLUMNS} FROM persons WHERE email = %s"
        return cls._row_to_person(await fetch_one(query, (email.strip().lower(),)))

    @classmethod
    async def get_many(cls, person_ids: Iterable[str]) -> dict[str, Person]:
        ids = list(dict.fromkeys(person_ids))
        if not ids:
            return {}

        query = f"SELECT {cls.SELECT_COLUMNS} FROM persons WHERE id = ANY(%s::uuid[])"
        rows = await fetch_all(query, (ids,))
        people = (cls._row_to_person(row) for row in rows)
        return {person.id: person for person in people}

    @classmethod
    async def create(
        cls,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: str,
        bio: str = "",
        avatar_url: str = "",
    ) -> Person:
        """Insert a person. Raises UniqueViolationError when the email is taken."""
        query = f"""
            INSERT INTO persons (name, email, password_hash, role, bio, avatar_url)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING {cls.SELECT_COLUMNS}
        """
        row = await fetch_one(
            query, (name, email.strip().lower(), password_hash, role, bio, avatar_url)
        )
        person = cls._row_to_person(row)
        logger.info("Person created", person_id=person.id, role=role)
        return person

    @classmethod
    async def update_profile(cls, person_id: str, updates: dict[str, str]) -> Person | None:
        """Apply a partial profile edit. Unknown keys are ignored."""
        changes = {k: v for k, v in updates.items() if k in cls.EDITABLE_COLUMNS}
        if not changes:
            return await cls.get(person_id)

        if "email" in changes:
            changes["email"] = changes["email"].strip().lower()

        assignments = ", ".join(f"{column} = %s" for column in changes)
        query = f"""
            UPDATE persons
            SET {assignments}, updated_at = NOW()
            WHERE id = %s
            RETURNING {cls.SELECT_COLUMNS}
        """
        row = await fetch_one(query, (*changes.values(), person_id))
        return cls._row_to_person(row)

    @classmethod
    async def get_password_hash(cls, person_id: str) -> str | None:
        return await fetch_val("SELECT password_hash FROM persons WHERE id = %s", (person_id,))

    @classmethod
    async def set_password_hash(cls, person_id: str, password_hash: str) -> bool:
        query = "UPDATE persons SET password_hash = %s, updated_at = NOW() WHERE id = %s"
        return await execute_query(query, (password_hash, person_id)) > 0

    @classmethod
    async def delete(cls, person_id: str) -> bool:
        deleted = await execute_query("DELETE FROM persons WHERE id = %s", (person_id,)) > 0
        if deleted:
            logger.info("Person deleted", person_id=person_id)
        return deleted


class SubjectHistoryRepository:
    """Booking-driven ``person_subjects`` rows."""

    @classmethod
    def _row_to_subject(cls, row: dict) -> SubjectInterest:
        return SubjectInterest(
            name=row["name"],
            count=row["count"],
            last_booked_at=row.get("last_booked_at"),
            last_session=row.get("last_session") or {},
        )

    @classmethod
    async def list_for_person(cls, person_id: str) -> list[SubjectInterest]:
        query = """
            SELECT name, count, last_booked_at, last_session
            FROM person_subjects
            WHERE person_id = %s
            ORDER BY last_booked_at DESC
        """
        return [cls._row_to_subject(row) for row in await fetch_all(query, (person_id,))]

    @classmethod
    async def record_booking(
        cls,
        person_id: str,
        subject: str,
        last_session: dict,
        connection: psycopg.AsyncConnection | None = None,
    ) -> None:
        """Add the subject or bump its counter and replace the last session."""
        query = """
            INSERT INTO person_subjects (person_id, name, count, last_booked_at, last_session)
            VALUES (%s, %s, 1, NOW(), %s)
            ON CONFLICT (person_id, name)
            DO UPDATE SET
                count = person_subjects.count + 1,
                last_booked_at = NOW(),
                last_session = EXCLUDED.last_session
        """
        await execute_query(query, (person_id, subject, Jsonb(last_session)), connection=connection)

    @classmethod
    async def update_last_session(cls, person_id: str, subject: str, changes: dict) -> None:
        query = """
            UPDATE person_subjects
            SET last_session = last_session || %s,
                last_booked_at = NOW()
            WHERE person_id = %s AND name = %s
        """
        await execute_query(query, (Jsonb(changes), person_id, subject))

    @classmethod
    async def remove(cls, person_id: str, subject: str) -> None:
        query = "DELETE FROM person_subjects WHERE person_id = %s AND name = %s"
        await execute_query(query, (person_id, subject))
