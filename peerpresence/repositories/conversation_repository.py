"""
Persistence for two-party conversations.

Uniqueness of a conversation per participant pair is enforced by the
``conversations_participants_key_key`` constraint, not by application logic.
"""

from peerpresence.db.helpers import execute_query, fetch_all, fetch_one, with_db_retry
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.models.domain.conversation_domain import Conversation

logger = get_logger(__name__)


class ConversationRepository:
    SELECT_COLUMNS = """
        id, participant_a, participant_b, participants_key,
        last_message_at, last_message_text, archived_by, created_at, updated_at
    """

    @classmethod
    def _row_to_conversation(cls, row: dict | None) -> Conversation | None:
        if not row:
            return None

        return Conversation(
            id=str(row["id"]),
            participants=(str(row["participant_a"]), str(row["participant_b"])),
            participants_key=row["participants_key"],
            last_message_at=row["last_message_at"],
            last_message_text=row.get("last_message_text") or "",
            archived_by=[str(p) for p in row.get("archived_by") or []],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    @classmethod
    @with_db_retry(max_retries=2)
    async def get(cls, conversation_id: str) -> Conversation | None:
        query = f"SELECT {cls.SELECT_COLUMNS} FROM conversations WHERE id = %s"
        return cls._row_to_conversation(await fetch_one(query, (conversation_id,)))

    @classmethod
    async def get_by_key(cls, participants_key: str) -> Conversation | None:
        query = f"SELECT {cls.SELECT_COLUMNS} FROM conversations WHERE participants_key = %s"
        return cls._row_to_conversation(await fetch_one(query, (participants_key,)))

    @classmethod
    async def insert_if_absent(
        cls, participant_a: str, participant_b: str, participants_key: str
    ) -> Conversation | None:
        """
        Create the conversation for a sorted pair.

        Returns None when a row with the same key already exists, including
        one created concurrently by another request.
        """
        query = f"""
            INSERT INTO conversations (participant_a, participant_b, participants_key)
            VALUES (%s, %s, %s)
            ON CONFLICT (participants_key) DO NOTHING
            RETURNING {cls.SELECT_COLUMNS}
        """
        row = await fetch_one(query, (participant_a, participant_b, participants_key))
        conversation = cls._row_to_conversation(row)
        if conversation:
            logger.info(
                "Conversation created",
                conversation_id=conversation.id,
                participants_key=participants_key,
            )
        return conversation

    @classmethod
    async def list_for_person(cls, person_id: str) -> list[Conversation]:
        """Conversations the person takes part in and has not archived, most recent first."""
        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM conversations
            WHERE (participant_a = %s OR participant_b = %s)
              AND NOT (%s = ANY(archived_by))
            ORDER BY last_message_at DESC
        """
        rows = await fetch_all(query, (person_id, person_id, person_id))
        return [cls._row_to_conversation(row) for row in rows]

    @classmethod
    async def archive(cls, conversation_id: str, person_id: str) -> bool:
        query = """
            UPDATE conversations
            SET archived_by = array_append(archived_by, %s::uuid)
            WHERE id = %s AND NOT (%s::uuid = ANY(archived_by))
        """
        return await execute_query(query, (person_id, conversation_id, person_id)) > 0
