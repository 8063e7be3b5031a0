"""
Persistence for direct messages and the legacy global chat log.
"""

from peerpresence.db.helpers import execute_query, fetch_all, fetch_one
from peerpresence.db.pool import db_pool
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.models.domain.conversation_domain import DirectMessage, GlobalMessage

logger = get_logger(__name__)


class MessageRepository:
    SELECT_COLUMNS = "id, conversation_id, sender_id, recipient_id, text, created_at"

    @classmethod
    def _row_to_message(cls, row: dict | None) -> DirectMessage | None:
        if not row:
            return None

        return DirectMessage(
            id=str(row["id"]),
            conversation_id=str(row["conversation_id"]),
            sender_id=str(row["sender_id"]),
            recipient_id=str(row["recipient_id"]),
            text=row["text"],
            created_at=row["created_at"],
        )

    @classmethod
    async def append(
        cls, conversation_id: str, sender_id: str, recipient_id: str, text: str
    ) -> DirectMessage:
        """
        Insert the message and move the conversation's activity marker to it.

        Both writes share one transaction, so a committed message is never
        newer than its conversation's ``last_message_at``. The preview text only
        follows a message at least as new as the current marker.
        """
        insert_query = f"""
            INSERT INTO direct_messages (conversation_id, sender_id, recipient_id, text)
            VALUES (%s, %s, %s, %s)
            RETURNING {cls.SELECT_COLUMNS}
        """
        touch_query = """
            UPDATE conversations
            SET last_message_text = CASE
                    WHEN last_message_at IS NULL OR %(created_at)s >= last_message_at
                    THEN %(text)s ELSE last_message_text
                END,
                last_message_at = GREATEST(last_message_at, %(created_at)s),
                archived_by = '{}',
                updated_at = NOW()
            WHERE id = %(conversation_id)s
        """

        async with db_pool.transaction() as conn:
            row = await fetch_one(
                insert_query, (conversation_id, sender_id, recipient_id, text), connection=conn
            )
            message = cls._row_to_message(row)
            await execute_query(
                touch_query,
                {"created_at": message.created_at, "text": text, "conversation_id": conversation_id},
                connection=conn,
            )

        logger.info(
            "Direct message stored",
            message_id=message.id,
            conversation_id=conversation_id,
            sender_id=sender_id,
            length=len(text),
        )
        return message

    @classmethod
    async def list_for_conversation(cls, conversation_id: str) -> list[DirectMessage]:
        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM direct_messages
            WHERE conversation_id = %s
            ORDER BY created_at ASC, id ASC
        """
        return [cls._row_to_message(row) for row in await fetch_all(query, (conversation_id,))]


class GlobalMessageRepository:
    SELECT_COLUMNS = "id, sender, text, timestamp, created_at"

    @classmethod
    def _row_to_message(cls, row: dict) -> GlobalMessage:
        return GlobalMessage(
            id=str(row["id"]),
            sender=row["sender"],
            text=row["text"],
            timestamp=row.get("timestamp") or "",
            created_at=row["created_at"],
        )

    @classmethod
    async def create(cls, sender: str, text: str, timestamp: str) -> GlobalMessage:
        query = f"""
            INSERT INTO global_messages (sender, text, timestamp)
            VALUES (%s, %s, %s)
            RETURNING {cls.SELECT_COLUMNS}
        """
        return cls._row_to_message(await fetch_one(query, (sender, text, timestamp)))

    @classmethod
    async def list_all(cls) -> list[GlobalMessage]:
        query = f"SELECT {cls.SELECT_COLUMNS} FROM global_messages ORDER BY created_at ASC"
        return [cls._row_to_message(row) for row in await fetch_all(query)]
