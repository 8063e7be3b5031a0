"""
Persistence for checkout bookings.
"""

import psycopg
from psycopg.types.json import Jsonb

from peerpresence.db.helpers import fetch_all, fetch_one, with_db_retry
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.models.domain.booking_domain import Booking, PaymentMeta, PriceBreakdown

logger = get_logger(__name__)


class BookingRepository:
    SELECT_COLUMNS = """
        id, student_id, tutor_id, subject, date, time, timezone, duration, topic,
        signature_name, signature_date, currency, base, discount, service_fee, tax, total,
        payment_meta, created_at, updated_at
    """

    @classmethod
    def _row_to_booking(cls, row: dict | None) -> Booking | None:
        if not row:
            return None

        return Booking(
            id=str(row["id"]),
            student_id=str(row["student_id"]),
            tutor_id=str(row["tutor_id"]),
            subject=row["subject"],
            date=row["date"],
            time=row["time"],
            timezone=row.get("timezone") or "",
            duration=row["duration"],
            topic=row.get("topic") or "",
            signature_name=row.get("signature_name") or "",
            signature_date=row.get("signature_date") or "",
            pricing=PriceBreakdown(
                currency=row["currency"],
                base=float(row["base"]),
                discount=float(row["discount"]),
                service_fee=float(row["service_fee"]),
                tax=float(row["tax"]),
                total=float(row["total"]),
            ),
            payment=PaymentMeta(**(row.get("payment_meta") or {})),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    @classmethod
    async def create(
        cls,
        *,
        student_id: str,
        tutor_id: str,
        subject: str,
        date: str,
        time: str,
        timezone: str,
        duration: int,
        topic: str,
        signature_name: str,
        signature_date: str,
        pricing: PriceBreakdown,
        payment: PaymentMeta,
        connection: psycopg.AsyncConnection | None = None,
    ) -> Booking:
        query = f"""
            INSERT INTO bookings (
                student_id, tutor_id, subject, date, time, timezone, duration, topic,
                signature_name, signature_date, currency, base, discount, service_fee,
                tax, total, payment_meta
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {cls.SELECT_COLUMNS}
        """
        params = (
            student_id,
            tutor_id,
            subject,
            date,
            time,
            timezone,
            duration,
            topic,
            signature_name,
            signature_date,
            pricing.currency,
            pricing.base,
            pricing.discount,
            pricing.service_fee,
            pricing.tax,
            pricing.total,
            Jsonb(payment.model_dump()),
        )
        booking = cls._row_to_booking(await fetch_one(query, params, connection=connection))
        logger.info(
            "Booking created",
            booking_id=booking.id,
            student_id=student_id,
            tutor_id=tutor_id,
            total=pricing.total,
        )
        return booking

    @classmethod
    @with_db_retry(max_retries=2)
    async def get_for_student(cls, booking_id: str, student_id: str) -> Booking | None:
        query = f"SELECT {cls.SELECT_COLUMNS} FROM bookings WHERE id = %s AND student_id = %s"
        return cls._row_to_booking(await fetch_one(query, (booking_id, student_id)))

    @classmethod
    async def list_for_student(cls, student_id: str) -> list[Booking]:
        query = f"""
            SELECT {cls.SELECT_COLUMNS}
            FROM bookings
            WHERE student_id = %s
            ORDER BY created_at DESC
        """
        return [cls._row_to_booking(row) for row in await fetch_all(query, (student_id,))]

    @classmethod
    async def reschedule(
        cls, booking_id: str, student_id: str, date: str, time: str, timezone: str
    ) -> Booking | None:
        query = f"""
            UPDATE bookings
            SET date = %s, time = %s, timezone = %s, updated_at = NOW()
            WHERE id = %s AND student_id = %s
            RETURNING {cls.SELECT_COLUMNS}
        """
        row = await fetch_one(query, (date, time, timezone, booking_id, student_id))
        return cls._row_to_booking(row)

    @classmethod
    async def delete_for_student(cls, booking_id: str, student_id: str) -> Booking | None:
        """Delete the student's booking and return it, or None if it was not theirs."""
        query = f"""
            DELETE FROM bookings
            WHERE id = %s AND student_id = %s
            RETURNING {cls.SELECT_COLUMNS}
        """
        booking = cls._row_to_booking(await fetch_one(query, (booking_id, student_id)))
        if booking:
            logger.info("Booking deleted", booking_id=booking_id, student_id=student_id)
        return booking

