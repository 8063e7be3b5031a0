"""
Booking service: mock checkout, reschedule and cancel.

Bookings also drive the student's subject history (``person_subjects``),
which keeps a snapshot of the most recent session per subject.
"""

from peerpresence.db.pool import db_pool
from peerpresence.errors import NotFound, ValidationFailed
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.models.domain.booking_domain import Booking, PaymentMeta
from peerpresence.models.domain.tutor_domain import TutorListing
from peerpresence.repositories.booking_repository import BookingRepository
from peerpresence.repositories.person_repository import SubjectHistoryRepository
from peerpresence.repositories.tutor_repository import TutorRepository
from peerpresence.services import pricing
from peerpresence.services.identity_service import is_valid_id, parse_id

logger = get_logger(__name__)

DEFAULT_DURATION_MINUTES = 60


def _duration_minutes(duration) -> int:
    try:
        return int(str(duration).strip())
    except (TypeError, ValueError):
        return DEFAULT_DURATION_MINUTES


def card_last4(card_number: str | None) -> str:
    return "".join((card_number or "").split())[-4:]


async def confirm_booking(
    student_id: str,
    *,
    tutor_id: str | None,
    subject: str | None,
    date: str | None,
    time: str | None,
    timezone: str = "",
    duration=None,
    topic: str = "",
    signature_name: str = "",
    signature_date: str = "",
    currency: str = pricing.CURRENCY,
    promo_code: str | None = None,
    method: str | None = None,
    name_on_card: str = "",
    card_number: str = "",
    expiry: str = "",
    postal_code: str = "",
) -> tuple[Booking, TutorListing]:
    """
    Price and persist a booking for the authenticated student.

    The card number and CVC are never stored; only the last four digits are.
    """
    if not is_valid_id(tutor_id):
        raise ValidationFailed("Invalid tutor id")
    if not subject or not date or not time:
        raise ValidationFailed("Missing required fields (subject, date, time)")

    tutor = await TutorRepository.get(parse_id(tutor_id))
    if tutor is None:
        raise NotFound("Tutor not found")

    minutes = _duration_minutes(duration)
    async with db_pool.transaction() as conn:
        booking = await BookingRepository.create(
            student_id=student_id,
            tutor_id=tutor.id,
            subject=subject,
            date=date,
            time=time,
            timezone=timezone or "",
            duration=minutes,
            topic=topic or "",
            signature_name=signature_name or "",
            signature_date=signature_date or "",
            pricing=pricing.quote(duration, promo_code, currency),
            payment=PaymentMeta(
                method=method or "card",
                name_on_card=name_on_card or "",
                card_last4=card_last4(card_number),
                expiry=expiry or "",
                postal_code=postal_code or "",
            ),
            connection=conn,
        )
        await SubjectHistoryRepository.record_booking(
            student_id,
            subject,
            {
                "bookingId": booking.id,
                "tutorId": tutor.id,
                "tutorName": tutor.name,
                "tutorAvatar": tutor.avatar or "",
                "date": date,
                "time": time,
                "timezone": timezone or "",
                "duration": minutes,
            },
            connection=conn,
        )
    return booking, tutor


async def list_bookings(student_id: str) -> list[Booking]:
    return await BookingRepository.list_for_student(student_id)


async def reschedule_booking(
    student_id: str,
    booking_id: str,
    *,
    date: str | None = None,
    time: str | None = None,
    timezone: str | None = None,
) -> Booking:
    booking_id = parse_id(booking_id, "Invalid booking id")

    current = await BookingRepository.get_for_student(booking_id, student_id)
    if current is None:
        raise NotFound("Booking not found")

    updated = await BookingRepository.reschedule(
        booking_id,
        student_id,
        date or current.date,
        time or current.time,
        timezone or current.timezone,
    )
    if updated is None:
        # Cancelled between the read and the write
        raise NotFound("Booking not found")

    await SubjectHistoryRepository.update_last_session(
        student_id,
        updated.subject,
        {
            "date": updated.date,
            "time": updated.time,
            "timezone": updated.timezone,
            "duration": updated.duration,
        },
    )
    logger.info("Booking rescheduled", booking_id=booking_id, student_id=student_id)
    return updated


async def cancel_booking(student_id: str, booking_id: str) -> Booking:
    booking_id = parse_id(booking_id, "Invalid booking id")

    booking = await BookingRepository.delete_for_student(booking_id, student_id)
    if booking is None:
        raise NotFound("Booking not found")

    await SubjectHistoryRepository.remove(student_id, booking.subject)
    return booking
