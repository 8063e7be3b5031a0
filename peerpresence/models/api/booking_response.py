"""
Booking response models.
"""

from datetime import datetime

from peerpresence.models.api.base import ApiModel
from peerpresence.models.domain.booking_domain import Booking, PriceBreakdown
from peerpresence.models.domain.tutor_domain import TutorListing


class PricingResponse(ApiModel):
    currency: str
    base: float
    discount: float
    service_fee: float
    tax: float
    total: float

    @classmethod
    def from_domain(cls, pricing: PriceBreakdown) -> "PricingResponse":
        return cls(**pricing.model_dump())


class BookedSession(ApiModel):
    subject: str
    date: str
    time: str
    timezone: str = ""
    duration: int


class BookedTutor(ApiModel):
    id: str
    name: str


class BookingConfirmResponse(ApiModel):
    ok: bool = True
    id: str
    booking: BookedSession
    pricing: PricingResponse
    tutor: BookedTutor

    @classmethod
    def from_domain(cls, booking: Booking, tutor: TutorListing) -> "BookingConfirmResponse":
        return cls(
            id=booking.id,
            booking=BookedSession(
                subject=booking.subject,
                date=booking.date,
                time=booking.time,
                timezone=booking.timezone,
                duration=booking.duration,
            ),
            pricing=PricingResponse.from_domain(booking.pricing),
            tutor=BookedTutor(id=tutor.id, name=tutor.name),
        )


class BookingResponse(ApiModel):
    id: str
    student_id: str
    tutor_id: str
    subject: str
    date: str
    time: str
    timezone: str = ""
    duration: int
    topic: str = ""
    signature_name: str = ""
    signature_date: str = ""
    pricing: PricingResponse
    payment_method: str = "card"
    card_last4: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingResponse":
        return cls(
            **booking.model_dump(exclude={"pricing", "payment"}),
            pricing=PricingResponse.from_domain(booking.pricing),
            payment_method=booking.payment.method,
            card_last4=booking.payment.card_last4,
        )


class BookingRescheduleResponse(ApiModel):
    ok: bool = True
    booking: BookingResponse
