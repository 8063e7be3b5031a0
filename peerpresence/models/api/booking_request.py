"""
Booking request models.

Required fields are optional at the schema level; the service reports
missing ones with a single readable message.
"""

from pydantic import Field

from peerpresence.models.api.base import ApiModel


class BookingConfirmRequest(ApiModel):
    tutor_id: str | None = None
    subject: str | None = None
    date: str | None = None
    time: str | None = None
    timezone: str = ""
    duration: int | str | None = Field(default=None, description="Minutes: 30, 60 or 90")
    topic: str = ""
    signature_name: str = ""
    signature_date: str = ""
    currency: str = "CAD"
    promo_code: str | None = None

    # Mock payment; only the card tail is kept
    method: str | None = None
    name_on_card: str = ""
    card_number: str = ""
    expiry: str = ""
    cvc: str = ""
    postal_code: str = ""


class BookingRescheduleRequest(ApiModel):
    date: str | None = None
    time: str | None = None
    timezone: str | None = None
