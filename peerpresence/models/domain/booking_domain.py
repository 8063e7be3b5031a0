from datetime import datetime

from pydantic import BaseModel, Field


class PriceBreakdown(BaseModel):
    """Mock checkout pricing; every figure already rounded to cents."""

    currency: str = "CAD"
    base: float
    discount: float = 0.0
    service_fee: float
    tax: float
    total: float


class PaymentMeta(BaseModel):
    """What we keep about the (mock) payment. Never the full card number or CVC."""

    method: str = "card"
    name_on_card: str = ""
    card_last4: str = ""
    expiry: str = ""
    postal_code: str = ""


class Booking(BaseModel):
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
    pricing: PriceBreakdown
    payment: PaymentMeta = Field(default_factory=PaymentMeta)
    created_at: datetime | None = None
    updated_at: datetime | None = None
