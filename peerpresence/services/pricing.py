"""
Mock checkout pricing.

Every intermediate figure is rounded to cents (half-up) before it feeds the
next step, so the total can differ by a cent from rounding only at the end.
"""

from decimal import ROUND_HALF_UP, Decimal

from peerpresence.models.domain.booking_domain import PriceBreakdown

CURRENCY = "CAD"

TIER_PRICES = {"30": Decimal("30"), "90": Decimal("80")}
DEFAULT_TIER_PRICE = Decimal("55")

PROMO_CODES = {"NEWUSER": Decimal("0.10")}

SERVICE_FEE_RATE = Decimal("0.03")
TAX_RATE = Decimal("0.13")

CENT = Decimal("0.01")


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def base_price(duration) -> Decimal:
    """Tier price for a session length in minutes; unknown lengths use the 60 minute tier."""
    return TIER_PRICES.get(str(duration).strip(), DEFAULT_TIER_PRICE)


def discount_rate(promo_code: str | None) -> Decimal:
    if not promo_code:
        return Decimal("0")
    return PROMO_CODES.get(promo_code.strip().upper(), Decimal("0"))


def quote(duration, promo_code: str | None = None, currency: str = CURRENCY) -> PriceBreakdown:
    base = base_price(duration)
    discounted = _cents(base * (1 - discount_rate(promo_code)))
    service_fee = _cents(discounted * SERVICE_FEE_RATE)
    tax = _cents(discounted * TAX_RATE)
    total = _cents(discounted + service_fee + tax)

    return PriceBreakdown(
        currency=currency or CURRENCY,
        base=float(base),
        discount=float(_cents(base - discounted)),
        service_fee=float(service_fee),
        tax=float(tax),
        total=float(total),
    )
