"""Pricing calculator for tour bookings.

Each intermediate amount is rounded half-up before it is summed, so the total
is not a linear function of the inputs. Keep the order of operations.
"""

from decimal import ROUND_HALF_UP, Decimal

from guidee_shared.models import Discount, DiscountType, PricingDetails

SERVICE_FEE_RATE = Decimal("0.10")
TAX_RATE = Decimal("0.05")
CURRENCY = "TWD"


def round_half_up(value: Decimal | int | float) -> int:
    """Round to the nearest whole unit, halves away from zero.

    Python's built-in round() uses banker's rounding (round(0.5) == 0),
    which would not match published prices.
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _resolve_discount(code: str | None, subtotal: int) -> Discount | None:
    """Match a discount code case-insensitively.

    Unknown codes are ignored rather than rejected.
    """
    if not code:
        return None

    normalized = code.strip().upper()
    if normalized == "WELCOME10":
        return Discount(
            type=DiscountType.PERCENTAGE,
            value=10,
            code=code,
            description="10% off for new customers",
            amount=round_half_up(Decimal(subtotal) * Decimal("0.10")),
        )
    if normalized == "SAVE100":
        return Discount(
            type=DiscountType.FIXED,
            value=100,
            code=code,
            description="NT$100 off",
            amount=100,
        )
    return None


def compute_pricing(
    base_price: int,
    participants: int,
    discount_code: str | None = None,
) -> PricingDetails:
    """Compute the price breakdown for a booking.

    Args:
        base_price: Price per participant in TWD
        participants: Number of participants
        discount_code: Optional discount code (WELCOME10 or SAVE100)

    Returns:
        PricingDetails with subtotal, fee, tax, discount and total

    Example:
        >>> compute_pricing(800, 2).total
        1848
    """
    subtotal = base_price * participants
    service_fee = round_half_up(Decimal(subtotal) * SERVICE_FEE_RATE)
    tax = round_half_up(Decimal(subtotal + service_fee) * TAX_RATE)

    discount = _resolve_discount(discount_code, subtotal)
    discount_amount = discount.amount if discount else 0

    total = subtotal + service_fee + tax - discount_amount

    return PricingDetails(
        base_price=base_price,
        participants=participants,
        subtotal=subtotal,
        service_fee=service_fee,
        tax=tax,
        discount=discount,
        total=max(total, 0),
        currency=CURRENCY,
    )
