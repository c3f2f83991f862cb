from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")

# quantize() to cents needs the whole result to fit the default 28-digit
# context; anything this large is far past every business limit anyway.
MAX_ROUNDABLE = Decimal("1e24")


def to_cents(value: Decimal) -> Decimal:
    """Round to the currency's two decimal places, halves away from zero."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_if_roundable(value):
    """to_cents for request fields; out-of-range values pass through unrounded
    so the validators can report them against their field."""
    if value is None or abs(value) >= MAX_ROUNDABLE:
        return value
    return to_cents(value)
