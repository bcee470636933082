"""Decimal rounding helpers shared by the billing calculators."""

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def round_money(value: Decimal) -> Decimal:
    """Round a monetary amount to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_percent(value: Decimal) -> Decimal:
    """Round a percentage to two decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def apportion_percent(fractions: list[Decimal]) -> list[Decimal]:
    """Turn fractions of a whole into two-place percentages that keep their sum.

    Uses the largest-remainder method: every percentage is floored, then the
    missing hundredths go to the entries that lost the most, earlier entries
    first on ties. The result adds up to the rounded percentage of the summed
    fractions, so fractions covering the whole give exactly 100.00.
    """
    exact = [fraction * HUNDRED for fraction in fractions]
    floored = [value.quantize(CENT, rounding=ROUND_FLOOR) for value in exact]
    target = round_percent(sum(exact, ZERO))
    leftover = int((target - sum(floored, ZERO)) / CENT)
    by_remainder = sorted(range(len(exact)), key=lambda i: (floored[i] - exact[i], i))
    for i in by_remainder[:leftover]:
        floored[i] += CENT
    return floored


def format_amount(value: Decimal) -> str:
    """Render a Decimal without trailing zeros or exponent, for formula strings."""
    return format(value.normalize(), "f")
