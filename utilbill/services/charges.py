"""Per-utility charge calculation."""

from decimal import Decimal

from utilbill.models.enums import CalculationMethod
from utilbill.schemas.billing import UtilityLineItem, UtilityTypeDef
from utilbill.services.errors import (
    ConfigurationError,
    UnsupportedMethodError,
    ValidationError,
)
from utilbill.services.money import format_amount, round_money


def parse_method(utility_type: UtilityTypeDef) -> CalculationMethod:
    """Map a catalog calculation method onto the known methods."""
    try:
        return CalculationMethod(utility_type.calculation_method.strip().upper())
    except ValueError:
        raise UnsupportedMethodError(
            f"Utility type '{utility_type.name}' uses unsupported calculation method "
            f"'{utility_type.calculation_method}'"
        ) from None


def _require_rate(utility_type: UtilityTypeDef) -> Decimal:
    rate = utility_type.rate_per_unit
    if rate is None:
        raise ConfigurationError(f"Utility type '{utility_type.name}' has no rate configured")
    if rate < 0:
        raise ValidationError(f"Utility type '{utility_type.name}' has a negative rate")
    return rate


def calculate_charge(
    utility_type: UtilityTypeDef,
    consumption: Decimal | None = None,
    allocated_amount: Decimal | None = None,
) -> UtilityLineItem:
    """Compute the line item for one utility type on one unit.

    FIXED bills the rate once. METERED bills rate times consumption.
    ALLOCATED wraps an amount computed elsewhere, since a proportional share
    needs building-wide context this function does not have.
    """
    method = parse_method(utility_type)

    if method is CalculationMethod.ALLOCATED:
        if allocated_amount is None:
            raise ValidationError(
                f"Allocated utility '{utility_type.name}' needs a pre-computed amount"
            )
        if allocated_amount < 0:
            raise ValidationError(
                f"Allocated amount for '{utility_type.name}' must not be negative"
            )
        return UtilityLineItem(
            utility_type_id=utility_type.id,
            utility_name=utility_type.name,
            calculation_method=method.value,
            rate_per_unit=None,
            quantity=None,
            amount=round_money(allocated_amount),
            unit=utility_type.unit,
            formula_description=f"Allocated {utility_type.name}",
        )

    rate = _require_rate(utility_type)

    if method is CalculationMethod.FIXED:
        return UtilityLineItem(
            utility_type_id=utility_type.id,
            utility_name=utility_type.name,
            calculation_method=method.value,
            rate_per_unit=rate,
            quantity=Decimal("1"),
            amount=round_money(rate),
            unit=utility_type.unit,
            formula_description="Fixed rate",
        )

    if consumption is None:
        raise ValidationError(f"Metered utility '{utility_type.name}' needs a consumption")
    if consumption < 0:
        raise ValidationError(
            f"Consumption for '{utility_type.name}' must not be negative, got {consumption}"
        )
    return UtilityLineItem(
        utility_type_id=utility_type.id,
        utility_name=utility_type.name,
        calculation_method=method.value,
        rate_per_unit=rate,
        quantity=consumption,
        amount=round_money(rate * consumption),
        unit=utility_type.unit,
        formula_description=f"{format_amount(rate)} × {format_amount(consumption)}",
    )


def minimum_charge(utility_type: UtilityTypeDef) -> UtilityLineItem:
    """Bill a metered utility once at its rate, for units without a meter."""
    rate = _require_rate(utility_type)
    return UtilityLineItem(
        utility_type_id=utility_type.id,
        utility_name=utility_type.name,
        calculation_method=CalculationMethod.FIXED.value,
        rate_per_unit=rate,
        quantity=Decimal("1"),
        amount=round_money(rate),
        unit=utility_type.unit,
        formula_description=f"Minimum {utility_type.name} charge",
    )
