"""Common-area-maintenance (CAM) allocation by leasable floor area.

Each cost component (generator, transformer, other CAM) is split across
units as ``unit_space / total_leasable_area * component`` and rounded to
cents right there. Every summary total is then built from those rounded
shares, so the totals always agree with the per-unit breakdown.

Allocation is all-or-nothing: one invalid unit aborts the whole building,
because a partial allocation could no longer account for 100% of the area.
"""

import logging
from decimal import Decimal

from utilbill.schemas.billing import (
    BillingPeriod,
    BuildingCAMSummary,
    BuildingConfig,
    CAMShare,
    OwnerCAMExpense,
    UnitInfo,
)
from utilbill.services.errors import ConfigurationError, ValidationError
from utilbill.services.money import (
    HUNDRED,
    ZERO,
    apportion_percent,
    round_money,
    round_percent,
)

logger = logging.getLogger(__name__)


def _check_fees(config: BuildingConfig, other_cam_costs: Decimal) -> None:
    for label, fee in (
        ("generator fee", config.generator_fee),
        ("transformer fee", config.transformer_fee),
        ("other CAM costs", other_cam_costs),
    ):
        if fee < 0:
            raise ValidationError(f"Building {config.id} has a negative {label}: {fee}")


def compute_unit_share(
    unit: UnitInfo,
    config: BuildingConfig,
    total_leasable_area: Decimal,
    other_cam_costs: Decimal,
) -> CAMShare:
    """Compute one unit's rounded CAM components."""
    if unit.unit_space < 0:
        raise ValidationError(f"Unit {unit.id} has a negative unit space: {unit.unit_space}")

    fraction = unit.unit_space / total_leasable_area
    generator_share = round_money(fraction * config.generator_fee)
    transformer_share = round_money(fraction * config.transformer_fee)
    other_cam_share = round_money(fraction * other_cam_costs)
    return CAMShare(
        unit_id=unit.id,
        unit_number=unit.unit_number,
        unit_space=unit.unit_space,
        is_occupied=unit.is_occupied,
        generator_share=generator_share,
        transformer_share=transformer_share,
        other_cam_share=other_cam_share,
        total_cam_share=generator_share + transformer_share + other_cam_share,
        percentage_of_building=round_percent(fraction * HUNDRED),
    )


def allocate_cam(
    units: list[UnitInfo],
    config: BuildingConfig,
    other_cam_costs: Decimal | None = None,
) -> BuildingCAMSummary:
    """Distribute a building's CAM costs over its units.

    Occupied units make up the tenant-billable share. The owner absorbs
    everything else: vacant units plus any leasable area no unit covers.

    Raises:
        ConfigurationError: total leasable area is missing or not positive.
        ValidationError: a fee or unit space is negative, or the units
            cover more than the total leasable area.
    """
    total_area = config.total_leasable_area
    if total_area is None or total_area <= 0:
        raise ConfigurationError(
            f"Building {config.id} has no positive total leasable area configured"
        )

    other = config.other_cam_costs if other_cam_costs is None else other_cam_costs
    _check_fees(config, other)

    breakdown = [compute_unit_share(unit, config, total_area, other) for unit in units]

    allocated_area = sum((u.unit_space for u in units), ZERO)
    if allocated_area > total_area:
        raise ValidationError(
            f"Units of building {config.id} cover {allocated_area}, "
            f"more than the total leasable area {total_area}"
        )

    occupied_area = sum((u.unit_space for u in units if u.is_occupied), ZERO)
    vacant_area = allocated_area - occupied_area
    unallocated_area = total_area - allocated_area

    # Unit percentages plus the unallocated one add up to exactly 100.00
    percentages = apportion_percent(
        [u.unit_space / total_area for u in units] + [unallocated_area / total_area]
    )
    breakdown = [
        share.model_copy(update={"percentage_of_building": pct})
        for share, pct in zip(breakdown, percentages)
    ]

    total_cam_costs = sum(
        (round_money(fee) for fee in (config.generator_fee, config.transformer_fee, other)),
        ZERO,
    )
    tenants_cam = sum((s.total_cam_share for s in breakdown if s.is_occupied), ZERO)
    vacant_cam = sum((s.total_cam_share for s in breakdown if not s.is_occupied), ZERO)
    # Owner share is the remainder so tenant + owner always equals the total
    owner_cam = total_cam_costs - tenants_cam

    summary = BuildingCAMSummary(
        building_id=config.id,
        total_leasable_area=total_area,
        total_occupied_area=occupied_area,
        total_vacant_area=vacant_area,
        unallocated_area=unallocated_area,
        occupied_percentage=round_percent(occupied_area / total_area * HUNDRED),
        vacant_percentage=round_percent(vacant_area / total_area * HUNDRED),
        unallocated_percentage=percentages[-1],
        generator_fee=config.generator_fee,
        transformer_fee=config.transformer_fee,
        other_cam_costs=other,
        total_cam_costs=total_cam_costs,
        tenants_cam_total=tenants_cam,
        owner_cam_total=owner_cam,
        vacant_units_cam_total=vacant_cam,
        unallocated_cam_total=round_money(unallocated_area / total_area * total_cam_costs),
        occupied_units_count=sum(1 for u in units if u.is_occupied),
        vacant_units_count=sum(1 for u in units if not u.is_occupied),
        unit_breakdown=breakdown,
    )
    logger.info(
        "CAM allocated for building %s: total=%s tenants=%s owner=%s (%d occupied, %d vacant)",
        config.id,
        total_cam_costs,
        tenants_cam,
        owner_cam,
        summary.occupied_units_count,
        summary.vacant_units_count,
    )
    return summary


def find_share(summary: BuildingCAMSummary, unit_id: int) -> CAMShare | None:
    """Look up a unit's share in a CAM summary."""
    return next((s for s in summary.unit_breakdown if s.unit_id == unit_id), None)


def build_owner_expense(
    summary: BuildingCAMSummary,
    period: BillingPeriod,
    building_name: str | None = None,
    description: str | None = None,
) -> OwnerCAMExpense:
    """Break the owner's CAM share into its cost components for one period.

    Each component is the rounded fee less what tenants pay of it, so the
    components add up to ``owner_cam_total`` to the cent.
    """
    owner_area = summary.total_vacant_area + summary.unallocated_area
    tenant_shares = [s for s in summary.unit_breakdown if s.is_occupied]

    def owner_part(fee: Decimal, field: str) -> Decimal:
        return round_money(fee) - sum((getattr(s, field) for s in tenant_shares), ZERO)

    return OwnerCAMExpense(
        building_id=summary.building_id,
        building_name=building_name,
        period_start=period.period_start,
        period_end=period.period_end,
        owner_area=owner_area,
        generator_share=owner_part(summary.generator_fee, "generator_share"),
        transformer_share=owner_part(summary.transformer_fee, "transformer_share"),
        other_cam_share=owner_part(summary.other_cam_costs, "other_cam_share"),
        owner_cam_total=summary.owner_cam_total,
        description=description
        or (
            f"Owner CAM expense for vacant and unallocated area, "
            f"{period.period_start} to {period.period_end}"
        ),
    )
