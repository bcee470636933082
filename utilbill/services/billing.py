"""Unit billing records and building-wide billing runs."""

import asyncio
import logging
from decimal import Decimal

from utilbill.core.config import settings
from utilbill.models.enums import CalculationMethod
from utilbill.schemas.billing import (
    BillingPeriod,
    BuildingBillingResult,
    BuildingCAMSummary,
    BuildingConfig,
    CAMShare,
    UnitBillingError,
    UnitInfo,
    UnitRecord,
    UtilityBillingRecord,
    UtilityLineItem,
    UtilityTypeDef,
)
from utilbill.services.cam import allocate_cam, find_share
from utilbill.services.charges import calculate_charge, minimum_charge, parse_method
from utilbill.services.consumption import resolve_consumption
from utilbill.services.errors import (
    BillingError,
    ConfigurationError,
    NotFoundError,
    ValidationError,
)
from utilbill.services.money import HUNDRED, ZERO, format_amount, round_money
from utilbill.services.occupancy import classify_unit
from utilbill.services.sources import BillingSources, MeterReadingStore

logger = logging.getLogger(__name__)


def cam_line_items(
    cam_share: CAMShare,
    cam_summary: BuildingCAMSummary | None = None,
) -> list[UtilityLineItem]:
    """Turn a unit's CAM share into line items, skipping zero components.

    With the building summary at hand the formula shows the full
    derivation, otherwise the unit's percentage of the building.
    """
    components = (
        ("Generator Fee (CAM)", "Generator", cam_share.generator_share, "generator_fee"),
        ("Transformer Fee (CAM)", "Transformer", cam_share.transformer_share, "transformer_fee"),
        ("Other CAM Costs", "Other CAM", cam_share.other_cam_share, "other_cam_costs"),
    )
    items: list[UtilityLineItem] = []
    for name, label, amount, fee_field in components:
        if amount <= 0:
            continue
        if cam_summary is not None:
            formula = (
                f"({label} {format_amount(getattr(cam_summary, fee_field))} ÷ "
                f"{format_amount(cam_summary.total_leasable_area)}) × "
                f"{format_amount(cam_share.unit_space)}"
            )
        else:
            formula = f"{label} × {format_amount(cam_share.percentage_of_building)}% of building"
        items.append(
            UtilityLineItem(
                utility_name=name,
                calculation_method=CalculationMethod.ALLOCATED.value,
                rate_per_unit=None,
                quantity=None,
                amount=amount,
                formula_description=formula,
                is_cam=True,
            )
        )
    return items


def aggregate(
    unit: UnitInfo,
    metered_items: list[UtilityLineItem],
    cam_share: CAMShare | None,
    period: BillingPeriod,
    tax_rate_percent: Decimal | None = None,
    building_id: int | None = None,
    cam_summary: BuildingCAMSummary | None = None,
) -> UtilityBillingRecord:
    """Combine a unit's utility charges and CAM share into one billing record.

    Utility items come first, CAM items after them, each group in the order
    given. Tax is ``total_amount * tax_rate_percent / 100``.

    Pure: identical inputs always produce an identical record.
    """
    if cam_share is not None and cam_share.unit_id != unit.id:
        raise ValidationError(
            f"CAM share for unit {cam_share.unit_id} does not belong to unit {unit.id}"
        )
    rate = ZERO if tax_rate_percent is None else tax_rate_percent
    if rate < 0:
        raise ValidationError(f"Tax rate must not be negative, got {rate}")

    line_items = list(metered_items)
    if cam_share is not None:
        line_items.extend(cam_line_items(cam_share, cam_summary))

    total_amount = sum((item.amount for item in line_items), ZERO)
    tax_amount = round_money(total_amount * rate / HUNDRED)
    return UtilityBillingRecord(
        unit_id=unit.id,
        unit_number=unit.unit_number,
        unit_space=unit.unit_space,
        tenant_name=unit.tenant_name,
        contract_id=unit.contract_id,
        building_id=building_id,
        period_start=period.period_start,
        period_end=period.period_end,
        line_items=line_items,
        total_amount=total_amount,
        tax_amount=tax_amount,
        grand_total=total_amount + tax_amount,
    )


def build_unit_line_items(
    unit: UnitInfo,
    utility_types: list[UtilityTypeDef],
    readings: MeterReadingStore,
    period: BillingPeriod,
    metered_minimum_charge: bool = True,
) -> list[UtilityLineItem]:
    """Compute the non-CAM line items for a unit, in catalog order.

    Inactive utility types are skipped. A metered utility on a unit without
    a meter is billed as a minimum charge, or skipped when that is turned off.
    """
    items: list[UtilityLineItem] = []
    for utility_type in utility_types:
        if not utility_type.active:
            continue
        method = parse_method(utility_type)

        if method is CalculationMethod.METERED:
            if not unit.has_meter:
                if metered_minimum_charge:
                    items.append(minimum_charge(utility_type))
                continue
            consumption = resolve_consumption(
                readings,
                unit.id,
                utility_type.id,
                period.period_end,
                period_start=period.period_start,
            )
            items.append(calculate_charge(utility_type, consumption=consumption.consumption))
        elif method is CalculationMethod.ALLOCATED:
            # Catalog allocated utilities carry their per-unit share as the rate
            if utility_type.rate_per_unit is None:
                raise ConfigurationError(
                    f"Utility type '{utility_type.name}' has no rate configured"
                )
            items.append(
                calculate_charge(utility_type, allocated_amount=utility_type.rate_per_unit)
            )
        else:
            items.append(calculate_charge(utility_type))
    return items


def _unit_error(unit: UnitInfo, exc: Exception) -> UnitBillingError:
    message = exc.detail if isinstance(exc, BillingError) else str(exc)
    return UnitBillingError(
        unit_id=unit.id,
        unit_number=unit.unit_number,
        error_type=type(exc).__name__,
        message=message or type(exc).__name__,
    )


async def aggregate_units(
    units: list[UnitInfo],
    period: BillingPeriod,
    cam_summary: BuildingCAMSummary,
    utility_types: list[UtilityTypeDef],
    readings: MeterReadingStore,
    tax_rate_percent: Decimal | None = None,
    concurrency: int | None = None,
    seen_unit_ids: set[int] | None = None,
    metered_minimum_charge: bool | None = None,
) -> tuple[list[UtilityBillingRecord], list[UnitBillingError]]:
    """Bill the occupied units, collecting per-unit failures instead of aborting.

    Vacant units get no record: their CAM share is the owner's and is
    accounted for in the CAM summary and the owner expense.

    Reading lookups run in worker threads, at most ``concurrency`` at a
    time. ``seen_unit_ids`` is owned by the caller and scoped to one billing
    run: units already in it are skipped, billed units are added to it, and
    failed units are left out so a retry within the run picks them up.
    Records and errors come back in the order of ``units``.
    """
    limit = settings.BATCH_CONCURRENCY if concurrency is None else concurrency
    if limit < 1:
        raise ValidationError(f"Concurrency limit must be at least 1, got {limit}")
    if metered_minimum_charge is None:
        metered_minimum_charge = settings.METERED_MINIMUM_CHARGE
    seen: set[int] = set() if seen_unit_ids is None else seen_unit_ids
    semaphore = asyncio.Semaphore(limit)

    pending: list[UnitInfo] = []
    for unit in units:
        if not unit.is_occupied:
            # Vacant CAM is already in the owner's share
            logger.debug("Unit %s is vacant, not billed", unit.id)
            continue
        if unit.id in seen:
            logger.info("Unit %s already billed in this run, skipping", unit.id)
            continue
        seen.add(unit.id)
        pending.append(unit)

    async def bill(unit: UnitInfo) -> UtilityBillingRecord | UnitBillingError:
        try:
            cam_share = find_share(cam_summary, unit.id)
            if cam_share is None:
                raise NotFoundError(f"Unit {unit.id} has no CAM share in the building summary")
            async with semaphore:
                items = await asyncio.to_thread(
                    build_unit_line_items,
                    unit,
                    utility_types,
                    readings,
                    period,
                    metered_minimum_charge,
                )
            return aggregate(
                unit,
                items,
                cam_share,
                period,
                tax_rate_percent=tax_rate_percent,
                building_id=cam_summary.building_id,
                cam_summary=cam_summary,
            )
        except BillingError as exc:
            logger.warning("Unit %s not billed: %s: %s", unit.id, type(exc).__name__, exc.detail)
            seen.discard(unit.id)
            return _unit_error(unit, exc)
        except Exception as exc:
            logger.exception("Unit %s not billed: lookup failed", unit.id)
            seen.discard(unit.id)
            return _unit_error(unit, exc)

    outcomes = await asyncio.gather(*(bill(unit) for unit in pending))
    records = [o for o in outcomes if isinstance(o, UtilityBillingRecord)]
    errors = [o for o in outcomes if isinstance(o, UnitBillingError)]
    return records, errors


async def resolve_units(
    building_id: int,
    sources: BillingSources,
    concurrency: int | None = None,
) -> list[UnitInfo]:
    """Resolve occupancy for every unit of a building, lookups in parallel."""
    limit = settings.BATCH_CONCURRENCY if concurrency is None else concurrency
    if limit < 1:
        raise ValidationError(f"Concurrency limit must be at least 1, got {limit}")
    semaphore = asyncio.Semaphore(limit)
    unit_records = await asyncio.to_thread(sources.buildings.list_units, building_id)

    async def classify(record: UnitRecord) -> UnitInfo:
        async with semaphore:
            return await asyncio.to_thread(classify_unit, record, sources.contracts)

    return list(await asyncio.gather(*(classify(r) for r in unit_records)))


async def summarize_building_cam(
    building_id: int,
    sources: BillingSources,
    other_cam_costs: Decimal | None = None,
    concurrency: int | None = None,
) -> tuple[BuildingConfig, list[UnitInfo], BuildingCAMSummary]:
    """Load a building, resolve its occupancy and allocate its CAM costs.

    Other CAM costs fall back to the building configuration, then to the
    configured default.
    """
    config = await asyncio.to_thread(sources.buildings.get_building, building_id)
    if config is None:
        raise NotFoundError(f"Building {building_id} not found")

    units = await resolve_units(building_id, sources, concurrency)
    if other_cam_costs is None:
        other_cam_costs = config.other_cam_costs or settings.DEFAULT_OTHER_CAM_COSTS
    return config, units, allocate_cam(units, config, other_cam_costs)


async def aggregate_for_building(
    building_id: int,
    period: BillingPeriod,
    sources: BillingSources,
    tax_rate_percent: Decimal | None = None,
    other_cam_costs: Decimal | None = None,
    concurrency: int | None = None,
    seen_unit_ids: set[int] | None = None,
) -> BuildingBillingResult:
    """Run billing for the occupied units of a building for one period.

    Building-level problems (unknown building, unusable CAM configuration)
    abort the run. Unit-level problems are reported in ``errors`` while the
    remaining units are still billed.
    """
    _, units, cam_summary = await summarize_building_cam(
        building_id, sources, other_cam_costs, concurrency
    )

    utility_types = [
        t for t in await asyncio.to_thread(sources.catalog.list_utility_types) if t.active
    ]
    tax = settings.DEFAULT_TAX_RATE_PERCENT if tax_rate_percent is None else tax_rate_percent
    records, errors = await aggregate_units(
        units,
        period,
        cam_summary,
        utility_types,
        sources.readings,
        tax_rate_percent=tax,
        concurrency=concurrency,
        seen_unit_ids=seen_unit_ids,
    )
    logger.info(
        "Billing run for building %s (%s to %s): %d of %d units billed",
        building_id,
        period.period_start,
        period.period_end,
        len(records),
        len(records) + len(errors),
    )
    return BuildingBillingResult(
        building_id=building_id,
        period_start=period.period_start,
        period_end=period.period_end,
        cam_summary=cam_summary,
        records=records,
        errors=errors,
    )
