"""Occupancy resolution: which units of a building carry an active lease."""

import logging
from datetime import date

from utilbill.schemas.billing import UnitInfo, UnitRecord
from utilbill.services.errors import NotFoundError
from utilbill.services.sources import BuildingStore, ContractStore

logger = logging.getLogger(__name__)


def classify_unit(unit: UnitRecord, contracts: ContractStore) -> UnitInfo:
    """Classify one unit as occupied or vacant.

    A failed contract lookup leaves the unit vacant; the failure is logged
    and does not propagate.
    """
    try:
        active = contracts.list_active_contracts(unit.id)
    except Exception:
        logger.warning(
            "Contract lookup failed for unit %s, treating it as vacant",
            unit.id,
            exc_info=True,
        )
        active = []

    if not active:
        return UnitInfo(
            id=unit.id,
            unit_number=unit.unit_number,
            unit_space=unit.unit_space,
            is_occupied=False,
            has_meter=unit.has_meter,
        )

    if len(active) > 1:
        logger.warning(
            "Unit %s has %d active contracts, billing the earliest one",
            unit.id,
            len(active),
        )
    # Earliest start first; contracts without a start date sort last
    contract = min(
        active,
        key=lambda c: (c.start_date is None, c.start_date or date.min, c.id),
    )
    return UnitInfo(
        id=unit.id,
        unit_number=unit.unit_number,
        unit_space=unit.unit_space,
        is_occupied=True,
        tenant_name=contract.tenant_name,
        contract_id=contract.id,
        has_meter=unit.has_meter,
    )


def resolve_occupancy(
    building_id: int,
    buildings: BuildingStore,
    contracts: ContractStore,
) -> list[UnitInfo]:
    """List every unit of a building with its occupancy."""
    if buildings.get_building(building_id) is None:
        raise NotFoundError(f"Building {building_id} not found")
    return [classify_unit(unit, contracts) for unit in buildings.list_units(building_id)]
