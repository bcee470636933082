"""Collaborator interfaces the billing engine reads from.

The engine never fetches data on its own; a billing run receives a
:class:`BillingSources` bundle and calls these read-only lookups.
"""

from dataclasses import dataclass
from datetime import date
from typing import Protocol

from utilbill.schemas.billing import (
    BuildingConfig,
    ContractRecord,
    MeterReadingRecord,
    UnitRecord,
    UtilityTypeDef,
)


class BuildingStore(Protocol):
    """Building configuration and unit listing."""

    def get_building(self, building_id: int) -> BuildingConfig | None: ...

    def list_units(self, building_id: int) -> list[UnitRecord]: ...


class ContractStore(Protocol):
    """Lease contract lookup."""

    def list_active_contracts(self, unit_id: int) -> list[ContractRecord]: ...


class MeterReadingStore(Protocol):
    """Meter reading lookup."""

    def list_readings(
        self, unit_id: int, utility_type_id: int, until: date
    ) -> list[MeterReadingRecord]: ...


class UtilityTypeCatalog(Protocol):
    """Utility type definitions."""

    def list_utility_types(self) -> list[UtilityTypeDef]: ...


@dataclass(frozen=True)
class BillingSources:
    """The collaborators one billing run reads from."""

    buildings: BuildingStore
    contracts: ContractStore
    readings: MeterReadingStore
    catalog: UtilityTypeCatalog
