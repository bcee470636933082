"""Shared fixtures: in-memory collaborator stores and billing scenarios."""

import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

# Point the app at a throwaway database before utilbill is imported
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite:///{os.path.join(tempfile.mkdtemp(prefix='utilbill-'), 'test.db')}",
)

from utilbill.schemas.billing import (  # noqa: E402
    BillingPeriod,
    BuildingConfig,
    ContractRecord,
    MeterReadingRecord,
    UnitRecord,
    UtilityTypeDef,
)
from utilbill.services.sources import BillingSources  # noqa: E402


class FakeBuildingStore:
    """Buildings and units held in dicts."""

    def __init__(
        self,
        buildings: dict[int, BuildingConfig],
        units: dict[int, list[UnitRecord]],
    ) -> None:
        self.buildings = buildings
        self.units = units

    def get_building(self, building_id: int) -> BuildingConfig | None:
        return self.buildings.get(building_id)

    def list_units(self, building_id: int) -> list[UnitRecord]:
        return list(self.units.get(building_id, []))


class FakeContractStore:
    """Active contracts per unit; units in ``failing`` raise on lookup."""

    def __init__(
        self,
        contracts: dict[int, list[ContractRecord]] | None = None,
        failing: set[int] | None = None,
    ) -> None:
        self.contracts = contracts or {}
        self.failing = failing or set()

    def list_active_contracts(self, unit_id: int) -> list[ContractRecord]:
        if unit_id in self.failing:
            raise ConnectionError(f"contract store unavailable for unit {unit_id}")
        return list(self.contracts.get(unit_id, []))


class FakeReadingStore:
    """Readings held in a list; units in ``failing`` raise on lookup."""

    def __init__(
        self,
        readings: list[MeterReadingRecord] | None = None,
        failing: set[int] | None = None,
    ) -> None:
        self.readings = readings or []
        self.failing = failing or set()

    def list_readings(
        self, unit_id: int, utility_type_id: int, until: date
    ) -> list[MeterReadingRecord]:
        if unit_id in self.failing:
            raise TimeoutError(f"meter store timed out for unit {unit_id}")
        return [
            r
            for r in self.readings
            if r.unit_id == unit_id
            and r.utility_type_id == utility_type_id
            and r.reading_date <= until
        ]


class FakeCatalog:
    """Fixed list of utility types."""

    def __init__(self, utility_types: list[UtilityTypeDef]) -> None:
        self.utility_types = utility_types

    def list_utility_types(self) -> list[UtilityTypeDef]:
        return list(self.utility_types)


def reading(unit_id: int, day: date, value: str, utility_type_id: int = 1, id: int | None = None):
    """Build a meter reading record."""
    return MeterReadingRecord(
        id=id,
        unit_id=unit_id,
        utility_type_id=utility_type_id,
        reading_date=day,
        current_reading=Decimal(value),
    )


@pytest.fixture
def january() -> BillingPeriod:
    """The January 2024 billing period."""
    return BillingPeriod(period_start=date(2024, 1, 1), period_end=date(2024, 1, 31))


@pytest.fixture
def electricity() -> UtilityTypeDef:
    """Metered electricity at 500 per kWh."""
    return UtilityTypeDef(
        id=1,
        name="Electricity",
        calculation_method="METERED",
        rate_per_unit=Decimal("500"),
        unit="kWh",
    )


@pytest.fixture
def plaza_config() -> BuildingConfig:
    """5000 area units with generator, transformer and other CAM costs."""
    return BuildingConfig(
        id=10,
        building_name="Riverside Plaza",
        total_leasable_area=Decimal("5000"),
        generator_fee=Decimal("500000"),
        transformer_fee=Decimal("300000"),
        other_cam_costs=Decimal("150000"),
    )


@pytest.fixture
def plaza_sources(plaza_config: BuildingConfig, electricity: UtilityTypeDef) -> BillingSources:
    """One occupied 1000-area unit and one vacant 4000-area unit, both metered."""
    return BillingSources(
        buildings=FakeBuildingStore(
            {plaza_config.id: plaza_config},
            {
                plaza_config.id: [
                    UnitRecord(id=1, unit_number="G-01", unit_space=Decimal("1000")),
                    UnitRecord(id=2, unit_number="G-02", unit_space=Decimal("4000")),
                ]
            },
        ),
        contracts=FakeContractStore(
            {1: [ContractRecord(id=100, unit_id=1, tenant_name="Golden Tea House")]}
        ),
        readings=FakeReadingStore(
            [
                reading(1, date(2024, 1, 31), "120"),
                reading(2, date(2023, 12, 31), "300"),
                reading(2, date(2024, 1, 31), "350"),
            ]
        ),
        catalog=FakeCatalog([electricity]),
    )
