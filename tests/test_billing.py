"""Tests for unit billing records and building billing runs."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest
from conftest import (
    FakeBuildingStore,
    FakeCatalog,
    FakeContractStore,
    FakeReadingStore,
    reading,
)

from utilbill.schemas.billing import (
    BillingPeriod,
    BuildingConfig,
    CAMShare,
    ContractRecord,
    UnitInfo,
    UnitRecord,
    UtilityLineItem,
    UtilityTypeDef,
)
from utilbill.services.billing import aggregate, aggregate_for_building, cam_line_items
from utilbill.services.cam import allocate_cam
from utilbill.services.charges import calculate_charge
from utilbill.services.errors import ConfigurationError, NotFoundError, ValidationError
from utilbill.services.sources import BillingSources


@pytest.fixture
def shop() -> UnitInfo:
    """Occupied 1000-area unit."""
    return UnitInfo(
        id=1,
        unit_number="G-01",
        unit_space=Decimal("1000"),
        is_occupied=True,
        tenant_name="Golden Tea House",
        contract_id=100,
    )


@pytest.fixture
def shop_cam() -> CAMShare:
    """20% share of the plaza's CAM costs."""
    return CAMShare(
        unit_id=1,
        unit_number="G-01",
        unit_space=Decimal("1000"),
        is_occupied=True,
        generator_share=Decimal("100000.00"),
        transformer_share=Decimal("60000.00"),
        other_cam_share=Decimal("0.00"),
        total_cam_share=Decimal("160000.00"),
        percentage_of_building=Decimal("20.00"),
    )


@pytest.fixture
def leased_sources(plaza_sources: BillingSources) -> BillingSources:
    """The plaza with both units let."""
    contracts = FakeContractStore(
        {
            1: [ContractRecord(id=100, unit_id=1, tenant_name="Golden Tea House")],
            2: [ContractRecord(id=101, unit_id=2, tenant_name="Blue Door Books")],
        }
    )
    return replace(plaza_sources, contracts=contracts)


@pytest.fixture
def metered_item(electricity: UtilityTypeDef) -> UtilityLineItem:
    """60000 electricity charge."""
    return calculate_charge(electricity, consumption=Decimal("120"))


class TestAggregate:
    """Single-unit aggregation."""

    def test_metered_items_precede_cam_items(
        self,
        shop: UnitInfo,
        shop_cam: CAMShare,
        metered_item: UtilityLineItem,
        january: BillingPeriod,
    ) -> None:
        """Metered charges come first, then non-zero CAM components."""
        record = aggregate(shop, [metered_item], shop_cam, january)

        names = [item.utility_name for item in record.line_items]
        assert names == ["Electricity", "Generator Fee (CAM)", "Transformer Fee (CAM)"]
        assert [item.is_cam for item in record.line_items] == [False, True, True]
        assert record.total_amount == Decimal("220000.00")
        assert record.tax_amount == Decimal("0.00")
        assert record.grand_total == Decimal("220000.00")
        assert record.tenant_name == "Golden Tea House"
        assert record.contract_id == 100
        assert record.period_start == date(2024, 1, 1)

    def test_tax_is_percentage_of_total(
        self,
        shop: UnitInfo,
        shop_cam: CAMShare,
        metered_item: UtilityLineItem,
        january: BillingPeriod,
    ) -> None:
        """Tax is the total times the rate percent, added to the grand total."""
        record = aggregate(shop, [metered_item], shop_cam, january, Decimal("5"))

        assert record.tax_amount == Decimal("11000.00")
        assert record.grand_total == record.total_amount + record.tax_amount
        assert record.total_amount == sum(item.amount for item in record.line_items)

    def test_identical_inputs_give_identical_records(
        self,
        shop: UnitInfo,
        shop_cam: CAMShare,
        metered_item: UtilityLineItem,
        january: BillingPeriod,
    ) -> None:
        """Aggregation is idempotent down to the serialized bytes."""
        first = aggregate(shop, [metered_item], shop_cam, january, Decimal("7.5"))
        second = aggregate(shop, [metered_item], shop_cam, january, Decimal("7.5"))
        assert first.model_dump_json() == second.model_dump_json()

    def test_foreign_cam_share_is_rejected(
        self, shop: UnitInfo, shop_cam: CAMShare, january: BillingPeriod
    ) -> None:
        """A CAM share of another unit cannot be billed to this one."""
        other = shop.model_copy(update={"id": 2})
        with pytest.raises(ValidationError):
            aggregate(other, [], shop_cam, january)

    def test_negative_tax_rate(
        self, shop: UnitInfo, shop_cam: CAMShare, january: BillingPeriod
    ) -> None:
        """Negative tax rates are rejected."""
        with pytest.raises(ValidationError):
            aggregate(shop, [], shop_cam, january, Decimal("-1"))

    def test_cam_formula_with_building_context(
        self, shop: UnitInfo, plaza_config: BuildingConfig
    ) -> None:
        """With the summary at hand the CAM formula shows the full derivation."""
        summary = allocate_cam([shop], plaza_config)

        items = cam_line_items(summary.unit_breakdown[0], summary)

        assert items[0].formula_description == "(Generator 500000 ÷ 5000) × 1000"
        assert items[0].calculation_method == "ALLOCATED"


class TestAggregateForBuilding:
    """Building billing runs."""

    @pytest.mark.asyncio
    async def test_plaza_run(self, plaza_sources: BillingSources, january: BillingPeriod) -> None:
        """Occupied unit pays its 20% CAM share plus its first electricity reading."""
        result = await aggregate_for_building(10, january, plaza_sources)

        assert result.errors == []
        assert result.cam_summary.tenants_cam_total == Decimal("190000.00")
        assert result.cam_summary.owner_cam_total == Decimal("760000.00")

        [shop] = result.records
        assert shop.unit_id == 1
        assert shop.building_id == 10
        assert shop.line_items[0].amount == Decimal("60000.00")
        assert shop.line_items[0].quantity == Decimal("120")
        assert sum(i.amount for i in shop.line_items if i.is_cam) == Decimal("190000.00")
        assert shop.total_amount == Decimal("250000.00")

    @pytest.mark.asyncio
    async def test_vacant_units_get_no_record(
        self, plaza_sources: BillingSources, january: BillingPeriod
    ) -> None:
        """Vacant CAM stays with the owner, so billed CAM equals the tenants' total."""
        seen: set[int] = set()

        result = await aggregate_for_building(10, january, plaza_sources, seen_unit_ids=seen)

        billed_cam = sum(
            (i.amount for r in result.records for i in r.line_items if i.is_cam), Decimal("0")
        )
        assert billed_cam == result.cam_summary.tenants_cam_total
        assert all(r.tenant_name is not None for r in result.records)
        assert seen == {1}

    @pytest.mark.asyncio
    async def test_fully_let_building_bills_every_unit(
        self, leased_sources: BillingSources, january: BillingPeriod
    ) -> None:
        """With every unit let, all CAM is billed to tenants."""
        result = await aggregate_for_building(10, january, leased_sources)

        _, bookshop = result.records
        assert bookshop.unit_id == 2
        assert bookshop.tenant_name == "Blue Door Books"
        assert bookshop.line_items[0].amount == Decimal("25000.00")  # 50 kWh
        billed_cam = sum(
            (i.amount for r in result.records for i in r.line_items if i.is_cam), Decimal("0")
        )
        assert billed_cam == result.cam_summary.total_cam_costs

    @pytest.mark.asyncio
    async def test_reading_decrease_fails_only_that_unit(
        self, leased_sources: BillingSources, january: BillingPeriod
    ) -> None:
        """A meter going backwards is reported while sibling units are billed."""
        readings = FakeReadingStore(
            [
                reading(1, date(2024, 1, 31), "120"),
                reading(2, date(2023, 12, 31), "80"),
                reading(2, date(2024, 1, 31), "60"),
            ]
        )
        sources = replace(leased_sources, readings=readings)

        result = await aggregate_for_building(10, january, sources)

        assert [r.unit_id for r in result.records] == [1]
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.unit_id == 2
        assert error.unit_number == "G-02"
        assert error.error_type == "ValidationError"

    @pytest.mark.asyncio
    async def test_missing_reading_and_failed_lookup_are_reported(
        self, leased_sources: BillingSources, january: BillingPeriod
    ) -> None:
        """NotFound and collaborator failures both land in the error list."""
        readings = FakeReadingStore([], failing={2})
        sources = replace(leased_sources, readings=readings)

        result = await aggregate_for_building(10, january, sources, concurrency=1)

        assert result.records == []
        assert [(e.unit_id, e.error_type) for e in result.errors] == [
            (1, "NotFoundError"),
            (2, "TimeoutError"),
        ]

    @pytest.mark.asyncio
    async def test_unit_without_meter_pays_minimum(
        self, plaza_sources: BillingSources, plaza_config: BuildingConfig, january: BillingPeriod
    ) -> None:
        """A metered utility on an unmetered unit is billed at the flat rate."""
        buildings = FakeBuildingStore(
            {10: plaza_config},
            {
                10: [
                    UnitRecord(
                        id=1, unit_number="G-01", unit_space=Decimal("5000"), has_meter=False
                    )
                ]
            },
        )
        sources = replace(plaza_sources, buildings=buildings, readings=FakeReadingStore())

        result = await aggregate_for_building(10, january, sources)

        item = result.records[0].line_items[0]
        assert item.formula_description == "Minimum Electricity charge"
        assert item.amount == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_catalog_order_and_inactive_types(
        self, plaza_sources: BillingSources, electricity: UtilityTypeDef, january: BillingPeriod
    ) -> None:
        """Utility items follow catalog order and inactive types are left out."""
        catalog = FakeCatalog(
            [
                UtilityTypeDef(
                    id=3, name="Security", calculation_method="FIXED", rate_per_unit=Decimal("5000")
                ),
                electricity,
                UtilityTypeDef(
                    id=4, name="Parking", calculation_method="FIXED", rate_per_unit=Decimal("1"),
                    active=False,
                ),
                UtilityTypeDef(
                    id=5, name="Cleaning", calculation_method="ALLOCATED",
                    rate_per_unit=Decimal("2500"),
                ),
            ]
        )
        sources = replace(plaza_sources, catalog=catalog)

        result = await aggregate_for_building(10, january, sources, other_cam_costs=Decimal("0"))

        names = [i.utility_name for i in result.records[0].line_items]
        assert names == [
            "Security",
            "Electricity",
            "Cleaning",
            "Generator Fee (CAM)",
            "Transformer Fee (CAM)",
        ]

    @pytest.mark.asyncio
    async def test_unsupported_method_fails_units_not_run(
        self, plaza_sources: BillingSources, january: BillingPeriod
    ) -> None:
        """An unknown calculation method fails each unit's bill, not the run."""
        catalog = FakeCatalog(
            [
                UtilityTypeDef(
                    id=9, name="Gas", calculation_method="TIERED", rate_per_unit=Decimal("1")
                )
            ]
        )
        sources = replace(plaza_sources, catalog=catalog)

        result = await aggregate_for_building(10, january, sources)

        assert result.records == []
        assert {e.error_type for e in result.errors} == {"UnsupportedMethodError"}
        assert result.cam_summary.total_cam_costs == Decimal("950000.00")

    @pytest.mark.asyncio
    async def test_seen_units_are_not_billed_twice(
        self, leased_sources: BillingSources, january: BillingPeriod
    ) -> None:
        """The run-scoped seen set skips units that were already billed."""
        seen: set[int] = {1}

        result = await aggregate_for_building(10, january, leased_sources, seen_unit_ids=seen)

        assert [r.unit_id for r in result.records] == [2]
        assert seen == {1, 2}

    @pytest.mark.asyncio
    async def test_failed_units_stay_retryable(
        self, leased_sources: BillingSources, january: BillingPeriod
    ) -> None:
        """Units that fail are not marked as seen."""
        sources = replace(leased_sources, readings=FakeReadingStore([], failing={1, 2}))
        seen: set[int] = set()

        await aggregate_for_building(10, january, sources, seen_unit_ids=seen)

        assert seen == set()

    @pytest.mark.asyncio
    async def test_zero_leasable_area_aborts_run(
        self, plaza_sources: BillingSources, plaza_config: BuildingConfig, january: BillingPeriod
    ) -> None:
        """CAM configuration errors abort the whole run."""
        config = plaza_config.model_copy(update={"total_leasable_area": Decimal("0")})
        buildings = FakeBuildingStore({10: config}, plaza_sources.buildings.units)
        sources = replace(plaza_sources, buildings=buildings)

        with pytest.raises(ConfigurationError):
            await aggregate_for_building(10, january, sources)

    @pytest.mark.asyncio
    async def test_unknown_building(
        self, plaza_sources: BillingSources, january: BillingPeriod
    ) -> None:
        """Billing an unknown building raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await aggregate_for_building(99, january, plaza_sources)

    @pytest.mark.asyncio
    async def test_invalid_concurrency(
        self, plaza_sources: BillingSources, january: BillingPeriod
    ) -> None:
        """The concurrency limit must be positive."""
        with pytest.raises(ValidationError):
            await aggregate_for_building(10, january, plaza_sources, concurrency=0)
