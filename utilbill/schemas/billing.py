"""Billing value records exchanged between the engine and its collaborators.

Every record here is request-scoped: computed fresh for one (building,
period) pair and never mutated afterwards.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator


class UtilityTypeDef(BaseModel):
    """Rate catalog entry for one utility type."""

    model_config = {"frozen": True}

    id: int
    name: str
    calculation_method: str  # FIXED | METERED | ALLOCATED, checked at charge time
    rate_per_unit: Decimal | None = Field(default=None, decimal_places=4)
    unit: str | None = None  # measuring unit label, e.g. "kWh"
    active: bool = True


class MeterReadingRecord(BaseModel):
    """A cumulative meter reading as stored by the meter-reading store."""

    model_config = {"frozen": True}

    id: int | None = None
    unit_id: int
    utility_type_id: int
    reading_date: date
    current_reading: Decimal


class UnitRecord(BaseModel):
    """A unit as listed by the building store, before occupancy is known."""

    model_config = {"frozen": True}

    id: int
    unit_number: str
    unit_space: Decimal
    has_meter: bool = True


class ContractRecord(BaseModel):
    """An active lease as returned by the contract store."""

    model_config = {"frozen": True}

    id: int
    unit_id: int
    tenant_name: str | None = None
    contract_number: str | None = None
    start_date: date | None = None


class UnitInfo(BaseModel):
    """A unit classified as occupied or vacant."""

    model_config = {"frozen": True}

    id: int
    unit_number: str
    unit_space: Decimal
    is_occupied: bool
    tenant_name: str | None = None
    contract_id: int | None = None
    has_meter: bool = True


class BuildingConfig(BaseModel):
    """Building-level fee configuration used for CAM allocation."""

    model_config = {"frozen": True}

    id: int
    building_name: str | None = None
    total_leasable_area: Decimal | None = None
    generator_fee: Decimal = Decimal("0")
    transformer_fee: Decimal = Decimal("0")
    other_cam_costs: Decimal = Decimal("0")


class BillingPeriod(BaseModel):
    """Inclusive billing period."""

    model_config = {"frozen": True}

    period_start: date
    period_end: date

    @model_validator(mode="after")
    def validate_order(self) -> "BillingPeriod":
        """Validate that the period does not end before it starts."""
        if self.period_end < self.period_start:
            raise ValueError("period_end must not be before period_start")
        return self


class ConsumptionResult(BaseModel):
    """Consumption derived from the current and previous readings."""

    model_config = {"frozen": True}

    unit_id: int
    utility_type_id: int
    reading_date: date
    current_reading: Decimal
    previous_reading: Decimal | None
    consumption: Decimal
    is_first_reading: bool


class CAMShare(BaseModel):
    """One unit's area-proportional share of the building's CAM costs."""

    model_config = {"frozen": True}

    unit_id: int
    unit_number: str
    unit_space: Decimal
    is_occupied: bool
    generator_share: Decimal
    transformer_share: Decimal
    other_cam_share: Decimal
    total_cam_share: Decimal
    percentage_of_building: Decimal


class UtilityLineItem(BaseModel):
    """A single charge on a unit's bill."""

    model_config = {"frozen": True}

    utility_type_id: int | None = None
    utility_name: str
    calculation_method: str
    rate_per_unit: Decimal | None
    quantity: Decimal | None
    amount: Decimal
    unit: str | None = None
    formula_description: str
    is_cam: bool = False


class UtilityBillingRecord(BaseModel):
    """Computed bill for one unit and period."""

    model_config = {"frozen": True}

    unit_id: int
    unit_number: str
    unit_space: Decimal
    tenant_name: str | None = None
    contract_id: int | None = None
    building_id: int | None = None
    period_start: date
    period_end: date
    line_items: list[UtilityLineItem]
    total_amount: Decimal  # Sum of line item amounts, before tax
    tax_amount: Decimal
    grand_total: Decimal


class BuildingCAMSummary(BaseModel):
    """Building-wide CAM split between tenants and the owner."""

    model_config = {"frozen": True}

    building_id: int
    total_leasable_area: Decimal
    total_occupied_area: Decimal
    total_vacant_area: Decimal
    unallocated_area: Decimal  # Leasable area not covered by any unit
    occupied_percentage: Decimal
    vacant_percentage: Decimal
    unallocated_percentage: Decimal
    generator_fee: Decimal
    transformer_fee: Decimal
    other_cam_costs: Decimal
    total_cam_costs: Decimal
    tenants_cam_total: Decimal
    owner_cam_total: Decimal  # Vacant units plus unallocated area
    vacant_units_cam_total: Decimal
    unallocated_cam_total: Decimal
    occupied_units_count: int
    vacant_units_count: int
    unit_breakdown: list[CAMShare]


class OwnerCAMExpense(BaseModel):
    """CAM cost absorbed by the building owner for one period."""

    model_config = {"frozen": True}

    building_id: int
    building_name: str | None
    period_start: date
    period_end: date
    owner_area: Decimal
    generator_share: Decimal
    transformer_share: Decimal
    other_cam_share: Decimal
    owner_cam_total: Decimal
    description: str


class UnitBillingError(BaseModel):
    """A unit that could not be billed in a batch run."""

    model_config = {"frozen": True}

    unit_id: int
    unit_number: str | None = None
    error_type: str
    message: str


class BuildingBillingResult(BaseModel):
    """Outcome of billing every unit of a building for one period."""

    model_config = {"frozen": True}

    building_id: int
    period_start: date
    period_end: date
    cam_summary: BuildingCAMSummary
    records: list[UtilityBillingRecord]
    errors: list[UnitBillingError]
