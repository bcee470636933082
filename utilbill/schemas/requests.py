"""Request bodies accepted by the billing API."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from utilbill.schemas.billing import BillingPeriod, UtilityBillingRecord


class BillingRunCreate(BillingPeriod):
    """Schema for starting a building billing run."""

    tax_rate_percent: Decimal | None = Field(default=None, ge=0)
    other_cam_costs: Decimal | None = Field(default=None, ge=0)


class OwnerExpenseCreate(BillingPeriod):
    """Schema for computing the owner's CAM expense for a period."""

    other_cam_costs: Decimal | None = Field(default=None, ge=0)
    description: str | None = None


class InvoiceRequestCreate(BaseModel):
    """Schema for converting a billing record into an invoice request."""

    record: UtilityBillingRecord
    due_date: date
    notes: str | None = None
    strip_cam: bool | None = None
