"""Invoice request schemas consumed by the invoice-generation service."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

_CAMEL = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}


class InvoiceLineItem(BaseModel):
    """Line item in the invoice service's wire shape."""

    model_config = _CAMEL

    utility_type_id: int | None
    utility_name: str
    calculation_method: str
    rate_per_unit: Decimal | None
    quantity: Decimal | None
    amount: Decimal
    unit: str | None = None
    calculation_formula: str


class InvoiceRequest(BaseModel):
    """Request to generate an invoice for one unit's utility bill.

    Dump with ``by_alias=True`` to get the camelCase keys the invoice
    service expects (``unitId``, ``utilityFees``, ``grandTotal`` ...).
    """

    model_config = _CAMEL

    unit_id: int
    contract_id: int | None = None
    period_start: date
    period_end: date
    due_date: date
    notes: str
    utility_fees: list[InvoiceLineItem]
    tax_amount: Decimal
    grand_total: Decimal
