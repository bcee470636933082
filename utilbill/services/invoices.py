"""Mapping of billing records onto invoice-service requests."""

from datetime import date

from utilbill.core.config import settings
from utilbill.schemas.billing import UtilityBillingRecord, UtilityLineItem
from utilbill.schemas.invoice import InvoiceLineItem, InvoiceRequest


def to_invoice_line(item: UtilityLineItem) -> InvoiceLineItem:
    """Rename a line item's fields to the invoice service's shape."""
    return InvoiceLineItem(
        utility_type_id=item.utility_type_id,
        utility_name=item.utility_name,
        calculation_method=item.calculation_method,
        rate_per_unit=item.rate_per_unit,
        quantity=item.quantity,
        amount=item.amount,
        unit=item.unit,
        calculation_formula=item.formula_description,
    )


def build_invoice_request(
    record: UtilityBillingRecord,
    due_date: date,
    notes: str | None = None,
    strip_cam: bool | None = None,
) -> InvoiceRequest:
    """Build the invoice-service request for one unit's billing record.

    With ``strip_cam`` on, line items flagged ``is_cam`` are left out for
    invoice services that compute CAM themselves. Tax and grand total are
    passed through from the record unchanged either way.
    """
    strip = settings.STRIP_CAM_FROM_INVOICE if strip_cam is None else strip_cam
    items = [item for item in record.line_items if not (strip and item.is_cam)]
    return InvoiceRequest(
        unit_id=record.unit_id,
        contract_id=record.contract_id,
        period_start=record.period_start,
        period_end=record.period_end,
        due_date=due_date,
        notes=notes or f"Monthly utility bill for {record.period_start} to {record.period_end}",
        utility_fees=[to_invoice_line(item) for item in items],
        tax_amount=record.tax_amount,
        grand_total=record.grand_total,
    )
