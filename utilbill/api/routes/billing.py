"""Billing routes for CAM previews, billing runs and invoice requests."""

from decimal import Decimal

from fastapi import APIRouter, Depends, Query

from utilbill.api.dependencies import get_billing_sources
from utilbill.schemas.billing import (
    BillingPeriod,
    BuildingBillingResult,
    BuildingCAMSummary,
    OwnerCAMExpense,
)
from utilbill.schemas.invoice import InvoiceRequest
from utilbill.schemas.requests import (
    BillingRunCreate,
    InvoiceRequestCreate,
    OwnerExpenseCreate,
)
from utilbill.services import billing as billing_service
from utilbill.services.cam import build_owner_expense
from utilbill.services.invoices import build_invoice_request
from utilbill.services.sources import BillingSources

router = APIRouter(prefix="/billing", tags=["billing"])


@router.get(
    "/buildings/{building_id}/cam-summary",
    response_model=BuildingCAMSummary,
)
async def get_cam_summary(
    building_id: int,
    other_cam_costs: Decimal | None = Query(None, ge=0, description="Other CAM costs"),
    sources: BillingSources = Depends(get_billing_sources),
) -> BuildingCAMSummary:
    """Preview how a building's CAM costs split between tenants and the owner."""
    _, _, summary = await billing_service.summarize_building_cam(
        building_id, sources, other_cam_costs
    )
    return summary


@router.post(
    "/buildings/{building_id}/run",
    response_model=BuildingBillingResult,
)
async def run_building_billing(
    building_id: int,
    data: BillingRunCreate,
    sources: BillingSources = Depends(get_billing_sources),
) -> BuildingBillingResult:
    """Compute billing records for every unit of a building.

    Units that cannot be billed are listed under ``errors``; the other
    units are billed regardless.
    """
    period = BillingPeriod(period_start=data.period_start, period_end=data.period_end)
    return await billing_service.aggregate_for_building(
        building_id,
        period,
        sources,
        tax_rate_percent=data.tax_rate_percent,
        other_cam_costs=data.other_cam_costs,
    )


@router.post(
    "/buildings/{building_id}/owner-expense",
    response_model=OwnerCAMExpense,
)
async def get_owner_expense(
    building_id: int,
    data: OwnerExpenseCreate,
    sources: BillingSources = Depends(get_billing_sources),
) -> OwnerCAMExpense:
    """Compute the CAM cost the owner absorbs for vacant and unallocated area."""
    config, _, summary = await billing_service.summarize_building_cam(
        building_id, sources, data.other_cam_costs
    )
    period = BillingPeriod(period_start=data.period_start, period_end=data.period_end)
    return build_owner_expense(summary, period, config.building_name, data.description)


@router.post(
    "/invoice-requests",
    response_model=InvoiceRequest,
)
def create_invoice_request(data: InvoiceRequestCreate) -> InvoiceRequest:
    """Map a billing record onto the invoice service's request shape."""
    return build_invoice_request(data.record, data.due_date, data.notes, data.strip_cam)
