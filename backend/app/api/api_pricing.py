import logging
from functools import partial
from typing import Optional

from fastapi import APIRouter, Query, status

from ..core.config import settings
from ..schemas.pricing import (
    FinalTotalsRead,
    PricingRequest,
    PricingSnapshotRead,
    ReconcileRequest,
    TaxRateRead,
)
from ..services.admin_settings import get_fee_settings_async
from ..services.pricing import (
    FeeSettings,
    Live,
    LiveInputs,
    PricingError,
    Snapshot,
    issue_snapshot,
    lookup_tax_rate,
    reconcile,
)
from ..utils import error_response, pricing_error_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pricing"])


async def _fee_settings(body: PricingRequest) -> FeeSettings:
    fee_settings = await get_fee_settings_async()
    if body.settings is not None:
        fee_settings = fee_settings.merged(body.settings.model_dump(exclude_none=True))
    return fee_settings


def _live_inputs(body: PricingRequest, fee_settings: FeeSettings) -> LiveInputs:
    return LiveInputs(
        services=tuple(s.to_domain() for s in body.services),
        selections=dict(body.selected_items),
        fee_settings=fee_settings,
        adjustments=tuple(body.adjustments),
        tax_override=body.tax_override.to_domain() if body.tax_override else None,
        billing_address=body.billing_address,
        delivery_address=body.delivery_address,
        delivery_fee=body.delivery_fee,
        distance_miles=body.distance_miles,
        distances_by_service=dict(body.distances_by_service),
        jurisdiction_resolver=partial(lookup_tax_rate, default_rate=settings.DEFAULT_TAX_RATE),
    )


@router.post("/pricing/reconcile", response_model=FinalTotalsRead)
async def reconcile_totals(body: ReconcileRequest):
    """Return the authoritative totals for a cart, draft or issued invoice.

    When ``pricing_snapshot`` is present it wins and every other field is
    ignored.
    """
    try:
        if body.pricing_snapshot is not None:
            totals = reconcile(Snapshot(body.pricing_snapshot))
        else:
            fee_settings = await _fee_settings(body)
            totals = reconcile(Live(_live_inputs(body, fee_settings)))
    except PricingError as exc:
        raise pricing_error_response(exc)
    return FinalTotalsRead.from_totals(totals, settings.DEFAULT_CURRENCY)


@router.post(
    "/pricing/snapshot",
    response_model=PricingSnapshotRead,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_snapshot(body: PricingRequest):
    """Price a cart live and freeze the result for storage with an invoice."""
    fee_settings = await _fee_settings(body)
    try:
        totals = reconcile(Live(_live_inputs(body, fee_settings)))
    except PricingError as exc:
        raise pricing_error_response(exc)
    snapshot = issue_snapshot(totals)
    logger.info("Pricing snapshot issued", extra={"total": str(snapshot.total)})
    return PricingSnapshotRead.from_snapshot(snapshot)


@router.get("/pricing/tax-rate", response_model=TaxRateRead)
def get_tax_rate(location: Optional[str] = Query(None)):
    if not location or not location.strip():
        raise error_response("Location is required", {"location": "required"})
    found = lookup_tax_rate(location, default_rate=settings.DEFAULT_TAX_RATE)
    return TaxRateRead(
        location=location,
        rate=found.rate,
        description=found.description,
        jurisdiction=found.jurisdiction,
    )
