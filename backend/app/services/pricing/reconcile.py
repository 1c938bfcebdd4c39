"""Order totals reconciliation.

One entry point, :func:`reconcile`, prices an order from either source:

* ``Live(inputs)``: a cart or draft being edited. Totals are computed from
  the services, selection map, fee settings, adjustments and tax inputs.
* ``Snapshot(record)``: an issued invoice. The persisted numbers are returned
  exactly as stored; they are the legal record of what was charged.

The payment layer must charge ``FinalTotals.total`` and never rebuild it from
the other fields.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from .adjustments import build_breakdown, split_adjustments
from .delivery import compute_delivery
from .errors import ReconciliationError, SnapshotError
from .fees import compute_service_fee
from .jurisdictions import lookup_tax_rate
from .line_items import totalize
from .tax import JurisdictionResolver, resolve_tax, snapshot_tax
from .types import (
    ZERO,
    AdjustmentEntry,
    FeeSettings,
    FinalTotals,
    PricingSnapshot,
    ServiceSelection,
    TaxOverride,
    money,
    read_field,
    to_decimal,
)

logger = logging.getLogger(__name__)

SOURCE_LIVE = "live"
SOURCE_SNAPSHOT = "snapshot"


@dataclass(frozen=True)
class LiveInputs:
    services: Sequence[ServiceSelection]
    selections: Mapping[str, int]
    fee_settings: FeeSettings
    adjustments: Sequence[Any] = ()
    tax_override: Optional[TaxOverride] = None
    billing_address: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_fee: Optional[Decimal] = None
    distance_miles: Optional[Decimal] = None
    distances_by_service: Mapping[str, Any] = field(default_factory=dict)
    jurisdiction_resolver: Optional[JurisdictionResolver] = field(default=None, compare=False)


@dataclass(frozen=True)
class Live:
    inputs: LiveInputs


@dataclass(frozen=True)
class Snapshot:
    record: Union[PricingSnapshot, Mapping[str, Any]]


Source = Union[Live, Snapshot]

# (snake_case attribute, camelCase wire key)
SNAPSHOT_MONEY_FIELDS = (
    ("subtotal", "subtotal"),
    ("service_fee", "serviceFee"),
    ("delivery_fee", "deliveryFee"),
    ("adjustments_total", "adjustmentsTotal"),
    ("tax", "tax"),
    ("tax_rate", "taxRate"),
    ("total", "total"),
)


def reconcile(source: Source) -> FinalTotals:
    """Return the final totals for an order."""
    if isinstance(source, Snapshot):
        return _from_snapshot(coerce_snapshot(source.record))
    if isinstance(source, Live):
        return _compute_live(source.inputs)
    raise TypeError(f"Unsupported pricing source: {type(source).__name__}")


def reconcile_order(
    services: Sequence[ServiceSelection],
    selections: Mapping[str, int],
    fee_settings: FeeSettings,
    adjustments: Sequence[Any] = (),
    snapshot: Union[PricingSnapshot, Mapping[str, Any], None] = None,
    **live_options: Any,
) -> FinalTotals:
    """Convenience wrapper: snapshot wins when present, otherwise price live."""
    if snapshot is not None:
        return reconcile(Snapshot(snapshot))
    inputs = LiveInputs(
        services=tuple(services),
        selections=selections,
        fee_settings=fee_settings,
        adjustments=tuple(adjustments or ()),
        **live_options,
    )
    return reconcile(Live(inputs))


def issue_snapshot(totals: FinalTotals, issued_at: Optional[datetime] = None) -> PricingSnapshot:
    """Freeze reconciled totals into the snapshot stored with an invoice."""
    return PricingSnapshot(
        subtotal=totals.subtotal,
        service_fee=totals.service_fee,
        delivery_fee=totals.delivery_fee,
        adjustments_total=totals.adjustments_total,
        adjustments_breakdown=tuple(totals.adjustments_breakdown),
        tax=totals.tax,
        tax_rate=totals.tax_rate,
        total=totals.total,
        issued_at=issued_at or datetime.now(timezone.utc),
    )


def _snapshot_value(record: Mapping[str, Any] | Any, attr: str, wire: str) -> Any:
    if isinstance(record, Mapping):
        if wire in record:
            return record[wire]
        return record.get(attr)
    return getattr(record, attr, None)


def _coerce_breakdown(raw: Iterable[Any], errors: dict[str, str]) -> tuple[AdjustmentEntry, ...]:
    entries = []
    for index, item in enumerate(raw):
        if isinstance(item, AdjustmentEntry):
            entries.append(item)
            continue
        amount = read_field(item, "amount")
        parsed = to_decimal(amount, default=Decimal("NaN"))
        if parsed.is_nan():
            errors[f"adjustmentsBreakdown[{index}].amount"] = "invalid"
            continue
        entries.append(
            AdjustmentEntry(
                id=str(read_field(item, "id") or f"adj-{index}"),
                label=str(read_field(item, "label") or "Adjustment"),
                type=str(read_field(item, "type") or "fixed"),
                mode=str(read_field(item, "mode") or "surcharge"),
                value=to_decimal(read_field(item, "value")),
                amount=parsed,
                taxable=read_field(item, "taxable") is not False,
            )
        )
    return tuple(entries)


def _coerce_issued_at(raw: Any, errors: dict[str, str]) -> Optional[datetime]:
    if raw is None or isinstance(raw, datetime):
        return raw
    if isinstance(raw, str):
        try:
            return datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
        except ValueError:
            pass
    errors["issuedAt"] = "invalid"
    return None


def coerce_snapshot(record: Union[PricingSnapshot, Mapping[str, Any]]) -> PricingSnapshot:
    """Validate a persisted snapshot.

    Raises :class:`SnapshotError` listing every missing or non-numeric field.
    A snapshot is a charge amount; nothing here is defaulted or guessed.
    """
    if isinstance(record, PricingSnapshot):
        return record
    if record is None:
        raise SnapshotError("Pricing snapshot is empty", {"pricing_snapshot": "required"})

    errors: dict[str, str] = {}
    values: dict[str, Decimal] = {}
    for attr, wire in SNAPSHOT_MONEY_FIELDS:
        raw = _snapshot_value(record, attr, wire)
        if raw is None:
            errors[wire] = "required"
            continue
        parsed = to_decimal(raw, default=Decimal("NaN"))
        if parsed.is_nan():
            errors[wire] = "invalid"
            continue
        values[attr] = parsed

    raw_breakdown = _snapshot_value(record, "adjustments_breakdown", "adjustmentsBreakdown")
    breakdown: tuple[AdjustmentEntry, ...] = ()
    if raw_breakdown is None:
        errors["adjustmentsBreakdown"] = "required"
    elif isinstance(raw_breakdown, (str, bytes, Mapping)) or not isinstance(raw_breakdown, Iterable):
        errors["adjustmentsBreakdown"] = "invalid"
    else:
        breakdown = _coerce_breakdown(raw_breakdown, errors)

    issued_at = _coerce_issued_at(_snapshot_value(record, "issued_at", "issuedAt"), errors)

    if errors:
        logger.error("Malformed pricing snapshot: %s", errors)
        raise SnapshotError("Malformed pricing snapshot", errors)

    return PricingSnapshot(
        adjustments_breakdown=breakdown,
        issued_at=issued_at,
        **values,
    )


def _from_snapshot(snapshot: PricingSnapshot) -> FinalTotals:
    split = split_adjustments(snapshot.adjustments_breakdown)
    return FinalTotals(
        subtotal=snapshot.subtotal,
        service_fee=snapshot.service_fee,
        delivery_fee=snapshot.delivery_fee,
        adjustments_total=snapshot.adjustments_total,
        adjustments_breakdown=snapshot.adjustments_breakdown,
        tax=snapshot.tax,
        tax_rate=snapshot.tax_rate,
        total=snapshot.total,
        taxable_adjustments=split.taxable,
        non_taxable_adjustments=split.non_taxable,
        tax_resolution=snapshot_tax(snapshot),
        source=SOURCE_SNAPSHOT,
    )


def _compute_live(inputs: LiveInputs) -> FinalTotals:
    services = tuple(inputs.services)
    lines = totalize(services, inputs.selections)
    subtotal = lines.subtotal
    service_fee = compute_service_fee(subtotal, inputs.fee_settings)

    delivery_details = None
    if inputs.delivery_fee is not None:
        delivery_fee = money(inputs.delivery_fee)
    else:
        delivery_fee, delivery_details = compute_delivery(
            services,
            lines.service_totals,
            inputs.delivery_address,
            inputs.distance_miles,
            inputs.distances_by_service,
        )

    breakdown = tuple(build_breakdown(inputs.adjustments, subtotal))
    split = split_adjustments(breakdown)

    pre_tax = subtotal + service_fee + delivery_fee + split.taxable
    tax = resolve_tax(
        pre_tax,
        override=inputs.tax_override,
        address=inputs.billing_address or inputs.delivery_address,
        is_tax_exempt=inputs.fee_settings.is_tax_exempt,
        jurisdiction_resolver=inputs.jurisdiction_resolver or lookup_tax_rate,
    )
    total = pre_tax + tax.amount + split.non_taxable
    _check_additivity(
        total,
        (subtotal, service_fee, delivery_fee, split.taxable, tax.amount, split.non_taxable),
    )
    if total < 0:
        logger.warning("Negative order total %s clamped to zero", total)
        total = ZERO

    logger.debug(
        "Live totals reconciled",
        extra={
            "subtotal": str(subtotal),
            "service_fee": str(service_fee),
            "delivery_fee": str(delivery_fee),
            "taxable_adjustments": str(split.taxable),
            "non_taxable_adjustments": str(split.non_taxable),
            "tax": str(tax.amount),
            "total": str(total),
        },
    )
    return FinalTotals(
        subtotal=subtotal,
        service_fee=service_fee,
        delivery_fee=delivery_fee,
        adjustments_total=split.total,
        adjustments_breakdown=breakdown,
        tax=tax.amount,
        tax_rate=tax.rate,
        total=total,
        taxable_adjustments=split.taxable,
        non_taxable_adjustments=split.non_taxable,
        tax_resolution=tax,
        source=SOURCE_LIVE,
        delivery_details=delivery_details,
        service_totals=dict(lines.service_totals),
        service_lines=lines.lines,
    )


def _check_additivity(total: Decimal, parts: Sequence[Decimal]) -> None:
    expected = sum(parts, ZERO)
    if total != expected:
        raise ReconciliationError(f"Order total {total} does not equal the sum of its parts {expected}")
