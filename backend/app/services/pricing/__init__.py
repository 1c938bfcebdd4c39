"""Order pricing and totals reconciliation engine."""

from .adjustments import build_breakdown, split_adjustments
from .catalog import CatalogResolver, normalize_price
from .errors import PricingError, ReconciliationError, SnapshotError
from .jurisdictions import lookup_tax_rate
from .line_items import LineItem, ServiceLineTotal, requires_item_selection, total_service, totalize
from .reconcile import (
    Live,
    LiveInputs,
    Snapshot,
    coerce_snapshot,
    issue_snapshot,
    reconcile,
    reconcile_order,
)
from .selection_keys import parse_selection_key
from .staffing import derive_staffing
from .tax import resolve_tax
from .types import (
    AdjustmentEntry,
    FeeSettings,
    FinalTotals,
    PricingSnapshot,
    ServiceSelection,
    TaxOverride,
)

__all__ = [
    "AdjustmentEntry",
    "CatalogResolver",
    "FeeSettings",
    "FinalTotals",
    "LineItem",
    "Live",
    "LiveInputs",
    "PricingError",
    "PricingSnapshot",
    "ReconciliationError",
    "ServiceLineTotal",
    "ServiceSelection",
    "Snapshot",
    "SnapshotError",
    "TaxOverride",
    "build_breakdown",
    "coerce_snapshot",
    "derive_staffing",
    "issue_snapshot",
    "lookup_tax_rate",
    "normalize_price",
    "parse_selection_key",
    "reconcile",
    "reconcile_order",
    "requires_item_selection",
    "resolve_tax",
    "split_adjustments",
    "total_service",
    "totalize",
]
