"""Value types shared by the pricing engine.

Everything here is plain data. Money is always :class:`~decimal.Decimal`
quantized to cents; the engine never stores floats.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import TYPE_CHECKING, Any, Mapping, Optional

from ...core.config import settings

if TYPE_CHECKING:
    from .line_items import ServiceLineTotal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

FEE_TYPE_PERCENTAGE = "percentage"
FEE_TYPE_FIXED = "fixed"
FEE_TYPE_HYBRID = "hybrid"


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value if value.is_finite() else default
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return default
    return parsed if parsed.is_finite() else default


def money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_bool(value: Any) -> bool:
    """Read a flag that may arrive as a JSON bool or a form-style string."""
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def read_field(source: Any, *keys: str) -> Any:
    """Return the first non-``None`` value for ``keys`` on a mapping or object."""
    if source is None:
        return None
    for key in keys:
        if isinstance(source, Mapping):
            value = source.get(key)
        else:
            value = getattr(source, key, None)
        if value is not None:
            return value
    return None


@dataclass(frozen=True)
class ServiceSelection:
    id: str
    service_type: str
    price: Any = None
    quantity: Optional[int] = None
    duration: Optional[float] = None
    service_details: Mapping[str, Any] = field(default_factory=dict)
    total_price: Any = None
    combo_selections: tuple[Mapping[str, Any], ...] = ()
    name: Optional[str] = None
    vendor_name: Optional[str] = None

    @property
    def kind(self) -> str:
        return normalize_service_type(self.service_type)


_SERVICE_TYPE_ALIASES = {
    "party-rental": "party-rental",
    "party-rentals": "party-rental",
    "rental": "party-rental",
    "rentals": "party-rental",
    "venue": "venue",
    "venues": "venue",
    "catering": "catering",
    "staff": "staff",
}


def normalize_service_type(service_type: Optional[str]) -> str:
    key = (service_type or "").strip().lower()
    return _SERVICE_TYPE_ALIASES.get(key, key)


@dataclass(frozen=True)
class FeeSettings:
    service_fee_percentage: Decimal = Decimal("5.0")
    service_fee_fixed: Decimal = Decimal("0")
    service_fee_type: str = FEE_TYPE_PERCENTAGE
    is_tax_exempt: bool = False
    is_service_fee_waived: bool = False

    @classmethod
    def from_config(cls, config: Any = None) -> "FeeSettings":
        """Build the default fee settings from application configuration."""
        cfg = config if config is not None else settings
        return cls(
            service_fee_percentage=to_decimal(cfg.SERVICE_FEE_PERCENTAGE, Decimal("5.0")),
            service_fee_fixed=to_decimal(cfg.SERVICE_FEE_FIXED),
            service_fee_type=(cfg.SERVICE_FEE_TYPE or FEE_TYPE_PERCENTAGE).lower(),
        )

    def merged(self, overrides: Mapping[str, Any] | None) -> "FeeSettings":
        """Return a copy with the non-``None`` camelCase/snake_case overrides applied."""
        if not overrides:
            return self
        pct = read_field(overrides, "serviceFeePercentage", "service_fee_percentage")
        fixed = read_field(overrides, "serviceFeeFixed", "service_fee_fixed")
        fee_type = read_field(overrides, "serviceFeeType", "service_fee_type")
        exempt = read_field(overrides, "isTaxExempt", "is_tax_exempt")
        waived = read_field(overrides, "isServiceFeeWaived", "is_service_fee_waived")
        return FeeSettings(
            service_fee_percentage=to_decimal(pct, self.service_fee_percentage),
            service_fee_fixed=to_decimal(fixed, self.service_fee_fixed),
            service_fee_type=str(fee_type).lower() if fee_type else self.service_fee_type,
            is_tax_exempt=to_bool(exempt) if exempt is not None else self.is_tax_exempt,
            is_service_fee_waived=to_bool(waived) if waived is not None else self.is_service_fee_waived,
        )


@dataclass(frozen=True)
class AdjustmentEntry:
    id: str
    label: str
    type: str
    mode: str
    value: Decimal
    amount: Decimal
    taxable: bool = True

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "type": self.type,
            "mode": self.mode,
            "value": self.value,
            "amount": self.amount,
            "taxable": self.taxable,
        }


@dataclass(frozen=True)
class TaxOverride:
    amount: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    breakdown: tuple[Mapping[str, Any], ...] = ()
    jurisdiction: Optional[str] = None


@dataclass(frozen=True)
class TaxJurisdiction:
    rate: Decimal
    description: str
    jurisdiction: str


@dataclass(frozen=True)
class TaxResolution:
    amount: Decimal
    rate: Decimal
    source: str  # snapshot|override|location|pending
    exempt: bool = False
    pending: bool = False
    jurisdiction: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class MinimumWarning:
    vendor: str
    required: Decimal
    current: Decimal


@dataclass(frozen=True)
class DeliveryDetails:
    eligible: bool
    range: str
    reason: Optional[str] = None
    minimum_warnings: tuple[MinimumWarning, ...] = ()


@dataclass(frozen=True)
class PricingSnapshot:
    """Persisted totals of an issued invoice. Authoritative once created."""

    subtotal: Decimal
    service_fee: Decimal
    delivery_fee: Decimal
    adjustments_total: Decimal
    adjustments_breakdown: tuple[AdjustmentEntry, ...]
    tax: Decimal
    tax_rate: Decimal
    total: Decimal
    issued_at: Optional[datetime] = None


@dataclass(frozen=True)
class FinalTotals:
    subtotal: Decimal
    service_fee: Decimal
    delivery_fee: Decimal
    adjustments_total: Decimal
    adjustments_breakdown: tuple[AdjustmentEntry, ...]
    tax: Decimal
    tax_rate: Decimal
    total: Decimal
    taxable_adjustments: Decimal
    non_taxable_adjustments: Decimal
    tax_resolution: TaxResolution
    source: str
    delivery_details: Optional[DeliveryDetails] = None
    service_totals: Mapping[str, Decimal] = field(default_factory=dict)
    service_lines: tuple[ServiceLineTotal, ...] = ()
