from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..services.pricing.line_items import ServiceLineTotal
from ..services.pricing.types import (
    AdjustmentEntry,
    DeliveryDetails,
    FinalTotals,
    PricingSnapshot,
    ServiceSelection,
    TaxOverride,
)


class _CamelIn(BaseModel):
    """Accept both the cart's camelCase keys and snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ServiceSelectionIn(_CamelIn):
    id: str
    service_type: str = Field("", alias="serviceType")
    price: Union[Decimal, str, None] = None
    quantity: Optional[int] = None
    duration: Optional[Decimal] = None
    service_details: Dict[str, Any] = Field(default_factory=dict, alias="serviceDetails")
    total_price: Union[Decimal, str, None] = None
    combo_selections: List[Dict[str, Any]] = Field(default_factory=list, alias="comboSelectionsList")
    name: Optional[str] = None
    vendor_name: Optional[str] = None

    def to_domain(self) -> ServiceSelection:
        return ServiceSelection(
            id=self.id,
            service_type=self.service_type,
            price=self.price,
            quantity=self.quantity,
            duration=self.duration,
            service_details=self.service_details,
            total_price=self.total_price,
            combo_selections=tuple(self.combo_selections),
            name=self.name,
            vendor_name=self.vendor_name,
        )


class AdjustmentIn(_CamelIn):
    id: Optional[str] = None
    label: str = "Adjustment"
    type: Literal["percentage", "fixed"] = "fixed"
    mode: Literal["surcharge", "discount"] = "surcharge"
    value: Decimal
    amount: Optional[Decimal] = None
    taxable: bool = True


class FeeSettingsIn(_CamelIn):
    service_fee_percentage: Optional[Decimal] = None
    service_fee_fixed: Optional[Decimal] = None
    service_fee_type: Optional[Literal["percentage", "fixed", "hybrid"]] = None
    is_tax_exempt: Optional[bool] = None
    is_service_fee_waived: Optional[bool] = None


class TaxOverrideIn(_CamelIn):
    amount: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    breakdown: List[Dict[str, Any]] = Field(default_factory=list)
    jurisdiction: Optional[str] = None

    def to_domain(self) -> TaxOverride:
        return TaxOverride(
            amount=self.amount,
            rate=self.rate,
            breakdown=tuple(self.breakdown),
            jurisdiction=self.jurisdiction,
        )


class PricingRequest(_CamelIn):
    services: List[ServiceSelectionIn] = Field(default_factory=list)
    selected_items: Dict[str, Decimal] = Field(default_factory=dict)
    settings: Optional[FeeSettingsIn] = None
    adjustments: List[AdjustmentIn] = Field(default_factory=list, alias="customAdjustments")
    tax_override: Optional[TaxOverrideIn] = None
    billing_address: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_fee: Optional[Decimal] = None
    distance_miles: Optional[Decimal] = None
    distances_by_service: Dict[str, Decimal] = Field(default_factory=dict)


class ReconcileRequest(PricingRequest):
    # Kept as a raw object so a malformed snapshot is reported field by field
    # instead of being rejected wholesale by request validation.
    pricing_snapshot: Optional[Dict[str, Any]] = None


class AdjustmentRead(BaseModel):
    id: str
    label: str
    type: str
    mode: str
    value: Decimal
    amount: Decimal
    taxable: bool

    @classmethod
    def from_entry(cls, entry: AdjustmentEntry) -> "AdjustmentRead":
        return cls(**entry.as_dict())


class MinimumWarningRead(BaseModel):
    vendor: str
    required: Decimal
    current: Decimal


class DeliveryDetailsRead(BaseModel):
    eligible: bool
    range: str
    reason: Optional[str] = None
    minimum_warnings: List[MinimumWarningRead] = Field(default_factory=list)

    @classmethod
    def from_details(cls, details: DeliveryDetails) -> "DeliveryDetailsRead":
        return cls(
            eligible=details.eligible,
            range=details.range,
            reason=details.reason,
            minimum_warnings=[
                MinimumWarningRead(vendor=w.vendor, required=w.required, current=w.current)
                for w in details.minimum_warnings
            ],
        )


class LineItemRead(BaseModel):
    key: str
    label: str
    quantity: int
    unit_price: Decimal
    hours: Optional[Decimal] = None
    additional_charge: Decimal = Decimal("0")
    amount: Decimal


class StaffingRead(BaseModel):
    staff_count: int
    effective_duration: Decimal
    minimum_hours: Optional[Decimal] = None
    role_keys: List[str] = Field(default_factory=list)


class ServiceLineRead(BaseModel):
    service_id: str
    total: Decimal
    items: List[LineItemRead] = Field(default_factory=list)
    staffing: Optional[StaffingRead] = None

    @classmethod
    def from_line(cls, line: ServiceLineTotal) -> "ServiceLineRead":
        staffing = line.staffing
        return cls(
            service_id=line.service_id,
            total=line.total,
            items=[
                LineItemRead(
                    key=item.key,
                    label=item.label,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    hours=item.hours,
                    additional_charge=item.additional_charge,
                    amount=item.amount,
                )
                for item in line.items
            ],
            staffing=(
                StaffingRead(
                    staff_count=staffing.staff_count,
                    effective_duration=staffing.effective_duration,
                    minimum_hours=staffing.minimum_hours,
                    role_keys=list(staffing.role_keys),
                )
                if staffing is not None
                else None
            ),
        )


class TaxStateRead(BaseModel):
    source: str
    pending: bool = False
    exempt: bool = False
    jurisdiction: Optional[str] = None
    description: Optional[str] = None


class FinalTotalsRead(BaseModel):
    subtotal: Decimal
    service_fee: Decimal
    delivery_fee: Decimal
    delivery_details: Optional[DeliveryDetailsRead] = None
    adjustments_total: Decimal
    adjustments_breakdown: List[AdjustmentRead] = Field(default_factory=list)
    taxable_adjustments: Decimal
    non_taxable_adjustments: Decimal
    tax: Decimal
    tax_rate: Decimal
    tax_state: TaxStateRead
    total: Decimal
    service_totals: Dict[str, Decimal] = Field(default_factory=dict)
    service_lines: List[ServiceLineRead] = Field(default_factory=list)
    source: Literal["live", "snapshot"]
    currency: str

    @classmethod
    def from_totals(cls, totals: FinalTotals, currency: str) -> "FinalTotalsRead":
        tax = totals.tax_resolution
        return cls(
            subtotal=totals.subtotal,
            service_fee=totals.service_fee,
            delivery_fee=totals.delivery_fee,
            delivery_details=(
                DeliveryDetailsRead.from_details(totals.delivery_details)
                if totals.delivery_details is not None
                else None
            ),
            adjustments_total=totals.adjustments_total,
            adjustments_breakdown=[AdjustmentRead.from_entry(e) for e in totals.adjustments_breakdown],
            taxable_adjustments=totals.taxable_adjustments,
            non_taxable_adjustments=totals.non_taxable_adjustments,
            tax=totals.tax,
            tax_rate=totals.tax_rate,
            tax_state=TaxStateRead(
                source=tax.source,
                pending=tax.pending,
                exempt=tax.exempt,
                jurisdiction=tax.jurisdiction,
                description=tax.description,
            ),
            total=totals.total,
            service_totals=dict(totals.service_totals),
            service_lines=[ServiceLineRead.from_line(line) for line in totals.service_lines],
            source=totals.source,
            currency=currency,
        )


class PricingSnapshotRead(BaseModel):
    """Snapshot as stored with an invoice (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    subtotal: Decimal
    service_fee: Decimal
    delivery_fee: Decimal
    adjustments_total: Decimal
    adjustments_breakdown: List[AdjustmentRead]
    tax: Decimal
    tax_rate: Decimal
    total: Decimal
    issued_at: Optional[datetime] = None

    @classmethod
    def from_snapshot(cls, snapshot: PricingSnapshot) -> "PricingSnapshotRead":
        return cls(
            subtotal=snapshot.subtotal,
            service_fee=snapshot.service_fee,
            delivery_fee=snapshot.delivery_fee,
            adjustments_total=snapshot.adjustments_total,
            adjustments_breakdown=[AdjustmentRead.from_entry(e) for e in snapshot.adjustments_breakdown],
            tax=snapshot.tax,
            tax_rate=snapshot.tax_rate,
            total=snapshot.total,
            issued_at=snapshot.issued_at,
        )


class TaxRateRead(BaseModel):
    location: str
    rate: Decimal
    description: str
    jurisdiction: str
