from .pricing import (
    AdjustmentIn,
    FeeSettingsIn,
    FinalTotalsRead,
    LineItemRead,
    PricingRequest,
    PricingSnapshotRead,
    ReconcileRequest,
    ServiceLineRead,
    ServiceSelectionIn,
    StaffingRead,
    TaxOverrideIn,
    TaxRateRead,
)
