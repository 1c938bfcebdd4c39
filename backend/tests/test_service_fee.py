from decimal import Decimal

from app.core.config import Settings
from app.services.pricing.fees import compute_service_fee
from app.services.pricing.types import FeeSettings


def test_percentage_fee():
    assert compute_service_fee(Decimal("1000"), FeeSettings()) == Decimal("50.00")


def test_fixed_fee():
    fee = FeeSettings(service_fee_type="fixed", service_fee_fixed=Decimal("25"))
    assert compute_service_fee(Decimal("1000"), fee) == Decimal("25.00")


def test_hybrid_fee():
    fee = FeeSettings(
        service_fee_type="hybrid",
        service_fee_percentage=Decimal("3"),
        service_fee_fixed=Decimal("2.50"),
    )
    assert compute_service_fee(Decimal("200"), fee) == Decimal("8.50")


def test_waived_fee_is_zero():
    assert compute_service_fee(Decimal("1000"), FeeSettings(is_service_fee_waived=True)) == Decimal("0.00")


def test_unknown_type_falls_back_to_percentage():
    fee = FeeSettings(service_fee_type="tiered", service_fee_percentage=Decimal("10"))
    assert compute_service_fee(Decimal("80"), fee) == Decimal("8.00")


def test_zero_percentage_is_respected():
    merged = FeeSettings().merged({"serviceFeePercentage": 0})
    assert merged.service_fee_percentage == Decimal("0")
    assert compute_service_fee(Decimal("1000"), merged) == Decimal("0.00")


def test_merged_keeps_defaults_for_missing_keys():
    merged = FeeSettings().merged({"service_fee_type": "FIXED", "isTaxExempt": True})
    assert merged.service_fee_type == "fixed"
    assert merged.service_fee_percentage == Decimal("5.0")
    assert merged.is_tax_exempt is True
    assert merged.is_service_fee_waived is False


def test_merged_reads_string_flags():
    merged = FeeSettings(is_tax_exempt=True).merged({"isTaxExempt": "false", "isServiceFeeWaived": "true"})
    assert merged.is_tax_exempt is False
    assert merged.is_service_fee_waived is True
    assert FeeSettings().merged({"is_tax_exempt": "no"}).is_tax_exempt is False
    assert FeeSettings().merged({"is_tax_exempt": 1}).is_tax_exempt is True


def test_defaults_from_config():
    cfg = Settings(_env_file=None, SERVICE_FEE_PERCENTAGE="7.5", SERVICE_FEE_TYPE="hybrid", SERVICE_FEE_FIXED="1")
    fee = FeeSettings.from_config(cfg)
    assert fee == FeeSettings(
        service_fee_percentage=Decimal("7.5"),
        service_fee_fixed=Decimal("1"),
        service_fee_type="hybrid",
    )
