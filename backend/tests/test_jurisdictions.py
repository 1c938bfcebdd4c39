import logging
from decimal import Decimal

from app.services.pricing.jurisdictions import extract_zip, lookup_tax_rate


def test_bay_area_zip():
    found = lookup_tax_rate("123 Market St, San Francisco, CA 94103")
    assert found.rate == Decimal("0.0863")
    assert found.jurisdiction == "San Francisco, San Francisco County"


def test_state_name_in_address():
    assert lookup_tax_rate("Austin, Texas").rate == Decimal("0.0625")
    assert lookup_tax_rate("florida").rate == Decimal("0.06")


def test_unknown_zip_falls_through_to_state_code():
    assert lookup_tax_rate("Los Angeles, CA 90001").rate == Decimal("0.0875")
    assert lookup_tax_rate("Reno NV").rate == Decimal("0.0685")


def test_state_code_must_be_whole_word(caplog):
    caplog.set_level(logging.WARNING, logger="app.services.pricing.jurisdictions")
    found = lookup_tax_rate("Cape Town, South Africa")
    assert found.rate == Decimal("0.08")
    assert found.jurisdiction == "Unknown"
    assert any("No tax rate found" in r.getMessage() for r in caplog.records)


def test_configurable_default():
    assert lookup_tax_rate("Nowhere", default_rate=Decimal("0.05")).rate == Decimal("0.05")
    assert lookup_tax_rate("   ").rate == Decimal("0.08")


def test_extract_zip():
    assert extract_zip("Oakland 94612-1234") == "94612"
    assert extract_zip("no zip here") is None
