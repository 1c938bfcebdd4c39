from decimal import Decimal

from app.services.pricing.delivery import compute_delivery, parse_distance_range, quote_delivery
from app.services.pricing.types import ServiceSelection

OPTIONS = {
    "delivery": True,
    "deliveryRanges": [
        {"range": "0-10 miles", "fee": "$15"},
        {"range": "10-25 miles", "fee": "30"},
    ],
}


def test_parse_distance_range():
    assert parse_distance_range("0-10 miles") == (Decimal("0"), Decimal("10"))
    assert parse_distance_range("5 miles") == (Decimal("5"), Decimal("5"))
    assert parse_distance_range(None) == (Decimal("0"), Decimal("0"))


def test_parse_distance_range_caps_long_ranges():
    assert parse_distance_range("10–200 mi") == (Decimal("10"), Decimal("100"))


def test_not_offered():
    quote = quote_delivery({"delivery": False})
    assert not quote.eligible
    assert quote.fee == Decimal("0.00")


def test_matching_range():
    quote = quote_delivery(OPTIONS, Decimal("12"))
    assert quote.fee == Decimal("30")
    assert quote.range == "10-25 miles"
    assert quote.eligible


def test_unknown_distance_uses_first_range():
    quote = quote_delivery(OPTIONS, None)
    assert quote.fee == Decimal("15")
    assert quote.eligible
    assert "first delivery range" in quote.reason


def test_beyond_furthest_range():
    quote = quote_delivery(OPTIONS, Decimal("40"))
    assert not quote.eligible
    assert quote.fee == Decimal("0.00")
    assert quote.range == "Beyond 25 miles"


def test_gap_between_ranges_uses_default():
    options = {"delivery": True, "deliveryRanges": [{"range": "0-10", "fee": 5}, {"range": "20-30", "fee": 9}]}
    quote = quote_delivery(options, Decimal("15"))
    assert quote.fee == Decimal("5")
    assert quote.reason == "Using default delivery range"


def _caterer(minimum=None):
    opts = dict(OPTIONS)
    if minimum is not None:
        opts["deliveryMinimum"] = minimum
    return ServiceSelection(
        id="cat1",
        service_type="catering",
        vendor_name="Taco Truck",
        service_details={"deliveryOptions": opts},
    )


def test_no_address_means_no_delivery():
    fee, details = compute_delivery([_caterer()], {"cat1": Decimal("100")}, None)
    assert fee == Decimal("0.00")
    assert not details.eligible


def test_per_service_distance_and_minimum_warning():
    fee, details = compute_delivery(
        [_caterer(minimum="$500")],
        {"cat1": Decimal("200.00")},
        "1 Main St, Oakland, CA 94612",
        distance_miles=Decimal("3"),
        distances_by_service={"cat1": Decimal("18")},
    )
    assert fee == Decimal("30.00")
    assert details.eligible
    assert details.range == "10-25 miles"
    [warning] = details.minimum_warnings
    assert warning.vendor == "Taco Truck"
    assert warning.required == Decimal("500.00")


def test_ineligible_service_reports_reason():
    fee, details = compute_delivery([_caterer()], {}, "far away", distance_miles=Decimal("80"))
    assert fee == Decimal("0.00")
    assert not details.eligible
    assert details.reason == "Delivery not available beyond 25 miles"
