import logging
from decimal import Decimal

from app.services.pricing.line_items import requires_item_selection, total_service, totalize
from app.services.pricing.types import ServiceSelection

MENU = [
    {"id": "m1", "name": "Tacos", "price": "$12.50"},
    {"id": "m2", "pricePerPerson": 8, "price": 99, "minQuantity": 10},
]


def _catering(**kwargs):
    return ServiceSelection(id="cat1", service_type="catering", service_details={"menuItems": MENU}, **kwargs)


def test_catering_prices_selected_items_with_min_quantity():
    line = total_service(_catering(), {"m1": 4, "m2": 5}, ["cat1"])
    assert line.total == Decimal("130.00")
    assert [item.quantity for item in line.items] == [4, 10]


def test_itemized_service_ignores_declared_price():
    assert total_service(_catering(price="1000"), {}, ["cat1"]).total == Decimal("0.00")


def test_flat_service_uses_price_quantity_and_hours():
    venue = ServiceSelection(id="v1", service_type="venue", price="500", quantity=1)
    assert total_service(venue, {}).total == Decimal("500.00")
    hourly = ServiceSelection(id="v2", service_type="venue", price="$150", quantity=1, duration=3)
    assert total_service(hourly, {}).total == Decimal("450.00")


def test_preset_total_price_wins():
    line = total_service(_catering(total_price="$300"), {"m1": 100}, ["cat1"])
    assert line.total == Decimal("300.00")


def test_combo_selections_add_their_total():
    combos = ({"comboId": "c1", "comboName": "Taco bar", "totalPrice": "120.00"},)
    line = total_service(_catering(combo_selections=combos), {"m1": 2}, ["cat1"])
    assert line.total == Decimal("145.00")
    assert line.items[-1].label == "Taco bar"


def test_unknown_keys_contribute_nothing(caplog):
    caplog.set_level(logging.DEBUG, logger="app.services.pricing.catalog")
    line = total_service(_catering(), {"m1": 1, "renamed-item": 3}, ["cat1"])
    assert line.total == Decimal("12.50")
    assert any("Unresolved" in r.getMessage() for r in caplog.records)


def test_totalize_sums_services():
    venue = ServiceSelection(id="v1", service_type="venue", price="500")
    result = totalize([_catering(), venue], {"m1": 2})
    assert result.subtotal == Decimal("525.00")
    assert result.service_totals == {"cat1": Decimal("25.00"), "v1": Decimal("500.00")}


def test_requires_item_selection():
    assert requires_item_selection("Catering")
    assert requires_item_selection("party-rentals")
    assert requires_item_selection("staff")
    assert not requires_item_selection("venue")


def test_combo_choice_adds_its_upcharge_per_unit():
    combo = {
        "id": "c1",
        "name": "Build a plate",
        "comboCategories": [
            {"id": "mains", "items": [{"id": "steak", "name": "Steak", "price": 4, "additionalCharge": 2}]}
        ],
    }
    service = ServiceSelection(id="cat1", service_type="catering", service_details={"menuItems": [combo]})
    line = total_service(service, {"c1_mains_steak": 3}, ["cat1"])
    assert line.total == Decimal("18.00")
    assert line.items[0].additional_charge == Decimal("2")
    assert line.items[0].unit_price == Decimal("4")


def test_aliased_itemized_type_skips_flat_base():
    rentals = ServiceSelection(id="r1", service_type="Party-Rentals", price="500", quantity=2)
    line = total_service(rentals, {})
    assert line.total == Decimal("0.00")
    assert line.items == ()
