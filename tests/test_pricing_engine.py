"""
Checkout pricing: override precedence, line extension and totals.
"""
import pytest

from conftest import NOW
from topup_pricing.engine import CartLine, NotFoundError, OverrideValues


def test_override_beats_storewide_discount(engine, catalog_store, ledger):
    ledger.upsert("r1", "game-a", "v2", OverrideValues(0, 300, 420))
    product = catalog_store.get_product("game-a")

    assert engine.price_for("r1", product, product.get_variant("v2"), NOW) == 420
    assert engine.price_for("r2", product, product.get_variant("v2"), NOW) == pytest.approx(405)


def test_override_can_be_above_list_price(engine, catalog_store, ledger):
    ledger.upsert("e1", "game-b", "b1", OverrideValues(0, 40, 60))
    product = catalog_store.get_product("game-b")
    assert engine.price_for("e1", product, product.get_variant("b1"), NOW) == 60


def test_guest_gets_storefront_price(engine, catalog_store):
    product = catalog_store.get_product("game-b")
    assert engine.price_for(None, product, product.get_variant("b1"), NOW) == 55


def test_total_is_sum_of_price_times_quantity(engine, ledger):
    ledger.upsert("r1", "game-a", "v1", OverrideValues(20, 70, 85))
    lines = [
        CartLine("game-a", "v1", 2),   # override 85
        CartLine("game-a", "v2", 1),   # promo 405
        CartLine("game-b", "b1", 3),   # list 55
    ]
    assert engine.total("r1", lines, NOW) == pytest.approx(2 * 85 + 405 + 3 * 55)
    assert engine.total(None, lines, NOW) == pytest.approx(2 * 90 + 405 + 3 * 55)


def test_empty_cart_totals_zero(engine):
    assert engine.total("r1", [], NOW) == 0


def test_quote_lines_record_source_and_trace(engine, ledger):
    ledger.upsert("r1", "game-a", "v1", OverrideValues(20, 70, 85))
    quote = engine.quote("r1", [
        CartLine("game-a", "v1", 1),
        CartLine("game-a", "v2", 2),
        CartLine("game-b", "b1", 1),
    ], NOW)

    assert [line.source for line in quote.lines] == ["override", "promo", "list"]
    assert quote.lines[1].extended_price == pytest.approx(810)
    assert quote.priced_at == NOW
    assert "Member Price" in quote.lines[0].get_trace_text()
    assert "Storewide Discount" in quote.lines[1].get_trace_text()


def test_quote_summary_text(engine):
    quote = engine.quote(None, [CartLine("game-a", "v1", 2), CartLine("game-b", "b1", 1)], NOW)
    summary = quote.summary_text("₱")

    assert "• Game A (100 Diamonds) x2 - ₱180" in summary
    assert "• Game B (60 Crystals) x1 - ₱55" in summary
    assert summary.endswith("TOTAL: ₱235")


def test_unknown_package_raises(engine):
    with pytest.raises(NotFoundError):
        engine.quote(None, [CartLine("game-a", "nope", 1)], NOW)
    with pytest.raises(NotFoundError):
        engine.price_lookup(None, "nope", "v1", NOW)


def test_negative_quantity_rejected(engine):
    with pytest.raises(ValueError):
        engine.quote(None, [CartLine("game-b", "b1", -1)], NOW)


def test_unavailable_product_warns(engine, catalog_store):
    product = catalog_store.get_product("game-b")
    product.available = False
    catalog_store.save_product(product)

    quote = engine.quote(None, [CartLine("game-b", "b1", 1)], NOW)
    assert quote.warnings == ["Game B is currently unavailable"]


def test_price_lookup_by_ids(engine):
    assert engine.price_lookup(None, "game-a", "v1", NOW) == pytest.approx(90)
