"""
Override ledger: keyed upsert semantics and failure reporting.
"""
from topup_pricing.engine import OverrideValues


def test_second_upsert_replaces_first(ledger):
    assert ledger.upsert("r1", "game-a", "v1", OverrideValues(5, 60, 80))
    first_id = ledger.get("r1", "game-a", "v1").id

    assert ledger.upsert("r1", "game-a", "v1", OverrideValues(20, 70, 85))

    entries = ledger.list_all()
    assert len(entries) == 1
    entry = entries[0]
    assert entry.id == first_id
    assert (entry.discount_percentage, entry.capital_price, entry.selling_price) == (20, 70, 85)


def test_get_without_variant_returns_all_for_product(ledger):
    ledger.upsert("r1", "game-a", "v1", OverrideValues(selling_price=85))
    ledger.upsert("r1", "game-a", "v2", OverrideValues(selling_price=400))
    ledger.upsert("r1", "game-b", "b1", OverrideValues(selling_price=50))
    ledger.upsert("r2", "game-a", "v1", OverrideValues(selling_price=90))

    result = ledger.get("r1", "game-a")
    assert sorted(o.variant_id for o in result) == ["v1", "v2"]
    assert ledger.get("r1", "game-a", "missing") is None
    assert ledger.get("nobody", "game-a") == []


def test_profit_is_derived(ledger):
    ledger.upsert("r1", "game-a", "v1", OverrideValues(20, 70, 85))
    override = ledger.get("r1", "game-a", "v1")
    assert override.profit == 15

    ledger.upsert("r1", "game-a", "v1", OverrideValues(20, 90, 85))
    assert ledger.get("r1", "game-a", "v1").profit == -5


def test_ledger_does_not_validate_values(ledger):
    assert ledger.upsert("r1", "game-a", "v1", OverrideValues(150, -1, -10))
    assert ledger.get("r1", "game-a", "v1").selling_price == -10


def test_delete_missing_reports_failure(ledger):
    assert ledger.delete("no-such-id", "r1") is False


def test_delete_requires_matching_buyer(ledger):
    ledger.upsert("r1", "game-a", "v1", OverrideValues(selling_price=85))
    override_id = ledger.get("r1", "game-a", "v1").id

    assert ledger.delete(override_id, "r2") is False
    assert ledger.delete(override_id, "r1") is True
    assert ledger.get("r1", "game-a", "v1") is None
    assert ledger.delete(override_id, "r1") is False


def test_returned_records_are_copies(ledger):
    ledger.upsert("r1", "game-a", "v1", OverrideValues(selling_price=85))
    ledger.get("r1", "game-a", "v1").selling_price = 1
    assert ledger.get("r1", "game-a", "v1").selling_price == 85


def test_to_frame_includes_profit(ledger):
    ledger.upsert("r1", "game-a", "v1", OverrideValues(20, 70, 85))
    ledger.upsert("r2", "game-a", "v1", OverrideValues(0, 50, 95))

    df = ledger.to_frame()
    assert len(df) == 2
    assert set(df['profit']) == {15, 45}

    one = ledger.to_frame("r2")
    assert list(one['buyer_id']) == ["r2"]


def test_to_frame_empty_has_columns(ledger):
    df = ledger.to_frame()
    assert df.empty
    assert 'selling_price' in df.columns
