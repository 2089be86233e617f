"""
Bulk override application across cohorts and scopes.
"""
import pytest

from conftest import NOW, FailingLedger
from topup_pricing.engine import NotFoundError, OverrideValues, PricingEngine, ValidationError
from topup_pricing.services import BulkRuleApplicator, BulkScope


def test_game_a_example(bulk, engine, catalog_store, rule):
    """10% storewide promo gives 90; the reseller override gives 85."""
    product = catalog_store.get_product("game-a")
    v1 = product.get_variant("v1")
    assert engine.price_for(None, product, v1, NOW) == pytest.approx(90)

    outcome = bulk.apply("reseller", BulkScope.single("game-a", "v1"), rule)
    assert (outcome.succeeded, outcome.attempted) == (2, 2)

    for reseller in ("r1", "r2"):
        assert engine.price_for(reseller, product, v1, NOW) == 85
    # inactive reseller and end users keep the promo price
    assert engine.price_for("r3", product, v1, NOW) == pytest.approx(90)
    assert engine.price_for("e1", product, v1, NOW) == pytest.approx(90)


def test_attempts_are_members_times_packages(bulk, rule):
    """2 active resellers × 2 packages of game-a."""
    outcome = bulk.apply("reseller", BulkScope.product("game-a"), rule)
    assert (outcome.succeeded, outcome.attempted) == (4, 4)


def test_all_products_scope_covers_every_package(bulk, ledger, rule):
    """Game C has no packages and contributes nothing."""
    outcome = bulk.apply("reseller", BulkScope.all_products(), rule)
    assert outcome.attempted == 2 * 3
    assert outcome.succeeded == 6
    assert len(ledger.list_all()) == 6


def test_empty_cohort_is_noop(bulk, buyer_service, ledger, rule):
    buyer_service.set_status("e1", "inactive")
    outcome = bulk.apply("end_user", BulkScope.all_products(), rule)
    assert (outcome.succeeded, outcome.attempted) == (0, 0)
    assert not outcome.is_partial_failure
    assert ledger.list_all() == []


def test_empty_scope_is_noop(bulk, rule):
    outcome = bulk.apply("reseller", BulkScope.product("game-c"), rule)
    assert (outcome.succeeded, outcome.attempted) == (0, 0)


def test_rerun_is_idempotent_per_key(bulk, ledger, rule):
    bulk.apply("reseller", BulkScope.product("game-a"), rule)
    second = bulk.apply("reseller", BulkScope.product("game-a"), OverrideValues(5, 60, 95))

    assert second.attempted == 4
    entries = ledger.list_all()
    assert len(entries) == 4
    assert {e.selling_price for e in entries} == {95}


def test_partial_failure_is_counted_not_raised(buyer_service, catalog_store, rule):
    ledger = FailingLedger(reject_buyers={"r1"})
    bulk = BulkRuleApplicator(buyer_service, catalog_store, ledger)

    outcome = bulk.apply("reseller", BulkScope.product("game-a"), rule)

    assert (outcome.succeeded, outcome.attempted) == (2, 4)
    assert outcome.is_partial_failure
    assert "2/4 succeeded" in outcome.message()
    assert "partial failure" in outcome.message()
    # no rollback of the writes that did succeed
    assert len(ledger.list_for_buyer("r2")) == 2


def test_raising_write_does_not_stop_batch(buyer_service, catalog_store, rule):
    ledger = FailingLedger(raise_buyers={"r1"})
    bulk = BulkRuleApplicator(buyer_service, catalog_store, ledger)

    outcome = bulk.apply("reseller", BulkScope.all_products(), rule)

    assert (outcome.succeeded, outcome.attempted) == (3, 6)


def test_concurrent_fanout_matches_sequential_counts(buyer_service, catalog_store, rule):
    ledger = FailingLedger(reject_buyers={"r2"})
    bulk = BulkRuleApplicator(buyer_service, catalog_store, ledger, max_workers=4)

    outcome = bulk.apply("reseller", BulkScope.all_products(), rule)

    assert (outcome.succeeded, outcome.attempted) == (3, 6)
    assert len(ledger.list_all()) == 3


@pytest.mark.parametrize("bad_rule", [
    OverrideValues(discount_percentage=120, capital_price=70, selling_price=85),
    OverrideValues(discount_percentage=-1, capital_price=70, selling_price=85),
    OverrideValues(discount_percentage=10, capital_price=-5, selling_price=85),
    OverrideValues(discount_percentage=10, capital_price=70, selling_price=-1),
    OverrideValues(discount_percentage=10, capital_price=float("nan"), selling_price=85),
    OverrideValues(discount_percentage=10, capital_price=70, selling_price=float("nan")),
    OverrideValues(discount_percentage=10, capital_price=70, selling_price=float("inf")),
    OverrideValues(discount_percentage=float("nan"), capital_price=70, selling_price=85),
])
def test_invalid_rule_rejected_before_any_write(bulk, ledger, bad_rule):
    with pytest.raises(ValidationError):
        bulk.apply("reseller", BulkScope.all_products(), bad_rule)
    assert ledger.list_all() == []


def test_unknown_cohort_rejected(bulk, rule):
    with pytest.raises(ValidationError):
        bulk.apply("wholesaler", BulkScope.all_products(), rule)


def test_unknown_product_or_package(bulk, rule):
    with pytest.raises(NotFoundError):
        bulk.apply("reseller", BulkScope.product("nope"), rule)
    with pytest.raises(NotFoundError):
        bulk.apply("reseller", BulkScope.single("game-a", "nope"), rule)


def test_cohort_is_evaluated_at_call_time(bulk, buyer_service, rule):
    first = bulk.apply("reseller", BulkScope.single("game-a", "v1"), rule)
    buyer_service.set_status("r3", "active")
    buyer_service.set_cohort_tag("e1", "reseller")
    second = bulk.apply("reseller", BulkScope.single("game-a", "v1"), rule)

    assert first.attempted == 2
    assert second.attempted == 4


def test_apply_delete_only_counts_existing(bulk, ledger, rule):
    bulk.apply("reseller", BulkScope.single("game-a", "v1"), rule)
    # r2 loses its override beforehand, so only r1 is attempted
    ledger.delete(ledger.get("r2", "game-a", "v1").id, "r2")

    outcome = bulk.apply_delete("reseller", "game-a", "v1")

    assert (outcome.succeeded, outcome.attempted) == (1, 1)
    assert ledger.list_all() == []


def test_apply_delete_with_nothing_to_delete(bulk):
    outcome = bulk.apply_delete("reseller", "game-a", "v1")
    assert (outcome.succeeded, outcome.attempted) == (0, 0)


def test_apply_delete_counts_failures(buyer_service, catalog_store, rule):
    ledger = FailingLedger()
    bulk = BulkRuleApplicator(buyer_service, catalog_store, ledger)
    bulk.apply("reseller", BulkScope.single("game-a", "v1"), rule)
    ledger.reject_buyers.add("r1")

    outcome = bulk.apply_delete("reseller", "game-a", "v1")

    assert (outcome.succeeded, outcome.attempted) == (1, 2)
    assert ledger.get("r1", "game-a", "v1") is not None


def test_delete_all_for_buyer(bulk, ledger, rule):
    bulk.apply("reseller", BulkScope.all_products(), rule)

    outcome = bulk.delete_all_for_buyer("r1", "game-a")

    assert (outcome.succeeded, outcome.attempted) == (2, 2)
    assert ledger.get("r1", "game-a") == []
    # other products and other buyers untouched
    assert ledger.get("r1", "game-b", "b1") is not None
    assert len(ledger.get("r2", "game-a")) == 2


def test_delete_all_for_buyer_without_overrides(bulk):
    outcome = bulk.delete_all_for_buyer("r1", "game-a")
    assert (outcome.succeeded, outcome.attempted) == (0, 0)
    assert outcome.message().startswith("Nothing to do")


def test_upsert_one_validates(bulk, ledger):
    outcome = bulk.upsert_one("e1", "game-b", "b1", OverrideValues(0, 40, 50))
    assert (outcome.succeeded, outcome.attempted) == (1, 1)
    with pytest.raises(ValidationError):
        bulk.upsert_one("e1", "game-b", "b1", OverrideValues(101, 40, 50))
    assert ledger.get("e1", "game-b", "b1").selling_price == 50


def test_overrides_persist_after_promo_window(bulk, catalog_store, ledger, rule):
    """Overrides have no time window of their own."""
    bulk.apply("reseller", BulkScope.single("game-a", "v1"), rule)
    product = catalog_store.get_product("game-a")
    engine = PricingEngine(catalog_store, ledger)
    far_future = NOW.replace(year=2030)
    assert engine.price_for("r1", product, product.get_variant("v1"), far_future) == 85
