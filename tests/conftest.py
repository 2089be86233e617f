import os
import sys
from datetime import datetime, timezone

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from topup_pricing.config.settings import Settings
from topup_pricing.engine import PricingEngine, Product, Variant, StorewideDiscount, Buyer, OverrideValues
from topup_pricing.services import BuyerService, BulkRuleApplicator, CatalogService
from topup_pricing.storage import InMemoryCatalogStore, InMemoryBuyerStore, InMemoryOverrideLedger
from topup_pricing.api.state import wire_services


NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


class FailingLedger(InMemoryOverrideLedger):
    """Ledger that rejects writes for chosen buyers (returns False or raises)."""

    def __init__(self, reject_buyers=(), raise_buyers=()):
        super().__init__()
        self.reject_buyers = set(reject_buyers)
        self.raise_buyers = set(raise_buyers)

    def upsert(self, buyer_id, product_id, variant_id, values):
        if buyer_id in self.raise_buyers:
            raise ConnectionError("remote write timed out")
        if buyer_id in self.reject_buyers:
            return False
        return super().upsert(buyer_id, product_id, variant_id, values)

    def delete(self, override_id, buyer_id):
        if buyer_id in self.reject_buyers:
            return False
        return super().delete(override_id, buyer_id)


def make_products():
    return [
        Product(
            id="game-a",
            name="Game A",
            category="moba",
            sort_order=1,
            discount=StorewideDiscount(percentage=10, active=True),
            variants=[
                Variant(id="v1", name="100 Diamonds", price=100, sort_order=1),
                Variant(id="v2", name="500 Diamonds", price=450, sort_order=2),
            ],
        ),
        Product(
            id="game-b",
            name="Game B",
            category="rpg",
            sort_order=2,
            variants=[Variant(id="b1", name="60 Crystals", price=55, sort_order=1)],
        ),
        Product(id="game-c", name="Game C", category="fps", sort_order=3, variants=[]),
    ]


def make_buyers():
    return [
        Buyer(id="r1", name="reseller one", cohort_tag="reseller", status="active", order_count=10, lifetime_spend=5000),
        Buyer(id="r2", name="reseller two", cohort_tag="reseller", status="active", order_count=30, lifetime_spend=5000),
        Buyer(id="r3", name="old reseller", cohort_tag="reseller", status="inactive", order_count=2, lifetime_spend=200),
        Buyer(id="e1", name="end user", cohort_tag="end_user", status="active", order_count=4, lifetime_spend=800),
    ]


@pytest.fixture
def catalog_store():
    return InMemoryCatalogStore(make_products())


@pytest.fixture
def buyer_store():
    return InMemoryBuyerStore(make_buyers())


@pytest.fixture
def ledger():
    return InMemoryOverrideLedger()


@pytest.fixture
def buyer_service(buyer_store):
    return BuyerService(buyer_store)


@pytest.fixture
def catalog_service(catalog_store):
    return CatalogService(catalog_store)


@pytest.fixture
def engine(catalog_store, ledger):
    return PricingEngine(catalog_store, ledger)


@pytest.fixture
def bulk(buyer_service, catalog_store, ledger):
    return BulkRuleApplicator(buyer_service, catalog_store, ledger)


@pytest.fixture
def rule():
    return OverrideValues(discount_percentage=20, capital_price=70, selling_price=85)


@pytest.fixture
def services(catalog_store, buyer_store, ledger):
    return wire_services(Settings(seed_data_dir=None), catalog_store, buyer_store, ledger)
