"""
In-memory store backends.

Used for tests, demos and the CSV-seeded local mode. Records are copied on
the way in and out so callers never hold a reference into the store.
"""
import copy
import threading
import uuid
from datetime import datetime, timezone
from typing import Optional

from ..engine.models import Product, Buyer, Override, OverrideValues
from .base import CatalogStore, BuyerStore, OverrideLedger


class InMemoryCatalogStore(CatalogStore):

    def __init__(self, products: Optional[list[Product]] = None):
        self._products: dict[str, Product] = {}
        for product in products or []:
            self.save_product(product)

    def list_products(self) -> list[Product]:
        products = sorted(self._products.values(), key=lambda p: (p.sort_order, p.name))
        return [copy.deepcopy(p) for p in products]

    def get_product(self, product_id: str) -> Optional[Product]:
        product = self._products.get(product_id)
        return copy.deepcopy(product) if product else None

    def save_product(self, product: Product) -> Product:
        stored = copy.deepcopy(product)
        if not stored.id:
            stored.id = str(uuid.uuid4())
        for variant in stored.variants:
            if not variant.id:
                variant.id = str(uuid.uuid4())
        self._products[stored.id] = stored
        return copy.deepcopy(stored)

    def delete_product(self, product_id: str) -> bool:
        return self._products.pop(product_id, None) is not None


class InMemoryBuyerStore(BuyerStore):

    def __init__(self, buyers: Optional[list[Buyer]] = None):
        self._buyers: dict[str, Buyer] = {b.id: copy.deepcopy(b) for b in buyers or []}

    def add_buyer(self, buyer: Buyer) -> Buyer:
        self._buyers[buyer.id] = copy.deepcopy(buyer)
        return buyer

    def list_buyers(self) -> list[Buyer]:
        return [copy.deepcopy(b) for b in self._buyers.values()]

    def get_buyer(self, buyer_id: str) -> Optional[Buyer]:
        buyer = self._buyers.get(buyer_id)
        return copy.deepcopy(buyer) if buyer else None

    def update_buyer(self, buyer_id: str, **fields) -> bool:
        buyer = self._buyers.get(buyer_id)
        if buyer is None:
            return False
        for key, value in fields.items():
            if hasattr(buyer, key):
                setattr(buyer, key, value)
        return True



class InMemoryOverrideLedger(OverrideLedger):
    """Dict keyed by (buyer, product, variant); upsert replaces in place."""

    def __init__(self):
        self._entries: dict[tuple[str, str, str], Override] = {}
        self._lock = threading.Lock()

    def get(self, buyer_id: str, product_id: str, variant_id: Optional[str] = None):
        with self._lock:
            if variant_id is not None:
                entry = self._entries.get((buyer_id, product_id, variant_id))
                return copy.deepcopy(entry) if entry else None
            return [
                copy.deepcopy(o) for key, o in self._entries.items()
                if key[0] == buyer_id and key[1] == product_id
            ]

    def upsert(self, buyer_id: str, product_id: str, variant_id: str, values: OverrideValues) -> bool:
        key = (buyer_id, product_id, variant_id)
        with self._lock:
            existing = self._entries.get(key)
            self._entries[key] = Override(
                buyer_id=buyer_id,
                product_id=product_id,
                variant_id=variant_id,
                discount_percentage=values.discount_percentage,
                capital_price=values.capital_price,
                selling_price=values.selling_price,
                id=existing.id if existing else str(uuid.uuid4()),
                updated_at=datetime.now(timezone.utc),
            )
        return True

    def delete(self, override_id: str, buyer_id: str) -> bool:
        with self._lock:
            for key, entry in self._entries.items():
                if entry.id == override_id and entry.buyer_id == buyer_id:
                    del self._entries[key]
                    return True
        return False

    def list_for_buyer(self, buyer_id: str) -> list[Override]:
        with self._lock:
            return [copy.deepcopy(o) for o in self._entries.values() if o.buyer_id == buyer_id]

    def list_all(self) -> list[Override]:
        with self._lock:
            return [copy.deepcopy(o) for o in self._entries.values()]
