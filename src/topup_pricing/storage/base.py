"""
Store interfaces for catalog, buyer and override persistence.

Each backend implements the same keyed-collection contract; pricing rules
live in the engine and services, never here.
"""
from abc import ABC, abstractmethod
from typing import Optional

import pandas as pd

from ..engine.models import Product, Buyer, Override, OverrideValues


OVERRIDE_COLUMNS = [
    'id', 'buyer_id', 'product_id', 'variant_id',
    'discount_percentage', 'capital_price', 'selling_price', 'profit', 'updated_at'
]


class CatalogStore(ABC):
    """Products with their currency packages."""

    @abstractmethod
    def list_products(self) -> list[Product]:
        ...

    @abstractmethod
    def get_product(self, product_id: str) -> Optional[Product]:
        ...

    @abstractmethod
    def save_product(self, product: Product) -> Product:
        """Insert or replace a product and its full variant list."""

    @abstractmethod
    def delete_product(self, product_id: str) -> bool:
        ...


class BuyerStore(ABC):
    """Member records used for cohort resolution."""

    @abstractmethod
    def list_buyers(self) -> list[Buyer]:
        ...

    @abstractmethod
    def get_buyer(self, buyer_id: str) -> Optional[Buyer]:
        ...

    @abstractmethod
    def update_buyer(self, buyer_id: str, **fields) -> bool:
        """Plain field update; returns False when the buyer is missing."""


class OverrideLedger(ABC):
    """
    Keyed table of per-buyer price overrides.

    Writes report failure by return value so bulk callers can count
    partial success.
    """

    @abstractmethod
    def get(self, buyer_id: str, product_id: str, variant_id: Optional[str] = None):
        """
        Scoped lookup.

        Returns one Override (or None) when `variant_id` is given, otherwise
        the list of all overrides for the (buyer, product) pair.
        """

    @abstractmethod
    def upsert(self, buyer_id: str, product_id: str, variant_id: str, values: OverrideValues) -> bool:
        ...

    @abstractmethod
    def delete(self, override_id: str, buyer_id: str) -> bool:
        ...

    @abstractmethod
    def list_for_buyer(self, buyer_id: str) -> list[Override]:
        ...

    @abstractmethod
    def list_all(self) -> list[Override]:
        ...

    def to_frame(self, buyer_id: Optional[str] = None) -> pd.DataFrame:
        """Export overrides (optionally one buyer's) as a DataFrame for display."""
        overrides = self.list_for_buyer(buyer_id) if buyer_id else self.list_all()
        rows = [
            {
                'id': o.id,
                'buyer_id': o.buyer_id,
                'product_id': o.product_id,
                'variant_id': o.variant_id,
                'discount_percentage': o.discount_percentage,
                'capital_price': o.capital_price,
                'selling_price': o.selling_price,
                'profit': o.profit,
                'updated_at': o.updated_at,
            }
            for o in overrides
        ]
        return pd.DataFrame(rows, columns=OVERRIDE_COLUMNS)
