"""Storage subpackage - catalog, buyer and override persistence backends."""
from .base import CatalogStore, BuyerStore, OverrideLedger
from .memory_store import InMemoryCatalogStore, InMemoryBuyerStore, InMemoryOverrideLedger

__all__ = [
    'CatalogStore', 'BuyerStore', 'OverrideLedger',
    'InMemoryCatalogStore', 'InMemoryBuyerStore', 'InMemoryOverrideLedger',
]
