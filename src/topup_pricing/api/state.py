"""
Shared service state for the API and UI.

Builds stores, services and the pricing engine once per process from
settings; tests swap the container through the `get_services` dependency.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from ..config.settings import Settings, get_settings
from ..data.load_catalog import load_seed
from ..engine.pricing_engine import PricingEngine
from ..services.buyer_service import BuyerService
from ..services.bulk_service import BulkRuleApplicator
from ..services.catalog_service import CatalogService
from ..storage.base import BuyerStore, CatalogStore, OverrideLedger
from ..storage.memory_store import InMemoryBuyerStore, InMemoryCatalogStore, InMemoryOverrideLedger

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    settings: Settings
    catalog: CatalogService
    buyers: BuyerService
    ledger: OverrideLedger
    engine: PricingEngine
    bulk: BulkRuleApplicator
    backend: str = "memory"


def wire_services(
    settings: Settings,
    catalog_store: CatalogStore,
    buyer_store: BuyerStore,
    ledger: OverrideLedger,
    backend: str = "memory"
) -> AppServices:
    """Assemble services over already-built stores."""
    buyers = BuyerService(buyer_store)
    return AppServices(
        settings=settings,
        catalog=CatalogService(catalog_store),
        buyers=buyers,
        ledger=ledger,
        engine=PricingEngine(catalog_store, ledger),
        bulk=BulkRuleApplicator(buyers, catalog_store, ledger, max_workers=settings.bulk_max_workers),
        backend=backend,
    )


def build_services(settings: Optional[Settings] = None) -> AppServices:
    """Select the storage backend from settings and wire everything up."""
    settings = settings or get_settings()

    if settings.store_backend == "supabase":
        if not settings.has_supabase_credentials:
            raise RuntimeError("STORE_BACKEND=supabase requires SUPABASE_URL and SUPABASE_KEY")

        from ..storage.supabase_store import (
            make_client, SupabaseBuyerStore, SupabaseCatalogStore, SupabaseOverrideLedger
        )
        client = make_client(settings.supabase_url, settings.supabase_key)
        return wire_services(
            settings,
            SupabaseCatalogStore(client),
            SupabaseBuyerStore(client),
            SupabaseOverrideLedger(client),
            backend="supabase",
        )

    products, buyers, report = ([], [], {"status": "skipped"})
    if settings.seed_data_dir is not None:
        products, buyers, report = load_seed(settings.seed_data_dir, verbose=True)
        for warning in report.get("warnings", []):
            logger.warning(warning)

    return wire_services(
        settings,
        InMemoryCatalogStore(products),
        InMemoryBuyerStore(buyers),
        InMemoryOverrideLedger(),
        backend="memory",
    )


_services: Optional[AppServices] = None


def get_services() -> AppServices:
    """Get the process-wide services container."""
    global _services
    if _services is None:
        _services = build_services()
    return _services


def set_services(services: Optional[AppServices]):
    """Replace (or clear, with None) the process-wide container."""
    global _services
    _services = services
