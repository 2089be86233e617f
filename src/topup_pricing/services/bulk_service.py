"""
Bulk Service - Fans one override rule out across a buyer cohort.

Every (member, package) pair in the cohort × scope product is attempted;
individual failures are counted, never raised, and nothing is rolled back.
"""
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from ..engine.errors import NotFoundError, ValidationError
from ..engine.models import BulkOutcome, OverrideValues, Product, Variant
from ..storage.base import CatalogStore, OverrideLedger
from .buyer_service import BuyerService

logger = logging.getLogger(__name__)


SCOPE_VARIANT = "variant"
SCOPE_PRODUCT = "product"
SCOPE_ALL = "all"


@dataclass(frozen=True)
class BulkScope:
    """The set of packages a bulk operation targets."""
    kind: str
    product_id: Optional[str] = None
    variant_id: Optional[str] = None

    @classmethod
    def single(cls, product_id: str, variant_id: str) -> 'BulkScope':
        return cls(SCOPE_VARIANT, product_id, variant_id)

    @classmethod
    def product(cls, product_id: str) -> 'BulkScope':
        return cls(SCOPE_PRODUCT, product_id)

    @classmethod
    def all_products(cls) -> 'BulkScope':
        return cls(SCOPE_ALL)


def validate_rule(rule: OverrideValues) -> list[str]:
    """Check override values before any write is attempted."""
    errors = []
    if not 0 <= rule.discount_percentage <= 100:
        errors.append("Discount percentage must be between 0 and 100")
    if not math.isfinite(rule.capital_price) or rule.capital_price < 0:
        errors.append("Capital price must be a non-negative number")
    if not math.isfinite(rule.selling_price) or rule.selling_price < 0:
        errors.append("Selling price must be a non-negative number")
    return errors


class BulkRuleApplicator:
    """
    Assigns and revokes per-buyer overrides for whole cohorts.

    Args:
        max_workers: >1 issues the per-pair writes on a bounded thread pool.
            Each write targets a distinct key, so counts do not depend on order.
    """

    def __init__(
        self,
        buyers: BuyerService,
        catalog: CatalogStore,
        ledger: OverrideLedger,
        max_workers: int = 1
    ):
        self.buyers = buyers
        self.catalog = catalog
        self.ledger = ledger
        self.max_workers = max(1, max_workers)

    def resolve_scope(self, scope: BulkScope) -> list[tuple[Product, Variant]]:
        """Expand a scope into (product, package) targets."""
        if scope.kind == SCOPE_ALL:
            return [
                (product, variant)
                for product in self.catalog.list_products()
                for variant in product.ordered_variants()
            ]

        if scope.kind not in (SCOPE_VARIANT, SCOPE_PRODUCT):
            raise ValidationError([f"Unknown scope '{scope.kind}'"])

        product = self.catalog.get_product(scope.product_id)
        if product is None:
            raise NotFoundError(f"Product '{scope.product_id}' not found")

        if scope.kind == SCOPE_PRODUCT:
            return [(product, variant) for variant in product.ordered_variants()]

        variant = product.get_variant(scope.variant_id)
        if variant is None:
            raise NotFoundError(f"Package '{scope.variant_id}' not found in product '{product.id}'")
        return [(product, variant)]

    def _attempt_upsert(self, buyer_id: str, product_id: str, variant_id: str, rule: OverrideValues) -> bool:
        try:
            return bool(self.ledger.upsert(buyer_id, product_id, variant_id, rule))
        except Exception as e:
            logger.error(f"Override write failed for {buyer_id}/{product_id}/{variant_id}: {e}")
            return False

    def _attempt_delete(self, override_id: str, buyer_id: str) -> bool:
        try:
            return bool(self.ledger.delete(override_id, buyer_id))
        except Exception as e:
            logger.error(f"Override delete failed for {override_id} ({buyer_id}): {e}")
            return False

    def apply(self, cohort_tag: str, scope: BulkScope, rule: OverrideValues) -> BulkOutcome:
        """
        Upsert `rule` for every active cohort member × every package in scope.

        Returns:
            BulkOutcome; an empty cohort or scope gives 0/0.

        Raises:
            ValidationError: bad rule values or cohort tag (before any write)
            NotFoundError: the scoped product/package does not exist
        """
        errors = validate_rule(rule)
        if errors:
            raise ValidationError(errors)

        members = self.buyers.cohort_members(cohort_tag)
        targets = self.resolve_scope(scope)

        pairs = [
            (member.id, product.id, variant.id)
            for member in members
            for product, variant in targets
        ]

        outcome = BulkOutcome()
        if self.max_workers > 1 and len(pairs) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(lambda p: self._attempt_upsert(*p, rule), pairs))
            for success in results:
                outcome.record(success)
        else:
            for buyer_id, product_id, variant_id in pairs:
                outcome.record(self._attempt_upsert(buyer_id, product_id, variant_id, rule))

        logger.info(
            f"Bulk apply to {len(members)} {cohort_tag}(s) × {len(targets)} package(s): "
            f"{outcome.message()}"
        )
        return outcome

    def apply_delete(self, cohort_tag: str, product_id: str, variant_id: str) -> BulkOutcome:
        """
        Remove the override on one package from every active cohort member.

        Members without an override on that package are skipped and not counted.
        """
        members = self.buyers.cohort_members(cohort_tag)
        outcome = BulkOutcome()

        for member in members:
            existing = self.ledger.get(member.id, product_id, variant_id)
            if existing is None:
                continue
            outcome.record(self._attempt_delete(existing.id, member.id))

        logger.info(f"Bulk delete {product_id}/{variant_id} for {cohort_tag}: {outcome.message()}")
        return outcome

    def delete_all_for_buyer(self, buyer_id: str, product_id: str) -> BulkOutcome:
        """Delete every override one buyer holds on one product's packages."""
        outcome = BulkOutcome()
        for override in self.ledger.get(buyer_id, product_id):
            outcome.record(self._attempt_delete(override.id, buyer_id))

        logger.info(f"Delete all overrides of {buyer_id} on {product_id}: {outcome.message()}")
        return outcome

    def upsert_one(self, buyer_id: str, product_id: str, variant_id: str, rule: OverrideValues) -> BulkOutcome:
        """Single-row edit, validated and reported like a batch of one."""
        errors = validate_rule(rule)
        if errors:
            raise ValidationError(errors)
        outcome = BulkOutcome()
        outcome.record(self._attempt_upsert(buyer_id, product_id, variant_id, rule))
        return outcome
