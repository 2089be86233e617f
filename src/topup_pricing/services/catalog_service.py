"""
Catalog Service - Validated writes for products, packages and storewide discounts.
"""
import logging
import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timezone
from typing import Optional

from ..engine.discount_resolver import is_on_discount, resolve_effective_price, to_utc
from ..engine.errors import NotFoundError, ValidationError
from ..engine.models import Product, StorewideDiscount
from ..storage.base import CatalogStore

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59)


def window_bound(
    day: Optional[date],
    clock: Optional[time] = None,
    stored: Optional[datetime] = None,
    end_of_day: bool = False
) -> Optional[datetime]:
    """
    Combine a form date and time of day into a UTC discount window bound.

    A date and minute that match the stored bound return the stored value
    unchanged, so re-saving a form keeps the window's seconds. Without a
    time of day, a start opens at 00:00 and an end closes at 23:59:59.
    """
    if day is None:
        return None

    stored = to_utc(stored)
    if stored is not None and day == stored.date():
        if clock is None or clock.replace(second=0, microsecond=0) == stored.time().replace(second=0, microsecond=0):
            return stored

    if clock is None:
        clock = END_OF_DAY if end_of_day else time.min
    return datetime.combine(day, clock, tzinfo=timezone.utc)


@dataclass
class ValidationResult:
    """Result of product validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class CatalogService:
    """Service for managing products and their storewide discount."""

    def __init__(self, store: CatalogStore):
        self.store = store

    def list_products(self, available_only: bool = False) -> list[Product]:
        products = self.store.list_products()
        if available_only:
            products = [p for p in products if p.available]
        return products

    def get_product(self, product_id: str) -> Product:
        product = self.store.get_product(product_id)
        if product is None:
            raise NotFoundError(f"Product '{product_id}' not found")
        return product

    def validate_product(self, product: Product) -> ValidationResult:
        """Validate a product before saving."""
        result = ValidationResult(valid=True)

        # Required fields
        if not product.name or not product.name.strip():
            result.errors.append("Name is required")
            result.valid = False

        # Currency packages are required
        if not product.variants:
            result.errors.append("At least one currency package is required")
            result.valid = False

        seen_ids = set()
        for variant in product.variants:
            if not variant.name or not variant.name.strip():
                result.errors.append("Every currency package needs a name")
                result.valid = False
            if variant.price is None or not math.isfinite(variant.price) or variant.price <= 0:
                result.errors.append(f"Package '{variant.name}' must have a price greater than 0")
                result.valid = False
            if variant.id:
                if variant.id in seen_ids:
                    result.errors.append(f"Duplicate package id '{variant.id}'")
                    result.valid = False
                seen_ids.add(variant.id)

        discount_errors = self.validate_discount(product.discount)
        if discount_errors:
            result.errors.extend(discount_errors)
            result.valid = False

        if product.discount.active and product.discount.percentage is None:
            result.warnings.append("Discount is enabled but no percentage is set")

        end = to_utc(product.discount.end)
        if product.discount.active and end is not None and end < datetime.now(timezone.utc):
            result.warnings.append("Discount has expired (end date is in the past)")

        return result

    @staticmethod
    def validate_discount(discount: StorewideDiscount) -> list[str]:
        """Percentage range and window order checks."""
        errors = []
        if discount.percentage is not None and not 0 <= discount.percentage <= 100:
            errors.append("Discount percentage must be between 0 and 100")

        start, end = to_utc(discount.start), to_utc(discount.end)
        if start is not None and end is not None and start > end:
            errors.append("Discount start must be before discount end")
        return errors

    def save_product(self, product: Product) -> Product:
        """
        Validate and persist a product.

        The base price is informational only and is stored as 0 because
        packages carry the real prices.

        Raises:
            ValidationError: nothing is written when validation fails
        """
        validation = self.validate_product(product)
        if not validation.valid:
            raise ValidationError(validation.errors)

        for warning in validation.warnings:
            logger.warning(f"{product.name}: {warning}")

        saved = self.store.save_product(replace(product, base_price=0.0))
        logger.info(f"Saved product '{saved.name}' with {len(saved.variants)} package(s)")
        return saved

    def set_storewide_discount(
        self,
        product_id: str,
        percentage: Optional[float],
        active: bool,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> Product:
        """Replace a product's storewide discount block."""
        product = self.get_product(product_id)
        product.discount = StorewideDiscount(
            percentage=percentage,
            active=active,
            start=to_utc(start),
            end=to_utc(end),
        )
        return self.save_product(product)

    def delete_product(self, product_id: str) -> bool:
        deleted = self.store.delete_product(product_id)
        if not deleted:
            logger.warning(f"Product {product_id} not found for delete")
        return deleted

    def storefront_listing(self, now: Optional[datetime] = None) -> list[dict]:
        """Available products with promotional package prices for display."""
        listing = []
        for product in self.list_products(available_only=True):
            on_sale = is_on_discount(product, now)
            listing.append({
                'id': product.id,
                'name': product.name,
                'category': product.category,
                'popular': product.popular,
                'on_discount': on_sale,
                'discount_percentage': product.discount.percentage if on_sale else None,
                'packages': [
                    {
                        'id': v.id,
                        'name': v.name,
                        'price': v.price,
                        'effective_price': resolve_effective_price(product, v, now),
                    }
                    for v in product.ordered_variants()
                ],
            })
        return listing
