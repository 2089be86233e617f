"""
Pricing Engine - Buyer price resolution and checkout totals with traceability.

Resolution order per line:
1. Per-buyer override (selling_price replaces the price outright)
2. Storewide promotional discount, when active for the product
3. Variant list price
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..storage.base import CatalogStore, OverrideLedger
from .discount_resolver import is_on_discount, resolve_effective_price, to_utc
from .errors import NotFoundError
from .models import CartLine, LineItem, Product, Quote, Variant

logger = logging.getLogger(__name__)


class PricingEngine:
    """
    Resolves what a given buyer pays for a given currency package.

    Overrides are absolute replacements: once one exists for the
    (buyer, product, variant) key, the storewide discount is ignored.
    """

    def __init__(self, catalog: CatalogStore, ledger: OverrideLedger):
        self.catalog = catalog
        self.ledger = ledger

    def _lookup(self, product_id: str, variant_id: str) -> tuple[Product, Variant]:
        product = self.catalog.get_product(product_id)
        if product is None:
            raise NotFoundError(f"Product '{product_id}' not found")
        variant = product.get_variant(variant_id)
        if variant is None:
            raise NotFoundError(f"Package '{variant_id}' not found in product '{product_id}'")
        return product, variant

    def price_for(
        self,
        buyer_id: Optional[str],
        product: Product,
        variant: Variant,
        now: Optional[datetime] = None
    ) -> float:
        """Unit price for one buyer; anonymous buyers (None) get the storefront price."""
        if buyer_id:
            override = self.ledger.get(buyer_id, product.id, variant.id)
            if override is not None:
                return override.selling_price
        return resolve_effective_price(product, variant, now)

    def total(self, buyer_id: Optional[str], lines: Iterable[CartLine], now: Optional[datetime] = None) -> float:
        """Sum of unit price × quantity across cart lines."""
        return self.quote(buyer_id, lines, now).total

    def quote(self, buyer_id: Optional[str], lines: Iterable[CartLine], now: Optional[datetime] = None) -> Quote:
        """
        Price a cart with full traceability.

        Args:
            buyer_id: Member id, or None for a guest checkout
            lines: Cart lines (product, package, quantity)
            now: Pricing instant; defaults to the current UTC time

        Returns:
            Quote with priced lines, warnings and the grand total
        """
        now = to_utc(now) or datetime.now(timezone.utc)
        result = Quote(buyer_id=buyer_id, total=0.0, lines=[], priced_at=now)

        for cart_line in lines:
            line = self._calculate_line(buyer_id, cart_line, now)
            result.lines.append(line)
            result.total += line.extended_price

            # Bubble up line warnings
            for warning in line.warnings:
                if warning not in result.warnings:
                    result.add_warning(warning)

        return result

    def _calculate_line(self, buyer_id: Optional[str], cart_line: CartLine, now: datetime) -> LineItem:
        """Calculate a single line item with trace."""
        if cart_line.quantity < 0:
            raise ValueError(f"Quantity must not be negative (got {cart_line.quantity})")

        product, variant = self._lookup(cart_line.product_id, cart_line.variant_id)

        line = LineItem(
            product_id=product.id,
            variant_id=variant.id,
            product_name=product.name,
            variant_name=variant.name,
            quantity=cart_line.quantity,
            unit_price=variant.price,
            extended_price=0.0,
            source="list",
        )
        line.add_trace("Package Lookup", f"{product.name} / {variant.name}", f"{variant.price:.2f}")

        if not product.available:
            line.add_warning(f"{product.name} is currently unavailable")

        override = self.ledger.get(buyer_id, product.id, variant.id) if buyer_id else None

        if override is not None:
            line.unit_price = override.selling_price
            line.source = "override"
            line.add_trace("Member Price", f"Override for buyer {buyer_id}", f"{line.unit_price:.2f}")
        elif is_on_discount(product, now):
            line.unit_price = resolve_effective_price(product, variant, now)
            line.source = "promo"
            line.add_trace(
                "Storewide Discount",
                f"{product.discount.percentage:g}% off {variant.price:.2f}",
                f"{line.unit_price:.2f}"
            )
        else:
            line.add_trace("Price Resolution", "No discount active, using list price", f"{line.unit_price:.2f}")

        line.extended_price = line.unit_price * line.quantity
        line.add_trace("Extension", f"Quantity {line.quantity} × {line.unit_price:.2f}", f"{line.extended_price:.2f}")

        return line

    def price_lookup(self, buyer_id: Optional[str], product_id: str, variant_id: str, now: Optional[datetime] = None) -> float:
        """price_for() addressed by ids."""
        product, variant = self._lookup(product_id, variant_id)
        return self.price_for(buyer_id, product, variant, now)
