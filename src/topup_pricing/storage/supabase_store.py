"""
Supabase store backends.

Tables:
- menu_items        products (storewide discount columns inline; see migrations/)
- variations        currency packages, FK menu_item_id
- members           buyers
- member_discounts  overrides, unique on (member_id, menu_item_id, variation_id)
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from supabase import create_client, Client

from ..engine.discount_resolver import to_utc
from ..engine.models import (
    Product, Variant, StorewideDiscount, Buyer, Override, OverrideValues
)
from .base import CatalogStore, BuyerStore, OverrideLedger

logger = logging.getLogger(__name__)

OVERRIDE_CONFLICT_KEY = "member_id,menu_item_id,variation_id"


def make_client(url: str, key: str) -> Client:
    """Create a Supabase client."""
    client = create_client(url, key)
    logger.info("Supabase client initialized")
    return client


def _iso(value: Optional[datetime]) -> Optional[str]:
    value = to_utc(value)
    return value.isoformat() if value else None


def _float(value, default: float = 0.0) -> float:
    return float(value) if value is not None else default


def product_from_row(row: dict) -> Product:
    """Build a Product from a menu_items row with embedded variations."""
    variations = row.get('variations') or []
    variants = [
        Variant(
            id=str(v['id']),
            name=v.get('name', ''),
            price=_float(v.get('price')),
            description=v.get('description'),
            sort_order=int(v.get('sort_order') or 0),
        )
        for v in variations
    ]
    if 'discount_percentage' in row:
        percentage, legacy = row['discount_percentage'], row.get('discount_price')
    else:
        # Tables without migrations/0001 keep the percentage in discount_price
        percentage, legacy = row.get('discount_price'), None
    return Product(
        id=str(row['id']),
        name=row.get('name', ''),
        category=row.get('category') or '',
        description=row.get('description') or '',
        subtitle=row.get('subtitle'),
        image_url=row.get('image_url'),
        popular=bool(row.get('popular', False)),
        available=row.get('available') if row.get('available') is not None else True,
        sort_order=int(row.get('sort_order') or 0),
        base_price=_float(row.get('base_price')),
        discount=StorewideDiscount(
            percentage=float(percentage) if percentage is not None else None,
            active=bool(row.get('discount_active', False)),
            start=to_utc(row.get('discount_start_date')),
            end=to_utc(row.get('discount_end_date')),
        ),
        legacy_discount_price=legacy,
        variants=variants,
    )


def product_to_row(product: Product) -> dict:
    """Flatten a Product into a menu_items row (variations written separately)."""
    row = {
        'name': product.name,
        'description': product.description or None,
        'category': product.category,
        'subtitle': product.subtitle,
        'image_url': product.image_url,
        'popular': product.popular,
        'available': product.available,
        'sort_order': product.sort_order,
        'base_price': product.base_price,
        'discount_percentage': product.discount.percentage,
        'discount_active': product.discount.active,
        'discount_start_date': _iso(product.discount.start),
        'discount_end_date': _iso(product.discount.end),
    }
    if product.id:
        row['id'] = product.id
    return row


def buyer_from_row(row: dict) -> Buyer:
    return Buyer(
        id=str(row['id']),
        name=row.get('username') or row.get('name') or '',
        cohort_tag=row.get('user_type') or 'end_user',
        status=row.get('status') or 'active',
        email=row.get('email'),
        order_count=int(row.get('total_orders') or 0),
        lifetime_spend=_float(row.get('total_spent')),
    )


def override_from_row(row: dict) -> Override:
    return Override(
        id=str(row['id']) if row.get('id') is not None else None,
        buyer_id=str(row['member_id']),
        product_id=str(row['menu_item_id']),
        variant_id=str(row['variation_id']),
        discount_percentage=_float(row.get('discount_percentage')),
        capital_price=_float(row.get('capital_price')),
        selling_price=_float(row.get('selling_price')),
        updated_at=to_utc(row.get('updated_at')),
    )


class SupabaseCatalogStore(CatalogStore):

    def __init__(self, client: Client):
        self.client = client

    def list_products(self) -> list[Product]:
        response = (
            self.client.table("menu_items")
            .select("*, variations (*)")
            .order("sort_order")
            .order("created_at")
            .execute()
        )
        return [product_from_row(row) for row in response.data or []]

    def get_product(self, product_id: str) -> Optional[Product]:
        response = (
            self.client.table("menu_items")
            .select("*, variations (*)")
            .eq("id", product_id)
            .execute()
        )
        if not response.data:
            return None
        return product_from_row(response.data[0])

    def save_product(self, product: Product) -> Product:
        """
        Upsert the product row, then replace its variations wholesale.

        Remote errors are logged and re-raised; a catalog save is a single
        operator action, not part of a batch.
        """
        try:
            response = self.client.table("menu_items").upsert(product_to_row(product)).execute()
            product_id = str(response.data[0]['id'])

            self.client.table("variations").delete().eq("menu_item_id", product_id).execute()
            if product.variants:
                self.client.table("variations").insert([
                    {
                        'menu_item_id': product_id,
                        'name': v.name,
                        'price': v.price,
                        'description': v.description,
                        'sort_order': v.sort_order,
                    }
                    for v in product.variants
                ]).execute()
        except Exception as e:
            logger.error(f"Error saving product '{product.name}': {e}")
            raise

        return self.get_product(product_id)

    def delete_product(self, product_id: str) -> bool:
        try:
            response = self.client.table("menu_items").delete().eq("id", product_id).execute()
            return bool(response.data)
        except Exception as e:
            logger.error(f"Error deleting product {product_id}: {e}")
            return False


class SupabaseBuyerStore(BuyerStore):

    FIELD_COLUMNS = {
        'name': 'username',
        'cohort_tag': 'user_type',
        'status': 'status',
        'email': 'email',
    }

    def __init__(self, client: Client):
        self.client = client

    def list_buyers(self) -> list[Buyer]:
        response = self.client.table("members").select("*").order("created_at").execute()
        return [buyer_from_row(row) for row in response.data or []]

    def get_buyer(self, buyer_id: str) -> Optional[Buyer]:
        response = self.client.table("members").select("*").eq("id", buyer_id).execute()
        if not response.data:
            return None
        return buyer_from_row(response.data[0])

    def update_buyer(self, buyer_id: str, **fields) -> bool:
        row = {self.FIELD_COLUMNS[k]: v for k, v in fields.items() if k in self.FIELD_COLUMNS}
        if not row:
            return False
        try:
            response = self.client.table("members").update(row).eq("id", buyer_id).execute()
            return bool(response.data)
        except Exception as e:
            logger.error(f"Error updating member {buyer_id}: {e}")
            return False


class SupabaseOverrideLedger(OverrideLedger):
    """member_discounts table; every write returns success instead of raising."""

    TABLE = "member_discounts"

    def __init__(self, client: Client):
        self.client = client

    def get(self, buyer_id: str, product_id: str, variant_id: Optional[str] = None):
        query = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("member_id", buyer_id)
            .eq("menu_item_id", product_id)
        )
        if variant_id is not None:
            response = query.eq("variation_id", variant_id).execute()
            return override_from_row(response.data[0]) if response.data else None
        response = query.execute()
        return [override_from_row(row) for row in response.data or []]

    def upsert(self, buyer_id: str, product_id: str, variant_id: str, values: OverrideValues) -> bool:
        row = {
            'member_id': buyer_id,
            'menu_item_id': product_id,
            'variation_id': variant_id,
            'discount_percentage': values.discount_percentage,
            'capital_price': values.capital_price,
            'selling_price': values.selling_price,
            'updated_at': datetime.now(timezone.utc).isoformat(),
        }
        try:
            response = (
                self.client.table(self.TABLE)
                .upsert(row, on_conflict=OVERRIDE_CONFLICT_KEY)
                .execute()
            )
            return bool(response.data)
        except Exception as e:
            logger.error(f"Error upserting override {buyer_id}/{product_id}/{variant_id}: {e}")
            return False

    def delete(self, override_id: str, buyer_id: str) -> bool:
        try:
            response = (
                self.client.table(self.TABLE)
                .delete()
                .eq("id", override_id)
                .eq("member_id", buyer_id)
                .execute()
            )
            return bool(response.data)
        except Exception as e:
            logger.error(f"Error deleting override {override_id} for {buyer_id}: {e}")
            return False

    def list_for_buyer(self, buyer_id: str) -> list[Override]:
        response = self.client.table(self.TABLE).select("*").eq("member_id", buyer_id).execute()
        return [override_from_row(row) for row in response.data or []]

    def list_all(self) -> list[Override]:
        response = self.client.table(self.TABLE).select("*").execute()
        return [override_from_row(row) for row in response.data or []]
