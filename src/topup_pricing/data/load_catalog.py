"""
Seed Loader - Builds catalog and buyer records from CSV files.

Expected files in the seed directory:
- products.csv  id, name, category, description, popular, available, sort_order,
                discount_percentage, discount_active, discount_start, discount_end
- variants.csv  id, product_id, name, price, description, sort_order
- buyers.csv    id, name, cohort_tag, status, email, order_count, lifetime_spend
"""
import hashlib
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from ..engine.discount_resolver import to_utc
from ..engine.models import Buyer, Product, StorewideDiscount, Variant

logger = logging.getLogger(__name__)


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def parse_bool(value) -> bool:
    """Parse a boolean from a CSV cell."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


def _optional(value):
    """Empty cells (NaN / blank) become None."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    if isinstance(value, str) and value.strip() == '':
        return None
    return value


def _read(path: Path) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str).fillna('')
    df.columns = [c.strip() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    return df


def load_products(products_csv: Path, variants_csv: Path) -> list[Product]:
    """Read products and attach their packages in sort order."""
    products_df = _read(products_csv)
    variants_df = _read(variants_csv) if variants_csv.exists() else pd.DataFrame(
        columns=['id', 'product_id', 'name', 'price', 'description', 'sort_order']
    )

    variants_by_product: dict[str, list[Variant]] = {}
    for row in variants_df.to_dict(orient='records'):
        variants_by_product.setdefault(row['product_id'], []).append(Variant(
            id=row['id'],
            name=row['name'],
            price=float(row['price']),
            description=_optional(row.get('description')),
            sort_order=int(_optional(row.get('sort_order')) or 0),
        ))

    products = []
    for row in products_df.to_dict(orient='records'):
        percentage = _optional(row.get('discount_percentage'))
        products.append(Product(
            id=row['id'],
            name=row['name'],
            category=row.get('category', ''),
            description=row.get('description', ''),
            popular=parse_bool(row.get('popular', 'false')),
            available=parse_bool(row.get('available', 'true')),
            sort_order=int(_optional(row.get('sort_order')) or 0),
            discount=StorewideDiscount(
                percentage=float(percentage) if percentage is not None else None,
                active=parse_bool(row.get('discount_active', 'false')),
                start=to_utc(_optional(row.get('discount_start'))),
                end=to_utc(_optional(row.get('discount_end'))),
            ),
            variants=sorted(variants_by_product.get(row['id'], []), key=lambda v: v.sort_order),
        ))
    return products


def load_buyers(buyers_csv: Path) -> list[Buyer]:
    df = _read(buyers_csv)
    return [
        Buyer(
            id=row['id'],
            name=row['name'],
            cohort_tag=row.get('cohort_tag') or 'end_user',
            status=row.get('status') or 'active',
            email=_optional(row.get('email')),
            order_count=int(_optional(row.get('order_count')) or 0),
            lifetime_spend=float(_optional(row.get('lifetime_spend')) or 0.0),
        )
        for row in df.to_dict(orient='records')
    ]


def load_seed(seed_dir: Path, verbose: bool = False) -> tuple[list[Product], list[Buyer], dict]:
    """
    Load the seed directory.

    Returns:
        (products, buyers, report) - the report lists input hashes, counts
        and any problems found
    """
    report = {
        "timestamp": datetime.now().isoformat(),
        "status": "pending",
        "input_files": {},
        "metrics": {},
        "warnings": [],
        "errors": []
    }

    products_csv = seed_dir / 'products.csv'
    variants_csv = seed_dir / 'variants.csv'
    buyers_csv = seed_dir / 'buyers.csv'

    products: list[Product] = []
    buyers: list[Buyer] = []

    if not products_csv.exists():
        msg = f"products.csv not found in {seed_dir}"
        report["errors"].append(msg)
        report["status"] = "failed"
        logger.error(msg)
        return products, buyers, report

    for path in (products_csv, variants_csv, buyers_csv):
        report["input_files"][path.name] = {"path": str(path), "hash": get_file_hash(path)}

    try:
        products = load_products(products_csv, variants_csv)
        if buyers_csv.exists():
            buyers = load_buyers(buyers_csv)
        else:
            report["warnings"].append("buyers.csv not found - no members loaded")
    except (ValueError, KeyError) as e:
        msg = f"Failed to parse seed data in {seed_dir}: {e}"
        report["errors"].append(msg)
        report["status"] = "failed"
        logger.error(msg)
        return [], [], report

    for product in products:
        if not product.variants:
            report["warnings"].append(f"Product '{product.name}' has no packages")

    report["metrics"] = {
        "product_count": len(products),
        "package_count": sum(len(p.variants) for p in products),
        "buyer_count": len(buyers),
    }
    report["status"] = "success"

    if verbose:
        logger.info(
            f"Seed loaded: {report['metrics']['product_count']} products, "
            f"{report['metrics']['package_count']} packages, "
            f"{report['metrics']['buyer_count']} buyers"
        )
    return products, buyers, report
