#!/usr/bin/env python
"""
Seed check - loads the CSV seed and prints a storefront price sheet.

Usage:
    python scripts/check_seed.py [SEED_DIR]
"""
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from topup_pricing.config.settings import get_settings
from topup_pricing.data.load_catalog import load_seed
from topup_pricing.engine.discount_resolver import resolve_effective_price


def main():
    settings = get_settings()
    seed_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else settings.seed_data_dir
    
    print("=" * 60)
    print("SEED CHECK")
    print("=" * 60)
    
    products, buyers, report = load_seed(seed_dir)
    
    if report["status"] != "success":
        print("\n❌ SEED FAILED")
        for error in report["errors"]:
            print(f"  ERROR: {error}")
        sys.exit(1)
    
    for warning in report["warnings"]:
        print(f"  WARNING: {warning}")
    
    print()
    for product in products:
        print(f"{product.name}{'' if product.available else ' (unavailable)'}")
        for variant in product.ordered_variants():
            price = resolve_effective_price(product, variant)
            print(f"  {variant.name:<30} {settings.currency_symbol}{price:>10,.2f}")
    
    print()
    print("Summary:")
    print(f"  Products: {report['metrics']['product_count']}")
    print(f"  Packages: {report['metrics']['package_count']}")
    print(f"  Buyers:   {report['metrics']['buyer_count']}")


if __name__ == "__main__":
    main()
