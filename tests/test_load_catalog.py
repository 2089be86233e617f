"""
CSV seed loading.
"""
from pathlib import Path

import pytest

from topup_pricing.data.load_catalog import load_seed, parse_bool

SEED_DIR = Path(__file__).resolve().parent.parent / 'src' / 'topup_pricing' / 'data' / 'seed'


def test_bundled_seed_loads():
    products, buyers, report = load_seed(SEED_DIR)

    assert report["status"] == "success"
    assert report["metrics"]["product_count"] == len(products) == 4
    assert report["metrics"]["package_count"] == 8
    assert len(buyers) == 5

    mlbb = next(p for p in products if p.id == "mlbb")
    assert mlbb.discount.percentage == 10
    assert mlbb.discount.active is True
    assert [v.id for v in mlbb.variants] == ["mlbb-86", "mlbb-172", "mlbb-257"]

    codm = next(p for p in products if p.id == "codm")
    assert codm.discount.start is not None and codm.discount.end is not None

    genshin = next(p for p in products if p.id == "genshin")
    assert genshin.discount.percentage is None


def test_missing_products_file(tmp_path):
    products, buyers, report = load_seed(tmp_path)
    assert report["status"] == "failed"
    assert products == [] and buyers == []


def test_bad_price_fails_cleanly(tmp_path):
    (tmp_path / 'products.csv').write_text("id,name\np1,Game\n", encoding='utf-8')
    (tmp_path / 'variants.csv').write_text("id,product_id,name,price\nv1,p1,Pack,abc\n", encoding='utf-8')

    products, _, report = load_seed(tmp_path)

    assert report["status"] == "failed"
    assert products == []


def test_product_without_packages_warns(tmp_path):
    (tmp_path / 'products.csv').write_text("id,name\np1,Game\n", encoding='utf-8')

    products, buyers, report = load_seed(tmp_path)

    assert report["status"] == "success"
    assert products[0].variants == []
    assert any("no packages" in w for w in report["warnings"])
    assert any("buyers.csv" in w for w in report["warnings"])


@pytest.mark.parametrize("value, expected", [
    ("true", True), ("1", True), ("Yes", True), ("false", False), ("", False), (True, True),
])
def test_parse_bool(value, expected):
    assert parse_bool(value) is expected
