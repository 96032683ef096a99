import pytest

from inventory_master.schemas import ProductOut
from inventory_master.services.stats_service import (
    compute_stats,
    is_low_stock,
    is_out_of_stock,
    low_stock_products,
)


def product(sku, quantity, min_threshold, purchase_price=0.0, selling_price=0.0):
    return ProductOut(
        id=f"id-{sku}",
        sku=sku,
        name=f"Product {sku}",
        category="General",
        quantity=quantity,
        min_threshold=min_threshold,
        purchase_price=purchase_price,
        selling_price=selling_price,
        box_number="B1",
        last_updated=0,
    )


def test_catalog_scenario():
    stats = compute_stats([product("A", 10, 5), product("B", 0, 3)])

    assert stats.total_items == 10
    assert stats.low_stock_items == 0
    assert stats.out_of_stock == 1


def test_empty_catalog_is_all_zero():
    stats = compute_stats([])

    assert stats.total_items == 0
    assert stats.low_stock_items == 0
    assert stats.out_of_stock == 0
    assert stats.total_value == 0
    assert stats.total_cost == 0


@pytest.mark.parametrize("quantity,low,out", [
    (0, False, True),
    (1, True, False),
    (5, True, False),
    (6, False, False),
])
def test_low_and_out_of_stock_are_exclusive(quantity, low, out):
    p = product("A", quantity, 5)

    assert is_low_stock(p) is low
    assert is_out_of_stock(p) is out


def test_value_uses_selling_price_and_cost_uses_purchase_price():
    stats = compute_stats([
        product("A", 4, 1, purchase_price=2.0, selling_price=5.0),
        product("B", 2, 1, purchase_price=1.5, selling_price=3.0),
    ])

    assert stats.total_value == pytest.approx(26.0)
    assert stats.total_cost == pytest.approx(11.0)


def test_low_stock_products():
    catalog = [product("A", 3, 5), product("B", 0, 5), product("C", 9, 5)]

    assert [p.sku for p in low_stock_products(catalog)] == ["A"]
