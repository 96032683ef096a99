from typing import Iterable

from inventory_master.schemas import InventoryStats, ProductOut


def is_out_of_stock(product: ProductOut) -> bool:
    return product.quantity <= 0


def is_low_stock(product: ProductOut) -> bool:
    return 0 < product.quantity <= product.min_threshold


def low_stock_products(products: Iterable[ProductOut]) -> list[ProductOut]:
    return [p for p in products if is_low_stock(p)]


def compute_stats(products: Iterable[ProductOut]) -> InventoryStats:
    """
    Summary figures for the dashboard, recomputed from scratch each time.

    total_value is priced at selling price (what the dashboard shows);
    total_cost is the same stock priced at purchase price (the stock report).
    """
    stats = InventoryStats()

    for p in products:
        stats.total_items += p.quantity
        stats.total_value += p.quantity * p.selling_price
        stats.total_cost += p.quantity * p.purchase_price

        if is_out_of_stock(p):
            stats.out_of_stock += 1
        elif is_low_stock(p):
            stats.low_stock_items += 1

    return stats
