from datetime import date, datetime, time
from typing import Iterable, Optional

from inventory_master.schemas import (
    DailySaleLine,
    DailySalesReport,
    MovementSummary,
    ProductOut,
    RangeSummary,
    TransactionOut,
    TransactionType,
)


def _ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def day_bounds(day: date) -> tuple[int, int]:
    """Epoch-ms bounds of a local calendar day, both inclusive."""
    start = datetime.combine(day, time.min)
    end = datetime.combine(day, time.max)
    return _ms(start), _ms(end)


def filter_transactions(
    transactions: Iterable[TransactionOut],
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    product_id: Optional[str] = None,
    transaction_type: Optional[TransactionType] = None,
) -> list[TransactionOut]:
    rows = list(transactions)

    if start_date:
        rows = [t for t in rows if t.timestamp >= _ms(start_date)]
    if end_date:
        rows = [t for t in rows if t.timestamp <= _ms(end_date)]
    if product_id:
        rows = [t for t in rows if t.product_id == product_id]
    if transaction_type:
        rows = [t for t in rows if t.type == transaction_type]

    return sorted(rows, key=lambda t: t.timestamp, reverse=True)


def movement_summary(transactions: Iterable[TransactionOut]) -> list[MovementSummary]:
    """
    Net movement per product.
    Positive = net inflow
    Negative = net outflow
    """
    summary: dict[str, MovementSummary] = {}

    for t in transactions:
        row = summary.setdefault(
            t.product_id,
            MovementSummary(product_id=t.product_id, product_name=t.product_name),
        )
        if t.type == "IN":
            row.total_in += t.quantity
        else:
            row.total_out += t.quantity
        row.net_movement = row.total_in - row.total_out

    return sorted(summary.values(), key=lambda row: row.product_name)


def _selling_prices(products: Iterable[ProductOut]) -> dict[str, float]:
    return {p.id: p.selling_price for p in products}


def daily_sales(
    transactions: Iterable[TransactionOut],
    products: Iterable[ProductOut],
    day: Optional[date] = None,
) -> DailySalesReport:
    """OUT movements of one day, priced at each product's current selling price."""
    day = day or date.today()
    start, end = day_bounds(day)
    prices = _selling_prices(products)

    report = DailySalesReport(day=day.isoformat())
    for t in sorted(transactions, key=lambda t: t.timestamp):
        if t.type != "OUT" or not start <= t.timestamp <= end:
            continue

        unit_price = prices.get(t.product_id, 0.0)
        report.lines.append(DailySaleLine(
            timestamp=t.timestamp,
            product_id=t.product_id,
            product_name=t.product_name,
            quantity=t.quantity,
            unit_price=unit_price,
            total=t.quantity * unit_price,
        ))
        report.total_quantity += t.quantity
        report.total_revenue += t.quantity * unit_price

    return report


def range_summary(
    transactions: Iterable[TransactionOut],
    products: Iterable[ProductOut],
    start: date,
    end: date,
) -> RangeSummary:
    start_ms, _ = day_bounds(start)
    _, end_ms = day_bounds(end)
    prices = _selling_prices(products)

    summary = RangeSummary(start=start.isoformat(), end=end.isoformat())
    for t in transactions:
        if not start_ms <= t.timestamp <= end_ms:
            continue

        summary.transaction_count += 1
        if t.type == "OUT":
            summary.total_out += t.quantity
            summary.total_revenue += t.quantity * prices.get(t.product_id, 0.0)
        else:
            summary.total_in += t.quantity

    return summary
