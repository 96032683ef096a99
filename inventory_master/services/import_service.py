import csv
import io
import logging
import re
from datetime import date
from typing import Iterable, Optional

import pandas as pd

from inventory_master.schemas import MAX_QUANTITY, ImportSummary, ProductOut
from inventory_master.services.product_service import find_duplicate_skus
from inventory_master.utils import new_id, now_ms

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "SKU",
    "Name",
    "Category",
    "Quantity",
    "Min Threshold",
    "Purchase Price",
    "Selling Price",
    "Box Number",
    "Description",
]

MIN_CSV_COLUMNS = 7

_INT_PREFIX = re.compile(r"^[+-]?\d+")
_FLOAT_PREFIX = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


# ----------------------------
# Export
# ----------------------------
def export_products_csv(products: Iterable[ProductOut]) -> str:
    df = pd.DataFrame(
        [
            [p.sku, p.name, p.category, p.quantity, p.min_threshold,
             p.purchase_price, p.selling_price, p.box_number, p.description]
            for p in products
        ],
        columns=CSV_HEADERS,
    )

    body = df.to_csv(
        index=False,
        header=False,
        quoting=csv.QUOTE_NONNUMERIC,
        lineterminator="\n",
    )
    return ",".join(CSV_HEADERS) + "\n" + body


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"inventory_export_{today.isoformat()}.csv"


# ----------------------------
# Import
# ----------------------------
def parse_int(value: str) -> int:
    """Leading integer of `value`, 0 when there is none ("12 pcs" -> 12)."""
    match = _INT_PREFIX.match((value or "").strip())
    return int(match.group()) if match else 0


def parse_count(value: str) -> int:
    """parse_int clamped to the range a quantity column can store."""
    return min(MAX_QUANTITY, max(0, parse_int(value)))


def parse_float(value: str) -> float:
    match = _FLOAT_PREFIX.match((value or "").strip())
    return float(match.group()) if match else 0.0


def parse_products_csv(text: str, existing: Iterable[ProductOut]) -> list[ProductOut]:
    """
    Parse an exported catalog back into products.

    The first line is a header. Blank lines and rows with fewer than seven
    columns are skipped; unparseable numbers become 0. Rows are matched to
    `existing` by SKU so a known product keeps its id.
    """
    timestamp = now_ms()
    incoming = []

    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    for line_number, values in enumerate(reader):
        if line_number == 0:
            continue
        if not any(v.strip() for v in values):
            continue

        values = [v.strip() for v in values]
        if len(values) < MIN_CSV_COLUMNS:
            logger.debug("Skipping CSV row %d: %d columns", line_number + 1, len(values))
            continue

        incoming.append(ProductOut(
            id=new_id(),
            sku=values[0],
            name=values[1],
            category=values[2],
            quantity=parse_count(values[3]),
            min_threshold=parse_count(values[4]),
            purchase_price=max(0.0, parse_float(values[5])),
            selling_price=max(0.0, parse_float(values[6])),
            box_number=values[7] if len(values) > 7 else "",
            description=values[8] if len(values) > 8 else "",
            last_updated=timestamp,
        ))

    return reconcile_products(incoming, existing)


# ----------------------------
# Reconciliation
# ----------------------------
def reconcile_products(incoming: Iterable[ProductOut], existing: Iterable[ProductOut]) -> list[ProductOut]:
    """
    Give each incoming product the id of the existing product with the same
    SKU (exact, case-sensitive) or a fresh id when there is none.
    """
    existing = list(existing)
    duplicates = find_duplicate_skus(existing)
    if duplicates:
        logger.warning("Duplicate SKUs in catalog, first match wins: %s", ", ".join(duplicates))

    by_sku = {}
    for product in existing:
        by_sku.setdefault(product.sku, product)

    reconciled = []
    for product in incoming:
        match = by_sku.get(product.sku)
        reconciled.append(product.model_copy(update={"id": match.id if match else new_id()}))

    return reconciled


def summarize_import(reconciled: Iterable[ProductOut], existing: Iterable[ProductOut]) -> ImportSummary:
    reconciled = list(reconciled)
    existing_ids = {p.id for p in existing}
    updated = sum(1 for p in reconciled if p.id in existing_ids)

    return ImportSummary(
        imported=len(reconciled),
        created=len(reconciled) - updated,
        updated=updated,
        duplicate_skus=find_duplicate_skus(reconciled),
    )
