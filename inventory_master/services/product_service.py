import logging
from collections import Counter
from typing import Iterable, Optional

from inventory_master.schemas import ProductCreate, ProductOut, ProductUpdate
from inventory_master.utils import new_id, now_ms

logger = logging.getLogger(__name__)


def build_new_product(payload: ProductCreate, timestamp: Optional[int] = None) -> ProductOut:
    return ProductOut(
        id=new_id(),
        last_updated=timestamp or now_ms(),
        **payload.model_dump(),
    )


def apply_patch(product: ProductOut, patch: ProductUpdate, timestamp: Optional[int] = None) -> ProductOut:
    """Copy of `product` with only the fields set on `patch` replaced."""
    changes = patch.model_dump(exclude_unset=True)
    # An explicit null means "not supplied", every product field is required
    changes = {key: value for key, value in changes.items() if value is not None}
    changes["last_updated"] = timestamp or now_ms()
    return product.model_copy(update=changes)


def find_duplicate_skus(products: Iterable[ProductOut]) -> list[str]:
    counts = Counter(p.sku for p in products)
    return sorted(sku for sku, count in counts.items() if count > 1)


def warn_on_duplicate_sku(product: ProductOut, products: Iterable[ProductOut]) -> bool:
    clash = any(p.sku == product.sku and p.id != product.id for p in products)
    if clash:
        logger.warning("SKU %s is used by more than one product", product.sku)
    return clash


def search_products(products: Iterable[ProductOut], query: str) -> list[ProductOut]:
    query = (query or "").strip().lower()
    if not query:
        return list(products)

    return [
        p for p in products
        if query in p.name.lower()
        or query in p.sku.lower()
        or query in p.category.lower()
        or query in p.box_number.lower()
    ]
