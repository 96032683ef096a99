from dataclasses import dataclass
from typing import Optional

from inventory_master.schemas import ProductOut, TransactionOut, TransactionType
from inventory_master.utils import new_id, now_ms


@dataclass(frozen=True)
class StockMovement:
    """A stock movement ready to be committed: the product as it should look
    afterwards and the ledger entry that accounts for it."""
    product: ProductOut
    transaction: TransactionOut
    direction: TransactionType
    amount: int
    relocated: bool

    @property
    def stock_out(self) -> bool:
        # Stock-outs get their own confirmation cue in the UI
        return self.direction == "OUT" and self.amount > 0


def next_quantity(current: int, direction: TransactionType, amount: int) -> int:
    if direction == "IN":
        return current + amount
    if direction == "OUT":
        return max(0, current - amount)
    raise ValueError(f"Invalid transaction type: {direction}")


def annotate_reason(reason: str, new_location: str) -> str:
    return f"{reason} (Box: {new_location})"


def build_stock_movement(
    *,
    product: ProductOut,
    direction: TransactionType,
    amount: int,
    reason: str,
    new_location: Optional[str] = None,
    user_id: str = "Admin",
    timestamp: Optional[int] = None,
) -> StockMovement:
    """
    Compute the outcome of moving `amount` units of `product` IN or OUT.

    OUT is floored at zero while the transaction keeps the requested amount,
    so the ledger states what was asked for and quantity_before/after state
    what actually happened.
    """
    timestamp = timestamp or now_ms()
    quantity_after = next_quantity(product.quantity, direction, amount)

    relocated = bool(new_location) and new_location != product.box_number

    updated = product.model_copy(update={
        "quantity": quantity_after,
        "box_number": new_location if relocated else product.box_number,
        "last_updated": timestamp,
    })

    transaction = TransactionOut(
        id=new_id(),
        product_id=product.id,
        product_name=product.name,
        type=direction,
        quantity=amount,
        quantity_before=product.quantity,
        quantity_after=quantity_after,
        reason=annotate_reason(reason, new_location) if relocated else reason,
        timestamp=timestamp,
        user_id=user_id,
    )

    return StockMovement(
        product=updated,
        transaction=transaction,
        direction=direction,
        amount=amount,
        relocated=relocated,
    )
