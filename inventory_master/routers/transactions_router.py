from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from inventory_master.schemas import MovementResult, StockMovementCreate, TransactionOut, TransactionType
from inventory_master.state import InventoryController, get_controller

router = APIRouter(
    prefix="/transactions",
    tags=["Transactions"]
)

@router.post("/", response_model=MovementResult)
def create_transaction(payload: StockMovementCreate, controller: InventoryController = Depends(get_controller)):
    result = controller.apply_stock_movement(
        payload.product_id,
        payload.transaction_type,
        payload.quantity,
        reason=payload.reason,
        new_location=payload.box_number,
    )

    # Unknown products are skipped by the engine; nothing was recorded
    if result is None:
        raise HTTPException(status_code=404, detail="Product not found")

    return result

@router.get("/", response_model=list[TransactionOut])
def list_transactions(
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    product_id: str | None = Query(None),
    transaction_type: TransactionType | None = Query(None),
    controller: InventoryController = Depends(get_controller)
):
    return controller.repository.fetch_transactions(
        start_date=start_date,
        end_date=end_date,
        product_id=product_id,
        transaction_type=transaction_type,
    )

@router.get("/recent", response_model=list[TransactionOut])
def recent_transactions(
    limit: int = Query(20, ge=1, le=100),
    controller: InventoryController = Depends(get_controller)
):
    return controller.transactions[:limit]
