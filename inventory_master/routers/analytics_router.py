from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query

from inventory_master.schemas import DailySalesReport, InventoryStats, MovementSummary, ProductOut, RangeSummary
from inventory_master.services import history_service, stats_service
from inventory_master.state import InventoryController, get_controller

router = APIRouter(
    prefix="/analytics",
    tags=["Analytics"]
)

@router.get("/stats", response_model=InventoryStats)
def inventory_stats(controller: InventoryController = Depends(get_controller)):
    return controller.stats()

@router.get("/low-stock", response_model=list[ProductOut])
def low_stock(controller: InventoryController = Depends(get_controller)):
    return stats_service.low_stock_products(controller.products)

@router.get("/movement-summary", response_model=list[MovementSummary])
def movement_summary(controller: InventoryController = Depends(get_controller)):
    """
    Returns net inventory movement per product.
    Positive = net inflow
    Negative = net outflow
    """
    return history_service.movement_summary(controller.repository.fetch_transactions())

@router.get("/reports/daily", response_model=DailySalesReport)
def daily_sales_report(
    day: date | None = Query(None),
    controller: InventoryController = Depends(get_controller)
):
    day = day or date.today()
    transactions = controller.repository.fetch_transactions(
        start_date=datetime.combine(day, time.min),
        end_date=datetime.combine(day, time.max),
        transaction_type="OUT",
    )
    return history_service.daily_sales(transactions, controller.products, day)

@router.get("/reports/range", response_model=RangeSummary)
def range_report(
    start: date = Query(...),
    end: date = Query(...),
    controller: InventoryController = Depends(get_controller)
):
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")

    transactions = controller.repository.fetch_transactions(
        start_date=datetime.combine(start, time.min),
        end_date=datetime.combine(end, time.max),
    )
    return history_service.range_summary(transactions, controller.products, start, end)
