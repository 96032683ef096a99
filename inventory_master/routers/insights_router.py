from fastapi import APIRouter, Depends, Query

from inventory_master.config import settings
from inventory_master.schemas import InsightReport, InsightStatus, Language
from inventory_master.state import InventoryController, get_controller

router = APIRouter(
    prefix="/insights",
    tags=["Insights"]
)

@router.get("/status", response_model=InsightStatus)
def insight_status(controller: InventoryController = Depends(get_controller)):
    return controller.insight_requester.status()

@router.get("/", response_model=InsightReport)
def latest_insights(
    language: Language = Query(settings.DEFAULT_LANGUAGE),
    controller: InventoryController = Depends(get_controller)
):
    report = controller.insights(language)
    if report is None:
        # Nothing generated yet: empty catalog or insights unavailable
        return InsightReport(language=language, available=controller.insight_requester.available)
    return report

@router.post("/refresh", response_model=InsightReport)
def refresh_insights(
    language: Language = Query(settings.DEFAULT_LANGUAGE),
    controller: InventoryController = Depends(get_controller)
):
    return controller.refresh_insights(language)
