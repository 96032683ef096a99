from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile

from inventory_master.schemas import ImportSummary, ProductCreate, ProductOut, ProductUpdate
from inventory_master.services.import_service import export_filename
from inventory_master.services.product_service import search_products
from inventory_master.state import InventoryController, get_controller

router = APIRouter(
    prefix="/products",
    tags=["Products"]
)

@router.post("/", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, controller: InventoryController = Depends(get_controller)):
    return controller.create_product(payload)

@router.get("/", response_model=list[ProductOut])
def list_products(
    q: Optional[str] = Query(None, description="Match name, SKU, category or box"),
    controller: InventoryController = Depends(get_controller)
):
    return search_products(controller.products, q or "")

@router.get("/export")
def export_products(controller: InventoryController = Depends(get_controller)):
    return Response(
        content=controller.export_csv(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )

@router.post("/import", response_model=ImportSummary)
async def import_products(
    file: UploadFile = File(...),
    controller: InventoryController = Depends(get_controller)
):
    raw = await file.read()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")

    return controller.import_csv(text)

@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, controller: InventoryController = Depends(get_controller)):
    product = controller.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

@router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: str,
    payload: ProductUpdate,
    controller: InventoryController = Depends(get_controller)
):
    product = controller.update_product(product_id, payload)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
