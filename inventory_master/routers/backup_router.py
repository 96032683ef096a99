from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from inventory_master.schemas import BackupSnapshot, RestoreSummary
from inventory_master.services.backup_service import DriveBackupStore, backup_filename
from inventory_master.state import InventoryController, get_controller

router = APIRouter(
    prefix="/backup",
    tags=["Backup"]
)


def get_drive_store(request: Request) -> DriveBackupStore:
    return request.app.state.drive_store


@router.get("/")
def download_backup(controller: InventoryController = Depends(get_controller)):
    snapshot = controller.snapshot()
    return JSONResponse(
        content=snapshot.model_dump(mode="json"),
        headers={"Content-Disposition": f'attachment; filename="{backup_filename(snapshot)}"'},
    )

@router.post("/restore", response_model=RestoreSummary)
def restore_backup(snapshot: BackupSnapshot, controller: InventoryController = Depends(get_controller)):
    return controller.restore(snapshot)

@router.get("/drive/status")
def drive_status(drive: DriveBackupStore = Depends(get_drive_store)):
    return {"connected": drive.configured}

@router.post("/drive")
def backup_to_drive(
    controller: InventoryController = Depends(get_controller),
    drive: DriveBackupStore = Depends(get_drive_store)
):
    snapshot = controller.snapshot()
    file_id = drive.upload(snapshot)
    return {
        "message": "Backup successful",
        "file_id": file_id,
        "products": len(snapshot.products),
        "transactions": len(snapshot.transactions),
    }

@router.post("/drive/restore", response_model=RestoreSummary)
def restore_from_drive(
    controller: InventoryController = Depends(get_controller),
    drive: DriveBackupStore = Depends(get_drive_store)
):
    return controller.restore(drive.download())
