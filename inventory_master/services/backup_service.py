import json
import logging
from typing import Iterable, Optional

import requests

from inventory_master.errors import BackupError, BackupNotFound
from inventory_master.schemas import BackupSnapshot, ProductOut, TransactionOut
from inventory_master.utils import now_ms

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"
BACKUP_FILENAME = "InventoryMaster_Backup.json"

DRIVE_API = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_API = "https://www.googleapis.com/upload/drive/v3"
MULTIPART_BOUNDARY = "-------314159265358979323846"


def build_snapshot(products: Iterable[ProductOut], transactions: Iterable[TransactionOut]) -> BackupSnapshot:
    return BackupSnapshot(
        version=BACKUP_VERSION,
        timestamp=now_ms(),
        products=list(products),
        transactions=list(transactions),
    )


def backup_filename(snapshot: BackupSnapshot) -> str:
    return f"inventory_backup_{snapshot.timestamp}.json"


def new_transactions(snapshot: BackupSnapshot, known_ids: set[str]) -> list[TransactionOut]:
    """Ledger entries from the snapshot that the store does not have yet."""
    return [t for t in snapshot.transactions if t.id not in known_ids]


class DriveBackupStore:
    """
    Keeps a single backup file in Google Drive.

    Every upload replaces the file named BACKUP_FILENAME; there is no
    version history.
    """

    def __init__(self, access_token: Optional[str], timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.access_token = access_token
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.access_token)

    def _headers(self, **extra) -> dict:
        if not self.access_token:
            raise BackupError("Google Drive is not connected")
        return {"Authorization": f"Bearer {self.access_token}", **extra}

    def _call(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            res = self.session.request(method, url, timeout=self.timeout, **kwargs)
            res.raise_for_status()
        except requests.RequestException as e:
            logger.error("Drive %s %s failed: %s", method, url, e)
            raise BackupError("Google Drive request failed") from e
        return res

    def find_backup_file(self) -> Optional[dict]:
        res = self._call(
            "GET",
            f"{DRIVE_API}/files",
            headers=self._headers(),
            params={
                "q": f"name = '{BACKUP_FILENAME}' and trashed = false",
                "fields": "files(id, name)",
                "spaces": "drive",
            },
        )
        files = res.json().get("files") or []
        return files[0] if files else None

    def upload(self, snapshot: BackupSnapshot) -> str:
        existing = self.find_backup_file()
        metadata = {"name": BACKUP_FILENAME, "mimeType": "application/json"}

        delimiter = f"\r\n--{MULTIPART_BOUNDARY}\r\n"
        close_delim = f"\r\n--{MULTIPART_BOUNDARY}--"
        body = (
            delimiter
            + "Content-Type: application/json\r\n\r\n"
            + json.dumps(metadata)
            + delimiter
            + "Content-Type: application/json\r\n\r\n"
            + snapshot.model_dump_json()
            + close_delim
        )

        if existing:
            method, url = "PATCH", f"{DRIVE_UPLOAD_API}/files/{existing['id']}"
        else:
            method, url = "POST", f"{DRIVE_UPLOAD_API}/files"

        res = self._call(
            method,
            url,
            headers=self._headers(**{"Content-Type": f'multipart/related; boundary="{MULTIPART_BOUNDARY}"'}),
            params={"uploadType": "multipart"},
            data=body.encode("utf-8"),
        )
        file_id = res.json().get("id") or (existing or {}).get("id", "")
        logger.info("Backup uploaded to Drive file %s", file_id)
        return file_id

    def download(self) -> BackupSnapshot:
        existing = self.find_backup_file()
        if not existing:
            raise BackupNotFound("No backup file found on Drive")

        res = self._call(
            "GET",
            f"{DRIVE_API}/files/{existing['id']}",
            headers=self._headers(),
            params={"alt": "media"},
        )
        try:
            return BackupSnapshot.model_validate(res.json())
        except ValueError as e:
            raise BackupError("Backup file on Drive is not a valid snapshot") from e
