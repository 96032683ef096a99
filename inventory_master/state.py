"""
Application state.

`InventoryController` owns the cached catalog and the recent ledger, and is
the only place that changes them. Changes are applied to the cache first,
then committed through the repository; a rejected commit puts the cache back
the way it was. Change notifications from the repository reload the cache
so state committed elsewhere converges.
"""
import logging
import threading
import time
from typing import Iterable, Optional

from fastapi import Request

from inventory_master.errors import PersistenceError, SyncError
from inventory_master.repository import InventoryRepository, PRODUCTS_CHANGED, TRANSACTION_INSERTED
from inventory_master.schemas import (
    BackupSnapshot,
    ImportSummary,
    InventoryStats,
    InsightReport,
    Language,
    MovementResult,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    RestoreSummary,
    TransactionOut,
    TransactionType,
)
from inventory_master.services import backup_service, import_service, stats_service
from inventory_master.services.insight_service import InsightRequester
from inventory_master.services.inventory_service import build_stock_movement
from inventory_master.services.product_service import apply_patch, build_new_product, warn_on_duplicate_sku

logger = logging.getLogger(__name__)


def merge_products(local: Iterable[ProductOut], remote: Iterable[ProductOut]) -> list[ProductOut]:
    """
    Reconcile the cache with the store.

    The store decides which products exist. For a product present on both
    sides the newer last_updated wins and the store wins ties.
    """
    local_by_id = {p.id: p for p in local}
    merged = []
    for product in remote:
        cached = local_by_id.get(product.id)
        if cached is not None and cached.last_updated > product.last_updated:
            merged.append(cached)
        else:
            merged.append(product)
    return merged


class InventoryController:

    def __init__(
        self,
        repository: InventoryRepository,
        insights: InsightRequester,
        user_id: str = "Admin",
        transaction_limit: int = 100,
        refresh_interval: Optional[float] = None,
    ):
        self.repository = repository
        self.insight_requester = insights
        self.user_id = user_id
        self.transaction_limit = transaction_limit
        self.refresh_interval = refresh_interval

        self._lock = threading.RLock()
        self._products: dict[str, ProductOut] = {}
        self._transactions: list[TransactionOut] = []
        self._insight_report: Optional[InsightReport] = None
        self._auto_insights_attempted: set[str] = set()
        self._refreshed_at = time.monotonic()

        self._unsubscribe = repository.feed.subscribe(self._on_change)

    # -------------------------------
    # Loading & reconciliation
    # -------------------------------
    def load(self) -> None:
        products = self.repository.fetch_all_products()
        transactions = self.repository.fetch_recent_transactions(self.transaction_limit)
        with self._lock:
            self._products = {p.id: p for p in products}
            self._transactions = transactions
            self._refreshed_at = time.monotonic()
        logger.info("Loaded %d products and %d transactions", len(products), len(transactions))

    def close(self) -> None:
        self._unsubscribe()

    def refresh_if_stale(self) -> None:
        """
        Reload from the store once the cache is older than refresh_interval
        seconds. The change feed only reports writes made in this process;
        this is how writes from other workers show up. None disables it.
        """
        if self.refresh_interval is None:
            return
        with self._lock:
            if time.monotonic() - self._refreshed_at < self.refresh_interval:
                return
            self._refreshed_at = time.monotonic()
            self._on_change(PRODUCTS_CHANGED)
            self._on_change(TRANSACTION_INSERTED)

    def _on_change(self, event: str) -> None:
        try:
            if event == PRODUCTS_CHANGED:
                remote = self.repository.fetch_all_products()
                with self._lock:
                    merged = merge_products(self._products.values(), remote)
                    self._products = {p.id: p for p in merged}
            elif event == TRANSACTION_INSERTED:
                transactions = self.repository.fetch_recent_transactions(self.transaction_limit)
                with self._lock:
                    self._transactions = transactions
        except PersistenceError:
            # The cache stays as it was; the next notification or load catches up
            logger.warning("Could not reload after %s", event)

    # -------------------------------
    # Reads
    # -------------------------------
    @property
    def products(self) -> list[ProductOut]:
        self.refresh_if_stale()
        with self._lock:
            return list(self._products.values())

    @property
    def transactions(self) -> list[TransactionOut]:
        self.refresh_if_stale()
        with self._lock:
            return list(self._transactions)

    def get_product(self, product_id: str) -> Optional[ProductOut]:
        self.refresh_if_stale()
        with self._lock:
            return self._products.get(product_id)

    def stats(self) -> InventoryStats:
        return stats_service.compute_stats(self.products)

    # -------------------------------
    # Stock movements
    # -------------------------------
    def apply_stock_movement(
        self,
        product_id: str,
        direction: TransactionType,
        amount: int,
        reason: str = "",
        new_location: Optional[str] = None,
    ) -> Optional[MovementResult]:
        """
        Move stock IN or OUT of a product and log the transaction.

        Returns None when the product is not in the catalog. Raises SyncError
        when the store rejects the change, after restoring the cached product.
        """
        with self._lock:
            product = self._products.get(product_id)
            if product is None:
                logger.info("Stock movement skipped, unknown product %s", product_id)
                return None

            movement = build_stock_movement(
                product=product,
                direction=direction,
                amount=amount,
                reason=reason,
                new_location=new_location,
                user_id=self.user_id,
            )
            self._products[product_id] = movement.product

            try:
                committed, transaction = self.repository.commit_movement(movement)
            except PersistenceError as e:
                self._products[product_id] = product
                raise SyncError("Stock movement was not saved") from e
            except Exception:
                self._products[product_id] = product
                raise

            self._products[product_id] = committed
            self._remember_transaction(transaction)

        if movement.stock_out:
            logger.info("Stock out: %d x %s", amount, product.name)

        return MovementResult(
            product=committed,
            transaction=transaction,
            quantity_before=transaction.quantity_before,
            quantity_after=transaction.quantity_after,
            relocated=movement.relocated,
            stock_out=movement.stock_out,
        )

    def _remember_transaction(self, transaction: TransactionOut) -> None:
        rest = [t for t in self._transactions if t.id != transaction.id]
        self._transactions = [transaction, *rest][: self.transaction_limit]

    # -------------------------------
    # Product editing
    # -------------------------------
    def create_product(self, payload: ProductCreate) -> ProductOut:
        product = build_new_product(payload)
        with self._lock:
            warn_on_duplicate_sku(product, self._products.values())
            self._products[product.id] = product
            try:
                self.repository.upsert_product(product)
            except PersistenceError as e:
                self._products.pop(product.id, None)
                raise SyncError("Product was not saved") from e
            except Exception:
                self._products.pop(product.id, None)
                raise
        return product

    def update_product(self, product_id: str, patch: ProductUpdate) -> Optional[ProductOut]:
        with self._lock:
            current = self._products.get(product_id)
            if current is None:
                return None

            updated = apply_patch(current, patch)
            warn_on_duplicate_sku(updated, self._products.values())
            self._products[product_id] = updated
            try:
                self.repository.upsert_product(updated)
            except PersistenceError as e:
                self._products[product_id] = current
                raise SyncError("Product was not saved") from e
            except Exception:
                self._products[product_id] = current
                raise
        return updated

    # -------------------------------
    # Bulk import & backups
    # -------------------------------
    def bulk_import(self, reconciled: list[ProductOut]) -> ImportSummary:
        """Upsert products already reconciled against the catalog by SKU."""
        with self._lock:
            summary = import_service.summarize_import(reconciled, self._products.values())
            previous = dict(self._products)
            for product in reconciled:
                self._products[product.id] = product
            try:
                self.repository.upsert_products(reconciled)
            except PersistenceError as e:
                self._products = previous
                raise SyncError("Imported products were not saved") from e
            except Exception:
                self._products = previous
                raise

        logger.info(
            "Imported %d products (%d new, %d updated)",
            summary.imported, summary.created, summary.updated,
        )
        return summary

    def import_csv(self, text: str) -> ImportSummary:
        reconciled = import_service.parse_products_csv(text, self.products)
        return self.bulk_import(reconciled)

    def export_csv(self) -> str:
        return import_service.export_products_csv(self.products)

    def snapshot(self) -> BackupSnapshot:
        try:
            transactions = self.repository.fetch_transactions()
        except PersistenceError as e:
            raise SyncError("Could not read the ledger for backup") from e
        return backup_service.build_snapshot(self.products, transactions)

    def restore(self, snapshot: BackupSnapshot) -> RestoreSummary:
        """
        Merge a backup into the catalog. Products are matched by SKU; ledger
        entries the store already holds are left untouched.
        """
        reconciled = import_service.reconcile_products(snapshot.products, self.products)
        id_map = {old.id: new.id for old, new in zip(snapshot.products, reconciled)}

        summary = self.bulk_import(reconciled)

        try:
            known = self.repository.transaction_ids()
            missing = [
                t.model_copy(update={"product_id": id_map.get(t.product_id, t.product_id)})
                for t in backup_service.new_transactions(snapshot, known)
            ]
            added = self.repository.append_transactions(missing)
        except PersistenceError as e:
            raise SyncError("Backup ledger was not restored") from e

        return RestoreSummary(products=summary, transactions_added=added)

    # -------------------------------
    # Insights
    # -------------------------------
    def insights(self, language: Language = "en") -> Optional[InsightReport]:
        """
        Latest insight report. The first request in a language runs the
        analysis automatically once the catalog has products; a failed
        automatic run is not repeated.
        """
        with self._lock:
            report = self._insight_report
            should_run = (
                (report is None or report.language != language)
                and language not in self._auto_insights_attempted
                and bool(self._products)
                and self.insight_requester.available
            )
            if should_run:
                self._auto_insights_attempted.add(language)

        if should_run:
            return self.refresh_insights(language)
        if report is not None and report.language != language:
            return None
        return report

    def refresh_insights(self, language: Language = "en") -> InsightReport:
        report = self.insight_requester.request(self.products, self.transactions, language)
        with self._lock:
            self._insight_report = report
        return report


def get_controller(request: Request) -> InventoryController:
    """
    FastAPI dependency returning the controller built at startup.

    Usage in FastAPI:
        controller: InventoryController = Depends(get_controller)
    """
    return request.app.state.controller
