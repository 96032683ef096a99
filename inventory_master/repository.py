import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterable, Optional

from sqlalchemy import case, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from inventory_master.database import get_db_context
from inventory_master.errors import PersistenceError
from inventory_master.models import Product, Transaction
from inventory_master.schemas import ProductOut, TransactionOut, TransactionType
from inventory_master.services.inventory_service import StockMovement

logger = logging.getLogger(__name__)

PRODUCTS_CHANGED = "products_changed"
TRANSACTION_INSERTED = "transaction_inserted"


class ChangeFeed:
    """In-process change notifications, published after each commit."""

    def __init__(self):
        self._subscribers: list[Callable[[str], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[str], None]) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: str) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                # A broken subscriber must not undo a committed write
                logger.exception("Change subscriber failed for %s", event)


def _product_row(product: ProductOut) -> Product:
    return Product(**product.model_dump())


def _transaction_row(transaction: TransactionOut) -> Transaction:
    return Transaction(**transaction.model_dump())


def _ms_from_datetime(value: datetime) -> int:
    return int(value.timestamp() * 1000)


class InventoryRepository:
    """Reads and writes the product and transaction collections."""

    def __init__(self, session_factory: sessionmaker, feed: Optional[ChangeFeed] = None):
        self.session_factory = session_factory
        self.feed = feed or ChangeFeed()

    @contextmanager
    def _session(self, action: str):
        try:
            with get_db_context(self.session_factory) as db:
                yield db
        except SQLAlchemyError as e:
            logger.error("Store rejected %s: %s", action, e)
            raise PersistenceError(f"Could not {action}") from e

    # -------------------------------
    # Reads
    # -------------------------------
    def fetch_all_products(self) -> list[ProductOut]:
        with self._session("fetch products") as db:
            rows = db.query(Product).order_by(Product.name.asc()).all()
            return [ProductOut.model_validate(row) for row in rows]

    def get_product(self, product_id: str) -> Optional[ProductOut]:
        with self._session("fetch product") as db:
            row = db.get(Product, product_id)
            return ProductOut.model_validate(row) if row else None

    def fetch_recent_transactions(self, limit: int = 100) -> list[TransactionOut]:
        with self._session("fetch transactions") as db:
            rows = (
                db.query(Transaction)
                .order_by(Transaction.timestamp.desc())
                .limit(limit)
                .all()
            )
            return [TransactionOut.model_validate(row) for row in rows]

    def fetch_transactions(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        product_id: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> list[TransactionOut]:
        with self._session("fetch transactions") as db:
            query = db.query(Transaction)

            if start_date:
                query = query.filter(Transaction.timestamp >= _ms_from_datetime(start_date))
            if end_date:
                query = query.filter(Transaction.timestamp <= _ms_from_datetime(end_date))
            if product_id:
                query = query.filter(Transaction.product_id == product_id)
            if transaction_type:
                query = query.filter(Transaction.type == transaction_type)

            rows = query.order_by(Transaction.timestamp.desc()).all()
            return [TransactionOut.model_validate(row) for row in rows]

    def transaction_ids(self) -> set[str]:
        with self._session("fetch transaction ids") as db:
            return {row_id for (row_id,) in db.query(Transaction.id).all()}

    # -------------------------------
    # Writes
    # -------------------------------
    def upsert_product(self, product: ProductOut) -> ProductOut:
        with self._session("save product") as db:
            db.merge(_product_row(product))
        self.feed.publish(PRODUCTS_CHANGED)
        return product

    def upsert_products(self, products: Iterable[ProductOut]) -> list[ProductOut]:
        products = list(products)
        if not products:
            return []
        with self._session("save products") as db:
            for product in products:
                db.merge(_product_row(product))
        self.feed.publish(PRODUCTS_CHANGED)
        return products

    def append_transaction(self, transaction: TransactionOut) -> TransactionOut:
        # add(), never merge(): an existing id is an integrity error
        with self._session("log transaction") as db:
            db.add(_transaction_row(transaction))
        self.feed.publish(TRANSACTION_INSERTED)
        return transaction

    def append_transactions(self, transactions: Iterable[TransactionOut]) -> int:
        transactions = list(transactions)
        if not transactions:
            return 0
        with self._session("log transactions") as db:
            db.add_all([_transaction_row(t) for t in transactions])
        self.feed.publish(TRANSACTION_INSERTED)
        return len(transactions)

    def commit_movement(self, movement: StockMovement) -> tuple[ProductOut, TransactionOut]:
        """
        Apply a stock movement and its ledger entry in one database transaction.

        The quantity is written relative to whatever the store holds, not the
        absolute value computed from the caller's copy, so concurrent
        movements from other sessions are never lost.
        """
        product_id = movement.product.id
        amount = movement.amount

        with self._session("commit stock movement") as db:
            row = self._lock_product(db, product_id)
            if row is None:
                raise PersistenceError(f"Product {product_id} is no longer in the store")

            quantity_before = row.quantity
            if movement.direction == "IN":
                new_quantity = Product.quantity + amount
            else:
                new_quantity = case(
                    (Product.quantity - amount < 0, 0),
                    else_=Product.quantity - amount,
                )

            values = {"quantity": new_quantity, "last_updated": movement.product.last_updated}
            # Box number is written only by a move
            if movement.relocated:
                values["box_number"] = movement.product.box_number

            db.execute(
                update(Product)
                .where(Product.id == product_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            db.refresh(row)

            transaction = movement.transaction.model_copy(update={
                "quantity_before": quantity_before,
                "quantity_after": row.quantity,
            })
            db.add(_transaction_row(transaction))
            db.flush()

            committed = ProductOut.model_validate(row)

        self.feed.publish(PRODUCTS_CHANGED)
        self.feed.publish(TRANSACTION_INSERTED)
        return committed, transaction

    @staticmethod
    def _lock_product(db: Session, product_id: str) -> Optional[Product]:
        # Row lock on backends that support it; SQLite serializes writers anyway
        return (
            db.query(Product)
            .filter(Product.id == product_id)
            .with_for_update()
            .first()
        )
