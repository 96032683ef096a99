import pytest

from inventory_master.errors import PersistenceError, SyncError
from inventory_master.repository import ChangeFeed, InventoryRepository
from inventory_master.schemas import ProductCreate, ProductOut
from inventory_master.services.inventory_service import build_stock_movement, next_quantity
from inventory_master.state import InventoryController


def sample_product(**fields):
    data = {
        "id": "p-1",
        "sku": "A-1",
        "name": "Widget",
        "category": "Parts",
        "quantity": 10,
        "min_threshold": 5,
        "box_number": "B1",
        "last_updated": 1,
    }
    data.update(fields)
    return ProductOut(**data)


class TestStockMovementEngine:

    def test_next_quantity(self):
        assert next_quantity(10, "IN", 5) == 15
        assert next_quantity(10, "OUT", 4) == 6
        assert next_quantity(10, "OUT", 15) == 0

    def test_out_is_clamped_but_ledger_keeps_requested_amount(self):
        movement = build_stock_movement(
            product=sample_product(), direction="OUT", amount=15, reason="sale", timestamp=1000
        )

        assert movement.product.quantity == 0
        assert movement.transaction.quantity == 15
        assert movement.transaction.quantity_before == 10
        assert movement.transaction.quantity_after == 0

    def test_transaction_fields(self):
        movement = build_stock_movement(
            product=sample_product(), direction="IN", amount=3, reason="restock",
            user_id="Admin", timestamp=1234,
        )

        tx = movement.transaction
        assert tx.product_id == "p-1"
        assert tx.product_name == "Widget"
        assert tx.type == "IN"
        assert tx.reason == "restock"
        assert tx.timestamp == 1234
        assert tx.user_id == "Admin"
        assert movement.product.last_updated == 1234

    def test_relocation_annotates_reason(self):
        movement = build_stock_movement(
            product=sample_product(), direction="IN", amount=1, reason="restock", new_location="C7"
        )

        assert movement.relocated
        assert movement.product.box_number == "C7"
        assert movement.transaction.reason == "restock (Box: C7)"

    def test_same_location_is_not_a_relocation(self):
        movement = build_stock_movement(
            product=sample_product(), direction="IN", amount=1, reason="restock", new_location="B1"
        )

        assert not movement.relocated
        assert movement.transaction.reason == "restock"

    def test_stock_out_flag(self):
        assert build_stock_movement(product=sample_product(), direction="OUT", amount=1, reason="").stock_out
        assert not build_stock_movement(product=sample_product(), direction="IN", amount=1, reason="").stock_out


class TestControllerStockMovements:

    def test_stock_in_adds_to_total_and_logs_one_transaction(self, controller, repository, make_product):
        product = make_product(quantity=10)
        before = controller.stats().total_items

        result = controller.apply_stock_movement(product.id, "IN", 7, reason="delivery")

        assert controller.stats().total_items == before + 7
        assert result.product.quantity == 17
        assert len(repository.fetch_recent_transactions(10)) == 1
        assert controller.transactions[0].id == result.transaction.id

    def test_stock_out_is_clamped_at_zero(self, controller, repository, make_product):
        product = make_product(quantity=10)

        result = controller.apply_stock_movement(product.id, "OUT", 15, reason="sale")

        assert result.quantity_after == 0
        assert result.transaction.quantity == 15
        assert result.stock_out
        assert repository.get_product(product.id).quantity == 0
        assert controller.stats().total_items == 0

    def test_unknown_product_is_skipped(self, controller, repository):
        assert controller.apply_stock_movement("missing", "IN", 1) is None
        assert repository.fetch_recent_transactions(10) == []

    def test_relocation_is_persisted(self, controller, repository, make_product):
        product = make_product()

        controller.apply_stock_movement(product.id, "IN", 2, reason="moved", new_location="Z9")

        assert repository.get_product(product.id).box_number == "Z9"
        assert repository.fetch_recent_transactions(1)[0].reason == "moved (Box: Z9)"

    def test_rejected_commit_restores_cache(self, controller, repository, make_product, monkeypatch):
        product = make_product(quantity=10)

        def reject(movement):
            raise PersistenceError("write failed")

        monkeypatch.setattr(repository, "commit_movement", reject)

        with pytest.raises(SyncError):
            controller.apply_stock_movement(product.id, "OUT", 4)

        assert controller.get_product(product.id).quantity == 10
        assert controller.transactions == []

    def test_concurrent_change_from_another_session_is_not_lost(self, controller, session_factory, make_product):
        product = make_product(quantity=10)

        # Another client commits through its own repository; this controller is not notified
        other = InventoryRepository(session_factory, ChangeFeed())
        stored = other.get_product(product.id)
        other.upsert_product(stored.model_copy(update={"quantity": 50}))
        assert controller.get_product(product.id).quantity == 10

        result = controller.apply_stock_movement(product.id, "IN", 5)

        assert result.quantity_after == 55
        assert controller.get_product(product.id).quantity == 55
        assert other.get_product(product.id).quantity == 55

    def test_sequential_movements_apply_in_order(self, controller, make_product):
        product = make_product(quantity=0)

        controller.apply_stock_movement(product.id, "IN", 10)
        controller.apply_stock_movement(product.id, "OUT", 3)
        controller.apply_stock_movement(product.id, "OUT", 2)

        assert controller.get_product(product.id).quantity == 5
        assert controller.transactions[0].quantity == 2
        assert sorted(t.quantity for t in controller.transactions) == [2, 3, 10]

    def test_unexpected_commit_failure_restores_cache(self, controller, repository, make_product, monkeypatch):
        product = make_product(quantity=10)

        def overflow(movement):
            raise OverflowError("Python int too large to convert to SQLite INTEGER")

        monkeypatch.setattr(repository, "commit_movement", overflow)

        with pytest.raises(OverflowError):
            controller.apply_stock_movement(product.id, "IN", 5)

        assert controller.get_product(product.id).quantity == 10
        assert controller.transactions == []

    def test_plain_movement_keeps_box_set_elsewhere(self, controller, session_factory, make_product):
        product = make_product(quantity=10)
        other = InventoryRepository(session_factory, ChangeFeed())
        other.upsert_product(other.get_product(product.id).model_copy(update={"box_number": "Z9"}))
        assert controller.get_product(product.id).box_number == "B1"

        controller.apply_stock_movement(product.id, "OUT", 1)

        assert other.get_product(product.id).box_number == "Z9"
        assert controller.get_product(product.id).box_number == "Z9"


class TestCacheRefresh:

    @pytest.fixture
    def refreshing_controller(self, repository, requester):
        controller = InventoryController(repository, requester, refresh_interval=0)
        controller.load()
        yield controller
        controller.close()

    def test_reads_pick_up_writes_from_another_session(self, refreshing_controller, session_factory):
        product = refreshing_controller.create_product(ProductCreate(
            sku="A-1", name="Widget", category="Parts", box_number="B1", quantity=10,
        ))
        other = InventoryRepository(session_factory, ChangeFeed())
        stored = other.get_product(product.id)
        other.upsert_product(stored.model_copy(update={"quantity": 50}))
        other.upsert_product(sample_product(id="p-new", sku="N-1", name="Nut", last_updated=1))

        quantities = {p.sku: p.quantity for p in refreshing_controller.products}

        assert quantities == {"A-1": 50, "N-1": 10}
        assert refreshing_controller.stats().total_items == 60

    def test_reads_pick_up_ledger_entries_from_another_session(self, refreshing_controller, session_factory):
        other = InventoryRepository(session_factory, ChangeFeed())
        other.upsert_product(sample_product())
        movement = build_stock_movement(product=sample_product(), direction="IN", amount=3, reason="")
        other.commit_movement(movement)

        assert [t.quantity for t in refreshing_controller.transactions] == [3]
        assert refreshing_controller.get_product("p-1").quantity == 13

    def test_fresh_cache_is_not_reloaded(self, repository, requester, session_factory):
        controller = InventoryController(repository, requester, refresh_interval=3600)
        controller.load()
        other = InventoryRepository(session_factory, ChangeFeed())
        other.upsert_product(sample_product())

        assert controller.products == []
        controller.close()
