import pytest
from pydantic import ValidationError

from inventory_master.errors import PersistenceError, SyncError
from inventory_master.schemas import MAX_QUANTITY, ProductCreate, ProductUpdate
from inventory_master.services.product_service import (
    apply_patch,
    build_new_product,
    find_duplicate_skus,
    search_products,
)


def new_payload(**fields):
    data = {"sku": "A-1", "name": "Widget", "category": "Parts", "box_number": "B1"}
    data.update(fields)
    return ProductCreate(**data)


class TestCreate:

    def test_defaults(self):
        product = build_new_product(new_payload(), timestamp=42)

        assert product.id
        assert product.quantity == 0
        assert product.min_threshold == 5
        assert product.purchase_price == 0
        assert product.selling_price == 0
        assert product.description == ""
        assert product.last_updated == 42

    def test_each_product_gets_its_own_id(self):
        assert build_new_product(new_payload()).id != build_new_product(new_payload()).id

    @pytest.mark.parametrize("field", ["sku", "name", "category", "box_number"])
    def test_required_fields(self, field):
        with pytest.raises(ValidationError):
            new_payload(**{field: ""})

    def test_negative_quantity_is_rejected(self):
        with pytest.raises(ValidationError):
            new_payload(quantity=-1)


class TestPatch:

    def test_only_supplied_fields_change(self):
        product = build_new_product(new_payload(selling_price=9.0), timestamp=1)

        patched = apply_patch(product, ProductUpdate(name="Gadget"), timestamp=2)

        assert patched.name == "Gadget"
        assert patched.selling_price == 9.0
        assert patched.sku == product.sku
        assert patched.id == product.id
        assert patched.last_updated == 2

    def test_patch_has_no_quantity(self):
        assert "quantity" not in ProductUpdate.model_fields


class TestSearch:

    def test_matches_name_sku_category_and_box(self):
        catalog = [
            build_new_product(new_payload(sku="USB-1", name="Cable", category="Wiring", box_number="B1")),
            build_new_product(new_payload(sku="PWR-2", name="Charger", category="Power", box_number="Shelf 9")),
        ]

        assert [p.sku for p in search_products(catalog, "cable")] == ["USB-1"]
        assert [p.sku for p in search_products(catalog, "pwr")] == ["PWR-2"]
        assert [p.sku for p in search_products(catalog, "wiring")] == ["USB-1"]
        assert [p.sku for p in search_products(catalog, "shelf")] == ["PWR-2"]
        assert len(search_products(catalog, "  ")) == 2

    def test_find_duplicate_skus(self):
        catalog = [build_new_product(new_payload(sku=s)) for s in ("A", "B", "A")]

        assert find_duplicate_skus(catalog) == ["A"]


class TestControllerEditing:

    def test_create_and_update_do_not_touch_ledger(self, controller, repository):
        product = controller.create_product(new_payload(quantity=3))
        controller.update_product(product.id, ProductUpdate(description="note"))

        assert repository.get_product(product.id).description == "note"
        assert repository.fetch_recent_transactions() == []

    def test_duplicate_sku_is_saved(self, controller, repository):
        controller.create_product(new_payload(sku="DUP"))
        controller.create_product(new_payload(sku="DUP"))

        assert len(repository.fetch_all_products()) == 2

    def test_update_unknown_product(self, controller):
        assert controller.update_product("missing", ProductUpdate(name="x")) is None

    def test_rejected_create_is_rolled_back(self, controller, repository, monkeypatch):
        def reject(product):
            raise PersistenceError("write failed")

        monkeypatch.setattr(repository, "upsert_product", reject)

        with pytest.raises(SyncError):
            controller.create_product(new_payload())

        assert controller.products == []

    def test_unexpected_write_failure_is_rolled_back(self, controller, repository, monkeypatch):
        product = controller.create_product(new_payload(sku="KEEP"))

        def overflow(item):
            raise OverflowError("too large")

        monkeypatch.setattr(repository, "upsert_product", overflow)

        with pytest.raises(OverflowError):
            controller.create_product(new_payload(sku="NEW"))
        with pytest.raises(OverflowError):
            controller.update_product(product.id, ProductUpdate(name="Renamed"))

        assert [p.sku for p in controller.products] == ["KEEP"]
        assert controller.get_product(product.id).name == "Widget"

    def test_oversized_bulk_import_leaves_cache_matching_store(self, controller, repository):
        product = controller.create_product(new_payload(quantity=1))
        huge = product.model_copy(update={"quantity": 10**20})

        with pytest.raises((OverflowError, SyncError)):
            controller.bulk_import([huge])

        assert controller.get_product(product.id).quantity == 1
        assert repository.get_product(product.id).quantity == 1

    def test_quantity_is_bounded(self):
        with pytest.raises(ValidationError):
            new_payload(quantity=MAX_QUANTITY + 1)
        with pytest.raises(ValidationError):
            ProductUpdate(min_threshold=MAX_QUANTITY + 1)
