import pytest
from sqlalchemy.pool import StaticPool

from inventory_master.config import settings
from inventory_master.database import (
    check_database_connection,
    create_database_engine,
    get_database_url,
    get_db_context,
)
from inventory_master.models import Product


@pytest.fixture
def no_database_env(monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_URL", None)
    monkeypatch.setattr(settings, "POSTGRES_URL", None)


class TestDatabaseUrl:

    def test_hosted_postgres_scheme_is_fixed(self, no_database_env, monkeypatch):
        monkeypatch.setattr(settings, "DATABASE_URL", "postgres://user:pw@db.example/inventory")

        assert get_database_url() == "postgresql://user:pw@db.example/inventory"

    def test_postgres_url_is_second_choice(self, no_database_env, monkeypatch):
        monkeypatch.setattr(settings, "POSTGRES_URL", "postgresql://localhost/inventory")

        assert get_database_url() == "postgresql://localhost/inventory"

    def test_local_file_fallback(self, no_database_env, monkeypatch):
        monkeypatch.setattr(settings, "LOCAL_DATABASE_PATH", "./data/shop.db")

        assert get_database_url() == "sqlite:///./data/shop.db"


class TestEngine:

    def test_in_memory_engine_shares_one_connection(self, engine):
        assert isinstance(engine.pool, StaticPool)
        assert check_database_connection(engine)

    def test_file_engine(self, tmp_path):
        engine = create_database_engine(f"sqlite:///{tmp_path / 'inventory.db'}", echo=False)

        assert check_database_connection(engine)
        engine.dispose()


class TestSessionScope:

    def test_commits_on_success(self, session_factory):
        with get_db_context(session_factory) as db:
            db.add(Product(
                id="p1", sku="A", name="Widget", category="Parts", quantity=1,
                min_threshold=5, purchase_price=0, selling_price=0,
                box_number="B1", description="", last_updated=1,
            ))

        with get_db_context(session_factory) as db:
            assert db.get(Product, "p1") is not None

    def test_rolls_back_on_error(self, session_factory):
        with pytest.raises(RuntimeError):
            with get_db_context(session_factory) as db:
                db.add(Product(
                    id="p1", sku="A", name="Widget", category="Parts", quantity=1,
                    min_threshold=5, purchase_price=0, selling_price=0,
                    box_number="B1", description="", last_updated=1,
                ))
                db.flush()
                raise RuntimeError("boom")

        with get_db_context(session_factory) as db:
            assert db.get(Product, "p1") is None
