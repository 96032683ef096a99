import json

import pytest
import requests
from fastapi.testclient import TestClient

import inventory_master.models  # noqa: F401
from inventory_master.database import Base, create_database_engine, create_session_factory
from inventory_master.main import app
from inventory_master.repository import ChangeFeed, InventoryRepository
from inventory_master.schemas import ProductCreate
from inventory_master.services.backup_service import DriveBackupStore
from inventory_master.services.insight_service import InsightRequester
from inventory_master.state import InventoryController


class FakeResponse:

    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeSession:
    """Stands in for requests.Session: records calls, replays queued responses."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise requests.ConnectionError("no response queued")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)


def gemini_response(payload: dict) -> FakeResponse:
    return FakeResponse({
        "candidates": [
            {"content": {"parts": [{"text": json.dumps(payload)}]}}
        ]
    })


@pytest.fixture
def engine():
    engine = create_database_engine("sqlite://", echo=False)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def repository(session_factory):
    return InventoryRepository(session_factory, ChangeFeed())


@pytest.fixture
def gemini_session():
    return FakeSession()


@pytest.fixture
def requester(gemini_session):
    return InsightRequester(api_key="test-key", model="test-model", session=gemini_session)


@pytest.fixture
def controller(repository, requester):
    controller = InventoryController(repository, requester)
    controller.load()
    yield controller
    controller.close()


@pytest.fixture
def drive_session():
    return FakeSession()


@pytest.fixture
def drive_store(drive_session):
    return DriveBackupStore("drive-token", session=drive_session)


@pytest.fixture
def client(controller, drive_store):
    # No context manager: the lifespan would build its own controller
    app.state.controller = controller
    app.state.drive_store = drive_store
    return TestClient(app)


@pytest.fixture
def make_product(controller):
    def _make(sku="A-1", name="Widget", quantity=10, min_threshold=5, **fields):
        payload = {
            "sku": sku,
            "name": name,
            "category": "Parts",
            "box_number": "B1",
            "quantity": quantity,
            "min_threshold": min_threshold,
            "purchase_price": 2.0,
            "selling_price": 3.5,
        }
        payload.update(fields)
        return controller.create_product(ProductCreate(**payload))

    return _make
