import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.main import app
from app.services.database import get_storage
from app.services.memory_storage import MemoryStorage
from app.services.payment_provider import MockPaymentProvider, get_payment_provider
from app.services.seed import seed_demo_data
from app.services.sql_storage import SqlStorage

ADMIN_EMAIL = settings.ADMIN_EMAIL
ADMIN_PASSWORD = settings.ADMIN_PASSWORD


@pytest.fixture
def storage():
    """Fresh in-memory storage with the admin account and default categories."""
    store = MemoryStorage()
    seed_demo_data(store, settings)
    return store


@pytest.fixture
def sql_storage():
    """SQLite in-memory SqlStorage (single shared connection via StaticPool)."""
    store = SqlStorage("sqlite://")
    seed_demo_data(store, settings)
    return store


@pytest.fixture(params=["memory", "sql"])
def any_storage(request):
    """Runs a test once against each backend."""
    if request.param == "memory":
        store = MemoryStorage()
    else:
        store = SqlStorage("sqlite://")
    seed_demo_data(store, settings)
    return store


@pytest.fixture
def make_client(storage):
    """Factory for TestClients sharing one storage; each has its own cookie jar."""
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_payment_provider] = lambda: MockPaymentProvider()

    def _make() -> TestClient:
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def register(make_client):
    """Register a user on a new client and return the logged-in client."""

    def _register(email: str, password: str = "secret1", first_name: str = "A", last_name: str = "B") -> TestClient:
        c = make_client()
        resp = c.post(
            "/api/register",
            json={"email": email, "password": password, "firstName": first_name, "lastName": last_name},
        )
        assert resp.status_code == 201, resp.text
        return c

    return _register


@pytest.fixture
def admin_client(make_client):
    c = make_client()
    resp = c.post("/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return c


@pytest.fixture
def approved_vendor(register, admin_client):
    """A logged-in client whose vendor profile has been approved."""
    c = register("vendor@acme.com")
    resp = c.post("/api/vendors", json={"companyName": "Acme Accounting"})
    assert resp.status_code == 201, resp.text
    vendor_id = resp.json()["data"]["id"]
    resp = admin_client.patch(f"/api/admin/vendors/{vendor_id}", json={"verificationStatus": "APPROVED"})
    assert resp.status_code == 200, resp.text
    return c


@pytest.fixture
def publish_listing(approved_vendor, admin_client):
    """Create a listing as the approved vendor, approve it, and return its JSON."""

    def _publish(title: str = "Bookkeeping", price: float = 10.0, **extra) -> dict:
        body = {
            "titleEn": title,
            "titleZh": f"{title} 中文",
            "descriptionEn": f"{title} description",
            "descriptionZh": "服务描述",
            "price": price,
            "categoryId": 1,
            **extra,
        }
        resp = approved_vendor.post("/api/vendors/listings", json=body)
        assert resp.status_code == 201, resp.text
        listing_id = resp.json()["data"]["id"]
        resp = admin_client.patch(f"/api/admin/listings/{listing_id}", json={"status": "APPROVED"})
        assert resp.status_code == 200, resp.text
        return resp.json()["data"]

    return _publish
