import pytest
from fastapi.testclient import TestClient

from storefront.config import Settings
from storefront.database import Database
from storefront.main import create_app
from storefront.services.identity import IdentityResolver

KEY_SECRET = "test_key_secret"
PASSWORD = "s3cret-pw"


class FakeGateway:
    """Stands in for RazorpayClient; records every order request."""

    def __init__(self):
        self.calls = []
        self.error = None

    async def create_order(self, amount, currency, receipt, notes=None):
        self.calls.append({"amount": amount, "currency": currency, "receipt": receipt, "notes": notes})
        if self.error is not None:
            raise self.error
        return {
            "id": f"order_gw{len(self.calls)}",
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "status": "created",
        }


@pytest.fixture()
def settings():
    return Settings(
        _env_file=None,
        SECRET_KEY="test-jwt-secret",
        DATABASE_URL="sqlite://",
        RAZORPAY_KEY_ID="rzp_test_id",
        RAZORPAY_KEY_SECRET=KEY_SECRET,
        PAYMENT_CURRENCY="INR",
    )


@pytest.fixture()
def database():
    database = Database("sqlite://")
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture()
def db(database):
    with database.session() as session:
        yield session


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def make_user(database):
    def _make(email, is_admin=False, name="Test User", mobile="9999999999"):
        with database.session() as session:
            user = IdentityResolver(session).register(
                name=name, mobile=mobile, email=email, password=PASSWORD, is_admin=is_admin
            )
            return user.id
    return _make


@pytest.fixture()
def client(settings, database, gateway):
    app = create_app(settings=settings, database=database, gateway=gateway)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def login(client):
    def _login(email, password=PASSWORD):
        resp = client.post("/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}
    return _login
