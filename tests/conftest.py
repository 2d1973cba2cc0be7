import mongomock
import pytest
from fastapi.testclient import TestClient

from accounts import AccountStore
from catalog import CatalogStore
from database import create_document, get_db, to_object_id
from deps import get_notifier
from main import app
from notifications import DeliveryOutcome
from orders import OrderEngine
from schemas import ProductPayload, User
from security import create_token, hash_password

PASSWORD = "secret123"


class RecordingNotifier:
    def __init__(self):
        self.sent = []
        self.fail_with = None
        self.raise_with = None

    def send(self, to_email, subject, template_name, data):
        self.sent.append({"to": to_email, "subject": subject, "template": template_name, "data": data})
        if self.raise_with:
            raise RuntimeError(self.raise_with)
        if self.fail_with:
            return DeliveryOutcome.failed(self.fail_with)
        return DeliveryOutcome.ok(f"msg-{len(self.sent)}")


@pytest.fixture
def db():
    return mongomock.MongoClient().db


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(db, notifier):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def catalog(db):
    return CatalogStore(db)


@pytest.fixture
def accounts(db):
    return AccountStore(db)


@pytest.fixture
def engine(db, catalog, accounts, notifier):
    return OrderEngine(db, catalog, accounts, notifier)


@pytest.fixture
def make_product(catalog):
    def _make(title="Solar Panel 450W", price=1000.0, discount=10, stock=50, category="Solar Panels", **extra):
        payload = ProductPayload(
            title=title, price=price, discount=discount, stock=stock, category=category, **extra
        )
        return catalog.create_product(payload)

    return _make


@pytest.fixture
def make_user(db):
    def _make(email="ada@example.com", role="user", password=PASSWORD, **extra):
        user = User(
            first_name="Ada",
            last_name="Obi",
            email=email,
            password_hash=hash_password(password),
            role=role,
            **extra,
        )
        user_id = create_document(db, "user", user)
        return db["user"].find_one({"_id": to_object_id(user_id)})

    return _make


@pytest.fixture
def auth_header():
    def _header(user):
        return {"Authorization": f"Bearer {create_token(user)}"}

    return _header


@pytest.fixture
def admin_headers(make_user, auth_header):
    return auth_header(make_user(email="admin@example.com", role="admin"))


@pytest.fixture
def shipping():
    return {
        "name": "Ada Obi",
        "email": "ada@example.com",
        "contact": "+2348000000000",
        "address": "12 Marina Road",
        "state": "Lagos",
        "country": "Nigeria",
    }
