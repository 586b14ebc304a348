"""
Shared fixtures: a fresh SQLite file database per test, a recording push
provider, a recording alert sink and an HTTP client bound to the app.
"""
import os

# Must be set before config is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LANG_CODE"] = "en"
os.environ["FIREBASE_PROJECT_ID"] = ""
os.environ["FIREBASE_CLIENT_EMAIL"] = ""
os.environ["FIREBASE_PRIVATE_KEY"] = ""

from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio

from main import app
from pizzadesk.core.dependencies import get_push_provider
from pizzadesk.core.push import INVALID_TOKEN, PushResult
from pizzadesk.core.security import create_access_token, get_password_hash
from pizzadesk.database.models import Order, OrderStatus, OrderType, Product, ProductCategory, User, UserRole, UserStatus
from pizzadesk.database.session import build_engine, build_sessionmaker, get_db, init_db
from pizzadesk.database.store import DocumentStore
from pizzadesk.services.notification_service import NotificationDispatcher

PASSWORD = "secret123"


# ─── Collaborator fakes ────────────────────────────────────────────────────────
class FakePushProvider:
    """Records every push; tokens can be marked invalid or unreachable"""

    def __init__(self):
        self.sent = []
        self.invalid_tokens = set()
        self.broken_tokens = set()

    async def send(self, token, payload):
        self.sent.append((token, payload))
        if token in self.broken_tokens:
            raise httpx.ConnectError("push service unreachable")
        if token in self.invalid_tokens:
            return PushResult(False, INVALID_TOKEN, "The device token is no longer registered")
        return PushResult(True)

    def tokens(self):
        return [token for token, _ in self.sent]


class RecordingAlertSink:
    def __init__(self):
        self.alerts = []

    async def alert(self, user_id, message):
        self.alerts.append((user_id, message))


# ─── Database ──────────────────────────────────────────────────────────────────
@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'desk.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(session):
    return DocumentStore(session)


@pytest.fixture
def push():
    return FakePushProvider()


@pytest.fixture
def alerts():
    return RecordingAlertSink()


@pytest.fixture
def dispatcher(store, push, alerts):
    return NotificationDispatcher(store, push, alerts)


# ─── Factories ─────────────────────────────────────────────────────────────────
@pytest.fixture
def make_user(store):
    async def _make_user(
        name="Ana Souza",
        email=None,
        role=UserRole.EMPLOYEE,
        status=UserStatus.APPROVED,
        fcm_token=None,
    ):
        return await store.add(User(
            name=name,
            email=email or f"{name.split()[0].lower()}.{os.urandom(3).hex()}@pizzadesk.com",
            hashed_password=get_password_hash(PASSWORD),
            role=role,
            status=status,
            fallback=name[:2].upper(),
            fcm_token=fcm_token,
            created_at=datetime.now(timezone.utc) - timedelta(hours=1),
        ))
    return _make_user


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("Carla Admin", email="carla@pizzadesk.com", role=UserRole.ADMIN, fcm_token="admin-device")


@pytest_asyncio.fixture
async def employee(make_user):
    return await make_user("Bruno Staff", email="bruno@pizzadesk.com", role=UserRole.EMPLOYEE)


@pytest_asyncio.fixture
async def catalog(store):
    """Two pizzas, a drink and a flat-priced extra"""
    products = {
        "margherita": Product(name="Margherita", category=ProductCategory.PIZZA,
                              sizes={"small": 30.0, "large": 45.0}, is_available=True),
        "pepperoni": Product(name="Pepperoni", category=ProductCategory.PIZZA,
                             sizes={"small": 35.0, "large": 52.5}, is_available=True),
        "cola": Product(name="Cola", category=ProductCategory.DRINK,
                        sizes={"can": 6.0, "2L": 14.0}, is_available=True),
        "border": Product(name="Catupiry Border", category=ProductCategory.EXTRA,
                          price=8.0, is_available=True),
    }
    for product in products.values():
        await store.add(product)
    return products


@pytest.fixture
def make_order(store):
    async def _make_order(
        number=1,
        total=50.0,
        status=OrderStatus.RECEIVED,
        order_type=OrderType.PICKUP,
        customer_name="Diego",
        customer_id=None,
        customer_phone=None,
        timestamp=None,
        items=None,
    ):
        return await store.add(Order(
            order_number=number,
            customer_id=customer_id,
            customer_name=customer_name,
            customer_phone=customer_phone,
            items=items or [{
                "product_id": "p1", "product2_id": None, "is_half_half": False,
                "product_name": "Margherita", "quantity": 1, "size": "large", "unit_price": total,
            }],
            total=total,
            status=status,
            order_type=order_type,
            timestamp=timestamp or datetime.now(timezone.utc),
        ))
    return _make_order


# ─── HTTP ──────────────────────────────────────────────────────────────────────
@pytest.fixture
def auth():
    """Bearer header for a user"""
    def _auth(user):
        return {"Authorization": f"Bearer {create_access_token(user.key)}"}
    return _auth


@pytest_asyncio.fixture
async def client(session_factory, push):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_push_provider] = lambda: push
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
