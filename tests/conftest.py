import fnmatch
import os

# Configure the app for tests before it is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["CSRF_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("REDIS_URL", None)
os.environ.pop("RESEND_API_KEY", None)
for _key in ("PUSHER_APP_ID", "PUSHER_KEY", "PUSHER_SECRET"):
    os.environ.pop(_key, None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from haircrew import cache as cache_module
from haircrew import email_service, rate_limiter
from haircrew.database import Base, get_db
from haircrew.main import app
from haircrew.services import pusher_service
from tests.factories import auth_headers, make_category, make_product, make_user


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.calls = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return queue

    def execute(self):
        results = [getattr(self.client, name)(*args, **kwargs) for name, args, kwargs in self.calls]
        self.calls = []
        return results


class FakeRedis:
    """The subset of redis-py the limiter and cache use"""

    def __init__(self):
        self.values = {}
        self.zsets = {}
        self.ttls = {}

    def ping(self):
        return True

    def pipeline(self):
        return FakePipeline(self)

    # sorted sets
    def zremrangebyscore(self, key, minimum, maximum):
        zset = self.zsets.get(key, {})
        doomed = [m for m, score in zset.items() if minimum <= score <= maximum]
        for member in doomed:
            del zset[member]
        return len(doomed)

    def zcard(self, key):
        return len(self.zsets.get(key, {}))

    def zrange(self, key, start, end, withscores=False):
        items = sorted(self.zsets.get(key, {}).items(), key=lambda item: item[1])
        end = len(items) if end == -1 else end + 1
        selected = items[start:end]
        return [(m, float(s)) for m, s in selected] if withscores else [m for m, _ in selected]

    def zadd(self, key, mapping):
        self.zsets.setdefault(key, {}).update(mapping)
        return len(mapping)

    def pexpire(self, key, ms):
        self.ttls[key] = ms
        return True

    # strings
    def get(self, key):
        return self.values.get(key)

    def setex(self, key, ttl, value):
        self.values[key] = value
        self.ttls[key] = ttl * 1000
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += int(self.values.pop(key, None) is not None)
            removed += int(self.zsets.pop(key, None) is not None)
        return removed

    def keys(self, pattern):
        return [k for k in list(self.values) + list(self.zsets) if fnmatch.fnmatch(k, pattern)]


class FakePusher:
    def __init__(self):
        self.events = []

    def trigger(self, channel, event, data):
        self.events.append((channel, event, data))

    def find(self, channel, event):
        return [data for c, e, data in self.events if c == channel and e == event]


class EmailOutbox:
    def __init__(self):
        self.sent = []

    def recorder(self, kind):
        async def send(**kwargs):
            self.sent.append((kind, kwargs))
            return {"id": f"email-{len(self.sent)}"}

        return send

    def of_kind(self, kind):
        return [kwargs for k, kwargs in self.sent if k == kind]


@pytest.fixture
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(autouse=True)
def integrations(monkeypatch):
    """No Redis by default; Pusher and email are recorded instead of sent"""
    monkeypatch.setattr(rate_limiter, "redis_client", None)
    monkeypatch.setattr(cache_module.cache, "redis_client", None)

    fake_pusher = FakePusher()
    monkeypatch.setattr(pusher_service, "_pusher_client", fake_pusher)

    outbox = EmailOutbox()
    for name in (
        "send_welcome_email",
        "send_password_reset_email",
        "send_order_confirmation_email",
        "send_shipping_update_email",
    ):
        monkeypatch.setattr(email_service, name, outbox.recorder(name))

    yield {"pusher": fake_pusher, "outbox": outbox}


@pytest.fixture
def pusher_events(integrations):
    return integrations["pusher"]


@pytest.fixture
def outbox(integrations):
    return integrations["outbox"]


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(rate_limiter, "redis_client", fake)
    monkeypatch.setattr(cache_module.cache, "redis_client", fake)
    return fake


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def customer(db_session):
    return make_user(db_session, "priya@example.com", name="Priya Sharma")


@pytest.fixture
def other_customer(db_session):
    return make_user(db_session, "rahul@example.com", name="Rahul Verma")


@pytest.fixture
def admin(db_session):
    return make_user(db_session, "admin@haircrew.com", role="ADMIN", name="Store Admin")


@pytest.fixture
def customer_client(client, customer):
    client.headers.update(auth_headers(customer))
    return client


@pytest.fixture
def admin_client(client, admin):
    client.headers.update(auth_headers(admin))
    return client


@pytest.fixture
def catalog(db_session):
    """Two categories with products across price bands and stock levels"""
    oils = make_category(db_session, "Hair Oils")
    shampoos = make_category(db_session, "Shampoos")

    products = {
        "argan": make_product(db_session, oils, "Argan Oil", 450, stock=40, created_offset=5, sku="OIL-ARGAN"),
        "onion": make_product(db_session, oils, "Onion Oil", 799, stock=8, created_offset=4),
        "keratin": make_product(db_session, shampoos, "Keratin Shampoo", 1200, stock=25, created_offset=3),
        "serum": make_product(db_session, shampoos, "Repair Serum", 2400, stock=0, created_offset=2),
        "retired": make_product(db_session, oils, "Old Tonic", 300, stock=15, is_active=False, created_offset=1),
    }
    return {"categories": {"oils": oils, "shampoos": shampoos}, "products": products}
