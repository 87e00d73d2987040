import fnmatch
from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from slotbook.database import build_engine
from slotbook.models import Base
from slotbook.services.schedule import put_weekly_schedule
from slotbook.services.slots.calculator import ScheduleDay
from slotbook.services.slots.config import EngineConfig

MONDAY = date(2026, 10, 19)
SUNDAY = date(2026, 10, 18)
NOW = datetime(2026, 10, 18, 12, 0)
BUSINESS_ID = 1
OTHER_BUSINESS_ID = 2


def weekday_schedule(start="09:00", end="17:00"):
    """Monday to Friday open, weekend closed."""
    return [
        ScheduleDay(weekday=wd, is_available=wd in (1, 2, 3, 4, 5), start_time=start, end_time=end)
        for wd in range(7)
    ]


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'slotbook.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def business(db):
    put_weekly_schedule(db, BUSINESS_ID, weekday_schedule())
    return BUSINESS_ID


@pytest.fixture
def two_businesses(db):
    put_weekly_schedule(db, BUSINESS_ID, weekday_schedule())
    put_weekly_schedule(db, OTHER_BUSINESS_ID, weekday_schedule())
    return BUSINESS_ID, OTHER_BUSINESS_ID


@pytest.fixture
def client(session_factory):
    from slotbook.database import get_db
    from slotbook.main import app
    from slotbook.redis_client import get_redis
    from slotbook.routers.internal import require_local_caller

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: None
    app.dependency_overrides[require_local_caller] = lambda: None
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.calls = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return queue

    def execute(self):
        results = [getattr(self.redis, name)(*args, **kwargs) for name, args, kwargs in self.calls]
        self.calls = []
        return results


class FakeRedis:
    """Sorted-set and counter subset of the Redis client, kept in memory."""

    def __init__(self):
        self.data: dict[str, dict[str, float]] = {}
        self.strings: dict[str, bytes] = {}
        self.ttl: dict[str, int] = {}

    def pipeline(self):
        return FakePipeline(self)

    def get(self, key):
        return self.strings.get(key)

    def incr(self, key):
        value = int(self.strings.get(key, b"0")) + 1
        self.strings[key] = str(value).encode()
        return value

    def exists(self, key):
        return int(key in self.data)

    def delete(self, *keys):
        deleted = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                deleted += 1
            self.ttl.pop(key, None)
        return deleted

    def zadd(self, key, mapping):
        self.data.setdefault(key, {}).update(mapping)
        return len(mapping)

    def expire(self, key, seconds):
        if key not in self.data:
            return False
        self.ttl[key] = seconds
        return True

    def zrangebyscore(self, key, min, max):
        low = float(min)
        high = float("inf") if max == "+inf" else float(max)
        members = sorted(self.data.get(key, {}).items(), key=lambda item: item[1])
        return [member.encode() for member, score in members if low <= score <= high]

    def scan_iter(self, match=None):
        return [key for key in list(self.data) if match is None or fnmatch.fnmatch(key, match)]


@pytest.fixture
def fake_redis():
    return FakeRedis()
