# backend/tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from fakes import FakeSubmissionStore, FakeTrigger, InMemorySubscriberStore
from src.auth.dependencies import get_current_user
from src.billing.service import get_subscriber_store
from src.main import app
from src.middleware import limiter
from src.validation.limits import QuotaTracker, endpoint_limiters, get_daily_quota
from src.validation.recorder import get_submission_store
from src.validation.trigger import get_deep_trigger


@pytest.fixture(autouse=True)
def reset_limits():
    for lim in endpoint_limiters.values():
        lim.clear()
    limiter.reset()
    yield
    for lim in endpoint_limiters.values():
        lim.clear()


@pytest.fixture
def subscriber_store():
    return InMemorySubscriberStore()


@pytest.fixture
def submission_store():
    return FakeSubmissionStore()


@pytest.fixture
def quota():
    return QuotaTracker()


@pytest.fixture
def fake_trigger():
    return FakeTrigger()


@pytest.fixture
def current_user():
    """Mutable holder: set current_user["user"] to sign a request in."""
    return {"user": None}


@pytest.fixture
def client(subscriber_store, submission_store, quota, fake_trigger, current_user):
    app.dependency_overrides[get_subscriber_store] = lambda: subscriber_store
    app.dependency_overrides[get_submission_store] = lambda: submission_store
    app.dependency_overrides[get_daily_quota] = lambda: quota
    app.dependency_overrides[get_deep_trigger] = lambda: fake_trigger
    app.dependency_overrides[get_current_user] = lambda: current_user["user"]
    yield TestClient(app)
    app.dependency_overrides.clear()
