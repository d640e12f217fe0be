"""
Root pytest configuration for the Django project.

This module configures pytest-django and provides project-wide fixtures.
App-specific fixtures are defined in each app's tests/conftest.py.
"""

import os

import django
import pytest

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}

    # Use fast password hasher for tests (PBKDF2 is too slow with 870K iterations)
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]

    # No Redis in the test run; distributed locks are patched per test
    settings.CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "tests",
        }
    }
    settings.SESSION_ENGINE = "django.contrib.sessions.backends.db"

    # The test client speaks plain HTTP; don't redirect it to HTTPS
    settings.SECURE_SSL_REDIRECT = False

    settings.MIDTRANS_SERVER_KEY = "SB-Mid-server-test-key"
    settings.MIDTRANS_CLIENT_KEY = "SB-Mid-client-test-key"


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_api.py → e2e (HTTP request through the URLconf)
    - test_*_service.py, test_services.py, test_tasks.py, test_webhooks.py → integration
    - test_models.py, test_filters.py, test_state_transitions.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_api.py"]

    integration_patterns = [
        "test_services.py",
        "test_tasks.py",
        "test_webhooks.py",
        "test_escrow_service.py",
        "test_payout_service.py",
        "test_tier_service.py",
        "test_audit.py",
        "test_exception_handler.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_filters.py",
        "test_exceptions.py",
        "test_state_transitions.py",
        "test_midtrans_adapter.py",
        "test_locks.py",
    ]

    for item in items:
        # Skip if test already has unit/integration/e2e marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


def _patch_postgresql_flush_for_cascade():
    """
    Patch PostgreSQL flush to always use CASCADE.

    TransactionTestCase (the threaded payout test) resets the database
    with TRUNCATE, which fails on tables referenced by foreign keys
    unless CASCADE is used.
    """
    from django.db.backends.postgresql import operations

    original_sql_flush = operations.DatabaseOperations.sql_flush

    def sql_flush_with_cascade(
        self, style, tables, *, reset_sequences=False, allow_cascade=False
    ):
        return original_sql_flush(
            self, style, tables, reset_sequences=reset_sequences, allow_cascade=True
        )

    operations.DatabaseOperations.sql_flush = sql_flush_with_cascade


_patch_postgresql_flush_for_cascade()


# =============================================================================
# Project-wide Fixtures
# =============================================================================


@pytest.fixture
def client_user(db):
    """A CLIENT account."""
    from authentication.tests.factories import ClientFactory

    return ClientFactory()


@pytest.fixture
def freelancer(db):
    """A FREELANCER account (its FreelancerProfile is created by signal)."""
    from authentication.tests.factories import FreelancerFactory

    return FreelancerFactory()


@pytest.fixture
def admin_user(db):
    """A platform admin."""
    from authentication.tests.factories import AdminFactory

    return AdminFactory()


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def auth_client():
    """
    Build a DRF test client authenticated as the given user.

    Usage:
        response = auth_client(client_user).post(url, data, format="json")
    """
    from rest_framework.test import APIClient

    def _build(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _build


@pytest.fixture(autouse=True)
def clear_cache():
    """Empty the locmem cache so cached lookups never leak between tests."""
    from django.core.cache import cache

    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def fake_redis(mocker):
    """
    Redis connection double for DistributedLock.

    set() succeeds by default; set fake_redis.set.return_value = False
    to simulate a lock held by another process.
    """
    redis = mocker.MagicMock()
    redis.set.return_value = True
    redis.eval.return_value = 1
    mocker.patch("payments.locks.get_redis_connection", return_value=redis)
    return redis
