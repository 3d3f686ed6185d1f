"""
Project-wide pytest configuration.

This module adjusts settings for tests and provides fixtures shared by
every app:
- api_client: Unauthenticated APIClient
- authenticated_client_factory: Build an APIClient authenticated as a user
- A connection registry reset between tests

App-specific fixtures are defined in each app's tests/conftest.py.
"""

import django
import pytest


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

    # No Redis in tests: in-process channel layer and cache
    settings.CHANNEL_LAYERS = {
        "default": {"BACKEND": "channels.layers.InMemoryChannelLayer"},
    }
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
    }
    settings.SECURE_SSL_REDIRECT = False

    # Run Celery tasks inline when called with .delay()
    settings.CELERY_TASK_ALWAYS_EAGER = True


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_views.py, test_services.py, test_consumers.py, etc. → integration
    - test_models.py, test_serializers.py, test_registry.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_tasks.py",
        "test_permissions.py",
        "test_consumers.py",
        "test_exceptions.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_serializers.py",
        "test_managers.py",
        "test_registry.py",
        "test_helpers.py",
    ]

    for item in items:
        # Skip if test already has unit/integration marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            # Default: integration (safe for Django where most tests hit DB)
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_connection_registry():
    """
    Empty the process-wide connection registry around every test.

    Tests may swap the registry's sender; the original is restored.
    """
    from chat.registry import connection_registry

    original_sender = connection_registry.sender
    connection_registry.clear()
    yield
    connection_registry.clear()
    connection_registry.sender = original_sender


@pytest.fixture
def api_client():
    """Return unauthenticated API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def authenticated_client_factory(db):
    """
    Return a function that builds an APIClient authenticated as a user.

    Each call returns a new client, so several users can be active in one
    test.

    Usage:
        def test_example(authenticated_client_factory, alice):
            client = authenticated_client_factory(alice)
    """
    from rest_framework.test import APIClient
    from rest_framework_simplejwt.tokens import RefreshToken

    def make_client(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return make_client
