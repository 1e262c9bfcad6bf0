"""
Root pytest configuration for the Django project.

This module configures pytest-django and provides the marketplace parties
used across apps. App-specific fixtures (projects, escrow rows, gateway
doubles) are defined in each app's tests/conftest.py.
"""

import os

import django
import pytest

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
os.environ.setdefault("SECRET_KEY", "test-secret-key")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # Test client talks plain HTTP
    settings.SECURE_SSL_REDIRECT = False

    # Use fast password hasher for tests (PBKDF2 is too slow with 870K iterations)
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_views.py, test_services.py, test_processor.py, ... -> integration
    - test_models.py, test_state_transitions.py, ... -> unit
    - Unmatched files -> integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_escrow_service.py",
        "test_wallet_ledger.py",
        "test_processor.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_managers.py",
        "test_state_transitions.py",
        "test_zarinpal_adapter.py",
        "test_split.py",
    ]

    for item in items:
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Parties
# =============================================================================


@pytest.fixture
def employer(db):
    from authentication.tests.factories import UserFactory

    return UserFactory()


@pytest.fixture
def contractor(db):
    from authentication.tests.factories import UserFactory

    return UserFactory(contractor=True)


@pytest.fixture
def arbitrator(db):
    from authentication.tests.factories import UserFactory

    return UserFactory(arbitrator=True)


@pytest.fixture
def admin_user(db):
    from authentication.tests.factories import UserFactory

    return UserFactory(admin=True)


# =============================================================================
# API Clients
# =============================================================================


def _client_for(user):
    from rest_framework.test import APIClient

    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def api_client():
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def employer_client(employer):
    return _client_for(employer)


@pytest.fixture
def contractor_client(contractor):
    return _client_for(contractor)


@pytest.fixture
def arbitrator_client(arbitrator):
    return _client_for(arbitrator)


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)
