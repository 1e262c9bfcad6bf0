"""
Pytest fixtures for ZarinPal adapter tests.

The adapter talks to the gateway through ``requests.post``; these fixtures
patch it and build fake gateway responses.
"""

import pytest
import requests


@pytest.fixture(autouse=True)
def zarinpal_settings(settings):
    settings.ZARINPAL_MERCHANT_ID = "test-merchant-0000"
    settings.ZARINPAL_SANDBOX = True
    settings.ZARINPAL_TIMEOUT_SECONDS = 10
    return settings


@pytest.fixture
def mock_post(mocker):
    """Patch requests.post as seen by the adapter module."""
    return mocker.patch("payments.adapters.zarinpal_adapter.requests.post")


@pytest.fixture
def gateway_response(mocker):
    """Build a fake requests.Response whose .json() returns ``body``."""

    def _build(body):
        response = mocker.MagicMock(spec=requests.Response)
        response.json.return_value = body
        return response

    return _build
