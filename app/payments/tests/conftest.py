"""
Pytest fixtures for payment tests.

This module provides fixtures for escrow and wallet tests: an assigned
project between the shared ``employer`` and ``contractor`` fixtures,
escrow rows in each interesting state, and a gateway double that stands
in for ZarinPalAdapter.

Usage:
    def test_release(held_escrow, gateway):
        result = EscrowService(gateway=gateway).release(held_escrow.id)
        assert result.success
"""

import pytest

from payments.adapters import PaymentRequestResult, VerificationResult, ZarinPalAdapter
from payments.tests.factories import EscrowTransactionFactory
from projects.tests.factories import MilestoneFactory, ProjectFactory


# =============================================================================
# Projects
# =============================================================================


@pytest.fixture
def project(db, employer, contractor):
    """An assigned project between ``employer`` and ``contractor``."""
    return ProjectFactory(employer=employer, contractor=contractor)


@pytest.fixture
def milestone(db, project):
    """A 1,000,000 Rial milestone of ``project``."""
    return MilestoneFactory(project=project, amount=1_000_000)


# =============================================================================
# Escrow State Fixtures
# =============================================================================


@pytest.fixture
def pending_escrow(db, milestone):
    """Pending escrow with a gateway authority, waiting for the callback."""
    return EscrowTransactionFactory(milestone=milestone, authority="A00000000000000000000000000000123456")


@pytest.fixture
def held_escrow(db, milestone):
    """Escrow verified by the gateway and held."""
    return EscrowTransactionFactory(milestone=milestone, held=True)


# =============================================================================
# Gateway Double
# =============================================================================


@pytest.fixture
def gateway(mocker):
    """
    Stand-in for ZarinPalAdapter.

    request_payment returns authority A...123456 and verify_payment returns
    RefID 201 unless a test overrides them.
    """
    mock = mocker.MagicMock(spec=ZarinPalAdapter)
    mock.request_payment.return_value = PaymentRequestResult(
        authority="A00000000000000000000000000000123456",
        payment_url="https://sandbox.zarinpal.com/pg/StartPay/A00000000000000000000000000000123456",
        raw_response={"Status": 100, "Authority": "A00000000000000000000000000000123456"},
    )
    mock.verify_payment.return_value = VerificationResult(
        ref_id="201",
        status=100,
        raw_response={"Status": 100, "RefID": 201},
    )
    return mock
