"""
Tests for payments API views.

The gateway is replaced by patching ZarinPalAdapter's class methods, which
is what the views' services use by default.
"""

import pytest
from django.urls import reverse
from rest_framework import status

from payments.adapters import ZarinPalAdapter
from payments.models import EscrowTransaction, Wallet
from payments.state_machines import (
    EscrowTransactionState,
    WalletTransactionStatus,
    WalletTransactionType,
)
from payments.tests.factories import WalletFactory, WalletTransactionFactory


@pytest.fixture
def patched_gateway(mocker, gateway):
    mocker.patch.object(
        ZarinPalAdapter, "request_payment", gateway.request_payment
    )
    mocker.patch.object(ZarinPalAdapter, "verify_payment", gateway.verify_payment)
    return gateway


class TestAuthentication:
    @pytest.mark.parametrize(
        "url_name",
        ["payments:wallet", "payments:escrow_history", "payments:wallet_transactions"],
    )
    def test_requires_authentication(self, db, api_client, url_name):
        response = api_client.get(reverse(url_name))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestEscrowViews:
    def test_initiate_payment(self, employer_client, patched_gateway, project, milestone):
        response = employer_client.post(
            reverse("payments:escrow_create"),
            {"project_id": str(project.id), "milestone_id": str(milestone.id)},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["amount"] == 1_000_000
        assert "StartPay" in response.data["payment_url"]

    def test_initiate_duplicate_is_conflict(
        self, employer_client, patched_gateway, held_escrow
    ):
        response = employer_client.post(
            reverse("payments:escrow_create"),
            {
                "project_id": str(held_escrow.project_id),
                "milestone_id": str(held_escrow.milestone_id),
            },
            format="json",
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "DUPLICATE_MILESTONE_PAYMENT"

    def test_initiate_by_contractor_forbidden(
        self, contractor_client, patched_gateway, project, milestone
    ):
        response = contractor_client.post(
            reverse("payments:escrow_create"),
            {"project_id": str(project.id), "milestone_id": str(milestone.id)},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_verify(self, employer_client, patched_gateway, pending_escrow):
        response = employer_client.post(
            reverse("payments:escrow_verify"),
            {
                "transaction_id": str(pending_escrow.id),
                "Authority": pending_escrow.authority,
                "Status": "OK",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["state"] == EscrowTransactionState.HELD

    def test_verify_unknown_authority(self, employer_client, patched_gateway, pending_escrow):
        response = employer_client.post(
            reverse("payments:escrow_verify"),
            {
                "transaction_id": str(pending_escrow.id),
                "Authority": "Aunknown",
                "Status": "OK",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_release_and_double_release(self, employer_client, held_escrow, contractor):
        url = reverse("payments:escrow_release", kwargs={"pk": held_escrow.id})

        first = employer_client.post(url, {}, format="json")
        second = employer_client.post(url, {}, format="json")

        assert first.status_code == status.HTTP_200_OK
        assert second.status_code == status.HTTP_409_CONFLICT
        assert second.data["error_code"] == "INVALID_TRANSACTION_STATE"
        assert Wallet.objects.get(user=contractor).balance == 1_000_000

    def test_release_amount_in_body_is_ignored(self, employer_client, held_escrow, contractor):
        """
        Given a held escrow of 1,000,000
        When the employer posts a release with an amount three times
        Then the full amount is paid exactly once
        """
        url = reverse("payments:escrow_release", kwargs={"pk": held_escrow.id})

        responses = [
            employer_client.post(url, {"amount": 900_000}, format="json") for _ in range(3)
        ]

        assert [r.status_code for r in responses] == [
            status.HTTP_200_OK,
            status.HTTP_409_CONFLICT,
            status.HTTP_409_CONFLICT,
        ]
        assert Wallet.objects.get(user=contractor).balance == 1_000_000
        assert (
            EscrowTransaction.objects.get(pk=held_escrow.pk).state
            == EscrowTransactionState.RELEASED
        )

    def test_release_by_contractor_forbidden(self, contractor_client, held_escrow):
        url = reverse("payments:escrow_release", kwargs={"pk": held_escrow.id})

        response = contractor_client.post(url, {}, format="json")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert (
            EscrowTransaction.objects.get(pk=held_escrow.pk).state
            == EscrowTransactionState.HELD
        )

    def test_history(self, contractor_client, held_escrow):
        response = contractor_client.get(reverse("payments:escrow_history"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["count"] == 1
        assert response.data["results"][0]["id"] == str(held_escrow.id)

    def test_stats(self, employer_client, held_escrow):
        response = employer_client.get(reverse("payments:escrow_stats"))

        assert response.data["total_in_escrow"] == 1_000_000


class TestWalletViews:
    def test_wallet_created_on_first_access(self, employer_client, employer):
        response = employer_client.get(reverse("payments:wallet"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["balance"] == 0
        assert Wallet.objects.filter(user=employer).exists()

    def test_wallet_shows_pending_withdrawals(self, employer_client, employer):
        wallet = WalletFactory(user=employer, balance=300_000)
        WalletTransactionFactory(wallet=wallet, amount=100_000)

        response = employer_client.get(reverse("payments:wallet"))

        assert response.data["balance"] == 300_000
        assert response.data["pending_withdrawals"] == 100_000

    def test_transactions_filtered_by_status(self, employer_client, employer):
        wallet = WalletFactory(user=employer, balance=300_000)
        WalletTransactionFactory(wallet=wallet)
        WalletTransactionFactory(wallet=wallet, status=WalletTransactionStatus.CANCELLED)

        response = employer_client.get(
            reverse("payments:wallet_transactions"), {"status": "pending"}
        )

        assert response.data["count"] == 1

    def test_deposit_below_minimum_is_bad_request(self, employer_client, patched_gateway):
        response = employer_client.post(
            reverse("payments:wallet_deposit"), {"amount": 500}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        patched_gateway.request_payment.assert_not_called()

    def test_deposit_flow(self, employer_client, patched_gateway, employer):
        initiated = employer_client.post(
            reverse("payments:wallet_deposit"), {"amount": 50_000}, format="json"
        )
        verified = employer_client.post(
            reverse("payments:wallet_deposit_verify"),
            {"Authority": initiated.data["authority"], "Status": "OK"},
            format="json",
        )

        assert initiated.status_code == status.HTTP_201_CREATED
        assert verified.status_code == status.HTTP_200_OK
        assert Wallet.objects.get(user=employer).balance == 50_000

    def test_withdraw_insufficient_balance(self, employer_client, employer):
        WalletFactory(user=employer, balance=60_000)

        response = employer_client.post(
            reverse("payments:wallet_withdraw"),
            {"amount": 100_000, "bank_account": "IR82", "account_holder": "Ali"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INSUFFICIENT_BALANCE"

    def test_admin_approves_withdrawal(self, admin_client, employer):
        wallet = WalletFactory(user=employer, balance=150_000)
        pending = WalletTransactionFactory(wallet=wallet, amount=100_000)

        response = admin_client.post(
            reverse("payments:withdrawal_approve", kwargs={"pk": pending.pk}),
            {"admin_note": "done"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert Wallet.objects.get(pk=wallet.pk).balance == 50_000

    def test_non_admin_cannot_reject(self, employer_client, employer):
        wallet = WalletFactory(user=employer, balance=150_000)
        pending = WalletTransactionFactory(wallet=wallet, amount=100_000)

        response = employer_client.post(
            reverse("payments:withdrawal_reject", kwargs={"pk": pending.pk}),
            {},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestWithdrawalQueue:
    def test_admin_sees_only_pending_withdrawals(self, admin_client, employer, contractor):
        first = WalletTransactionFactory(wallet=WalletFactory(user=employer, balance=150_000))
        second = WalletTransactionFactory(
            wallet=WalletFactory(user=contractor, balance=200_000), amount=200_000
        )
        WalletTransactionFactory(wallet=first.wallet, status=WalletTransactionStatus.COMPLETED)
        WalletTransactionFactory(
            wallet=first.wallet,
            transaction_type=WalletTransactionType.DEPOSIT,
            metadata={},
        )

        response = admin_client.get(reverse("payments:withdrawal_queue"))

        assert response.status_code == status.HTTP_200_OK
        assert [row["id"] for row in response.data["results"]] == [
            str(first.id),
            str(second.id),
        ]
        row = response.data["results"][0]
        assert row["user_id"] == employer.pk
        assert row["user_email"] == employer.email
        assert row["bank_account"] == "IR820540102680020817909002"
        assert row["account_holder"] == "Test User"

    def test_non_admin_forbidden(self, employer_client, employer):
        WalletTransactionFactory(wallet=WalletFactory(user=employer, balance=150_000))

        response = employer_client.get(reverse("payments:withdrawal_queue"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_requires_authentication(self, db, api_client):
        response = api_client.get(reverse("payments:withdrawal_queue"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
