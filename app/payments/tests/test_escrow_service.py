"""
Tests for EscrowService.

Tests cover:
- Pending transaction creation and the duplicate-milestone guard
- Gateway payment request with compensating delete on failure
- Gateway callback verification (hold / fail / not found)
- Full release and refund, and split settlement
- Double release protection
"""

import pytest
from django.db import transaction

from payments.exceptions import ZarinPalError, ZarinPalTimeoutError
from payments.ledger.exceptions import InvalidAmount
from payments.models import EscrowTransaction, Wallet, WalletTransaction
from payments.services import EscrowService
from payments.state_machines import EscrowTransactionState, WalletTransactionType
from payments.tests.factories import EscrowTransactionFactory
from projects.models import Milestone, MilestoneStatus, Project, ProjectStatus
from projects.tests.factories import MilestoneFactory, ProjectFactory


def wallet_balance(user) -> int:
    wallet = Wallet.objects.filter(user=user).first()
    return wallet.balance if wallet else 0


# =============================================================================
# create_pending_transaction
# =============================================================================


class TestCreatePendingTransaction:
    def test_creates_pending_row(self, gateway, project, milestone, employer, contractor):
        result = EscrowService(gateway=gateway).create_pending_transaction(
            project.id, milestone.id, employer.pk, contractor.pk, 1_000_000
        )

        assert result.success
        escrow = result.data
        assert escrow.state == EscrowTransactionState.PENDING
        assert escrow.amount == 1_000_000
        assert escrow.payment_date is None

    def test_duplicate_rejected_when_milestone_already_held(
        self, gateway, held_escrow, employer, contractor
    ):
        """
        Given a milestone with a held escrow transaction
        When another pending transaction is created for it
        Then DUPLICATE_MILESTONE_PAYMENT is returned and nothing is created
        """
        # Arrange
        before = EscrowTransaction.objects.count()

        # Act
        result = EscrowService(gateway=gateway).create_pending_transaction(
            held_escrow.project_id,
            held_escrow.milestone_id,
            employer.pk,
            contractor.pk,
            held_escrow.amount,
        )

        # Assert
        assert not result.success
        assert result.error_code == "DUPLICATE_MILESTONE_PAYMENT"
        assert EscrowTransaction.objects.count() == before

    def test_duplicate_rejected_when_milestone_already_released(
        self, gateway, milestone, employer, contractor
    ):
        escrow = EscrowTransactionFactory(milestone=milestone, held=True)
        escrow.release()
        escrow.save()

        result = EscrowService(gateway=gateway).create_pending_transaction(
            milestone.project_id, milestone.id, employer.pk, contractor.pk, milestone.amount
        )

        assert result.error_code == "DUPLICATE_MILESTONE_PAYMENT"

    def test_retry_allowed_after_failed_or_pending_attempt(
        self, gateway, milestone, employer, contractor
    ):
        failed = EscrowTransactionFactory(milestone=milestone)
        failed.fail(reason="cancelled")
        failed.save()
        EscrowTransactionFactory(milestone=milestone)

        result = EscrowService(gateway=gateway).create_pending_transaction(
            milestone.project_id, milestone.id, employer.pk, contractor.pk, milestone.amount
        )

        assert result.success

    def test_contractor_not_assigned(self, gateway, employer):
        project = ProjectFactory(employer=employer, contractor=None, status=ProjectStatus.OPEN)
        milestone = MilestoneFactory(project=project)

        result = EscrowService(gateway=gateway).create_pending_transaction(
            project.id, milestone.id, employer.pk, None, milestone.amount
        )

        assert not result.success
        assert result.error_code == "CONTRACTOR_NOT_ASSIGNED"

    def test_milestone_of_other_project_not_found(
        self, gateway, project, employer, contractor
    ):
        other_milestone = MilestoneFactory()

        result = EscrowService(gateway=gateway).create_pending_transaction(
            project.id, other_milestone.id, employer.pk, contractor.pk, 1_000
        )

        assert result.error_code == "MILESTONE_NOT_FOUND"

    @pytest.mark.parametrize("amount", [0, -10])
    def test_invalid_amount(self, gateway, project, milestone, employer, contractor, amount):
        result = EscrowService(gateway=gateway).create_pending_transaction(
            project.id, milestone.id, employer.pk, contractor.pk, amount
        )

        assert result.error_code == "INVALID_AMOUNT"


# =============================================================================
# request_gateway_payment / initiate_milestone_payment
# =============================================================================


class TestRequestGatewayPayment:
    def test_stores_authority(self, gateway, milestone):
        escrow = EscrowTransactionFactory(milestone=milestone, authority=None)

        result = EscrowService(gateway=gateway).request_gateway_payment(
            escrow, "Milestone 1", "http://localhost:8080/cb"
        )

        assert result.success
        escrow = EscrowTransaction.objects.get(pk=escrow.pk)
        assert escrow.authority == "A00000000000000000000000000000123456"

    @pytest.mark.parametrize(
        "error",
        [
            ZarinPalError("Merchant invalid", gateway_status=-2),
            ZarinPalTimeoutError("timed out"),
        ],
    )
    def test_gateway_failure_deletes_pending_row(self, gateway, milestone, error):
        """No payment was started, so the pending row must not survive."""
        escrow = EscrowTransactionFactory(milestone=milestone, authority=None)
        gateway.request_payment.side_effect = error

        result = EscrowService(gateway=gateway).request_gateway_payment(
            escrow, "Milestone 1", "http://localhost:8080/cb"
        )

        assert not result.success
        assert not EscrowTransaction.objects.filter(pk=escrow.pk).exists()

    def test_invalid_request_params_delete_pending_row(self, gateway, milestone):
        escrow = EscrowTransactionFactory(milestone=milestone, authority=None)

        result = EscrowService(gateway=gateway).request_gateway_payment(
            escrow, "Milestone 1", callback_url=""
        )

        assert result.error_code == "GATEWAY_ERROR"
        assert not EscrowTransaction.objects.filter(pk=escrow.pk).exists()
        gateway.request_payment.assert_not_called()

    def test_unexpected_gateway_error_deletes_pending_row(self, gateway, milestone):
        escrow = EscrowTransactionFactory(milestone=milestone, authority=None)
        gateway.request_payment.side_effect = KeyError("Authority")

        result = EscrowService(gateway=gateway).request_gateway_payment(
            escrow, "Milestone 1", "http://localhost:8080/cb"
        )

        assert not result.success
        assert result.error_code == "GATEWAY_ERROR"
        assert not EscrowTransaction.objects.filter(pk=escrow.pk).exists()


class TestInitiateMilestonePayment:
    def test_success_returns_payment_url(self, settings, gateway, employer, project, milestone):
        settings.FRONTEND_URL = "https://zemano.test"

        result = EscrowService(gateway=gateway).initiate_milestone_payment(
            employer, project.id, milestone.id
        )

        assert result.success
        assert result.data.payment_url.startswith("https://sandbox.zarinpal.com/pg/StartPay/")
        params = gateway.request_payment.call_args[0][0]
        assert params.amount == milestone.amount
        assert params.callback_url == (
            "https://zemano.test/payment/escrow/callback"
            f"?transaction_id={result.data.transaction.id}"
        )

    def test_only_employer_may_pay(self, gateway, contractor, project, milestone):
        result = EscrowService(gateway=gateway).initiate_milestone_payment(
            contractor, project.id, milestone.id
        )

        assert result.error_code == "NOT_PROJECT_EMPLOYER"
        gateway.request_payment.assert_not_called()

    def test_gateway_failure_leaves_no_row(self, gateway, employer, project, milestone):
        gateway.request_payment.side_effect = ZarinPalError("down", gateway_status=-3)

        result = EscrowService(gateway=gateway).initiate_milestone_payment(
            employer, project.id, milestone.id
        )

        assert result.error_code == "GATEWAY_ERROR"
        assert not EscrowTransaction.objects.filter(milestone=milestone).exists()


# =============================================================================
# verify_and_hold
# =============================================================================


class TestVerifyAndHold:
    def test_success_holds_and_starts_project(self, gateway, pending_escrow, project):
        result = EscrowService(gateway=gateway).verify_and_hold(
            pending_escrow.id, pending_escrow.authority
        )

        assert result.success
        escrow = EscrowTransaction.objects.get(pk=pending_escrow.pk)
        assert escrow.state == EscrowTransactionState.HELD
        assert escrow.ref_id == "201"
        assert escrow.payment_date is not None
        assert Project.objects.get(pk=project.pk).status == ProjectStatus.IN_PROGRESS
        gateway.verify_payment.assert_called_once_with(pending_escrow.authority, 1_000_000)

    def test_project_status_only_advances_from_assigned(self, gateway, pending_escrow, project):
        Project.objects.filter(pk=project.pk).update(status=ProjectStatus.DISPUTED)

        EscrowService(gateway=gateway).verify_and_hold(
            pending_escrow.id, pending_escrow.authority
        )

        assert Project.objects.get(pk=project.pk).status == ProjectStatus.DISPUTED

    def test_cancelled_callback_fails_without_gateway_call(self, gateway, pending_escrow):
        result = EscrowService(gateway=gateway).verify_and_hold(
            pending_escrow.id, pending_escrow.authority, gateway_status="NOK"
        )

        assert result.error_code == "PAYMENT_CANCELLED"
        assert (
            EscrowTransaction.objects.get(pk=pending_escrow.pk).state
            == EscrowTransactionState.FAILED
        )
        gateway.verify_payment.assert_not_called()

    def test_rejected_verification_fails_transaction(self, gateway, pending_escrow):
        gateway.verify_payment.side_effect = ZarinPalError("mismatch", gateway_status=-33)

        result = EscrowService(gateway=gateway).verify_and_hold(
            pending_escrow.id, pending_escrow.authority
        )

        assert not result.success
        assert result.details["gateway_status"] == -33
        escrow = EscrowTransaction.objects.get(pk=pending_escrow.pk)
        assert escrow.state == EscrowTransactionState.FAILED
        assert escrow.failure_reason == "mismatch"

    def test_wrong_authority_not_found(self, gateway, pending_escrow):
        result = EscrowService(gateway=gateway).verify_and_hold(pending_escrow.id, "Aforged")

        assert result.error_code == "TRANSACTION_NOT_FOUND"
        gateway.verify_payment.assert_not_called()

    def test_replayed_callback_not_found(self, gateway, pending_escrow):
        service = EscrowService(gateway=gateway)
        service.verify_and_hold(pending_escrow.id, pending_escrow.authority)

        result = service.verify_and_hold(pending_escrow.id, pending_escrow.authority)

        assert result.error_code == "TRANSACTION_NOT_FOUND"
        assert gateway.verify_payment.call_count == 1

    def test_no_wallet_is_touched(self, gateway, pending_escrow, employer, contractor):
        EscrowService(gateway=gateway).verify_and_hold(pending_escrow.id, pending_escrow.authority)

        assert not WalletTransaction.objects.exists()


# =============================================================================
# release / refund
# =============================================================================


class TestRelease:
    def test_full_release(self, gateway, held_escrow, contractor, employer):
        result = EscrowService(gateway=gateway).release(held_escrow.id, actor=employer)

        assert result.success
        escrow = EscrowTransaction.objects.get(pk=held_escrow.pk)
        assert escrow.state == EscrowTransactionState.RELEASED
        assert escrow.release_date is not None
        assert wallet_balance(contractor) == 1_000_000
        assert Milestone.objects.get(pk=held_escrow.milestone_id).status == MilestoneStatus.COMPLETED

        entry = WalletTransaction.objects.get(wallet__user=contractor)
        assert entry.transaction_type == WalletTransactionType.EARNING
        assert entry.escrow_transaction_id == held_escrow.id

    def test_no_double_release(self, gateway, held_escrow, contractor):
        """
        Given a held transaction released once
        When release is called again
        Then it fails with INVALID_TRANSACTION_STATE and the wallet holds one credit
        """
        service = EscrowService(gateway=gateway)
        first = service.release(held_escrow.id)

        second = service.release(held_escrow.id)

        assert first.success
        assert not second.success
        assert second.error_code == "INVALID_TRANSACTION_STATE"
        assert wallet_balance(contractor) == 1_000_000
        assert WalletTransaction.objects.filter(wallet__user=contractor).count() == 1
        wallet = Wallet.objects.get(user=contractor)
        assert wallet.total_earned == 1_000_000

    def test_repeated_release_pays_once(self, gateway, held_escrow, contractor):
        """
        Given a held transaction of 1,000,000
        When release is called three times
        Then only the first succeeds and the contractor holds 1,000,000
        """
        service = EscrowService(gateway=gateway)

        results = [service.release(held_escrow.id) for _ in range(3)]

        assert [r.success for r in results] == [True, False, False]
        assert wallet_balance(contractor) == 1_000_000
        assert EscrowService.stats(contractor)["total_received"] == 1_000_000

    def test_release_has_no_partial_amount(self, gateway, held_escrow):
        with pytest.raises(TypeError):
            EscrowService(gateway=gateway).release(held_escrow.id, amount=400_000)

    def test_pending_cannot_be_released(self, gateway, pending_escrow, contractor):
        result = EscrowService(gateway=gateway).release(pending_escrow.id)

        assert result.error_code == "INVALID_TRANSACTION_STATE"
        assert result.details["current_state"] == EscrowTransactionState.PENDING
        assert not Wallet.objects.filter(user=contractor).exists()

    def test_contractor_cannot_release(self, gateway, held_escrow, contractor):
        result = EscrowService(gateway=gateway).release(held_escrow.id, actor=contractor)

        assert result.error_code == "NOT_TRANSACTION_PARTY"
        assert wallet_balance(contractor) == 0

    def test_admin_can_release(self, gateway, held_escrow, admin_user):
        result = EscrowService(gateway=gateway).release(held_escrow.id, actor=admin_user)

        assert result.success

    def test_unknown_transaction(self, gateway, db):
        import uuid

        result = EscrowService(gateway=gateway).release(uuid.uuid4())

        assert result.error_code == "TRANSACTION_NOT_FOUND"


class TestRefund:
    def test_full_refund(self, gateway, held_escrow, employer, contractor):
        result = EscrowService(gateway=gateway).refund(held_escrow.id)

        assert result.success
        assert (
            EscrowTransaction.objects.get(pk=held_escrow.pk).state
            == EscrowTransactionState.REFUNDED
        )
        assert wallet_balance(employer) == 1_000_000
        assert wallet_balance(contractor) == 0
        entry = WalletTransaction.objects.get(wallet__user=employer)
        assert entry.transaction_type == WalletTransactionType.REFUND

    def test_release_after_refund_rejected(self, gateway, held_escrow, employer, contractor):
        service = EscrowService(gateway=gateway)
        service.refund(held_escrow.id)

        result = service.release(held_escrow.id)

        assert result.error_code == "INVALID_TRANSACTION_STATE"
        assert wallet_balance(employer) == 1_000_000
        assert wallet_balance(contractor) == 0

    def test_refund_after_release_rejected(self, gateway, held_escrow, employer):
        service = EscrowService(gateway=gateway)
        service.release(held_escrow.id)

        result = service.refund(held_escrow.id)

        assert result.error_code == "INVALID_TRANSACTION_STATE"
        assert wallet_balance(employer) == 0


class TestSplitLocked:
    def _split(self, escrow, contractor_amount):
        with transaction.atomic():
            locked = EscrowTransaction.objects.select_for_update().get(pk=escrow.pk)
            return EscrowService.split_locked(locked, contractor_amount)

    def test_credits_add_up_to_amount(self, held_escrow, employer, contractor):
        employer_part = self._split(held_escrow, 700_000)

        assert employer_part == 300_000
        assert wallet_balance(contractor) == 700_000
        assert wallet_balance(employer) == 300_000
        escrow = EscrowTransaction.objects.get(pk=held_escrow.pk)
        assert escrow.state == EscrowTransactionState.SPLIT
        assert escrow.release_date is not None

    def test_zero_side_gets_no_ledger_row(self, held_escrow, employer, contractor):
        self._split(held_escrow, 1_000_000)

        assert wallet_balance(contractor) == 1_000_000
        assert not WalletTransaction.objects.filter(wallet__user=employer).exists()

    def test_split_escrow_cannot_be_released_again(
        self, gateway, held_escrow, employer, contractor
    ):
        self._split(held_escrow, 600_000)

        result = EscrowService(gateway=gateway).release(held_escrow.id)

        assert result.error_code == "INVALID_TRANSACTION_STATE"
        assert wallet_balance(contractor) + wallet_balance(employer) == 1_000_000

    @pytest.mark.parametrize("contractor_amount", [-1, 1_000_001])
    def test_share_outside_amount_rejected(self, held_escrow, contractor_amount):
        with pytest.raises(InvalidAmount):
            self._split(held_escrow, contractor_amount)

        assert (
            EscrowTransaction.objects.get(pk=held_escrow.pk).state
            == EscrowTransactionState.HELD
        )
        assert not WalletTransaction.objects.exists()


# =============================================================================
# Queries
# =============================================================================


class TestHistoryAndStats:
    def test_history_only_includes_own_transactions(self, held_escrow, employer, contractor):
        EscrowTransactionFactory()

        assert list(EscrowService.history(employer)) == [held_escrow]
        assert list(EscrowService.history(contractor)) == [held_escrow]

    def test_stats(self, gateway, held_escrow, employer, contractor):
        assert EscrowService.stats(employer)["total_in_escrow"] == 1_000_000

        EscrowService(gateway=gateway).release(held_escrow.id)

        assert EscrowService.stats(employer) == {
            "total_sent": 1_000_000,
            "total_received": 0,
            "total_in_escrow": 0,
        }
        assert EscrowService.stats(contractor)["total_received"] == 1_000_000
