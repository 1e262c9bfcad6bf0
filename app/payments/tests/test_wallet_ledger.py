"""
Tests for WalletLedgerService.

Tests cover:
- credit/debit primitives and accumulator rules
- InvalidAmount and InsufficientBalance handling
- Two-phase gateway deposits
- Withdrawal requests and admin decisions
"""

import pytest

from notifications.models import Notification
from payments.exceptions import ZarinPalError
from payments.ledger import InsufficientBalance, InvalidAmount
from payments.ledger.services import WalletLedgerService
from payments.models import Wallet, WalletTransaction
from payments.state_machines import WalletTransactionStatus, WalletTransactionType
from payments.tests.factories import WalletFactory, WalletTransactionFactory


# =============================================================================
# credit / debit
# =============================================================================


class TestCredit:
    def test_creates_wallet_lazily(self, contractor):
        assert not Wallet.objects.filter(user=contractor).exists()

        entry = WalletLedgerService.credit(
            contractor, 250_000, WalletTransactionType.EARNING, "Milestone 1"
        )

        wallet = Wallet.objects.get(user=contractor)
        assert wallet.balance == 250_000
        assert entry.status == WalletTransactionStatus.COMPLETED
        assert entry.processed_at is not None

    def test_earning_increments_total_earned(self, contractor):
        WalletFactory(user=contractor, balance=100)

        WalletLedgerService.credit(contractor, 900, WalletTransactionType.EARNING)

        wallet = Wallet.objects.get(user=contractor)
        assert wallet.balance == 1_000
        assert wallet.total_earned == 900

    def test_refund_does_not_count_as_earning(self, employer):
        WalletLedgerService.credit(employer, 500, WalletTransactionType.REFUND)

        wallet = Wallet.objects.get(user=employer)
        assert wallet.balance == 500
        assert wallet.total_earned == 0

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_amount_rejected(self, contractor, amount):
        with pytest.raises(InvalidAmount):
            WalletLedgerService.credit(contractor, amount, WalletTransactionType.EARNING)

        assert not WalletTransaction.objects.exists()

    def test_every_balance_change_has_a_ledger_row(self, contractor):
        for amount in (100, 200, 300):
            WalletLedgerService.credit(contractor, amount, WalletTransactionType.DEPOSIT)

        wallet = Wallet.objects.get(user=contractor)
        total = sum(wallet.transactions.values_list("amount", flat=True))
        assert wallet.balance == total == 600


class TestDebit:
    def test_payment_increments_total_spent(self, employer):
        WalletFactory(user=employer, balance=1_000)

        WalletLedgerService.debit(employer, 400, WalletTransactionType.PAYMENT)

        wallet = Wallet.objects.get(user=employer)
        assert wallet.balance == 600
        assert wallet.total_spent == 400

    def test_withdrawal_does_not_count_as_spent(self, employer):
        WalletFactory(user=employer, balance=1_000)

        WalletLedgerService.debit(employer, 400, WalletTransactionType.WITHDRAWAL)

        assert Wallet.objects.get(user=employer).total_spent == 0

    def test_insufficient_balance_leaves_wallet_unchanged(self, employer):
        """
        Given a wallet holding 100,000 Rials
        When 100,001 Rials are debited
        Then InsufficientBalance is raised and nothing changes
        """
        # Arrange
        WalletFactory(user=employer, balance=100_000)

        # Act
        with pytest.raises(InsufficientBalance) as exc_info:
            WalletLedgerService.debit(employer, 100_001, WalletTransactionType.WITHDRAWAL)

        # Assert
        assert exc_info.value.required == 100_001
        assert exc_info.value.available == 100_000
        assert Wallet.objects.get(user=employer).balance == 100_000
        assert not WalletTransaction.objects.exists()

    def test_exact_balance_can_be_debited(self, employer):
        WalletFactory(user=employer, balance=5_000)

        WalletLedgerService.debit(employer, 5_000, WalletTransactionType.WITHDRAWAL)

        assert Wallet.objects.get(user=employer).balance == 0


# =============================================================================
# Deposits
# =============================================================================


class TestDeposit:
    def test_initiate_creates_pending_row_without_credit(self, settings, gateway, employer):
        settings.WALLET_MIN_DEPOSIT = 10_000

        result = WalletLedgerService(gateway=gateway).initiate_deposit(employer, 50_000)

        assert result.success
        entry = result.data.transaction
        assert entry.status == WalletTransactionStatus.PENDING
        assert entry.reference_id == "A00000000000000000000000000000123456"
        assert Wallet.objects.get(user=employer).balance == 0

    def test_initiate_below_minimum(self, settings, gateway, employer):
        settings.WALLET_MIN_DEPOSIT = 10_000

        result = WalletLedgerService(gateway=gateway).initiate_deposit(employer, 9_999)

        assert result.error_code == "INVALID_AMOUNT"
        gateway.request_payment.assert_not_called()

    def test_initiate_gateway_failure_writes_nothing(self, gateway, employer):
        gateway.request_payment.side_effect = ZarinPalError("down", gateway_status=-1)

        result = WalletLedgerService(gateway=gateway).initiate_deposit(employer, 50_000)

        assert result.error_code == "GATEWAY_ERROR"
        assert not WalletTransaction.objects.exists()

    def test_verify_credits_once(self, gateway, employer):
        service = WalletLedgerService(gateway=gateway)
        initiated = service.initiate_deposit(employer, 50_000)
        authority = initiated.data.authority

        first = service.verify_deposit(employer, authority)
        second = service.verify_deposit(employer, authority)

        assert first.success
        assert first.data.status == WalletTransactionStatus.COMPLETED
        assert first.data.metadata["ref_id"] == "201"
        assert second.error_code == "WALLET_TRANSACTION_NOT_FOUND"
        assert Wallet.objects.get(user=employer).balance == 50_000

    def test_verify_rejected_marks_failed(self, gateway, employer):
        service = WalletLedgerService(gateway=gateway)
        initiated = service.initiate_deposit(employer, 50_000)
        gateway.verify_payment.side_effect = ZarinPalError("unsuccessful", gateway_status=-22)

        result = service.verify_deposit(employer, initiated.data.authority)

        assert not result.success
        entry = WalletTransaction.objects.get(pk=initiated.data.transaction.pk)
        assert entry.status == WalletTransactionStatus.FAILED
        assert Wallet.objects.get(user=employer).balance == 0

    def test_verify_cancelled_callback(self, gateway, employer):
        service = WalletLedgerService(gateway=gateway)
        initiated = service.initiate_deposit(employer, 50_000)

        result = service.verify_deposit(employer, initiated.data.authority, gateway_status="NOK")

        assert result.error_code == "PAYMENT_CANCELLED"
        gateway.verify_payment.assert_not_called()

    def test_other_users_deposit_not_found(self, gateway, employer, contractor):
        service = WalletLedgerService(gateway=gateway)
        initiated = service.initiate_deposit(employer, 50_000)

        result = service.verify_deposit(contractor, initiated.data.authority)

        assert result.error_code == "WALLET_TRANSACTION_NOT_FOUND"


# =============================================================================
# Withdrawals
# =============================================================================


class TestWithdrawal:
    def test_request_creates_pending_row_and_notifies_admins(
        self, settings, employer, admin_user
    ):
        settings.WALLET_MIN_WITHDRAWAL = 50_000
        WalletFactory(user=employer, balance=200_000)

        result = WalletLedgerService().request_withdrawal(
            employer, 100_000, "IR820540102680020817909002", "Ali Rezaei"
        )

        assert result.success
        assert result.data.status == WalletTransactionStatus.PENDING
        assert result.data.metadata["account_holder"] == "Ali Rezaei"
        assert Wallet.objects.get(user=employer).balance == 200_000
        assert Notification.objects.filter(recipient=admin_user).count() == 1

    def test_request_insufficient_balance(self, employer):
        WalletFactory(user=employer, balance=60_000)

        result = WalletLedgerService().request_withdrawal(employer, 100_000, "IR82", "Ali")

        assert result.error_code == "INSUFFICIENT_BALANCE"
        assert result.details["available"] == 60_000
        assert not WalletTransaction.objects.exists()

    def test_request_below_minimum(self, settings, employer):
        settings.WALLET_MIN_WITHDRAWAL = 50_000
        WalletFactory(user=employer, balance=60_000)

        result = WalletLedgerService().request_withdrawal(employer, 49_999, "IR82", "Ali")

        assert result.error_code == "INVALID_AMOUNT"

    def test_approve_debits_and_notifies(self, employer, admin_user):
        wallet = WalletFactory(user=employer, balance=150_000)
        pending = WalletTransactionFactory(wallet=wallet, amount=100_000)

        result = WalletLedgerService.approve_withdrawal(pending.pk, admin_user, "paid")

        assert result.success
        assert result.data.status == WalletTransactionStatus.COMPLETED
        assert result.data.metadata["admin_note"] == "paid"
        assert Wallet.objects.get(pk=wallet.pk).balance == 50_000
        assert Notification.objects.filter(recipient=employer).exists()

    def test_approve_rechecks_balance(self, employer, admin_user):
        wallet = WalletFactory(user=employer, balance=10_000)
        pending = WalletTransactionFactory(wallet=wallet, amount=100_000)

        result = WalletLedgerService.approve_withdrawal(pending.pk, admin_user)

        assert result.error_code == "INSUFFICIENT_BALANCE"
        assert WalletTransaction.objects.get(pk=pending.pk).status == WalletTransactionStatus.PENDING
        assert Wallet.objects.get(pk=wallet.pk).balance == 10_000

    def test_approve_twice_fails(self, employer, admin_user):
        wallet = WalletFactory(user=employer, balance=300_000)
        pending = WalletTransactionFactory(wallet=wallet, amount=100_000)

        WalletLedgerService.approve_withdrawal(pending.pk, admin_user)
        second = WalletLedgerService.approve_withdrawal(pending.pk, admin_user)

        assert second.error_code == "WALLET_TRANSACTION_NOT_FOUND"
        assert Wallet.objects.get(pk=wallet.pk).balance == 200_000

    def test_reject_cancels_without_debit(self, employer, admin_user):
        wallet = WalletFactory(user=employer, balance=150_000)
        pending = WalletTransactionFactory(wallet=wallet, amount=100_000)

        result = WalletLedgerService.reject_withdrawal(pending.pk, admin_user, "wrong IBAN")

        assert result.success
        assert result.data.status == WalletTransactionStatus.CANCELLED
        assert Wallet.objects.get(pk=wallet.pk).balance == 150_000

    def test_non_admin_cannot_decide(self, employer, contractor):
        wallet = WalletFactory(user=employer, balance=150_000)
        pending = WalletTransactionFactory(wallet=wallet, amount=100_000)

        result = WalletLedgerService.approve_withdrawal(pending.pk, contractor)

        assert result.error_code == "ADMIN_REQUIRED"
        assert Wallet.objects.get(pk=wallet.pk).balance == 150_000

    def test_deposit_row_cannot_be_approved_as_withdrawal(self, employer, admin_user):
        wallet = WalletFactory(user=employer, balance=0)
        deposit = WalletTransactionFactory(
            wallet=wallet, transaction_type=WalletTransactionType.DEPOSIT, amount=100_000
        )

        result = WalletLedgerService.approve_withdrawal(deposit.pk, admin_user)

        assert result.error_code == "WALLET_TRANSACTION_NOT_FOUND"
        assert Wallet.objects.get(pk=wallet.pk).balance == 0
