"""
Wallet ledger service.

WalletLedgerService is the only code allowed to change a wallet's balance
or accumulators. Every change writes the matching WalletTransaction row in
the same database transaction, under a row lock on the wallet.

There are two layers:

- ``credit`` / ``debit`` / ``complete_pending``: raising primitives used by
  the escrow service and the arbitration processor inside their own atomic
  blocks. They raise InvalidAmount or InsufficientBalance.
- ``initiate_deposit`` / ``verify_deposit`` / ``request_withdrawal`` /
  ``approve_withdrawal`` / ``reject_withdrawal``: user-facing operations
  that return ServiceResult and never raise domain errors.

Usage:
    from payments.ledger.services import WalletLedgerService

    with transaction.atomic():
        WalletLedgerService.credit(
            contractor,
            700_000,
            WalletTransactionType.EARNING,
            description="Arbitration split",
            escrow_transaction=escrow,
        )

    result = WalletLedgerService().initiate_deposit(user, 100_000)
    if result.success:
        redirect(result.data.payment_url)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext as _

from authentication.models import User, UserRole
from core.exceptions import BaseApplicationError, PermissionDeniedError
from core.services import BaseService, ServiceResult
from notifications.models import NotificationType
from notifications.services import NotificationService
from payments.adapters import PaymentRequestParams, ZarinPalAdapter
from payments.exceptions import ZarinPalError
from payments.ledger.exceptions import (
    InsufficientBalance,
    InvalidAmount,
    WalletTransactionNotFound,
)
from payments.ledger.models import Wallet, WalletTransaction
from payments.state_machines import WalletTransactionStatus, WalletTransactionType

if TYPE_CHECKING:
    from typing import Any

    from payments.models import EscrowTransaction


# Types that add to / take from the balance
CREDIT_TYPES = (
    WalletTransactionType.DEPOSIT,
    WalletTransactionType.EARNING,
    WalletTransactionType.REFUND,
)
DEBIT_TYPES = (
    WalletTransactionType.WITHDRAWAL,
    WalletTransactionType.PAYMENT,
)


@dataclass
class DepositInitiation:
    """Pending deposit row plus the gateway page to send the user to."""

    transaction: WalletTransaction
    payment_url: str
    authority: str


class WalletLedgerService(BaseService):
    """
    Service for wallet balance changes.

    The gateway adapter is injected so tests can replace it; the raising
    primitives are class methods and need no instance.
    """

    def __init__(self, gateway: type[ZarinPalAdapter] | None = None):
        self.gateway = gateway or ZarinPalAdapter

    # =========================================================================
    # Wallet access
    # =========================================================================

    @staticmethod
    def get_wallet(user: User) -> Wallet:
        """Return the user's wallet, creating an empty one on first use."""
        wallet, _created = Wallet.objects.get_or_create(user=user)
        return wallet

    @classmethod
    def _lock_wallet(cls, user: User) -> Wallet:
        """
        Lock and return the user's wallet row.

        Must be called inside transaction.atomic(). The wallet is created
        first if needed so that there is always a row to lock.
        """
        wallet = cls.get_wallet(user)
        return Wallet.objects.select_for_update().get(pk=wallet.pk)

    @staticmethod
    def _validate_amount(amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise InvalidAmount(
                _("Amount must be a positive number of Rials"),
                details={"amount": str(amount)},
            )

    # =========================================================================
    # Raising primitives
    # =========================================================================

    @classmethod
    def credit(
        cls,
        user: User,
        amount: int,
        transaction_type: str,
        description: str = "",
        escrow_transaction: EscrowTransaction | None = None,
        reference_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> WalletTransaction:
        """
        Add ``amount`` to the user's balance and append a completed row.

        total_earned grows only for EARNING credits.

        Raises:
            InvalidAmount: amount is not a positive integer
        """
        cls._validate_amount(amount)

        with transaction.atomic():
            wallet = cls._lock_wallet(user)
            wallet.balance += amount
            update_fields = ["balance", "updated_at"]
            if transaction_type == WalletTransactionType.EARNING:
                wallet.total_earned += amount
                update_fields.append("total_earned")
            wallet.save(update_fields=update_fields)

            entry = WalletTransaction.objects.create(
                wallet=wallet,
                transaction_type=transaction_type,
                amount=amount,
                status=WalletTransactionStatus.COMPLETED,
                description=description,
                escrow_transaction=escrow_transaction,
                reference_id=reference_id,
                metadata=metadata or {},
                processed_at=timezone.now(),
            )

        cls.get_logger().info(
            "Wallet credited",
            extra={
                "user_id": user.pk,
                "wallet_id": str(wallet.id),
                "amount": amount,
                "transaction_type": transaction_type,
                "wallet_transaction_id": str(entry.id),
            },
        )
        return entry

    @classmethod
    def debit(
        cls,
        user: User,
        amount: int,
        transaction_type: str,
        description: str = "",
        escrow_transaction: EscrowTransaction | None = None,
        reference_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> WalletTransaction:
        """
        Take ``amount`` from the user's balance and append a completed row.

        total_spent grows only for PAYMENT debits.

        Raises:
            InvalidAmount: amount is not a positive integer
            InsufficientBalance: balance is lower than amount (nothing changes)
        """
        cls._validate_amount(amount)

        with transaction.atomic():
            wallet = cls._lock_wallet(user)
            cls._take(wallet, amount, transaction_type)

            entry = WalletTransaction.objects.create(
                wallet=wallet,
                transaction_type=transaction_type,
                amount=amount,
                status=WalletTransactionStatus.COMPLETED,
                description=description,
                escrow_transaction=escrow_transaction,
                reference_id=reference_id,
                metadata=metadata or {},
                processed_at=timezone.now(),
            )

        cls.get_logger().info(
            "Wallet debited",
            extra={
                "user_id": user.pk,
                "wallet_id": str(wallet.id),
                "amount": amount,
                "transaction_type": transaction_type,
                "wallet_transaction_id": str(entry.id),
            },
        )
        return entry

    @staticmethod
    def _take(wallet: Wallet, amount: int, transaction_type: str) -> None:
        if wallet.balance < amount:
            raise InsufficientBalance(
                wallet.user_id,
                required=amount,
                available=wallet.balance,
            )
        wallet.balance -= amount
        update_fields = ["balance", "updated_at"]
        if transaction_type == WalletTransactionType.PAYMENT:
            wallet.total_spent += amount
            update_fields.append("total_spent")
        wallet.save(update_fields=update_fields)

    @classmethod
    def complete_pending(
        cls,
        entry_id: Any,
        metadata: dict[str, Any] | None = None,
    ) -> WalletTransaction:
        """
        Complete a pending deposit or withdrawal row and apply it.

        The row and the wallet are locked, the balance moves in the
        row's direction and the row becomes completed, all in one
        transaction. A row that is no longer pending is not found.

        Raises:
            WalletTransactionNotFound: No pending row with this id
            InsufficientBalance: Withdrawal larger than the balance
        """
        with transaction.atomic():
            entry = cls._lock_pending(entry_id)
            wallet = Wallet.objects.select_for_update().get(pk=entry.wallet_id)

            if entry.transaction_type in DEBIT_TYPES:
                cls._take(wallet, entry.amount, entry.transaction_type)
            else:
                wallet.balance += entry.amount
                wallet.save(update_fields=["balance", "updated_at"])

            entry.status = WalletTransactionStatus.COMPLETED
            entry.processed_at = timezone.now()
            if metadata:
                entry.metadata = {**entry.metadata, **metadata}
            entry.save(update_fields=["status", "processed_at", "metadata", "updated_at"])

        return entry

    @staticmethod
    def _lock_pending(entry_id: Any, **filters: Any) -> WalletTransaction:
        try:
            return WalletTransaction.objects.select_for_update().get(
                pk=entry_id,
                status=WalletTransactionStatus.PENDING,
                **filters,
            )
        except WalletTransaction.DoesNotExist:
            raise WalletTransactionNotFound(
                _("Pending wallet transaction not found"),
                details={"wallet_transaction_id": str(entry_id)},
            )

    @classmethod
    def _close_pending(
        cls,
        entry_id: Any,
        status: str,
        metadata: dict[str, Any] | None = None,
        **filters: Any,
    ) -> WalletTransaction:
        """Move a pending row to failed or cancelled without touching the balance."""
        with transaction.atomic():
            entry = cls._lock_pending(entry_id, **filters)
            entry.status = status
            entry.processed_at = timezone.now()
            if metadata:
                entry.metadata = {**entry.metadata, **metadata}
            entry.save(update_fields=["status", "processed_at", "metadata", "updated_at"])
        return entry

    # =========================================================================
    # Deposits
    # =========================================================================

    def initiate_deposit(self, user: User, amount: int) -> ServiceResult[DepositInitiation]:
        """
        Start a gateway deposit.

        The gateway is asked for an authority first; only then is a pending
        deposit row written, keyed by that authority. Nothing is credited
        until verify_deposit succeeds.
        """
        log_extra = {"user_id": user.pk, "amount": amount}

        try:
            self._validate_amount(amount)
            minimum = settings.WALLET_MIN_DEPOSIT
            if amount < minimum:
                raise InvalidAmount(
                    _("Minimum deposit is %(minimum)s Rials") % {"minimum": minimum},
                    details={"amount": amount, "minimum": minimum},
                )

            payment = self.gateway.request_payment(
                PaymentRequestParams(
                    amount=amount,
                    description=_("Wallet top-up for user %(user_id)s") % {"user_id": user.pk},
                    callback_url=f"{settings.FRONTEND_URL}/wallet/verify-deposit",
                    mobile=user.phone_number or "",
                    email=user.email,
                )
            )

            wallet = self.get_wallet(user)
            entry = WalletTransaction.objects.create(
                wallet=wallet,
                transaction_type=WalletTransactionType.DEPOSIT,
                amount=amount,
                status=WalletTransactionStatus.PENDING,
                description=_("Wallet top-up"),
                reference_id=payment.authority,
            )
        except ZarinPalError as e:
            return self.handle_exception(e, "Deposit request failed", extra=log_extra)
        except BaseApplicationError as e:
            return self.handle_exception(
                e, "Deposit rejected", log_level=logging.WARNING, extra=log_extra
            )

        self.get_logger().info(
            "Deposit initiated",
            extra={**log_extra, "wallet_transaction_id": str(entry.id)},
        )
        return ServiceResult.success(
            DepositInitiation(
                transaction=entry,
                payment_url=payment.payment_url,
                authority=payment.authority,
            )
        )

    def verify_deposit(
        self,
        user: User,
        authority: str,
        gateway_status: str = "OK",
    ) -> ServiceResult[WalletTransaction]:
        """
        Finish a gateway deposit.

        The balance is credited only when the gateway confirms the payment.
        A cancelled callback or a rejected verification marks the row failed.
        """
        log_extra = {"user_id": user.pk, "authority": authority}

        entry = (
            WalletTransaction.objects.filter(
                reference_id=authority,
                transaction_type=WalletTransactionType.DEPOSIT,
                status=WalletTransactionStatus.PENDING,
                wallet__user=user,
            )
            .first()
        )
        if entry is None:
            return self.handle_exception(
                WalletTransactionNotFound(
                    _("Pending deposit not found"),
                    details={"authority": authority},
                ),
                "Deposit verification failed",
                log_level=logging.WARNING,
                extra=log_extra,
            )

        if gateway_status != "OK":
            self._close_pending(
                entry.pk,
                WalletTransactionStatus.FAILED,
                metadata={"gateway_callback_status": gateway_status},
            )
            self.get_logger().info(
                "Deposit cancelled at gateway",
                extra={**log_extra, "gateway_callback_status": gateway_status},
            )
            return ServiceResult.failure(
                _("The payment was cancelled or unsuccessful"),
                error_code="PAYMENT_CANCELLED",
            )

        try:
            verification = self.gateway.verify_payment(authority, entry.amount)
        except ZarinPalError as e:
            self._close_pending(
                entry.pk,
                WalletTransactionStatus.FAILED,
                metadata={"gateway_status": e.gateway_status},
            )
            return self.handle_exception(
                e, "Deposit verification rejected", log_level=logging.WARNING, extra=log_extra
            )

        try:
            entry = self.complete_pending(entry.pk, metadata={"ref_id": verification.ref_id})
        except BaseApplicationError as e:
            # A concurrent callback completed the row first
            return self.handle_exception(
                e, "Deposit already processed", log_level=logging.WARNING, extra=log_extra
            )

        self.get_logger().info(
            "Deposit completed",
            extra={
                **log_extra,
                "amount": entry.amount,
                "ref_id": verification.ref_id,
            },
        )
        return ServiceResult.success(entry)

    # =========================================================================
    # Withdrawals
    # =========================================================================

    def request_withdrawal(
        self,
        user: User,
        amount: int,
        bank_account: str,
        account_holder: str,
        description: str = "",
    ) -> ServiceResult[WalletTransaction]:
        """
        Record a withdrawal request for an admin to approve.

        The balance is checked now and again on approval; it is only
        debited on approval.
        """
        log_extra = {"user_id": user.pk, "amount": amount}

        try:
            self._validate_amount(amount)
            minimum = settings.WALLET_MIN_WITHDRAWAL
            if amount < minimum:
                raise InvalidAmount(
                    _("Minimum withdrawal is %(minimum)s Rials") % {"minimum": minimum},
                    details={"amount": amount, "minimum": minimum},
                )

            with transaction.atomic():
                wallet = self._lock_wallet(user)
                if wallet.balance < amount:
                    raise InsufficientBalance(
                        user.pk,
                        required=amount,
                        available=wallet.balance,
                    )
                entry = WalletTransaction.objects.create(
                    wallet=wallet,
                    transaction_type=WalletTransactionType.WITHDRAWAL,
                    amount=amount,
                    status=WalletTransactionStatus.PENDING,
                    description=description or _("Withdrawal request"),
                    metadata={
                        "bank_account": bank_account,
                        "account_holder": account_holder,
                        "requested_at": timezone.now().isoformat(),
                    },
                )
        except BaseApplicationError as e:
            return self.handle_exception(
                e, "Withdrawal request rejected", log_level=logging.WARNING, extra=log_extra
            )

        admins = User.objects.filter(role=UserRole.ADMIN, is_active=True)
        NotificationService.notify_many(
            admins,
            title=_("New withdrawal request"),
            message=_("%(user)s requested a withdrawal of %(amount)s Rials")
            % {"user": user.get_full_name(), "amount": amount},
            notification_type=NotificationType.WALLET,
            data={
                "wallet_transaction_id": str(entry.id),
                "user_id": user.pk,
                "amount": amount,
            },
        )

        self.get_logger().info(
            "Withdrawal requested",
            extra={**log_extra, "wallet_transaction_id": str(entry.id)},
        )
        return ServiceResult.success(entry)

    @classmethod
    def approve_withdrawal(
        cls,
        entry_id: Any,
        admin: User,
        admin_note: str = "",
    ) -> ServiceResult[WalletTransaction]:
        """Debit the wallet and complete a pending withdrawal (admin only)."""
        log_extra = {"wallet_transaction_id": str(entry_id), "admin_id": admin.pk}

        try:
            cls._require_admin(admin)
            if not WalletTransaction.objects.filter(
                pk=entry_id, transaction_type=WalletTransactionType.WITHDRAWAL
            ).exists():
                raise WalletTransactionNotFound(
                    _("Withdrawal request not found"),
                    details={"wallet_transaction_id": str(entry_id)},
                )
            entry = cls.complete_pending(
                entry_id,
                metadata={"admin_note": admin_note, "approved_by": admin.pk},
            )
        except BaseApplicationError as e:
            return cls.handle_exception(
                e, "Withdrawal approval failed", log_level=logging.WARNING, extra=log_extra
            )

        NotificationService.notify(
            entry.wallet.user,
            title=_("Withdrawal approved"),
            message=_("Your withdrawal of %(amount)s Rials was approved and processed")
            % {"amount": entry.amount},
            notification_type=NotificationType.WALLET,
            data={"wallet_transaction_id": str(entry.id), "amount": entry.amount},
        )
        cls.get_logger().info("Withdrawal approved", extra={**log_extra, "amount": entry.amount})
        return ServiceResult.success(entry)

    @classmethod
    def reject_withdrawal(
        cls,
        entry_id: Any,
        admin: User,
        admin_note: str = "",
    ) -> ServiceResult[WalletTransaction]:
        """Cancel a pending withdrawal without touching the balance (admin only)."""
        log_extra = {"wallet_transaction_id": str(entry_id), "admin_id": admin.pk}

        try:
            cls._require_admin(admin)
            entry = cls._close_pending(
                entry_id,
                WalletTransactionStatus.CANCELLED,
                metadata={"admin_note": admin_note, "rejected_by": admin.pk},
                transaction_type=WalletTransactionType.WITHDRAWAL,
            )
        except BaseApplicationError as e:
            return cls.handle_exception(
                e, "Withdrawal rejection failed", log_level=logging.WARNING, extra=log_extra
            )

        NotificationService.notify(
            entry.wallet.user,
            title=_("Withdrawal rejected"),
            message=_("Your withdrawal of %(amount)s Rials was rejected")
            % {"amount": entry.amount},
            notification_type=NotificationType.WALLET,
            data={
                "wallet_transaction_id": str(entry.id),
                "amount": entry.amount,
                "admin_note": admin_note,
            },
        )
        cls.get_logger().info("Withdrawal rejected", extra=log_extra)
        return ServiceResult.success(entry)

    @staticmethod
    def _require_admin(user: User) -> None:
        if not user.is_admin:
            raise PermissionDeniedError(
                _("Only administrators can process withdrawals"),
                error_code="ADMIN_REQUIRED",
            )
