"""
Wallet ledger models.

Wallet holds a user's spendable balance and two accumulators.
WalletTransaction is the append-only audit row behind every balance change.

Invariant:
    A wallet's balance is only changed by WalletLedgerService, in the same
    database transaction that writes the matching WalletTransaction row.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import WalletTransactionStatus, WalletTransactionType


class Wallet(UUIDPrimaryKeyMixin, BaseModel):
    """
    One wallet per user, created lazily on first use.

    Fields:
        user: Owner
        balance: Current spendable amount in Rials
        total_earned: Sum of all EARNING credits (never decreases)
        total_spent: Sum of all PAYMENT debits (never decreases)
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="wallet",
    )

    balance = models.PositiveBigIntegerField(
        default=0,
        help_text="Spendable balance in Rials",
    )

    total_earned = models.PositiveBigIntegerField(
        default=0,
        help_text="Lifetime earnings in Rials",
    )

    total_spent = models.PositiveBigIntegerField(
        default=0,
        help_text="Lifetime payments in Rials",
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Wallet({self.user_id}, balance={self.balance})"


class WalletTransaction(UUIDPrimaryKeyMixin, BaseModel):
    """
    Immutable record of a wallet movement.

    Completed rows are never edited or deleted. Pending rows exist only for
    gateway deposits (waiting for verification) and withdrawals (waiting
    for an admin), and move once to completed, failed or cancelled.

    Fields:
        wallet: Wallet the movement belongs to
        transaction_type: deposit, withdrawal, earning, payment or refund
        amount: Rials, always positive (direction follows from the type)
        status: pending, completed, failed or cancelled
        description: Human readable reason
        reference_id: Gateway authority for deposits
        escrow_transaction: Escrow row that produced an earning/refund
        metadata: Extra data (bank account for withdrawals, gateway ref id)
    """

    wallet = models.ForeignKey(
        Wallet,
        on_delete=models.PROTECT,
        related_name="transactions",
    )

    transaction_type = models.CharField(
        max_length=20,
        choices=WalletTransactionType.choices,
        db_index=True,
    )

    amount = models.PositiveBigIntegerField(
        help_text="Amount in Rials",
    )

    status = models.CharField(
        max_length=20,
        choices=WalletTransactionStatus.choices,
        default=WalletTransactionStatus.COMPLETED,
        db_index=True,
    )

    description = models.CharField(
        max_length=255,
        blank=True,
        default="",
    )

    reference_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        db_index=True,
        help_text="Gateway authority for deposits",
    )

    escrow_transaction = models.ForeignKey(
        "payments.EscrowTransaction",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="wallet_transactions",
        help_text="Escrow payment this movement settles",
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
    )

    processed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When a pending row was completed, failed or cancelled",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["wallet", "transaction_type"], name="wallet_tx_type_idx"),
            models.Index(fields=["wallet", "status"], name="wallet_tx_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="wallet_transaction_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"WalletTransaction({self.transaction_type}, {self.amount}, {self.status})"
