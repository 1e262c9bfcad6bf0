"""
DRF serializers for payments app.

This module provides serializers for:
- Escrow payment initiation, verification and history
- Wallet balance and ledger rows
- Deposit and withdrawal requests

Related files:
    - models/: EscrowTransaction, Wallet, WalletTransaction
    - views.py: Payment API views

Usage:
    serializer = EscrowTransactionSerializer(escrow)
    data = serializer.data
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import serializers

from payments.models import EscrowTransaction, Wallet, WalletTransaction

# =============================================================================
# Escrow
# =============================================================================


class EscrowTransactionSerializer(serializers.ModelSerializer):
    """Read-only escrow transaction with project and milestone titles."""

    project_title = serializers.CharField(source="project.title", read_only=True)
    milestone_title = serializers.CharField(
        source="milestone.title", read_only=True, default=None
    )

    class Meta:
        model = EscrowTransaction
        fields = [
            "id",
            "project",
            "project_title",
            "milestone",
            "milestone_title",
            "employer",
            "contractor",
            "amount",
            "state",
            "ref_id",
            "description",
            "payment_date",
            "release_date",
            "failure_reason",
            "created_at",
        ]
        read_only_fields = fields


class EscrowPaymentRequestSerializer(serializers.Serializer):
    project_id = serializers.UUIDField()
    milestone_id = serializers.UUIDField()
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)


class EscrowPaymentResponseSerializer(serializers.Serializer):
    transaction_id = serializers.UUIDField(source="transaction.id")
    payment_url = serializers.URLField()
    authority = serializers.CharField()
    amount = serializers.IntegerField(source="transaction.amount")


class EscrowVerifySerializer(serializers.Serializer):
    """
    Gateway callback parameters forwarded by the frontend.

    ``Authority`` and ``Status`` keep ZarinPal's query parameter names.
    """

    transaction_id = serializers.UUIDField()
    Authority = serializers.CharField(max_length=64)
    Status = serializers.CharField(max_length=10)


class EscrowStatsSerializer(serializers.Serializer):
    total_sent = serializers.IntegerField()
    total_received = serializers.IntegerField()
    total_in_escrow = serializers.IntegerField()


# =============================================================================
# Wallet
# =============================================================================


class WalletSerializer(serializers.ModelSerializer):
    pending_withdrawals = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Wallet
        fields = [
            "id",
            "balance",
            "total_earned",
            "total_spent",
            "pending_withdrawals",
            "updated_at",
        ]
        read_only_fields = fields


class WalletTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = WalletTransaction
        fields = [
            "id",
            "transaction_type",
            "amount",
            "status",
            "description",
            "reference_id",
            "escrow_transaction",
            "processed_at",
            "created_at",
        ]
        read_only_fields = fields


class PendingWithdrawalSerializer(WalletTransactionSerializer):
    """Withdrawal row as shown in the admin queue, with payout details."""

    user_id = serializers.IntegerField(source="wallet.user_id", read_only=True)
    user_email = serializers.EmailField(source="wallet.user.email", read_only=True)
    bank_account = serializers.CharField(source="metadata.bank_account", read_only=True)
    account_holder = serializers.CharField(source="metadata.account_holder", read_only=True)

    class Meta(WalletTransactionSerializer.Meta):
        fields = [
            *WalletTransactionSerializer.Meta.fields,
            "user_id",
            "user_email",
            "bank_account",
            "account_holder",
        ]
        read_only_fields = fields


class DepositRequestSerializer(serializers.Serializer):
    amount = serializers.IntegerField()

    def validate_amount(self, value):
        if value < settings.WALLET_MIN_DEPOSIT:
            raise serializers.ValidationError(
                f"Minimum deposit is {settings.WALLET_MIN_DEPOSIT} Rials"
            )
        return value


class DepositResponseSerializer(serializers.Serializer):
    transaction_id = serializers.UUIDField(source="transaction.id")
    payment_url = serializers.URLField()
    authority = serializers.CharField()
    amount = serializers.IntegerField(source="transaction.amount")


class DepositVerifySerializer(serializers.Serializer):
    Authority = serializers.CharField(max_length=64)
    Status = serializers.CharField(max_length=10)


class WithdrawalRequestSerializer(serializers.Serializer):
    amount = serializers.IntegerField()
    bank_account = serializers.CharField(max_length=34)
    account_holder = serializers.CharField(max_length=100)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate_amount(self, value):
        if value < settings.WALLET_MIN_WITHDRAWAL:
            raise serializers.ValidationError(
                f"Minimum withdrawal is {settings.WALLET_MIN_WITHDRAWAL} Rials"
            )
        return value


class WithdrawalDecisionSerializer(serializers.Serializer):
    admin_note = serializers.CharField(max_length=500, required=False, allow_blank=True)
