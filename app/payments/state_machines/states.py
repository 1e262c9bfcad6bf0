"""
State enums for payment models.

This module defines the state enums used by payment models with django-fsm.
These are Django TextChoices for database storage and admin integration.

State Machines Overview:

EscrowTransaction States:
    pending → held → released | refunded | split
    pending → failed

WalletTransaction Status:
    pending → completed | failed | cancelled
    (completed rows are never edited again)
"""

from django.db import models


class EscrowTransactionState(models.TextChoices):
    """
    States for the EscrowTransaction lifecycle.

    Terminal states: RELEASED, REFUNDED, SPLIT, FAILED

    State Flow:
        PENDING → HELD      gateway verified the payment
        PENDING → FAILED    gateway rejected or user cancelled
        HELD → RELEASED     full amount paid to the contractor
        HELD → REFUNDED     full amount returned to the employer
        HELD → SPLIT        arbitration divided the amount
    """

    PENDING = "pending", "Pending"
    HELD = "held", "Held"
    RELEASED = "released", "Released"
    REFUNDED = "refunded", "Refunded"
    SPLIT = "split", "Split"
    FAILED = "failed", "Failed"


class WalletTransactionType(models.TextChoices):
    """
    Kind of wallet ledger movement.

    EARNING and PAYMENT also feed the wallet's total_earned/total_spent
    accumulators.
    """

    DEPOSIT = "deposit", "Deposit"
    WITHDRAWAL = "withdrawal", "Withdrawal"
    EARNING = "earning", "Earning"
    PAYMENT = "payment", "Payment"
    REFUND = "refund", "Refund"


class WalletTransactionStatus(models.TextChoices):
    """
    Status of a wallet ledger row.

    Gateway-driven deposits and admin-approved withdrawals start PENDING.
    Every other movement is written directly as COMPLETED.
    """

    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"
    CANCELLED = "cancelled", "Cancelled"
