"""
Wallet ledger - user balances backed by an append-only transaction log.

Public API:
    Models (payments.ledger.models):
        Wallet - One per user; balance, total_earned, total_spent
        WalletTransaction - Audit row behind every balance change

    Service (payments.ledger.services):
        WalletLedgerService - The only writer of wallet balances

    Exceptions:
        LedgerError - Base exception for ledger operations
        InvalidAmount - Zero, negative or below-minimum amounts
        InsufficientBalance - Debit larger than the balance
        WalletTransactionNotFound - Pending row lookup failures

Usage:
    from payments.ledger import InsufficientBalance
    from payments.ledger.services import WalletLedgerService

    try:
        WalletLedgerService.debit(user, 50_000, WalletTransactionType.WITHDRAWAL)
    except InsufficientBalance as e:
        print(e.required, e.available)

Models and services are imported from their modules directly; importing
them here would create an import cycle with payments.models.
"""

from payments.ledger.exceptions import (
    InsufficientBalance,
    InvalidAmount,
    LedgerError,
    WalletTransactionNotFound,
)

__all__ = [
    "InsufficientBalance",
    "InvalidAmount",
    "LedgerError",
    "WalletTransactionNotFound",
]
