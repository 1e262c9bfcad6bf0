"""
Payment domain models.

- EscrowTransaction: A milestone payment held by the platform
- Wallet: Per-user spendable balance
- WalletTransaction: Append-only ledger row behind every balance change

Wallet models live in payments.ledger.models and are re-exported here so
Django's migration system discovers them under the payments app.
"""

from payments.ledger.models import Wallet, WalletTransaction
from payments.models.escrow_transaction import EscrowTransaction

__all__ = [
    "EscrowTransaction",
    "Wallet",
    "WalletTransaction",
]
