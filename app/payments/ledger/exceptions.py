"""
Wallet ledger exceptions.

Exception Hierarchy:
    LedgerError (base)
    ├── InvalidAmount - Non-positive or below-minimum amounts
    ├── InsufficientBalance - Debit larger than the wallet balance
    └── WalletTransactionNotFound - Ledger row lookup failures

Usage:
    from payments.ledger.exceptions import InsufficientBalance

    if wallet.balance < amount:
        raise InsufficientBalance(wallet.user_id, required=amount, available=wallet.balance)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.utils.translation import gettext as _

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from typing import Any


class LedgerError(BaseApplicationError):
    """Base exception for all wallet ledger operations."""

    default_error_code: str = "LEDGER_ERROR"


class InvalidAmount(LedgerError):
    """Raised for zero, negative or below-minimum amounts."""

    default_error_code: str = "INVALID_AMOUNT"


class WalletTransactionNotFound(LedgerError):
    default_error_code: str = "WALLET_TRANSACTION_NOT_FOUND"


class InsufficientBalance(LedgerError):
    """
    Raised when a wallet has insufficient funds for a debit.

    Attributes:
        user_id: Owner of the wallet
        required: Amount (Rials) that was required
        available: Balance (Rials) that was available
    """

    default_error_code: str = "INSUFFICIENT_BALANCE"

    def __init__(
        self,
        user_id: Any,
        required: int,
        available: int,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.user_id = user_id
        self.required = required
        self.available = available

        full_details = {
            "user_id": str(user_id),
            "required": required,
            "available": available,
        }
        if details:
            full_details.update(details)

        super().__init__(
            message=_("Insufficient wallet balance"),
            error_code=error_code,
            details=full_details,
        )
