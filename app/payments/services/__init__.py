"""
Payment services for escrow operations.

This module provides:
- EscrowService: Milestone payments from creation to release or refund

Wallet balance changes live in payments.ledger.services.WalletLedgerService.

Usage:
    from payments.services import EscrowService

    result = EscrowService().initiate_milestone_payment(
        employer=user,
        project_id=project.id,
        milestone_id=milestone.id,
    )
"""

from payments.services.escrow_service import EscrowPaymentInitiation, EscrowService

__all__ = [
    "EscrowPaymentInitiation",
    "EscrowService",
]
