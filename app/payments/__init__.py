"""
Payments app for escrow settlement.

This app handles:
- Escrow transactions for milestone payments (pending -> held -> settled)
- Wallets and their append-only transaction ledger
- ZarinPal gateway requests and verification
- Gateway deposits and admin-approved withdrawals

Related apps:
    - projects: Projects and milestones being paid for
    - arbitration: Settles held escrow of disputed projects
    - notifications: Payment event notifications

Usage:
    from payments.services import EscrowService

    result = EscrowService().initiate_milestone_payment(employer, project.id, milestone.id)
"""
