"""
Tests for payments app.

This package contains test modules for:
- test_state_transitions.py: EscrowTransaction state machine
- test_escrow_service.py: EscrowService flows
- test_wallet_ledger.py: WalletLedgerService credits, debits and withdrawals
- test_views.py: API endpoint tests

Usage:
    pytest payments/tests/
    pytest payments/tests/test_escrow_service.py
"""
