"""
Payments app configuration.

This app provides the escrow settlement infrastructure:
- Escrow transactions for milestone payments
- Wallet ledger with an append-only transaction log
- ZarinPal gateway integration
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
