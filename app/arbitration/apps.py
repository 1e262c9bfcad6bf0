"""
Arbitration app configuration.

Dispute cases between project parties and the decision processor that
settles held escrow according to the arbitrator's ruling.
"""

from django.apps import AppConfig


class ArbitrationConfig(AppConfig):
    """Configuration for the arbitration application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "arbitration"
    verbose_name = "Arbitration"
