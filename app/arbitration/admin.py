"""
Arbitration admin configuration.

Cases are read-only here: assignment and rulings move money and must go
through ArbitrationService.
"""

from django.contrib import admin

from arbitration.models import Arbitration, ArbitratorRating
from payments.admin import ReadOnlyAdminMixin


@admin.register(Arbitration)
class ArbitrationAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = [
        "id",
        "project",
        "initiator",
        "arbitrator",
        "status",
        "decision",
        "contractor_percentage",
        "created_at",
    ]
    list_filter = ["status", "decision", "created_at"]
    search_fields = ["id", "project__title", "initiator__email", "arbitrator__email"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]


@admin.register(ArbitratorRating)
class ArbitratorRatingAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ["arbitration", "arbitrator", "rater", "rating", "created_at"]
    list_filter = ["rating"]
    search_fields = ["arbitrator__email", "rater__email"]
