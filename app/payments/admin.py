"""
Payment admin configuration.

Registers escrow and wallet models with the Django admin. Everything is
read-only: balances and states change only through the service layer.
"""

from django.contrib import admin

from payments.models import EscrowTransaction, Wallet, WalletTransaction


class ReadOnlyAdminMixin:
    """Admin pages for audit data that must not be edited by hand."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(EscrowTransaction)
class EscrowTransactionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """
    Admin configuration for EscrowTransaction.

    Provides visibility into milestone payments and their states.
    """

    list_display = [
        "id",
        "project",
        "employer",
        "contractor",
        "amount",
        "state",
        "payment_date",
        "release_date",
        "created_at",
    ]
    list_filter = ["state", "created_at"]
    search_fields = ["id", "authority", "ref_id", "employer__email", "contractor__email"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "project", "milestone", "state", "amount"),
            },
        ),
        (
            "Parties",
            {
                "fields": ("employer", "contractor"),
            },
        ),
        (
            "Gateway",
            {
                "fields": ("authority", "ref_id", "description", "failure_reason"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": (
                    "payment_date",
                    "release_date",
                    "failed_at",
                    "created_at",
                    "updated_at",
                    "version",
                ),
            },
        ),
    )


class WalletTransactionInline(admin.TabularInline):
    model = WalletTransaction
    extra = 0
    can_delete = False
    fields = ["transaction_type", "amount", "status", "description", "created_at"]
    readonly_fields = fields
    ordering = ["-created_at"]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Wallet)
class WalletAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ["user", "balance", "total_earned", "total_spent", "updated_at"]
    search_fields = ["user__email"]
    inlines = [WalletTransactionInline]


@admin.register(WalletTransaction)
class WalletTransactionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = [
        "id",
        "wallet",
        "transaction_type",
        "amount",
        "status",
        "created_at",
    ]
    list_filter = ["transaction_type", "status", "created_at"]
    search_fields = ["id", "reference_id", "wallet__user__email"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
