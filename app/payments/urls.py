"""
URL configuration for the payments app.

Routes:
    - escrow/ ...   - Milestone payments held in escrow
    - wallet/ ...   - Wallet balance, deposits and withdrawals

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments import views

app_name = "payments"

urlpatterns = [
    # Escrow
    path("escrow/", views.EscrowPaymentView.as_view(), name="escrow_create"),
    path("escrow/verify/", views.EscrowVerifyView.as_view(), name="escrow_verify"),
    path("escrow/history/", views.EscrowHistoryView.as_view(), name="escrow_history"),
    path("escrow/stats/", views.EscrowStatsView.as_view(), name="escrow_stats"),
    path(
        "escrow/<uuid:pk>/release/",
        views.EscrowReleaseView.as_view(),
        name="escrow_release",
    ),
    # Wallet
    path("wallet/", views.WalletView.as_view(), name="wallet"),
    path(
        "wallet/transactions/",
        views.WalletTransactionListView.as_view(),
        name="wallet_transactions",
    ),
    path("wallet/deposit/", views.DepositView.as_view(), name="wallet_deposit"),
    path(
        "wallet/deposit/verify/",
        views.DepositVerifyView.as_view(),
        name="wallet_deposit_verify",
    ),
    path("wallet/withdraw/", views.WithdrawalRequestView.as_view(), name="wallet_withdraw"),
    path(
        "wallet/withdrawals/",
        views.PendingWithdrawalListView.as_view(),
        name="withdrawal_queue",
    ),
    path(
        "wallet/withdrawals/<uuid:pk>/approve/",
        views.WithdrawalDecisionView.as_view(approve=True),
        name="withdrawal_approve",
    ),
    path(
        "wallet/withdrawals/<uuid:pk>/reject/",
        views.WithdrawalDecisionView.as_view(approve=False),
        name="withdrawal_reject",
    ),
]
