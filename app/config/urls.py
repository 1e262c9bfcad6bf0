"""
URL configuration for the escrow settlement service.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/token/            - Obtain a JWT pair (email + password)
    /api/v1/auth/token/refresh/    - Refresh an access token
    /api/v1/projects/              - Caller's projects (read-only)
    /api/v1/notifications/         - In-app notifications
    /api/v1/payments/              - Escrow and wallet endpoints
        escrow/                    - Pay a milestone into escrow
        escrow/verify/             - Gateway callback
        escrow/{id}/release/       - Release held payment
        escrow/history/            - Escrow history
        escrow/stats/              - Escrow totals
        wallet/                    - Wallet balance
        wallet/transactions/       - Ledger rows
        wallet/deposit/            - Start a deposit
        wallet/deposit/verify/     - Deposit gateway callback
        wallet/withdraw/           - Request a withdrawal
        wallet/withdrawals/        - Pending withdrawal queue (admin)
        wallet/withdrawals/{id}/approve|reject/ - Admin decision
    /api/v1/arbitration/           - Arbitration cases
        {id}/                      - Case detail
        {id}/assign/               - Assign arbitrator
        {id}/decision/             - Submit ruling
        {id}/rate/                 - Rate arbitrator

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Authentication (simplejwt)
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    # Projects
    path("projects/", include("projects.urls")),
    # Notifications
    path("notifications/", include("notifications.urls")),
    # Payments
    path("payments/", include("payments.urls")),
    # Arbitration
    path("arbitration/", include("arbitration.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Zemano Escrow Admin"
admin.site.site_title = "Zemano Escrow"
admin.site.index_title = "Settlement administration"
