"""
URL configuration for the arbitration app.

All routes are prefixed with /api/v1/arbitration/ when included in the
main URLconf.
"""

from django.urls import path

from arbitration import views

app_name = "arbitration"

urlpatterns = [
    path("", views.ArbitrationListCreateView.as_view(), name="list"),
    path("<uuid:pk>/", views.ArbitrationDetailView.as_view(), name="detail"),
    path("<uuid:pk>/assign/", views.AssignArbitratorView.as_view(), name="assign"),
    path("<uuid:pk>/decision/", views.DecisionView.as_view(), name="decision"),
    path("<uuid:pk>/rate/", views.RateArbitratorView.as_view(), name="rate"),
]
