"""
Payment adapters for external services.

All payment gateway calls go through these adapters to ensure consistent
error handling, timeouts and observability.

Usage:
    from payments.adapters import ZarinPalAdapter, PaymentRequestParams

    result = ZarinPalAdapter.request_payment(
        PaymentRequestParams(
            amount=1_000_000,
            description="Milestone payment",
            callback_url=callback_url,
        )
    )
"""

from payments.adapters.zarinpal_adapter import (
    PaymentRequestParams,
    PaymentRequestResult,
    VerificationResult,
    ZarinPalAdapter,
    gateway_status_message,
)

__all__ = [
    "PaymentRequestParams",
    "PaymentRequestResult",
    "VerificationResult",
    "ZarinPalAdapter",
    "gateway_status_message",
]
