"""
ZarinPal payment gateway adapter.

This module wraps the ZarinPal WebGate REST API with:
- Bounded timeouts on every call (ZARINPAL_TIMEOUT_SECONDS)
- Translation of gateway status codes to domain exceptions
- Structured logging with timing metrics

Calls are synchronous and never retried: a timeout or a non-success status
is a normal failure outcome for the caller to record.

Usage:
    from payments.adapters import ZarinPalAdapter, PaymentRequestParams

    result = ZarinPalAdapter.request_payment(
        PaymentRequestParams(
            amount=1_000_000,
            description="Milestone 1 of project X",
            callback_url="https://zemano.ir/payment/escrow/callback?transaction_id=...",
        )
    )
    redirect(result.payment_url)

    verification = ZarinPalAdapter.verify_payment(result.authority, amount=1_000_000)
    print(verification.ref_id)

Configuration (via settings):
- ZARINPAL_MERCHANT_ID: Merchant id issued by ZarinPal
- ZARINPAL_SANDBOX: Use sandbox endpoints (default: True)
- ZARINPAL_TIMEOUT_SECONDS: Request timeout (default: 10)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import requests
from django.conf import settings
from django.utils.translation import gettext as _
from django.utils.translation import gettext_lazy

from payments.exceptions import ZarinPalError, ZarinPalTimeoutError

# =============================================================================
# Gateway Constants
# =============================================================================

SANDBOX_API_URL = "https://sandbox.zarinpal.com/pg/rest/WebGate"
PRODUCTION_API_URL = "https://payment.zarinpal.com/pg/rest/WebGate"

SANDBOX_START_PAY_URL = "https://sandbox.zarinpal.com/pg/StartPay/{authority}"
PRODUCTION_START_PAY_URL = "https://zarinpal.com/pg/StartPay/{authority}"

# 101 means the payment was already verified once; the RefID is still valid
STATUS_OK = 100
STATUS_ALREADY_VERIFIED = 101

GATEWAY_STATUS_MESSAGES = {
    -1: gettext_lazy("The submitted information is incomplete."),
    -2: gettext_lazy("The merchant IP or merchant code is not valid."),
    -3: gettext_lazy("The payment cannot be processed due to Shaparak limits."),
    -4: gettext_lazy("The merchant verification level is below silver."),
    -11: gettext_lazy("The requested payment was not found."),
    -12: gettext_lazy("The payment request cannot be edited."),
    -21: gettext_lazy("No financial operation was found for this transaction."),
    -22: gettext_lazy("The transaction was unsuccessful."),
    -33: gettext_lazy("The paid amount does not match the transaction amount."),
    -34: gettext_lazy("The transaction split limit was exceeded."),
    -40: gettext_lazy("Access to this method is not allowed."),
    -41: gettext_lazy("The AdditionalData field is not valid."),
    -42: gettext_lazy("The payment id lifetime must be between 30 minutes and 45 days."),
    -54: gettext_lazy("The payment request has been archived."),
}


def gateway_status_message(status: int | None) -> str:
    """Readable message for a ZarinPal status code."""
    message = GATEWAY_STATUS_MESSAGES.get(status)
    if message is None:
        return _("Unknown payment gateway error.")
    return str(message)


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class PaymentRequestParams:
    """
    Parameters for a PaymentRequest call.

    Attributes:
        amount: Amount in Rials
        description: Text shown to the payer on the gateway page
        callback_url: Where the gateway redirects after payment
        mobile: Payer mobile number (optional)
        email: Payer email (optional)
    """

    amount: int
    description: str
    callback_url: str
    mobile: str = ""
    email: str = ""

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if self.amount <= 0:
            raise ValueError("amount must be positive")
        if not self.callback_url:
            raise ValueError("callback_url is required")


@dataclass
class PaymentRequestResult:
    """Authority issued by the gateway and the URL to send the payer to."""

    authority: str
    payment_url: str
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class VerificationResult:
    """Outcome of a successful verification."""

    ref_id: str
    status: int
    raw_response: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# ZarinPal Adapter
# =============================================================================


class ZarinPalAdapter:
    """
    Adapter for ZarinPal WebGate operations.

    All methods are class methods and no instance state is kept, so the
    class itself can be injected into services and replaced in tests.
    """

    @staticmethod
    def _is_sandbox() -> bool:
        return getattr(settings, "ZARINPAL_SANDBOX", True)

    @classmethod
    def _api_url(cls, endpoint: str) -> str:
        base = SANDBOX_API_URL if cls._is_sandbox() else PRODUCTION_API_URL
        return f"{base}/{endpoint}"

    @classmethod
    def start_pay_url(cls, authority: str) -> str:
        """Gateway page the payer is redirected to."""
        template = SANDBOX_START_PAY_URL if cls._is_sandbox() else PRODUCTION_START_PAY_URL
        return template.format(authority=authority)

    @staticmethod
    def _timeout() -> int:
        return getattr(settings, "ZARINPAL_TIMEOUT_SECONDS", 10)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Core Operations
    # =========================================================================

    @classmethod
    def request_payment(cls, params: PaymentRequestParams) -> PaymentRequestResult:
        """
        Ask the gateway for a new payment authority.

        Returns:
            PaymentRequestResult with authority and payment URL

        Raises:
            ZarinPalError: Gateway answered with a non-success status
            ZarinPalTimeoutError: No answer within the timeout
        """
        log_context = {
            "operation": "request_payment",
            "amount": params.amount,
        }
        payload = {
            "MerchantID": settings.ZARINPAL_MERCHANT_ID,
            "Amount": params.amount,
            "Description": params.description,
            "Mobile": params.mobile,
            "Email": params.email,
            "CallbackURL": params.callback_url,
        }

        data = cls._post("PaymentRequest.json", payload, log_context)
        status = data.get("Status")

        if status != STATUS_OK:
            cls.get_logger().warning(
                "ZarinPal rejected payment request",
                extra={**log_context, "gateway_status": status},
            )
            raise ZarinPalError(gateway_status_message(status), gateway_status=status)

        if not data.get("Authority"):
            cls.get_logger().warning(
                "ZarinPal accepted payment request without an authority",
                extra=log_context,
            )
            raise ZarinPalError(
                _("The payment gateway returned an incomplete response"),
                gateway_status=status,
            )

        authority = str(data["Authority"])
        return PaymentRequestResult(
            authority=authority,
            payment_url=cls.start_pay_url(authority),
            raw_response=data,
        )

    @classmethod
    def verify_payment(cls, authority: str, amount: int) -> VerificationResult:
        """
        Confirm with the gateway that the payer actually paid ``amount``.

        Returns:
            VerificationResult carrying the gateway RefID

        Raises:
            ZarinPalError: Verification rejected (status other than 100/101)
            ZarinPalTimeoutError: No answer within the timeout
        """
        log_context = {
            "operation": "verify_payment",
            "authority": authority,
            "amount": amount,
        }
        payload = {
            "MerchantID": settings.ZARINPAL_MERCHANT_ID,
            "Authority": authority,
            "Amount": amount,
        }

        data = cls._post("PaymentVerification.json", payload, log_context)
        status = data.get("Status")

        if status not in (STATUS_OK, STATUS_ALREADY_VERIFIED):
            cls.get_logger().warning(
                "ZarinPal rejected payment verification",
                extra={**log_context, "gateway_status": status},
            )
            raise ZarinPalError(gateway_status_message(status), gateway_status=status)

        return VerificationResult(
            ref_id=str(data.get("RefID")),
            status=status,
            raw_response=data,
        )

    # =========================================================================
    # Transport
    # =========================================================================

    @classmethod
    def _post(
        cls,
        endpoint: str,
        payload: dict[str, Any],
        log_context: dict[str, Any],
    ) -> dict[str, Any]:
        """
        POST JSON to the gateway and return the decoded body.

        Network problems are translated to domain exceptions here so that
        callers only ever see ZarinPalError subclasses.
        """
        logger = cls.get_logger()
        start_time = time.time()
        logger.info("Starting ZarinPal operation", extra=log_context)

        try:
            response = requests.post(
                cls._api_url(endpoint),
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=cls._timeout(),
            )
            data = response.json()
        except requests.Timeout as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "ZarinPal request timed out",
                extra={**log_context, "duration_ms": duration_ms},
            )
            raise ZarinPalTimeoutError(
                _("The payment gateway did not respond in time."),
                details={"endpoint": endpoint},
            ) from e
        except (requests.RequestException, ValueError) as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "ZarinPal request failed",
                extra={**log_context, "duration_ms": duration_ms},
                exc_info=True,
            )
            raise ZarinPalError(
                _("Could not connect to the payment gateway."),
                details={"endpoint": endpoint},
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "ZarinPal operation completed",
            extra={
                **log_context,
                "gateway_status": data.get("Status"),
                "duration_ms": duration_ms,
            },
        )
        return data
