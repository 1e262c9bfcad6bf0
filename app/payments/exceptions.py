"""
Payment-specific exceptions for escrow and gateway operations.

Exception Hierarchy:
    DuplicateMilestonePayment - Milestone already held or released (ConflictError)
    ContractorNotAssigned - Project has nobody to pay (ConflictError)
    TransactionNotFound - No pending transaction for id + authority (NotFoundError)
    InvalidTransactionState - Transition not allowed from current state (ConflictError)

    ZarinPalError - Gateway returned a non-success status (ExternalServiceError)
    └── ZarinPalTimeoutError - Gateway did not answer in time

Usage:
    from payments.exceptions import InvalidTransactionState

    try:
        escrow.release()
    except TransitionNotAllowed:
        raise InvalidTransactionState.for_transaction(escrow, "release")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.utils.translation import gettext as _

from core.exceptions import ConflictError, ExternalServiceError, NotFoundError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Escrow Lifecycle Exceptions
# =============================================================================


class DuplicateMilestonePayment(ConflictError):
    """
    Raised when a milestone already has a held or released escrow payment.

    A second pending row is allowed only while earlier attempts are still
    pending or failed.
    """

    default_error_code: str = "DUPLICATE_MILESTONE_PAYMENT"


class ContractorNotAssigned(ConflictError):
    """Raised when paying into escrow for a project without a contractor."""

    default_error_code: str = "CONTRACTOR_NOT_ASSIGNED"


class TransactionNotFound(NotFoundError):
    """
    Raised when no escrow transaction matches the lookup.

    For gateway callbacks the lookup is id + authority + pending state, so
    a replayed or forged callback ends here.
    """

    default_error_code: str = "TRANSACTION_NOT_FOUND"


class InvalidTransactionState(ConflictError):
    """
    Raised when a lifecycle transition is not allowed from the current state.

    Wraps django-fsm's TransitionNotAllowed in our error format. Raised
    before any wallet is touched.

    Attributes:
        details: transaction_id, current_state and the attempted action
    """

    default_error_code: str = "INVALID_TRANSACTION_STATE"

    @classmethod
    def for_transaction(cls, escrow: Any, action: str) -> InvalidTransactionState:
        return cls(
            _("Cannot %(action)s escrow transaction in '%(state)s' state")
            % {"action": action, "state": escrow.state},
            details={
                "transaction_id": str(escrow.pk),
                "current_state": escrow.state,
                "action": action,
            },
        )


# =============================================================================
# Gateway Exceptions
# =============================================================================


class ZarinPalError(ExternalServiceError):
    """
    Payment gateway call failed.

    ``gateway_status`` holds ZarinPal's numeric status when the gateway
    answered; it is kept in details for logs and never shown as the
    user-facing message.
    """

    default_error_code: str = "GATEWAY_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        gateway_status: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if gateway_status is not None:
            details["gateway_status"] = gateway_status
        super().__init__(message, error_code=error_code, details=details)
        self.gateway_status = gateway_status


class ZarinPalTimeoutError(ZarinPalError):
    """
    Gateway did not answer within ZARINPAL_TIMEOUT_SECONDS.

    Treated as a normal failure. The call is not retried.
    """

    default_error_code: str = "GATEWAY_TIMEOUT"


__all__ = [
    "ContractorNotAssigned",
    "DuplicateMilestonePayment",
    "InvalidTransactionState",
    "TransactionNotFound",
    "ZarinPalError",
    "ZarinPalTimeoutError",
]
