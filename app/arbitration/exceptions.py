"""
Arbitration-specific exceptions.

Exception Hierarchy:
    ArbitratorNotAssigned - Caller is not the case's arbitrator (PermissionDeniedError)
    CaseNotInAssignedState - Case is pending or already resolved (ConflictError)
    InvalidDecisionInput - Bad decision or split percentage (ValidationError)
    ArbitrationNotFound - No such case (NotFoundError)
    CaseAlreadyOpen - Project already has an unresolved case (ConflictError)
    CaseNotPending - Case already has an arbitrator (ConflictError)
    AlreadyRated - Party already rated this case's arbitrator (ConflictError)
"""

from core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError


class ArbitratorNotAssigned(PermissionDeniedError):
    default_error_code: str = "ARBITRATOR_NOT_ASSIGNED"


class CaseNotInAssignedState(ConflictError):
    """
    Raised when a decision is submitted for a case that is not assigned.

    A second submission for a resolved case ends here, before any wallet
    is touched.
    """

    default_error_code: str = "CASE_NOT_IN_ASSIGNED_STATE"


class InvalidDecisionInput(ValidationError):
    default_error_code: str = "INVALID_DECISION_INPUT"


class ArbitrationNotFound(NotFoundError):
    default_error_code: str = "ARBITRATION_NOT_FOUND"


class CaseAlreadyOpen(ConflictError):
    default_error_code: str = "CASE_ALREADY_OPEN"


class CaseNotPending(ConflictError):
    default_error_code: str = "CASE_NOT_PENDING"


class AlreadyRated(ConflictError):
    default_error_code: str = "ALREADY_RATED"


__all__ = [
    "AlreadyRated",
    "ArbitrationNotFound",
    "ArbitratorNotAssigned",
    "CaseAlreadyOpen",
    "CaseNotInAssignedState",
    "CaseNotPending",
    "InvalidDecisionInput",
]
