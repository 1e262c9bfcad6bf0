"""
Arbitration decision processor.

Applies an arbitrator's ruling to every held escrow transaction of the
disputed project, in a single database transaction:

    contractor -> each held transaction is released to the contractor
    employer   -> each held transaction is refunded to the employer
    split      -> each held transaction is divided; the contractor's share
                  is floor(amount * percentage / 100) and the employer gets
                  the rest, so no Rial is created or lost

The case is locked and its status rechecked inside the transaction, so a
repeated or concurrent submission fails with CaseNotInAssignedState and
never pays twice. Notifications are sent only after the commit.

Usage:
    from arbitration.processor import ArbitrationDecisionProcessor

    outcome = ArbitrationDecisionProcessor().process_decision(
        case.id, arbitrator, ArbitrationDecision.SPLIT, contractor_percentage=70
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import TYPE_CHECKING

from django.utils.translation import gettext as _

from arbitration.exceptions import (
    ArbitrationNotFound,
    ArbitratorNotAssigned,
    CaseNotInAssignedState,
    InvalidDecisionInput,
)
from arbitration.models import Arbitration, ArbitrationDecision, ArbitrationStatus
from core.services import BaseService
from notifications.models import NotificationType
from notifications.services import NotificationService
from payments.models import EscrowTransaction
from payments.services import EscrowService
from payments.state_machines import EscrowTransactionState
from projects.models import Project, ProjectStatus

if TYPE_CHECKING:
    from typing import Any

    from authentication.models import User


@dataclass(frozen=True)
class SplitAmounts:
    contractor_amount: int
    employer_amount: int


def compute_split(amount: int, contractor_percentage: Decimal) -> SplitAmounts:
    """
    Divide ``amount`` Rials by the contractor's percentage.

    The contractor's share is rounded down; the employer receives the
    remainder, so the two always add up to ``amount``.
    """
    contractor_amount = int(
        (Decimal(amount) * contractor_percentage / Decimal(100)).to_integral_value(
            rounding=ROUND_FLOOR
        )
    )
    return SplitAmounts(contractor_amount, amount - contractor_amount)


@dataclass
class DecisionOutcome:
    """What a processed ruling moved."""

    arbitration: Arbitration
    settled: list[EscrowTransaction] = field(default_factory=list)
    contractor_total: int = 0
    employer_total: int = 0


class ArbitrationDecisionProcessor(BaseService):
    """
    Settles a project's held escrow according to an arbitration ruling.

    process_decision raises domain exceptions; ArbitrationService wraps it
    into a ServiceResult for the API.
    """

    def process_decision(
        self,
        arbitration_id: Any,
        caller: User,
        decision: str,
        contractor_percentage: Any = None,
        resolution: str = "",
    ) -> DecisionOutcome:
        """
        Apply a ruling.

        Raises:
            InvalidDecisionInput: Unknown decision, or split without a
                percentage in [0, 100]. Raised before anything is locked.
            ArbitrationNotFound: No case with this id
            ArbitratorNotAssigned: Caller is not the case's arbitrator
            CaseNotInAssignedState: Case is pending or already resolved
        """
        percentage = self._validate_input(decision, contractor_percentage)
        log_extra = {
            "arbitration_id": str(arbitration_id),
            "decision": decision,
            "contractor_percentage": str(percentage) if percentage is not None else None,
        }

        with self.atomic():
            arbitration = self._lock_case(arbitration_id)

            if arbitration.arbitrator_id is None or arbitration.arbitrator_id != caller.pk:
                raise ArbitratorNotAssigned(
                    _("This case is not assigned to you"),
                    details={"arbitration_id": str(arbitration.id)},
                )
            if arbitration.status != ArbitrationStatus.ASSIGNED:
                raise CaseNotInAssignedState(
                    _("Only an assigned case can be decided"),
                    details={
                        "arbitration_id": str(arbitration.id),
                        "status": arbitration.status,
                    },
                )

            outcome = DecisionOutcome(arbitration=arbitration)
            for escrow in self._lock_held_escrows(arbitration.project_id):
                self._settle(escrow, decision, percentage, outcome)

            arbitration.resolve(decision, resolution, percentage)
            arbitration.save()

            project = Project.objects.select_for_update().get(pk=arbitration.project_id)
            project.status = ProjectStatus.COMPLETED
            project.save(update_fields=["status", "updated_at"])

        self.get_logger().info(
            "Arbitration decision processed",
            extra={
                **log_extra,
                "settled_count": len(outcome.settled),
                "contractor_total": outcome.contractor_total,
                "employer_total": outcome.employer_total,
            },
        )
        self._notify_parties(project, outcome)
        return outcome

    # =========================================================================
    # Settlement
    # =========================================================================

    @staticmethod
    def _settle(
        escrow: EscrowTransaction,
        decision: str,
        percentage: Decimal | None,
        outcome: DecisionOutcome,
    ) -> None:
        if decision == ArbitrationDecision.CONTRACTOR:
            EscrowService.release_locked(escrow)
            outcome.contractor_total += escrow.amount
        elif decision == ArbitrationDecision.EMPLOYER:
            EscrowService.refund_locked(escrow)
            outcome.employer_total += escrow.amount
        else:
            split = compute_split(escrow.amount, percentage)
            EscrowService.split_locked(escrow, split.contractor_amount)
            outcome.contractor_total += split.contractor_amount
            outcome.employer_total += split.employer_amount

        outcome.settled.append(escrow)

    @staticmethod
    def _lock_held_escrows(project_id: Any) -> list[EscrowTransaction]:
        return list(
            EscrowTransaction.objects.select_for_update()
            .select_related("project", "employer", "contractor")
            .filter(project_id=project_id, state=EscrowTransactionState.HELD)
            .order_by("created_at", "id")
        )

    @staticmethod
    def _lock_case(arbitration_id: Any) -> Arbitration:
        try:
            return Arbitration.objects.select_for_update().get(pk=arbitration_id)
        except Arbitration.DoesNotExist:
            raise ArbitrationNotFound(
                _("Arbitration case not found"),
                details={"arbitration_id": str(arbitration_id)},
            )

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def _validate_input(decision: str, contractor_percentage: Any) -> Decimal | None:
        """Return the split percentage as a Decimal, or None for other rulings."""
        if decision not in ArbitrationDecision.values:
            raise InvalidDecisionInput(
                _("Decision must be one of: %(choices)s")
                % {"choices": ", ".join(ArbitrationDecision.values)},
                details={"decision": str(decision)},
            )
        if decision != ArbitrationDecision.SPLIT:
            return None

        if contractor_percentage is None or isinstance(contractor_percentage, bool):
            raise InvalidDecisionInput(
                _("A split decision requires the contractor's percentage"),
            )
        try:
            percentage = Decimal(str(contractor_percentage))
        except InvalidOperation:
            raise InvalidDecisionInput(
                _("Contractor percentage must be a number"),
                details={"contractor_percentage": str(contractor_percentage)},
            )
        if not percentage.is_finite() or not Decimal(0) <= percentage <= Decimal(100):
            raise InvalidDecisionInput(
                _("Contractor percentage must be between 0 and 100"),
                details={"contractor_percentage": str(contractor_percentage)},
            )
        if percentage != percentage.quantize(Decimal("0.01")):
            raise InvalidDecisionInput(
                _("Contractor percentage allows at most two decimal places"),
                details={"contractor_percentage": str(contractor_percentage)},
            )
        return percentage

    # =========================================================================
    # Notifications
    # =========================================================================

    @staticmethod
    def _notify_parties(project: Project, outcome: DecisionOutcome) -> None:
        data = {
            "arbitration_id": str(outcome.arbitration.id),
            "project_id": str(project.id),
            "decision": outcome.arbitration.decision,
        }
        NotificationService.notify(
            project.contractor,
            title=_("Arbitration resolved"),
            message=_("The arbitrator has ruled. %(amount)s Rials were credited to your wallet")
            % {"amount": outcome.contractor_total},
            notification_type=NotificationType.ARBITRATION,
            data=data,
        )
        NotificationService.notify(
            project.employer,
            title=_("Arbitration resolved"),
            message=_("The arbitrator has ruled. %(amount)s Rials were refunded to your wallet")
            % {"amount": outcome.employer_total},
            notification_type=NotificationType.ARBITRATION,
            data=data,
        )
