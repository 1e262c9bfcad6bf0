"""
Escrow service for milestone payments.

This module owns the lifecycle of an EscrowTransaction:

    create_pending_transaction -> request_gateway_payment   (employer pays)
    verify_and_hold                                         (gateway callback)
    release / refund                                        (money leaves escrow)

Gateway calls happen outside database transactions. Every state change and
its wallet movement happen inside one transaction with the escrow row
locked, so a failed credit rolls the transition back and a second caller
sees the new state.

Usage:
    from payments.services import EscrowService

    result = EscrowService().initiate_milestone_payment(
        employer=request.user,
        project_id=project.id,
        milestone_id=milestone.id,
    )
    if result.success:
        return redirect(result.data.payment_url)

    # Gateway callback
    result = EscrowService().verify_and_hold(transaction_id, authority, "OK")

    # Direct release by the employer
    result = EscrowService().release(transaction_id, actor=request.user)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.conf import settings
from django.db.models import Q, QuerySet, Sum
from django.utils.translation import gettext as _
from django_fsm import TransitionNotAllowed

from core.exceptions import BaseApplicationError, NotFoundError, PermissionDeniedError
from core.services import BaseService, ServiceResult
from notifications.models import NotificationType
from notifications.services import NotificationService
from payments.adapters import PaymentRequestParams, PaymentRequestResult, ZarinPalAdapter
from payments.exceptions import (
    ContractorNotAssigned,
    DuplicateMilestonePayment,
    InvalidTransactionState,
    TransactionNotFound,
    ZarinPalError,
)
from payments.ledger.exceptions import InvalidAmount
from payments.ledger.services import WalletLedgerService
from payments.models import EscrowTransaction
from payments.state_machines import EscrowTransactionState, WalletTransactionType
from projects.models import Milestone, MilestoneStatus, Project, ProjectStatus

if TYPE_CHECKING:
    from typing import Any

    from authentication.models import User


@dataclass
class EscrowPaymentInitiation:
    """Pending escrow row plus the gateway page to send the employer to."""

    transaction: EscrowTransaction
    payment_url: str
    authority: str


class EscrowService(BaseService):
    """
    Service for escrow transaction lifecycle operations.

    Public methods return ServiceResult. The ``release_locked``,
    ``refund_locked`` and ``split_locked`` helpers raise instead, for callers
    that already hold the row lock inside their own transaction (arbitration
    decisions). Every exit from escrow moves the whole amount and leaves
    HELD in the same step.

    Safety Guarantees:
        - A milestone cannot be paid twice (held/released check under a
          milestone row lock)
        - A held transaction leaves escrow exactly once (state check under
          an escrow row lock)
        - Wallet credits and state transitions commit or roll back together
    """

    def __init__(self, gateway: type[ZarinPalAdapter] | None = None):
        self.gateway = gateway or ZarinPalAdapter

    # =========================================================================
    # Creation and gateway request
    # =========================================================================

    def create_pending_transaction(
        self,
        project_id: Any,
        milestone_id: Any,
        employer_id: Any,
        contractor_id: Any,
        amount: int,
        description: str = "",
    ) -> ServiceResult[EscrowTransaction]:
        """
        Create a pending escrow transaction for a milestone.

        Fails with DUPLICATE_MILESTONE_PAYMENT when the milestone already
        has a held or released transaction, and with
        CONTRACTOR_NOT_ASSIGNED when there is nobody to pay.
        """
        log_extra = {
            "project_id": str(project_id),
            "milestone_id": str(milestone_id),
            "amount": amount,
        }

        try:
            with self.atomic():
                escrow = self._create_pending(
                    project_id,
                    milestone_id,
                    employer_id,
                    contractor_id,
                    amount,
                    description,
                )
        except BaseApplicationError as e:
            return self.handle_exception(
                e, "Escrow creation rejected", log_level=logging.WARNING, extra=log_extra
            )

        self.get_logger().info(
            "Escrow transaction created",
            extra={**log_extra, "transaction_id": str(escrow.id)},
        )
        return ServiceResult.success(escrow)

    @staticmethod
    def _create_pending(
        project_id: Any,
        milestone_id: Any,
        employer_id: Any,
        contractor_id: Any,
        amount: int,
        description: str,
    ) -> EscrowTransaction:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise InvalidAmount(
                _("Amount must be a positive number of Rials"),
                details={"amount": str(amount)},
            )

        try:
            project = Project.objects.get(pk=project_id)
        except Project.DoesNotExist:
            raise NotFoundError(
                _("Project not found"),
                error_code="PROJECT_NOT_FOUND",
                details={"project_id": str(project_id)},
            )

        if contractor_id is None or project.contractor_id is None:
            raise ContractorNotAssigned(
                _("No contractor has been selected for this project"),
                details={"project_id": str(project.id)},
            )

        if milestone_id is not None:
            # Serializes concurrent payments for the same milestone
            if not Milestone.objects.select_for_update().filter(
                pk=milestone_id, project=project
            ).exists():
                raise NotFoundError(
                    _("Milestone not found"),
                    error_code="MILESTONE_NOT_FOUND",
                    details={"milestone_id": str(milestone_id)},
                )

            already_paid = EscrowTransaction.objects.filter(
                project=project,
                milestone_id=milestone_id,
                state__in=[EscrowTransactionState.HELD, EscrowTransactionState.RELEASED],
            ).exists()
            if already_paid:
                raise DuplicateMilestonePayment(
                    _("This milestone has already been paid"),
                    details={
                        "project_id": str(project.id),
                        "milestone_id": str(milestone_id),
                    },
                )

        return EscrowTransaction.objects.create(
            project=project,
            milestone_id=milestone_id,
            employer_id=employer_id,
            contractor_id=contractor_id,
            amount=amount,
            description=description,
        )

    def request_gateway_payment(
        self,
        escrow: EscrowTransaction,
        description: str,
        callback_url: str,
    ) -> ServiceResult[PaymentRequestResult]:
        """
        Ask the gateway for a payment authority and store it on the row.

        If the request fails for any reason, the pending row is deleted: no
        payment was started, so there is nothing to keep.
        """
        log_extra = {"transaction_id": str(escrow.id), "amount": escrow.amount}

        try:
            payment = self.gateway.request_payment(
                PaymentRequestParams(
                    amount=escrow.amount,
                    description=description,
                    callback_url=callback_url,
                    mobile=escrow.employer.phone_number or "",
                    email=escrow.employer.email,
                )
            )
        except ZarinPalError as e:
            self._discard_pending(escrow)
            return self.handle_exception(
                e,
                "Gateway payment request failed, pending escrow removed",
                extra={**log_extra, "gateway_status": e.gateway_status},
            )
        except Exception as e:
            self._discard_pending(escrow)
            self.get_logger().error(
                "Unexpected error requesting gateway payment, pending escrow removed",
                extra=log_extra,
                exc_info=True,
            )
            return ServiceResult.failure(
                _("Could not start the payment, please try again"),
                error_code="GATEWAY_ERROR",
                details={"reason": str(e)},
            )

        escrow.authority = payment.authority
        if description and not escrow.description:
            escrow.description = description
        escrow.save(update_fields=["authority", "description", "version", "updated_at"])

        self.get_logger().info(
            "Gateway payment requested",
            extra={**log_extra, "authority": payment.authority},
        )
        return ServiceResult.success(payment)

    def initiate_milestone_payment(
        self,
        employer: User,
        project_id: Any,
        milestone_id: Any,
        description: str = "",
    ) -> ServiceResult[EscrowPaymentInitiation]:
        """
        Employer pays a milestone into escrow.

        Creates the pending row and requests the gateway payment. The
        gateway redirects back to the frontend with the transaction id.
        """
        try:
            project = Project.objects.get(pk=project_id)
            if project.employer_id != employer.pk:
                raise PermissionDeniedError(
                    _("Only the project's employer can pay its milestones"),
                    error_code="NOT_PROJECT_EMPLOYER",
                )
            milestone = Milestone.objects.get(pk=milestone_id, project=project)
        except Project.DoesNotExist:
            return ServiceResult.failure(_("Project not found"), error_code="PROJECT_NOT_FOUND")
        except Milestone.DoesNotExist:
            return ServiceResult.failure(
                _("Milestone not found"), error_code="MILESTONE_NOT_FOUND"
            )
        except PermissionDeniedError as e:
            return self.handle_exception(
                e,
                "Milestone payment rejected",
                log_level=logging.WARNING,
                extra={"project_id": str(project_id), "user_id": employer.pk},
            )

        description = description or _("Payment for milestone %(milestone)s of %(project)s") % {
            "milestone": milestone.title,
            "project": project.title,
        }

        created = self.create_pending_transaction(
            project.id,
            milestone.id,
            employer.pk,
            project.contractor_id,
            milestone.amount,
            description,
        )
        if not created.success:
            return created

        escrow = created.data
        callback_url = (
            f"{settings.FRONTEND_URL}/payment/escrow/callback?transaction_id={escrow.id}"
        )
        requested = self.request_gateway_payment(escrow, description, callback_url)
        if not requested.success:
            return requested

        return ServiceResult.success(
            EscrowPaymentInitiation(
                transaction=escrow,
                payment_url=requested.data.payment_url,
                authority=requested.data.authority,
            )
        )

    # =========================================================================
    # Verification
    # =========================================================================

    def verify_and_hold(
        self,
        transaction_id: Any,
        authority: str,
        gateway_status: str = "OK",
    ) -> ServiceResult[EscrowTransaction]:
        """
        Handle the gateway callback for an escrow payment.

        Only a pending transaction with this exact authority is accepted.
        A callback status other than "OK" or a rejected verification marks
        the transaction failed. On success the transaction becomes held and
        an ASSIGNED project moves to IN_PROGRESS.
        """
        log_extra = {"transaction_id": str(transaction_id), "authority": authority}

        escrow = EscrowTransaction.objects.filter(
            pk=transaction_id,
            authority=authority,
            state=EscrowTransactionState.PENDING,
        ).first()
        if escrow is None:
            return self.handle_exception(
                TransactionNotFound(
                    _("Escrow transaction not found"),
                    details={"transaction_id": str(transaction_id)},
                ),
                "Escrow verification failed",
                log_level=logging.WARNING,
                extra=log_extra,
            )

        if gateway_status != "OK":
            self._mark_failed(escrow.pk, _("Payment was cancelled by the payer"))
            self.get_logger().info(
                "Escrow payment cancelled at gateway",
                extra={**log_extra, "gateway_callback_status": gateway_status},
            )
            return ServiceResult.failure(
                _("The payment was cancelled or unsuccessful"),
                error_code="PAYMENT_CANCELLED",
            )

        try:
            verification = self.gateway.verify_payment(authority, escrow.amount)
        except ZarinPalError as e:
            self._mark_failed(escrow.pk, e.message)
            return self.handle_exception(
                e,
                "Escrow payment verification rejected",
                log_level=logging.WARNING,
                extra={**log_extra, "gateway_status": e.gateway_status},
            )

        try:
            with self.atomic():
                escrow = self._lock(
                    transaction_id,
                    authority=authority,
                    state=EscrowTransactionState.PENDING,
                )
                escrow.hold(ref_id=verification.ref_id)
                escrow.save()

                project = Project.objects.select_for_update().get(pk=escrow.project_id)
                if project.status == ProjectStatus.ASSIGNED:
                    project.status = ProjectStatus.IN_PROGRESS
                    project.save(update_fields=["status", "updated_at"])
        except BaseApplicationError as e:
            return self.handle_exception(
                e, "Escrow hold failed", log_level=logging.WARNING, extra=log_extra
            )

        NotificationService.notify(
            escrow.contractor,
            title=_("Milestone funded"),
            message=_("%(amount)s Rials are now held in escrow for your project")
            % {"amount": escrow.amount},
            notification_type=NotificationType.PAYMENT,
            data={"transaction_id": str(escrow.id), "project_id": str(escrow.project_id)},
        )

        self.get_logger().info(
            "Escrow payment held",
            extra={**log_extra, "ref_id": verification.ref_id, "amount": escrow.amount},
        )
        return ServiceResult.success(escrow)

    def _mark_failed(self, transaction_id: Any, reason: str) -> None:
        """Move a still-pending transaction to FAILED; no-op if it moved on."""
        with self.atomic():
            escrow = EscrowTransaction.objects.select_for_update().filter(
                pk=transaction_id,
                state=EscrowTransactionState.PENDING,
            ).first()
            if escrow is None:
                return
            escrow.fail(reason=reason)
            escrow.save()

        self.get_logger().info(
            "Escrow transaction failed",
            extra={"transaction_id": str(transaction_id), "reason": reason},
        )

    # =========================================================================
    # Release and refund
    # =========================================================================

    def release(
        self,
        transaction_id: Any,
        actor: User | None = None,
    ) -> ServiceResult[EscrowTransaction]:
        """
        Pay a held transaction out to the contractor in full.

        The transaction moves to RELEASED and its milestone to COMPLETED.
        When ``actor`` is given it must be the project's employer or an
        admin.
        """
        log_extra = {"transaction_id": str(transaction_id)}

        try:
            with self.atomic():
                escrow = self._lock(transaction_id)
                if actor is not None:
                    self._check_release_permission(escrow, actor)
                self.release_locked(escrow)

                if escrow.milestone_id:
                    Milestone.objects.filter(pk=escrow.milestone_id).update(
                        status=MilestoneStatus.COMPLETED
                    )
        except BaseApplicationError as e:
            return self.handle_exception(
                e, "Escrow release rejected", log_level=logging.WARNING, extra=log_extra
            )

        NotificationService.notify(
            escrow.contractor,
            title=_("Payment released"),
            message=_("%(amount)s Rials were released to your wallet")
            % {"amount": escrow.amount},
            notification_type=NotificationType.PAYMENT,
            data={"transaction_id": str(escrow.id), "project_id": str(escrow.project_id)},
        )
        return ServiceResult.success(escrow)

    def refund(self, transaction_id: Any) -> ServiceResult[EscrowTransaction]:
        """Return a held transaction to the employer in full."""
        log_extra = {"transaction_id": str(transaction_id)}

        try:
            with self.atomic():
                escrow = self._lock(transaction_id)
                self.refund_locked(escrow)
        except BaseApplicationError as e:
            return self.handle_exception(
                e, "Escrow refund rejected", log_level=logging.WARNING, extra=log_extra
            )

        NotificationService.notify(
            escrow.employer,
            title=_("Payment refunded"),
            message=_("%(amount)s Rials were refunded to your wallet")
            % {"amount": escrow.amount},
            notification_type=NotificationType.PAYMENT,
            data={"transaction_id": str(escrow.id), "project_id": str(escrow.project_id)},
        )
        return ServiceResult.success(escrow)

    @classmethod
    def release_locked(cls, escrow: EscrowTransaction) -> None:
        """
        Move a locked, held transaction to RELEASED and credit the contractor.

        Must run inside transaction.atomic() with ``escrow`` selected for
        update. Raises InvalidTransactionState before any wallet change.
        """
        cls._transition(escrow, escrow.release, "release")
        cls._credit_contractor(escrow, escrow.amount)

    @classmethod
    def refund_locked(cls, escrow: EscrowTransaction) -> None:
        """Move a locked, held transaction to REFUNDED and credit the employer."""
        cls._transition(escrow, escrow.refund, "refund")
        cls._credit_employer(escrow, escrow.amount)

    @classmethod
    def split_locked(cls, escrow: EscrowTransaction, contractor_amount: int) -> int:
        """
        Divide a locked, held transaction between both parties.

        The contractor gets ``contractor_amount`` and the employer the rest,
        so the two credits always add up to the escrowed amount. A side
        that comes to zero gets no ledger row. Returns the employer's part.
        """
        if (
            not isinstance(contractor_amount, int)
            or isinstance(contractor_amount, bool)
            or not 0 <= contractor_amount <= escrow.amount
        ):
            raise InvalidAmount(
                _("Contractor share must be between 0 and the escrowed amount"),
                details={"amount": str(contractor_amount), "escrow_amount": escrow.amount},
            )
        employer_amount = escrow.amount - contractor_amount

        cls._transition(escrow, escrow.split, "split")
        if contractor_amount > 0:
            cls._credit_contractor(escrow, contractor_amount)
        if employer_amount > 0:
            cls._credit_employer(escrow, employer_amount)
        return employer_amount

    @staticmethod
    def _transition(escrow: EscrowTransaction, method, action: str) -> None:
        # Money leaves escrow only on the way out of HELD
        if escrow.state != EscrowTransactionState.HELD:
            raise InvalidTransactionState.for_transaction(escrow, action)
        try:
            method()
        except TransitionNotAllowed:
            raise InvalidTransactionState.for_transaction(escrow, action)
        escrow.save()

    @classmethod
    def _credit_contractor(cls, escrow: EscrowTransaction, amount: int) -> None:
        WalletLedgerService.credit(
            escrow.contractor,
            amount,
            WalletTransactionType.EARNING,
            description=_("Escrow release for project %(project)s")
            % {"project": escrow.project.title},
            escrow_transaction=escrow,
        )
        cls.get_logger().info(
            "Escrow released",
            extra={"transaction_id": str(escrow.id), "amount": amount, "state": escrow.state},
        )

    @classmethod
    def _credit_employer(cls, escrow: EscrowTransaction, amount: int) -> None:
        WalletLedgerService.credit(
            escrow.employer,
            amount,
            WalletTransactionType.REFUND,
            description=_("Escrow refund for project %(project)s")
            % {"project": escrow.project.title},
            escrow_transaction=escrow,
        )
        cls.get_logger().info(
            "Escrow refunded",
            extra={"transaction_id": str(escrow.id), "amount": amount, "state": escrow.state},
        )

    @staticmethod
    def _discard_pending(escrow: EscrowTransaction) -> None:
        EscrowTransaction.objects.filter(
            pk=escrow.pk,
            state=EscrowTransactionState.PENDING,
        ).delete()

    @staticmethod
    def _check_release_permission(escrow: EscrowTransaction, actor: User) -> None:
        if actor.pk != escrow.employer_id and not actor.is_admin:
            raise PermissionDeniedError(
                _("You do not have access to this transaction"),
                error_code="NOT_TRANSACTION_PARTY",
            )

    @staticmethod
    def _lock(transaction_id: Any, **filters: Any) -> EscrowTransaction:
        try:
            return (
                EscrowTransaction.objects.select_for_update()
                .select_related("project", "employer", "contractor")
                .get(pk=transaction_id, **filters)
            )
        except EscrowTransaction.DoesNotExist:
            raise TransactionNotFound(
                _("Escrow transaction not found"),
                details={"transaction_id": str(transaction_id)},
            )

    # =========================================================================
    # Queries
    # =========================================================================

    @staticmethod
    def history(user: User) -> QuerySet[EscrowTransaction]:
        """Escrow transactions where the user pays or gets paid, newest first."""
        return (
            EscrowTransaction.objects.filter(Q(employer=user) | Q(contractor=user))
            .select_related("project", "milestone")
            .order_by("-created_at")
        )

    @staticmethod
    def stats(user: User) -> dict[str, int]:
        """Totals sent, received and currently held for the user."""
        totals = EscrowTransaction.objects.aggregate(
            total_sent=Sum(
                "amount",
                filter=Q(
                    employer=user,
                    state__in=[EscrowTransactionState.HELD, EscrowTransactionState.RELEASED],
                ),
            ),
            total_received=Sum(
                "amount",
                filter=Q(contractor=user, state=EscrowTransactionState.RELEASED),
            ),
            total_in_escrow=Sum(
                "amount",
                filter=Q(employer=user, state=EscrowTransactionState.HELD),
            ),
        )
        return {key: value or 0 for key, value in totals.items()}
