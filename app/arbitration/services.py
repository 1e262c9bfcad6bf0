"""
Arbitration case service.

Covers the case lifecycle around the decision processor: opening a case,
assigning an arbitrator, submitting the ruling and rating the arbitrator
afterwards.

Related files:
    - processor.py: ArbitrationDecisionProcessor (the money movement)
    - models.py: Arbitration, ArbitratorRating

Usage:
    from arbitration.services import ArbitrationService

    result = ArbitrationService.open_case(employer, project.id, reason)
    if result.success:
        case = result.data
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import IntegrityError
from django.db.models import Q
from django.utils.translation import gettext as _

from arbitration.exceptions import (
    AlreadyRated,
    ArbitrationNotFound,
    CaseAlreadyOpen,
    CaseNotPending,
)
from arbitration.models import Arbitration, ArbitrationStatus, ArbitratorRating
from arbitration.processor import ArbitrationDecisionProcessor, DecisionOutcome
from authentication.models import User, UserRole
from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import BaseService, ServiceResult
from notifications.models import NotificationType
from notifications.services import NotificationService
from projects.models import Project, ProjectStatus

if TYPE_CHECKING:
    from typing import Any

    from django.db.models import QuerySet


REASON_MIN_LENGTH = 20
REASON_MAX_LENGTH = 1000

# Projects in these states can be taken to arbitration
DISPUTABLE_STATUSES = (ProjectStatus.IN_PROGRESS, ProjectStatus.COMPLETED)


class ArbitrationService(BaseService):
    """
    Service for arbitration cases.

    Methods:
        open_case: A project party opens a dispute
        assign_arbitrator: Admin assignment or arbitrator self-assignment
        submit_decision: Assigned arbitrator rules; escrow is settled
        rate_arbitrator: A party rates the arbitrator of a resolved case
        cases_for: Cases visible to a user
    """

    # =========================================================================
    # Opening
    # =========================================================================

    @classmethod
    def open_case(
        cls,
        initiator: User,
        project_id: Any,
        reason: str,
    ) -> ServiceResult[Arbitration]:
        """
        Open an arbitration case for a project.

        The project moves to DISPUTED; the other party and every active
        arbitrator are notified.
        """
        log_extra = {"project_id": str(project_id), "user_id": initiator.pk}
        reason = (reason or "").strip()

        try:
            if not REASON_MIN_LENGTH <= len(reason) <= REASON_MAX_LENGTH:
                raise ValidationError(
                    _("Reason must be between %(min)s and %(max)s characters")
                    % {"min": REASON_MIN_LENGTH, "max": REASON_MAX_LENGTH},
                    error_code="INVALID_REASON",
                )

            with cls.atomic():
                project = cls._lock_project(project_id)
                if not project.is_party(initiator):
                    raise PermissionDeniedError(
                        _("Only the project's employer or contractor can open a case"),
                        error_code="NOT_PROJECT_PARTY",
                    )
                if project.status not in DISPUTABLE_STATUSES:
                    raise ValidationError(
                        _("Arbitration is only available for projects in progress or completed"),
                        error_code="PROJECT_NOT_DISPUTABLE",
                        details={"status": project.status},
                    )
                if project.arbitrations.exclude(status=ArbitrationStatus.RESOLVED).exists():
                    raise CaseAlreadyOpen(
                        _("This project already has an open arbitration case"),
                        details={"project_id": str(project.id)},
                    )

                arbitration = Arbitration.objects.create(
                    project=project,
                    initiator=initiator,
                    reason=reason,
                )
                project.status = ProjectStatus.DISPUTED
                project.save(update_fields=["status", "updated_at"])
        except BaseApplicationError as e:
            return cls.handle_exception(
                e, "Arbitration case rejected", log_level=logging.WARNING, extra=log_extra
            )

        data = {"arbitration_id": str(arbitration.id), "project_id": str(project.id)}
        other_party = (
            project.contractor if initiator.pk == project.employer_id else project.employer
        )
        NotificationService.notify(
            other_party,
            title=_("Arbitration opened"),
            message=_("An arbitration case was opened for project %(project)s")
            % {"project": project.title},
            notification_type=NotificationType.ARBITRATION,
            data=data,
        )
        NotificationService.notify_many(
            User.objects.filter(role=UserRole.ARBITRATOR, is_active=True),
            title=_("New arbitration case"),
            message=_("A new case is waiting for an arbitrator"),
            notification_type=NotificationType.ARBITRATION,
            data=data,
        )

        cls.get_logger().info(
            "Arbitration case opened",
            extra={**log_extra, "arbitration_id": str(arbitration.id)},
        )
        return ServiceResult.success(arbitration)

    # =========================================================================
    # Assignment
    # =========================================================================

    @classmethod
    def assign_arbitrator(
        cls,
        arbitration_id: Any,
        actor: User,
        arbitrator_id: Any = None,
    ) -> ServiceResult[Arbitration]:
        """
        Put an arbitrator on a pending case.

        Admins assign any active arbitrator (``arbitrator_id`` required);
        arbitrators may only take the case themselves.
        """
        log_extra = {"arbitration_id": str(arbitration_id), "user_id": actor.pk}

        try:
            arbitrator = cls._resolve_arbitrator(actor, arbitrator_id)

            with cls.atomic():
                arbitration = cls._lock_case(arbitration_id)
                if arbitration.status != ArbitrationStatus.PENDING:
                    raise CaseNotPending(
                        _("This case already has an arbitrator"),
                        details={"status": arbitration.status},
                    )
                arbitration.assign(arbitrator)
                arbitration.save()
                project = arbitration.project
        except BaseApplicationError as e:
            return cls.handle_exception(
                e, "Arbitrator assignment rejected", log_level=logging.WARNING, extra=log_extra
            )

        data = {"arbitration_id": str(arbitration.id), "project_id": str(project.id)}
        NotificationService.notify_many(
            [project.employer, project.contractor],
            title=_("Arbitrator assigned"),
            message=_("%(name)s will arbitrate your case")
            % {"name": arbitrator.full_name or arbitrator.email},
            notification_type=NotificationType.ARBITRATION,
            data=data,
        )
        if arbitrator.pk != actor.pk:
            NotificationService.notify(
                arbitrator,
                title=_("Case assigned to you"),
                message=_("You were assigned the arbitration of %(project)s")
                % {"project": project.title},
                notification_type=NotificationType.ARBITRATION,
                data=data,
            )

        cls.get_logger().info(
            "Arbitrator assigned",
            extra={**log_extra, "arbitrator_id": arbitrator.pk},
        )
        return ServiceResult.success(arbitration)

    @staticmethod
    def _resolve_arbitrator(actor: User, arbitrator_id: Any) -> User:
        if actor.is_arbitrator:
            if arbitrator_id is not None and str(arbitrator_id) != str(actor.pk):
                raise PermissionDeniedError(
                    _("Arbitrators can only assign cases to themselves"),
                )
            return actor

        if not actor.is_admin:
            raise PermissionDeniedError(_("Only admins and arbitrators can assign cases"))

        if arbitrator_id is None:
            raise ValidationError(
                _("An arbitrator must be chosen"),
                error_code="ARBITRATOR_REQUIRED",
            )
        arbitrator = User.objects.filter(
            pk=arbitrator_id, role=UserRole.ARBITRATOR, is_active=True
        ).first()
        if arbitrator is None:
            raise NotFoundError(
                _("Arbitrator not found"),
                error_code="ARBITRATOR_NOT_FOUND",
                details={"arbitrator_id": str(arbitrator_id)},
            )
        return arbitrator

    # =========================================================================
    # Decision
    # =========================================================================

    @classmethod
    def submit_decision(
        cls,
        arbitration_id: Any,
        caller: User,
        decision: str,
        contractor_percentage: Any = None,
        resolution: str = "",
        processor: ArbitrationDecisionProcessor | None = None,
    ) -> ServiceResult[DecisionOutcome]:
        """Rule on a case. See ArbitrationDecisionProcessor.process_decision."""
        processor = processor or ArbitrationDecisionProcessor()
        try:
            outcome = processor.process_decision(
                arbitration_id,
                caller,
                decision,
                contractor_percentage=contractor_percentage,
                resolution=resolution,
            )
        except BaseApplicationError as e:
            return cls.handle_exception(
                e,
                "Arbitration decision rejected",
                log_level=logging.WARNING,
                extra={"arbitration_id": str(arbitration_id), "user_id": caller.pk},
            )
        return ServiceResult.success(outcome)

    # =========================================================================
    # Rating
    # =========================================================================

    @classmethod
    def rate_arbitrator(
        cls,
        arbitration_id: Any,
        rater: User,
        rating: int,
        feedback: str = "",
    ) -> ServiceResult[ArbitratorRating]:
        """A project party rates the arbitrator once the case is resolved."""
        log_extra = {"arbitration_id": str(arbitration_id), "user_id": rater.pk}

        try:
            if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
                raise ValidationError(
                    _("Rating must be between 1 and 5"),
                    error_code="INVALID_RATING",
                )

            arbitration = (
                Arbitration.objects.select_related("project").filter(pk=arbitration_id).first()
            )
            if arbitration is None:
                raise ArbitrationNotFound(_("Arbitration case not found"))
            if not arbitration.project.is_party(rater):
                raise PermissionDeniedError(
                    _("Only the parties of the case can rate its arbitrator"),
                    error_code="NOT_PROJECT_PARTY",
                )
            if arbitration.status != ArbitrationStatus.RESOLVED:
                raise ConflictError(
                    _("Only resolved cases can be rated"),
                    error_code="CASE_NOT_RESOLVED",
                )
            if arbitration.ratings.filter(rater=rater).exists():
                raise AlreadyRated(_("You have already rated this arbitrator"))

            try:
                with cls.atomic():
                    entry = ArbitratorRating.objects.create(
                        arbitration=arbitration,
                        rater=rater,
                        arbitrator_id=arbitration.arbitrator_id,
                        rating=rating,
                        feedback=(feedback or "").strip(),
                    )
            except IntegrityError:
                raise AlreadyRated(_("You have already rated this arbitrator"))
        except BaseApplicationError as e:
            return cls.handle_exception(
                e, "Arbitrator rating rejected", log_level=logging.WARNING, extra=log_extra
            )

        cls.get_logger().info("Arbitrator rated", extra={**log_extra, "rating": rating})
        return ServiceResult.success(entry)

    # =========================================================================
    # Queries
    # =========================================================================

    @staticmethod
    def cases_for(user: User) -> QuerySet[Arbitration]:
        """
        Cases the user may see.

        Admins see everything; arbitrators see pending cases and their own;
        parties see the cases of their projects.
        """
        queryset = Arbitration.objects.select_related(
            "project", "initiator", "arbitrator"
        ).order_by("-created_at")
        if user.is_admin:
            return queryset

        visible = Q(project__employer=user) | Q(project__contractor=user)
        if user.is_arbitrator:
            visible |= Q(status=ArbitrationStatus.PENDING) | Q(arbitrator=user)
        return queryset.filter(visible)

    @staticmethod
    def _lock_case(arbitration_id: Any) -> Arbitration:
        try:
            return (
                Arbitration.objects.select_for_update()
                .select_related("project", "project__employer")
                .get(pk=arbitration_id)
            )
        except Arbitration.DoesNotExist:
            raise ArbitrationNotFound(
                _("Arbitration case not found"),
                details={"arbitration_id": str(arbitration_id)},
            )

    @staticmethod
    def _lock_project(project_id: Any) -> Project:
        try:
            return Project.objects.select_for_update().get(pk=project_id)
        except Project.DoesNotExist:
            raise NotFoundError(
                _("Project not found"),
                error_code="PROJECT_NOT_FOUND",
                details={"project_id": str(project_id)},
            )
