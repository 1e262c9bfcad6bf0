"""
Arbitration case and arbitrator rating models.

A party of a disputed project opens an Arbitration; an arbitrator takes the
case and rules on how the project's held escrow is settled.

Status Flow:
    PENDING -> ASSIGNED -> RESOLVED

Usage:
    from arbitration.models import Arbitration

    case = Arbitration.objects.create(project=project, initiator=user, reason=text)
    case.assign(arbitrator)          # pending -> assigned
    case.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class ArbitrationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ASSIGNED = "assigned", "Assigned"
    RESOLVED = "resolved", "Resolved"


class ArbitrationDecision(models.TextChoices):
    """Who the held escrow goes to."""

    CONTRACTOR = "contractor", "Contractor"
    EMPLOYER = "employer", "Employer"
    SPLIT = "split", "Split"


class Arbitration(UUIDPrimaryKeyMixin, BaseModel):
    """
    A dispute over a project's held escrow.

    Fields:
        project: Disputed project
        initiator: Party who opened the case
        arbitrator: Assigned arbitrator (null while pending)
        reason: Initiator's description of the dispute
        status: FSM state (see ArbitrationStatus)
        decision: Ruling, set on resolution
        contractor_percentage: Contractor's share for split rulings
        resolution: Arbitrator's written reasoning
    """

    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.PROTECT,
        related_name="arbitrations",
    )

    initiator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="initiated_arbitrations",
        help_text="Party who opened the case",
    )

    arbitrator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="arbitration_cases",
    )

    reason = models.TextField()

    status = FSMField(
        default=ArbitrationStatus.PENDING,
        choices=ArbitrationStatus.choices,
        db_index=True,
        protected=True,
    )

    decision = models.CharField(
        max_length=20,
        choices=ArbitrationDecision.choices,
        null=True,
        blank=True,
    )

    contractor_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Contractor's share (0-100) for split decisions",
    )

    resolution = models.TextField(blank=True, default="")

    assigned_at = models.DateTimeField(null=True, blank=True)

    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["project", "status"], name="arbitration_project_status_idx"),
            models.Index(fields=["arbitrator", "status"], name="arbitration_arbiter_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(contractor_percentage__isnull=True)
                | models.Q(contractor_percentage__gte=0, contractor_percentage__lte=100),
                name="arbitration_percentage_range",
            ),
        ]

    def __str__(self) -> str:
        return f"Arbitration({self.id}, {self.status})"

    @transition(
        field=status,
        source=ArbitrationStatus.PENDING,
        target=ArbitrationStatus.ASSIGNED,
    )
    def assign(self, arbitrator):
        self.arbitrator = arbitrator
        self.assigned_at = timezone.now()

    @transition(
        field=status,
        source=ArbitrationStatus.ASSIGNED,
        target=ArbitrationStatus.RESOLVED,
    )
    def resolve(self, decision: str, resolution: str = "", contractor_percentage=None):
        """
        Record the ruling.

        contractor_percentage is kept only for split decisions.
        """
        self.decision = decision
        self.resolution = resolution
        self.contractor_percentage = (
            contractor_percentage if decision == ArbitrationDecision.SPLIT else None
        )
        self.resolved_at = timezone.now()


class ArbitratorRating(UUIDPrimaryKeyMixin, BaseModel):
    """A party's 1-5 rating of the arbitrator who resolved their case."""

    arbitration = models.ForeignKey(
        Arbitration,
        on_delete=models.CASCADE,
        related_name="ratings",
    )

    rater = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="given_arbitrator_ratings",
    )

    arbitrator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="arbitrator_ratings",
    )

    rating = models.PositiveSmallIntegerField()

    feedback = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["arbitration", "rater"],
                name="unique_rating_per_rater",
            ),
            models.CheckConstraint(
                condition=models.Q(rating__gte=1, rating__lte=5),
                name="arbitrator_rating_range",
            ),
        ]

    def __str__(self) -> str:
        return f"ArbitratorRating({self.arbitration_id}, {self.rating})"
