"""
Project and Milestone models.

A project is posted by an employer and assigned to one contractor. Work is
paid per milestone through escrow (see payments.models.EscrowTransaction).

Status Flow (Project):
    OPEN -> ASSIGNED -> IN_PROGRESS -> COMPLETED
    IN_PROGRESS/COMPLETED -> DISPUTED -> COMPLETED (after arbitration)
    OPEN/ASSIGNED -> CANCELLED
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class ProjectStatus(models.TextChoices):
    OPEN = "open", "Open"
    ASSIGNED = "assigned", "Assigned"
    IN_PROGRESS = "in_progress", "In Progress"
    DISPUTED = "disputed", "Disputed"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class MilestoneStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"


class Project(UUIDPrimaryKeyMixin, BaseModel):
    """
    A unit of contracted work between one employer and one contractor.

    Fields:
        employer: User who posted and pays for the project
        contractor: Assigned contractor (null until someone accepts)
        title/description: Free text
        budget: Total agreed budget in Rials
        status: Lifecycle status (see ProjectStatus)
    """

    employer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="employer_projects",
        help_text="User who posted and pays for the project",
    )

    contractor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="contractor_projects",
        help_text="Contractor assigned to the project",
    )

    title = models.CharField(max_length=200)

    description = models.TextField(blank=True, default="")

    budget = models.PositiveBigIntegerField(
        default=0,
        help_text="Total agreed budget in Rials",
    )

    status = models.CharField(
        max_length=20,
        choices=ProjectStatus.choices,
        default=ProjectStatus.OPEN,
        db_index=True,
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["employer", "status"], name="project_employer_status_idx"),
            models.Index(fields=["contractor", "status"], name="project_contractor_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Project({self.id}, {self.title!r}, {self.status})"

    def is_party(self, user) -> bool:
        """True if the user is this project's employer or contractor."""
        return user.pk in (self.employer_id, self.contractor_id)


class Milestone(UUIDPrimaryKeyMixin, BaseModel):
    """
    A payable chunk of a project.

    The amount is what the employer deposits into escrow for this
    milestone; it becomes COMPLETED once the escrow is released.
    """

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name="milestones",
    )

    title = models.CharField(max_length=200)

    amount = models.PositiveBigIntegerField(
        help_text="Milestone amount in Rials",
    )

    order = models.PositiveIntegerField(default=1)

    status = models.CharField(
        max_length=20,
        choices=MilestoneStatus.choices,
        default=MilestoneStatus.PENDING,
    )

    class Meta:
        ordering = ["project", "order"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="milestone_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Milestone({self.id}, {self.title!r}, {self.amount})"
