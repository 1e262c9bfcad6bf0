"""
EscrowTransaction model for milestone payments held by the platform.

An EscrowTransaction tracks one milestone payment from the moment the
employer is sent to the gateway until the money leaves escrow.

Usage:
    from payments.models import EscrowTransaction
    from payments.state_machines import EscrowTransactionState

    escrow = EscrowTransaction.objects.create(
        project=project,
        milestone=milestone,
        employer=project.employer,
        contractor=project.contractor,
        amount=milestone.amount,
    )

    # State transitions using django-fsm
    escrow.hold(ref_id="201")  # pending -> held
    escrow.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import EscrowTransactionState


class EscrowTransaction(UUIDPrimaryKeyMixin, BaseModel):
    """
    A single milestone payment held in escrow.

    Uses django-fsm for state machine management and optimistic
    locking via version field for concurrency control.

    State Flow:
        PENDING -> HELD -> RELEASED | REFUNDED | SPLIT
        PENDING -> FAILED

    Fields:
        project/milestone: What is being paid for
        employer/contractor: The paying and the receiving party
        amount: Rials, fixed at creation
        state: Current FSM state
        authority: Gateway token for the payment attempt
        ref_id: Gateway reference issued on verification
        payment_date: Set once, when the payment becomes held
        release_date: Set once, when the money leaves escrow
        version: Optimistic locking version

    Note:
        Rows are never deleted once the gateway has issued an authority.
        The only delete is the compensating one when the gateway request
        itself fails (see EscrowService.request_gateway_payment).
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.PROTECT,
        related_name="escrow_transactions",
        help_text="Project the payment belongs to",
    )

    milestone = models.ForeignKey(
        "projects.Milestone",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="escrow_transactions",
        help_text="Milestone being paid for",
    )

    employer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="escrow_payments",
        help_text="User paying into escrow",
    )

    contractor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="escrow_earnings",
        help_text="User the escrow is released to",
    )

    # ==========================================================================
    # Amount & State
    # ==========================================================================

    amount = models.PositiveBigIntegerField(
        help_text="Amount in Rials (immutable after creation)",
    )

    state = FSMField(
        default=EscrowTransactionState.PENDING,
        choices=EscrowTransactionState.choices,
        db_index=True,
        protected=True,  # Prevent direct assignment outside transitions
        help_text="Current state of the escrow transaction (managed by FSM)",
    )

    # ==========================================================================
    # Gateway Integration
    # ==========================================================================

    authority = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        unique=True,
        help_text="ZarinPal authority for this payment attempt",
    )

    ref_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="ZarinPal reference id issued on verification",
    )

    description = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Description sent to the gateway",
    )

    # ==========================================================================
    # Concurrency Control
    # ==========================================================================

    version = models.PositiveIntegerField(
        default=1,
        help_text="Version for optimistic locking - incremented on each save",
    )

    # ==========================================================================
    # State Timestamps
    # ==========================================================================

    payment_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the gateway verified the payment",
    )

    release_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the funds left escrow",
    )

    failed_at = models.DateTimeField(
        null=True,
        blank=True,
    )

    failure_reason = models.TextField(
        null=True,
        blank=True,
        help_text="Gateway message if the payment failed",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Escrow Transaction"
        verbose_name_plural = "Escrow Transactions"
        indexes = [
            models.Index(fields=["project", "state"], name="escrow_project_state_idx"),
            models.Index(fields=["milestone", "state"], name="escrow_milestone_state_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="escrow_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"EscrowTransaction({self.id}, {self.state}, {self.amount} IRR)"

    def save(self, *args, **kwargs):
        """
        Save with version auto-increment for optimistic locking.

        On update (not force_insert), atomically increments the version
        field to detect concurrent modifications.
        """
        is_update = not self._state.adding and not kwargs.get("force_insert", False)
        if is_update:
            self.version = F("version") + 1
        super().save(*args, **kwargs)
        if is_update:
            self.refresh_from_db(fields=["version"])

    @property
    def is_terminal(self) -> bool:
        return self.state in (
            EscrowTransactionState.RELEASED,
            EscrowTransactionState.REFUNDED,
            EscrowTransactionState.SPLIT,
            EscrowTransactionState.FAILED,
        )

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=state,
        source=EscrowTransactionState.PENDING,
        target=EscrowTransactionState.HELD,
    )
    def hold(self, ref_id: str):
        """
        Mark the payment as verified and held in escrow.

        Transition: PENDING -> HELD
        """
        self.ref_id = ref_id
        self.payment_date = timezone.now()

    @transition(
        field=state,
        source=EscrowTransactionState.PENDING,
        target=EscrowTransactionState.FAILED,
    )
    def fail(self, reason: str | None = None):
        """
        Mark payment as failed.

        Transition: PENDING -> FAILED
        """
        self.failed_at = timezone.now()
        self.failure_reason = reason

    @transition(
        field=state,
        source=EscrowTransactionState.HELD,
        target=EscrowTransactionState.RELEASED,
    )
    def release(self):
        """
        Full amount paid out to the contractor.

        Transition: HELD -> RELEASED
        """
        self.release_date = timezone.now()

    @transition(
        field=state,
        source=EscrowTransactionState.HELD,
        target=EscrowTransactionState.REFUNDED,
    )
    def refund(self):
        """
        Full amount returned to the employer.

        Transition: HELD -> REFUNDED
        """
        self.release_date = timezone.now()

    @transition(
        field=state,
        source=EscrowTransactionState.HELD,
        target=EscrowTransactionState.SPLIT,
    )
    def split(self):
        """
        Amount divided between both parties by an arbitration ruling.

        Transition: HELD -> SPLIT
        """
        self.release_date = timezone.now()
