"""
Notification model.

One row per in-app message. Rows are created by NotificationService and
only ever updated to flip ``is_read``.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class NotificationType(models.TextChoices):
    PAYMENT = "payment", "Payment"
    WALLET = "wallet", "Wallet"
    ARBITRATION = "arbitration", "Arbitration"
    PROJECT = "project", "Project"
    SYSTEM = "system", "System"


class Notification(UUIDPrimaryKeyMixin, BaseModel):
    """
    An in-app notification for a single recipient.

    Fields:
        recipient: User receiving the notification
        title: Short headline
        message: Full text
        notification_type: Category used by clients for icons and filtering
        data: JSON payload with ids the client can deep-link to
        is_read: Whether the recipient has seen it
    """

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        help_text="User receiving this notification",
    )

    title = models.CharField(
        max_length=200,
        help_text="Short headline",
    )

    message = models.TextField(
        help_text="Notification text",
    )

    notification_type = models.CharField(
        max_length=20,
        choices=NotificationType.choices,
        default=NotificationType.SYSTEM,
        db_index=True,
    )

    data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Related ids (project_id, transaction_id, arbitration_id, ...)",
    )

    is_read = models.BooleanField(
        default=False,
        help_text="Whether the recipient has read this notification",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient", "is_read"], name="notification_unread_idx"),
        ]

    def __str__(self) -> str:
        return f"Notification({self.id}, {self.notification_type}, to={self.recipient_id})"
