"""
Notification service.

NotificationService.notify() is the single entry point other apps use.
It is deliberately forgiving: any error while persisting a notification is
logged and swallowed so that settlement code can call it after its own
transaction commits without guarding every call.

Usage:
    from notifications.services import NotificationService

    NotificationService.notify(
        recipient=contractor,
        title=_("Arbitration resolved"),
        message=_("The arbitrator ruled in your favour."),
        notification_type=NotificationType.ARBITRATION,
        data={"arbitration_id": str(case.id)},
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import transaction

from core.services import BaseService, ServiceResult
from notifications.models import Notification, NotificationType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from authentication.models import User


class NotificationService(BaseService):
    """
    Service for creating and reading in-app notifications.

    Methods:
        notify: Create a notification (never raises)
        notify_many: Same notification to several users
        mark_as_read: Mark one notification as read
        mark_all_as_read: Mark every unread notification of a user as read
    """

    @classmethod
    def notify(
        cls,
        recipient: User,
        title: str,
        message: str,
        notification_type: str = NotificationType.SYSTEM,
        data: dict | None = None,
    ) -> Notification | None:
        """
        Create a notification for one user.

        Runs in its own savepoint so that a failure cannot poison an
        enclosing transaction.

        Returns:
            The created Notification, or None if it could not be stored
        """
        try:
            with transaction.atomic():
                notification = Notification.objects.create(
                    recipient=recipient,
                    title=str(title),
                    message=str(message),
                    notification_type=notification_type,
                    data=data or {},
                )
        except Exception:
            cls.get_logger().error(
                "Failed to create notification",
                extra={
                    "recipient_id": getattr(recipient, "pk", None),
                    "notification_type": notification_type,
                },
                exc_info=True,
            )
            return None

        cls.get_logger().debug(
            "Notification created",
            extra={
                "notification_id": str(notification.id),
                "recipient_id": recipient.pk,
                "notification_type": notification_type,
            },
        )
        return notification

    @classmethod
    def notify_many(
        cls,
        recipients: Iterable[User],
        title: str,
        message: str,
        notification_type: str = NotificationType.SYSTEM,
        data: dict | None = None,
    ) -> int:
        """Notify several users; returns how many notifications were stored."""
        created = 0
        for recipient in recipients:
            if cls.notify(recipient, title, message, notification_type, data) is not None:
                created += 1
        return created

    @classmethod
    def mark_as_read(
        cls,
        notification: Notification,
        user: User,
    ) -> ServiceResult[Notification]:
        """
        Mark a single notification as read.

        Idempotent: marking an already-read notification succeeds.

        Error codes:
            NOT_OWNER: User doesn't own the notification
        """
        if notification.recipient_id != user.pk:
            cls.get_logger().warning(
                f"User {user.pk} attempted to mark notification {notification.id} "
                f"owned by user {notification.recipient_id}"
            )
            return ServiceResult.failure(
                "Cannot mark notification you don't own",
                error_code="NOT_OWNER",
            )

        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read", "updated_at"])

        return ServiceResult.success(notification)

    @classmethod
    def mark_all_as_read(cls, user: User) -> ServiceResult[int]:
        """Bulk-mark the user's unread notifications; returns the count."""
        count = Notification.objects.filter(
            recipient=user,
            is_read=False,
        ).update(is_read=True)

        cls.get_logger().info(f"Marked {count} notifications as read for user {user.pk}")
        return ServiceResult.success(count)
