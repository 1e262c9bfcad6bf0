"""
Notifications application.

In-app notifications for escrow, wallet and arbitration events. Delivery is
fire-and-forget: creating a notification never raises into the caller, so
a failed notification can never undo a settlement.

Usage:
    from notifications.services import NotificationService
    from notifications.models import NotificationType

    NotificationService.notify(
        recipient=user,
        title="Payment released",
        message="1,000,000 Rials were added to your wallet",
        notification_type=NotificationType.PAYMENT,
        data={"transaction_id": str(tx.id)},
    )
"""
