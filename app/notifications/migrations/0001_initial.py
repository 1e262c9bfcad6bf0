import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier (UUID v4)", primary_key=True, serialize=False)),
                ("title", models.CharField(help_text="Short headline", max_length=200)),
                ("message", models.TextField(help_text="Notification text")),
                (
                    "notification_type",
                    models.CharField(
                        choices=[
                            ("payment", "Payment"),
                            ("wallet", "Wallet"),
                            ("arbitration", "Arbitration"),
                            ("project", "Project"),
                            ("system", "System"),
                        ],
                        db_index=True,
                        default="system",
                        max_length=20,
                    ),
                ),
                ("data", models.JSONField(blank=True, default=dict, help_text="Related ids (project_id, transaction_id, arbitration_id, ...)")),
                ("is_read", models.BooleanField(default=False, help_text="Whether the recipient has read this notification")),
                (
                    "recipient",
                    models.ForeignKey(
                        help_text="User receiving this notification",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["recipient", "is_read"], name="notification_unread_idx"),
                ],
            },
        ),
    ]
