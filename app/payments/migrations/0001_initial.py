import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("projects", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="EscrowTransaction",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier (UUID v4)", primary_key=True, serialize=False)),
                ("amount", models.PositiveBigIntegerField(help_text="Amount in Rials (immutable after creation)")),
                (
                    "state",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("held", "Held"),
                            ("released", "Released"),
                            ("refunded", "Refunded"),
                            ("split", "Split"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current state of the escrow transaction (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                ("authority", models.CharField(blank=True, help_text="ZarinPal authority for this payment attempt", max_length=64, null=True, unique=True)),
                ("ref_id", models.CharField(blank=True, help_text="ZarinPal reference id issued on verification", max_length=64, null=True)),
                ("description", models.CharField(blank=True, default="", help_text="Description sent to the gateway", max_length=255)),
                ("version", models.PositiveIntegerField(default=1, help_text="Version for optimistic locking - incremented on each save")),
                ("payment_date", models.DateTimeField(blank=True, help_text="When the gateway verified the payment", null=True)),
                ("release_date", models.DateTimeField(blank=True, help_text="When the funds left escrow", null=True)),
                ("failed_at", models.DateTimeField(blank=True, null=True)),
                ("failure_reason", models.TextField(blank=True, help_text="Gateway message if the payment failed", null=True)),
                (
                    "contractor",
                    models.ForeignKey(
                        help_text="User the escrow is released to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="escrow_earnings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "employer",
                    models.ForeignKey(
                        help_text="User paying into escrow",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="escrow_payments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "milestone",
                    models.ForeignKey(
                        blank=True,
                        help_text="Milestone being paid for",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="escrow_transactions",
                        to="projects.milestone",
                    ),
                ),
                (
                    "project",
                    models.ForeignKey(
                        help_text="Project the payment belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="escrow_transactions",
                        to="projects.project",
                    ),
                ),
            ],
            options={
                "verbose_name": "Escrow Transaction",
                "verbose_name_plural": "Escrow Transactions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["project", "state"], name="escrow_project_state_idx"),
                    models.Index(fields=["milestone", "state"], name="escrow_milestone_state_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="escrow_amount_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Wallet",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier (UUID v4)", primary_key=True, serialize=False)),
                ("balance", models.PositiveBigIntegerField(default=0, help_text="Spendable balance in Rials")),
                ("total_earned", models.PositiveBigIntegerField(default=0, help_text="Lifetime earnings in Rials")),
                ("total_spent", models.PositiveBigIntegerField(default=0, help_text="Lifetime payments in Rials")),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="wallet",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="WalletTransaction",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier (UUID v4)", primary_key=True, serialize=False)),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("deposit", "Deposit"),
                            ("withdrawal", "Withdrawal"),
                            ("earning", "Earning"),
                            ("payment", "Payment"),
                            ("refund", "Refund"),
                        ],
                        db_index=True,
                        max_length=20,
                    ),
                ),
                ("amount", models.PositiveBigIntegerField(help_text="Amount in Rials")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="completed",
                        max_length=20,
                    ),
                ),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("reference_id", models.CharField(blank=True, db_index=True, help_text="Gateway authority for deposits", max_length=64, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("processed_at", models.DateTimeField(blank=True, help_text="When a pending row was completed, failed or cancelled", null=True)),
                (
                    "escrow_transaction",
                    models.ForeignKey(
                        blank=True,
                        help_text="Escrow payment this movement settles",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="wallet_transactions",
                        to="payments.escrowtransaction",
                    ),
                ),
                (
                    "wallet",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="payments.wallet",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["wallet", "transaction_type"], name="wallet_tx_type_idx"),
                    models.Index(fields=["wallet", "status"], name="wallet_tx_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="wallet_transaction_amount_positive"),
                ],
            },
        ),
    ]
