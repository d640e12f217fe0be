import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("marketplace", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Escrow",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "total_amount",
                    models.PositiveBigIntegerField(help_text="Amount charged to the client"),
                ),
                (
                    "platform_fee",
                    models.PositiveBigIntegerField(help_text="Platform fee kept on release"),
                ),
                (
                    "freelancer_amount",
                    models.PositiveBigIntegerField(
                        help_text="Amount payable to the freelancer on release"
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("FUNDED", "Funded"),
                            ("RELEASED", "Released"),
                            ("REFUNDED", "Refunded"),
                            ("DISPUTED", "Disputed"),
                        ],
                        db_index=True,
                        default="PENDING",
                        help_text="Current state of the escrow (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "gateway_order_id",
                    models.CharField(
                        help_text="Order id registered with the payment gateway",
                        max_length=50,
                        unique=True,
                    ),
                ),
                (
                    "session_token",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Hosted checkout session token",
                        max_length=255,
                    ),
                ),
                (
                    "funded_at",
                    models.DateTimeField(blank=True, db_index=True, null=True),
                ),
                (
                    "released_at",
                    models.DateTimeField(blank=True, db_index=True, null=True),
                ),
                ("refunded_at", models.DateTimeField(blank=True, null=True)),
                ("disputed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "client",
                    models.ForeignKey(
                        help_text="Client funding the escrow",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="escrows_paid",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "freelancer",
                    models.ForeignKey(
                        help_text="Freelancer receiving the funds on release",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="escrows_earned",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "project",
                    models.OneToOneField(
                        help_text="Project this escrow pays for",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="escrow",
                        to="marketplace.project",
                    ),
                ),
            ],
            options={
                "verbose_name": "Escrow",
                "verbose_name_plural": "Escrows",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["freelancer", "status"],
                        name="escrow_freelancer_status_idx",
                    ),
                    models.Index(
                        fields=["status", "funded_at"],
                        name="escrow_status_funded_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(total_amount__gt=0),
                        name="escrow_total_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            total_amount=models.F("platform_fee") + models.F("freelancer_amount")
                        ),
                        name="escrow_amounts_balance",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payout",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                ("amount", models.PositiveBigIntegerField(help_text="Payout amount")),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("PROCESSING", "Processing"),
                            ("COMPLETED", "Completed"),
                            ("FAILED", "Failed"),
                        ],
                        db_index=True,
                        default="PENDING",
                        help_text="Current state of the payout (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                ("bank_code", models.CharField(blank=True, default="", max_length=20)),
                ("bank_name", models.CharField(blank=True, default="", max_length=100)),
                (
                    "account_number",
                    models.CharField(blank=True, default="", max_length=50),
                ),
                (
                    "account_holder_name",
                    models.CharField(blank=True, default="", max_length=150),
                ),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("failed_at", models.DateTimeField(blank=True, null=True)),
                ("failed_reason", models.TextField(blank=True, default="")),
                (
                    "escrow",
                    models.ForeignKey(
                        blank=True,
                        help_text=(
                            "Escrow whose release created this payout. "
                            "Null for requested withdrawals."
                        ),
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payouts",
                        to="payments.escrow",
                    ),
                ),
                (
                    "freelancer",
                    models.ForeignKey(
                        help_text="Freelancer receiving the payout",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payouts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "processed_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="Admin who started processing this payout",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payouts_processed",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Payout",
                "verbose_name_plural": "Payouts",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["freelancer", "status"],
                        name="payout_freelancer_status_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(amount__gt=0),
                        name="payout_amount_positive",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(escrow__isnull=False),
                        fields=("escrow",),
                        name="payout_one_per_escrow",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="TransactionLog",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("ESCROW_CREATED", "Escrow Created"),
                            ("ESCROW_FUNDED", "Escrow Funded"),
                            ("ESCROW_RELEASED", "Escrow Released"),
                            ("ESCROW_REFUNDED", "Escrow Refunded"),
                            ("ESCROW_DISPUTED", "Escrow Disputed"),
                            ("PAYOUT_REQUESTED", "Payout Requested"),
                            ("PAYOUT_PROCESSING", "Payout Processing"),
                            ("PAYOUT_COMPLETED", "Payout Completed"),
                            ("PAYOUT_FAILED", "Payout Failed"),
                            ("PAYOUT_CANCELLED", "Payout Cancelled"),
                            ("DISPUTE_RESOLVED", "Dispute Resolved"),
                        ],
                        db_index=True,
                        max_length=30,
                    ),
                ),
                (
                    "reference_type",
                    models.CharField(
                        choices=[
                            ("ESCROW", "Escrow"),
                            ("PAYOUT", "Payout"),
                            ("DISPUTE", "Dispute"),
                        ],
                        max_length=20,
                    ),
                ),
                ("reference_id", models.CharField(db_index=True, max_length=64)),
                ("amount", models.BigIntegerField(blank=True, null=True)),
                ("from_status", models.CharField(blank=True, default="", max_length=20)),
                ("to_status", models.CharField(blank=True, default="", max_length=20)),
                (
                    "actor_type",
                    models.CharField(
                        choices=[
                            ("CLIENT", "Client"),
                            ("FREELANCER", "Freelancer"),
                            ("ADMIN", "Admin"),
                            ("SYSTEM", "System"),
                        ],
                        max_length=20,
                    ),
                ),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transaction_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Transaction log entry",
                "verbose_name_plural": "Transaction log",
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(
                        fields=["reference_type", "reference_id"],
                        name="txlog_reference_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AdminAction",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("PROCESS_PAYOUT", "Process Payout"),
                            ("COMPLETE_PAYOUT", "Complete Payout"),
                            ("FAIL_PAYOUT", "Fail Payout"),
                            ("DISPUTE_REVIEW", "Review Dispute"),
                            ("DISPUTE_RESOLVE", "Resolve Dispute"),
                            ("TIER_ADJUST", "Adjust Tier"),
                            ("PROJECT_DELETE", "Delete Project"),
                        ],
                        db_index=True,
                        max_length=30,
                    ),
                ),
                (
                    "target_type",
                    models.CharField(
                        choices=[
                            ("PAYOUT", "Payout"),
                            ("DISPUTE", "Dispute"),
                            ("FREELANCER", "Freelancer"),
                            ("PROJECT", "Project"),
                        ],
                        max_length=20,
                    ),
                ),
                ("target_id", models.CharField(db_index=True, max_length=64)),
                ("details", models.JSONField(blank=True, default=dict)),
                (
                    "admin",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="admin_actions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Admin action",
                "verbose_name_plural": "Admin actions",
                "ordering": ["-created_at"],
                "abstract": False,
            },
        ),
    ]
