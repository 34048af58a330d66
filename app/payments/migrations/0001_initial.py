import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models

PROVIDER_CHOICES = [("flutterwave", "Flutterwave"), ("paystack", "Paystack")]


def _id_field():
    return models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
        primary_key=True,
        serialize=False,
    )


def _timestamps():
    return [
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
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", _id_field()),
                *_timestamps(),
                (
                    "amount_minor",
                    models.PositiveBigIntegerField(
                        help_text="Payment amount in minor currency units (e.g. kobo)",
                    ),
                ),
                ("currency", models.CharField(default="NGN", help_text="ISO 4217 currency code", max_length=3)),
                ("provider", models.CharField(choices=PROVIDER_CHOICES, db_index=True, max_length=20)),
                ("payment_method", models.CharField(blank=True, default="card", max_length=50)),
                (
                    "transaction_id",
                    models.CharField(
                        help_text="Provider reference for this attempt",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[("PENDING", "Pending"), ("COMPLETED", "Completed"), ("FAILED", "Failed")],
                        db_index=True,
                        default="PENDING",
                        help_text="Current state of the payment (managed by FSM)",
                        max_length=50,
                    ),
                ),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("failed_at", models.DateTimeField(blank=True, null=True)),
                ("failure_reason", models.TextField(blank=True, default="")),
                (
                    "metadata",
                    models.JSONField(blank=True, default=dict, help_text="Raw provider payloads, keyed by stage"),
                ),
                (
                    "order",
                    models.ForeignKey(
                        help_text="Order this payment settles",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="orders.order",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment",
                "verbose_name_plural": "Payments",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["order", "status"], name="payment_order_status_idx"),
                    models.Index(fields=["provider", "status"], name="payment_provider_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount_minor__gt", 0)),
                        name="payment_amount_positive",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentReference",
            fields=[
                ("id", _id_field()),
                *_timestamps(),
                (
                    "reference",
                    models.CharField(
                        help_text="Reference sent to the provider (TX-{order_id}-{epoch_ms})",
                        max_length=255,
                        unique=True,
                    ),
                ),
                ("provider", models.CharField(choices=PROVIDER_CHOICES, max_length=20)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payment_references",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment Reference",
                "verbose_name_plural": "Payment References",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Refund",
            fields=[
                ("id", _id_field()),
                *_timestamps(),
                (
                    "amount_minor",
                    models.PositiveBigIntegerField(help_text="Refund amount in minor currency units"),
                ),
                ("currency", models.CharField(default="NGN", max_length=3)),
                (
                    "reason",
                    models.CharField(
                        default="Customer request",
                        help_text="Reason for the refund",
                        max_length=255,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("COMPLETED", "Completed"),
                            ("FAILED", "Failed"),
                            ("REJECTED", "Rejected"),
                        ],
                        db_index=True,
                        default="PENDING",
                        help_text="Current state of the refund (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "processed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the refund left the PENDING state",
                        null=True,
                    ),
                ),
                ("failure_reason", models.TextField(blank=True, default="")),
                (
                    "payment",
                    models.ForeignKey(
                        help_text="Payment being refunded",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="refunds",
                        to="payments.payment",
                    ),
                ),
                (
                    "requested_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="requested_refunds",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Refund",
                "verbose_name_plural": "Refunds",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["payment", "status"], name="refund_payment_status_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount_minor__gt", 0)),
                        name="refund_amount_positive",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", _id_field()),
                *_timestamps(),
                ("reference", models.CharField(db_index=True, max_length=255)),
                ("provider", models.CharField(choices=PROVIDER_CHOICES, max_length=20)),
                (
                    "kind",
                    models.CharField(
                        choices=[("PAYMENT", "Payment"), ("REFUND", "Refund")],
                        default="PAYMENT",
                        max_length=10,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("PENDING", "Pending"), ("SUCCESS", "Success"), ("FAILED", "Failed")],
                        db_index=True,
                        max_length=10,
                    ),
                ),
                ("amount_minor", models.BigIntegerField()),
                ("currency", models.CharField(default="NGN", max_length=3)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to="orders.order",
                    ),
                ),
                (
                    "refund",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to="payments.refund",
                    ),
                ),
            ],
            options={
                "verbose_name": "Transaction",
                "verbose_name_plural": "Transactions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="txn_status_created_idx"),
                    models.Index(fields=["reference", "kind"], name="txn_reference_kind_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                ("id", _id_field()),
                *_timestamps(),
                ("provider", models.CharField(choices=PROVIDER_CHOICES, max_length=20)),
                (
                    "provider_event_id",
                    models.CharField(help_text="Event identity at the provider", max_length=255),
                ),
                ("event_type", models.CharField(db_index=True, max_length=100)),
                ("payload", models.JSONField(default=dict)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("processed", "Processed"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("error_message", models.TextField(blank=True, null=True)),
                (
                    "delivery_count",
                    models.PositiveIntegerField(default=0, help_text="Number of deliveries received"),
                ),
            ],
            options={
                "verbose_name": "Webhook Event",
                "verbose_name_plural": "Webhook Events",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["status", "created_at"], name="webhook_status_created_idx")],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("provider", "provider_event_id"),
                        name="unique_provider_event",
                    )
                ],
            },
        ),
    ]
