import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("chat", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="PushSubscription",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
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
                    "endpoint",
                    models.URLField(
                        help_text="Push service endpoint URL",
                        max_length=1000,
                        unique=True,
                    ),
                ),
                (
                    "p256dh",
                    models.CharField(
                        help_text="Client ECDH public key (base64url)", max_length=255
                    ),
                ),
                (
                    "auth",
                    models.CharField(
                        help_text="Client auth secret (base64url)", max_length=255
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        help_text="User this endpoint delivers to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="push_subscription",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "push subscription",
                "verbose_name_plural": "push subscriptions",
                "db_table": "notifications_push_subscription",
            },
        ),
        migrations.CreateModel(
            name="PushDelivery",
            fields=[
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
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "endpoint",
                    models.URLField(
                        help_text="Endpoint URL at the time the push was enqueued",
                        max_length=1000,
                    ),
                ),
                (
                    "payload",
                    models.JSONField(
                        default=dict, help_text="Notification payload (title, body, data)"
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("sent", "Sent"),
                            ("failed", "Failed"),
                            ("skipped", "Skipped"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current delivery status",
                        max_length=20,
                    ),
                ),
                (
                    "sent_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the push service accepted the notification",
                        null=True,
                    ),
                ),
                (
                    "failed_at",
                    models.DateTimeField(
                        blank=True, help_text="When delivery failed", null=True
                    ),
                ),
                (
                    "failure_reason",
                    models.TextField(
                        blank=True, default="", help_text="Detailed failure message"
                    ),
                ),
                (
                    "failure_code",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Error code from the gateway",
                        max_length=50,
                    ),
                ),
                (
                    "is_permanent_failure",
                    models.BooleanField(
                        default=False,
                        help_text="True if retry won't help (endpoint gone, payload too large)",
                    ),
                ),
                (
                    "attempt_count",
                    models.PositiveSmallIntegerField(
                        default=0, help_text="Number of delivery attempts"
                    ),
                ),
                (
                    "skipped_reason",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("no_endpoint", "No push endpoint registered"),
                            ("not_configured", "Push provider not configured"),
                        ],
                        default="",
                        help_text="Reason if status=SKIPPED",
                        max_length=30,
                    ),
                ),
                (
                    "message",
                    models.ForeignKey(
                        blank=True,
                        help_text="Message that triggered this push",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="push_deliveries",
                        to="chat.message",
                    ),
                ),
                (
                    "recipient",
                    models.ForeignKey(
                        help_text="User being notified",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="push_deliveries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "push delivery",
                "verbose_name_plural": "push deliveries",
                "db_table": "notifications_push_delivery",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "-created_at"],
                        name="push_delivery_status_idx",
                    )
                ],
            },
        ),
    ]
