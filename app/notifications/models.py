"""
Push notification models.

This module defines the persisted side of push delivery:
- PushSubscription: A user's registered Web Push endpoint (at most one)
- PushDelivery: Tracking record for each push sent on behalf of a message

Design Decisions:
    - One subscription per user; registering again replaces the old one
    - An endpoint URL belongs to one browser, so it is unique across users
    - Deliveries snapshot the endpoint URL and payload for auditing; the
      task still sends to the recipient's *current* subscription
    - The push task is keyed by delivery id and is a no-op for deliveries
      that are no longer PENDING

Usage:
    from notifications.models import PushSubscription, PushDelivery

    subscription = PushSubscription.objects.filter(user=user).first()
    delivery = PushDelivery.objects.create(
        recipient=user,
        message=message,
        endpoint=subscription.endpoint,
        payload={"title": "...", "body": "..."},
    )
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models

from core.models import BaseModel


# =============================================================================
# Enums
# =============================================================================


class DeliveryStatus(models.TextChoices):
    """
    Status of a push delivery.

    State Flow:
        PENDING -> SENT
        PENDING -> FAILED (endpoint gone, payload too large, retries exhausted)
        PENDING -> SKIPPED (no endpoint or push not configured at send time)
    """

    PENDING = "pending", "Pending"
    SENT = "sent", "Sent"
    FAILED = "failed", "Failed"
    SKIPPED = "skipped", "Skipped"


class SkipReason(models.TextChoices):
    """Standardized reasons for skipped deliveries."""

    NO_ENDPOINT = "no_endpoint", "No push endpoint registered"
    NOT_CONFIGURED = "not_configured", "Push provider not configured"


# =============================================================================
# Models
# =============================================================================


class PushSubscription(BaseModel):
    """
    A user's Web Push endpoint.

    Fields:
        user: Owner of the subscription (one per user)
        endpoint: Push service URL issued by the browser
        p256dh: Client public key for payload encryption
        auth: Client auth secret for payload encryption
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="push_subscription",
        help_text="User this endpoint delivers to",
    )

    endpoint = models.URLField(
        max_length=1000,
        unique=True,
        help_text="Push service endpoint URL",
    )

    p256dh = models.CharField(
        max_length=255,
        help_text="Client ECDH public key (base64url)",
    )

    auth = models.CharField(
        max_length=255,
        help_text="Client auth secret (base64url)",
    )

    class Meta:
        db_table = "notifications_push_subscription"
        verbose_name = "push subscription"
        verbose_name_plural = "push subscriptions"

    def __str__(self) -> str:
        return f"PushSubscription(user={self.user_id})"

    def as_subscription_info(self) -> dict:
        """Return the subscription in the shape the Web Push protocol expects."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }


class PushDelivery(BaseModel):
    """
    Tracks one push notification sent for a message.

    Fields:
        id: UUID passed to the Celery task
        recipient: User being notified
        message: Chat message that triggered the push (null if removed)
        endpoint: Endpoint URL at enqueue time
        payload: JSON payload sent to the push service
        status: Current delivery status
        attempt_count: Number of send attempts
        failure_code: Gateway error code (endpoint_gone, transient, ...)
        failure_reason: Detailed failure message
        is_permanent_failure: Whether retrying would help
        skipped_reason: Why the delivery was skipped
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="push_deliveries",
        help_text="User being notified",
    )

    message = models.ForeignKey(
        "chat.Message",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="push_deliveries",
        help_text="Message that triggered this push",
    )

    endpoint = models.URLField(
        max_length=1000,
        help_text="Endpoint URL at the time the push was enqueued",
    )

    payload = models.JSONField(
        default=dict,
        help_text="Notification payload (title, body, data)",
    )

    status = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        default=DeliveryStatus.PENDING,
        db_index=True,
        help_text="Current delivery status",
    )

    sent_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the push service accepted the notification",
    )

    failed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When delivery failed",
    )

    failure_reason = models.TextField(
        blank=True,
        default="",
        help_text="Detailed failure message",
    )

    failure_code = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Error code from the gateway",
    )

    is_permanent_failure = models.BooleanField(
        default=False,
        help_text="True if retry won't help (endpoint gone, payload too large)",
    )

    attempt_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of delivery attempts",
    )

    skipped_reason = models.CharField(
        max_length=30,
        choices=SkipReason.choices,
        blank=True,
        default="",
        help_text="Reason if status=SKIPPED",
    )

    class Meta:
        db_table = "notifications_push_delivery"
        verbose_name = "push delivery"
        verbose_name_plural = "push deliveries"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["status", "-created_at"],
                name="push_delivery_status_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"PushDelivery({self.recipient_id}, {self.status})"
