"""
Celery tasks for push notification delivery.

Tasks:
    send_push_notification: Deliver one PushDelivery via Web Push

Design:
    - Tasks receive delivery_id (UUID string), never the payload itself
    - Re-running a task for a non-PENDING delivery is a no-op
    - The push goes to the recipient's current subscription; if it was
      removed in the meantime the delivery is skipped
    - Endpoint gone: the subscription is deregistered, failure is permanent
    - Payload too large: logged as an error and dropped, failure is permanent
    - Transient: retried with exponential backoff (3 attempts in total),
      then dropped

Usage:
    from notifications.tasks import send_push_notification

    # Called by PushDeliveryService.enqueue()
    send_push_notification.delay(delivery_id="uuid-string")
"""

from __future__ import annotations

import logging

from celery import shared_task
from django.utils import timezone as django_timezone

from notifications.gateway import (
    EndpointGoneError,
    PayloadTooLargeError,
    PushError,
    PushErrorCode,
    TransientPushError,
    WebPushGateway,
)
from notifications.models import DeliveryStatus, PushDelivery, SkipReason
from notifications.services import PushSubscriptionService

logger = logging.getLogger(__name__)

PUSH_MAX_RETRIES = 2


def _get_delivery(delivery_id: str) -> PushDelivery | None:
    """
    Fetch a delivery.

    Returns None if delivery not found or not in PENDING status.
    """
    try:
        delivery = PushDelivery.objects.get(id=delivery_id)
    except PushDelivery.DoesNotExist:
        logger.warning(f"Push delivery {delivery_id} not found")
        return None

    if delivery.status != DeliveryStatus.PENDING:
        logger.info(f"Push delivery {delivery_id} status is {delivery.status}, skipping")
        return None

    return delivery


def _mark_sent(delivery: PushDelivery) -> None:
    delivery.status = DeliveryStatus.SENT
    delivery.sent_at = django_timezone.now()
    delivery.attempt_count += 1
    delivery.save(update_fields=["status", "sent_at", "attempt_count", "updated_at"])


def _mark_failed(delivery: PushDelivery, error: PushError, is_permanent: bool) -> None:
    delivery.status = DeliveryStatus.FAILED
    delivery.failed_at = django_timezone.now()
    delivery.failure_reason = error.message
    delivery.failure_code = error.error_code.lower()
    delivery.is_permanent_failure = is_permanent
    delivery.attempt_count += 1
    delivery.save(
        update_fields=[
            "status",
            "failed_at",
            "failure_reason",
            "failure_code",
            "is_permanent_failure",
            "attempt_count",
            "updated_at",
        ]
    )


def _mark_skipped(delivery: PushDelivery, reason: str) -> None:
    delivery.status = DeliveryStatus.SKIPPED
    delivery.skipped_reason = reason
    delivery.save(update_fields=["status", "skipped_reason", "updated_at"])


@shared_task(
    bind=True,
    autoretry_for=(TransientPushError,),
    retry_backoff=True,
    retry_backoff_max=60,
    retry_jitter=True,
    max_retries=PUSH_MAX_RETRIES,
)
def send_push_notification(self, delivery_id: str) -> bool:
    """
    Send a push notification for a delivery.

    Flow:
        1. Fetch delivery; skip if status != PENDING
        2. Look up the recipient's current subscription; skip if none
        3. Call the Web Push gateway
        4. On success: status=SENT
        5. On endpoint gone: deregister endpoint, status=FAILED (permanent)
        6. On payload too large: log error, status=FAILED (permanent)
        7. On transient error: raise for retry, or FAILED on the last attempt

    Args:
        delivery_id: UUID string of the PushDelivery

    Returns:
        True if sent or skipped, False if dropped

    Raises:
        TransientPushError: On transient failure while retries remain
    """
    delivery = _get_delivery(delivery_id)
    if delivery is None:
        return True

    subscription = PushSubscriptionService.push_endpoint_of(delivery.recipient_id)
    if subscription is None:
        _mark_skipped(delivery, SkipReason.NO_ENDPOINT)
        logger.info(f"Push delivery {delivery_id} skipped: recipient has no endpoint")
        return True

    logger.info(
        f"Sending push delivery {delivery_id} to user {delivery.recipient_id} "
        f"(attempt {self.request.retries + 1})"
    )

    result = WebPushGateway().notify(subscription.as_subscription_info(), delivery.payload)

    if result.success:
        _mark_sent(delivery)
        logger.info(f"Push delivery {delivery_id} sent")
        return True

    if result.error_code == PushErrorCode.NOT_CONFIGURED:
        _mark_skipped(delivery, SkipReason.NOT_CONFIGURED)
        logger.warning(f"Push delivery {delivery_id} skipped: {result.error}")
        return True

    try:
        raise PushError.from_result(result)

    except EndpointGoneError as e:
        PushSubscriptionService.unregister_push(
            delivery.recipient_id, endpoint=subscription.endpoint
        )
        _mark_failed(delivery, e, is_permanent=True)
        logger.info(
            f"Push delivery {delivery_id}: endpoint gone, "
            f"deregistered for user {delivery.recipient_id}"
        )
        return False

    except PayloadTooLargeError as e:
        _mark_failed(delivery, e, is_permanent=True)
        logger.error(f"Push delivery {delivery_id} dropped: {e.message}")
        return False

    except TransientPushError as e:
        if self.request.retries >= self.max_retries:
            _mark_failed(delivery, e, is_permanent=False)
            logger.warning(
                f"Push delivery {delivery_id} dropped after "
                f"{delivery.attempt_count} attempts: {e.message}"
            )
            return False

        delivery.attempt_count += 1
        delivery.save(update_fields=["attempt_count", "updated_at"])
        logger.warning(
            f"Push delivery {delivery_id} transiently failed: {e.message}, will retry"
        )
        raise
