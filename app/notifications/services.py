"""
Push endpoint registry.

PushSubscriptionService owns the lifecycle of PushSubscription rows:
registration (replacing any previous endpoint), explicit unsubscribe, and
removal after the push service reports the endpoint gone.

Usage:
    from notifications.services import PushSubscriptionService

    PushSubscriptionService.register_push(user.id, endpoint, p256dh, auth)
    subscription = PushSubscriptionService.push_endpoint_of(user.id)
    PushSubscriptionService.unregister_push(user.id)
"""

from __future__ import annotations

from core.services import BaseService, ServiceResult

from notifications.models import PushDelivery, PushSubscription


class PushSubscriptionService(BaseService):
    """Service for registering and looking up push endpoints."""

    @classmethod
    def register_push(
        cls,
        user_id: int,
        endpoint: str,
        p256dh: str,
        auth: str,
    ) -> ServiceResult[PushSubscription]:
        """
        Register a push endpoint for a user, replacing any previous one.

        If the same endpoint is currently bound to another user (shared
        browser, account switch), it moves to this user.

        Args:
            user_id: Owner of the endpoint
            endpoint: Push service URL
            p256dh: Client public key
            auth: Client auth secret

        Returns:
            ServiceResult with the stored PushSubscription

        Error codes:
            INVALID_SUBSCRIPTION: endpoint or keys missing
        """
        if not (endpoint and p256dh and auth):
            return ServiceResult.failure(
                "endpoint, p256dh and auth are required",
                error_code="INVALID_SUBSCRIPTION",
            )

        with cls.atomic():
            moved = (
                PushSubscription.objects.filter(endpoint=endpoint)
                .exclude(user_id=user_id)
                .delete()[0]
            )
            subscription, created = PushSubscription.objects.update_or_create(
                user_id=user_id,
                defaults={"endpoint": endpoint, "p256dh": p256dh, "auth": auth},
            )

        if moved:
            cls.get_logger().info(f"Moved push endpoint to user {user_id}")
        cls.get_logger().info(
            f"{'Registered' if created else 'Replaced'} push endpoint for user {user_id}"
        )
        return ServiceResult.success(subscription)

    @classmethod
    def unregister_push(cls, user_id: int, endpoint: str | None = None) -> bool:
        """
        Remove a user's push endpoint.

        Args:
            user_id: Owner of the endpoint
            endpoint: When given, only remove the subscription if it still
                points at this URL (a newer registration is left alone)

        Returns:
            True if a subscription was removed
        """
        queryset = PushSubscription.objects.filter(user_id=user_id)
        if endpoint is not None:
            queryset = queryset.filter(endpoint=endpoint)

        deleted, _ = queryset.delete()
        if deleted:
            cls.get_logger().info(f"Removed push endpoint for user {user_id}")
        return bool(deleted)

    @classmethod
    def push_endpoint_of(cls, user_id: int) -> PushSubscription | None:
        return PushSubscription.objects.filter(user_id=user_id).first()


class PushDeliveryService(BaseService):
    """Service for queuing push notifications."""

    @classmethod
    def enqueue(
        cls,
        subscription: PushSubscription,
        payload: dict,
        message_id: int | None = None,
    ) -> PushDelivery:
        """
        Record a pending push delivery and hand it to the Celery worker.

        Returns as soon as the task is queued; the send itself, its retries
        and endpoint cleanup happen in send_push_notification.

        Args:
            subscription: Recipient's current push subscription
            payload: Notification payload (already bounded in size)
            message_id: Message that triggered the push

        Returns:
            The PENDING PushDelivery

        Raises:
            Broker errors from Celery when the task cannot be queued
        """
        from notifications import tasks

        delivery = PushDelivery.objects.create(
            recipient_id=subscription.user_id,
            message_id=message_id,
            endpoint=subscription.endpoint,
            payload=payload,
        )
        tasks.send_push_notification.delay(str(delivery.id))

        cls.get_logger().debug(
            f"Queued push delivery {delivery.id} for user {subscription.user_id}"
        )
        return delivery
