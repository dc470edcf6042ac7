"""
Notifications app for Web Push delivery.

This app provides:
- PushSubscription model: at most one browser endpoint per user
- PushDelivery model: one row per queued push, with its outcome
- WebPushGateway: VAPID-signed delivery through pywebpush
- Celery task send_push_notification with bounded retries
- REST API to subscribe, unsubscribe and fetch the VAPID public key

Usage:
    from notifications.services import PushDeliveryService, PushSubscriptionService

    subscription = PushSubscriptionService.push_endpoint_of(user.id)
    if subscription:
        PushDeliveryService.enqueue(subscription, {"title": "...", "body": "..."})
"""
