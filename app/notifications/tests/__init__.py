"""
Tests for notifications app.

This package contains test modules for:
- test_models.py: PushSubscription and PushDelivery model tests
- test_gateway.py: WebPushGateway classification tests
- test_services.py: PushSubscriptionService and PushDeliveryService tests
- test_tasks.py: send_push_notification task tests
- test_views.py: Push API endpoint tests

Usage:
    pytest notifications/tests/
    pytest notifications/tests/test_tasks.py
"""
