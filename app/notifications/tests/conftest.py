"""
Test configuration and fixtures for notification tests.

This module provides:
- User and push subscription fixtures
- A configured VAPID key so the gateway attempts sends
- A patched pywebpush.webpush (fail it with factories.webpush_error)
- API client helpers for authenticated requests

Usage:
    def test_example(subscription, mock_webpush):
        mock_webpush.side_effect = webpush_error(410)
"""

from unittest.mock import MagicMock

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory
from notifications.tests.factories import PushDeliveryFactory, PushSubscriptionFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """User receiving push notifications."""
    return UserFactory()


@pytest.fixture
def other_user(db):
    return UserFactory()


# =============================================================================
# Push Fixtures
# =============================================================================


@pytest.fixture
def subscription(user):
    """The user's registered push endpoint."""
    return PushSubscriptionFactory(user=user)


@pytest.fixture
def delivery(user, subscription):
    """PENDING delivery addressed to the subscribed user."""
    return PushDeliveryFactory(recipient=user, endpoint=subscription.endpoint)


@pytest.fixture
def vapid_configured(settings):
    """Gateway has a VAPID key and accepts payloads up to the default limit."""
    settings.VAPID_PRIVATE_KEY = "test-vapid-private-key"
    settings.VAPID_SUBJECT = "mailto:admin@example.com"
    settings.PUSH_MAX_PAYLOAD_BYTES = 3072


@pytest.fixture
def mock_webpush(mocker, vapid_configured):
    """Patch pywebpush.webpush as used by the gateway; succeeds by default."""
    return mocker.patch("notifications.gateway.webpush", return_value=MagicMock(status_code=201))


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def authenticated_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client
