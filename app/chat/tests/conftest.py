"""
Test configuration and fixtures for chat tests.

This module provides:
- User fixtures for each role taking part in a conversation
- Conversation and message fixtures
- A fresh SessionRegistry and a recording channel layer
- API client helpers for authenticated requests

Usage:
    def test_example(conversation, requester_client):
        response = requester_client.get(f"/api/v1/chat/conversations/{conversation.id}/")
        assert response.status_code == 200
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from django.apps import apps
from rest_framework.test import APIClient

from authentication.models import User
from authentication.tests.factories import AdminFactory, UserFactory
from chat.delivery import DeliveryRouter
from chat.registry import SessionRegistry
from chat.tests.factories import ConversationFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def requester(db):
    """Parent who talks to staff."""
    return UserFactory(first_name="Rita", last_name="Parent")


@pytest.fixture
def staff(db):
    """Admin designated as the conversation's staff member."""
    return AdminFactory(first_name="Sam", last_name="Staff")


@pytest.fixture
def other_admin(db):
    """Admin who is not a participant of the test conversation."""
    return AdminFactory()


@pytest.fixture
def child(db):
    return UserFactory(role=User.Role.CHILD)


@pytest.fixture
def outsider(db):
    """Parent with no access to the test conversation."""
    return UserFactory()


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def conversation(db, requester, staff):
    """Empty conversation between requester and staff."""
    return ConversationFactory(requester=requester, staff=staff)


# =============================================================================
# Live Delivery Fixtures
# =============================================================================


@pytest.fixture
def registry():
    """Empty session registry, isolated from the app's one."""
    return SessionRegistry()


@pytest.fixture
def channel_layer():
    """Channel layer double whose send() succeeds immediately."""
    layer = MagicMock()
    layer.send = AsyncMock(return_value=None)
    return layer


@pytest.fixture
def router(registry, channel_layer):
    return DeliveryRouter(registry, channel_layer=channel_layer, send_timeout=0.5)


@pytest.fixture
def app_registry():
    """
    The chat app's own registry, emptied after the test.

    Views build their DeliveryRouter from it.
    """
    session_registry = apps.get_app_config("chat").session_registry
    yield session_registry
    for user_id in list(session_registry.connected_user_ids()):
        for handle in session_registry.live_sessions_of(user_id):
            session_registry.unregister_session(handle)


@pytest.fixture
def mock_push_task(mocker):
    """Patch the push task's delay so no task runs."""
    return mocker.patch("notifications.tasks.send_push_notification.delay")


@pytest.fixture
def store_retry_fast(settings):
    """No sleeping between store retries."""
    settings.STORE_RETRY_ATTEMPTS = 3
    settings.STORE_RETRY_BACKOFF = 0


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def requester_client(requester):
    return _client_for(requester)


@pytest.fixture
def staff_client(staff):
    return _client_for(staff)


@pytest.fixture
def other_admin_client(other_admin):
    return _client_for(other_admin)


@pytest.fixture
def outsider_client(outsider):
    return _client_for(outsider)
