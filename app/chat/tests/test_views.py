"""
Tests for chat API views.

This module tests the HTTP surface of the chat system:
- ConversationViewSet: list, retrieve, start, messages, read
- UnreadView: total unread count
- BroadcastView: administrator announcements

Testing Philosophy:
    Tests focus on observable HTTP behavior:
    - Response status codes
    - Response body structure
    - Database state changes
    - Authentication/permission enforcement
"""

from rest_framework import status

from chat.models import Conversation, Message
from chat.services import MessageService
from chat.tests.factories import ConversationFactory, MessageFactory
from core.exceptions import TransientStoreError
from notifications.tests.factories import PushSubscriptionFactory


# =============================================================================
# URL Constants
# =============================================================================


CONVERSATIONS_URL = "/api/v1/chat/conversations/"
START_URL = f"{CONVERSATIONS_URL}start/"
UNREAD_URL = "/api/v1/chat/unread/"
BROADCAST_URL = "/api/v1/chat/broadcast/"


def conversation_detail_url(conversation_id):
    return f"{CONVERSATIONS_URL}{conversation_id}/"


def messages_url(conversation_id):
    return f"{CONVERSATIONS_URL}{conversation_id}/messages/"


def read_url(conversation_id):
    return f"{CONVERSATIONS_URL}{conversation_id}/read/"


# =============================================================================
# Conversation List / Retrieve
# =============================================================================


class TestConversationList:
    """Tests for GET /api/v1/chat/conversations/."""

    def test_unauthenticated_rejected(self, api_client):
        response = api_client.get(CONVERSATIONS_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_lists_own_conversations_with_unread(
        self, requester_client, conversation, staff
    ):
        ConversationFactory()
        MessageFactory(conversation=conversation, sender=staff, content="Welcome")

        response = requester_client.get(CONVERSATIONS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        item = response.data[0]
        assert item["id"] == conversation.id
        assert item["unread_count"] == 1
        assert item["last_message"]["content"] == "Welcome"
        assert item["staff"]["id"] == staff.id

    def test_admin_lists_all(self, other_admin_client, conversation):
        ConversationFactory()

        response = other_admin_client.get(CONVERSATIONS_URL)

        assert len(response.data) == 2

    def test_empty_conversation_has_no_last_message(self, requester_client, conversation):
        response = requester_client.get(CONVERSATIONS_URL)

        assert response.data[0]["last_message"] is None
        assert response.data[0]["unread_count"] == 0


class TestConversationRetrieve:
    """Tests for GET /api/v1/chat/conversations/{id}/."""

    def test_participant_can_retrieve(self, staff_client, conversation):
        response = staff_client.get(conversation_detail_url(conversation.id))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["id"] == conversation.id

    def test_non_participant_forbidden(self, outsider_client, conversation):
        response = outsider_client.get(conversation_detail_url(conversation.id))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_can_view_any(self, other_admin_client, conversation):
        response = other_admin_client.get(conversation_detail_url(conversation.id))

        assert response.status_code == status.HTTP_200_OK

    def test_unknown_conversation(self, requester_client, db):
        response = requester_client.get(conversation_detail_url(999999))

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Start Conversation
# =============================================================================


class TestStartConversation:
    """Tests for POST /api/v1/chat/conversations/start/."""

    def test_requester_starts_with_default_staff(self, requester_client, requester, staff):
        response = requester_client.post(START_URL, {}, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["staff"]["id"] == staff.id
        assert response.data["requester"]["id"] == requester.id

    def test_second_start_returns_existing(self, requester_client, conversation):
        response = requester_client.post(START_URL, {}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["id"] == conversation.id
        assert Conversation.objects.count() == 1

    def test_admin_starts_with_requester(self, staff_client, requester):
        response = staff_client.post(START_URL, {"requester_id": requester.id}, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["requester"]["id"] == requester.id

    def test_admin_without_requester(self, staff_client):
        response = staff_client.post(START_URL, {}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "REQUESTER_REQUIRED"

    def test_no_staff_available(self, requester_client):
        response = requester_client.post(START_URL, {}, format="json")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "STAFF_NOT_FOUND"

    def test_invalid_staff_id(self, requester_client, staff):
        response = requester_client.post(START_URL, {"staff_id": 0}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Messages
# =============================================================================


class TestSendMessage:
    """Tests for POST /api/v1/chat/conversations/{id}/messages/."""

    def test_participant_sends(self, requester_client, conversation, mock_push_task):
        response = requester_client.post(
            messages_url(conversation.id), {"content": "Hello"}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["sequence"] == 1
        assert response.data["content"] == "Hello"
        assert response.data["is_read"] is False

    def test_sequences_increase(self, requester_client, staff_client, conversation):
        requester_client.post(messages_url(conversation.id), {"content": "a"}, format="json")
        response = staff_client.post(
            messages_url(conversation.id), {"content": "b"}, format="json"
        )

        assert response.data["sequence"] == 2

    def test_empty_content(self, requester_client, conversation):
        response = requester_client.post(
            messages_url(conversation.id), {"content": "  "}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "EMPTY_CONTENT"

    def test_too_long_content(self, requester_client, conversation):
        response = requester_client.post(
            messages_url(conversation.id), {"content": "x" * 10001}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "CONTENT_TOO_LONG"

    def test_outsider_forbidden(self, outsider_client, conversation):
        response = outsider_client.post(
            messages_url(conversation.id), {"content": "Hello"}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert Message.objects.count() == 0

    def test_non_participant_admin_forbidden(self, other_admin_client, conversation):
        response = other_admin_client.post(
            messages_url(conversation.id), {"content": "Hello"}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error_code"] == "NOT_PARTICIPANT"

    def test_client_token_replay(self, requester_client, conversation, staff, mock_push_task):
        PushSubscriptionFactory(user=staff)
        payload = {"content": "Hello", "client_token": "abc-123"}

        first = requester_client.post(messages_url(conversation.id), payload, format="json")
        replay = requester_client.post(messages_url(conversation.id), payload, format="json")

        assert first.status_code == status.HTTP_201_CREATED
        assert replay.status_code == status.HTTP_200_OK
        assert replay.data["id"] == first.data["id"]
        assert Message.objects.count() == 1
        mock_push_task.assert_called_once()

    def test_live_recipient_receives(
        self, requester_client, conversation, staff, app_registry, channel_layer, mocker
    ):
        app_registry.register_session(staff.id, "specific.staff")
        mocker.patch("chat.delivery.get_channel_layer", return_value=channel_layer)

        response = requester_client.post(
            messages_url(conversation.id), {"content": "Hi"}, format="json"
        )

        channel_layer.send.assert_awaited_once()
        channel_name, event = channel_layer.send.await_args.args
        assert channel_name == "specific.staff"
        assert event["message"]["id"] == response.data["id"]

    def test_broken_live_session_does_not_fail_send(
        self, requester_client, conversation, staff, app_registry, channel_layer, mocker
    ):
        healthy = app_registry.register_session(staff.id, "specific.healthy")
        app_registry.register_session(staff.id, "specific.broken")

        async def send(channel_name, event):
            if channel_name == "specific.broken":
                raise ConnectionError("redis connection reset")

        channel_layer.send.side_effect = send
        mocker.patch("chat.delivery.get_channel_layer", return_value=channel_layer)

        response = requester_client.post(
            messages_url(conversation.id), {"content": "Hi"}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert Message.objects.count() == 1
        assert app_registry.live_sessions_of(staff.id) == frozenset({healthy})

    def test_routing_failure_still_confirms_send(
        self, requester_client, conversation, mocker
    ):
        mocker.patch(
            "chat.views.DeliveryRouter.deliver",
            side_effect=RuntimeError("router exploded"),
        )

        response = requester_client.post(
            messages_url(conversation.id), {"content": "Hello"}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert Message.objects.get().id == response.data["id"]

    def test_store_unavailable(self, requester_client, conversation, mocker):
        mocker.patch.object(
            MessageService,
            "append_message",
            side_effect=TransientStoreError(
                "Message store temporarily unavailable",
                details={"operation": "append_message", "attempts": 3},
            ),
        )

        response = requester_client.post(
            messages_url(conversation.id), {"content": "Hello"}, format="json"
        )

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.data["error_code"] == "TRANSIENT_STORE_ERROR"
        assert response.data["details"]["attempts"] == 3


class TestListMessages:
    """Tests for GET /api/v1/chat/conversations/{id}/messages/."""

    def test_returns_page_and_cursor(self, requester_client, conversation):
        for _ in range(3):
            MessageFactory(conversation=conversation)

        response = requester_client.get(messages_url(conversation.id), {"limit": 2})

        assert response.status_code == status.HTTP_200_OK
        assert [m["sequence"] for m in response.data["results"]] == [1, 2]
        assert response.data["next_cursor"] == 2

    def test_after_cursor(self, requester_client, conversation):
        for _ in range(3):
            MessageFactory(conversation=conversation)

        response = requester_client.get(messages_url(conversation.id), {"after": 2})

        assert [m["sequence"] for m in response.data["results"]] == [3]

    def test_caught_up(self, requester_client, conversation):
        MessageFactory(conversation=conversation)

        response = requester_client.get(messages_url(conversation.id), {"after": 1})

        assert response.data == {"results": [], "next_cursor": None}

    def test_non_integer_cursor(self, requester_client, conversation):
        response = requester_client.get(messages_url(conversation.id), {"after": "abc"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_CURSOR"

    def test_negative_cursor(self, requester_client, conversation):
        response = requester_client.get(messages_url(conversation.id), {"after": -1})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_CURSOR"

    def test_outsider_forbidden(self, outsider_client, conversation):
        response = outsider_client.get(messages_url(conversation.id))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_can_read_history(self, other_admin_client, conversation):
        MessageFactory(conversation=conversation)

        response = other_admin_client.get(messages_url(conversation.id))

        assert len(response.data["results"]) == 1


# =============================================================================
# Read Marking / Unread
# =============================================================================


class TestMarkRead:
    """Tests for POST /api/v1/chat/conversations/{id}/read/."""

    def test_marks_counterpart_messages(self, staff_client, conversation):
        MessageFactory(conversation=conversation)
        MessageFactory(conversation=conversation)

        response = staff_client.post(read_url(conversation.id))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"updated": 2}

    def test_repeat_updates_nothing(self, staff_client, conversation):
        MessageFactory(conversation=conversation)
        staff_client.post(read_url(conversation.id))

        response = staff_client.post(read_url(conversation.id))

        assert response.data == {"updated": 0}

    def test_outsider_forbidden(self, outsider_client, conversation):
        response = outsider_client.post(read_url(conversation.id))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_non_participant_admin_cannot_mark_read(
        self, other_admin_client, conversation
    ):
        message = MessageFactory(conversation=conversation)

        response = other_admin_client.post(read_url(conversation.id))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error_code"] == "NOT_PARTICIPANT"
        message.refresh_from_db()
        assert message.is_read is False


class TestUnreadView:
    """Tests for GET /api/v1/chat/unread/."""

    def test_total_unread(self, staff_client, conversation):
        MessageFactory(conversation=conversation)
        MessageFactory(conversation=conversation)

        response = staff_client.get(UNREAD_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"total": 2}

    def test_unauthenticated_rejected(self, api_client):
        response = api_client.get(UNREAD_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Broadcast
# =============================================================================


class TestBroadcastView:
    """Tests for POST /api/v1/chat/broadcast/."""

    def test_admin_broadcasts(self, other_admin_client, conversation):
        ConversationFactory()

        response = other_admin_client.post(
            BROADCAST_URL, {"content": "Closed Friday"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"notified": 2}
        assert Message.objects.filter(is_announcement=True).count() == 2

    def test_requester_forbidden(self, requester_client, conversation):
        response = requester_client.post(BROADCAST_URL, {"content": "Hi"}, format="json")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error_code"] == "ADMIN_REQUIRED"

    def test_empty_content(self, staff_client, conversation):
        response = staff_client.post(BROADCAST_URL, {"content": ""}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "EMPTY_CONTENT"
