"""
Serializers for chat API.

This module provides serializers for the chat system:
- Conversation serializers (read, start)
- Message serializers (read, send)
- Broadcast request serializer

Serializer Hierarchy:
    ConversationSerializer: Participants, unread count and last message
    StartConversationSerializer: Start or reopen a conversation

    MessageSerializer: Message as stored (also the live event shape)
    SendMessageSerializer: Send new message, optional idempotency token

    BroadcastSerializer: Administrator announcement

Design Decisions:
    - Read and write serializers are separate for clarity
    - Write serializers only shape input; content rules live in the services
      so that empty or oversized content reports the service error code
    - unread_count is read from the queryset annotation when present
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSummarySerializer

from chat.constants import MESSAGE_CONFIG
from chat.models import Conversation, Message
from chat.unread import UnreadTracker


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """
    Message with its ordering key.

    Clients de-duplicate by ``id`` and order by ``sequence``.
    """

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation_id",
            "sender_id",
            "sequence",
            "content",
            "is_read",
            "is_announcement",
            "created_at",
        ]
        read_only_fields = fields


class SendMessageSerializer(serializers.Serializer):
    """Input for sending a message."""

    content = serializers.CharField(
        allow_blank=True,
        help_text="Message text",
    )
    client_token = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CLIENT_TOKEN_LENGTH,
        required=False,
        allow_blank=True,
        help_text="Optional idempotency key; retries with the same key return the stored message",
    )


class MessagePageSerializer(serializers.Serializer):
    """Page of history, as returned by GET conversations/{id}/messages/."""

    results = MessageSerializer(many=True)
    next_cursor = serializers.IntegerField(
        allow_null=True,
        help_text="Pass as ?after= to fetch the next page (null when up to date)",
    )


# =============================================================================
# Conversation Serializers
# =============================================================================


class ConversationSerializer(serializers.ModelSerializer):
    """
    Conversation with participants, unread count and latest message.

    Requires ``request`` in the serializer context for the unread count
    when the queryset is not annotated.
    """

    requester = UserSummarySerializer(read_only=True)
    staff = UserSummarySerializer(read_only=True)
    unread_count = serializers.SerializerMethodField(
        help_text="Messages not sent by the caller and not yet read"
    )
    last_message = serializers.SerializerMethodField(
        help_text="Most recent message, or null for an empty conversation"
    )

    class Meta:
        model = Conversation
        fields = [
            "id",
            "requester",
            "staff",
            "last_sequence",
            "last_message_at",
            "unread_count",
            "last_message",
            "created_at",
        ]
        read_only_fields = fields

    def get_unread_count(self, obj: Conversation) -> int:
        annotated = getattr(obj, "unread_count", None)
        if annotated is not None:
            return annotated

        request = self.context.get("request")
        if request is None:
            return 0
        return UnreadTracker.unread_count(obj.id, request.user.id)

    def get_last_message(self, obj: Conversation) -> dict | None:
        if not obj.last_sequence:
            return None
        message = obj.messages.filter(sequence=obj.last_sequence).first()
        return MessageSerializer(message).data if message else None


class StartConversationSerializer(serializers.Serializer):
    """
    Input for starting a conversation.

    Requesters may name a staff member (defaults to the configured one).
    Administrators must name the requester.
    """

    staff_id = serializers.IntegerField(required=False, min_value=1)
    requester_id = serializers.IntegerField(required=False, min_value=1)


# =============================================================================
# Broadcast Serializers
# =============================================================================


class BroadcastSerializer(serializers.Serializer):
    """Input for an administrator announcement."""

    content = serializers.CharField(
        allow_blank=True,
        help_text="Announcement text posted into every conversation",
    )
