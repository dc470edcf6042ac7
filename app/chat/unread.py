"""
Unread tracking over the message log.

Unread state is derived from Message.is_read on every call. There is no
counter table to keep in sync, so counts cannot drift from the log.

Usage:
    from chat.unread import UnreadTracker

    UnreadTracker.unread_count(conversation.id, reader.id)
    UnreadTracker.total_unread(user.id)
    UnreadTracker.annotate_unread(ConversationService.list_for_user(user), user.id)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db.models import Count, Q

from core.services import BaseService

from chat.models import Message

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from chat.models import Conversation


class UnreadTracker(BaseService):
    """Read-side computations of unread messages."""

    @classmethod
    def unread_count(cls, conversation_id: int, reader_id: int) -> int:
        """
        Count unread messages in a conversation for a reader.

        A reader's own messages are never counted.
        """
        return (
            Message.objects.filter(conversation_id=conversation_id, is_read=False)
            .exclude(sender_id=reader_id)
            .count()
        )

    @classmethod
    def total_unread(cls, user_id: int) -> int:
        """
        Sum of unread counts over every conversation the user participates in.

        Conversations an admin can merely view (as non-participant) are not
        included.
        """
        return (
            Message.objects.filter(
                Q(conversation__requester_id=user_id) | Q(conversation__staff_id=user_id),
                is_read=False,
            )
            .exclude(sender_id=user_id)
            .count()
        )

    @classmethod
    def annotate_unread(
        cls,
        queryset: QuerySet[Conversation],
        reader_id: int,
    ) -> QuerySet[Conversation]:
        """Annotate each conversation with ``unread_count`` for the reader."""
        return queryset.annotate(
            unread_count=Count(
                "messages",
                filter=Q(messages__is_read=False) & ~Q(messages__sender_id=reader_id),
            )
        )
