"""
Chat system models.

This module defines the data models for the conversation subsystem:
- One conversation per (requester, staff) pair
- An append-only message log per conversation

Models:
    Conversation: Thread between exactly one requester and one staff member
    Message: Immutable entry in a conversation's log

Design Decisions:
    - Conversations are never deleted (kept alive for audit)
    - Messages are totally ordered within a conversation by ``sequence``,
      allocated from Conversation.last_sequence under a row lock and
      protected by a unique (conversation, sequence) constraint
    - is_read is the only mutable message field and only goes False -> True
    - Clients reconcile live and fetched messages by id and sequence
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.models import BaseModel


class Conversation(BaseModel):
    """
    Message thread between one requester and one staff member.

    Fields:
        requester: Parent or child who talks to staff
        staff: Designated staff (admin) counterparty
        last_sequence: Highest ordering key allocated in this conversation
        last_message_at: Timestamp of the latest message (list ordering)

    Constraints:
        - At most one conversation per (requester, staff) pair
        - requester and staff must be different users
    """

    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="requester_conversations",
        help_text="Participant who started the conversation (parent or child)",
    )

    staff = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="staff_conversations",
        help_text="Designated staff participant of the conversation",
    )

    last_sequence = models.PositiveBigIntegerField(
        default=0,
        help_text="Ordering key of the latest message (0 when empty)",
    )

    last_message_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Timestamp of the latest message (for sorting)",
    )

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-last_message_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["requester", "staff"],
                name="unique_conversation_pair",
            ),
            models.CheckConstraint(
                condition=~Q(requester=F("staff")),
                name="conversation_distinct_participants",
            ),
        ]
        indexes = [
            models.Index(
                fields=["staff", "-last_message_at"],
                name="chat_conv_staff_recent_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Conversation {self.pk} (requester={self.requester_id}, staff={self.staff_id})"

    @property
    def participant_ids(self) -> tuple[int, int]:
        return (self.requester_id, self.staff_id)

    def is_participant(self, user_id: int) -> bool:
        """Check whether the user is the requester or the staff member."""
        return user_id in self.participant_ids

    def counterpart_of(self, user_id: int) -> int:
        """
        Return the id of the participant who should receive a message sent by user_id.

        Messages from the requester go to staff. Anything else (staff replies,
        administrator announcements) goes to the requester.
        """
        if user_id == self.requester_id:
            return self.staff_id
        return self.requester_id


class Message(BaseModel):
    """
    An immutable message within a conversation.

    Fields:
        conversation: Conversation this message belongs to
        sender: User who sent the message
        sequence: Ordering key, strictly increasing within the conversation
        content: Message text
        is_read: Whether the recipient has read it (False -> True only)
        is_announcement: Whether it was created by an administrator broadcast
        client_token: Optional client-supplied key making retries idempotent

    Constraints:
        - (conversation, sequence) is unique, which also indexes history reads
        - (conversation, sender, client_token) is unique when a token is given
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.PROTECT,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sent_messages",
        help_text="User who sent this message",
    )

    sequence = models.PositiveBigIntegerField(
        help_text="Ordering key within the conversation (history cursor)",
    )

    content = models.TextField(
        help_text="Message text",
    )

    is_read = models.BooleanField(
        default=False,
        help_text="Whether the recipient has read this message",
    )

    is_announcement = models.BooleanField(
        default=False,
        help_text="Whether this message was fanned out by an administrator broadcast",
    )

    client_token = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Client-supplied idempotency key (unique per conversation and sender)",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["sequence"]
        constraints = [
            models.UniqueConstraint(
                fields=["conversation", "sequence"],
                name="unique_message_sequence",
            ),
            models.UniqueConstraint(
                fields=["conversation", "sender", "client_token"],
                name="unique_message_client_token",
                condition=Q(client_token__isnull=False),
            ),
        ]
        indexes = [
            # Unread counts per conversation and reader
            models.Index(
                fields=["conversation", "is_read"],
                name="chat_msg_conv_unread_idx",
                condition=Q(is_read=False),
            ),
        ]

    def __str__(self) -> str:
        content_preview = (
            self.content[:50] + "..." if len(self.content) > 50 else self.content
        )
        return f"#{self.sequence} User {self.sender_id}: {content_preview}"
