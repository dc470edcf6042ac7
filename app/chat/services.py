"""
Chat system service layer: the conversation store.

This module owns the lifecycle of conversations and messages. It is the
single writer of both tables.

Services:
    ConversationService: One conversation per (requester, staff) pair
    MessageService: Append-only message log, history reads, read marking

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - Unexpected failures raise exceptions
    - Transient database failures are retried by @retry_on_transient and
      surface as TransientStoreError once exhausted
    - Uniqueness races are decided by the database, never by the caller

Usage:
    from chat.services import ConversationService, MessageService

    result = ConversationService.get_or_create_conversation(parent.id, admin.id)
    conversation, created = result.data

    result = MessageService.append_message(conversation.id, parent.id, "Hello!")
    if result.success:
        message, created = result.data
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError
from django.db.models import F, Q
from django.utils import timezone

from authentication.models import User
from core.decorators import retry_on_transient
from core.services import BaseService, ServiceResult

from chat.constants import MESSAGE_CONFIG
from chat.models import Conversation, Message

if TYPE_CHECKING:
    from django.db.models import QuerySet


class ConversationService(BaseService):
    """
    Service for conversation lifecycle.

    Conversations are created on demand and never deleted.
    """

    @classmethod
    @retry_on_transient("get_or_create_conversation")
    def get_or_create_conversation(
        cls,
        requester_id: int,
        staff_id: int,
    ) -> ServiceResult[tuple[Conversation, bool]]:
        """
        Return the conversation for a (requester, staff) pair, creating it if absent.

        Concurrent calls for the same pair yield a single row: the insert
        runs in a savepoint, and a unique-constraint violation means another
        caller won the race, whose row is then returned.

        Args:
            requester_id: Requester participant
            staff_id: Staff participant

        Returns:
            ServiceResult with (conversation, created)

        Error codes:
            SAME_PARTICIPANT: requester and staff are the same user
            USER_NOT_FOUND: One of the users does not exist
        """
        if requester_id == staff_id:
            return ServiceResult.failure(
                "A conversation needs two different participants",
                error_code="SAME_PARTICIPANT",
            )

        existing = Conversation.objects.filter(
            requester_id=requester_id, staff_id=staff_id
        ).first()
        if existing:
            return ServiceResult.success((existing, False))

        if User.objects.filter(id__in=[requester_id, staff_id]).count() != 2:
            return ServiceResult.failure(
                "User not found",
                error_code="USER_NOT_FOUND",
            )

        try:
            with cls.atomic():
                conversation = Conversation.objects.create(
                    requester_id=requester_id,
                    staff_id=staff_id,
                )
        except IntegrityError:
            # Lost the race: the unique pair constraint picked the winner
            conversation = Conversation.objects.get(
                requester_id=requester_id, staff_id=staff_id
            )
            cls.get_logger().info(
                f"Resolved concurrent create for pair ({requester_id}, {staff_id}) "
                f"to conversation {conversation.id}"
            )
            return ServiceResult.success((conversation, False))

        cls.get_logger().info(
            f"Created conversation {conversation.id} "
            f"(requester={requester_id}, staff={staff_id})"
        )
        return ServiceResult.success((conversation, True))

    @classmethod
    def resolve_default_staff(cls) -> User | None:
        """
        Return the staff member new conversations default to.

        Uses settings.CHAT_DEFAULT_STAFF_EMAIL when it names an active admin,
        otherwise the earliest active admin.
        """
        admins = User.objects.active_admins()

        email = settings.CHAT_DEFAULT_STAFF_EMAIL
        if email:
            configured = admins.filter(email__iexact=email).first()
            if configured:
                return configured
            cls.get_logger().warning(
                f"CHAT_DEFAULT_STAFF_EMAIL={email} does not match an active admin; "
                "falling back to the first admin"
            )

        return admins.first()

    @classmethod
    def start_for(
        cls,
        user: User,
        staff_id: int | None = None,
        requester_id: int | None = None,
    ) -> ServiceResult[tuple[Conversation, bool]]:
        """
        Start (or reopen) a conversation on behalf of the current user.

        - Parents and children talk to the given staff member, or to the
          default staff when none is given.
        - Admins open a conversation with a given requester, as its staff.

        Args:
            user: Authenticated user
            staff_id: Optional admin to talk to (requesters only)
            requester_id: Requester to talk to (admins only, required)

        Returns:
            ServiceResult with (conversation, created)

        Error codes:
            STAFF_NOT_FOUND: No matching active admin (or none configured)
            REQUESTER_REQUIRED: Admin did not name a requester
            REQUESTER_NOT_FOUND: No matching active parent or child
            START_NOT_ALLOWED: The user's role cannot start conversations
        """
        if user.is_admin:
            if requester_id is None:
                return ServiceResult.failure(
                    "requester_id is required",
                    error_code="REQUESTER_REQUIRED",
                )
            requester = User.objects.filter(
                id=requester_id,
                is_active=True,
                role__in=[User.Role.PARENT, User.Role.CHILD],
            ).first()
            if requester is None:
                return ServiceResult.failure(
                    "Requester not found",
                    error_code="REQUESTER_NOT_FOUND",
                )
            return cls.get_or_create_conversation(requester.id, user.id)

        if user.is_requester:
            if staff_id is not None:
                staff = User.objects.active_admins().filter(id=staff_id).first()
            else:
                staff = cls.resolve_default_staff()
            if staff is None:
                return ServiceResult.failure(
                    "No staff member available",
                    error_code="STAFF_NOT_FOUND",
                )
            return cls.get_or_create_conversation(user.id, staff.id)

        return ServiceResult.failure(
            "Your role cannot start conversations",
            error_code="START_NOT_ALLOWED",
        )

    @classmethod
    def list_for_user(cls, user: User) -> QuerySet[Conversation]:
        """
        Conversations visible to the user, most recently active first.

        Admins see every conversation; everyone else sees the ones they
        participate in.
        """
        queryset = Conversation.objects.select_related("requester", "staff")
        if not user.is_admin:
            queryset = queryset.filter(Q(requester=user) | Q(staff=user))
        return queryset.order_by(F("last_message_at").desc(nulls_last=True), "-id")

    @classmethod
    def can_access(cls, conversation: Conversation, user: User) -> bool:
        """Participants and admins may read a conversation."""
        return conversation.is_participant(user.id) or user.is_admin


class MessageService(BaseService):
    """
    Service for the append-only message log.

    Ordering:
        Each message takes sequence = conversation.last_sequence + 1 while
        the conversation row is locked, so concurrent appends from both
        participants produce a gapless total order.
    """

    @classmethod
    @retry_on_transient("append_message")
    def append_message(
        cls,
        conversation_id: int,
        sender_id: int,
        content: str,
        client_token: str | None = None,
    ) -> ServiceResult[tuple[Message, bool]]:
        """
        Append a message to a conversation.

        When client_token is given and the sender already appended a message
        with it, that message is returned with created=False and nothing new
        is written.

        Args:
            conversation_id: Target conversation
            sender_id: User sending the message
            content: Message text (stripped before storing)
            client_token: Optional idempotency key supplied by the client

        Returns:
            ServiceResult with (message, created)

        Error codes:
            EMPTY_CONTENT: Message content cannot be empty
            CONTENT_TOO_LONG: Content exceeds MESSAGE_CONFIG.MAX_CONTENT_LENGTH
            CONVERSATION_NOT_FOUND: Unknown conversation id
            NOT_PARTICIPANT: Sender is not requester or staff
        """
        content = content.strip() if content else ""
        validation = cls._validate_content(content)
        if validation:
            return validation

        conversation = Conversation.objects.filter(pk=conversation_id).first()
        if conversation is None:
            return ServiceResult.failure(
                "Conversation not found",
                error_code="CONVERSATION_NOT_FOUND",
            )

        if not conversation.is_participant(sender_id):
            return ServiceResult.failure(
                "You are not a participant in this conversation",
                error_code="NOT_PARTICIPANT",
            )

        if client_token:
            replay = Message.objects.filter(
                conversation_id=conversation_id,
                sender_id=sender_id,
                client_token=client_token,
            ).first()
            if replay:
                cls.get_logger().info(
                    f"Replayed client token for message {replay.id} "
                    f"in conversation {conversation_id}"
                )
                return ServiceResult.success((replay, False))

        try:
            message = cls._append(conversation_id, sender_id, content, client_token)
        except IntegrityError:
            if not client_token:
                raise
            # Concurrent retry with the same token committed first
            replay = Message.objects.get(
                conversation_id=conversation_id,
                sender_id=sender_id,
                client_token=client_token,
            )
            return ServiceResult.success((replay, False))

        cls.get_logger().debug(
            f"User {sender_id} appended message {message.id} "
            f"(seq {message.sequence}) to conversation {conversation_id}"
        )
        return ServiceResult.success((message, True))

    @classmethod
    @retry_on_transient("append_announcement")
    def append_announcement(
        cls,
        conversation: Conversation,
        sender_id: int,
        content: str,
    ) -> ServiceResult[Message]:
        """
        Append an administrator announcement to a conversation.

        The caller has already authorized the admin role, so the sender does
        not have to be a participant. The message is flagged is_announcement.

        Error codes:
            EMPTY_CONTENT, CONTENT_TOO_LONG: As for append_message
        """
        content = content.strip() if content else ""
        validation = cls._validate_content(content)
        if validation:
            return validation

        message = cls._append(
            conversation.id, sender_id, content, client_token=None, is_announcement=True
        )
        return ServiceResult.success(message)

    @classmethod
    def list_messages(
        cls,
        conversation_id: int,
        after: int | None = None,
        limit: int | None = None,
    ) -> ServiceResult[list[Message]]:
        """
        Return messages with sequence greater than the cursor, oldest first.

        Calling again with the last returned sequence as the cursor yields
        the next page; no message is repeated or skipped.

        Args:
            conversation_id: Conversation to read
            after: Last sequence the client has seen (None for the beginning)
            limit: Page size (defaults to MESSAGE_CONFIG.PAGE_SIZE, capped
                at MESSAGE_CONFIG.MAX_PAGE_SIZE)

        Returns:
            ServiceResult with the page of messages

        Error codes:
            CONVERSATION_NOT_FOUND: Unknown conversation id
            INVALID_CURSOR: Negative cursor or non-positive limit
        """
        if not Conversation.objects.filter(pk=conversation_id).exists():
            return ServiceResult.failure(
                "Conversation not found",
                error_code="CONVERSATION_NOT_FOUND",
            )

        if (after is not None and after < 0) or (limit is not None and limit < 1):
            return ServiceResult.failure(
                "Cursor must be >= 0 and limit must be >= 1",
                error_code="INVALID_CURSOR",
            )

        page_size = min(limit or MESSAGE_CONFIG.PAGE_SIZE, MESSAGE_CONFIG.MAX_PAGE_SIZE)

        queryset = Message.objects.filter(conversation_id=conversation_id)
        if after is not None:
            queryset = queryset.filter(sequence__gt=after)

        return ServiceResult.success(list(queryset.order_by("sequence")[:page_size]))

    @classmethod
    @retry_on_transient("mark_read")
    def mark_read(cls, conversation_id: int, reader_id: int) -> ServiceResult[int]:
        """
        Mark every message the reader did not send as read.

        Idempotent: a second call with no new messages updates nothing.

        Args:
            conversation_id: Conversation being read
            reader_id: User reading it

        Returns:
            ServiceResult with the number of messages updated

        Error codes:
            CONVERSATION_NOT_FOUND: Unknown conversation id
        """
        if not Conversation.objects.filter(pk=conversation_id).exists():
            return ServiceResult.failure(
                "Conversation not found",
                error_code="CONVERSATION_NOT_FOUND",
            )

        updated = (
            Message.objects.filter(conversation_id=conversation_id, is_read=False)
            .exclude(sender_id=reader_id)
            .update(is_read=True, updated_at=timezone.now())
        )

        if updated:
            cls.get_logger().debug(
                f"User {reader_id} marked {updated} messages read "
                f"in conversation {conversation_id}"
            )
        return ServiceResult.success(updated)

    @classmethod
    def _validate_content(cls, content: str) -> ServiceResult | None:
        if not content:
            return ServiceResult.failure(
                "Message content cannot be empty",
                error_code="EMPTY_CONTENT",
            )
        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message content exceeds {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code="CONTENT_TOO_LONG",
            )
        return None

    @classmethod
    def _append(
        cls,
        conversation_id: int,
        sender_id: int,
        content: str,
        client_token: str | None,
        is_announcement: bool = False,
    ) -> Message:
        """Allocate the next sequence under a row lock and insert the message."""
        with cls.atomic():
            conversation = Conversation.objects.select_for_update().get(
                pk=conversation_id
            )
            conversation.last_sequence += 1

            message = Message.objects.create(
                conversation=conversation,
                sender_id=sender_id,
                sequence=conversation.last_sequence,
                content=content,
                client_token=client_token,
                is_announcement=is_announcement,
            )

            conversation.last_message_at = message.created_at
            conversation.save(
                update_fields=["last_sequence", "last_message_at", "updated_at"]
            )

        return message
