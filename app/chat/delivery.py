"""
Delivery router for newly appended messages.

Given a message, the router resolves its recipient and picks a path:

    live   - the recipient has connected sessions: the message is sent to
             every one of them over the channel layer, concurrently, each
             send bounded by CHAT_LIVE_SEND_TIMEOUT. Sessions that cannot
             take the event in time are treated as dead and unregistered.
             If none of them takes it, the push path is tried instead.
    push   - no live session but a push endpoint: a summary notification
             is queued for the Celery push task (never awaited here).
    stored - neither: the message waits in the log for the next history
             fetch. This is the normal "offline without push" case.

Each appended message is delivered once. Clients merge live events with
fetched history by message id and apply them in sequence order.

Usage:
    router = DeliveryRouter(apps.get_app_config("chat").session_registry)
    outcome = router.deliver(message)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.exceptions import ChannelFull
from channels.layers import get_channel_layer
from django.conf import settings

from notifications.services import PushDeliveryService, PushSubscriptionService

from chat.constants import LIVE_CONFIG, PUSH_SUMMARY_CONFIG

if TYPE_CHECKING:
    from chat.models import Message
    from chat.registry import SessionHandle, SessionRegistry

logger = logging.getLogger(__name__)


class DeliveryPath:
    LIVE = "live"
    PUSH = "push"
    STORED = "stored"


@dataclass
class DeliveryOutcome:
    """
    Result of routing one message.

    Attributes:
        recipient_id: User the message was routed to
        path: DeliveryPath that finally carried the message
        live_sessions: Sessions targeted on the live path
        live_delivered: Sessions that accepted the event
        dead_sessions: Sessions unregistered after a failed or timed-out send
        push_enqueued: Whether a push task was queued
    """

    recipient_id: int
    path: str
    live_sessions: int = 0
    live_delivered: int = 0
    dead_sessions: int = 0
    push_enqueued: bool = False


def serialize_message(message: Message) -> dict:
    """Wire representation of a message on the live channel."""
    return {
        "id": message.id,
        "conversation_id": message.conversation_id,
        "sender_id": message.sender_id,
        "sequence": message.sequence,
        "content": message.content,
        "is_read": message.is_read,
        "is_announcement": message.is_announcement,
        "created_at": message.created_at.isoformat(),
    }


def build_push_summary(message: Message) -> dict:
    """
    Build the push notification for a message.

    The body is a truncated preview so the payload stays well below the
    push service limit regardless of message length.
    """
    if message.is_announcement:
        title = PUSH_SUMMARY_CONFIG.ANNOUNCEMENT_TITLE
    else:
        title = f"New message from {message.sender.get_full_name()}"

    body = message.content
    if len(body) > PUSH_SUMMARY_CONFIG.BODY_MAX_LENGTH:
        body = body[: PUSH_SUMMARY_CONFIG.BODY_MAX_LENGTH] + PUSH_SUMMARY_CONFIG.ELLIPSIS

    return {
        "title": title,
        "body": body,
        "icon": PUSH_SUMMARY_CONFIG.ICON,
        "badge": PUSH_SUMMARY_CONFIG.BADGE,
        "data": {
            "conversation_id": message.conversation_id,
            "message_id": message.id,
            "sequence": message.sequence,
        },
    }


class DeliveryRouter:
    """
    Routes appended messages to live sessions or push.

    Args:
        registry: Live session registry to read (and prune)
        channel_layer: Channels layer used for live sends (default layer if omitted)
        send_timeout: Seconds a single session send may take
            (defaults to settings.CHAT_LIVE_SEND_TIMEOUT)
    """

    def __init__(
        self,
        registry: SessionRegistry,
        channel_layer=None,
        send_timeout: float | None = None,
    ):
        self.registry = registry
        self.channel_layer = channel_layer or get_channel_layer()
        self.send_timeout = (
            settings.CHAT_LIVE_SEND_TIMEOUT if send_timeout is None else send_timeout
        )

    def deliver(self, message: Message) -> DeliveryOutcome:
        """
        Deliver a newly appended message to its recipient.

        Never raises for delivery-path failures: the message is already
        stored, so failed live sends and push queuing errors are logged.
        When no live session accepts the event (all of them were found
        dead), the message falls back to push like an offline recipient.

        Args:
            message: Message returned by the conversation store

        Returns:
            DeliveryOutcome describing the path taken
        """
        recipient_id = message.conversation.counterpart_of(message.sender_id)
        sessions = self.registry.live_sessions_of(recipient_id)
        outcome = DeliveryOutcome(
            recipient_id=recipient_id,
            path=DeliveryPath.LIVE,
            live_sessions=len(sessions),
        )

        if sessions:
            self._deliver_live(message, sessions, outcome)
            if outcome.live_delivered:
                return outcome

        subscription = PushSubscriptionService.push_endpoint_of(recipient_id)
        if subscription is None:
            logger.debug(
                f"Message {message.id} stored for offline user {recipient_id}"
            )
            outcome.path = DeliveryPath.STORED
            return outcome

        outcome.path = DeliveryPath.PUSH
        try:
            PushDeliveryService.enqueue(
                subscription, build_push_summary(message), message_id=message.id
            )
            outcome.push_enqueued = True
        except Exception:
            # The message is stored; the recipient gets it on next fetch
            logger.exception(
                f"Could not queue push for message {message.id} to user {recipient_id}"
            )
        return outcome

    def _deliver_live(
        self,
        message: Message,
        sessions: frozenset[SessionHandle],
        outcome: DeliveryOutcome,
    ) -> None:
        if self.channel_layer is None:
            logger.error("No channel layer configured; live delivery skipped")
            return

        event = {
            "type": LIVE_CONFIG.EVENT_MESSAGE_NEW,
            "conversation_id": message.conversation_id,
            "message": serialize_message(message),
        }
        results = async_to_sync(self._fan_out)(sessions, event)

        for handle, delivered in results:
            if delivered:
                outcome.live_delivered += 1
            elif self.registry.unregister_session(handle):
                outcome.dead_sessions += 1

        logger.info(
            f"Message {message.id} delivered live to user {outcome.recipient_id}: "
            f"{outcome.live_delivered}/{outcome.live_sessions} sessions"
        )

    async def _fan_out(
        self,
        sessions: frozenset[SessionHandle],
        event: dict,
    ) -> list[tuple[SessionHandle, bool]]:
        handles = list(sessions)
        delivered = await asyncio.gather(
            *(self._send_to_session(handle, event) for handle in handles)
        )
        return list(zip(handles, delivered))

    async def _send_to_session(self, handle: SessionHandle, event: dict) -> bool:
        try:
            await asyncio.wait_for(
                self.channel_layer.send(handle.channel_name, event),
                timeout=self.send_timeout,
            )
        except (asyncio.TimeoutError, ChannelFull):
            logger.warning(
                f"Session {handle.session_id} of user {handle.user_id} "
                f"did not accept the event within {self.send_timeout}s; dropping it"
            )
            return False
        except Exception:
            logger.exception(
                f"Live send to session {handle.session_id} of user "
                f"{handle.user_id} failed; dropping it"
            )
            return False
        return True
