"""
Administrator broadcast.

An announcement is appended to every existing conversation and routed to
each conversation's requester like any other message (live or push).
A failure in one conversation is logged and does not stop the others.

Usage:
    router = DeliveryRouter(apps.get_app_config("chat").session_registry)
    result = BroadcastService(router).broadcast_to_all(admin, "Closed on Friday")
    if result.success:
        print(f"Posted to {result.data} conversations")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.services import BaseService, ServiceResult

from chat.models import Conversation
from chat.services import MessageService

if TYPE_CHECKING:
    from authentication.models import User

    from chat.delivery import DeliveryRouter

logger = logging.getLogger(__name__)


class BroadcastService(BaseService):
    """
    Fans an administrator announcement out to all conversations.

    Args:
        router: DeliveryRouter used for each appended announcement
    """

    def __init__(self, router: DeliveryRouter):
        self.router = router

    def broadcast_to_all(self, sender: User, content: str) -> ServiceResult[int]:
        """
        Post an announcement into every conversation.

        Args:
            sender: Administrator making the announcement
            content: Announcement text

        Returns:
            ServiceResult with the number of conversations the announcement
            was appended to

        Error codes:
            ADMIN_REQUIRED: sender is not an administrator
            EMPTY_CONTENT: Announcement content is empty
        """
        if not sender.is_admin:
            return ServiceResult.failure(
                "Only administrators can broadcast",
                error_code="ADMIN_REQUIRED",
            )

        if not content or not content.strip():
            return ServiceResult.failure(
                "Announcement content cannot be empty",
                error_code="EMPTY_CONTENT",
            )

        appended = 0
        failed = 0
        for conversation in Conversation.objects.order_by("id").iterator():
            try:
                result = MessageService.append_announcement(
                    conversation, sender.id, content
                )
            except Exception:
                failed += 1
                logger.exception(
                    f"Broadcast from user {sender.id} failed for conversation "
                    f"{conversation.id}"
                )
                continue

            if not result.success:
                # Content errors are the same for every conversation
                return result

            appended += 1
            try:
                self.router.deliver(result.data)
            except Exception:
                logger.exception(
                    f"Delivery of announcement {result.data.id} failed "
                    f"for conversation {conversation.id}"
                )

        logger.info(
            f"Broadcast from user {sender.id} appended to {appended} conversations"
            + (f", {failed} failed" if failed else "")
        )
        return ServiceResult.success(appended)
