"""
Permission classes for chat API.

This module provides DRF permission classes for the chat system:
- IsConversationParticipant: User is requester or staff (admins may read all)

Design Decisions:
    - Permissions consult roles and participants; the store does not
    - Sending is further checked by MessageService, which rejects
      non-participant senders (admins included) with NOT_PARTICIPANT
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from chat.services import ConversationService

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView

    from chat.models import Conversation


class IsConversationParticipant(permissions.BasePermission):
    """
    Allows access to the conversation's participants and to administrators.

    This is the base permission for conversation-scoped endpoints.
    """

    message = "You are not a participant in this conversation."

    def has_object_permission(
        self, request: Request, view: APIView, obj: Conversation
    ) -> bool:
        if not request.user.is_authenticated:
            return False
        return ConversationService.can_access(obj, request.user)
