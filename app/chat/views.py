"""
Views for chat API.

This module provides REST API endpoints for the chat system:
- ConversationViewSet: Conversations, their history and read marking
- UnreadView: Total unread count of the caller
- BroadcastView: Administrator announcement to every conversation

URL Structure:
    /api/v1/chat/conversations/                  GET
    /api/v1/chat/conversations/start/            POST
    /api/v1/chat/conversations/{id}/             GET
    /api/v1/chat/conversations/{id}/messages/    GET, POST
    /api/v1/chat/conversations/{id}/read/        POST
    /api/v1/chat/unread/                         GET
    /api/v1/chat/broadcast/                      POST

Design Decisions:
    - All writes go through the service layer
    - Service error codes map to HTTP statuses in error_response()
    - Newly appended messages are handed to DeliveryRouter; idempotent
      replays are not delivered again
    - Delivery failures after the append are logged; the send still succeeds
    - TransientStoreError propagates to core.views.api_exception_handler (503)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.apps import apps
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat.broadcast import BroadcastService
from chat.delivery import DeliveryRouter
from chat.models import Conversation
from chat.permissions import IsConversationParticipant
from chat.serializers import (
    BroadcastSerializer,
    ConversationSerializer,
    MessagePageSerializer,
    MessageSerializer,
    SendMessageSerializer,
    StartConversationSerializer,
)
from chat.services import ConversationService, MessageService
from chat.unread import UnreadTracker

if TYPE_CHECKING:
    from core.services import ServiceResult

logger = logging.getLogger(__name__)

FORBIDDEN_CODES = frozenset({"NOT_PARTICIPANT", "ADMIN_REQUIRED", "START_NOT_ALLOWED"})


def error_response(result: ServiceResult) -> Response:
    """Render a failed ServiceResult with the status its error code implies."""
    code = result.error_code or ""
    if code in FORBIDDEN_CODES:
        status_code = status.HTTP_403_FORBIDDEN
    elif code.endswith("_NOT_FOUND"):
        status_code = status.HTTP_404_NOT_FOUND
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    return Response(result.to_response(), status=status_code)


def get_router() -> DeliveryRouter:
    """DeliveryRouter bound to this process's session registry."""
    return DeliveryRouter(apps.get_app_config("chat").session_registry)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_conversations",
        summary="List conversations",
        description=(
            "Conversations visible to the caller, most recently active first. "
            "Administrators see every conversation."
        ),
        tags=["Chat - Conversations"],
    ),
    retrieve=extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        tags=["Chat - Conversations"],
    ),
)
class ConversationViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for conversation operations.

    list:
        Conversations for the current user with unread counts and the
        latest message.

    retrieve:
        Conversation details.

    start:
        Start or reopen the conversation with a staff member (requesters)
        or with a requester (administrators).

    messages:
        GET pages through history after a sequence cursor.
        POST appends a message and delivers it to the counterpart.

    read:
        Mark the counterpart's messages as read.
    """

    serializer_class = ConversationSerializer
    permission_classes = [IsAuthenticated, IsConversationParticipant]
    pagination_class = None

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Conversation.objects.none()

        user = self.request.user
        if self.action == "list":
            queryset = ConversationService.list_for_user(user)
        else:
            # Access to a single conversation is decided by IsConversationParticipant
            queryset = Conversation.objects.select_related("requester", "staff")

        return UnreadTracker.annotate_unread(queryset, user.id)

    @extend_schema(
        operation_id="start_conversation",
        summary="Start conversation",
        request=StartConversationSerializer,
        responses={
            200: OpenApiResponse(ConversationSerializer, "Existing conversation"),
            201: OpenApiResponse(ConversationSerializer, "Conversation created"),
            403: OpenApiResponse(description="Role cannot start conversations"),
            404: OpenApiResponse(description="Staff or requester not found"),
        },
        tags=["Chat - Conversations"],
    )
    @action(detail=False, methods=["post"])
    def start(self, request):
        """Start (or reopen) a conversation."""
        serializer = StartConversationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConversationService.start_for(
            request.user,
            staff_id=serializer.validated_data.get("staff_id"),
            requester_id=serializer.validated_data.get("requester_id"),
        )
        if not result.success:
            return error_response(result)

        conversation, created = result.data
        conversation = self.get_queryset().get(pk=conversation.pk)
        return Response(
            ConversationSerializer(conversation, context={"request": request}).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(
        methods=["GET"],
        operation_id="list_messages",
        summary="List messages",
        description=(
            "Messages with sequence greater than ?after=, oldest first. "
            "Pass next_cursor back as ?after= to continue."
        ),
        parameters=[
            OpenApiParameter("after", OpenApiTypes.INT, description="Last seen sequence"),
            OpenApiParameter("limit", OpenApiTypes.INT, description="Page size"),
        ],
        responses={200: MessagePageSerializer},
        tags=["Chat - Messages"],
    )
    @extend_schema(
        methods=["POST"],
        operation_id="send_message",
        summary="Send message",
        request=SendMessageSerializer,
        responses={
            200: OpenApiResponse(MessageSerializer, "Replay of an earlier send"),
            201: OpenApiResponse(MessageSerializer, "Message appended"),
            403: OpenApiResponse(description="Not a participant"),
            503: OpenApiResponse(description="Store unavailable, resubmit"),
        },
        tags=["Chat - Messages"],
    )
    @action(detail=True, methods=["get", "post"])
    def messages(self, request, pk=None):
        conversation = self.get_object()

        if request.method == "GET":
            return self._list_messages(request, conversation)
        return self._send_message(request, conversation)

    @extend_schema(
        operation_id="mark_conversation_read",
        summary="Mark conversation as read",
        request=None,
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Conversations"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        """Mark conversation as read."""
        conversation = self.get_object()

        # Admins may view any conversation but only its participants read it
        if not conversation.is_participant(request.user.id):
            return Response(
                {
                    "error": "Only participants can mark a conversation read",
                    "error_code": "NOT_PARTICIPANT",
                },
                status=status.HTTP_403_FORBIDDEN,
            )

        result = MessageService.mark_read(conversation.id, request.user.id)
        if not result.success:
            return error_response(result)

        return Response({"updated": result.data})

    def _list_messages(self, request, conversation):
        try:
            after = _int_param(request, "after")
            limit = _int_param(request, "limit")
        except ValueError:
            return Response(
                {"error": "after and limit must be integers", "error_code": "INVALID_CURSOR"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        result = MessageService.list_messages(conversation.id, after=after, limit=limit)
        if not result.success:
            return error_response(result)

        messages = result.data
        return Response(
            {
                "results": MessageSerializer(messages, many=True).data,
                "next_cursor": messages[-1].sequence if messages else None,
            }
        )

    def _send_message(self, request, conversation):
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.append_message(
            conversation.id,
            request.user.id,
            serializer.validated_data["content"],
            client_token=serializer.validated_data.get("client_token") or None,
        )
        if not result.success:
            return error_response(result)

        message, created = result.data
        if created:
            try:
                get_router().deliver(message)
            except Exception:
                # Stored messages are confirmed; the recipient catches up on fetch
                logger.exception(
                    f"Delivery of message {message.id} in conversation "
                    f"{conversation.id} failed"
                )

        return Response(
            MessageSerializer(message).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


def _int_param(request, name: str) -> int | None:
    value = request.query_params.get(name)
    return int(value) if value not in (None, "") else None


class UnreadView(APIView):
    """
    Total unread messages of the caller.

    GET /api/v1/chat/unread/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_total_unread",
        summary="Total unread count",
        description="Unread messages over every conversation the caller participates in.",
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Conversations"],
    )
    def get(self, request):
        return Response({"total": UnreadTracker.total_unread(request.user.id)})


class BroadcastView(APIView):
    """
    Administrator announcement.

    POST /api/v1/chat/broadcast/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="broadcast_announcement",
        summary="Broadcast announcement",
        description="Post an announcement into every conversation. Administrators only.",
        request=BroadcastSerializer,
        responses={
            200: OpenApiTypes.OBJECT,
            403: OpenApiResponse(description="Caller is not an administrator"),
        },
        tags=["Chat - Broadcast"],
    )
    def post(self, request):
        serializer = BroadcastSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = BroadcastService(get_router()).broadcast_to_all(
            request.user, serializer.validated_data["content"]
        )
        if not result.success:
            return error_response(result)

        return Response({"notified": result.data})
