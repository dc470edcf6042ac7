"""
Views for push notification API.

Endpoints:
    POST /api/v1/notifications/push/subscribe/        - Register this device's endpoint
    POST /api/v1/notifications/push/unsubscribe/      - Remove the caller's endpoint
    GET  /api/v1/notifications/push/vapid-public-key/ - Key for PushManager.subscribe()
"""

from __future__ import annotations

from django.conf import settings
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from notifications.serializers import PushSubscriptionSerializer, VapidPublicKeySerializer
from notifications.services import PushSubscriptionService


class PushSubscribeView(APIView):
    """Register (or replace) the caller's push endpoint."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="push_subscribe",
        summary="Subscribe to push",
        description=(
            "Store the browser PushSubscription of the caller. A user has at "
            "most one endpoint; subscribing again replaces it."
        ),
        request=PushSubscriptionSerializer,
        responses={
            201: OpenApiResponse(description="Endpoint registered"),
            400: OpenApiResponse(description="Invalid subscription"),
        },
        tags=["Notifications - Push"],
    )
    def post(self, request):
        serializer = PushSubscriptionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PushSubscriptionService.register_push(
            request.user.id,
            endpoint=serializer.validated_data["endpoint"],
            p256dh=serializer.validated_data["p256dh"],
            auth=serializer.validated_data["auth"],
        )
        if not result.success:
            return Response(result.to_response(), status=status.HTTP_400_BAD_REQUEST)

        return Response({"success": True}, status=status.HTTP_201_CREATED)


class PushUnsubscribeView(APIView):
    """Remove the caller's push endpoint."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="push_unsubscribe",
        summary="Unsubscribe from push",
        request=None,
        responses={204: OpenApiResponse(description="Endpoint removed (or none was set)")},
        tags=["Notifications - Push"],
    )
    def post(self, request):
        PushSubscriptionService.unregister_push(request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class VapidPublicKeyView(APIView):
    """Expose the VAPID public key clients subscribe with."""

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="push_vapid_public_key",
        summary="VAPID public key",
        responses={200: VapidPublicKeySerializer},
        tags=["Notifications - Push"],
    )
    def get(self, request):
        return Response({"public_key": settings.VAPID_PUBLIC_KEY})
