"""
WebSocket consumer for live message delivery.

One connection is one live session. A user may hold several (devices,
tabs); each is registered in the process SessionRegistry and receives
every message routed to that user, whichever conversation it belongs to.

Authentication:
    Users are authenticated via JWT token passed as query parameter.
    JWTAuthMiddleware attaches the user to self.scope["user"].

Message Types (to client):
    - connection.established: Sent once after accept, carries session_id
    - message:new: New message for the user
    - error: Response to an unsupported client frame

Message Types (from client):
    None. Messages are sent over the REST API so that every append goes
    through the same validation, idempotency and delivery path.
"""

from __future__ import annotations

import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.apps import apps
from django.contrib.auth.models import AnonymousUser

from chat.constants import LIVE_CONFIG
from chat.registry import SessionHandle, SessionRegistry

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    Live session of an authenticated user.

    Attributes:
        registry: SessionRegistry the session is registered in (the app's
            registry unless one is passed to as_asgi())
        handle: SessionHandle registered for this connection (after connect)
    """

    registry: SessionRegistry | None = None

    def __init__(self, *args, registry=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.registry = registry or apps.get_app_config("chat").session_registry
        self.handle: SessionHandle | None = None

    async def connect(self):
        """
        Handle WebSocket connection.

        Anonymous connections are closed with code 4001. Otherwise the
        connection is accepted and registered as a live session.
        """
        user = self.scope.get("user")

        if not user or isinstance(user, AnonymousUser):
            logger.warning("Rejected unauthenticated live connection")
            await self.close(code=LIVE_CONFIG.CLOSE_UNAUTHENTICATED)
            return

        # Browsers drop the socket unless an offered subprotocol is echoed
        subprotocol = "jwt" if "jwt" in self.scope.get("subprotocols", []) else None
        await self.accept(subprotocol)
        self.handle = self.registry.register_session(user.id, self.channel_name)

        await self.send_json(
            {
                "type": "connection.established",
                "session_id": self.handle.session_id,
            }
        )
        logger.info(f"User {user.id} connected (session {self.handle.session_id})")

    async def disconnect(self, close_code):
        """Unregister the session, if one was registered."""
        if self.handle is None:
            return

        self.registry.unregister_session(self.handle)
        logger.info(
            f"User {self.handle.user_id} disconnected "
            f"(session {self.handle.session_id}, code {close_code})"
        )
        self.handle = None

    async def receive_json(self, content):
        message_type = content.get("type") if isinstance(content, dict) else None
        await self.send_json(
            {
                "type": "error",
                "message": f"Unsupported message type: {message_type}",
            }
        )

    async def message_new(self, event):
        """
        Handle message.new events from DeliveryRouter.

        Sends the message to the WebSocket client.
        """
        await self.send_json(
            {
                "type": LIVE_CONFIG.CLIENT_EVENT_MESSAGE_NEW,
                "conversation_id": event["conversation_id"],
                "message": event["message"],
            }
        )
