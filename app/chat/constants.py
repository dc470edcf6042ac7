"""
Constants and configuration for chat module features.

This module centralizes configuration values for:
- Message operations (content limits, history paging)
- Live delivery over the WebSocket channel
- Push notification summaries

Deployment-specific knobs (timeouts, default staff) live in settings.py;
these values are part of the client contract and change with the API.

Import example:
    from chat.constants import MESSAGE_CONFIG, LIVE_CONFIG
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Content limits
    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters
    MAX_CLIENT_TOKEN_LENGTH: Final[int] = 64

    # History paging (cursor = last seen sequence)
    PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 200


# =============================================================================
# Live Delivery Configuration
# =============================================================================


class LIVE_CONFIG:
    """Configuration for the live WebSocket channel."""

    # Channel layer event type handled by ChatConsumer.message_new
    EVENT_MESSAGE_NEW: Final[str] = "message.new"

    # Frame type sent to clients
    CLIENT_EVENT_MESSAGE_NEW: Final[str] = "message:new"

    # WebSocket close codes
    CLOSE_UNAUTHENTICATED: Final[int] = 4001


# =============================================================================
# Push Summary Configuration
# =============================================================================


class PUSH_SUMMARY_CONFIG:
    """Configuration for push notification summaries of chat messages."""

    BODY_MAX_LENGTH: Final[int] = 50
    ELLIPSIS: Final[str] = "..."
    ICON: Final[str] = "/icon-192x192.png"
    BADGE: Final[str] = "/badge-72x72.png"
    ANNOUNCEMENT_TITLE: Final[str] = "New message from the administrator"
