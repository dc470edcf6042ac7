"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Conversation and Message constraints
- test_services.py: Conversation store (ConversationService, MessageService)
- test_registry.py: SessionRegistry
- test_delivery.py: DeliveryRouter live/push/stored paths
- test_broadcast.py: BroadcastService
- test_unread.py: UnreadTracker
- test_consumers.py: WebSocket consumer and JWT middleware
- test_views.py: REST API endpoint tests
- test_integration.py: End-to-end delivery scenarios

Usage:
    pytest chat/tests/
    pytest chat/tests/test_delivery.py
"""
