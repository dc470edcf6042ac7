"""
Chat app for real-time conversations between requesters and staff.

This app handles:
- Conversations (one per requester and staff pair)
- Sequenced message log, history paging and read marking
- Live delivery to every connected session, with push fallback
- Administrator broadcasts

Related apps:
    - authentication: User model and roles
    - notifications: Push endpoints and push delivery

WebSocket Support:
    Uses Django Channels for live delivery.
    See consumers.py for the WebSocket handler.
    See routing.py for WebSocket URL patterns.

Usage:
    from chat.services import ConversationService, MessageService

    conversation, _ = ConversationService.get_or_create_conversation(
        parent.id, admin.id
    ).data

    result = MessageService.append_message(conversation.id, parent.id, "Hello!")
    message, created = result.data
"""
