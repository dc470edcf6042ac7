"""
Chat application configuration.

This app provides the conversation subsystem with:
- One conversation per (requester, staff) pair
- Append-only, sequenced message log with read tracking
- Live delivery to every connected session of the recipient
- Push fallback and administrator broadcasts
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """
    Configuration for the chat application.

    Owns the process-wide SessionRegistry. Consumers and the delivery
    router receive it from here instead of importing a module global:

        registry = apps.get_app_config("chat").session_registry
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"

    def ready(self):
        from chat.registry import SessionRegistry

        self.session_registry = SessionRegistry()
