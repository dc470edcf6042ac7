"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Conversation browsing
- Message moderation (read-only log)
"""

from django.contrib import admin

from chat.models import Conversation, Message


class MessageInline(admin.TabularInline):
    """Inline display of the latest part of the log in conversation admin."""

    model = Message
    extra = 0
    can_delete = False
    fields = ["sequence", "sender", "content", "is_read", "is_announcement", "created_at"]
    readonly_fields = fields
    ordering = ["-sequence"]
    show_change_link = True


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """Admin interface for Conversation model."""

    list_display = [
        "id",
        "requester",
        "staff",
        "last_sequence",
        "last_message_at",
        "created_at",
    ]
    list_filter = ["created_at"]
    search_fields = ["requester__email", "staff__email", "id"]
    readonly_fields = ["last_sequence", "last_message_at", "created_at", "updated_at"]
    raw_id_fields = ["requester", "staff"]
    inlines = [MessageInline]
    ordering = ["-last_message_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "conversation",
        "sequence",
        "sender",
        "content_preview",
        "is_read",
        "is_announcement",
        "created_at",
    ]
    list_filter = ["is_read", "is_announcement", "created_at"]
    search_fields = ["content", "sender__email"]
    readonly_fields = [
        "conversation",
        "sender",
        "sequence",
        "content",
        "client_token",
        "is_announcement",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]

    @admin.display(description="Content Preview")
    def content_preview(self, obj: Message) -> str:
        """Return truncated content for list display."""
        max_length = 50
        if len(obj.content) > max_length:
            return obj.content[:max_length] + "..."
        return obj.content
