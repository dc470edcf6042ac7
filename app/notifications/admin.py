"""
Django admin configuration for notification models.

Registers:
- PushSubscription
- PushDelivery (read-only delivery log)
"""

from django.contrib import admin

from notifications.models import PushDelivery, PushSubscription


@admin.register(PushSubscription)
class PushSubscriptionAdmin(admin.ModelAdmin):
    list_display = ["user", "endpoint_host", "created_at", "updated_at"]
    search_fields = ["user__email", "endpoint"]
    raw_id_fields = ["user"]
    readonly_fields = ["created_at", "updated_at"]

    @admin.display(description="Push service")
    def endpoint_host(self, obj: PushSubscription) -> str:
        parts = obj.endpoint.split("/")
        return parts[2] if len(parts) > 2 else obj.endpoint


@admin.register(PushDelivery)
class PushDeliveryAdmin(admin.ModelAdmin):
    """
    Admin configuration for PushDelivery.

    Read-only view of push attempts for debugging delivery problems.
    """

    list_display = [
        "id",
        "recipient",
        "status",
        "attempt_count",
        "failure_code",
        "is_permanent_failure",
        "created_at",
    ]
    list_filter = ["status", "is_permanent_failure", "skipped_reason", "created_at"]
    search_fields = ["recipient__email", "id"]
    raw_id_fields = ["recipient", "message"]
    readonly_fields = [
        "id",
        "recipient",
        "message",
        "endpoint",
        "payload",
        "status",
        "sent_at",
        "failed_at",
        "failure_reason",
        "failure_code",
        "is_permanent_failure",
        "attempt_count",
        "skipped_reason",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]
