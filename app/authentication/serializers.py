"""
Serializers for authentication models.

Related files:
    - models.py: User model
    - views.py: CurrentUserView
    - chat/serializers.py: Embeds UserSummarySerializer in conversations
"""

from rest_framework import serializers

from authentication.models import User


class UserSummarySerializer(serializers.ModelSerializer):
    """
    Compact user representation (id and role are what other apps consume).

    Used for the /api/v1/auth/me/ endpoint and nested in conversation
    and message payloads.
    """

    full_name = serializers.CharField(source="get_full_name", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "role",
        ]
        read_only_fields = fields
