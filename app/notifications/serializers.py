"""
Serializers for push notification API.

Serializers:
    PushSubscriptionSerializer: Browser PushSubscription keys sent on subscribe
    VapidPublicKeySerializer: Response for the public key endpoint

Usage:
    serializer = PushSubscriptionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
"""

from __future__ import annotations

from rest_framework import serializers


class PushSubscriptionSerializer(serializers.Serializer):
    """
    Endpoint and keys of a browser PushSubscription.

    Accepts either flat keys or the browser's own JSON shape:
        {"endpoint": ..., "p256dh": ..., "auth": ...}
        {"endpoint": ..., "keys": {"p256dh": ..., "auth": ...}}
    """

    endpoint = serializers.URLField(max_length=1000)
    p256dh = serializers.CharField(max_length=255, required=False)
    auth = serializers.CharField(max_length=255, required=False)
    keys = serializers.DictField(child=serializers.CharField(), required=False, write_only=True)

    def validate(self, attrs):
        keys = attrs.pop("keys", None) or {}
        attrs.setdefault("p256dh", keys.get("p256dh"))
        attrs.setdefault("auth", keys.get("auth"))

        missing = [name for name in ("p256dh", "auth") if not attrs.get(name)]
        if missing:
            raise serializers.ValidationError(
                {name: ["This field is required."] for name in missing}
            )
        return attrs


class VapidPublicKeySerializer(serializers.Serializer):
    public_key = serializers.CharField(allow_blank=True)
