"""
URL configuration for notifications API.

Routes:
    /push/subscribe/          - Register push endpoint (POST)
    /push/unsubscribe/        - Remove push endpoint (POST)
    /push/vapid-public-key/   - VAPID public key (GET)
"""

from django.urls import path

from notifications.views import PushSubscribeView, PushUnsubscribeView, VapidPublicKeyView

app_name = "notifications"

urlpatterns = [
    path("push/subscribe/", PushSubscribeView.as_view(), name="push-subscribe"),
    path("push/unsubscribe/", PushUnsubscribeView.as_view(), name="push-unsubscribe"),
    path(
        "push/vapid-public-key/",
        VapidPublicKeyView.as_view(),
        name="push-vapid-public-key",
    ),
]
