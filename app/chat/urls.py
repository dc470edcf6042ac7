"""
URL configuration for chat API.

URL Structure:
    Conversations:
        /conversations/                   GET
        /conversations/start/             POST
        /conversations/{id}/              GET
        /conversations/{id}/messages/     GET, POST
        /conversations/{id}/read/         POST

    Unread:
        /unread/                          GET

    Broadcast:
        /broadcast/                       POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import BroadcastView, ConversationViewSet, UnreadView

router = DefaultRouter()
router.register(r"conversations", ConversationViewSet, basename="conversation")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
    path("unread/", UnreadView.as_view(), name="unread"),
    path("broadcast/", BroadcastView.as_view(), name="broadcast"),
]
