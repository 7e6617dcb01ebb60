"""WebSocket URL routing for the assets app."""

from django.urls import path

from assets.consumers import NotificationConsumer

websocket_urlpatterns = [
    path(
        "ws/notifications/",
        NotificationConsumer.as_asgi(),
    ),
]
