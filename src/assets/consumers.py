"""WebSocket consumer streaming notifications to signed-in users."""

import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from assets.services.notifications import notification_group

logger = logging.getLogger(__name__)


class NotificationConsumer(AsyncJsonWebsocketConsumer):
    """Forward messages sent to the user's notification group."""

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            await self.close()
            return

        self.group_name = notification_group(user.pk)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        logger.debug("Notification socket opened for user %s", user.pk)

    async def disconnect(self, close_code):
        group_name = getattr(self, "group_name", None)
        if group_name:
            await self.channel_layer.group_discard(
                group_name, self.channel_name
            )

    async def receive_json(self, content, **kwargs):
        # Clients only listen
        if content.get("type") == "ping":
            await self.send_json({"type": "pong"})

    async def notification_message(self, event):
        await self.send_json(
            {
                "type": "notification",
                "title": event["title"],
                "message": event["message"],
                "icon": event["icon"],
                "senderId": event["senderId"],
            }
        )
