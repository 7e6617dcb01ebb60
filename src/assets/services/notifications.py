"""User-facing notifications.

A notification is flashed through the messages framework for the next
page render and pushed to the user's open tabs over the
``notifications_<user id>`` Channels group.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from django.contrib import messages

logger = logging.getLogger(__name__)

VARIANT_LEVELS = {
    "success": messages.SUCCESS,
    "error": messages.ERROR,
    "primary": messages.INFO,
    "gray": messages.INFO,
}


def notification_group(user_id) -> str:
    return f"notifications_{user_id}"


def send_notification(request, title, message, icon="check", variant="success"):
    """Flash ``title``/``message`` and push it to the sender's sockets."""
    level = VARIANT_LEVELS.get(variant, messages.INFO)
    messages.add_message(request, level, message, extra_tags=variant)

    payload = {
        "type": "notification.message",
        "title": title,
        "message": message,
        "icon": {"name": icon, "variant": variant},
        "senderId": request.user.pk,
    }

    channel_layer = get_channel_layer()
    if channel_layer is None:
        return payload

    try:
        async_to_sync(channel_layer.group_send)(
            notification_group(request.user.pk), payload
        )
    except Exception:
        # The flashed message still reaches the user on the next page
        logger.exception(
            "Could not push notification %r to user %s",
            title,
            request.user.pk,
        )
    return payload
