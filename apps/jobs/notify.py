import logging
from typing import Any, Dict

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def user_group(user_id) -> str:
    return f"evaluations_user_{user_id}"


def notify_user(user_id, payload: Dict[str, Any]) -> None:
    """Push a status event to the user's websocket group; best-effort."""
    try:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            return
        async_to_sync(channel_layer.group_send)(user_group(user_id), {"type": "notify", "payload": payload})
    except Exception:
        logger.warning("Failed to push notification to user %s", user_id, exc_info=True)
