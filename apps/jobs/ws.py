import json
import logging

from channels.generic.websocket import AsyncWebsocketConsumer

from .notify import user_group

logger = logging.getLogger(__name__)


class EvaluationStatusConsumer(AsyncWebsocketConsumer):
    """Streams evaluation status changes to the signed-in user."""

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            await self.close(code=4401)
            return
        self.group_name = user_group(user.pk)
        # Accept first to minimize handshake failures
        await self.accept()
        try:
            await self.channel_layer.group_add(self.group_name, self.channel_name)
        except Exception:
            # If group add fails (e.g., Redis hiccup), close gracefully
            logger.warning("group_add failed for %s", self.group_name, exc_info=True)
            await self.close()

    async def disconnect(self, code):
        group_name = getattr(self, "group_name", None)
        if not group_name:
            return
        try:
            await self.channel_layer.group_discard(group_name, self.channel_name)
        except Exception:
            logger.debug("group_discard failed for %s", group_name, exc_info=True)

    async def notify(self, event):
        await self.send(text_data=json.dumps(event.get("payload", {})))
