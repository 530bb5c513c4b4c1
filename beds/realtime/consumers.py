"""
WebSocket endpoint for live bed-board updates (``/ws/updates/``).

Clients receive every event until they subscribe to a ward or a single
bed; from then on they receive only their topics, and fall back to the
full feed after the last unsubscribe::

    {"action": "subscribe", "ward": "ICU"}
    {"action": "subscribe", "bed": 12}
    {"action": "unsubscribe", "ward": "ICU"}
"""
import json
from channels.generic.websocket import AsyncWebsocketConsumer

from beds.services.notify import BROADCAST_GROUP, bed_topic, ward_topic


class UpdatesConsumer(AsyncWebsocketConsumer):
    GROUP = BROADCAST_GROUP

    async def connect(self):
        self.topics = set()
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)
        for topic in getattr(self, "topics", ()):
            await self.channel_layer.group_discard(topic, self.channel_name)

    def _topic(self, msg):
        if msg.get("ward"):
            return ward_topic(str(msg["ward"]))
        if msg.get("bed") is not None:
            return bed_topic(msg["bed"])
        return None

    async def receive(self, text_data=None, bytes_data=None):
        try:
            msg = json.loads(text_data or "{}")
        except ValueError:
            await self.send(json.dumps({"type": "error", "message": "invalid JSON"}))
            return
        action = msg.get("action")
        topic = self._topic(msg)
        if action not in ("subscribe", "unsubscribe") or topic is None:
            await self.send(json.dumps({"type": "error", "message": "expected subscribe/unsubscribe with ward or bed"}))
            return
        if action == "subscribe":
            if not self.topics:
                await self.channel_layer.group_discard(self.GROUP, self.channel_name)
            await self.channel_layer.group_add(topic, self.channel_name)
            self.topics.add(topic)
        elif topic in self.topics:
            await self.channel_layer.group_discard(topic, self.channel_name)
            self.topics.discard(topic)
            if not self.topics:
                await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.send(json.dumps({"type": action + "d", "topic": topic}))

    async def bed_event(self, event):
        # event: {"type": "bed.event", "event": "bed.updated", "ts": "...", "data": {...}}
        await self.send(json.dumps({"type": event["event"], "ts": event["ts"], "data": event["data"]}))
