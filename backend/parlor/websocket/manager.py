import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field

from fastapi import WebSocket

from parlor.config import settings
from parlor.core import events
from parlor.schemas.session import Identity

logger = logging.getLogger(__name__)


@dataclass
class ConnectionBinding:
    """What the server remembers about one live socket."""

    connection_id: str
    identity: Identity
    websocket: WebSocket
    # Raw session token, so identify can rename the stored session.
    session_token: str | None = None
    channels: set[int] = field(default_factory=set)


class BroadcastRouter:
    """Tracks live connections and the topics each one listens to.

    Every connection is on the well-known global topic from the moment it
    connects; joining a channel adds that channel's topic.  Publishing to a
    topic sends the payload to each subscriber in turn.  A send that fails
    marks the connection dead and it is dropped; nobody waits for a slow
    recipient beyond its own send.
    """

    def __init__(self) -> None:
        # connection_id -> binding
        self._bindings: dict[str, ConnectionBinding] = {}
        # topic -> {connection_id}
        self._topics: dict[str, set[str]] = defaultdict(set)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(
        self,
        websocket: WebSocket,
        connection_id: str,
        identity: Identity,
        session_token: str | None = None,
    ) -> ConnectionBinding:
        """Register an already-accepted connection and put it on the global topic."""
        binding = ConnectionBinding(
            connection_id=connection_id,
            identity=identity,
            websocket=websocket,
            session_token=session_token,
        )
        self._bindings[connection_id] = binding
        self._topics[events.GLOBAL_TOPIC].add(connection_id)
        logger.info("WebSocket %s connected (user %s)", connection_id, identity.user_id)
        return binding

    def disconnect(self, connection_id: str) -> None:
        binding = self._bindings.pop(connection_id, None)
        if binding is None:
            return
        for topic in [events.GLOBAL_TOPIC, *(events.channel_topic(cid) for cid in binding.channels)]:
            members = self._topics.get(topic)
            if members is None:
                continue
            members.discard(connection_id)
            if not members:
                del self._topics[topic]
        logger.info("WebSocket %s disconnected (user %s)", connection_id, binding.identity.user_id)

    def connection_ids(self) -> list[str]:
        return list(self._bindings)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, connection_id: str, channel_id: int) -> bool:
        """Add a channel to a connection's topics. No existence check on the channel.

        Returns False if the connection is not (or no longer) registered.
        """
        binding = self._bindings.get(connection_id)
        if binding is None:
            return False
        binding.channels.add(channel_id)
        self._topics[events.channel_topic(channel_id)].add(connection_id)
        return True

    def subscribers(self, topic: str) -> list[str]:
        return list(self._topics.get(topic, ()))

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    async def publish(self, topic: str, payload: dict) -> int:
        """Send a JSON payload to every subscriber of a topic.

        Returns the number of connections it was delivered to.
        """
        text = json.dumps(payload)
        delivered = 0
        dead: list[str] = []
        for cid in self.subscribers(topic):
            binding = self._bindings.get(cid)
            if binding is None:
                continue
            try:
                await binding.websocket.send_text(text)
                delivered += 1
            except Exception:
                dead.append(cid)
        for cid in dead:
            self.disconnect(cid)
        return delivered

    async def broadcast(self, payload: dict) -> int:
        """Publish on the global topic (every connection)."""
        return await self.publish(events.GLOBAL_TOPIC, payload)

    async def publish_to_channel(self, channel_id: int, payload: dict) -> int:
        return await self.publish(events.channel_topic(channel_id), payload)

    async def publish_mutation(self, channel_id: int, payload: dict) -> int:
        """Publish an edit, delete or reaction event.

        These follow the message's channel unless GLOBAL_MUTATION_EVENTS asks
        for the older everyone-gets-everything behaviour.
        """
        if settings.GLOBAL_MUTATION_EVENTS:
            return await self.broadcast(payload)
        return await self.publish_to_channel(channel_id, payload)

    async def send_personal(self, connection_id: str, payload: dict) -> bool:
        """Send a JSON payload to one connection.

        Returns True if delivered, False if the connection is gone.
        """
        binding = self._bindings.get(connection_id)
        if binding is None:
            return False
        try:
            await binding.websocket.send_text(json.dumps(payload))
            return True
        except Exception:
            self.disconnect(connection_id)
            return False


broadcaster = BroadcastRouter()
