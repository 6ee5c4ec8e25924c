import logging
from typing import AsyncIterator, Protocol

from fastapi import WebSocket

from typerace.race.messages import ServerMessage

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """One participant's live connection, as seen by the coordinator."""

    username: str

    async def send(self, message: ServerMessage) -> None: ...


class WebSocketChannel:
    def __init__(self, websocket: WebSocket, username: str):
        self.websocket = websocket
        self.username = username

    async def send(self, message: ServerMessage) -> None:
        await self.websocket.send_json(message.model_dump())

    async def frames(self) -> AsyncIterator[str | bytes]:
        """Yield inbound frames in arrival order until the client disconnects."""
        while True:
            message = await self.websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"Channel for {self.username} closed (code {message.get('code')})")
                return
            data = message.get("text")
            if data is None:
                data = message.get("bytes") or b""
            yield data
