import logging

from fastapi import APIRouter, WebSocket

from typerace.errors import MalformedMessage, Unauthorized
from typerace.race.channel import WebSocketChannel
from typerace.race.messages import parse_client_message

logger = logging.getLogger(__name__)
router = APIRouter(tags=["race"])

# WebSocket close codes for rejected handshakes
CLOSE_CODES = {
    "missing token": 4001,
    "malformed token": 4002,
    "invalid token": 4003,
    "token mismatch": 4003,
    "token not found": 4004,
}


@router.websocket("/ws/challenge")
async def challenge(websocket: WebSocket, auth_token: str | None = None):
    guard = websocket.app.state.guard
    coordinator = websocket.app.state.coordinator

    await websocket.accept()
    try:
        username = guard.authorize(auth_token)
    except Unauthorized as e:
        logger.info(f"Rejected race channel: {e.reason}")
        await websocket.close(code=CLOSE_CODES.get(e.reason, 4003), reason=e.reason)
        return

    channel = WebSocketChannel(websocket, username)
    logger.info(f"Race channel open for {username}")
    try:
        async for frame in channel.frames():
            try:
                message = parse_client_message(frame)
                await coordinator.handle(channel, message)
            except MalformedMessage as e:
                logger.warning(f"Dropped message from {username}: {e}")
    finally:
        await coordinator.leave(channel)
