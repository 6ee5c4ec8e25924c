"""Room pairing and race relay.

A room moves WAITING -> ACTIVE -> FINISHED and is dropped as soon as its
last participant leaves. All room state is owned by MatchCoordinator and
only changes while its lock is held, so two concurrent joins can never
seat a third participant. Outbound messages are only queued under the
lock; each seated channel's Outbox does the actual sending.
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from typerace.errors import MalformedMessage
from typerace.race.channel import Channel
from typerace.race.messages import (
    CompleteMessage,
    GameOver,
    GameStart,
    JoinMessage,
    OpponentJoined,
    OpponentLeft,
    OpponentProgress,
    ProgressMessage,
    ServerMessage,
)

logger = logging.getLogger(__name__)

ROOM_CAPACITY = 2


class RoomState(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass
class Room:
    room_id: str
    text: str
    # username -> channel, in join order
    participants: dict[str, Channel] = field(default_factory=dict)
    state: RoomState = RoomState.WAITING

    def is_open(self) -> bool:
        return self.state is RoomState.WAITING and len(self.participants) < ROOM_CAPACITY

    def seats(self, channel: Channel) -> bool:
        return self.participants.get(channel.username) is channel


@dataclass(frozen=True)
class RoomSnapshot:
    room_id: str
    text: str
    participants: tuple[str, ...]
    state: RoomState


class Outbox:
    """Per-channel send queue drained by its own writer task.

    Messages are queued while the coordinator lock is held, so each channel
    sees them in transition order, but a slow client only stalls its own
    writer.
    """

    def __init__(self, channel: Channel):
        self.channel = channel
        self.queue: asyncio.Queue[ServerMessage] = asyncio.Queue()
        self.task = asyncio.create_task(self._run())

    def put(self, message: ServerMessage) -> None:
        self.queue.put_nowait(message)

    def close(self) -> None:
        self.task.cancel()

    async def _run(self) -> None:
        while True:
            message = await self.queue.get()
            # A failed send is not a disconnect; the receive loop reports closure
            try:
                await self.channel.send(message)
            except Exception as e:
                logger.warning(f"Could not send {message.type} to {self.channel.username}: {e}")
            finally:
                self.queue.task_done()


class MatchCoordinator:
    def __init__(self, pick_text: Callable[[], str], record_victory: Callable[[str], None]):
        self._pick_text = pick_text
        self._record_victory = record_victory
        self._rooms: dict[str, Room] = {}
        self._seats: dict[str, str] = {}  # username -> room_id
        self._outboxes: dict[str, Outbox] = {}  # username -> seated channel's outbox
        self._lock = asyncio.Lock()

    async def handle(self, channel: Channel, message) -> None:
        if isinstance(message, JoinMessage):
            await self.join(channel)
        elif isinstance(message, ProgressMessage):
            await self.progress(channel, message.progress)
        elif isinstance(message, CompleteMessage):
            await self.complete(channel, message.wpm, message.errors)
        else:
            raise MalformedMessage(f"Unhandled message type {type(message).__name__}")

    async def join(self, channel: Channel) -> str | None:
        """Seat ``channel`` in the first open room, creating one if needed.

        Returns the room id, or None if the user is already seated somewhere.
        """
        username = channel.username
        async with self._lock:
            if username in self._seats:
                logger.info(f"Ignoring join from {username}: already in room {self._seats[username]}")
                return None

            room = next((r for r in self._rooms.values() if r.is_open()), None)
            if room is None:
                room = Room(room_id=secrets.token_hex(8), text=self._pick_text())
                self._rooms[room.room_id] = room
                logger.info(f"Created room {room.room_id} for {username}")

            room.participants[username] = channel
            self._seats[username] = room.room_id
            self._outboxes[username] = Outbox(channel)

            if len(room.participants) == ROOM_CAPACITY:
                self._broadcast(room, OpponentJoined())
                room.state = RoomState.ACTIVE
                self._broadcast(room, GameStart(text=room.text))
                logger.info(f"Room {room.room_id} started: {', '.join(room.participants)}")
            return room.room_id

    async def progress(self, channel: Channel, value: float) -> None:
        async with self._lock:
            room = self._active_room_for(channel)
            if room is None:
                return
            message = OpponentProgress(progress=value)
            for username in room.participants:
                if username != channel.username:
                    self._outboxes[username].put(message)

    async def complete(self, channel: Channel, wpm: float, errors: int) -> None:
        async with self._lock:
            room = self._active_room_for(channel)
            if room is None:
                return
            room.state = RoomState.FINISHED
            self._broadcast(room, GameOver(winner=channel.username, wpm=wpm, errors=errors))
            logger.info(f"Room {room.room_id} finished, winner {channel.username}")

        # Outside the lock, after the broadcast is queued
        try:
            self._record_victory(channel.username)
        except Exception:
            logger.exception(f"Failed to record victory for {channel.username}")

    async def leave(self, channel: Channel) -> None:
        username = channel.username
        async with self._lock:
            room_id = self._seats.get(username)
            room = self._rooms.get(room_id) if room_id else None
            if room is None or not room.seats(channel):
                return
            del room.participants[username]
            del self._seats[username]
            self._outboxes.pop(username).close()

            if not room.participants:
                del self._rooms[room.room_id]
                logger.info(f"Room {room.room_id} is empty, removed")
                return

            logger.info(f"{username} left room {room.room_id}")
            self._broadcast(room, OpponentLeft())

    async def flush(self) -> None:
        """Wait until every queued message has been handed to its channel."""
        await asyncio.gather(*(outbox.queue.join() for outbox in list(self._outboxes.values())))

    def room_count(self) -> int:
        return len(self._rooms)

    def room_of(self, username: str) -> RoomSnapshot | None:
        room = self._rooms.get(self._seats.get(username, ""))
        if room is None:
            return None
        return RoomSnapshot(
            room_id=room.room_id,
            text=room.text,
            participants=tuple(room.participants),
            state=room.state,
        )

    def _active_room_for(self, channel: Channel) -> Room | None:
        room = self._rooms.get(self._seats.get(channel.username, ""))
        if room is None or not room.seats(channel):
            logger.debug(f"Dropping race message from unseated {channel.username}")
            return None
        if room.state is not RoomState.ACTIVE:
            logger.info(f"Dropping race message from {channel.username}: room {room.room_id} is {room.state.value}")
            return None
        return room

    def _broadcast(self, room: Room, message: ServerMessage) -> None:
        for username in room.participants:
            self._outboxes[username].put(message)
