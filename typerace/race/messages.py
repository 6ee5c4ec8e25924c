"""Wire messages exchanged over a race channel.

Each direction is a closed union discriminated on ``type``.
"""

from __future__ import annotations

import json
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from typerace.errors import MalformedMessage


# Client -> server
class JoinMessage(BaseModel):
    type: Literal["join"] = "join"


class ProgressMessage(BaseModel):
    type: Literal["progress"] = "progress"
    progress: float


class CompleteMessage(BaseModel):
    type: Literal["complete"] = "complete"
    wpm: float
    errors: int


ClientMessage = Annotated[
    Union[JoinMessage, ProgressMessage, CompleteMessage],
    Field(discriminator="type"),
]

_client_adapter = TypeAdapter(ClientMessage)


# Server -> client
class OpponentJoined(BaseModel):
    type: Literal["opponent_joined"] = "opponent_joined"


class GameStart(BaseModel):
    type: Literal["game_start"] = "game_start"
    text: str


class OpponentProgress(BaseModel):
    type: Literal["opponent_progress"] = "opponent_progress"
    progress: float


class GameOver(BaseModel):
    type: Literal["game_over"] = "game_over"
    winner: str
    wpm: float
    errors: int


class OpponentLeft(BaseModel):
    type: Literal["opponent_left"] = "opponent_left"


ServerMessage = Union[OpponentJoined, GameStart, OpponentProgress, GameOver, OpponentLeft]


def parse_client_message(raw: str | bytes) -> JoinMessage | ProgressMessage | CompleteMessage:
    """Parse one inbound frame. Raises MalformedMessage on anything unusable."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedMessage(f"Invalid JSON: {e}")
    if not isinstance(data, dict):
        raise MalformedMessage("Message must be a JSON object")
    try:
        return _client_adapter.validate_python(data)
    except ValidationError as e:
        raise MalformedMessage(f"Invalid {data.get('type')!r} message: {e.error_count()} error(s)")
