"""Result values returned by coordinator operations.

Expected rule violations come back as ``Failure`` instead of being raised,
so the transport layer only needs ``try/except`` for genuine faults.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar, Union

from .colors import Color

T = TypeVar('T')


class ErrorKind(Enum):
    ROOM_NOT_FOUND = 'Room not found'
    ROOM_FULL = 'Room is full'
    GAME_IN_PROGRESS = 'Game is already in progress'
    NOT_HOST = 'Only the host can do that'
    INSUFFICIENT_PLAYERS = 'Need at least 2 players to start'
    GAME_NOT_IN_PROGRESS = 'Game is not in progress'
    NOT_YOUR_TURN = 'Not your turn'
    INVALID_NAME = 'Player name must be 1-20 characters'
    INVALID_ROOM_CODE = 'Room code must be 4 letters or digits'
    INVALID_SETTINGS = 'Invalid game settings'
    ALREADY_IN_ROOM = 'You are already in a room'
    GAME_NOT_FINISHED = 'Game is not finished'
    INTERNAL_ERROR = 'Server error'

    @property
    def default_message(self) -> str:
        return self.value


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    success: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str = ''
    success: bool = field(default=False, init=False)

    def __post_init__(self):
        if not self.message:
            object.__setattr__(self, 'message', self.kind.default_message)

    def to_dict(self):
        return {'success': False, 'message': self.message}


Result = Union[Ok[T], Failure]


@dataclass(frozen=True)
class JoinedRoom:
    room_code: str
    player: Dict[str, Any]
    room: Dict[str, Any]
    created: bool = False


@dataclass(frozen=True)
class GameStarted:
    game_state: Dict[str, Any]
    target_color: Color


@dataclass(frozen=True)
class DartThrown:
    throw_record: Dict[str, Any]
    new_color: Color
    color_changed: bool
    game_state: Dict[str, Any]
    winner: Optional[Dict[str, Any]] = None
    final_color: Optional[Color] = None


@dataclass(frozen=True)
class SettingsUpdated:
    settings: Dict[str, Any]


@dataclass(frozen=True)
class PlayerRemoved:
    room_code: Optional[str] = None
    room: Optional[Dict[str, Any]] = None
    room_deleted: bool = False


@dataclass(frozen=True)
class ReplayStarted:
    previous_code: str
    room_code: str
    room: Dict[str, Any]
