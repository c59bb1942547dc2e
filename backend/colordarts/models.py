import copy
import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

from colordarts.services.games.colors import NEUTRAL_GRAY, Color


class Phase(str, Enum):
    WAITING = 'waiting'
    PLAYING = 'playing'
    FINISHED = 'finished'


DIFFICULTIES = ('easy', 'medium', 'hard')

# Aim modifiers the client applies per difficulty
DIFFICULTY_PROFILES = {
    'easy': {'accuracyBonus': 0.2, 'powerStability': 0.8, 'windStrength': 0.1},
    'medium': {'accuracyBonus': 0.0, 'powerStability': 1.0, 'windStrength': 0.3},
    'hard': {'accuracyBonus': -0.1, 'powerStability': 1.2, 'windStrength': 0.5},
}

# Wire name -> attribute name
SETTING_FIELDS = {
    'colorTolerance': 'color_tolerance',
    'maxThrows': 'max_throws',
    'dartSpeed': 'dart_speed',
    'difficulty': 'difficulty',
}


@dataclass
class Player:
    id: str
    name: str
    is_host: bool = False
    is_ready: bool = False
    throw_count: int = 0
    current_color: Color = NEUTRAL_GRAY
    score: int = 0

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'isHost': self.is_host,
            'isReady': self.is_ready,
            'throwCount': self.throw_count,
            'currentColor': self.current_color.to_dict(),
            'score': self.score,
        }


@dataclass(frozen=True)
class ThrowRecord:
    player_id: str
    hit_position: Any
    hit_color: Optional[Color]
    new_color: Optional[Color]
    trajectory: Any = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    @property
    def hit(self) -> bool:
        return self.hit_color is not None

    def to_dict(self):
        return {
            'id': self.id,
            'playerId': self.player_id,
            'timestamp': self.timestamp,
            'hitPosition': copy.deepcopy(self.hit_position),
            'hitColor': self.hit_color.to_dict() if self.hit_color else None,
            'newColor': self.new_color.to_dict() if self.new_color else None,
            'trajectory': copy.deepcopy(self.trajectory),
            'hit': self.hit,
        }


@dataclass(frozen=True)
class GameSettings:
    color_tolerance: float = 30
    max_throws: int = 10
    dart_speed: float = 50
    difficulty: str = 'medium'

    def merged(self, partial: Dict[str, Any]) -> 'GameSettings':
        """Shallow merge of wire-named keys; unknown keys are ignored."""
        changes = {SETTING_FIELDS[k]: v for k, v in (partial or {}).items() if k in SETTING_FIELDS}
        return replace(self, **changes)

    def to_dict(self):
        return {wire: getattr(self, attr) for wire, attr in SETTING_FIELDS.items()}
