import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from colordarts.models import DIFFICULTY_PROFILES, GameSettings, Phase, Player, ThrowRecord
from .colors import NEUTRAL_GRAY, Color, color_distance, mix_colors
from .hit_color import DEFAULT_WHEEL_RADIUS, resolve_hit_color

logger = logging.getLogger(__name__)

DEFAULT_MIX_WEIGHT = 0.3
DEFAULT_MAX_PLAYERS = 4
# Allowed gap between a trusted client color and the server's own sample
HIT_COLOR_MISMATCH_DISTANCE = 2.0


@dataclass(frozen=True)
class ThrowOutcome:
    throw_record: ThrowRecord
    new_color: Color
    color_changed: bool
    winner: Optional[Player] = None
    final_color: Optional[Color] = None


class Room:
    """A single game session: players, turn order, colors and the win check.

    Phase only moves forward: waiting -> playing -> finished. Playing again
    happens in a fresh room.
    """

    def __init__(
        self,
        room_code: str,
        host_id: str,
        host_name: str,
        target_color: Color,
        settings: Optional[GameSettings] = None,
        max_players: int = DEFAULT_MAX_PLAYERS,
        mix_weight: float = DEFAULT_MIX_WEIGHT,
        wheel_radius: float = DEFAULT_WHEEL_RADIUS,
        trust_client_hit_color: bool = True,
        enforce_max_throws: bool = False,
    ):
        self.room_code = room_code.upper()
        self.host_id = host_id
        # Insertion order is join order; host succession relies on it
        self.players: Dict[str, Player] = {}
        self.phase = Phase.WAITING
        self.target_color = target_color
        self.player_colors: Dict[str, Color] = {}
        self.current_turn = 0
        self.turn_order: List[str] = []
        self.throws: List[ThrowRecord] = []
        self.game_settings = settings or GameSettings()
        self.max_players = max_players
        self.mix_weight = mix_weight
        self.wheel_radius = wheel_radius
        self.trust_client_hit_color = trust_client_hit_color
        self.enforce_max_throws = enforce_max_throws
        self.winner_id: Optional[str] = None

        self.add_player(host_id, host_name)

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def is_full(self) -> bool:
        return self.player_count >= self.max_players

    @property
    def is_empty(self) -> bool:
        return not self.players

    @property
    def is_joinable(self) -> bool:
        return self.phase == Phase.WAITING and not self.is_full

    def add_player(self, player_id: str, player_name: str) -> Player:
        """Add a player to the lobby.

        Capacity and phase are checked by the coordinator before calling.
        """
        player = Player(id=player_id, name=player_name, is_host=(player_id == self.host_id))
        self.players[player_id] = player
        self.player_colors[player_id] = player.current_color
        return player

    def remove_player(self, player_id: str) -> Optional[Player]:
        player = self.players.pop(player_id, None)
        self.player_colors.pop(player_id, None)

        if player_id == self.host_id and self.players:
            successor = next(iter(self.players.values()))
            self.host_id = successor.id
            successor.is_host = True

        if player_id in self.turn_order:
            idx = self.turn_order.index(player_id)
            self.turn_order.remove(player_id)
            # Keep the turn with whoever held it
            if idx < self.current_turn:
                self.current_turn -= 1
        if self.current_turn >= len(self.turn_order):
            self.current_turn = 0
        return player

    def start_game(self, target_color: Optional[Color] = None) -> None:
        """Move to playing, snapshot the turn order and reset every player.

        Without ``target_color`` the target picked at room creation is kept.
        """
        if target_color is not None:
            self.target_color = target_color
        self.phase = Phase.PLAYING
        self.turn_order = list(self.players.keys())
        self.current_turn = 0
        self.throws = []
        self.winner_id = None

        for player in self.players.values():
            player.throw_count = 0
            player.current_color = NEUTRAL_GRAY
            player.score = 0
            self.player_colors[player.id] = NEUTRAL_GRAY

    def _resolve_throw_color(self, throw_data: Mapping[str, Any]) -> Optional[Color]:
        position = throw_data.get('hitPosition')
        if self.trust_client_hit_color and 'hitColor' in throw_data:
            claimed = throw_data['hitColor']
            if claimed is None:
                return None
            claimed = Color.from_payload(claimed)
            if position is not None:
                try:
                    sampled = resolve_hit_color(position, self.wheel_radius)
                except ValueError:
                    sampled = None
                if sampled is None or color_distance(sampled, claimed) > HIT_COLOR_MISMATCH_DISTANCE:
                    logger.info(
                        f"[hit-color-mismatch] room={self.room_code} claimed={claimed.to_dict()} "
                        f"sampled={sampled.to_dict() if sampled else None}"
                    )
            return claimed
        if position is None:
            raise ValueError('Throw is missing hitPosition')
        return resolve_hit_color(position, self.wheel_radius)

    def process_dart_throw(self, player_id: str, throw_data: Mapping[str, Any]) -> ThrowOutcome:
        player = self.players.get(player_id)
        if player is None:
            raise ValueError(f'Player not found: {player_id}')
        if not isinstance(throw_data, Mapping):
            raise ValueError('Throw data must be an object')

        hit_color = self._resolve_throw_color(throw_data)
        current = self.player_colors.get(player_id, player.current_color)

        color_changed = hit_color is not None
        new_color = mix_colors(current, hit_color, self.mix_weight) if color_changed else current
        if color_changed:
            self.player_colors[player_id] = new_color
            player.current_color = new_color
        # Misses still use up a throw
        player.throw_count += 1

        record = ThrowRecord(
            player_id=player_id,
            hit_position=throw_data.get('hitPosition'),
            hit_color=hit_color,
            new_color=new_color if color_changed else None,
            trajectory=throw_data.get('trajectory'),
        )
        self.throws.append(record)

        winner = None
        final_color = None
        if color_changed and color_distance(new_color, self.target_color) <= self.game_settings.color_tolerance:
            winner = player
            final_color = new_color
        elif self.enforce_max_throws and self._throws_exhausted():
            winner = self._closest_player()
            final_color = winner.current_color

        if winner is not None:
            winner.score += 1
            self.winner_id = winner.id
            self.phase = Phase.FINISHED
        else:
            self.advance_turn()

        return ThrowOutcome(
            throw_record=record,
            new_color=new_color,
            color_changed=color_changed,
            winner=winner,
            final_color=final_color,
        )

    def _throws_exhausted(self) -> bool:
        limit = self.game_settings.max_throws
        return all(self.players[pid].throw_count >= limit for pid in self.turn_order if pid in self.players)

    def _closest_player(self) -> Player:
        # Ties go to whoever is earlier in the turn order
        candidates = [self.players[pid] for pid in self.turn_order if pid in self.players]
        return min(candidates, key=lambda p: color_distance(p.current_color, self.target_color))

    def advance_turn(self) -> None:
        if self.turn_order:
            self.current_turn = (self.current_turn + 1) % len(self.turn_order)

    def update_settings(self, partial: Dict[str, Any]) -> GameSettings:
        self.game_settings = self.game_settings.merged(partial)
        return self.game_settings

    def get_current_player(self) -> Optional[str]:
        if not self.turn_order:
            return None
        return self.turn_order[self.current_turn]

    def get_player(self, player_id: str) -> Optional[Player]:
        return self.players.get(player_id)

    def get_state(self):
        """Serializable snapshot for broadcasting; shares no mutable state with the room."""
        settings = self.game_settings.to_dict()
        return {
            'roomCode': self.room_code,
            'hostId': self.host_id,
            'players': [p.to_dict() for p in self.players.values()],
            'gameState': self.phase.value,
            'targetColor': self.target_color.to_dict() if self.target_color else None,
            'currentTurn': self.get_current_player(),
            'currentTurnIndex': self.current_turn,
            'turnOrder': list(self.turn_order),
            'playerColors': {pid: c.to_dict() for pid, c in self.player_colors.items()},
            'gameSettings': settings,
            'difficultyProfile': dict(DIFFICULTY_PROFILES.get(settings['difficulty'], DIFFICULTY_PROFILES['medium'])),
            'throwCount': len(self.throws),
            'lastThrow': self.throws[-1].to_dict() if self.throws else None,
            'winnerId': self.winner_id,
            'maxPlayers': self.max_players,
        }
