import functools
import logging
import random
import threading
from typing import Any, Callable, Dict, List, Optional

from colordarts.models import GameSettings, Phase
from .colors import Color, generate_random_color
from .hit_color import DEFAULT_WHEEL_RADIUS
from .results import (
    DartThrown,
    ErrorKind,
    Failure,
    GameStarted,
    JoinedRoom,
    Ok,
    PlayerRemoved,
    ReplayStarted,
    Result,
    SettingsUpdated,
)
from .room import DEFAULT_MAX_PLAYERS, DEFAULT_MIX_WEIGHT, Room
from .validation import (
    generate_room_code,
    is_valid_player_name,
    is_valid_room_code,
    normalize_room_code,
    settings_from_config,
    validate_settings,
)


def _locked(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class GameCoordinator:
    """Owns every room and routes player actions to them.

    Keeps two indexes: room code -> Room and player id -> room code. Every
    public operation returns an ``Ok`` or a ``Failure``; only unexpected
    faults raise.

    Socket.IO handlers run on their own threads, so every public operation
    holds one re-entrant lock for its whole body.
    """

    def __init__(
        self,
        max_players: int = DEFAULT_MAX_PLAYERS,
        min_players: int = 2,
        room_code_length: int = 4,
        mix_weight: float = DEFAULT_MIX_WEIGHT,
        wheel_radius: float = DEFAULT_WHEEL_RADIUS,
        default_settings: Optional[GameSettings] = None,
        trust_client_hit_color: bool = True,
        regenerate_target_on_replay: bool = True,
        enforce_max_throws: bool = False,
        color_factory: Callable[[], Color] = generate_random_color,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.rooms: Dict[str, Room] = {}
        self.player_rooms: Dict[str, str] = {}
        self.max_players = max_players
        self.min_players = min_players
        self.room_code_length = room_code_length
        self.mix_weight = mix_weight
        self.wheel_radius = wheel_radius
        self.default_settings = default_settings or GameSettings()
        self.trust_client_hit_color = trust_client_hit_color
        self.regenerate_target_on_replay = regenerate_target_on_replay
        self.enforce_max_throws = enforce_max_throws
        self.color_factory = color_factory
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config, logger=None) -> 'GameCoordinator':
        return cls(
            max_players=int(config.get('MAX_PLAYERS', DEFAULT_MAX_PLAYERS)),
            min_players=int(config.get('MIN_PLAYERS', 2)),
            room_code_length=int(config.get('ROOM_CODE_LENGTH', 4)),
            mix_weight=float(config.get('MIX_WEIGHT', DEFAULT_MIX_WEIGHT)),
            wheel_radius=float(config.get('WHEEL_RADIUS', DEFAULT_WHEEL_RADIUS)),
            default_settings=GameSettings(**settings_from_config(config)),
            trust_client_hit_color=bool(config.get('TRUST_CLIENT_HIT_COLOR', True)),
            regenerate_target_on_replay=bool(config.get('REGENERATE_TARGET_ON_REPLAY', True)),
            enforce_max_throws=bool(config.get('ENFORCE_MAX_THROWS', False)),
            logger=logger,
        )

    # ---- lookups ----

    @_locked
    def get_room(self, room_code: Any) -> Optional[Room]:
        code = normalize_room_code(room_code)
        return self.rooms.get(code) if code else None

    @_locked
    def get_room_state(self, room_code: Any) -> Optional[Dict[str, Any]]:
        room = self.get_room(room_code)
        return room.get_state() if room else None

    @_locked
    def room_for_player(self, player_id: str) -> Optional[Room]:
        code = self.player_rooms.get(player_id)
        return self.rooms.get(code) if code else None

    @_locked
    def list_rooms(self) -> List[Dict[str, Any]]:
        return [
            {
                'roomCode': room.room_code,
                'gameState': room.phase.value,
                'playerCount': room.player_count,
                'maxPlayers': room.max_players,
            }
            for room in self.rooms.values()
        ]

    @_locked
    def find_available_room(self) -> Optional[str]:
        for code, room in self.rooms.items():
            if room.is_joinable:
                return code
        return None

    # ---- lifecycle ----

    def _unique_room_code(self) -> str:
        while True:
            code = generate_room_code(self.room_code_length, self.rng)
            if code not in self.rooms:
                return code

    def _new_room(self, host_id: str, host_name: str, target_color: Color, settings: GameSettings) -> Room:
        code = self._unique_room_code()
        room = Room(
            code,
            host_id,
            host_name,
            target_color,
            settings=settings,
            max_players=self.max_players,
            mix_weight=self.mix_weight,
            wheel_radius=self.wheel_radius,
            trust_client_hit_color=self.trust_client_hit_color,
            enforce_max_throws=self.enforce_max_throws,
        )
        self.rooms[code] = room
        self.player_rooms[host_id] = code
        return room

    @_locked
    def create_room(self, player_id: str, player_name: Any) -> Result[JoinedRoom]:
        if not is_valid_player_name(player_name):
            return Failure(ErrorKind.INVALID_NAME)
        if player_id in self.player_rooms:
            return Failure(ErrorKind.ALREADY_IN_ROOM)

        name = player_name.strip()
        room = self._new_room(player_id, name, self.color_factory(), self.default_settings)
        self.logger.info(f"[room-create] room={room.room_code} host={player_id} name={name}")
        return Ok(JoinedRoom(
            room_code=room.room_code,
            player=room.players[player_id].to_dict(),
            room=room.get_state(),
            created=True,
        ))

    @_locked
    def join_room(self, player_id: str, player_name: Any, room_code: Any = None) -> Result[JoinedRoom]:
        if not is_valid_player_name(player_name):
            return Failure(ErrorKind.INVALID_NAME)
        if player_id in self.player_rooms:
            return Failure(ErrorKind.ALREADY_IN_ROOM)

        if not room_code:
            room_code = self.find_available_room()
            if not room_code:
                return self.create_room(player_id, player_name)
        else:
            room_code = normalize_room_code(room_code)
            if not is_valid_room_code(room_code, self.room_code_length):
                return Failure(ErrorKind.INVALID_ROOM_CODE)

        room = self.rooms.get(room_code)
        if room is None:
            return Failure(ErrorKind.ROOM_NOT_FOUND)
        if room.is_full:
            return Failure(ErrorKind.ROOM_FULL)
        if room.phase != Phase.WAITING:
            return Failure(ErrorKind.GAME_IN_PROGRESS)

        name = player_name.strip()
        player = room.add_player(player_id, name)
        self.player_rooms[player_id] = room.room_code
        self.logger.info(f"[room-join] room={room.room_code} player={player_id} name={name} count={room.player_count}")
        return Ok(JoinedRoom(room_code=room.room_code, player=player.to_dict(), room=room.get_state()))

    @_locked
    def start_game(self, room_code: Any, requester_id: str) -> Result[GameStarted]:
        room = self.get_room(room_code)
        if room is None:
            return Failure(ErrorKind.ROOM_NOT_FOUND)
        if room.host_id != requester_id:
            return Failure(ErrorKind.NOT_HOST, 'Only the host can start the game')
        if room.phase != Phase.WAITING:
            return Failure(ErrorKind.GAME_IN_PROGRESS)
        if room.player_count < self.min_players:
            return Failure(ErrorKind.INSUFFICIENT_PLAYERS, f'Need at least {self.min_players} players to start')

        # The target drawn at room creation carries through
        room.start_game()
        self.logger.info(f"[game-start] room={room.room_code} order={room.turn_order}")
        return Ok(GameStarted(game_state=room.get_state(), target_color=room.target_color))

    @_locked
    def process_dart_throw(self, room_code: Any, player_id: str, throw_data: Any) -> Result[DartThrown]:
        room = self.get_room(room_code)
        if room is None:
            return Failure(ErrorKind.ROOM_NOT_FOUND)
        if room.phase != Phase.PLAYING:
            return Failure(ErrorKind.GAME_NOT_IN_PROGRESS)
        if room.get_current_player() != player_id:
            return Failure(ErrorKind.NOT_YOUR_TURN)

        outcome = room.process_dart_throw(player_id, throw_data)
        record = outcome.throw_record
        self.logger.info(
            f"[throw] room={room.room_code} player={player_id} hit={record.hit} "
            f"color={outcome.new_color.to_dict()} next={room.get_current_player()}"
        )
        winner = outcome.winner.to_dict() if outcome.winner else None
        if winner:
            self.logger.info(f"[game-won] room={room.room_code} winner={outcome.winner.id} color={outcome.final_color.to_dict()}")
        return Ok(DartThrown(
            throw_record=record.to_dict(),
            new_color=outcome.new_color,
            color_changed=outcome.color_changed,
            game_state=room.get_state(),
            winner=winner,
            final_color=outcome.final_color,
        ))

    @_locked
    def update_game_settings(self, room_code: Any, requester_id: str, settings: Any) -> Result[SettingsUpdated]:
        room = self.get_room(room_code)
        if room is None:
            return Failure(ErrorKind.ROOM_NOT_FOUND)
        if room.host_id != requester_id:
            return Failure(ErrorKind.NOT_HOST, 'Only the host can update settings')
        error = validate_settings(settings)
        if error:
            return Failure(ErrorKind.INVALID_SETTINGS, error)

        updated = room.update_settings(settings)
        self.logger.info(f"[settings] room={room.room_code} settings={updated.to_dict()}")
        return Ok(SettingsUpdated(settings=updated.to_dict()))

    @_locked
    def remove_player(self, player_id: str) -> PlayerRemoved:
        """Drop a player from whichever room holds them; deletes the room once empty."""
        room_code = self.player_rooms.pop(player_id, None)
        if not room_code:
            return PlayerRemoved()
        room = self.rooms.get(room_code)
        if room is None:
            return PlayerRemoved()

        room.remove_player(player_id)
        self.logger.info(f"[player-leave] room={room_code} player={player_id} remaining={room.player_count}")
        deleted = room.is_empty
        if deleted:
            del self.rooms[room_code]
            self.logger.info(f"[room-delete] room={room_code}")
        return PlayerRemoved(room_code=room_code, room=room.get_state(), room_deleted=deleted)

    @_locked
    def leave_room(self, player_id: str) -> PlayerRemoved:
        return self.remove_player(player_id)

    @_locked
    def play_again(self, room_code: Any, requester_id: str) -> Result[ReplayStarted]:
        """Open a fresh room for everyone in a finished one.

        Players keep their join order, the host stays host and settings carry
        over. The old room is dropped.
        """
        room = self.get_room(room_code)
        if room is None:
            return Failure(ErrorKind.ROOM_NOT_FOUND)
        if room.host_id != requester_id:
            return Failure(ErrorKind.NOT_HOST, 'Only the host can start a new round')
        if room.phase != Phase.FINISHED:
            return Failure(ErrorKind.GAME_NOT_FINISHED)

        target = self.color_factory() if self.regenerate_target_on_replay else room.target_color
        host = room.players[room.host_id]
        fresh = self._new_room(host.id, host.name, target, room.game_settings)
        for player in room.players.values():
            if player.id != host.id:
                fresh.add_player(player.id, player.name)
                self.player_rooms[player.id] = fresh.room_code
        del self.rooms[room.room_code]
        self.logger.info(f"[replay] room={room.room_code} -> {fresh.room_code}")
        return Ok(ReplayStarted(previous_code=room.room_code, room_code=fresh.room_code, room=fresh.get_state()))

    @_locked
    def shutdown(self) -> None:
        self.rooms.clear()
        self.player_rooms.clear()
