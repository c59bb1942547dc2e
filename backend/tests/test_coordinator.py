import math
import random
import threading
import time

from colordarts.models import Phase
from colordarts.services.games.colors import NEUTRAL_GRAY, Color, mix_colors, rgb_to_hsl
from colordarts.services.games.coordinator import GameCoordinator
from colordarts.services.games.hit_color import resolve_hit_color
from colordarts.services.games.results import ErrorKind

MISS = {'hitPosition': {'x': 9, 'y': 9}}


def _ready_room(coordinator, *ids):
    code = coordinator.create_room(ids[0], ids[0].title()).value.room_code
    for pid in ids[1:]:
        assert coordinator.join_room(pid, pid.title(), code).success
    return code


def test_create_room_indexes_player(coordinator):
    result = coordinator.create_room('alice', 'Alice')
    assert result.success
    joined = result.value
    assert len(joined.room_code) == 4
    assert joined.room_code.isalnum() and joined.room_code.isupper()
    assert joined.player['isHost']
    assert coordinator.player_rooms['alice'] == joined.room_code
    assert joined.room['targetColor'] is not None


def test_create_room_uses_random_vibrant_target():
    coordinator = GameCoordinator(rng=random.Random(5))
    room = coordinator.get_room(coordinator.create_room('alice', 'Alice').value.room_code)
    _, s, l = rgb_to_hsl(room.target_color)
    assert 68 <= s <= 100.5
    assert 39 <= l <= 61


def test_room_codes_never_collide():
    class Repeating(random.Random):
        # First two codes repeat, then a fresh one appears
        def __init__(self):
            super().__init__()
            self.calls = 0

        def choice(self, seq):
            self.calls += 1
            return seq[0] if self.calls <= 8 else seq[1]

    coordinator = GameCoordinator(rng=Repeating())
    first = coordinator.create_room('a', 'A').value.room_code
    second = coordinator.create_room('b', 'B').value.room_code
    assert first == 'AAAA'
    assert second == 'BBBB'


def test_invalid_names_are_rejected(coordinator):
    assert coordinator.create_room('a', '').kind == ErrorKind.INVALID_NAME
    assert coordinator.create_room('a', '   ').kind == ErrorKind.INVALID_NAME
    assert coordinator.create_room('a', 'x' * 21).kind == ErrorKind.INVALID_NAME
    assert coordinator.join_room('a', None).kind == ErrorKind.INVALID_NAME
    assert coordinator.create_room('a', 'x' * 20).success


def test_join_by_code_is_case_insensitive(coordinator):
    code = coordinator.create_room('alice', 'Alice').value.room_code
    result = coordinator.join_room('bob', 'Bob', code.lower())
    assert result.success
    assert result.value.room_code == code
    assert not result.value.player['isHost']
    assert len(result.value.room['players']) == 2


def test_join_failures(coordinator):
    assert coordinator.join_room('bob', 'Bob', 'ZZZZ').kind == ErrorKind.ROOM_NOT_FOUND
    assert coordinator.join_room('bob', 'Bob', 'AB!').kind == ErrorKind.INVALID_ROOM_CODE
    assert coordinator.join_room('bob', 'Bob', 'ABCDE').kind == ErrorKind.INVALID_ROOM_CODE


def test_full_room_rejects_fifth_player(coordinator):
    code = _ready_room(coordinator, 'a', 'b', 'c', 'd')
    result = coordinator.join_room('e', 'E', code)
    assert not result.success
    assert result.kind == ErrorKind.ROOM_FULL
    assert result.message == 'Room is full'
    assert 'e' not in coordinator.player_rooms


def test_started_room_rejects_joiners(coordinator):
    code = _ready_room(coordinator, 'a', 'b')
    assert coordinator.start_game(code, 'a').success
    assert coordinator.join_room('c', 'C', code).kind == ErrorKind.GAME_IN_PROGRESS


def test_player_cannot_sit_in_two_rooms(coordinator):
    coordinator.create_room('alice', 'Alice')
    other = coordinator.create_room('bob', 'Bob').value.room_code
    assert coordinator.join_room('alice', 'Alice', other).kind == ErrorKind.ALREADY_IN_ROOM
    assert coordinator.create_room('alice', 'Alice').kind == ErrorKind.ALREADY_IN_ROOM


def test_join_any_finds_open_room_or_creates_one(coordinator):
    first = coordinator.create_room('alice', 'Alice').value.room_code
    joined = coordinator.join_room('bob', 'Bob')
    assert joined.value.room_code == first
    coordinator.start_game(first, 'alice')
    created = coordinator.join_room('cara', 'Cara')
    assert created.success
    assert created.value.created
    assert created.value.room_code != first
    assert created.value.player['isHost']


def test_find_available_room_skips_full_and_started(coordinator):
    full = _ready_room(coordinator, 'a', 'b', 'c', 'd')
    started = _ready_room(coordinator, 'e', 'f')
    coordinator.start_game(started, 'e')
    assert coordinator.find_available_room() is None
    waiting = coordinator.create_room('g', 'G').value.room_code
    assert coordinator.find_available_room() == waiting
    assert full != waiting


def test_start_game_rules(coordinator):
    code = coordinator.create_room('alice', 'Alice').value.room_code
    assert coordinator.start_game('QQQQ', 'alice').kind == ErrorKind.ROOM_NOT_FOUND
    assert coordinator.start_game(code, 'alice').kind == ErrorKind.INSUFFICIENT_PLAYERS
    coordinator.join_room('bob', 'Bob', code)
    not_host = coordinator.start_game(code, 'bob')
    assert not_host.kind == ErrorKind.NOT_HOST
    assert not_host.message == 'Only the host can start the game'

    result = coordinator.start_game(code, 'alice')
    assert result.success
    assert result.value.game_state['gameState'] == 'playing'
    assert result.value.target_color == coordinator.get_room(code).target_color
    assert coordinator.start_game(code, 'alice').kind == ErrorKind.GAME_IN_PROGRESS


def test_throw_rules(coordinator):
    code = _ready_room(coordinator, 'alice', 'bob')
    assert coordinator.process_dart_throw('NOPE', 'alice', MISS).kind == ErrorKind.ROOM_NOT_FOUND
    assert coordinator.process_dart_throw(code, 'alice', MISS).kind == ErrorKind.GAME_NOT_IN_PROGRESS
    coordinator.start_game(code, 'alice')
    assert coordinator.process_dart_throw(code, 'bob', MISS).kind == ErrorKind.NOT_YOUR_TURN
    assert coordinator.process_dart_throw(code, 'alice', MISS).success
    assert coordinator.process_dart_throw(code, 'alice', MISS).kind == ErrorKind.NOT_YOUR_TURN


def test_turn_order_across_hit_and_miss(coordinator):
    code = _ready_room(coordinator, 'a', 'b', 'c')
    coordinator.start_game(code, 'a')
    hit = coordinator.process_dart_throw(code, 'a', {'hitPosition': {'x': 0, 'y': -2}})
    assert hit.value.color_changed
    assert hit.value.game_state['currentTurn'] == 'b'
    miss = coordinator.process_dart_throw(code, 'b', MISS)
    assert not miss.value.color_changed
    assert miss.value.throw_record['hit'] is False
    assert miss.value.game_state['currentTurn'] == 'c'


def test_winning_throw_reports_winner(coordinator):
    code = _ready_room(coordinator, 'alice', 'bob')
    coordinator.get_room(code).target_color = Color(100, 100, 100)
    coordinator.start_game(code, 'alice')
    result = coordinator.process_dart_throw(code, 'alice', {'hitPosition': {'x': 0, 'y': 0}, 'hitColor': {'r': 68, 'g': 18, 'b': 51}})
    assert result.success
    assert result.value.winner['id'] == 'alice'
    assert result.value.final_color == Color(110, 95, 105)
    assert result.value.game_state['gameState'] == 'finished'
    assert result.value.game_state['winnerId'] == 'alice'
    assert coordinator.process_dart_throw(code, 'bob', MISS).kind == ErrorKind.GAME_NOT_IN_PROGRESS


def test_settings_update_is_host_only_and_validated(coordinator):
    code = _ready_room(coordinator, 'alice', 'bob')
    assert coordinator.update_game_settings('NONE', 'alice', {}).kind == ErrorKind.ROOM_NOT_FOUND
    assert coordinator.update_game_settings(code, 'bob', {'dartSpeed': 10}).kind == ErrorKind.NOT_HOST
    for bad in (
        {'colorTolerance': -1},
        {'colorTolerance': 0},
        {'colorTolerance': 'wide'},
        {'maxThrows': 0},
        {'maxThrows': 2.5},
        {'dartSpeed': 500},
        {'difficulty': 'nightmare'},
        {'gravity': 3},
        'fast',
    ):
        assert coordinator.update_game_settings(code, 'alice', bad).kind == ErrorKind.INVALID_SETTINGS

    result = coordinator.update_game_settings(code, 'alice', {'colorTolerance': 45, 'difficulty': 'easy'})
    assert result.success
    assert result.value.settings == {'colorTolerance': 45, 'maxThrows': 10, 'dartSpeed': 50, 'difficulty': 'easy'}
    assert coordinator.get_room_state(code)['difficultyProfile']['accuracyBonus'] == 0.2


def test_remove_player_transfers_host_then_deletes_room(coordinator):
    code = _ready_room(coordinator, 'alice', 'bob', 'cara')
    removed = coordinator.remove_player('alice')
    assert removed.room_code == code
    assert not removed.room_deleted
    assert removed.room['hostId'] == 'bob'
    assert coordinator.get_room(code).players['bob'].is_host
    assert 'alice' not in coordinator.player_rooms

    coordinator.remove_player('bob')
    removed = coordinator.leave_room('cara')
    assert removed.room_deleted
    assert coordinator.get_room(code) is None
    assert coordinator.player_rooms == {}


def test_remove_unknown_player_is_a_no_op(coordinator):
    removed = coordinator.remove_player('ghost')
    assert removed.room_code is None and removed.room is None


def test_play_again_moves_everyone_to_a_fresh_room(coordinator):
    code = _ready_room(coordinator, 'alice', 'bob')
    coordinator.update_game_settings(code, 'alice', {'maxThrows': 5})
    assert coordinator.play_again(code, 'alice').kind == ErrorKind.GAME_NOT_FINISHED
    coordinator.get_room(code).target_color = Color(100, 100, 100)
    coordinator.start_game(code, 'alice')
    coordinator.process_dart_throw(code, 'alice', {'hitPosition': {'x': 0, 'y': 0}, 'hitColor': {'r': 68, 'g': 18, 'b': 51}})
    assert coordinator.play_again(code, 'bob').kind == ErrorKind.NOT_HOST

    result = coordinator.play_again(code, 'alice')
    assert result.success
    replay = result.value
    assert replay.previous_code == code
    assert replay.room_code != code
    assert coordinator.get_room(code) is None
    fresh = coordinator.get_room(replay.room_code)
    assert list(fresh.players) == ['alice', 'bob']
    assert fresh.host_id == 'alice'
    assert fresh.phase == Phase.WAITING
    assert fresh.game_settings.max_throws == 5
    # Fixture colour factory hands out the same target again
    assert fresh.target_color == Color(200, 40, 40)
    assert coordinator.player_rooms == {'alice': replay.room_code, 'bob': replay.room_code}


def test_play_again_draws_a_new_target():
    colors = iter([Color(200, 40, 40), Color(30, 60, 220)])
    coordinator = GameCoordinator(color_factory=lambda: next(colors), rng=random.Random(3))
    code = _ready_room(coordinator, 'alice', 'bob')
    room = coordinator.get_room(code)
    room.start_game()
    room.phase = Phase.FINISHED

    replay = coordinator.play_again(code, 'alice').value
    assert coordinator.get_room(replay.room_code).target_color == Color(30, 60, 220)
    assert replay.room['targetColor'] != room.target_color.to_dict()


def test_concurrent_joins_never_overfill_a_room(coordinator, monkeypatch):
    code = _ready_room(coordinator, 'alice', 'bob', 'cara')
    room = coordinator.get_room(code)
    add_player = room.add_player

    def slow_add_player(player_id, name):
        time.sleep(0.02)
        return add_player(player_id, name)

    monkeypatch.setattr(room, 'add_player', slow_add_player)

    results = {}

    def join(pid):
        results[pid] = coordinator.join_room(pid, pid.title(), code)

    threads = [threading.Thread(target=join, args=(pid,)) for pid in ('dave', 'erin', 'finn', 'gail')]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    joined = [pid for pid, result in results.items() if result.success]
    assert len(joined) == 1
    assert room.player_count == 4
    assert all(results[pid].kind == ErrorKind.ROOM_FULL for pid in results if pid not in joined)
    assert sorted(p for p, c in coordinator.player_rooms.items() if c == code) == sorted(['alice', 'bob', 'cara'] + joined)


def test_play_again_can_reuse_target():
    coordinator = GameCoordinator(regenerate_target_on_replay=False, rng=random.Random(2))
    code = _ready_room(coordinator, 'alice', 'bob')
    room = coordinator.get_room(code)
    room.start_game()
    room.phase = Phase.FINISHED
    original = room.target_color
    replay = coordinator.play_again(code, 'alice').value
    assert coordinator.get_room(replay.room_code).target_color == original


def test_end_to_end_two_player_round(coordinator):
    created = coordinator.create_room('alice', 'Alice').value
    code = created.room_code
    assert len(code) == 4 and code.isupper()

    joined = coordinator.join_room('bob', 'Bob', code).value
    assert len(joined.room['players']) == 2
    assert joined.room['hostId'] == 'alice'

    started = coordinator.start_game(code, 'alice').value
    assert started.game_state['gameState'] == 'playing'
    assert started.game_state['turnOrder'] == ['alice', 'bob']
    assert started.game_state['currentTurnIndex'] == 0

    position = {'x': 2.0 * math.cos(math.radians(200)), 'y': 2.0 * math.sin(math.radians(200))}
    thrown = coordinator.process_dart_throw(code, 'alice', {'hitPosition': position, 'trajectory': [], 'power': 0.8}).value
    expected = mix_colors(NEUTRAL_GRAY, resolve_hit_color(position), 0.3)
    assert thrown.new_color == expected
    assert thrown.game_state['playerColors']['alice'] == expected.to_dict()
    assert thrown.game_state['currentTurn'] == 'bob'
    assert thrown.winner is None
