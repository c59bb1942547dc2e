import functools

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from colordarts import get_coordinator, socketio
from colordarts.services.games.results import ErrorKind
from colordarts.services.games.validation import normalize_room_code


def _coordinator():
    return get_coordinator(current_app)


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _channel(room_code: str) -> str:
    return f"room:{room_code}"


def _payload(data) -> dict:
    return data if isinstance(data, dict) else {}


def _server_error_to(event: str):
    """Reply to the requester with a generic failure if the handler blows up."""
    def decorator(handler):
        @functools.wraps(handler)
        def wrapper(*args):
            try:
                return handler(*args)
            except Exception:
                current_app.logger.exception(f"[handler-error] handler={handler.__name__} sid={_get_sid()}")
                emit(event, {'success': False, 'message': ErrorKind.INTERNAL_ERROR.default_message})
        return wrapper
    return decorator


def handle_connect(auth=None):
    emit('connected', {'playerId': _get_sid()})


def handle_disconnect(reason=None):
    sid = _get_sid()
    try:
        removed = _coordinator().remove_player(sid)
        if removed.room_code and not removed.room_deleted:
            emit('playerLeft', {'playerId': sid, 'room': removed.room}, to=_channel(removed.room_code), include_self=False)
    except Exception:
        current_app.logger.exception(f"[handler-error] handler=handle_disconnect sid={sid}")


@_server_error_to('roomCreated')
def handle_create_room(data=None):
    data = _payload(data)
    result = _coordinator().create_room(_get_sid(), data.get('playerName'))
    if not result.success:
        emit('roomCreated', result.to_dict())
        return
    joined = result.value
    join_room(_channel(joined.room_code))
    emit('roomCreated', {
        'success': True,
        'roomCode': joined.room_code,
        'player': joined.player,
        'room': joined.room,
    })


@_server_error_to('joinedRoom')
def handle_join_room(data=None):
    data = _payload(data)
    result = _coordinator().join_room(_get_sid(), data.get('playerName'), data.get('roomCode'))
    if not result.success:
        emit('joinedRoom', result.to_dict())
        return
    joined = result.value
    channel = _channel(joined.room_code)
    join_room(channel)
    emit('joinedRoom', {
        'success': True,
        'roomCode': joined.room_code,
        'player': joined.player,
        'room': joined.room,
    })
    emit('playerJoined', {'player': joined.player, 'room': joined.room}, to=channel, include_self=False)


@_server_error_to('gameStartError')
def handle_start_game(data=None):
    data = _payload(data)
    result = _coordinator().start_game(data.get('roomCode'), _get_sid())
    if not result.success:
        emit('gameStartError', {'message': result.message})
        return
    started = result.value
    emit('gameStarted', {
        'gameState': started.game_state,
        'targetColor': started.target_color.to_dict(),
    }, to=_channel(started.game_state['roomCode']))


@_server_error_to('throwError')
def handle_dart_throw(data=None):
    data = _payload(data)
    sid = _get_sid()
    result = _coordinator().process_dart_throw(data.get('roomCode'), sid, data.get('throwData'))
    if not result.success:
        emit('throwError', {'message': result.message})
        return
    thrown = result.value
    channel = _channel(thrown.game_state['roomCode'])
    emit('dartThrown', {
        'playerId': sid,
        'throwData': thrown.throw_record,
        'newColor': thrown.new_color.to_dict(),
        'colorChanged': thrown.color_changed,
        'gameState': thrown.game_state,
    }, to=channel)
    if thrown.winner:
        emit('gameWon', {'winner': thrown.winner, 'finalColor': thrown.final_color.to_dict()}, to=channel)


@_server_error_to('settingsError')
def handle_update_game_settings(data=None):
    data = _payload(data)
    room_code = data.get('roomCode')
    result = _coordinator().update_game_settings(room_code, _get_sid(), data.get('settings'))
    if not result.success:
        emit('settingsError', {'message': result.message})
        return
    room_code = normalize_room_code(room_code)
    emit('gameSettingsUpdated', {'settings': result.value.settings}, to=_channel(room_code), include_self=False)


@_server_error_to('leftRoom')
def handle_leave_room(data=None):
    sid = _get_sid()
    removed = _coordinator().leave_room(sid)
    if not removed.room_code:
        emit('leftRoom', {'success': False, 'message': 'You are not in a room'})
        return
    channel = _channel(removed.room_code)
    leave_room(channel)
    emit('leftRoom', {'success': True, 'roomCode': removed.room_code})
    if not removed.room_deleted:
        emit('playerLeft', {'playerId': sid, 'room': removed.room}, to=channel)


@_server_error_to('replayError')
def handle_play_again(data=None):
    data = _payload(data)
    result = _coordinator().play_again(data.get('roomCode'), _get_sid())
    if not result.success:
        emit('replayError', {'message': result.message})
        return
    replay = result.value
    old_channel = _channel(replay.previous_code)
    new_channel = _channel(replay.room_code)
    for player in replay.room['players']:
        join_room(new_channel, sid=player['id'], namespace=request.namespace)
        leave_room(old_channel, sid=player['id'], namespace=request.namespace)
    emit('replayStarted', {
        'from': replay.previous_code,
        'to': replay.room_code,
        'room': replay.room,
    }, to=new_channel)


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'createRoom': handle_create_room,
        'joinRoom': handle_join_room,
        'startGame': handle_start_game,
        'dartThrow': handle_dart_throw,
        'updateGameSettings': handle_update_game_settings,
        'leaveRoom': handle_leave_room,
        'playAgain': handle_play_again,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
