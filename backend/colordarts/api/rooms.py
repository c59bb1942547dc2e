from flask import Blueprint, current_app, jsonify

from colordarts import get_coordinator

rooms = Blueprint('rooms', __name__)


@rooms.route('', methods=['GET'])
def list_rooms():
    return jsonify(get_coordinator(current_app).list_rooms())


@rooms.route('/available', methods=['GET'])
def available_room():
    """Code of the first room still accepting players, or null."""
    return jsonify({'roomCode': get_coordinator(current_app).find_available_room()})


@rooms.route('/<string:room_code>/state', methods=['GET'])
def get_room_state(room_code):
    state = get_coordinator(current_app).get_room_state(room_code)
    if state is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(state)
