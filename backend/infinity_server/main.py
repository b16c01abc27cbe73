from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


def _coordinator():
    return current_app.extensions['room_coordinator']


@main.route('/')
def index():
    return jsonify({'message': 'Infinity tic-tac-toe server is running'})


@main.route('/api/rooms', methods=['GET'])
def list_rooms():
    """
    Lists open rooms with seat occupancy. Passcodes are never exposed.
    """
    coordinator = _coordinator()
    return jsonify({
        'rooms': coordinator.rooms_summary(),
        'capacity': coordinator.registry.max_rooms,
    }), 200


@main.route('/api/rooms/<string:room_id>', methods=['GET'])
def get_room(room_id):
    """
    Returns one room's occupancy, board and any completed line.
    """
    detail = _coordinator().room_detail(room_id)
    if detail is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(detail), 200
