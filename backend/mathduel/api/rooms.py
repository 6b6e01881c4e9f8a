from flask import Blueprint, current_app, jsonify, request

from mathduel.validation import ValidationError, clean_room_id

rooms = Blueprint('rooms', __name__)


def _engine():
    return current_app.extensions['mathduel']


@rooms.route('/rooms/<string:room_id>', methods=['GET'])
def room_stats(room_id):
    """
    Returns a summary of one live room.
    """
    try:
        room_id = clean_room_id(room_id)
    except ValidationError as exc:
        return jsonify({'error': str(exc)}), 400
    stats = _engine().registry.stats(room_id)
    if stats is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(stats)


@rooms.route('/leaderboard', methods=['GET'])
def leaderboard():
    limit = request.args.get('limit', type=int)
    return jsonify(_engine().leaderboard.top(limit))
