from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def index():
    engine = current_app.extensions['mathduel']
    return jsonify({
        'message': 'Math Duel server running',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'activeRooms': engine.registry.count(),
    })
