from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def _allowed_origins(config):
    origins = config.get('CORS_ORIGINS') or ''
    if isinstance(origins, str):
        origins = [o.strip() for o in origins.split(',') if o.strip()]
    return list(origins)


def create_app(config_class=Config, scheduler=None, transport=None):
    """Build the Flask app and wire the game engine into it.

    ``scheduler`` and ``transport`` default to Socket.IO background tasks and
    Socket.IO emits; tests pass in deterministic replacements.
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = _allowed_origins(flask_app.config)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from mathduel.services.games.engine import GameEngine
    from mathduel.services.games.registry import RoomRegistry
    from mathduel.services.games.scheduler import BackgroundScheduler
    from mathduel.services.games.settings import GameSettings
    from mathduel.services.leaderboard import Leaderboard
    from mathduel.transport import SocketIOTransport

    settings = GameSettings.from_config(flask_app.config)
    engine = GameEngine(
        registry=RoomRegistry(max_players=settings.max_players),
        scheduler=scheduler or BackgroundScheduler(socketio, flask_app),
        transport=transport or SocketIOTransport(socketio),
        settings=settings,
        leaderboard=Leaderboard(size=int(flask_app.config.get('LEADERBOARD_SIZE', 10))),
        logger=flask_app.logger,
    )
    flask_app.extensions['mathduel'] = engine

    from mathduel.routes import main
    flask_app.register_blueprint(main)

    from mathduel.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api')

    from mathduel.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    if not flask_app.config.get('TESTING'):
        engine.start_housekeeping()

    return flask_app
