from flask import current_app, request
from flask_socketio import emit

from mathduel import socketio
from mathduel.services.games.commands import (
    CreateRoom,
    Disconnect,
    FetchLeaderboard,
    JoinRoom,
    LeaveRoom,
    StartGame,
    SubmitAnswer,
)
from mathduel.services.games.outcomes import ErrorCode
from mathduel.validation import (
    ValidationError,
    clean_room_id,
    clean_time_taken,
    player_fields,
)

NAMESPACE = '/ws'


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _engine():
    return current_app.extensions['mathduel']


def _reject(code: str, message: str, reason: ErrorCode = None) -> None:
    """Report a failed request to its sender only."""
    emit('error', {
        'code': code,
        'reason': (reason or ErrorCode.INVALID_INPUT).value,
        'message': message,
    })


def handle_connect():
    emit('connected', {'message': 'Connected to /ws', 'playerId': _get_sid()})


def handle_disconnect(*args):
    outcome = _engine().dispatch(Disconnect(player_id=_get_sid()))
    if outcome.ok:
        current_app.logger.info(f"[disconnect] player={_get_sid()} room={outcome.room.id if outcome.room else None}")


def handle_create_room(data):
    try:
        name, bet = player_fields(data or {}, current_app.config.get('MAX_BET', 10000))
    except ValidationError as exc:
        _reject('INVALID_INPUT', str(exc))
        return
    outcome = _engine().dispatch(CreateRoom(player_id=_get_sid(), player_name=name, bet_amount=bet))
    if not outcome.ok:
        _reject('INVALID_INPUT', outcome.message or 'Failed to create room', outcome.error)


def handle_join_room(data):
    data = data or {}
    try:
        room_id = clean_room_id(data.get('roomId'))
        name, bet = player_fields(data, current_app.config.get('MAX_BET', 10000))
    except ValidationError as exc:
        _reject('INVALID_INPUT', str(exc))
        return
    outcome = _engine().dispatch(JoinRoom(room_id=room_id, player_id=_get_sid(), player_name=name, bet_amount=bet))
    if not outcome.ok:
        _reject('JOIN_FAILED', outcome.message, outcome.error)


def handle_start_game(data):
    try:
        room_id = clean_room_id((data or {}).get('roomId'))
    except ValidationError as exc:
        _reject('INVALID_INPUT', str(exc))
        return
    outcome = _engine().dispatch(StartGame(room_id=room_id, player_id=_get_sid()))
    if not outcome.ok:
        _reject('START_FAILED', outcome.message, outcome.error)


def handle_submit_answer(data):
    data = data or {}
    try:
        room_id = clean_room_id(data.get('roomId'))
    except ValidationError as exc:
        _reject('INVALID_INPUT', str(exc))
        return
    time_taken = data.get('timeTakenMs', data.get('timeTaken'))
    # Out-of-phase answers are dropped without telling the sender
    _engine().dispatch(SubmitAnswer(
        room_id=room_id,
        player_id=_get_sid(),
        answer=data.get('answer'),
        time_taken_ms=clean_time_taken(time_taken),
    ))


def handle_leave_room(data):
    try:
        room_id = clean_room_id((data or {}).get('roomId'))
    except ValidationError as exc:
        _reject('INVALID_INPUT', str(exc))
        return
    outcome = _engine().dispatch(LeaveRoom(room_id=room_id, player_id=_get_sid()))
    emit('left', {'roomId': room_id, 'left': outcome.ok})


def handle_get_leaderboard(data=None):
    limit = (data or {}).get('limit')
    try:
        limit = int(limit) if limit is not None else None
    except (TypeError, ValueError):
        limit = None
    _engine().dispatch(FetchLeaderboard(player_id=_get_sid(), limit=limit))


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('create-room', handle_create_room, namespace=NAMESPACE)
    socketio.on_event('join-room', handle_join_room, namespace=NAMESPACE)
    socketio.on_event('start-game', handle_start_game, namespace=NAMESPACE)
    socketio.on_event('submit-answer', handle_submit_answer, namespace=NAMESPACE)
    socketio.on_event('leave-room', handle_leave_room, namespace=NAMESPACE)
    socketio.on_event('get-leaderboard', handle_get_leaderboard, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
