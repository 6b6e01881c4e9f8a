"""Checks applied to client payloads before anything reaches the engine."""

import re
from typing import Optional, Tuple

ROOM_ID_PATTERN = re.compile(r'^[A-Z0-9]{6}$')
MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 20


class ValidationError(ValueError):
    pass


def clean_player_name(name) -> str:
    if not isinstance(name, str):
        raise ValidationError('playerName is required')
    name = name.strip()
    if not (MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH):
        raise ValidationError(f'playerName must be {MIN_NAME_LENGTH}-{MAX_NAME_LENGTH} characters')
    if not name.isprintable():
        raise ValidationError('playerName contains unprintable characters')
    return name


def clean_bet_amount(bet, max_bet: int) -> int:
    if bet is None or bet == '':
        return 0
    if isinstance(bet, bool):
        raise ValidationError('betAmount must be an integer')
    if isinstance(bet, float):
        if not bet.is_integer():
            raise ValidationError('betAmount must be an integer')
        bet = int(bet)
    try:
        value = int(bet)
    except (TypeError, ValueError):
        raise ValidationError('betAmount must be an integer')
    if not (0 <= value <= max_bet):
        raise ValidationError(f'betAmount must be between 0 and {max_bet}')
    return value


def clean_room_id(room_id) -> str:
    if not isinstance(room_id, str):
        raise ValidationError('roomId is required')
    room_id = room_id.strip().upper()
    if not ROOM_ID_PATTERN.match(room_id):
        raise ValidationError('roomId must be 6 letters or digits')
    return room_id


def clean_time_taken(value) -> Optional[float]:
    """Milliseconds the client spent on the question; None when unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if value != value or value < 0:  # NaN or negative
        return None
    return value


def player_fields(data: dict, max_bet: int) -> Tuple[str, int]:
    return clean_player_name(data.get('playerName')), clean_bet_amount(data.get('betAmount'), max_bet)
