from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mathduel.models import Room


class ErrorCode(str, Enum):
    INVALID_INPUT = 'INVALID_INPUT'
    NOT_FOUND = 'NOT_FOUND'
    ROOM_FULL = 'ROOM_FULL'
    NOT_JOINABLE = 'NOT_JOINABLE'
    PRECONDITION_FAILED = 'PRECONDITION_FAILED'


@dataclass
class Outcome:
    """Result of a room operation.

    Nominal failures are reported through ``error`` rather than raised.
    ``ignored`` marks requests dropped on purpose (e.g. an answer that
    arrived between questions).
    """
    room: Optional[Room] = None
    error: Optional[ErrorCode] = None
    message: str = ''
    ignored: bool = False
    payload: Optional[object] = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.ignored

    @classmethod
    def success(cls, room=None, payload=None) -> 'Outcome':
        return cls(room=room, payload=payload)

    @classmethod
    def failure(cls, error: ErrorCode, message: str) -> 'Outcome':
        return cls(error=error, message=message)

    @classmethod
    def skip(cls, message: str = '') -> 'Outcome':
        return cls(ignored=True, message=message)
