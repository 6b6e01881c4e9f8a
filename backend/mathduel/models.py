"""In-memory game state: rooms, players and questions."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import threading
import time


class RoomStatus:
    WAITING = 'waiting'
    COUNTDOWN = 'countdown'
    PLAYING = 'playing'
    FINISHED = 'finished'


# Kinds of timer a room can own
COUNTDOWN_TIMER = 'countdown'
CLOCK_TIMER = 'clock'
ADVANCE_TIMER = 'advance'
CLEANUP_TIMER = 'cleanup'

# The timer that moves each in-progress status along
DRIVING_TIMERS = {
    RoomStatus.COUNTDOWN: COUNTDOWN_TIMER,
    RoomStatus.PLAYING: CLOCK_TIMER,
}


@dataclass
class Player:
    id: str
    name: str
    score: int = 0
    bet_amount: int = 0
    is_host: bool = False

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'betAmount': self.bet_amount,
            'isHost': self.is_host,
        }


@dataclass(frozen=True)
class Question:
    prompt: str
    options: Tuple[int, ...]
    correct_answer: int
    operation: str  # addition, subtraction, multiplication
    difficulty: str  # easy, medium, hard

    def public_dict(self):
        """Payload safe to send before the question is answered."""
        return {
            'question': self.prompt,
            'options': list(self.options),
        }


@dataclass
class Room:
    id: str
    players: List[Player] = field(default_factory=list)
    status: str = RoomStatus.WAITING
    current_question: Optional[Question] = None
    question_number: int = 0
    time_remaining: int = 0
    awaiting_next_question: bool = False
    created_at: float = field(default_factory=time.time)
    countdown: int = 0
    # Pending scheduled work owned by this room, keyed by kind
    timers: Dict[str, object] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def host(self) -> Optional[Player]:
        for p in self.players:
            if p.is_host:
                return p
        return None

    @property
    def total_bet(self) -> int:
        return sum(p.bet_amount for p in self.players)

    def find_player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def cancel_timers(self, *kinds: str) -> None:
        """Cancel the named timers, or all of them when no kind is given."""
        for kind in (kinds or list(self.timers)):
            handle = self.timers.pop(kind, None)
            if handle is not None:
                handle.cancel()

    def is_stalled(self) -> bool:
        """True when a countdown or game has lost the timer that drives it."""
        kind = DRIVING_TIMERS.get(self.status)
        if kind is None:
            return False
        handle = self.timers.get(kind)
        return handle is None or handle.cancelled

    def players_dict(self):
        return [p.to_dict() for p in self.players]

    def stats(self):
        return {
            'id': self.id,
            'playerCount': len(self.players),
            'status': self.status,
            'timeRemaining': self.time_remaining,
            'questionNumber': self.question_number,
            'totalBet': self.total_bet,
            'createdAt': self.created_at,
        }
