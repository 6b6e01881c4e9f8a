"""Player intents understood by the game engine.

Transport code builds one of these from an inbound event and hands it to
``GameEngine.dispatch``; the engine never sees wire payloads.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class CreateRoom:
    player_id: str
    player_name: str
    bet_amount: int = 0


@dataclass(frozen=True)
class JoinRoom:
    room_id: str
    player_id: str
    player_name: str
    bet_amount: int = 0


@dataclass(frozen=True)
class StartGame:
    room_id: str
    player_id: str


@dataclass(frozen=True)
class SubmitAnswer:
    room_id: str
    player_id: str
    answer: Any
    time_taken_ms: Optional[float] = None


@dataclass(frozen=True)
class LeaveRoom:
    room_id: str
    player_id: str


@dataclass(frozen=True)
class Disconnect:
    player_id: str


@dataclass(frozen=True)
class FetchLeaderboard:
    player_id: str
    limit: Optional[int] = None
