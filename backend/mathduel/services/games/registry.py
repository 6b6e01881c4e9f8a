"""In-memory room registry.

The registry is the only owner of ``Room`` objects. Other components look a
room up by id for each operation and never hold on to it across a timer.
"""

from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Tuple
import random
import string
import threading
import time

from mathduel.models import Player, Room, RoomStatus
from .outcomes import ErrorCode, Outcome

ROOM_ID_LENGTH = 6
ROOM_ID_ALPHABET = string.ascii_uppercase + string.digits
MAX_ID_ATTEMPTS = 100


def generate_room_id(length: int = ROOM_ID_LENGTH) -> str:
    return ''.join(random.choices(ROOM_ID_ALPHABET, k=length))


class RoomRegistry:

    def __init__(self, max_players: int = 4,
                 id_factory: Callable[[], str] = generate_room_id,
                 clock: Callable[[], float] = time.time) -> None:
        self.max_players = max_players
        self._id_factory = id_factory
        self._clock = clock
        self._rooms: Dict[str, Room] = {}
        self._player_rooms: Dict[str, str] = {}
        # Guards the two maps above. Always taken after a room lock, never before.
        self._guard = threading.Lock()

    # ---- lookup ----

    def get(self, room_id: str) -> Optional[Room]:
        with self._guard:
            return self._rooms.get(room_id)

    def exists(self, room_id: str) -> bool:
        return self.get(room_id) is not None

    def count(self) -> int:
        with self._guard:
            return len(self._rooms)

    def rooms(self) -> List[Room]:
        with self._guard:
            return list(self._rooms.values())

    def room_of(self, player_id: str) -> Optional[str]:
        with self._guard:
            return self._player_rooms.get(player_id)

    def stats(self, room_id: str) -> Optional[dict]:
        room = self.get(room_id)
        return room.stats() if room else None

    @contextmanager
    def lock(self, room_id: str) -> Iterator[Optional[Room]]:
        """Hold the room's lock and yield it, or yield None if it is gone.

        The room is re-resolved after the lock is taken so a caller never
        sees a room that was deleted while it was waiting.
        """
        room = self.get(room_id)
        if room is None:
            yield None
            return
        with room.lock:
            yield room if self.get(room_id) is room else None

    # ---- mutation ----

    def create(self, host_id: str, host_name: str, bet_amount: int = 0) -> Room:
        host = Player(id=host_id, name=host_name, bet_amount=bet_amount, is_host=True)
        with self._guard:
            room_id = self._allocate_id()
            room = Room(id=room_id, players=[host], created_at=self._clock())
            self._rooms[room_id] = room
            self._player_rooms[host_id] = room_id
        return room

    def _allocate_id(self) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            room_id = self._id_factory()
            if room_id not in self._rooms:
                return room_id
        raise RuntimeError(f"could not allocate a free room id after {MAX_ID_ATTEMPTS} attempts")

    def join(self, room_id: str, player_id: str, player_name: str, bet_amount: int = 0) -> Outcome:
        with self.lock(room_id) as room:
            if room is None:
                return Outcome.failure(ErrorCode.NOT_FOUND, 'Room not found')
            if room.find_player(player_id):
                return Outcome.success(room)
            if len(room.players) >= self.max_players:
                return Outcome.failure(ErrorCode.ROOM_FULL, 'Room is full')
            if room.status != RoomStatus.WAITING:
                return Outcome.failure(ErrorCode.NOT_JOINABLE, 'Game already started')
            room.players.append(Player(id=player_id, name=player_name, bet_amount=bet_amount))
            with self._guard:
                self._player_rooms[player_id] = room_id
            return Outcome.success(room)

    def remove(self, room_id: str) -> bool:
        """Delete a room, cancelling every timer it owns first."""
        room = self.get(room_id)
        if room is None:
            return False
        with room.lock:
            room.cancel_timers()
            with self._guard:
                if self._rooms.get(room_id) is not room:
                    return False
                del self._rooms[room_id]
                for p in room.players:
                    if self._player_rooms.get(p.id) == room_id:
                        del self._player_rooms[p.id]
        return True

    def remove_player(self, room_id: str, player_id: str) -> Tuple[Optional[Player], Optional[Room]]:
        """Take a player out of a room.

        Returns ``(removed_player, room)``; ``room`` is None when the room no
        longer exists afterwards. The earliest-joined remaining player
        becomes host if the host left.
        """
        with self.lock(room_id) as room:
            if room is None:
                return None, None
            player = room.find_player(player_id)
            if player is None:
                return None, room
            room.players.remove(player)
            with self._guard:
                if self._player_rooms.get(player_id) == room_id:
                    del self._player_rooms[player_id]
            if not room.players:
                self.remove(room_id)
                return player, None
            if player.is_host:
                player.is_host = False
                room.players[0].is_host = True
            return player, room

    def reclaim_stale(self, max_age_seconds: float) -> List[str]:
        """Delete rooms that will never be cleaned up on their own.

        That is finished rooms older than ``max_age_seconds`` whose deferred
        deletion never ran, and countdowns or games of any age whose driving
        timer has stopped. Waiting rooms are left alone.
        """
        now = self._clock()
        removed = []
        for room in self.rooms():
            with room.lock:
                expired = room.status == RoomStatus.FINISHED and now - room.created_at > max_age_seconds
                if not (expired or room.is_stalled()):
                    continue
                if self.remove(room.id):
                    removed.append(room.id)
        return removed
