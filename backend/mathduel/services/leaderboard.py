import threading
from typing import Dict, Iterable, List

from mathduel.models import Player


class Leaderboard:
    """Best score per player name, kept in memory for the process lifetime."""

    def __init__(self, size: int = 10):
        self.size = size
        self._best: Dict[str, int] = {}
        self._lock = threading.Lock()

    def record(self, players: Iterable[Player]) -> None:
        with self._lock:
            for p in players:
                if p.score > self._best.get(p.name, -1):
                    self._best[p.name] = p.score

    def top(self, limit: int = None) -> List[dict]:
        limit = self.size if limit is None else max(0, limit)
        with self._lock:
            entries = sorted(self._best.items(), key=lambda item: (-item[1], item[0]))
        return [{'name': name, 'score': score} for name, score in entries[:limit]]
