from dataclasses import dataclass
from typing import List, Optional, Sequence

from mathduel.models import Player, Question


@dataclass(frozen=True)
class Settlement:
    ranking: List[Player]
    winners: List[Player]
    highest_score: int
    result_type: str  # 'winner' or 'draw'
    total_prize_pool: int
    prize_per_winner: int

    @property
    def winner(self) -> Optional[Player]:
        return self.winners[0] if self.result_type == 'winner' else None

    def to_dict(self):
        return {
            'type': self.result_type,
            'winner': self.winner.to_dict() if self.winner else None,
            'winners': [p.to_dict() for p in self.winners],
            'ranking': [p.to_dict() for p in self.ranking],
            'highestScore': self.highest_score,
            'totalBet': self.total_prize_pool,
            'prizePerWinner': self.prize_per_winner,
        }


def settle(players: Sequence[Player]) -> Settlement:
    """Rank players and split the prize pool between the top scorers.

    Ties keep join order. The pool is divided with integer division and the
    remainder is not paid out.
    """
    if not players:
        raise ValueError('cannot settle a game without players')
    # sorted() is stable, so equal scores keep their original order
    ranking = sorted(players, key=lambda p: p.score, reverse=True)
    highest = ranking[0].score
    winners = [p for p in ranking if p.score == highest]
    pool = sum(p.bet_amount for p in players)
    return Settlement(
        ranking=ranking,
        winners=winners,
        highest_score=highest,
        result_type='winner' if len(winners) == 1 else 'draw',
        total_prize_pool=pool,
        prize_per_winner=pool // len(winners) if pool > 0 else 0,
    )


def coerce_answer(answer) -> Optional[int]:
    if isinstance(answer, bool):
        return None
    try:
        return int(answer)
    except (TypeError, ValueError, OverflowError):
        # inf raises OverflowError, nan raises ValueError
        return None


def grade_answer(question: Question, answer) -> bool:
    value = coerce_answer(answer)
    return value is not None and value == question.correct_answer


def points_for_answer(is_correct: bool, time_taken_ms, fast_threshold_ms: int) -> int:
    """+1 for a correct answer, +1 more when it came in under the threshold."""
    if not is_correct:
        return 0
    if time_taken_ms is not None and 0 <= time_taken_ms < fast_threshold_ms:
        return 2
    return 1
