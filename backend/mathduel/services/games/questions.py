import random
from typing import List, Optional

from mathduel.models import Question

OPERATIONS = ('addition', 'subtraction', 'multiplication')
OPTION_COUNT = 4
BACKFILL_ATTEMPTS = 10

# Inclusive operand ranges per difficulty tier
_ADDITION = {'easy': (5, 50), 'medium': (20, 50), 'hard': (20, 99)}
_MINUEND = {'easy': (10, 60), 'medium': (30, 60), 'hard': (30, 99)}
_SUBTRAHEND_MIN = {'easy': 5, 'medium': 10, 'hard': 10}
_MULTIPLICATION = {'easy': (2, 12), 'medium': (5, 12), 'hard': (5, 20)}


def difficulty_for(question_index: int) -> str:
    if question_index <= 5:
        return 'easy'
    if question_index <= 10:
        return 'medium'
    return 'hard'


def _operands(operation: str, difficulty: str, rng: random.Random):
    if operation == 'addition':
        lo, hi = _ADDITION[difficulty]
        a, b = rng.randint(lo, hi), rng.randint(lo, hi)
        return a, b, a + b, f"{a} + {b}"
    if operation == 'subtraction':
        lo, hi = _MINUEND[difficulty]
        a = rng.randint(lo, hi)
        b = rng.randint(min(_SUBTRAHEND_MIN[difficulty], a - 1), a - 1)
        return a, b, a - b, f"{a} - {b}"
    lo, hi = _MULTIPLICATION[difficulty]
    a, b = rng.randint(lo, hi), rng.randint(lo, hi)
    return a, b, a * b, f"{a} × {b}"


def make_distractors(correct: int, difficulty: str, rng: random.Random) -> List[int]:
    """Three unique positive wrong answers near ``correct``.

    Offsets scale with difficulty: two small nudges either side plus one far
    outlier. Rejected candidates are backfilled with random offsets for a
    bounded number of attempts, then with ``correct + 1, correct + 2, ...``.
    """
    small = 5 if difficulty == 'easy' else 15
    far = 20 if difficulty == 'easy' else 30
    candidates = [
        correct + rng.randint(1, small),
        correct - rng.randint(1, small),
        correct + rng.randint(10, far),
    ]
    distractors: List[int] = []
    for value in candidates:
        if value > 0 and value != correct and value not in distractors:
            distractors.append(value)

    attempts = 0
    while len(distractors) < OPTION_COUNT - 1 and attempts < BACKFILL_ATTEMPTS:
        attempts += 1
        value = correct + rng.randint(-20, 20)
        if value > 0 and value != correct and value not in distractors:
            distractors.append(value)

    step = 1
    while len(distractors) < OPTION_COUNT - 1:
        value = correct + step
        if value not in distractors:
            distractors.append(value)
        step += 1
    return distractors


def generate_question(question_index: int, rng: Optional[random.Random] = None) -> Question:
    """Build a random arithmetic question for the given 1-based index.

    Output is intentionally random; pass ``rng`` to make it reproducible.
    """
    rng = rng or random
    difficulty = difficulty_for(question_index)
    operation = rng.choice(OPERATIONS)
    _, _, correct, prompt = _operands(operation, difficulty, rng)

    options = [correct] + make_distractors(correct, difficulty, rng)
    rng.shuffle(options)
    return Question(
        prompt=prompt,
        options=tuple(options),
        correct_answer=correct,
        operation=operation,
        difficulty=difficulty,
    )
