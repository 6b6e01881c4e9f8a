import random
import re

import pytest

from mathduel.services.games.questions import (
    difficulty_for,
    generate_question,
    make_distractors,
)

PROMPT = re.compile(r'^(\d+) ([+\-×]) (\d+)$')


def test_difficulty_tiers_follow_question_index():
    assert [difficulty_for(i) for i in (1, 5)] == ['easy', 'easy']
    assert [difficulty_for(i) for i in (6, 10)] == ['medium', 'medium']
    assert [difficulty_for(i) for i in (11, 40)] == ['hard', 'hard']


@pytest.mark.parametrize('index', [1, 7, 15])
def test_option_sets_are_four_distinct_positive_values(index):
    rng = random.Random(index)
    for _ in range(1000):
        q = generate_question(index, rng=rng)
        assert len(q.options) == 4
        assert len(set(q.options)) == 4
        assert all(isinstance(o, int) and o > 0 for o in q.options)
        assert q.correct_answer in q.options
        assert q.difficulty == difficulty_for(index)


@pytest.mark.parametrize('index', [1, 7, 15])
def test_prompt_matches_correct_answer(index):
    rng = random.Random(1000 + index)
    seen = set()
    for _ in range(1000):
        q = generate_question(index, rng=rng)
        a, op, b = PROMPT.match(q.prompt).groups()
        a, b = int(a), int(b)
        seen.add(q.operation)
        if op == '+':
            assert q.operation == 'addition' and q.correct_answer == a + b
        elif op == '-':
            assert q.operation == 'subtraction'
            assert b < a
            assert q.correct_answer == a - b > 0
        else:
            assert q.operation == 'multiplication' and q.correct_answer == a * b
    assert seen == {'addition', 'subtraction', 'multiplication'}


def test_harder_tiers_reach_larger_operands():
    rng = random.Random(7)
    easy_max = max(generate_question(1, rng=rng).correct_answer for _ in range(500))
    hard_max = max(generate_question(20, rng=rng).correct_answer for _ in range(500))
    assert hard_max > easy_max


def test_correct_answer_position_varies():
    rng = random.Random(3)
    positions = set()
    for _ in range(200):
        q = generate_question(1, rng=rng)
        positions.add(q.options.index(q.correct_answer))
    assert positions == {0, 1, 2, 3}


def test_public_payload_hides_the_answer():
    q = generate_question(1, rng=random.Random(5))
    payload = q.public_dict()
    assert set(payload) == {'question', 'options'}
    assert payload['options'] == list(q.options)


class _LowestRng:
    """Always picks the lowest value a randint call allows."""

    def randint(self, a, b):
        return a


def test_distractors_fall_back_when_random_backfill_keeps_failing():
    # correct=1: 1+1=2, 1-1=0 (dropped), 1+10=11, backfill 1-20 always negative
    distractors = make_distractors(1, 'easy', _LowestRng())
    assert distractors == [2, 11, 3]


def test_distractors_are_unique_and_exclude_correct():
    rng = random.Random(11)
    for correct in range(1, 60):
        for tier in ('easy', 'medium', 'hard'):
            values = make_distractors(correct, tier, rng)
            assert len(values) == 3
            assert len(set(values)) == 3
            assert correct not in values
            assert all(v > 0 for v in values)
