"""Plausible wrong answers for multiple-choice presentation.

Each problem gets at least one distractor modelled on a mistake children
actually make for that operation; the rest are small perturbations of the
correct answer.
"""

from __future__ import annotations

import logging
import random

from numberquest.engine.problem import Operation

logger = logging.getLogger(__name__)

PERTURBATION = 5


def column_swap_difference(a: int, b: int) -> int:
    """Subtract digit by digit, always taking the smaller digit from the larger.

    52 - 17 becomes 45 instead of 35: the classic "swap the operands in the
    ones column instead of borrowing" slip.
    """
    result = 0
    place = 1
    while a or b:
        da, db = a % 10, b % 10
        result += abs(da - db) * place
        a //= 10
        b //= 10
        place *= 10
    return result


def common_mistakes(operation: Operation, a: int, b: int) -> list[int]:
    """Candidate wrong answers for ``a <op> b``, not yet filtered."""
    correct = operation.apply(a, b)
    if operation is Operation.ADDITION:
        return [correct + 10, correct - 10, abs(a - b), correct + 1, correct - 1]
    if operation is Operation.SUBTRACTION:
        return [column_swap_difference(a, b), a + b, correct + 1, correct - 1]
    return [a + b, a * (b + 1), a * (b - 1), correct + a, correct - a]


def generate_distractors(
    operation: Operation,
    a: int,
    b: int,
    count: int,
    rng: random.Random,
    max_attempts: int = 20,
) -> list[int]:
    """Return exactly ``count`` distinct non-negative wrong answers."""
    correct = operation.apply(a, b)
    chosen: list[int] = []

    def accept(candidate: int) -> bool:
        if candidate < 0 or candidate == correct or candidate in chosen:
            return False
        chosen.append(candidate)
        return True

    mistakes = common_mistakes(operation, a, b)
    rng.shuffle(mistakes)
    for candidate in mistakes:
        if accept(candidate):
            break

    attempts = 0
    while len(chosen) < count and attempts < max_attempts:
        attempts += 1
        offset = rng.randint(1, PERTURBATION) * rng.choice((-1, 1))
        accept(correct + offset)

    if len(chosen) < count:
        logger.debug(
            "distractor retries exhausted for %d %s %d; filling by offset",
            a, operation.symbol, b,
        )
        offset = 1
        while len(chosen) < count:
            accept(correct + offset)
            offset += 1

    return chosen[:count]
