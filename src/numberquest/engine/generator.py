"""Problem generation scaled to a difficulty level."""

from __future__ import annotations

import logging
import random
from collections import deque
from typing import Optional

from numberquest.config.settings import GeneratorConfig
from numberquest.engine.difficulty import DifficultyLevel, Range
from numberquest.engine.distractors import generate_distractors
from numberquest.engine.problem import MathProblem, Operation

logger = logging.getLogger(__name__)


class ProblemGenerator:
    """Builds self-contained MathProblem records.

    Holds only a default difficulty and a short memory of recent questions.
    Pass a seeded ``random.Random`` for reproducible output.
    """

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        rng: Optional[random.Random] = None,
        difficulty: int = 1,
    ):
        self.config = config or GeneratorConfig()
        self.rng = rng or random.Random()
        self._difficulty = DifficultyLevel.of(difficulty)
        self._recent: deque[str] = deque(maxlen=self.config.recent_problem_memory)

        weighted = [
            (Operation(name), weight)
            for name, weight in self.config.operation_weights.items()
            if weight > 0
        ]
        self._operations = [op for op, _ in weighted]
        self._weights = [w for _, w in weighted]

    @property
    def difficulty(self) -> int:
        return self._difficulty.level

    def set_difficulty(self, level: int) -> None:
        self._difficulty = DifficultyLevel.of(level)

    def reset(self) -> None:
        self._recent.clear()
        self._difficulty = DifficultyLevel.of(1)

    def generate_problem(self, difficulty: Optional[int] = None) -> MathProblem:
        level = self._difficulty if difficulty is None else DifficultyLevel.of(difficulty)
        operation = self._select_operation()
        first, second = self._generate_operands(operation, level)
        distractors = generate_distractors(
            operation,
            first,
            second,
            count=self.config.distractor_count,
            rng=self.rng,
            max_attempts=self.config.max_attempts,
        )
        problem = MathProblem.create(
            operation=operation,
            first=first,
            second=second,
            distractors=distractors,
            time_limit=level.time_limit(self.config),
            difficulty_level=level.level,
        )
        self._recent.append(problem.key)
        return problem

    def generate_problems(
        self, difficulty: Optional[int] = None, count: int = 1
    ) -> list[MathProblem]:
        return [self.generate_problem(difficulty) for _ in range(max(0, count))]

    @staticmethod
    def is_correct(problem: MathProblem, answer: int) -> bool:
        return problem.is_correct(answer)

    # --- Internals ---

    def _select_operation(self) -> Operation:
        return self.rng.choices(self._operations, weights=self._weights, k=1)[0]

    def _draw(self, bounds: Range) -> int:
        return self.rng.randint(bounds[0], bounds[1])

    def _generate_operands(
        self, operation: Operation, level: DifficultyLevel
    ) -> tuple[int, int]:
        first_range, second_range = level.operand_ranges(operation)
        fallback: Optional[tuple[int, int]] = None

        for _ in range(self.config.max_attempts):
            first, second = self._draw(first_range), self._draw(second_range)
            if operation is Operation.SUBTRACTION and first < second:
                continue
            if fallback is None:
                fallback = (first, second)
            if f"{first}{operation.symbol}{second}" not in self._recent:
                return first, second

        # Every valid pair was a repeat: accept the repeat.
        if fallback is not None:
            return fallback

        logger.debug(
            "operand retries exhausted for %s at level %d; using safe ranges",
            operation.value, level.level,
        )
        first_range, second_range = level.widest_safe_ranges(operation)
        return self._draw(first_range), self._draw(second_range)
