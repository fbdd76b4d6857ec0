"""Difficulty levels and the operand ranges they map to.

Levels run 1-10. Out-of-range input is clamped rather than rejected; the
orchestrator owns the "current" level and the engine only recommends moves.
"""

from __future__ import annotations

from dataclasses import dataclass

from numberquest.config.settings import GeneratorConfig
from numberquest.engine.problem import Operation

MIN_LEVEL = 1
MAX_LEVEL = 10

# Indexed by level - 1. Every column is non-decreasing.
FIRST_OPERAND_HIGH = (5, 10, 15, 20, 25, 50, 75, 100, 150, 200)
FIRST_OPERAND_LOW = (1, 1, 2, 3, 5, 10, 15, 20, 30, 50)
SECOND_OPERAND_HIGH = (3, 5, 8, 10, 12, 15, 20, 25, 30, 50)
SECOND_OPERAND_LOW = (1, 1, 1, 2, 2, 3, 4, 5, 6, 8)

MULTIPLICATION_FIRST_CAP = 12
MULTIPLICATION_SECOND_CAP = 10

Range = tuple[int, int]


def clamp_level(level: int) -> int:
    return max(MIN_LEVEL, min(MAX_LEVEL, int(level)))


@dataclass(frozen=True)
class DifficultyLevel:
    level: int

    @classmethod
    def of(cls, level: int | DifficultyLevel) -> DifficultyLevel:
        if isinstance(level, DifficultyLevel):
            return level
        return cls(clamp_level(level))

    def __post_init__(self):
        if not MIN_LEVEL <= self.level <= MAX_LEVEL:
            object.__setattr__(self, "level", clamp_level(self.level))

    @property
    def first_operand_range(self) -> Range:
        i = self.level - 1
        return FIRST_OPERAND_LOW[i], FIRST_OPERAND_HIGH[i]

    @property
    def second_operand_range(self) -> Range:
        i = self.level - 1
        return SECOND_OPERAND_LOW[i], SECOND_OPERAND_HIGH[i]

    def operand_ranges(self, operation: Operation) -> tuple[Range, Range]:
        """Inclusive bounds for (first, second) operand under ``operation``."""
        if operation is Operation.MULTIPLICATION:
            low = self.second_operand_range[0]
            first_high = min(self.first_operand_range[1], MULTIPLICATION_FIRST_CAP)
            second_high = min(self.second_operand_range[1], MULTIPLICATION_SECOND_CAP)
            return (
                (min(low, first_high), first_high),
                (min(low, second_high), second_high),
            )
        return self.first_operand_range, self.second_operand_range

    def widest_safe_ranges(self, operation: Operation) -> tuple[Range, Range]:
        """Ranges whose every draw is valid, used once retries run out.

        For subtraction the subtrahend range sits entirely at or below the
        minuend range, so the result can never go negative.
        """
        first, second = self.operand_ranges(operation)
        if operation is Operation.SUBTRACTION:
            ceiling = max(first[0], second[0])
            first = (ceiling, max(first[1], ceiling))
            second = (second[0], min(second[1], ceiling))
        return first, second

    def time_limit(self, config: GeneratorConfig | None = None) -> float:
        config = config or GeneratorConfig()
        limit = config.base_time_limit - config.time_limit_step * (self.level - 1)
        return max(config.min_time_limit, limit)

    @property
    def points(self) -> int:
        return self.level * 10
