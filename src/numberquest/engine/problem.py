"""Math problem records handed to the game layer."""

from __future__ import annotations

import random
import uuid
from dataclasses import dataclass, field
from enum import Enum


class Operation(str, Enum):
    ADDITION = "addition"
    SUBTRACTION = "subtraction"
    MULTIPLICATION = "multiplication"

    @property
    def symbol(self) -> str:
        return {
            Operation.ADDITION: "+",
            Operation.SUBTRACTION: "-",
            Operation.MULTIPLICATION: "×",
        }[self]

    def apply(self, a: int, b: int) -> int:
        if self is Operation.ADDITION:
            return a + b
        if self is Operation.SUBTRACTION:
            return a - b
        return a * b


@dataclass(frozen=True)
class MathProblem:
    operation: Operation
    first_operand: int
    second_operand: int
    correct_answer: int
    distractor_answers: tuple[int, ...]
    time_limit: float
    difficulty_level: int
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def create(
        cls,
        operation: Operation,
        first: int,
        second: int,
        distractors: tuple[int, ...] | list[int],
        time_limit: float,
        difficulty_level: int,
    ) -> MathProblem:
        return cls(
            operation=operation,
            first_operand=first,
            second_operand=second,
            correct_answer=operation.apply(first, second),
            distractor_answers=tuple(distractors),
            time_limit=time_limit,
            difficulty_level=difficulty_level,
        )

    @property
    def key(self) -> str:
        """Identity of the question itself, ignoring id and distractors."""
        return f"{self.first_operand}{self.operation.symbol}{self.second_operand}"

    @property
    def formatted(self) -> str:
        return f"{self.first_operand} {self.operation.symbol} {self.second_operand} = ?"

    @property
    def points(self) -> int:
        return self.difficulty_level * 10

    def is_correct(self, answer: int) -> bool:
        return answer == self.correct_answer

    def answer_choices(self, rng: random.Random | None = None) -> list[int]:
        """Correct answer and distractors in shuffled order."""
        choices = [self.correct_answer, *self.distractor_answers]
        (rng or random).shuffle(choices)
        return choices

    @property
    def hint(self) -> str:
        a, b = self.first_operand, self.second_operand
        if self.operation is Operation.ADDITION:
            if a <= 5 and b <= 5:
                return f"Try counting up from {a}!"
            return f"Break it down: add the tens of {b} to {a}, then the ones."
        if self.operation is Operation.SUBTRACTION:
            if a <= 10:
                return f"Count backwards from {a}!"
            return f"Think: what do I add to {b} to get {a}?"
        if b <= 5:
            return f"Add {a} to itself {b} times!"
        return "Remember your times tables!"
