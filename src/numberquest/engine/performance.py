"""Performance samples and the statistics derived from them.

Everything here is a pure function of a sample sequence (oldest first).
Empty input yields zeros, never an error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence


@dataclass(frozen=True)
class PerformanceSample:
    problem_id: str
    correct: bool
    response_time: float
    hints_used: int = 0

    def __post_init__(self):
        if not math.isfinite(self.response_time) or self.response_time < 0:
            raise ValueError(f"response_time must be finite and non-negative, got {self.response_time}")
        if self.hints_used < 0:
            raise ValueError(f"hints_used must be non-negative, got {self.hints_used}")


class Trend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


@dataclass
class SessionMetrics:
    average_response_time: float = 0.0
    accuracy: float = 0.0
    current_streak: int = 0
    longest_streak: int = 0
    recent_performance_trend: Trend = Trend.STABLE
    sample_count: int = 0
    hint_rate: float = 0.0
    fatigue_detected: bool = False


@dataclass
class SessionSummary:
    total_problems: int = 0
    correct_answers: int = 0
    average_time: float = 0.0
    help_used: int = 0
    longest_streak: int = 0
    achievements: list[str] = field(default_factory=list)

    @property
    def accuracy(self) -> float:
        if self.total_problems == 0:
            return 0.0
        return self.correct_answers / self.total_problems


def average_response_time(samples: Sequence[PerformanceSample]) -> float:
    if not samples:
        return 0.0
    return sum(s.response_time for s in samples) / len(samples)


def accuracy(samples: Sequence[PerformanceSample]) -> float:
    if not samples:
        return 0.0
    return sum(1 for s in samples if s.correct) / len(samples)


def current_streak(samples: Sequence[PerformanceSample]) -> int:
    streak = 0
    for sample in reversed(samples):
        if not sample.correct:
            break
        streak += 1
    return streak


def longest_streak(samples: Sequence[PerformanceSample]) -> int:
    longest = run = 0
    for sample in samples:
        run = run + 1 if sample.correct else 0
        longest = max(longest, run)
    return longest


def hint_rate(samples: Sequence[PerformanceSample]) -> float:
    """Share of samples where at least one hint was opened."""
    if not samples:
        return 0.0
    return sum(1 for s in samples if s.hints_used > 0) / len(samples)


def detect_trend(
    samples: Sequence[PerformanceSample],
    min_samples: int = 6,
    margin: float = 0.1,
) -> Trend:
    """Compare accuracy of the earliest third against the most recent third."""
    if len(samples) < max(min_samples, 3):
        return Trend.STABLE
    third = len(samples) // 3
    early = accuracy(samples[:third])
    recent = accuracy(samples[-third:])
    diff = recent - early
    if diff > margin:
        return Trend.IMPROVING
    if diff < -margin:
        return Trend.DECLINING
    return Trend.STABLE


def detect_fatigue(
    samples: Sequence[PerformanceSample],
    window: int = 5,
    ratio: float = 1.5,
) -> bool:
    """True when the last ``window`` answers are markedly slower than the session."""
    if len(samples) <= window:
        return False
    overall = average_response_time(samples)
    if overall == 0:
        return False
    return average_response_time(samples[-window:]) > overall * ratio


def achievements(samples: Sequence[PerformanceSample]) -> list[str]:
    earned: list[str] = []
    correct = sum(1 for s in samples if s.correct)
    acc = accuracy(samples)

    if correct >= 10:
        earned.append("Problem Solver: Solved 10+ problems!")
    if samples and acc >= 0.9:
        earned.append("Math Master: 90%+ accuracy!")
    if longest_streak(samples) >= 5:
        earned.append("Hot Streak: 5 correct in a row!")
    if samples and average_response_time(samples) <= 3.0 and acc >= 0.8:
        earned.append("Speed Demon: Fast and accurate!")
    return earned
