"""Shared fixtures for NumberQuest tests."""

from __future__ import annotations

import random

import pytest

from numberquest.config.settings import EngineConfig, GeneratorConfig, Settings
from numberquest.engine.adaptive import DifficultyEngine
from numberquest.engine.generator import ProblemGenerator
from numberquest.engine.performance import PerformanceSample


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def generator(rng):
    return ProblemGenerator(config=GeneratorConfig(), rng=rng)


@pytest.fixture
def engine():
    return DifficultyEngine(config=EngineConfig())


@pytest.fixture
def settings():
    return Settings(seed=42)


@pytest.fixture
def make_sample():
    """Factory for PerformanceSample with sensible defaults."""
    counter = iter(range(1_000_000))

    def _make(correct: bool = True, time: float = 3.0, hints: int = 0) -> PerformanceSample:
        return PerformanceSample(
            problem_id=f"p{next(counter)}",
            correct=correct,
            response_time=time,
            hints_used=hints,
        )

    return _make


@pytest.fixture
def record(engine, make_sample):
    """Record a run of samples into the engine fixture."""

    def _record(pattern: str, time: float = 3.0, hints: int = 0) -> None:
        # "1" = correct, "0" = incorrect, oldest first
        for ch in pattern:
            engine.record_performance(make_sample(ch == "1", time, hints))

    return _record
