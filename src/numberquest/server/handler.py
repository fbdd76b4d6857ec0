"""Server handler: dispatches JSON-lines requests to the generator and engine."""

from __future__ import annotations

import logging
import math
import random
from collections import OrderedDict
from typing import Optional

from numberquest.config.settings import Settings
from numberquest.engine.adaptive import DifficultyEngine, DifficultyRecommendation
from numberquest.engine.generator import ProblemGenerator
from numberquest.engine.performance import PerformanceSample, SessionMetrics, SessionSummary
from numberquest.engine.problem import MathProblem

from .protocol import Request

logger = logging.getLogger(__name__)

# Issued problems kept for answer checking by id.
MAX_ISSUED_PROBLEMS = 500

_REQUIRED = object()


def _lookup(params: dict, key: str, default):
    if key not in params or params[key] is None:
        if default is _REQUIRED:
            raise ValueError(f"Missing parameter: {key}")
        return default, True
    return params[key], False


def int_param(params: dict, key: str, default=_REQUIRED):
    """Integer parameter; integral floats like 3.0 are accepted, bools are not."""
    value, missing = _lookup(params, key, default)
    if missing:
        return value
    if isinstance(value, bool):
        raise ValueError(f"'{key}' must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    raise ValueError(f"'{key}' must be an integer, got {value!r}")


def number_param(params: dict, key: str, default=_REQUIRED) -> float:
    value, missing = _lookup(params, key, default)
    if missing:
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValueError(f"'{key}' must be a finite number, got {value!r}")
    return float(value)


def bool_param(params: dict, key: str, default=_REQUIRED) -> bool:
    value, missing = _lookup(params, key, default)
    if missing:
        return value
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false, got {value!r}")
    return value


def problem_to_dict(problem: MathProblem) -> dict:
    return {
        "id": problem.id,
        "operation": problem.operation.value,
        "symbol": problem.operation.symbol,
        "firstOperand": problem.first_operand,
        "secondOperand": problem.second_operand,
        "correctAnswer": problem.correct_answer,
        "distractorAnswers": list(problem.distractor_answers),
        "timeLimit": problem.time_limit,
        "difficultyLevel": problem.difficulty_level,
        "formatted": problem.formatted,
        "hint": problem.hint,
        "points": problem.points,
    }


def metrics_to_dict(metrics: SessionMetrics) -> dict:
    return {
        "averageResponseTime": metrics.average_response_time,
        "accuracyPercentage": metrics.accuracy,
        "currentStreak": metrics.current_streak,
        "longestStreak": metrics.longest_streak,
        "recentPerformanceTrend": metrics.recent_performance_trend.value,
        "sampleCount": metrics.sample_count,
        "hintRate": metrics.hint_rate,
        "fatigueDetected": metrics.fatigue_detected,
    }


def recommendation_to_dict(rec: DifficultyRecommendation, current: int, adaptive_step: int) -> dict:
    return {
        "recommendedChange": {
            "kind": rec.change.kind.value,
            "amount": rec.change.amount,
        },
        "confidence": rec.confidence,
        "helpSuggestions": list(rec.help_suggestions),
        "reason": rec.reason,
        "nextLevel": rec.next_level(current, adaptive_step),
    }


def summary_to_dict(summary: SessionSummary) -> dict:
    return {
        "totalProblems": summary.total_problems,
        "correctAnswers": summary.correct_answers,
        "averageTime": summary.average_time,
        "helpUsed": summary.help_used,
        "longestStreak": summary.longest_streak,
        "achievements": list(summary.achievements),
    }


class ServerHandler:
    """Owns one generator and one engine for the connected game session."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings.load()
        rng = random.Random(self.settings.seed)
        self.generator = ProblemGenerator(
            config=self.settings.generator,
            rng=rng,
            difficulty=self.settings.initial_difficulty,
        )
        self.engine = DifficultyEngine(config=self.settings.engine)
        self._issued: OrderedDict[str, MathProblem] = OrderedDict()

    async def dispatch(self, msg: dict) -> dict:
        """Route a request message to the appropriate handler method."""
        request = Request.from_dict(msg)

        handler_map = {
            "generateProblem": self._generate_problem,
            "generateProblems": self._generate_problems,
            "setDifficulty": self._set_difficulty,
            "checkAnswer": self._check_answer,
            "recordPerformance": self._record_performance,
            "analyzePerformance": self._analyze_performance,
            "recommendDifficulty": self._recommend_difficulty,
            "sessionSummary": self._session_summary,
            "startNewSession": self._start_new_session,
        }

        handler = handler_map.get(request.method)
        if handler is None:
            raise ValueError(f"Unknown method: {request.method}")

        return await handler(request.params)

    def _remember(self, problem: MathProblem) -> None:
        self._issued[problem.id] = problem
        while len(self._issued) > MAX_ISSUED_PROBLEMS:
            self._issued.popitem(last=False)

    async def _generate_problem(self, params: dict) -> dict:
        problem = self.generator.generate_problem(int_param(params, "difficulty", None))
        self._remember(problem)
        return {"problem": problem_to_dict(problem)}

    async def _generate_problems(self, params: dict) -> dict:
        count = int_param(params, "count", 1)
        problems = self.generator.generate_problems(int_param(params, "difficulty", None), count)
        for problem in problems:
            self._remember(problem)
        return {"problems": [problem_to_dict(p) for p in problems]}

    async def _set_difficulty(self, params: dict) -> dict:
        self.generator.set_difficulty(int_param(params, "level"))
        return {"difficulty": self.generator.difficulty}

    async def _check_answer(self, params: dict) -> dict:
        problem_id = params["problemId"]
        problem = self._issued.get(problem_id)
        if problem is None:
            raise ValueError(f"Unknown problem: {problem_id}")
        correct = self.generator.is_correct(problem, int_param(params, "answer"))
        return {"correct": correct, "correctAnswer": problem.correct_answer}

    async def _record_performance(self, params: dict) -> dict:
        sample = PerformanceSample(
            problem_id=str(params["problemId"]),
            correct=bool_param(params, "correct"),
            response_time=number_param(params, "responseTime"),
            hints_used=int_param(params, "hintsUsed", 0),
        )
        self.engine.record_performance(sample)
        return {"sampleCount": self.engine.sample_count}

    async def _analyze_performance(self, params: dict) -> dict:
        return metrics_to_dict(self.engine.analyze_performance())

    async def _recommend_difficulty(self, params: dict) -> dict:
        current = int_param(params, "currentDifficulty", self.generator.difficulty)
        rec = self.engine.recommend_difficulty_adjustment(current)
        return recommendation_to_dict(rec, current, self.settings.engine.adaptive_step)

    async def _session_summary(self, params: dict) -> dict:
        return summary_to_dict(self.engine.generate_session_summary())

    async def _start_new_session(self, params: dict) -> dict:
        self.engine.start_new_session()
        self._issued.clear()
        return {"ok": True}
