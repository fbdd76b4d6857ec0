"""Adaptive difficulty engine.

Aggregates per-answer performance samples for one play session and recommends
how the orchestrator should move the difficulty level. The engine never stores
a current level: it is told the level on each request and answers with a
delta (a DifficultyChange) plus a confidence score.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from numberquest.config.settings import EngineConfig
from numberquest.engine.difficulty import MAX_LEVEL, MIN_LEVEL, clamp_level
from numberquest.engine.performance import (
    PerformanceSample,
    SessionMetrics,
    SessionSummary,
    Trend,
    accuracy,
    achievements,
    average_response_time,
    current_streak,
    detect_fatigue,
    detect_trend,
    hint_rate,
    longest_streak,
)

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    MAINTAIN = "maintain"
    ADAPTIVE_INCREASE = "adaptive_increase"
    ADAPTIVE_DECREASE = "adaptive_decrease"


@dataclass(frozen=True)
class DifficultyChange:
    """Tagged variant; ``amount`` only matters for INCREASE and DECREASE."""
    kind: ChangeKind
    amount: int = 0

    @classmethod
    def increase(cls, amount: int = 1) -> DifficultyChange:
        return cls(ChangeKind.INCREASE, amount)

    @classmethod
    def decrease(cls, amount: int = 1) -> DifficultyChange:
        return cls(ChangeKind.DECREASE, amount)

    @classmethod
    def maintain(cls) -> DifficultyChange:
        return cls(ChangeKind.MAINTAIN)

    @classmethod
    def adaptive_increase(cls) -> DifficultyChange:
        return cls(ChangeKind.ADAPTIVE_INCREASE)

    @classmethod
    def adaptive_decrease(cls) -> DifficultyChange:
        return cls(ChangeKind.ADAPTIVE_DECREASE)

    @property
    def is_increase(self) -> bool:
        return self.kind in (ChangeKind.INCREASE, ChangeKind.ADAPTIVE_INCREASE)

    @property
    def is_decrease(self) -> bool:
        return self.kind in (ChangeKind.DECREASE, ChangeKind.ADAPTIVE_DECREASE)

    def delta(self, adaptive_step: int = 2) -> int:
        return {
            ChangeKind.INCREASE: self.amount,
            ChangeKind.DECREASE: -self.amount,
            ChangeKind.MAINTAIN: 0,
            ChangeKind.ADAPTIVE_INCREASE: adaptive_step,
            ChangeKind.ADAPTIVE_DECREASE: -adaptive_step,
        }[self.kind]

    def apply(self, level: int, adaptive_step: int = 2) -> int:
        return clamp_level(level + self.delta(adaptive_step))

    def __str__(self) -> str:
        if self.kind in (ChangeKind.INCREASE, ChangeKind.DECREASE):
            return f"{self.kind.value}({self.amount})"
        return self.kind.value


class HelpSuggestion(str, Enum):
    REREAD = "Slow down and re-read the problem before answering."
    SCRATCH_WORK = "Try using scratch work to keep track of each step."
    BREAK_INTO_PARTS = "Break big numbers into tens and ones and solve each part."
    TRY_FIRST = "Give each problem a real try before opening a hint."
    TAKE_A_BREAK = "Take a short break, then come back refreshed."


@dataclass
class DifficultyRecommendation:
    change: DifficultyChange
    confidence: float
    help_suggestions: list[str] = field(default_factory=list)
    reason: str = ""

    def next_level(self, current: int, adaptive_step: int = 2) -> int:
        return self.change.apply(current, adaptive_step)


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))


class DifficultyEngine:
    """Rolling per-session aggregator and recommendation policy.

    Not thread-safe: one owner per instance, calls serialized by the caller.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self._history: deque[PerformanceSample] = deque(maxlen=self.config.max_history)
        self._reset_totals()

    def _reset_totals(self) -> None:
        # Whole-session totals; the history deque only keeps the newest samples.
        self._total = 0
        self._correct = 0
        self._time_sum = 0.0
        self._help_used = 0

    @property
    def history(self) -> tuple[PerformanceSample, ...]:
        return tuple(self._history)

    @property
    def sample_count(self) -> int:
        return self._total

    def record_performance(self, sample: PerformanceSample) -> None:
        self._history.append(sample)
        self._total += 1
        self._time_sum += sample.response_time
        if sample.correct:
            self._correct += 1
        if sample.hints_used > 0:
            self._help_used += 1

    def start_new_session(self) -> None:
        discarded = self._total
        self._history.clear()
        self._reset_totals()
        logger.info("New session started (discarded %d samples)", discarded)

    def analyze_performance(self) -> SessionMetrics:
        cfg = self.config
        samples = list(self._history)
        return SessionMetrics(
            average_response_time=average_response_time(samples),
            accuracy=accuracy(samples),
            current_streak=current_streak(samples),
            longest_streak=longest_streak(samples),
            recent_performance_trend=detect_trend(
                samples, cfg.trend_min_samples, cfg.trend_margin
            ),
            sample_count=len(samples),
            hint_rate=hint_rate(samples),
            fatigue_detected=detect_fatigue(
                samples, cfg.fatigue_window, cfg.fatigue_ratio
            ),
        )

    def recommend_difficulty_adjustment(
        self, current_difficulty: int
    ) -> DifficultyRecommendation:
        cfg = self.config
        metrics = self.analyze_performance()
        n = metrics.sample_count

        if n < cfg.minimum_sample_size:
            return DifficultyRecommendation(
                change=DifficultyChange.maintain(),
                confidence=cfg.insufficient_data_confidence * n / cfg.minimum_sample_size,
                reason=f"Need at least {cfg.minimum_sample_size} answers (have {n})",
            )

        level = clamp_level(current_difficulty)
        reliability = 0.5 + 0.5 * min(1.0, n / cfg.confidence_saturation)

        if self._should_increase(metrics):
            rec = self._recommend_increase(metrics, level, reliability)
        elif self._should_decrease(metrics):
            rec = self._recommend_decrease(metrics, level, reliability)
        else:
            rec = self._recommend_maintain(metrics, reliability)

        logger.debug(
            "recommendation at level %d: %s (confidence=%.2f, acc=%.2f, avg=%.2fs, n=%d)",
            level, rec.change, rec.confidence, metrics.accuracy,
            metrics.average_response_time, n,
        )
        return rec

    def generate_session_summary(self) -> SessionSummary:
        """Totals cover the whole session; streak and achievements cover the
        retained history (the newest ``max_history`` samples)."""
        samples = list(self._history)
        return SessionSummary(
            total_problems=self._total,
            correct_answers=self._correct,
            average_time=self._time_sum / self._total if self._total else 0.0,
            help_used=self._help_used,
            longest_streak=longest_streak(samples),
            achievements=achievements(samples),
        )

    # --- Policy ---

    def _should_increase(self, m: SessionMetrics) -> bool:
        cfg = self.config
        return (
            m.accuracy >= cfg.accuracy_high
            and m.average_response_time <= cfg.target_response_time
            and m.current_streak >= cfg.streak_threshold
        )

    def _should_decrease(self, m: SessionMetrics) -> bool:
        cfg = self.config
        slow = m.average_response_time > cfg.slow_response_time
        return m.accuracy < cfg.accuracy_low or (slow and m.hint_rate >= cfg.high_hint_rate)

    def _confidence(self, reliability: float, clarity: float) -> float:
        return _clamp_unit(reliability * (0.5 + 0.5 * _clamp_unit(clarity)))

    def _recommend_increase(
        self, m: SessionMetrics, level: int, reliability: float
    ) -> DifficultyRecommendation:
        cfg = self.config
        acc_margin = (m.accuracy - cfg.accuracy_high) / max(1.0 - cfg.accuracy_high, 1e-9)
        time_margin = (cfg.target_response_time - m.average_response_time) / cfg.target_response_time
        streak_factor = min(1.0, m.current_streak / max(2 * cfg.streak_threshold, 1))
        clarity = (_clamp_unit(acc_margin) + _clamp_unit(time_margin) + streak_factor) / 3
        if m.recent_performance_trend is Trend.IMPROVING:
            clarity += 0.1
        confidence = self._confidence(reliability, clarity)

        if level >= MAX_LEVEL:
            return DifficultyRecommendation(
                change=DifficultyChange.maintain(),
                confidence=confidence,
                reason="Excellent performance, already at the highest level",
            )
        if m.fatigue_detected:
            return DifficultyRecommendation(
                change=DifficultyChange.maintain(),
                confidence=confidence,
                reason="Strong accuracy but answers are slowing down; holding level",
            )

        large_margin = (
            m.accuracy >= cfg.adaptive_accuracy_high
            and m.average_response_time <= cfg.fast_response_time
        )
        change = DifficultyChange.adaptive_increase() if large_margin else DifficultyChange.increase(1)
        return DifficultyRecommendation(
            change=change,
            confidence=confidence,
            reason=(
                f"Excellent performance: {m.accuracy:.0%} accuracy, "
                f"{m.average_response_time:.1f}s average, streak of {m.current_streak}"
            ),
        )

    def _recommend_decrease(
        self, m: SessionMetrics, level: int, reliability: float
    ) -> DifficultyRecommendation:
        cfg = self.config
        low_accuracy = m.accuracy < cfg.accuracy_low
        slow = m.average_response_time > cfg.slow_response_time
        hint_heavy = m.hint_rate >= cfg.high_hint_rate

        acc_gap = (cfg.accuracy_low - m.accuracy) / cfg.accuracy_low if low_accuracy else 0.0
        speed_gap = 0.0
        if slow and hint_heavy:
            time_gap = min(1.0, (m.average_response_time - cfg.slow_response_time) / cfg.slow_response_time)
            speed_gap = (time_gap + m.hint_rate) / 2
        clarity = max(acc_gap, speed_gap)
        if m.recent_performance_trend is Trend.DECLINING:
            clarity += 0.1
        confidence = self._confidence(reliability, clarity)

        reasons = []
        if low_accuracy:
            reasons.append(f"accuracy {m.accuracy:.0%} is below target")
        if slow:
            reasons.append(f"slow responses ({m.average_response_time:.1f}s average)")
        if hint_heavy:
            reasons.append(f"hints used on {m.hint_rate:.0%} of problems")
        reason = "Struggling: " + ", ".join(reasons)

        if level <= MIN_LEVEL:
            return DifficultyRecommendation(
                change=DifficultyChange.maintain(),
                confidence=confidence,
                reason=reason + "; already at the easiest level",
            )

        severe = m.accuracy < cfg.severe_accuracy or (low_accuracy and slow and hint_heavy)
        change = DifficultyChange.adaptive_decrease() if severe else DifficultyChange.decrease(1)

        suggestions: list[str] = []
        if low_accuracy:
            suggestions += [HelpSuggestion.REREAD.value, HelpSuggestion.SCRATCH_WORK.value]
        if slow:
            suggestions.append(HelpSuggestion.BREAK_INTO_PARTS.value)
        if hint_heavy:
            suggestions.append(HelpSuggestion.TRY_FIRST.value)
        if m.fatigue_detected:
            suggestions.append(HelpSuggestion.TAKE_A_BREAK.value)

        return DifficultyRecommendation(
            change=change,
            confidence=confidence,
            help_suggestions=suggestions,
            reason=reason,
        )

    def _recommend_maintain(
        self, m: SessionMetrics, reliability: float
    ) -> DifficultyRecommendation:
        cfg = self.config
        half_band = (cfg.accuracy_high - cfg.accuracy_low) / 2
        center = cfg.accuracy_low + half_band
        clarity = 1.0 - min(1.0, abs(m.accuracy - center) / half_band)
        if m.average_response_time > cfg.target_response_time:
            clarity *= 0.5
        if m.recent_performance_trend is Trend.STABLE:
            clarity += 0.1
        return DifficultyRecommendation(
            change=DifficultyChange.maintain(),
            confidence=self._confidence(reliability, clarity),
            reason=(
                f"Performance fits the current level: {m.accuracy:.0%} accuracy, "
                f"{m.average_response_time:.1f}s average, trend {m.recent_performance_trend.value}"
            ),
        )
