"""Tests for the adaptive difficulty engine."""

import pytest

from numberquest.config.settings import EngineConfig
from numberquest.engine.adaptive import (
    ChangeKind,
    DifficultyChange,
    DifficultyEngine,
    DifficultyRecommendation,
    HelpSuggestion,
)
from numberquest.engine.performance import Trend


class TestMetrics:
    def test_single_correct_sample(self, engine, make_sample):
        engine.record_performance(make_sample(True, 3.0))
        metrics = engine.analyze_performance()
        assert metrics.average_response_time == 3.0
        assert metrics.accuracy == 1.0
        assert metrics.current_streak == 1
        assert metrics.sample_count == 1

    def test_seventy_percent_accuracy(self, engine, record):
        record("1101101101")
        assert engine.analyze_performance().accuracy == pytest.approx(0.7, abs=0.01)

    def test_streak_after_miss(self, engine, record):
        record("0111")
        assert engine.analyze_performance().current_streak == 3

    def test_empty_session(self, engine):
        metrics = engine.analyze_performance()
        assert metrics.sample_count == 0
        assert metrics.accuracy == 0.0
        assert metrics.average_response_time == 0.0
        assert metrics.recent_performance_trend is Trend.STABLE

    def test_recovery_reads_as_improving(self, engine, record):
        record("000000", time=9.0)
        record("111111", time=2.0)
        assert engine.analyze_performance().recent_performance_trend is Trend.IMPROVING

    def test_history_is_bounded(self, make_sample):
        engine = DifficultyEngine(EngineConfig(max_history=10))
        for _ in range(25):
            engine.record_performance(make_sample())
        assert len(engine.history) == 10

    def test_counts_survive_history_cap(self, make_sample):
        engine = DifficultyEngine(EngineConfig(max_history=10))
        for i in range(25):
            engine.record_performance(make_sample(correct=i % 5 != 0, time=2.0, hints=1 if i < 4 else 0))
        summary = engine.generate_session_summary()
        assert len(engine.history) == 10
        assert engine.sample_count == 25
        assert summary.total_problems == 25
        assert summary.correct_answers == 20
        assert summary.help_used == 4
        assert summary.average_time == pytest.approx(2.0)


class TestInsufficientData:
    @pytest.mark.parametrize("count", [0, 1, 2, 4])
    def test_maintain_with_low_confidence(self, engine, make_sample, count):
        for _ in range(count):
            engine.record_performance(make_sample(True, 1.0))
        rec = engine.recommend_difficulty_adjustment(5)
        assert rec.change == DifficultyChange.maintain()
        assert rec.confidence < 0.5
        assert rec.help_suggestions == []
        assert "Need at least" in rec.reason


class TestIncrease:
    def test_fast_and_accurate_is_adaptive_increase(self, engine, record):
        record("1" * 10, time=2.0)
        rec = engine.recommend_difficulty_adjustment(5)
        assert rec.change.kind is ChangeKind.ADAPTIVE_INCREASE
        assert rec.help_suggestions == []
        assert 0.5 < rec.confidence <= 1.0

    def test_moderate_margin_is_plain_increase(self, engine, record):
        record("0" + "1" * 9, time=4.0)
        rec = engine.recommend_difficulty_adjustment(5)
        assert rec.change == DifficultyChange.increase(1)
        assert rec.next_level(5) == 6

    def test_already_at_max(self, engine, record):
        record("1" * 10, time=2.0)
        rec = engine.recommend_difficulty_adjustment(10)
        assert rec.change.kind is ChangeKind.MAINTAIN

    def test_fatigue_holds_level(self, engine, record):
        record("11111", time=1.0)
        record("11111", time=4.0)
        rec = engine.recommend_difficulty_adjustment(5)
        assert rec.change.kind is ChangeKind.MAINTAIN
        assert "slowing" in rec.reason

    def test_needs_streak(self, engine, record):
        record("1111111110", time=2.0)
        rec = engine.recommend_difficulty_adjustment(5)
        assert not rec.change.is_increase

    def test_confidence_grows_with_samples(self, make_sample):
        confidences = []
        for count in (6, 12, 20):
            engine = DifficultyEngine()
            for _ in range(count):
                engine.record_performance(make_sample(True, 2.0))
            confidences.append(engine.recommend_difficulty_adjustment(5).confidence)
        assert confidences == sorted(confidences)
        assert confidences[0] < confidences[-1]


class TestDecrease:
    def test_low_accuracy_severe(self, engine, record):
        record("1001000100", time=4.0)
        rec = engine.recommend_difficulty_adjustment(5)
        assert rec.change.kind is ChangeKind.ADAPTIVE_DECREASE
        assert rec.help_suggestions[:2] == [
            HelpSuggestion.REREAD.value,
            HelpSuggestion.SCRATCH_WORK.value,
        ]

    def test_below_band(self, engine, record):
        record("1101011010", time=4.0)
        rec = engine.recommend_difficulty_adjustment(5)
        assert rec.change == DifficultyChange.decrease(1)
        assert rec.help_suggestions
        assert rec.next_level(5) == 4

    def test_slow_with_hints(self, engine, record):
        record("1111011110", time=10.0, hints=1)
        rec = engine.recommend_difficulty_adjustment(5)
        assert rec.change == DifficultyChange.decrease(1)
        assert rec.help_suggestions == [
            HelpSuggestion.BREAK_INTO_PARTS.value,
            HelpSuggestion.TRY_FIRST.value,
        ]

    def test_slow_without_hints_is_not_enough(self, engine, record):
        record("1111011110", time=10.0)
        rec = engine.recommend_difficulty_adjustment(5)
        assert rec.change.kind is ChangeKind.MAINTAIN

    def test_at_easiest_level(self, engine, record):
        record("0000000000")
        rec = engine.recommend_difficulty_adjustment(1)
        assert rec.change.kind is ChangeKind.MAINTAIN
        assert rec.help_suggestions == []
        assert "easiest" in rec.reason

    def test_sharper_struggle_is_more_confident(self, record, engine, make_sample):
        record("1101011010", time=4.0)
        mild = engine.recommend_difficulty_adjustment(5).confidence
        other = DifficultyEngine()
        for _ in range(10):
            other.record_performance(make_sample(False, 4.0))
        severe = other.recommend_difficulty_adjustment(5).confidence
        assert severe > mild


class TestMaintain:
    def test_in_band(self, engine, record):
        record("1110111101" * 2, time=4.0)
        rec = engine.recommend_difficulty_adjustment(5)
        assert rec.change.kind is ChangeKind.MAINTAIN
        assert rec.help_suggestions == []

    def test_edge_of_band_is_less_confident(self, make_sample):
        def confidence(pattern):
            engine = DifficultyEngine()
            for ch in pattern:
                engine.record_performance(make_sample(ch == "1", 4.0))
            rec = engine.recommend_difficulty_adjustment(5)
            assert rec.change.kind is ChangeKind.MAINTAIN
            return rec.confidence

        # 15/20 = 0.75 sits near the band centre; 14/20 = 0.70 on the edge
        centre = confidence("1110" * 5)
        edge = confidence("1110" * 3 + "11100011")
        assert centre > edge


@pytest.mark.parametrize(
    "pattern, time, hints, level",
    [
        ("", 1.0, 0, 5),
        ("1" * 30, 0.5, 0, 3),
        ("0" * 30, 30.0, 4, 8),
        ("10" * 15, 6.0, 1, 1),
        ("1110111101", 4.0, 0, 10),
    ],
)
def test_confidence_always_in_unit_interval(pattern, time, hints, level, engine, record):
    record(pattern, time=time, hints=hints)
    rec = engine.recommend_difficulty_adjustment(level)
    assert 0.0 <= rec.confidence <= 1.0
    if rec.help_suggestions:
        assert rec.change.is_decrease


class TestSummary:
    def test_counts(self, engine, make_sample):
        outcomes = [True] * 12 + [False] * 3
        for i, correct in enumerate(outcomes):
            engine.record_performance(make_sample(correct, 2.0 + i % 3, hints=2 if i % 3 == 0 else 0))
        summary = engine.generate_session_summary()
        assert summary.total_problems == 15
        assert summary.correct_answers == 12
        assert summary.help_used == 5
        assert summary.average_time == pytest.approx(3.0)

    def test_new_session_clears_everything(self, engine, record):
        record("1101111", time=5.0, hints=1)
        engine.start_new_session()
        summary = engine.generate_session_summary()
        assert summary.total_problems == 0
        assert summary.correct_answers == 0
        assert summary.average_time == 0.0
        assert summary.help_used == 0
        assert summary.achievements == []
        assert engine.analyze_performance().sample_count == 0
        assert engine.sample_count == 0


class TestDifficultyChange:
    def test_apply(self):
        assert DifficultyChange.increase(1).apply(4) == 5
        assert DifficultyChange.decrease(3).apply(2) == 1
        assert DifficultyChange.adaptive_increase().apply(9, adaptive_step=2) == 10
        assert DifficultyChange.adaptive_decrease().apply(6, adaptive_step=2) == 4
        assert DifficultyChange.maintain().apply(7) == 7

    def test_str(self):
        assert str(DifficultyChange.increase(2)) == "increase(2)"
        assert str(DifficultyChange.adaptive_decrease()) == "adaptive_decrease"

    def test_recommendation_next_level(self):
        rec = DifficultyRecommendation(change=DifficultyChange.increase(1), confidence=0.8)
        assert rec.next_level(10) == 10
