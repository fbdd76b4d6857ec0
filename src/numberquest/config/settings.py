"""Configuration model for NumberQuest."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

# Keys accepted in operation_weights; mirrors engine.problem.Operation.
OPERATION_NAMES = ("addition", "subtraction", "multiplication")


class GeneratorConfig(BaseModel):
    operation_weights: dict[str, float] = Field(
        default_factory=lambda: {
            "addition": 0.7,
            "subtraction": 0.2,
            "multiplication": 0.1,
        }
    )
    distractor_count: int = Field(default=3, ge=1, le=8)
    max_attempts: int = Field(default=20, ge=1)
    recent_problem_memory: int = Field(default=10, ge=0)
    base_time_limit: float = Field(default=15.0, gt=0)
    time_limit_step: float = Field(default=1.0, ge=0)
    min_time_limit: float = Field(default=6.0, gt=0)

    @model_validator(mode="after")
    def _check_weights(self) -> "GeneratorConfig":
        unknown = sorted(set(self.operation_weights) - set(OPERATION_NAMES))
        if unknown:
            raise ValueError(f"unknown operations in operation_weights: {', '.join(unknown)}")
        if not any(w > 0 for w in self.operation_weights.values()):
            raise ValueError("operation_weights needs at least one positive weight")
        if any(w < 0 for w in self.operation_weights.values()):
            raise ValueError("operation_weights must be non-negative")
        return self


class EngineConfig(BaseModel):
    minimum_sample_size: int = Field(default=5, ge=1)
    insufficient_data_confidence: float = Field(default=0.3, ge=0, lt=0.5)
    max_history: int = Field(default=200, ge=1)

    # Target band
    accuracy_low: float = Field(default=0.70, ge=0, le=1)
    accuracy_high: float = Field(default=0.85, ge=0, le=1)
    adaptive_accuracy_high: float = Field(default=0.95, ge=0, le=1)
    severe_accuracy: float = Field(default=0.50, ge=0, le=1)
    target_response_time: float = Field(default=5.0, gt=0)
    fast_response_time: float = Field(default=3.0, gt=0)
    slow_response_factor: float = Field(default=1.6, ge=1)
    high_hint_rate: float = Field(default=0.3, ge=0, le=1)
    streak_threshold: int = Field(default=3, ge=0)

    # Trend / fatigue
    trend_min_samples: int = Field(default=6, ge=3)
    trend_margin: float = Field(default=0.1, ge=0, le=1)
    fatigue_window: int = Field(default=5, ge=1)
    fatigue_ratio: float = Field(default=1.5, ge=1)

    confidence_saturation: int = Field(default=20, ge=1)
    adaptive_step: int = Field(default=2, ge=1)

    @model_validator(mode="after")
    def _check_bands(self) -> "EngineConfig":
        if not self.severe_accuracy <= self.accuracy_low < self.accuracy_high <= self.adaptive_accuracy_high:
            raise ValueError(
                "accuracy thresholds must satisfy "
                "severe_accuracy <= accuracy_low < accuracy_high <= adaptive_accuracy_high"
            )
        if self.fast_response_time > self.target_response_time:
            raise ValueError("fast_response_time cannot exceed target_response_time")
        return self

    @property
    def slow_response_time(self) -> float:
        return self.target_response_time * self.slow_response_factor


def default_config_path() -> Path:
    override = os.environ.get("NUMBERQUEST_CONFIG")
    if override:
        return Path(override)
    return Path.home() / ".numberquest" / "config.yaml"


class Settings(BaseModel):
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    initial_difficulty: int = Field(default=1, ge=1, le=10)
    seed: int | None = None

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        config_path = path or default_config_path()
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
            return cls(**data)
        return cls()

    def save(self, path: Path | None = None) -> None:
        config_path = path or default_config_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)
