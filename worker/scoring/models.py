"""Metric and metric-group models shared by every builder."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, model_validator

T = TypeVar("T")


class Status(StrEnum):
    GOOD = "good"
    WARNING = "warning"
    POOR = "poor"


class Impact(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    FOUNDATIONAL = "foundational"


@dataclass(frozen=True)
class Measured(Generic[T]):
    """A signal some provider actually observed."""

    value: T


@dataclass(frozen=True)
class Unavailable:
    """A signal no provider could supply this time."""


Reading = Measured[Any] | Unavailable

UNAVAILABLE = Unavailable()


def read(value: T | None) -> "Measured[T] | Unavailable":
    """Wrap an optional provider value as a reading."""
    return UNAVAILABLE if value is None else Measured(value)


class Metric(BaseModel):
    """One row of a report tab.

    ``label`` is the stable join key for the dashboard and the recap editor.
    """

    label: str
    value: str
    status: Status
    impact: Impact
    detail: str = ""
    why: str = ""
    fix: str = ""
    expected_impact: str = ""
    difficulty: str = ""
    weighted: bool = False
    estimated: bool = False
    findings: list[str] = Field(default_factory=list)


class MetricGroup(BaseModel):
    """A scored report section.

    ``score`` is recomputed from ``metrics`` on every construction, including
    when a stored document is loaded, so the two can never disagree.
    """

    score: int = 0
    metrics: list[Metric] = Field(default_factory=list)

    @model_validator(mode="after")
    def _score_from_metrics(self) -> "MetricGroup":
        from worker.scoring.calculator import calculate_score

        self.score = calculate_score(self.metrics)
        return self

    @classmethod
    def from_metrics(cls, metrics: list[Metric]) -> "MetricGroup":
        return cls(metrics=metrics)

    @property
    def labels(self) -> list[str]:
        return [m.label for m in self.metrics]

    def find(self, label: str) -> Metric | None:
        return next((m for m in self.metrics if m.label == label), None)
