"""Score calculator shared by all metric groups.

Each metric contributes its status value (good=100, warning=50, poor=0)
weighted by impact tier (high=3, medium=1.5, foundational=1); metrics flagged
``weighted`` count 1.25x. The group score is the weighted mean, rounded half
up to an integer.
"""

import math
from collections.abc import Sequence

from worker.scoring.models import Impact, Measured, Metric, Reading, Status

STATUS_VALUES = {
    Status.GOOD: 100,
    Status.WARNING: 50,
    Status.POOR: 0,
}

IMPACT_WEIGHTS = {
    Impact.HIGH: 3.0,
    Impact.MEDIUM: 1.5,
    Impact.FOUNDATIONAL: 1.0,
}

WEIGHTED_MULTIPLIER = 1.25


def metric_weight(metric: Metric) -> float:
    weight = IMPACT_WEIGHTS[metric.impact]
    return weight * WEIGHTED_MULTIPLIER if metric.weighted else weight


def calculate_score(metrics: Sequence[Metric]) -> int:
    """Weighted mean of status values, 0-100. Empty input scores 0."""
    total_weight = 0.0
    total = 0.0
    for metric in metrics:
        weight = metric_weight(metric)
        total_weight += weight
        total += weight * STATUS_VALUES[metric.status]
    if total_weight == 0:
        return 0
    return math.floor(total / total_weight + 0.5)


def status_for(
    reading: Reading,
    good: float,
    warn: float,
    invert: bool = False,
) -> Status:
    """Compare a reading against thresholds.

    Higher is better unless ``invert``. An unavailable reading is always
    WARNING: unknown data is neither rewarded nor punished.
    """
    if not isinstance(reading, Measured):
        return Status.WARNING
    value = reading.value
    if invert:
        if value <= good:
            return Status.GOOD
        return Status.WARNING if value <= warn else Status.POOR
    if value >= good:
        return Status.GOOD
    return Status.WARNING if value >= warn else Status.POOR


def flag_status(reading: Reading, when_false: Status = Status.POOR) -> Status:
    """Status for a yes/no signal; unavailable stays WARNING."""
    if not isinstance(reading, Measured):
        return Status.WARNING
    return Status.GOOD if reading.value else when_false
