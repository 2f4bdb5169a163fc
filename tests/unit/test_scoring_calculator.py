"""Tests for the shared score calculator."""

from worker.scoring.calculator import (
    calculate_score,
    flag_status,
    metric_weight,
    status_for,
)
from worker.scoring.models import (
    UNAVAILABLE,
    Impact,
    Measured,
    Metric,
    MetricGroup,
    Status,
    read,
)


def make_metric(
    status: Status,
    impact: Impact = Impact.FOUNDATIONAL,
    weighted: bool = False,
    label: str = "Test Metric",
) -> Metric:
    """Create a test Metric."""
    return Metric(label=label, value="x", status=status, impact=impact, weighted=weighted)


class TestCalculateScore:
    """Tests for calculate_score."""

    def test_empty_scores_zero(self):
        assert calculate_score([]) == 0

    def test_all_good(self):
        metrics = [make_metric(Status.GOOD, impact) for impact in Impact]
        assert calculate_score(metrics) == 100

    def test_all_poor(self):
        metrics = [make_metric(Status.POOR, impact) for impact in Impact]
        assert calculate_score(metrics) == 0

    def test_all_warning_scores_fifty(self):
        metrics = [make_metric(Status.WARNING, impact) for impact in Impact]
        assert calculate_score(metrics) == 50

    def test_equal_weights_round_half_up(self):
        # (50 + 100 + 100 + 0) / 4 = 62.5
        metrics = [
            make_metric(Status.WARNING),
            make_metric(Status.GOOD),
            make_metric(Status.GOOD),
            make_metric(Status.POOR),
        ]
        assert calculate_score(metrics) == 63

    def test_weighted_flag_boosts_metric(self):
        # 3.75 * 100 / (3.75 + 3) = 55.56
        metrics = [
            make_metric(Status.GOOD, Impact.HIGH, weighted=True),
            make_metric(Status.POOR, Impact.HIGH),
        ]
        assert calculate_score(metrics) == 56

    def test_impact_tiers(self):
        # high good (3) vs medium poor (1.5): 300 / 4.5 = 66.67
        metrics = [
            make_metric(Status.GOOD, Impact.HIGH),
            make_metric(Status.POOR, Impact.MEDIUM),
        ]
        assert calculate_score(metrics) == 67

    def test_score_in_range(self):
        for status in Status:
            score = calculate_score([make_metric(status, Impact.HIGH, weighted=True)])
            assert 0 <= score <= 100


class TestMetricWeight:
    """Tests for metric_weight."""

    def test_base_weights(self):
        assert metric_weight(make_metric(Status.GOOD, Impact.HIGH)) == 3.0
        assert metric_weight(make_metric(Status.GOOD, Impact.MEDIUM)) == 1.5
        assert metric_weight(make_metric(Status.GOOD, Impact.FOUNDATIONAL)) == 1.0

    def test_weighted_multiplier(self):
        assert metric_weight(make_metric(Status.GOOD, Impact.HIGH, weighted=True)) == 3.75


class TestStatusFor:
    """Tests for threshold status."""

    def test_higher_is_better(self):
        assert status_for(Measured(95), 90, 50) == Status.GOOD
        assert status_for(Measured(90), 90, 50) == Status.GOOD
        assert status_for(Measured(60), 90, 50) == Status.WARNING
        assert status_for(Measured(10), 90, 50) == Status.POOR

    def test_inverted(self):
        assert status_for(Measured(5), 10, 30, invert=True) == Status.GOOD
        assert status_for(Measured(20), 10, 30, invert=True) == Status.WARNING
        assert status_for(Measured(31), 10, 30, invert=True) == Status.POOR

    def test_unavailable_is_warning(self):
        assert status_for(UNAVAILABLE, 90, 50) == Status.WARNING
        assert status_for(UNAVAILABLE, 10, 30, invert=True) == Status.WARNING

    def test_measured_zero_is_not_unavailable(self):
        assert status_for(read(0), 90, 50) == Status.POOR


class TestFlagStatus:
    """Tests for yes/no status."""

    def test_true_is_good(self):
        assert flag_status(Measured(True)) == Status.GOOD

    def test_false_is_poor_by_default(self):
        assert flag_status(Measured(False)) == Status.POOR

    def test_false_status_override(self):
        assert flag_status(Measured(False), when_false=Status.WARNING) == Status.WARNING

    def test_unavailable_is_warning(self):
        assert flag_status(read(None)) == Status.WARNING


class TestMetricGroup:
    """Tests for the group model."""

    def test_score_follows_metrics(self):
        group = MetricGroup.from_metrics([make_metric(Status.GOOD), make_metric(Status.POOR)])
        assert group.score == 50

    def test_stored_score_is_recomputed_on_load(self):
        group = MetricGroup.from_metrics([make_metric(Status.GOOD)])
        data = group.model_dump()
        data["score"] = 3
        assert MetricGroup.model_validate(data).score == 100

    def test_find_by_label(self):
        group = MetricGroup.from_metrics([make_metric(Status.GOOD, label="Alt Tags")])
        assert group.find("Alt Tags") is not None
        assert group.find("Missing") is None
        assert group.labels == ["Alt Tags"]
