"""
Unit tests for PacingAnalyzer.

Tests status classification, thresholds and recommendation generation.
"""

import pytest
from decimal import Decimal

from burst_pacing.analyzers.pacing_analyzer import PacingAnalyzer
from burst_pacing.models.pacing import Metric


@pytest.fixture
def analyzer():
    """Create PacingAnalyzer with default thresholds."""
    return PacingAnalyzer()


@pytest.fixture
def analyzer_custom():
    """Create PacingAnalyzer with custom thresholds."""
    return PacingAnalyzer(behind_threshold=95.0, ahead_threshold=105.0)


def metric(actual, expected, goal=10000):
    """Helper to create a Metric for testing."""
    return Metric.compute(Decimal(str(actual)), Decimal(str(expected)), Decimal(str(goal)))


class TestClassification:
    """Test status classification."""

    def test_on_track(self, analyzer):
        result = analyzer.classify(metric(1000, 1000))

        assert result["status"] == "on_track"
        assert result["pacing_pct"] == 100.0
        assert result["variance_pct"] == 0.0
        assert result["is_zero_delivery"] is False

    def test_behind(self, analyzer):
        result = analyzer.classify(metric(500, 1000))

        assert result["status"] == "behind"
        assert result["pacing_pct"] == 50.0
        assert result["variance_pct"] == 50.0

    def test_ahead(self, analyzer):
        result = analyzer.classify(metric(1200, 1000))

        assert result["status"] == "ahead"
        assert result["variance_pct"] == pytest.approx(20.0)

    def test_boundaries_are_on_track(self, analyzer):
        """Test that exactly 90% and 110% are still on track."""
        assert analyzer.classify(metric(900, 1000))["status"] == "on_track"
        assert analyzer.classify(metric(1100, 1000))["status"] == "on_track"

    def test_zero_delivery_always_behind(self, analyzer):
        """Test that zero delivery is flagged regardless of threshold."""
        result = analyzer.classify(metric(0, 1000))

        assert result["status"] == "behind"
        assert result["is_zero_delivery"] is True
        assert result["variance_pct"] == 100.0
        assert result["reason"] == "No delivery despite positive expected delivery"

    def test_not_started(self, analyzer):
        """Test that nothing expected yet is not started, even with delivery."""
        result = analyzer.classify(metric(250, 0))

        assert result["status"] == "not_started"
        assert result["pacing_pct"] == 0.0
        assert result["is_zero_delivery"] is False

    def test_classify_pacing(self, analyzer):
        assert analyzer.classify_pacing(89.99) == "behind"
        assert analyzer.classify_pacing(90.0) == "on_track"
        assert analyzer.classify_pacing(110.01) == "ahead"


class TestCustomThresholds:
    """Test analyzer with custom thresholds."""

    def test_custom_behind_threshold(self, analyzer_custom, analyzer):
        """Test that 92% is behind with custom thresholds only."""
        assert analyzer_custom.classify(metric(920, 1000))["status"] == "behind"
        assert analyzer.classify(metric(920, 1000))["status"] == "on_track"

    def test_custom_ahead_threshold(self, analyzer_custom):
        assert analyzer_custom.classify(metric(1080, 1000))["status"] == "ahead"

    def test_invalid_thresholds(self):
        with pytest.raises(ValueError, match="must not exceed"):
            PacingAnalyzer(behind_threshold=120.0, ahead_threshold=110.0)

    def test_to_dict(self, analyzer_custom):
        assert analyzer_custom.to_dict() == {"behind_threshold": 95.0, "ahead_threshold": 105.0}


class TestRecommendations:
    """Test recommendation generation."""

    def test_zero_delivery_recommendation(self, analyzer):
        m = metric(0, 1000)
        recommendation = analyzer.generate_recommendation(analyzer.classify(m), m)

        assert "ZERO DELIVERY" in recommendation
        assert "$1,000.00" in recommendation

    def test_on_track_recommendation(self, analyzer):
        m = metric(1000, 1000)
        recommendation = analyzer.generate_recommendation(analyzer.classify(m), m)

        assert "on track" in recommendation
        assert "No action required" in recommendation

    def test_behind_recommendation(self, analyzer):
        m = metric(500, 1000)
        recommendation = analyzer.generate_recommendation(analyzer.classify(m), m)

        assert "Under-delivering by 500.00" in recommendation

    def test_ahead_recommendation(self, analyzer):
        m = metric(1500, 1000)
        recommendation = analyzer.generate_recommendation(analyzer.classify(m), m)

        assert "Over-delivering by 500.00" in recommendation

    def test_not_started_recommendation(self, analyzer):
        m = metric(0, 0)
        recommendation = analyzer.generate_recommendation(analyzer.classify(m), m)

        assert recommendation.startswith("Flight has not started")
