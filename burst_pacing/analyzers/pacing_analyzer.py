"""
Pacing status classification.

Turns a Metric into the status badge shown next to a line item or
container, and a short recommendation for the trading team.
"""

from decimal import Decimal
from typing import Any, Dict

from burst_pacing.models.pacing import Metric

NOT_STARTED = "not_started"
BEHIND = "behind"
ON_TRACK = "on_track"
AHEAD = "ahead"


class PacingAnalyzer:
    """
    Classify pacing % into a status.

    - Not started: nothing expected yet (expected to date is 0)
    - Behind: pacing below the behind threshold (default 90%)
    - On track: between the thresholds, inclusive
    - Ahead: pacing above the ahead threshold (default 110%)

    Zero delivery (expected > 0, actual == 0) is always behind and flagged.
    """

    BEHIND_THRESHOLD = 90.0
    AHEAD_THRESHOLD = 110.0

    def __init__(
        self,
        behind_threshold: float = BEHIND_THRESHOLD,
        ahead_threshold: float = AHEAD_THRESHOLD
    ):
        """
        Initialize analyzer with configurable thresholds.

        Args:
            behind_threshold: Pacing % below which delivery is behind
            ahead_threshold: Pacing % above which delivery is ahead
        """
        if behind_threshold > ahead_threshold:
            raise ValueError(
                f"behind_threshold ({behind_threshold}) must not exceed "
                f"ahead_threshold ({ahead_threshold})"
            )
        self.behind_threshold = behind_threshold
        self.ahead_threshold = ahead_threshold

    def classify(self, metric: Metric) -> Dict[str, Any]:
        """
        Classify a pacing metric.

        Args:
            metric: Spend or deliverable Metric

        Returns:
            Dictionary containing:
            - status: "not_started" | "behind" | "on_track" | "ahead"
            - pacing_pct: Pacing percentage
            - variance_pct: Distance from 100% (absolute)
            - is_zero_delivery: Boolean flag
            - reason: Human-readable reason for classification
        """
        pacing = float(metric.pacing_pct)
        expected = metric.expected_to_date
        actual = metric.actual_to_date

        if expected <= 0:
            return {
                "status": NOT_STARTED,
                "pacing_pct": 0.0,
                "variance_pct": 0.0,
                "is_zero_delivery": False,
                "reason": "Nothing expected to date",
            }

        if actual == 0:
            return {
                "status": BEHIND,
                "pacing_pct": 0.0,
                "variance_pct": 100.0,
                "is_zero_delivery": True,
                "reason": "No delivery despite positive expected delivery",
            }

        status = self.classify_pacing(pacing)
        reason = {
            BEHIND: "Delivery below expected range",
            ON_TRACK: "Delivery within expected range",
            AHEAD: "Delivery above expected range",
        }[status]

        return {
            "status": status,
            "pacing_pct": pacing,
            "variance_pct": abs(pacing - 100.0),
            "is_zero_delivery": False,
            "reason": reason,
        }

    def classify_pacing(self, pacing_pct: float) -> str:
        """
        Classify a pacing percentage into behind / on_track / ahead.

        Args:
            pacing_pct: Actual / expected * 100

        Returns:
            "behind" | "on_track" | "ahead"
        """
        if pacing_pct < self.behind_threshold:
            return BEHIND
        if pacing_pct > self.ahead_threshold:
            return AHEAD
        return ON_TRACK

    def generate_recommendation(self, classification: Dict[str, Any], metric: Metric) -> str:
        """
        Generate a recommendation from a classification.

        Args:
            classification: Output from classify()
            metric: The classified Metric

        Returns:
            Recommendation string
        """
        status = classification["status"]
        delta = abs(Decimal(metric.delta))

        if status == NOT_STARTED:
            return "Flight has not started. No action required."
        if classification["is_zero_delivery"]:
            return (
                f"🚨 ZERO DELIVERY: ${metric.expected_to_date:,.2f} expected to date, "
                f"nothing delivered. Check line item status, targeting and "
                f"creative approval."
            )
        if status == ON_TRACK:
            return (
                f"✅ Pacing on track ({classification['pacing_pct']:.1f}%). "
                f"No action required."
            )
        if status == BEHIND:
            return (
                f"⚠️ Under-delivering by {delta:,.2f} "
                f"({classification['pacing_pct']:.1f}% of expected). "
                f"Consider raising bids or broadening targeting."
            )
        return (
            f"⚠️ Over-delivering by {delta:,.2f} "
            f"({classification['pacing_pct']:.1f}% of expected). "
            f"Reduce daily caps to avoid exhausting budget before flight end."
        )

    def to_dict(self) -> Dict[str, float]:
        """Export analyzer configuration."""
        return {
            "behind_threshold": self.behind_threshold,
            "ahead_threshold": self.ahead_threshold,
        }
