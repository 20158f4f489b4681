"""Analyzers for delivery matching, pacing metrics and aggregation."""

from burst_pacing.analyzers.deliverables import DeliverableKeyResolver
from burst_pacing.analyzers.delivery_matcher import DeliveryMatcher, MatchResult
from burst_pacing.analyzers.pacing_metrics import LineItemMetrics, PacingMetricsBuilder
from burst_pacing.analyzers.container_aggregator import ContainerAggregator
from burst_pacing.analyzers.pacing_analyzer import PacingAnalyzer

__all__ = [
    "DeliverableKeyResolver",
    "DeliveryMatcher",
    "MatchResult",
    "LineItemMetrics",
    "PacingMetricsBuilder",
    "ContainerAggregator",
    "PacingAnalyzer",
]
