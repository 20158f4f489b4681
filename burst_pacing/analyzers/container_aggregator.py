"""
Container-level pacing aggregation.

A container (programmatic display, Meta, TikTok, ...) paces as one unit.
Actuals are summed per calendar date across line items before anything is
derived from them; per-item pacing percentages are never averaged. Expected
delivery is the sum of each line item's own should-to-date, because every
line item has its own burst schedule.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, Optional, Sequence, Tuple

from burst_pacing.analyzers.pacing_metrics import LineItemMetrics
from burst_pacing.calculators.proration import ProrationCalculator
from burst_pacing.config import DEFAULT_TIMEZONE
from burst_pacing.models.pacing import (
    DailyPoint,
    Metric,
    MetricKind,
    PacingResult,
    Window,
    ZERO,
    round_money,
)
from burst_pacing.utils.dates import today_in


class ContainerAggregator:
    """Sum many line items into one container PacingResult."""

    def __init__(
        self,
        proration: Optional[ProrationCalculator] = None,
        timezone: str = DEFAULT_TIMEZONE
    ):
        self.proration = proration or ProrationCalculator()
        self.timezone = timezone

    def union_window(self, metrics: Sequence[LineItemMetrics]) -> Window:
        """Earliest start to latest end across items with resolved windows."""
        resolved = [m.window for m in metrics if m.window.is_resolved]
        if not resolved:
            return Window()
        return Window(
            start_date=min(w.start_date for w in resolved),
            end_date=max(w.end_date for w in resolved),
        )

    def aggregate(
        self,
        metrics: Sequence[LineItemMetrics],
        as_of: Optional[date] = None,
        today: Optional[date] = None
    ) -> PacingResult:
        """
        Aggregate line item metrics into a container result.

        Args:
            metrics: LineItemMetrics produced by PacingMetricsBuilder
            as_of: Cutoff date (default: last paced date clamped to today)
            today: Override for the current date

        Returns:
            PacingResult for the container. With no resolvable windows the
            result is all zeros with an empty series.
        """
        has_deliverable = any(m.deliverable_key is not None for m in metrics)
        window = self.union_window(metrics)

        if not window.is_resolved:
            return PacingResult(
                as_of_date=as_of,
                spend=Metric.zero(),
                deliverable=Metric.zero() if has_deliverable else None,
                series=[],
                window=window,
            )

        actuals = self._sum_actuals(metrics)
        expected_spend = self._sum_daily_expected(metrics, MetricKind.SPEND)
        expected_deliverable = self._sum_daily_expected(metrics, MetricKind.DELIVERABLE)

        # Items with a half-resolved window report actuals on their matched
        # dates, which may fall outside the union window.
        days = sorted(set(window.days()) | set(actuals))

        today = today or today_in(self.timezone)
        as_of_date = as_of if as_of is not None else min(days[-1], today)

        series = []
        delivered_spend = ZERO
        delivered_deliverable = ZERO
        for day in days:
            spend, deliverable = actuals.get(day, (ZERO, ZERO))
            if day <= as_of_date:
                delivered_spend += spend
                delivered_deliverable += deliverable
            series.append(DailyPoint(
                date=day,
                actual_spend=round_money(spend),
                actual_deliverable=round_money(deliverable),
                expected_spend=round_money(expected_spend.get(day, ZERO)),
                expected_deliverable=round_money(expected_deliverable.get(day, ZERO)),
            ))

        spend_metric = Metric.compute(
            delivered_spend,
            self._sum_should(metrics, as_of_date, MetricKind.SPEND),
            sum((m.booked_spend for m in metrics), ZERO),
        )
        deliverable_metric = None
        if has_deliverable:
            deliverable_metric = Metric.compute(
                delivered_deliverable,
                self._sum_should(metrics, as_of_date, MetricKind.DELIVERABLE),
                sum(
                    (m.booked_deliverable for m in metrics if m.deliverable_key),
                    ZERO,
                ),
            )

        return PacingResult(
            as_of_date=as_of_date,
            spend=spend_metric,
            deliverable=deliverable_metric,
            series=series,
            window=window,
            matched_row_count=sum(
                m.result.matched_row_count for m in metrics if m.result
            ),
            is_estimated=any(b.is_synthetic for m in metrics for b in m.bursts),
        )

    def _sum_actuals(
        self,
        metrics: Sequence[LineItemMetrics]
    ) -> Dict[date, Tuple[Decimal, Decimal]]:
        totals: Dict[date, Tuple[Decimal, Decimal]] = {}
        for item in metrics:
            for day, (spend, deliverable) in item.actuals_daily.items():
                current_spend, current_deliverable = totals.get(day, (ZERO, ZERO))
                totals[day] = (current_spend + spend, current_deliverable + deliverable)
        return totals

    def _sum_daily_expected(
        self,
        metrics: Sequence[LineItemMetrics],
        kind: MetricKind
    ) -> Dict[date, Decimal]:
        totals: Dict[date, Decimal] = {}
        for item in metrics:
            if kind is MetricKind.DELIVERABLE and item.deliverable_key is None:
                continue
            for day, value in self.proration.daily_proration(item.bursts, kind).items():
                totals[day] = totals.get(day, ZERO) + value
        return totals

    def _sum_should(
        self,
        metrics: Sequence[LineItemMetrics],
        as_of: date,
        kind: MetricKind
    ) -> Decimal:
        total = ZERO
        for item in metrics:
            if kind is MetricKind.DELIVERABLE and item.deliverable_key is None:
                continue
            total += self.proration.should_to_date(item.bursts, as_of, kind)
        return total
