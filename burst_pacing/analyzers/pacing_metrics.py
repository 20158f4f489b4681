"""
Per-line-item pacing metrics.

This module combines window resolution, proration, delivery matching and
deliverable key resolution into one PacingResult per line item:
- actual delivery to date (spend and deliverable)
- expected delivery to date from the burst schedule
- delta and pacing % against expected
- a dense daily series covering the flight window
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

from burst_pacing.analyzers.deliverables import DeliverableKeyResolver
from burst_pacing.analyzers.delivery_matcher import DeliveryMatcher
from burst_pacing.calculators.proration import ProrationCalculator
from burst_pacing.calculators.window import WindowResolver
from burst_pacing.config import DEFAULT_TIMEZONE
from burst_pacing.models.pacing import (
    Burst,
    DailyPoint,
    DeliverableKey,
    DeliveryRow,
    LineItem,
    Metric,
    MetricKind,
    PacingResult,
    Window,
    ZERO,
    round_money,
)
from burst_pacing.utils.audit_logger import AuditLogger
from burst_pacing.utils.dates import today_in


def resolve_as_of(
    window: Window,
    as_of: Optional[date],
    today: date
) -> date:
    """
    The cutoff date for "to date" figures.

    Caller-supplied as_of wins. Otherwise today, clamped to the window end
    when the end is known.
    """
    if as_of is not None:
        return as_of
    if window.end_date is not None:
        return min(today, window.end_date)
    return today


@dataclass
class LineItemMetrics:
    """
    Everything computed for one line item.

    result is the rounded output. actuals_daily keeps the unrounded
    (spend, deliverable) per day, and bursts the effective schedule
    (including any synthetic burst), so containers can re-aggregate from
    the underlying numbers.
    """
    line_item: LineItem
    window: Window
    bursts: Tuple[Burst, ...]
    deliverable_key: Optional[DeliverableKey]
    actuals_daily: Dict[date, Tuple[Decimal, Decimal]] = field(default_factory=dict)
    result: Optional[PacingResult] = None

    @property
    def booked_spend(self) -> Decimal:
        return self.line_item.booked_spend

    @property
    def booked_deliverable(self) -> Decimal:
        return self.line_item.booked_deliverable


class PacingMetricsBuilder:
    """Build actual vs expected pacing for a single line item."""

    def __init__(
        self,
        window_resolver: Optional[WindowResolver] = None,
        proration: Optional[ProrationCalculator] = None,
        matcher: Optional[DeliveryMatcher] = None,
        deliverables: Optional[DeliverableKeyResolver] = None,
        audit_logger: Optional[AuditLogger] = None,
        timezone: str = DEFAULT_TIMEZONE
    ):
        """
        Initialize builder. Components default to fresh instances sharing
        the given audit logger.

        Args:
            window_resolver: WindowResolver
            proration: ProrationCalculator
            matcher: DeliveryMatcher
            deliverables: DeliverableKeyResolver
            audit_logger: Optional AuditLogger for diagnostics
            timezone: Timezone used to determine today
        """
        self.audit_logger = audit_logger
        self.window_resolver = window_resolver or WindowResolver()
        self.proration = proration or ProrationCalculator(audit_logger)
        self.matcher = matcher or DeliveryMatcher(audit_logger)
        self.deliverables = deliverables or DeliverableKeyResolver()
        self.timezone = timezone

    def build(
        self,
        line_item: LineItem,
        rows: Iterable[DeliveryRow],
        as_of: Optional[date] = None,
        today: Optional[date] = None,
        campaign_start: Optional[date] = None,
        campaign_end: Optional[date] = None
    ) -> LineItemMetrics:
        """
        Compute pacing for one line item.

        Args:
            line_item: Normalized line item
            rows: Delivery rows for the line item's channel (unfiltered)
            as_of: Cutoff date (default: today clamped to the window end)
            today: Override for the current date
            campaign_start: Campaign-level fallback start date
            campaign_end: Campaign-level fallback end date

        Returns:
            LineItemMetrics with the rounded PacingResult attached
        """
        today = today or today_in(self.timezone)
        window = self.window_resolver.resolve(
            line_item.bursts,
            line_item.start_date or campaign_start,
            line_item.end_date or campaign_end,
        )
        bursts = self.proration.effective_bursts(line_item, window)
        key = self.deliverables.resolve(line_item.buy_type, line_item.channel)
        match = self.matcher.match(line_item.id, rows)

        metrics = LineItemMetrics(
            line_item=line_item,
            window=window,
            bursts=bursts,
            deliverable_key=key,
        )

        if window.is_empty:
            metrics.result = PacingResult(
                as_of_date=None,
                spend=Metric.zero(),
                deliverable=Metric.zero() if key else None,
                series=[],
                line_item_id=line_item.id,
                window=window,
                matched_row_count=match.match_count,
                deliverable_key=key,
            )
            self._log(metrics.result)
            return metrics

        as_of_date = resolve_as_of(window, as_of, today)
        dense = self.matcher.dense_series(window, match.daily)
        expected_spend = self.proration.daily_proration(bursts, MetricKind.SPEND)
        expected_deliverable = self.proration.daily_proration(
            bursts, MetricKind.DELIVERABLE
        )

        series = []
        delivered_spend = ZERO
        delivered_deliverable = ZERO
        for day, actuals in dense:
            spend = actuals.spend
            deliverable = actuals.value(key)
            metrics.actuals_daily[day] = (spend, deliverable)
            if day <= as_of_date:
                delivered_spend += spend
                delivered_deliverable += deliverable

            series.append(DailyPoint(
                date=day,
                actual_spend=round_money(spend),
                actual_deliverable=round_money(deliverable),
                expected_spend=round_money(expected_spend.get(day, ZERO)),
                expected_deliverable=(
                    round_money(expected_deliverable.get(day, ZERO)) if key else ZERO
                ),
            ))

        spend_metric = Metric.compute(
            delivered_spend,
            self.proration.should_to_date(bursts, as_of_date, MetricKind.SPEND),
            line_item.booked_spend,
        )
        deliverable_metric = None
        if key is not None:
            deliverable_metric = Metric.compute(
                delivered_deliverable,
                self.proration.should_to_date(bursts, as_of_date, MetricKind.DELIVERABLE),
                line_item.booked_deliverable,
            )

        metrics.result = PacingResult(
            as_of_date=as_of_date,
            spend=spend_metric,
            deliverable=deliverable_metric,
            series=series,
            line_item_id=line_item.id,
            window=window,
            matched_row_count=match.match_count,
            is_estimated=any(burst.is_synthetic for burst in bursts),
            deliverable_key=key,
        )
        self._log(metrics.result)
        return metrics

    def _log(self, result: PacingResult):
        if self.audit_logger is not None:
            self.audit_logger.log_pacing_result(result)
