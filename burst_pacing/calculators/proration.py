"""
Linear day-weighted proration of burst totals.

Two granularities share one idea: a burst's total is spread evenly over its
inclusive day count.
- should_to_date: how much of each burst should have delivered by a date
- daily_proration: the expected amount for every single day
- allocate_to_months: the expected amount per calendar month (billing)

Values are kept unrounded; callers round once, at output.
"""

import calendar
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from burst_pacing.models.pacing import (
    BillingMonth,
    Burst,
    LineItem,
    MetricKind,
    Window,
    ZERO,
    round_money,
)
from burst_pacing.utils.audit_logger import AuditLogger

DEFAULT_MONTH_FORMAT = "%Y-%m"


def inclusive_day_count(start: date, end: date) -> int:
    """
    Number of days from start to end with both endpoints counted.

    A single-day range is 1. A reversed range is 0.
    """
    return max(0, (end - start).days + 1)


def iter_days(start: date, end: date) -> Iterable[date]:
    cursor = start
    while cursor <= end:
        yield cursor
        cursor += timedelta(days=1)


def month_spans(start: date, end: date) -> Iterable[Tuple[date, date]]:
    """
    Split [start, end] into per-calendar-month sub-ranges.

    Yields (span_start, span_end) pairs, each inside a single month.
    """
    cursor = start
    while cursor <= end:
        last_day = calendar.monthrange(cursor.year, cursor.month)[1]
        month_end = date(cursor.year, cursor.month, last_day)
        span_end = min(month_end, end)
        yield cursor, span_end
        cursor = span_end + timedelta(days=1)


class ProrationCalculator:
    """
    Day-prorated expected values for burst schedules.

    All methods are pure; the optional audit logger only records when a
    synthetic burst is created from booked totals.
    """

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self.audit_logger = audit_logger

    def should_to_date(
        self,
        bursts: Sequence[Burst],
        as_of: date,
        kind: MetricKind = MetricKind.SPEND
    ) -> Decimal:
        """
        Expected cumulative value up to and including as_of.

        Args:
            bursts: Burst schedule
            as_of: Cutoff date
            kind: Prorate spend or deliverable totals

        Returns:
            Sum of each started burst's total * elapsed days / duration days
        """
        expected = ZERO
        for burst in bursts:
            duration = inclusive_day_count(burst.start_date, burst.end_date)
            if duration <= 0:
                continue
            if as_of < burst.start_date:
                continue

            elapsed_end = min(as_of, burst.end_date)
            elapsed = inclusive_day_count(burst.start_date, elapsed_end)
            expected += burst.total(kind) * elapsed / duration
        return expected

    def daily_proration(
        self,
        bursts: Sequence[Burst],
        kind: MetricKind = MetricKind.SPEND
    ) -> Dict[date, Decimal]:
        """
        Expected value for each day covered by any burst.

        Overlapping bursts add up on shared days. Summing a single burst's
        days reproduces its total.
        """
        daily: Dict[date, Decimal] = {}
        for burst in bursts:
            duration = inclusive_day_count(burst.start_date, burst.end_date)
            if duration <= 0:
                continue
            rate = burst.total(kind) / duration
            for day in iter_days(burst.start_date, burst.end_date):
                daily[day] = daily.get(day, ZERO) + rate
        return daily

    def month_totals(
        self,
        bursts: Sequence[Burst],
        kind: MetricKind = MetricKind.SPEND
    ) -> Dict[Tuple[int, int], Decimal]:
        """
        Unrounded allocation keyed by (year, month).

        Each month receives daily_rate * overlapping inclusive days.
        """
        totals: Dict[Tuple[int, int], Decimal] = {}
        for burst in bursts:
            duration = inclusive_day_count(burst.start_date, burst.end_date)
            if duration <= 0:
                continue
            total = burst.total(kind)
            for span_start, span_end in month_spans(burst.start_date, burst.end_date):
                key = (span_start.year, span_start.month)
                overlap = inclusive_day_count(span_start, span_end)
                totals[key] = totals.get(key, ZERO) + total * overlap / duration
        return totals

    def allocate_to_months(
        self,
        bursts: Sequence[Burst],
        kind: MetricKind = MetricKind.SPEND,
        month_format: str = DEFAULT_MONTH_FORMAT
    ) -> List[BillingMonth]:
        """
        Allocate burst totals to calendar months.

        Args:
            bursts: Burst schedule
            kind: Allocate spend or deliverable totals
            month_format: strftime format for month keys ("%Y-%m" or "%B %Y")

        Returns:
            BillingMonth list in chronological order, one per month that
            overlaps any burst
        """
        totals = self.month_totals(bursts, kind)
        estimated = any(burst.is_synthetic for burst in bursts)

        months = []
        for year, month in sorted(totals):
            amount = round_money(totals[(year, month)])
            months.append(BillingMonth(
                month_key=date(year, month, 1).strftime(month_format),
                amount=amount,
                media=amount,
                is_estimated=estimated,
            ))
        return months

    def effective_bursts(
        self,
        line_item: LineItem,
        window: Window
    ) -> Tuple[Burst, ...]:
        """
        Bursts to prorate for a line item.

        A line item with no bursts, a resolved window and a non-zero booked
        total gets one synthetic burst spanning the window. This is the only
        place a synthetic burst is created.
        """
        if line_item.bursts:
            return line_item.bursts
        if not window.is_resolved or window.start_date > window.end_date:
            return ()
        if line_item.booked_spend <= 0 and line_item.booked_deliverable <= 0:
            return ()

        burst = Burst(
            start_date=window.start_date,
            end_date=window.end_date,
            total_spend=max(line_item.booked_spend, ZERO),
            total_deliverable=max(line_item.booked_deliverable, ZERO),
            is_synthetic=True,
        )
        if self.audit_logger is not None:
            self.audit_logger.log_synthetic_burst(line_item.id, burst)
        return (burst,)
