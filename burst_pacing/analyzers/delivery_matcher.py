"""
Delivery row matching and daily bucketing.

Rows are associated with a line item by exact equality of normalized
identifiers only. There is no name-based or fuzzy fallback: an identifier
collision would silently move spend between line items on an invoice.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from burst_pacing.models.pacing import DeliverableKey, DeliveryRow, Window, ZERO
from burst_pacing.normalizers.records import normalize_identifier
from burst_pacing.utils.audit_logger import AuditLogger


@dataclass
class DailyActuals:
    """Summed delivery for one line item on one day."""
    spend: Decimal = ZERO
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    views: int = 0

    def add(self, row: DeliveryRow):
        self.spend += row.spend
        self.impressions += row.impressions
        self.clicks += row.clicks
        self.conversions += row.conversions
        self.views += row.views

    def value(self, key: Optional[DeliverableKey]) -> Decimal:
        """Deliverable value for key, or 0 when there is no key."""
        if key is None:
            return ZERO
        return Decimal(getattr(self, key.value))


@dataclass
class MatchResult:
    """Rows matched to one line item, plus counts for diagnostics."""
    line_item_id: Optional[str]
    rows: List[DeliveryRow] = field(default_factory=list)
    candidate_count: int = 0
    daily: Dict[date, DailyActuals] = field(default_factory=dict)

    @property
    def match_count(self) -> int:
        return len(self.rows)


class DeliveryMatcher:
    """Associate per-day delivery rows with line items."""

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self.audit_logger = audit_logger

    def match(
        self,
        line_item_id: Optional[str],
        rows: Iterable[DeliveryRow]
    ) -> MatchResult:
        """
        Select rows whose normalized identifier equals the line item's.

        Args:
            line_item_id: Line item identifier (normalized here again)
            rows: All delivery rows for the channel

        Returns:
            MatchResult with matched rows and per-day sums. A line item
            without a usable identifier matches nothing.
        """
        rows = list(rows)
        target = normalize_identifier(line_item_id)
        matched = []
        if target is not None:
            matched = [
                row for row in rows
                if normalize_identifier(row.line_item_id) == target
            ]

        if not matched and rows and self.audit_logger is not None:
            self.audit_logger.log_match(target, 0, len(rows))

        return MatchResult(
            line_item_id=target,
            rows=matched,
            candidate_count=len(rows),
            daily=self.bucket_by_day(matched),
        )

    def bucket_by_day(self, rows: Iterable[DeliveryRow]) -> Dict[date, DailyActuals]:
        """Sum rows that fall on the same calendar day."""
        daily: Dict[date, DailyActuals] = {}
        for row in rows:
            daily.setdefault(row.date, DailyActuals()).add(row)
        return daily

    def dense_series(
        self,
        window: Window,
        daily: Dict[date, DailyActuals]
    ) -> List[Tuple[date, DailyActuals]]:
        """
        One entry per day, with zero actuals on days without delivery.

        Covers every day of a resolved window. When the window cannot be
        resolved the series falls back to the sorted dates present in the
        matched rows.
        """
        if window.is_resolved:
            return [(day, daily.get(day, DailyActuals())) for day in window.days()]
        return [(day, daily[day]) for day in sorted(daily)]
