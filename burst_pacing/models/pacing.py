"""
Data models for burst proration and pacing.

This module defines the core data structures used throughout the pacing engine:
- Channel, BuyType, DeliverableKey and MetricKind enums for type safety
- Burst and LineItem for the booked flight schedule
- DeliveryRow for a single day of observed delivery
- Window, Metric, DailyPoint and PacingResult for pacing output
- BillingMonth for month-bucketed invoice amounts
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

ZERO = Decimal("0")
CENT = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places. Only used when a value leaves the engine."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class Channel(Enum):
    """Delivery channels that produce per-day rows."""
    PROGRAMMATIC_DISPLAY = "programmatic-display"
    PROGRAMMATIC_VIDEO = "programmatic-video"
    META = "meta"
    TIKTOK = "tiktok"

    @classmethod
    def parse(cls, value) -> Optional["Channel"]:
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for channel in cls:
            if channel.value == text:
                return channel
        return None


class BuyType(Enum):
    """How a line item is bought."""
    CPM = "CPM"
    CPC = "CPC"
    CPV = "CPV"
    CPA = "CPA"
    LEADS = "LEADS"
    BONUS = "BONUS"
    FIXED_COST = "FIXED COST"

    @classmethod
    def parse(cls, value) -> Optional["BuyType"]:
        """
        Case-insensitive lookup.

        "fixed_cost", "Fixed-Cost" and "FIXED COST" all resolve to FIXED_COST.
        Unknown or absent values return None.
        """
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().upper().replace("_", " ").replace("-", " ")
        text = " ".join(text.split())
        for buy_type in cls:
            if buy_type.value == text:
                return buy_type
        return None


class DeliverableKey(Enum):
    """Delivery metric counted against a deliverable goal."""
    IMPRESSIONS = "impressions"
    CLICKS = "clicks"
    CONVERSIONS = "conversions"
    VIEWS = "views"


class MetricKind(Enum):
    """Which burst total is being prorated."""
    SPEND = "spend"
    DELIVERABLE = "deliverable"


@dataclass(frozen=True)
class Burst:
    """
    A contiguous, date-bounded slice of a line item's flight.

    Immutable once normalized. A synthetic burst is one the engine created
    from booked totals because the line item had no schedule; UIs should
    show it as "estimated" rather than "booked".
    """
    start_date: date
    end_date: date
    total_spend: Decimal = ZERO
    total_deliverable: Decimal = ZERO
    is_synthetic: bool = False

    def __post_init__(self):
        # Frozen: coerce plain ints/floats once, at construction
        object.__setattr__(self, "total_spend", Decimal(str(self.total_spend)))
        object.__setattr__(
            self, "total_deliverable", Decimal(str(self.total_deliverable))
        )
        if self.start_date > self.end_date:
            raise ValueError(
                f"Burst start {self.start_date} is after end {self.end_date}"
            )
        if self.total_spend < 0 or self.total_deliverable < 0:
            raise ValueError("Burst totals must be non-negative")

    @property
    def duration_days(self) -> int:
        """Inclusive number of days in the burst (a single-day burst is 1)."""
        return (self.end_date - self.start_date).days + 1

    def total(self, kind: MetricKind) -> Decimal:
        if kind is MetricKind.SPEND:
            return self.total_spend
        return self.total_deliverable

    def label(self, display_index: int) -> str:
        """
        Display label such as "Burst 2" or "Burst 2 - Feb".

        The month suffix is only added when the burst starts and ends in the
        same calendar month.
        """
        base = f"Burst {display_index}"
        same_month = (
            self.start_date.year == self.end_date.year and
            self.start_date.month == self.end_date.month
        )
        if not same_month:
            return base
        return f"{base} - {self.start_date.strftime('%b')}"

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "total_spend": str(self.total_spend),
            "total_deliverable": str(self.total_deliverable),
            "is_synthetic": self.is_synthetic,
        }


@dataclass
class LineItem:
    """
    A booked line item with its burst schedule.

    booked_spend and booked_deliverable default to the sum over bursts when
    they are not supplied separately. start_date/end_date are line-item level
    fallback dates used only when the schedule has no bursts.
    """
    id: Optional[str]
    buy_type: Optional[BuyType] = None
    bursts: Tuple[Burst, ...] = ()
    booked_spend: Optional[Decimal] = None
    booked_deliverable: Optional[Decimal] = None
    name: Optional[str] = None
    channel: Optional[Channel] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True

    def __post_init__(self):
        self.bursts = tuple(self.bursts)
        if self.booked_spend is None:
            self.booked_spend = sum((b.total_spend for b in self.bursts), ZERO)
        if self.booked_deliverable is None:
            self.booked_deliverable = sum(
                (b.total_deliverable for b in self.bursts), ZERO
            )

    def booked(self, kind: MetricKind) -> Decimal:
        if kind is MetricKind.SPEND:
            return self.booked_spend
        return self.booked_deliverable


@dataclass(frozen=True)
class DeliveryRow:
    """One day of observed delivery for one line item."""
    date: date
    line_item_id: Optional[str]
    spend: Decimal = ZERO
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    views: int = 0
    channel: Optional[Channel] = None

    def value(self, key: DeliverableKey) -> int:
        """Deliverable count for the given key."""
        return getattr(self, key.value)

    def to_dict(self) -> Dict:
        return {
            "date": self.date.isoformat(),
            "line_item_id": self.line_item_id,
            "channel": self.channel.value if self.channel else None,
            "spend": str(self.spend),
            "impressions": self.impressions,
            "clicks": self.clicks,
            "conversions": self.conversions,
            "views": self.views,
        }


@dataclass(frozen=True)
class Window:
    """Resolved active flight period. Either end may be unknown."""
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def is_resolved(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    @property
    def is_empty(self) -> bool:
        return self.start_date is None and self.end_date is None

    def days(self) -> Iterator[date]:
        """Every calendar day in the window, inclusive. Nothing if unresolved."""
        if not self.is_resolved:
            return
        cursor = self.start_date
        while cursor <= self.end_date:
            yield cursor
            cursor += timedelta(days=1)

    def to_dict(self) -> Dict:
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }


@dataclass
class Metric:
    """Actual vs expected-to-date figures for one measure."""
    actual_to_date: Decimal
    expected_to_date: Decimal
    delta: Decimal
    pacing_pct: Decimal
    goal_total: Decimal

    @classmethod
    def compute(
        cls,
        actual: Decimal,
        expected: Decimal,
        goal_total: Decimal
    ) -> "Metric":
        """
        Build a Metric from unrounded inputs.

        Pacing is 0 whenever nothing is expected yet, regardless of actual
        delivery. Rounding happens here and nowhere upstream.
        """
        pacing = (actual / expected) * 100 if expected > 0 else ZERO
        return cls(
            actual_to_date=round_money(actual),
            expected_to_date=round_money(expected),
            delta=round_money(actual - expected),
            pacing_pct=round_money(pacing),
            goal_total=round_money(goal_total),
        )

    @classmethod
    def zero(cls) -> "Metric":
        return cls.compute(ZERO, ZERO, ZERO)

    def to_dict(self) -> Dict:
        return {
            "actual_to_date": float(self.actual_to_date),
            "expected_to_date": float(self.expected_to_date),
            "delta": float(self.delta),
            "pacing_pct": float(self.pacing_pct),
            "goal_total": float(self.goal_total),
        }


@dataclass
class DailyPoint:
    """One calendar day of the dense pacing series."""
    date: date
    actual_spend: Decimal = ZERO
    actual_deliverable: Decimal = ZERO
    expected_spend: Decimal = ZERO
    expected_deliverable: Decimal = ZERO

    def to_dict(self) -> Dict:
        return {
            "date": self.date.isoformat(),
            "actual_spend": float(self.actual_spend),
            "actual_deliverable": float(self.actual_deliverable),
            "expected_spend": float(self.expected_spend),
            "expected_deliverable": float(self.expected_deliverable),
        }


@dataclass
class PacingResult:
    """
    Pacing output for a line item or a whole container.

    deliverable is None when the buy type has no deliverable key. A result
    whose window could not be resolved at all has is_available == False,
    which separates "no pacing possible" from "zero because nothing has
    happened yet".
    """
    as_of_date: Optional[date]
    spend: Metric
    deliverable: Optional[Metric] = None
    series: List[DailyPoint] = field(default_factory=list)
    line_item_id: Optional[str] = None
    window: Window = field(default_factory=Window)
    matched_row_count: int = 0
    is_estimated: bool = False
    deliverable_key: Optional[DeliverableKey] = None

    @property
    def is_available(self) -> bool:
        return not self.window.is_empty

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            "line_item_id": self.line_item_id,
            "as_of_date": self.as_of_date.isoformat() if self.as_of_date else None,
            "spend": self.spend.to_dict(),
            "deliverable": self.deliverable.to_dict() if self.deliverable else None,
            "deliverable_key": self.deliverable_key.value if self.deliverable_key else None,
            "series": [point.to_dict() for point in self.series],
            "window": self.window.to_dict(),
            "matched_row_count": self.matched_row_count,
            "is_estimated": self.is_estimated,
            "is_available": self.is_available,
        }


@dataclass
class BillingMonth:
    """Invoice amount for one calendar month."""
    month_key: str
    amount: Decimal
    media: Decimal = ZERO
    fee: Decimal = ZERO
    is_estimated: bool = False

    def to_dict(self) -> Dict:
        return {
            "month_key": self.month_key,
            "amount": float(self.amount),
            "media": float(self.media),
            "fee": float(self.fee),
            "is_estimated": self.is_estimated,
        }
