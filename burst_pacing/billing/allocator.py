"""
Monthly billing schedules.

The billing schedule is the month-bucketed variant of pacing proration:
every burst of every active line item is spread over its days and summed
per calendar month. Fee terms then split each month into media and fee
portions. A manually edited schedule is only accepted when it reconciles
to the booked total to the cent.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from burst_pacing.calculators.proration import DEFAULT_MONTH_FORMAT, ProrationCalculator
from burst_pacing.calculators.window import WindowResolver
from burst_pacing.models.pacing import (
    BillingMonth,
    LineItem,
    MetricKind,
    ZERO,
    round_money,
)
from burst_pacing.normalizers.bursts import parse_number
from burst_pacing.utils.audit_logger import AuditLogger

HUNDRED = Decimal("100")


class BillingMismatch(ValueError):
    """A manual billing schedule does not add up to the booked total."""

    def __init__(self, expected_total: Decimal, actual_total: Decimal):
        self.expected_total = expected_total
        self.actual_total = actual_total
        self.difference = actual_total - expected_total
        super().__init__(
            f"Manual billing total ${actual_total:,.2f} does not match booked "
            f"total ${expected_total:,.2f} (difference ${self.difference:,.2f})"
        )


@dataclass(frozen=True)
class FeeTerms:
    """
    Agency fee terms for a billing schedule.

    Attributes:
        fee_percentage: Fee as a percentage (e.g. 15 for 15%)
        budget_includes_fees: Burst budgets are gross (media + fee)
        client_pays_for_media: Client pays the platform directly, only the
            fee is billed
    """
    fee_percentage: Decimal = ZERO
    budget_includes_fees: bool = False
    client_pays_for_media: bool = False

    def __post_init__(self):
        object.__setattr__(self, "fee_percentage", Decimal(str(self.fee_percentage)))
        if self.fee_percentage < 0 or self.fee_percentage >= HUNDRED:
            raise ValueError(
                f"fee_percentage must be in [0, 100), got {self.fee_percentage}"
            )

    def split(self, budget: Decimal) -> Tuple[Decimal, Decimal]:
        """
        Split a budget amount into (media, fee).

        Args:
            budget: Unrounded budget amount

        Returns:
            Tuple of unrounded (media, fee)
        """
        rate = self.fee_percentage / HUNDRED

        if self.budget_includes_fees and self.client_pays_for_media:
            return ZERO, budget * rate
        if self.budget_includes_fees:
            media = budget / (1 + rate)
            return media, budget - media
        if self.client_pays_for_media:
            return ZERO, budget / (HUNDRED - self.fee_percentage) * self.fee_percentage
        return budget, budget * rate


@dataclass(frozen=True)
class BillingSchedule:
    """
    Month-by-month invoice amounts for a media plan.

    booked_total is what the client was booked for: the campaign budget,
    or the booked spend of every active line item plus fees. Manual
    overrides must add up to it. allocated_total is the amount the bursts
    actually spread across months; the two differ when booked budgets and
    burst schedules disagree or a line item has no flight window.
    """
    months: Tuple[BillingMonth, ...] = ()
    booked_total: Decimal = ZERO
    allocated_total: Decimal = ZERO
    is_manual: bool = False
    audit_logger: Optional[AuditLogger] = field(default=None, compare=False, repr=False)

    @property
    def total(self) -> Decimal:
        return sum((month.amount for month in self.months), ZERO)

    @property
    def is_estimated(self) -> bool:
        return any(month.is_estimated for month in self.months)

    @property
    def unallocated(self) -> Decimal:
        """Booked amount the months do not account for."""
        return self.booked_total - self.allocated_total

    def amounts(self) -> Dict[str, Decimal]:
        return {month.month_key: month.amount for month in self.months}

    def with_manual_override(self, amounts: Mapping[str, object]) -> "BillingSchedule":
        """
        Replace the computed amounts with manually entered ones.

        Args:
            amounts: Month key -> amount (Decimal, number or currency string)

        Returns:
            New manual BillingSchedule; this schedule is not modified

        Raises:
            BillingMismatch: If the manual total differs from booked_total
        """
        months = tuple(
            BillingMonth(
                month_key=key,
                amount=round_money(parse_number(value)),
                media=round_money(parse_number(value)),
            )
            for key, value in amounts.items()
        )
        manual_total = sum((month.amount for month in months), ZERO)

        if manual_total != self.booked_total:
            error = BillingMismatch(self.booked_total, manual_total)
            if self.audit_logger is not None:
                self.audit_logger.log_billing_mismatch(error)
            raise error

        return replace(self, months=months, is_manual=True)

    def format_amounts(self) -> Dict[str, str]:
        """Month key -> display string, e.g. "$1,234.50"."""
        return {month.month_key: f"${month.amount:,.2f}" for month in self.months}

    def to_dict(self) -> Dict:
        return {
            "months": [month.to_dict() for month in self.months],
            "booked_total": float(self.booked_total),
            "allocated_total": float(self.allocated_total),
            "total": float(self.total),
            "is_manual": self.is_manual,
        }


class BillingAllocator:
    """Build billing schedules from normalized line items."""

    def __init__(
        self,
        proration: Optional[ProrationCalculator] = None,
        window_resolver: Optional[WindowResolver] = None,
        audit_logger: Optional[AuditLogger] = None,
        month_format: str = DEFAULT_MONTH_FORMAT
    ):
        self.audit_logger = audit_logger
        self.proration = proration or ProrationCalculator(audit_logger)
        self.window_resolver = window_resolver or WindowResolver()
        self.month_format = month_format

    def allocate(
        self,
        line_items: Iterable[LineItem],
        fees: Optional[FeeTerms] = None,
        campaign_start: Optional[date] = None,
        campaign_end: Optional[date] = None,
        campaign_budget: Optional[object] = None
    ) -> BillingSchedule:
        """
        Allocate every burst of every active line item to calendar months.

        Line items without bursts fall back to one synthetic burst over their
        (or the campaign's) window carrying the booked spend.

        Args:
            line_items: Normalized line items
            fees: Fee terms (default: no fee, budget is media)
            campaign_start: Campaign-level fallback start date
            campaign_end: Campaign-level fallback end date
            campaign_budget: Total the client was booked for, fees included
                (default: booked spend of the active line items plus fees)

        Returns:
            BillingSchedule in chronological month order
        """
        fees = fees or FeeTerms()
        media_by_month: Dict[Tuple[int, int], Decimal] = {}
        fee_by_month: Dict[Tuple[int, int], Decimal] = {}
        estimated_months = set()
        booked = ZERO

        for line_item in line_items:
            if not line_item.is_active:
                continue
            booked += sum(fees.split(line_item.booked_spend), ZERO)

            window = self.window_resolver.resolve(
                line_item.bursts,
                line_item.start_date or campaign_start,
                line_item.end_date or campaign_end,
            )
            bursts = self.proration.effective_bursts(line_item, window)
            estimated = any(burst.is_synthetic for burst in bursts)

            for key, budget in self.proration.month_totals(bursts, MetricKind.SPEND).items():
                media, fee = fees.split(budget)
                media_by_month[key] = media_by_month.get(key, ZERO) + media
                fee_by_month[key] = fee_by_month.get(key, ZERO) + fee
                if estimated:
                    estimated_months.add(key)

        months: List[BillingMonth] = []
        unrounded_total = ZERO
        for year, month in sorted(media_by_month):
            key = (year, month)
            media = media_by_month[key]
            fee = fee_by_month[key]
            unrounded_total += media + fee
            months.append(BillingMonth(
                month_key=date(year, month, 1).strftime(self.month_format),
                amount=round_money(media + fee),
                media=round_money(media),
                fee=round_money(fee),
                is_estimated=key in estimated_months,
            ))

        if campaign_budget is not None:
            booked = parse_number(campaign_budget)
        booked_total = round_money(booked)
        allocated_total = round_money(unrounded_total)
        if booked_total != allocated_total and self.audit_logger is not None:
            self.audit_logger.log_warning(
                "billing_unallocated",
                f"Billing months total ${allocated_total:,.2f} but ${booked_total:,.2f} was booked",
                context={
                    "booked_total": str(booked_total),
                    "allocated_total": str(allocated_total),
                },
            )

        return BillingSchedule(
            months=tuple(months),
            booked_total=booked_total,
            allocated_total=allocated_total,
            audit_logger=self.audit_logger,
        )
