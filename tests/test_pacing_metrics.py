"""
Unit tests for PacingMetricsBuilder.

Tests per line item actual vs expected pacing.
"""

import pytest
from datetime import date
from decimal import Decimal

from burst_pacing.analyzers.pacing_metrics import PacingMetricsBuilder, resolve_as_of
from burst_pacing.models.pacing import (
    Burst,
    BuyType,
    DeliverableKey,
    DeliveryRow,
    LineItem,
    Window,
)
from burst_pacing.utils.audit_logger import AuditLogger


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def builder(audit_logger):
    return PacingMetricsBuilder(audit_logger=audit_logger, timezone="UTC")


def cpm_line_item(**overrides):
    """CPM line item with one burst from 2024-01-01 to 2024-01-10."""
    fields = {
        "id": "li-1",
        "buy_type": BuyType.CPM,
        "bursts": (Burst(date(2024, 1, 1), date(2024, 1, 10), 1000, 200000),),
    }
    fields.update(overrides)
    return LineItem(**fields)


class TestResolveAsOf:
    """Test the cutoff date rule."""

    def test_caller_value_wins(self):
        window = Window(date(2024, 1, 1), date(2024, 1, 10))
        assert resolve_as_of(window, date(2024, 3, 1), date(2024, 1, 5)) == date(2024, 3, 1)

    def test_today_clamped_to_window_end(self):
        window = Window(date(2024, 1, 1), date(2024, 1, 10))
        assert resolve_as_of(window, None, date(2024, 2, 1)) == date(2024, 1, 10)
        assert resolve_as_of(window, None, date(2024, 1, 4)) == date(2024, 1, 4)

    def test_open_ended_window(self):
        window = Window(start_date=date(2024, 1, 1))
        assert resolve_as_of(window, None, date(2024, 2, 1)) == date(2024, 2, 1)


class TestBuild:
    """Test building pacing for a line item."""

    def test_cpm_scenario(self, builder):
        """Test that CPM delivery counts impressions as the deliverable."""
        rows = [DeliveryRow(date(2024, 1, 3), "LI-1", Decimal("50"), impressions=10000)]

        metrics = builder.build(cpm_line_item(), rows, as_of=date(2024, 1, 5), today=date(2024, 1, 5))
        result = metrics.result

        assert result.deliverable_key == DeliverableKey.IMPRESSIONS
        assert result.deliverable.actual_to_date == Decimal("10000")
        assert result.deliverable.expected_to_date == Decimal("100000")
        assert result.spend.actual_to_date == Decimal("50")
        assert result.spend.expected_to_date == Decimal("500")
        assert result.spend.pacing_pct == Decimal("10.00")
        assert result.spend.goal_total == Decimal("1000")
        assert result.matched_row_count == 1
        assert result.as_of_date == date(2024, 1, 5)

    def test_dense_series_covers_window(self, builder):
        rows = [DeliveryRow(date(2024, 1, 3), "li-1", Decimal("50"), impressions=10000)]

        result = builder.build(cpm_line_item(), rows, today=date(2024, 1, 5)).result

        assert len(result.series) == 10
        assert result.series[0].date == date(2024, 1, 1)
        assert result.series[2].actual_spend == Decimal("50")
        assert result.series[0].actual_spend == 0
        assert result.series[0].expected_spend == Decimal("100")
        assert result.series[0].expected_deliverable == Decimal("20000")

    def test_rows_after_as_of_excluded_from_totals(self, builder):
        rows = [
            DeliveryRow(date(2024, 1, 2), "li-1", Decimal("100")),
            DeliveryRow(date(2024, 1, 8), "li-1", Decimal("300")),
        ]

        result = builder.build(cpm_line_item(), rows, as_of=date(2024, 1, 5), today=date(2024, 1, 5)).result

        assert result.spend.actual_to_date == Decimal("100")
        assert result.series[7].actual_spend == Decimal("300")

    def test_rows_outside_window_ignored(self, builder):
        rows = [DeliveryRow(date(2024, 1, 15), "li-1", Decimal("999"))]

        result = builder.build(cpm_line_item(), rows, as_of=date(2024, 1, 20), today=date(2024, 1, 20)).result

        assert result.spend.actual_to_date == 0
        assert result.spend.expected_to_date == Decimal("1000")

    def test_default_as_of_clamped_to_window_end(self, builder):
        result = builder.build(cpm_line_item(), [], today=date(2024, 2, 1)).result

        assert result.as_of_date == date(2024, 1, 10)
        assert result.spend.expected_to_date == Decimal("1000")

    def test_zero_guard(self, builder):
        """Test that pacing is 0 when nothing is expected, even with delivery."""
        line_item = cpm_line_item(bursts=(Burst(date(2024, 1, 1), date(2024, 1, 10), 0, 0),))
        rows = [DeliveryRow(date(2024, 1, 2), "li-1", Decimal("50"), impressions=500)]

        result = builder.build(line_item, rows, as_of=date(2024, 1, 5), today=date(2024, 1, 5)).result

        assert result.spend.actual_to_date == Decimal("50")
        assert result.spend.expected_to_date == 0
        assert result.spend.pacing_pct == 0
        assert result.deliverable.pacing_pct == 0

    def test_before_flight_start(self, builder):
        result = builder.build(cpm_line_item(), [], as_of=date(2023, 12, 31), today=date(2023, 12, 31)).result

        assert result.spend.expected_to_date == 0
        assert result.spend.pacing_pct == 0

    def test_fixed_cost_has_no_deliverable(self, builder):
        line_item = cpm_line_item(buy_type=BuyType.FIXED_COST)

        result = builder.build(line_item, [], today=date(2024, 1, 5)).result

        assert result.deliverable is None
        assert result.deliverable_key is None
        assert all(point.expected_deliverable == 0 for point in result.series)

    def test_unresolvable_window(self, builder):
        """Test that a line item without any dates is unavailable, not zero-paced."""
        line_item = LineItem(id="li-2", buy_type=BuyType.CPM, booked_spend=Decimal("1000"))

        result = builder.build(line_item, [], today=date(2024, 1, 5)).result

        assert result.is_available is False
        assert result.series == []
        assert result.as_of_date is None
        assert result.spend.actual_to_date == 0
        assert result.deliverable.pacing_pct == 0

    def test_campaign_dates_fallback_with_synthetic_burst(self, builder, audit_logger):
        line_item = LineItem(id="li-3", buy_type=BuyType.CPC, booked_spend=Decimal("3000"),
                             booked_deliverable=Decimal("600"))

        metrics = builder.build(
            line_item,
            [DeliveryRow(date(2024, 1, 1), "li-3", Decimal("90"), clicks=20)],
            as_of=date(2024, 1, 10),
            today=date(2024, 1, 10),
            campaign_start=date(2024, 1, 1),
            campaign_end=date(2024, 1, 30),
        )
        result = metrics.result

        assert result.is_estimated is True
        assert result.window == Window(date(2024, 1, 1), date(2024, 1, 30))
        assert result.spend.expected_to_date == Decimal("1000")
        assert result.deliverable.expected_to_date == Decimal("200")
        assert result.deliverable.actual_to_date == Decimal("20")
        assert metrics.bursts[0].is_synthetic is True
        assert len(audit_logger.get_events(event_type="synthetic_burst")) == 1

    def test_line_item_dates_win_over_campaign_dates(self, builder):
        line_item = LineItem(id="li-4", buy_type=BuyType.CPM, booked_spend=Decimal("100"),
                             start_date=date(2024, 1, 5), end_date=date(2024, 1, 6))

        result = builder.build(
            line_item, [], today=date(2024, 1, 5),
            campaign_start=date(2024, 1, 1), campaign_end=date(2024, 1, 31),
        ).result

        assert result.window == Window(date(2024, 1, 5), date(2024, 1, 6))

    def test_unmatched_rows_give_zero_actuals(self, builder, audit_logger):
        rows = [DeliveryRow(date(2024, 1, 2), "other", Decimal("50"))]

        result = builder.build(cpm_line_item(), rows, as_of=date(2024, 1, 5), today=date(2024, 1, 5)).result

        assert result.matched_row_count == 0
        assert result.spend.actual_to_date == 0
        assert len(audit_logger.get_events(event_type="no_delivery_match")) == 1

    def test_pacing_result_logged(self, builder, audit_logger):
        builder.build(cpm_line_item(), [], today=date(2024, 1, 5))

        events = audit_logger.get_events(event_type="pacing_result")
        assert len(events) == 1
        assert events[0]["line_item_id"] == "li-1"

    def test_actuals_kept_unrounded(self, builder):
        rows = [DeliveryRow(date(2024, 1, 2), "li-1", Decimal("0.004"))]

        metrics = builder.build(cpm_line_item(), rows, today=date(2024, 1, 5))

        assert metrics.actuals_daily[date(2024, 1, 2)][0] == Decimal("0.004")
        assert metrics.result.series[1].actual_spend == Decimal("0.00")
