"""
Mock ad platform delivery API.

Simulates the per-day delivery rows returned by the programmatic, Meta and
TikTok reporting feeds, with various pacing scenarios for testing the engine
without real platform credentials.
"""

import random
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from burst_pacing.analyzers.deliverables import DeliverableKeyResolver
from burst_pacing.calculators.proration import ProrationCalculator
from burst_pacing.calculators.window import WindowResolver
from burst_pacing.models.pacing import Channel, DeliverableKey, LineItem, MetricKind

# Field names each platform feed uses
ROW_FORMATS = {
    Channel.PROGRAMMATIC_DISPLAY: {
        "date": "date", "id": "matchedPostfix", "spend": "spend",
        "impressions": "impressions", "clicks": "clicks",
        "conversions": "conversions", "views": "views",
    },
    Channel.PROGRAMMATIC_VIDEO: {
        "date": "date", "id": "matchedPostfix", "spend": "spend",
        "impressions": "impressions", "clicks": "clicks",
        "conversions": "conversions", "views": "views",
    },
    Channel.META: {
        "date": "dateDay", "id": "lineItem", "spend": "amountSpent",
        "impressions": "impressions", "clicks": "clicks",
        "conversions": "results", "views": "video3sViews",
    },
    Channel.TIKTOK: {
        "date": "date_day", "id": "line_item_id", "spend": "amount_spent",
        "impressions": "impressions", "clicks": "clicks",
        "conversions": "conversions", "views": "video_3s_views",
    },
}


class MockPlatformAPI:
    """
    Simulated platform reporting feed.

    Each line item is assigned a pacing scenario:
    - Healthy line items (within 10% of expected)
    - Behind line items (under-delivering)
    - Ahead line items (over-delivering)
    - Zero delivery line items (no rows at all)

    Rows are generated per day from the line item's expected daily delivery,
    scaled by the scenario factor with small daily jitter. A few rows for
    unknown line items are mixed in, as real feeds contain delivery for
    line items outside the plan.
    """

    VARIANCE_SCENARIOS = {
        "healthy": [0.92, 0.95, 0.97, 1.00, 1.03, 1.05, 1.08],
        "behind": [0.50, 0.60, 0.70, 0.80],
        "ahead": [1.20, 1.35, 1.50],
        "zero_delivery": [0.0],
    }

    def __init__(
        self,
        channel: Channel,
        line_items: Iterable[LineItem],
        as_of: Optional[date] = None,
        seed: Optional[int] = None,
        scenarios: Optional[Dict[str, str]] = None,
        stray_rows: int = 3
    ):
        """
        Initialize mock feed for one channel.

        Args:
            channel: Channel whose row format is produced
            line_items: Normalized line items to deliver against
            as_of: Last day with delivery (default: yesterday)
            seed: Random seed for reproducibility
            scenarios: Optional line item id -> scenario name overrides
            stray_rows: Rows generated for line items outside the plan
        """
        self.channel = channel
        self.line_items = list(line_items)
        self.as_of = as_of or date.today() - timedelta(days=1)
        self.rng = random.Random(seed)
        self.proration = ProrationCalculator()
        self.window_resolver = WindowResolver()
        self.deliverables = DeliverableKeyResolver()
        self.format = ROW_FORMATS[channel]

        scenario_distribution = ["healthy"] * 5 + ["behind", "ahead"] * 2 + ["zero_delivery"]
        overrides = scenarios or {}
        self.scenarios = {
            item.id: overrides.get(item.id) or self.rng.choice(scenario_distribution)
            for item in self.line_items
        }

        self.rows: List[Dict[str, Any]] = []
        for item in self.line_items:
            self.rows.extend(self._generate_rows(item))
        self.rows.extend(self._generate_stray_rows(stray_rows))

    def _generate_rows(self, line_item: LineItem) -> List[Dict[str, Any]]:
        scenario = self.scenarios[line_item.id]
        factor = self.rng.choice(self.VARIANCE_SCENARIOS[scenario])
        if factor == 0 or line_item.id is None:
            return []

        window = self.window_resolver.resolve(
            line_item.bursts, line_item.start_date, line_item.end_date
        )
        bursts = self.proration.effective_bursts(line_item, window)
        key = self.deliverables.resolve(line_item.buy_type, line_item.channel or self.channel)
        daily_spend = self.proration.daily_proration(bursts, MetricKind.SPEND)
        daily_units = self.proration.daily_proration(bursts, MetricKind.DELIVERABLE)

        rows = []
        for day in sorted(daily_spend):
            if day > self.as_of:
                break
            jitter = Decimal(str(round(factor * self.rng.uniform(0.9, 1.1), 4)))
            units = int(daily_units.get(day, 0) * jitter)
            rows.append(self._row(
                day,
                line_item.id.upper(),
                daily_spend[day] * jitter,
                {key: units} if key else {},
            ))
        return rows

    def _generate_stray_rows(self, count: int) -> List[Dict[str, Any]]:
        rows = []
        for i in range(count):
            day = self.as_of - timedelta(days=i)
            rows.append(self._row(
                day,
                f"unplanned-{i + 1:03d}",
                Decimal(self.rng.randint(10, 500)),
                {DeliverableKey.IMPRESSIONS: self.rng.randint(1000, 50000)},
            ))
        return rows

    def _row(
        self,
        day: date,
        line_item_id: str,
        spend: Decimal,
        units: Dict[DeliverableKey, int]
    ) -> Dict[str, Any]:
        row = {
            self.format["date"]: day.isoformat(),
            self.format["id"]: line_item_id,
            self.format["spend"]: f"{spend:.2f}",
            "channel": self.channel.value,
        }
        for key in DeliverableKey:
            row[self.format[key.value]] = units.get(key, 0)
        return row

    def get_delivery_rows(self, line_item_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Fetch raw delivery rows.

        Args:
            line_item_id: Optional filter (case-insensitive)

        Returns:
            List of raw row dictionaries in this platform's field naming
        """
        if line_item_id is None:
            return list(self.rows)
        wanted = line_item_id.lower()
        return [
            row for row in self.rows
            if str(row[self.format["id"]]).lower() == wanted
        ]

    def get_scenario(self, line_item_id: str) -> Optional[str]:
        """Pacing scenario assigned to a line item, or None if unknown."""
        return self.scenarios.get(line_item_id)

    def get_summary_stats(self) -> Dict[str, Any]:
        """
        Get summary statistics for the generated feed.

        Returns:
            Dictionary with row counts and scenario distribution
        """
        scenario_counts: Dict[str, int] = {}
        for scenario in self.scenarios.values():
            scenario_counts[scenario] = scenario_counts.get(scenario, 0) + 1

        return {
            "channel": self.channel.value,
            "total_rows": len(self.rows),
            "total_line_items": len(self.line_items),
            "total_spend": float(sum(
                Decimal(row[self.format["spend"]]) for row in self.rows
            )),
            "scenario_distribution": scenario_counts,
        }
