"""
Mock media plan tracker.

Simulates the media plan store that holds booked line items and their burst
schedules. In production this is the campaign management database; records
arrive loosely typed, with field names that differ between containers and
bursts that are sometimes stored as a JSON string.
"""

import json
import random
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from burst_pacing.models.pacing import BuyType, Channel

CHANNEL_PREFIXES = {
    Channel.PROGRAMMATIC_DISPLAY: "pd",
    Channel.PROGRAMMATIC_VIDEO: "pv",
    Channel.META: "meta",
    Channel.TIKTOK: "tt",
}

CHANNEL_BUY_TYPES = {
    Channel.PROGRAMMATIC_DISPLAY: [BuyType.CPM, BuyType.CPC],
    Channel.PROGRAMMATIC_VIDEO: [BuyType.CPV, BuyType.CPM],
    Channel.META: [BuyType.CPM, BuyType.CPC, BuyType.LEADS],
    Channel.TIKTOK: [BuyType.CPV, BuyType.CPM],
}

# Deliverable units bought per dollar for each buy type
UNIT_RATES = {
    BuyType.CPM: 80,
    BuyType.CPC: 0.5,
    BuyType.CPV: 20,
    BuyType.CPA: 0.05,
    BuyType.LEADS: 0.05,
    BuyType.BONUS: 0.05,
    BuyType.FIXED_COST: 0,
}


class MockMediaPlanTracker:
    """
    Simulated media plan with line items across all channels.

    Each line item gets one or two bursts inside the campaign flight. Field
    naming alternates between snake_case and camelCase, bursts alternate
    between a list and a JSON string, and the last line item of every
    channel carries no bursts at all (booked total and dates only).
    """

    def __init__(
        self,
        campaign_start: Optional[date] = None,
        flight_days: int = 60,
        line_items_per_channel: int = 3,
        channels: Optional[List[Channel]] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize tracker and generate the media plan.

        Args:
            campaign_start: First day of the campaign (default: 14 days ago)
            flight_days: Campaign length in days
            line_items_per_channel: Line items generated per channel
            channels: Channels to generate (default: all)
            seed: Random seed for reproducibility
        """
        self.campaign_start = campaign_start or date.today() - timedelta(days=14)
        self.campaign_end = self.campaign_start + timedelta(days=flight_days - 1)
        self.line_items_per_channel = line_items_per_channel
        self.channels = channels or list(Channel)
        self.rng = random.Random(seed)

        self.line_items: Dict[Channel, List[Dict[str, Any]]] = {
            channel: self._generate_line_items(channel)
            for channel in self.channels
        }

    def _generate_line_items(self, channel: Channel) -> List[Dict[str, Any]]:
        records = []
        flight_days = (self.campaign_end - self.campaign_start).days + 1

        for i in range(self.line_items_per_channel):
            line_item_id = f"{CHANNEL_PREFIXES[channel]}-{i + 1:03d}"
            buy_type = self.rng.choice(CHANNEL_BUY_TYPES[channel])
            camel = i % 2 == 1

            if i == self.line_items_per_channel - 1 and i > 0:
                budget = self.rng.randint(5, 30) * 500
                records.append(self._record(camel, {
                    "id": line_item_id,
                    "name": f"{channel.value} always-on {i + 1}",
                    "buy_type": buy_type.value,
                    "booked_spend": budget,
                    "booked_deliverable": round(budget * UNIT_RATES[buy_type]),
                    "start": self.campaign_start.isoformat(),
                    "end": self.campaign_end.isoformat(),
                }))
                continue

            bursts = []
            cursor = self.campaign_start
            for _ in range(self.rng.choice([1, 2])):
                remaining = (self.campaign_end - cursor).days + 1
                if remaining <= 0:
                    break
                length = self.rng.randint(min(7, remaining), remaining)
                budget = self.rng.randint(4, 40) * 250
                end = cursor + timedelta(days=length - 1)
                bursts.append(self._burst(camel, cursor, end, budget, buy_type))
                cursor = end + timedelta(days=1 + self.rng.randint(0, flight_days // 10))

            record = self._record(camel, {
                "id": line_item_id,
                "name": f"{channel.value} line item {i + 1}",
                "buy_type": buy_type.value,
            })
            if i % 2 == 0:
                record["bursts"] = bursts
            else:
                record["bursts_json"] = json.dumps(bursts)
            records.append(record)

        return records

    def _record(self, camel: bool, fields: Dict[str, Any]) -> Dict[str, Any]:
        names = {
            "id": ("line_item_id", "lineItemId"),
            "name": ("line_item_name", "lineItemName"),
            "buy_type": ("buy_type", "buyType"),
            "booked_spend": ("total_budget", "totalBudget"),
            "booked_deliverable": ("goal_deliverable_total", "goalDeliverableTotal"),
            "start": ("start_date", "startDate"),
            "end": ("end_date", "endDate"),
        }
        return {names[key][int(camel)]: value for key, value in fields.items()}

    def _burst(
        self,
        camel: bool,
        start: date,
        end: date,
        budget: int,
        buy_type: BuyType
    ) -> Dict[str, Any]:
        deliverable = round(budget * UNIT_RATES[buy_type])
        if camel:
            return {
                "startDate": start.isoformat(),
                "endDate": end.isoformat(),
                "mediaInvestment": f"${budget:,.2f}",
                "calculatedValue": str(deliverable),
            }
        return {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "budget_number": budget,
            "calculated_value_number": deliverable,
        }

    def get_line_items(self, channel: Channel) -> List[Dict[str, Any]]:
        """
        Raw line item records for one channel.

        Args:
            channel: Channel to fetch

        Returns:
            List of raw record dictionaries (empty for unknown channels)
        """
        return list(self.line_items.get(channel, []))

    def get_plan(self) -> Dict[str, Any]:
        """
        Whole media plan in the JSON shape read by the command line entry point.

        Returns:
            Dictionary with campaign dates and line items keyed by channel
        """
        return {
            "campaign_start": self.campaign_start.isoformat(),
            "campaign_end": self.campaign_end.isoformat(),
            "line_items": {
                channel.value: self.get_line_items(channel)
                for channel in self.channels
            },
        }

    def add_line_item(self, channel: Channel, record: Dict[str, Any]):
        """
        Add a raw line item record.

        Useful for test scenarios where you want to control exact bursts.
        """
        self.line_items.setdefault(channel, []).append(record)
        if channel not in self.channels:
            self.channels.append(channel)

    def get_summary(self) -> Dict[str, Any]:
        """
        Get summary of the generated plan.

        Returns:
            Dictionary with line item counts per channel
        """
        return {
            "campaign_start": self.campaign_start.isoformat(),
            "campaign_end": self.campaign_end.isoformat(),
            "total_line_items": sum(len(items) for items in self.line_items.values()),
            "line_items_by_channel": {
                channel.value: len(items) for channel, items in self.line_items.items()
            },
        }
