"""
Main orchestrator for running burst pacing across a media plan.

This module provides the entry point for pacing every channel container of a
media plan against platform delivery data and building its billing schedule.
"""

import argparse
import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from burst_pacing.analyzers.container_aggregator import ContainerAggregator
from burst_pacing.analyzers.pacing_analyzer import PacingAnalyzer
from burst_pacing.analyzers.pacing_metrics import LineItemMetrics, PacingMetricsBuilder
from burst_pacing.billing.allocator import (
    BillingAllocator,
    BillingMismatch,
    BillingSchedule,
    FeeTerms,
)
from burst_pacing.config import EngineSettings
from burst_pacing.models.pacing import Channel, PacingResult
from burst_pacing.normalizers.bursts import parse_date
from burst_pacing.normalizers.records import DeliveryRowNormalizer, LineItemNormalizer
from burst_pacing.utils.audit_logger import AuditLogger
from burst_pacing.utils.slack_notifier import SlackNotifier


@dataclass
class ContainerReport:
    """Pacing output for one channel container."""
    channel: Channel
    result: PacingResult
    line_items: List[LineItemMetrics] = field(default_factory=list)
    classification: Dict[str, Any] = field(default_factory=dict)
    recommendation: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "channel": self.channel.value,
            "result": self.result.to_dict(),
            "line_items": [m.result.to_dict() for m in self.line_items if m.result],
            "classification": self.classification,
            "recommendation": self.recommendation,
        }


class PacingOrchestrator:
    """
    Orchestrates pacing across the channel containers of a media plan.

    Responsibilities:
    - Normalize raw line items and delivery rows
    - Build per line item pacing and aggregate it per container
    - Classify container pacing and produce recommendations
    - Build the media plan's monthly billing schedule
    - Write audit events and optionally notify Slack
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        notifier: Optional[SlackNotifier] = None,
        verbose: bool = True
    ):
        """
        Initialize orchestrator.

        Args:
            settings: Engine settings (default: EngineSettings())
            audit_logger: Audit logger (default: from settings.audit_log_file)
            notifier: Slack notifier (default: from settings.slack_webhook)
            verbose: Print progress and summary to stdout
        """
        self.settings = settings or EngineSettings()
        self.audit_logger = audit_logger or AuditLogger(log_file=self.settings.audit_log_file)
        self.notifier = notifier
        if self.notifier is None and self.settings.slack_webhook:
            self.notifier = SlackNotifier(self.settings.slack_webhook)
        self.verbose = verbose

        self.line_item_normalizer = LineItemNormalizer(self.audit_logger)
        self.row_normalizer = DeliveryRowNormalizer(self.audit_logger)
        self.builder = PacingMetricsBuilder(
            audit_logger=self.audit_logger,
            timezone=self.settings.timezone,
        )
        self.aggregator = ContainerAggregator(
            proration=self.builder.proration,
            timezone=self.settings.timezone,
        )
        self.analyzer = PacingAnalyzer(
            behind_threshold=self.settings.behind_threshold,
            ahead_threshold=self.settings.ahead_threshold,
        )
        self.billing = BillingAllocator(
            proration=self.builder.proration,
            audit_logger=self.audit_logger,
            month_format=self.settings.month_format,
        )

    def run_container(
        self,
        channel: Channel,
        raw_line_items: List[Dict[str, Any]],
        raw_rows: List[Dict[str, Any]],
        as_of: Optional[date] = None,
        today: Optional[date] = None,
        campaign_start: Optional[date] = None,
        campaign_end: Optional[date] = None
    ) -> ContainerReport:
        """
        Run pacing for a single channel container.

        Args:
            channel: Container channel
            raw_line_items: Raw line item records for the container
            raw_rows: Raw delivery rows for the container's channel
            as_of: Cutoff date (default: today clamped to the flight end)
            today: Override for the current date
            campaign_start: Campaign-level fallback start date
            campaign_end: Campaign-level fallback end date

        Returns:
            ContainerReport
        """
        line_items = [
            self.line_item_normalizer.normalize(raw, channel)
            for raw in raw_line_items
        ]
        rows = self.row_normalizer.normalize_many(raw_rows, channel)

        metrics = [
            self.builder.build(
                line_item,
                rows,
                as_of=as_of,
                today=today,
                campaign_start=campaign_start,
                campaign_end=campaign_end,
            )
            for line_item in line_items
            if line_item.is_active
        ]
        result = self.aggregator.aggregate(metrics, as_of=as_of, today=today)
        classification = self.analyzer.classify(result.spend)
        recommendation = self.analyzer.generate_recommendation(classification, result.spend)

        return ContainerReport(
            channel=channel,
            result=result,
            line_items=metrics,
            classification=classification,
            recommendation=recommendation,
        )

    def run_plan(
        self,
        plan: Dict[str, Any],
        delivery: Dict[str, List[Dict[str, Any]]],
        as_of: Optional[date] = None,
        today: Optional[date] = None
    ) -> Dict[Channel, ContainerReport]:
        """
        Run pacing for every channel container in a media plan.

        Args:
            plan: {"campaign_start", "campaign_end", "line_items": {channel: [...]}}
            delivery: Channel value -> raw delivery rows
            as_of: Cutoff date applied to every container
            today: Override for the current date

        Returns:
            Dictionary mapping Channel to ContainerReport
        """
        campaign_start = parse_date(plan.get("campaign_start"))
        campaign_end = parse_date(plan.get("campaign_end"))

        self._print(f"\n{'=' * 70}")
        self._print("Burst Pacing - Run Started")
        self._print(f"Timestamp: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')}")
        self._print(f"{'=' * 70}\n")

        reports = {}
        for channel_name, raw_line_items in plan.get("line_items", {}).items():
            channel = Channel.parse(channel_name)
            if channel is None:
                self.audit_logger.log_warning(
                    "unknown_channel",
                    f"Skipping unknown channel {channel_name!r}",
                )
                continue

            self._print(f"🔍 Pacing {channel.value} ({len(raw_line_items)} line items)...", end=" ")
            try:
                report = self.run_container(
                    channel,
                    raw_line_items,
                    delivery.get(channel.value, []),
                    as_of=as_of,
                    today=today,
                    campaign_start=campaign_start,
                    campaign_end=campaign_end,
                )
            except Exception as e:
                self._print(f"❌ Error: {str(e)}")
                self.audit_logger.log_error(
                    error_type="container_error",
                    error_message=str(e),
                    context={"channel": channel.value}
                )
                continue

            reports[channel] = report
            self._print(
                f"{self._get_result_emoji(report.classification)} "
                f"{report.classification['status']} "
                f"({report.result.spend.pacing_pct:.1f}% spend pacing)"
            )

            if self.notifier is not None:
                self.notifier.send_container_summary(
                    container=channel.value,
                    result=report.result,
                    classification=report.classification,
                    recommendation=report.recommendation,
                    line_item_count=len(report.line_items),
                )

        self._print_summary(reports)
        return reports

    def build_billing(
        self,
        plan: Dict[str, Any],
        fees: Optional[FeeTerms] = None
    ) -> BillingSchedule:
        """
        Build the monthly billing schedule for every active line item in a plan.

        Args:
            plan: Media plan in the run_plan() shape, optionally with a
                  "campaign_budget" the schedule must reconcile to
            fees: Optional fee terms

        Returns:
            BillingSchedule
        """
        line_items = []
        for channel_name, raw_line_items in plan.get("line_items", {}).items():
            channel = Channel.parse(channel_name)
            line_items.extend(
                self.line_item_normalizer.normalize(raw, channel)
                for raw in raw_line_items
            )

        return self.billing.allocate(
            line_items,
            fees=fees,
            campaign_start=parse_date(plan.get("campaign_start")),
            campaign_end=parse_date(plan.get("campaign_end")),
            campaign_budget=plan.get("campaign_budget"),
        )

    def apply_billing_override(
        self,
        schedule: BillingSchedule,
        amounts: Dict[str, Any],
        campaign: str = "media plan"
    ) -> BillingSchedule:
        """
        Apply a manually edited billing schedule.

        A schedule that does not reconcile is reported to Slack (when
        configured) and the BillingMismatch is re-raised.

        Args:
            schedule: Schedule from build_billing()
            amounts: Month key -> manual amount
            campaign: Campaign identifier used in the alert

        Returns:
            New manual BillingSchedule

        Raises:
            BillingMismatch: If the manual total differs from the booked total
        """
        try:
            return schedule.with_manual_override(amounts)
        except BillingMismatch as e:
            self._print(f"❌ {e}")
            if self.notifier is not None:
                self.notifier.send_billing_mismatch(campaign, e)
            raise

    def _get_result_emoji(self, classification: Dict[str, Any]) -> str:
        """Get emoji for result display."""
        if classification.get("is_zero_delivery"):
            return "🚨"
        return {
            "not_started": "⏳",
            "on_track": "✅",
            "behind": "⚠️",
            "ahead": "⚠️",
        }.get(classification.get("status"), "❓")

    def _print_summary(self, reports: Dict[Channel, ContainerReport]):
        """Print summary report of the pacing run."""
        self._print(f"\n{'=' * 70}")
        self._print("📊 Pacing Summary")
        self._print(f"{'=' * 70}\n")

        for channel, report in reports.items():
            spend = report.result.spend
            estimated = " (estimated)" if report.result.is_estimated else ""
            self._print(
                f"{channel.value:<22} ${spend.actual_to_date:>12,.2f} / "
                f"${spend.expected_to_date:>12,.2f}  {spend.pacing_pct:>6.1f}%{estimated}"
            )

        status_counts: Dict[str, int] = {}
        for report in reports.values():
            status = report.classification.get("status", "unknown")
            status_counts[status] = status_counts.get(status, 0) + 1
        self._print(f"\nContainers paced:          {len(reports)}")
        for status, count in sorted(status_counts.items()):
            self._print(f"  {status:<24}{count}")

        audit_stats = self.audit_logger.get_summary_stats()
        self._print(f"\n📝 Audit log entries:       {audit_stats['total_events']}")
        self._print(f"\n{'=' * 70}\n")

    def _print(self, message: str, end: str = "\n"):
        if self.verbose:
            print(message, end=end)


def _load_json(path: str) -> Any:
    with open(path, "r") as f:
        return json.load(f)


def main(argv: Optional[List[str]] = None):
    """
    Main entry point for a pacing run.

    Usage:
        python -m burst_pacing.orchestrator --plan plan.json --delivery delivery.json
        python -m burst_pacing.orchestrator --demo
    """
    parser = argparse.ArgumentParser(description="Burst pacing and billing run")
    parser.add_argument("--plan", help="Media plan JSON file")
    parser.add_argument("--delivery", help="Delivery rows JSON file keyed by channel")
    parser.add_argument("--as-of", dest="as_of", help="Cutoff date (YYYY-MM-DD)")
    parser.add_argument("--demo", action="store_true", help="Run against generated mock data")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for --demo")
    args = parser.parse_args(argv)

    # Load configuration from environment
    settings = EngineSettings.from_env()
    as_of = parse_date(args.as_of) if args.as_of else None

    if args.demo or not args.plan:
        from burst_pacing.api.internal_tracker import MockMediaPlanTracker
        from burst_pacing.api.mock_platform_api import MockPlatformAPI

        tracker = MockMediaPlanTracker(seed=args.seed)
        plan = tracker.get_plan()
        normalizer = LineItemNormalizer()
        delivery = {}
        for channel in tracker.channels:
            line_items = [
                normalizer.normalize(raw, channel)
                for raw in tracker.get_line_items(channel)
            ]
            api = MockPlatformAPI(channel, line_items, as_of=as_of, seed=args.seed)
            delivery[channel.value] = api.get_delivery_rows()
    else:
        plan = _load_json(args.plan)
        delivery = _load_json(args.delivery) if args.delivery else {}

    orchestrator = PacingOrchestrator(settings=settings)
    reports = orchestrator.run_plan(plan, delivery, as_of=as_of)

    schedule = orchestrator.build_billing(plan)
    print("🧾 Billing schedule")
    for month_key, amount in schedule.format_amounts().items():
        print(f"  {month_key:<16}{amount:>16}")
    print(f"  {'Total':<16}{'$' + format(schedule.booked_total, ',.2f'):>16}\n")

    return reports


if __name__ == "__main__":
    main()
