"""
Quick example demonstrating the burst pacing engine.

Run this to see container pacing and billing with mock data.
"""

from datetime import date

from burst_pacing.api.internal_tracker import MockMediaPlanTracker
from burst_pacing.api.mock_platform_api import MockPlatformAPI
from burst_pacing.billing.allocator import BillingMismatch, FeeTerms
from burst_pacing.config import EngineSettings
from burst_pacing.normalizers.records import LineItemNormalizer
from burst_pacing.orchestrator import PacingOrchestrator
from burst_pacing.utils.export import series_to_frame


def main():
    print("\n" + "=" * 70)
    print(" BURST PACING - DEMO")
    print("=" * 70 + "\n")

    as_of = date(2026, 2, 15)
    tracker = MockMediaPlanTracker(campaign_start=date(2026, 1, 20), flight_days=60, seed=7)
    plan = tracker.get_plan()

    # Generate platform delivery for every channel
    normalizer = LineItemNormalizer()
    delivery = {}
    for channel in tracker.channels:
        line_items = [normalizer.normalize(raw, channel) for raw in tracker.get_line_items(channel)]
        api = MockPlatformAPI(channel, line_items, as_of=as_of, seed=7)
        delivery[channel.value] = api.get_delivery_rows()

    orchestrator = PacingOrchestrator(settings=EngineSettings(timezone="UTC"))
    reports = orchestrator.run_plan(plan, delivery, as_of=as_of)

    # Display line item detail for each container
    print("=" * 70)
    print(" LINE ITEM DETAIL")
    print("=" * 70 + "\n")

    for channel, report in reports.items():
        print(f"{channel.value.upper()}:")
        for metrics in report.line_items:
            result = metrics.result
            deliverable = (
                f"{result.deliverable.pacing_pct:.1f}% {result.deliverable_key.value}"
                if result.deliverable is not None else "n/a"
            )
            print(f"  {result.line_item_id:<10} spend {result.spend.pacing_pct:>6.1f}%  "
                  f"deliverable {deliverable}"
                  f"{'  (estimated)' if result.is_estimated else ''}")
        print(f"  -> {report.recommendation}\n")

    # Daily series as a DataFrame
    first = next(iter(reports.values()))
    df = series_to_frame(first.result.series)
    print(f"{first.channel.value} daily series (last 5 days to {as_of}):")
    print(df[df["date"] <= str(as_of)].tail(5).to_string(index=False))

    # Billing schedule with a 10% fee on top of media
    schedule = orchestrator.build_billing(plan, fees=FeeTerms(fee_percentage=10))
    print("\n🧾 Billing schedule (10% fee):")
    for month in schedule.months:
        print(f"  {month.month_key}: media ${month.media:,.2f} + fee ${month.fee:,.2f} "
              f"= ${month.amount:,.2f}")

    # A manual override that does not reconcile is rejected
    amounts = schedule.amounts()
    first_month = next(iter(amounts))
    amounts[first_month] -= 1
    try:
        orchestrator.apply_billing_override(schedule, amounts, campaign="DEMO-001")
    except BillingMismatch:
        print("   Manual schedule rejected; keeping the computed one.")

    print("\n" + "=" * 70)
    print(" END OF DEMO")
    print("=" * 70 + "\n")


if __name__ == "__main__":
    main()
