"""
Unit tests for PacingOrchestrator and the command line entry point.
"""

import json
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import Mock

from burst_pacing.billing.allocator import BillingMismatch, FeeTerms
from burst_pacing.config import EngineSettings
from burst_pacing.models.pacing import Channel
from burst_pacing.orchestrator import PacingOrchestrator, main

AS_OF = date(2024, 1, 5)


@pytest.fixture
def plan():
    """Small media plan with a Meta and a programmatic container."""
    return {
        "campaign_start": "2024-01-01",
        "campaign_end": "2024-01-31",
        "line_items": {
            "meta": [
                {
                    "line_item_id": "META-001",
                    "buy_type": "CPM",
                    "bursts": [{"start_date": "2024-01-01", "end_date": "2024-01-10",
                                "budget_number": 1000, "calculated_value_number": 100000}],
                },
                {
                    "lineItemId": "meta-002",
                    "buyType": "CPC",
                    "totalBudget": 3100,
                    "goalDeliverableTotal": 310,
                },
                {
                    "line_item_id": "meta-003",
                    "buy_type": "CPM",
                    "is_active": False,
                    "bursts": [{"start_date": "2024-01-01", "end_date": "2024-01-10",
                                "budget_number": 5000}],
                },
            ],
            "programmatic-display": [
                {
                    "line_item_id": "pd-001",
                    "buy_type": "fixed cost",
                    "bursts_json": json.dumps([{"startDate": "2024-01-25", "endDate": "2024-02-04",
                                                "mediaInvestment": "$1,100"}]),
                },
            ],
            "radio": [{"line_item_id": "r-1"}],
        },
    }


@pytest.fixture
def delivery():
    return {
        "meta": [
            {"dateDay": "2024-01-02", "lineItem": "meta-001", "amountSpent": "200", "impressions": 20000},
            {"dateDay": "2024-01-03", "lineItem": "META-002", "amountSpent": "100", "clicks": 10},
            {"dateDay": "2024-01-04", "lineItem": "someone-else", "amountSpent": "999"},
        ],
    }


@pytest.fixture
def orchestrator():
    return PacingOrchestrator(settings=EngineSettings(timezone="UTC"), verbose=False)


class TestRunPlan:
    """Test running every container of a plan."""

    def test_containers_reported(self, orchestrator, plan, delivery):
        reports = orchestrator.run_plan(plan, delivery, as_of=AS_OF, today=AS_OF)

        assert set(reports) == {Channel.META, Channel.PROGRAMMATIC_DISPLAY}

    def test_meta_container_totals(self, orchestrator, plan, delivery):
        report = orchestrator.run_plan(plan, delivery, as_of=AS_OF, today=AS_OF)[Channel.META]

        # meta-001: 1000 * 5/10, meta-002: 3100 * 5/31 over the campaign window
        assert report.result.spend.expected_to_date == Decimal("1000.00")
        assert report.result.spend.actual_to_date == Decimal("300.00")
        assert report.result.spend.goal_total == Decimal("4100.00")
        assert report.result.is_estimated is True
        assert len(report.line_items) == 2
        assert report.classification["status"] == "behind"
        assert "Under-delivering" in report.recommendation

    def test_inactive_line_items_skipped(self, orchestrator, plan, delivery):
        report = orchestrator.run_plan(plan, delivery, as_of=AS_OF, today=AS_OF)[Channel.META]

        assert "meta-003" not in [m.line_item.id for m in report.line_items]

    def test_container_without_delivery(self, orchestrator, plan, delivery):
        report = orchestrator.run_plan(plan, delivery, as_of=AS_OF, today=AS_OF)[
            Channel.PROGRAMMATIC_DISPLAY
        ]

        assert report.result.spend.expected_to_date == 0
        assert report.classification["status"] == "not_started"
        assert report.result.deliverable is None

    def test_unknown_channel_logged(self, orchestrator, plan, delivery):
        orchestrator.run_plan(plan, delivery, as_of=AS_OF, today=AS_OF)

        events = orchestrator.audit_logger.get_events(event_type="unknown_channel")
        assert len(events) == 1

    def test_unmatched_rows_observable(self, orchestrator, plan, delivery):
        orchestrator.run_plan(plan, delivery, as_of=AS_OF, today=AS_OF)

        events = orchestrator.audit_logger.get_events(event_type="pacing_result")
        assert {event["line_item_id"] for event in events} == {"meta-001", "meta-002", "pd-001"}

    def test_notifier_called_per_container(self, plan, delivery):
        notifier = Mock()
        orchestrator = PacingOrchestrator(
            settings=EngineSettings(timezone="UTC"),
            notifier=notifier,
            verbose=False,
        )

        orchestrator.run_plan(plan, delivery, as_of=AS_OF, today=AS_OF)

        assert notifier.send_container_summary.call_count == 2
        kwargs = notifier.send_container_summary.call_args_list[0].kwargs
        assert kwargs["container"] == "meta"
        assert kwargs["line_item_count"] == 2

    def test_container_errors_logged_and_skipped(self, orchestrator, plan, delivery):
        orchestrator.aggregator.aggregate = Mock(side_effect=RuntimeError("boom"))

        reports = orchestrator.run_plan(plan, delivery, as_of=AS_OF, today=AS_OF)

        assert reports == {}
        errors = orchestrator.audit_logger.get_events(event_type="error")
        assert len(errors) == 2
        assert errors[0]["error_type"] == "container_error"

    def test_report_to_dict(self, orchestrator, plan, delivery):
        report = orchestrator.run_plan(plan, delivery, as_of=AS_OF, today=AS_OF)[Channel.META]

        data = report.to_dict()
        assert data["channel"] == "meta"
        assert len(data["line_items"]) == 2

    def test_summary_printed(self, plan, delivery, capsys):
        orchestrator = PacingOrchestrator(settings=EngineSettings(timezone="UTC"))

        orchestrator.run_plan(plan, delivery, as_of=AS_OF, today=AS_OF)

        output = capsys.readouterr().out
        assert "Pacing Summary" in output
        assert "meta" in output


class TestBuildBilling:
    """Test plan-level billing."""

    def test_schedule(self, orchestrator, plan):
        schedule = orchestrator.build_billing(plan)

        # meta-001 1000 + meta-002 3100 in January, pd-001 700/400 across Jan/Feb
        assert schedule.amounts() == {
            "2024-01": Decimal("4800.00"),
            "2024-02": Decimal("400.00"),
        }
        assert schedule.booked_total == Decimal("5200.00")
        assert schedule.is_estimated is True

    def test_schedule_with_fees(self, orchestrator, plan):
        schedule = orchestrator.build_billing(plan, fees=FeeTerms(fee_percentage=10))

        assert schedule.booked_total == Decimal("5720.00")

    def test_campaign_budget_from_plan(self, orchestrator, plan):
        plan["campaign_budget"] = "$6,000"

        schedule = orchestrator.build_billing(plan)

        assert schedule.booked_total == Decimal("6000.00")
        assert schedule.allocated_total == Decimal("5200.00")

    def test_override_accepted(self, orchestrator, plan):
        schedule = orchestrator.build_billing(plan)

        manual = orchestrator.apply_billing_override(schedule, {"2024-01": 2600, "2024-02": 2600})

        assert manual.is_manual is True

    def test_override_mismatch_alerts_slack(self, plan):
        notifier = Mock()
        orchestrator = PacingOrchestrator(
            settings=EngineSettings(timezone="UTC"),
            notifier=notifier,
            verbose=False,
        )
        schedule = orchestrator.build_billing(plan)

        with pytest.raises(BillingMismatch):
            orchestrator.apply_billing_override(schedule, {"2024-01": 5000}, campaign="MBA-7")

        campaign, error = notifier.send_billing_mismatch.call_args.args
        assert campaign == "MBA-7"
        assert error.difference == Decimal("-200.00")
        assert len(orchestrator.audit_logger.get_events(event_type="billing_mismatch")) == 1

    def test_month_format_from_settings(self, plan):
        orchestrator = PacingOrchestrator(
            settings=EngineSettings(timezone="UTC", month_format="%B %Y"),
            verbose=False,
        )

        assert list(orchestrator.build_billing(plan).amounts()) == ["January 2024", "February 2024"]


class TestMain:
    """Test the command line entry point."""

    @pytest.fixture(autouse=True)
    def env(self, monkeypatch):
        monkeypatch.setenv("PACING_TIMEZONE", "UTC")
        monkeypatch.delenv("SLACK_WEBHOOK_URL", raising=False)
        monkeypatch.delenv("AUDIT_LOG_FILE", raising=False)
        monkeypatch.delenv("BILLING_MONTH_FORMAT", raising=False)

    def test_files(self, tmp_path, plan, delivery, capsys):
        plan_path = tmp_path / "plan.json"
        delivery_path = tmp_path / "delivery.json"
        plan_path.write_text(json.dumps(plan))
        delivery_path.write_text(json.dumps(delivery))

        reports = main([
            "--plan", str(plan_path),
            "--delivery", str(delivery_path),
            "--as-of", "2024-01-05",
        ])

        assert reports[Channel.META].result.as_of_date == AS_OF
        output = capsys.readouterr().out
        assert "Billing schedule" in output
        assert "$5,200.00" in output

    def test_demo(self, capsys):
        reports = main(["--demo", "--seed", "3"])

        assert set(reports) == set(Channel)
