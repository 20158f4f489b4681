"""
Unit tests for SlackNotifier.

requests.post is patched; no network calls are made.
"""

import pytest
import requests
from datetime import date
from decimal import Decimal
from unittest.mock import Mock, patch

from burst_pacing.billing.allocator import BillingMismatch
from burst_pacing.models.pacing import Metric, PacingResult, Window
from burst_pacing.utils.slack_notifier import SlackNotifier

WEBHOOK = "https://hooks.slack.test/T000/B000/XXX"


@pytest.fixture
def notifier():
    return SlackNotifier(WEBHOOK)


@pytest.fixture
def result():
    return PacingResult(
        as_of_date=date(2024, 1, 5),
        spend=Metric.compute(Decimal("300"), Decimal("1000"), Decimal("4100")),
        deliverable=Metric.compute(Decimal("20000"), Decimal("50000"), Decimal("100000")),
        window=Window(date(2024, 1, 1), date(2024, 1, 31)),
        is_estimated=True,
    )


CLASSIFICATION = {"status": "behind", "pacing_pct": 30.0, "is_zero_delivery": False}


class TestSendContainerSummary:
    """Test container summaries."""

    @patch("burst_pacing.utils.slack_notifier.requests.post")
    def test_success(self, mock_post, notifier, result):
        mock_post.return_value = Mock(raise_for_status=Mock())

        sent = notifier.send_container_summary("meta", result, CLASSIFICATION, "Raise bids", 2)

        assert sent is True
        args, kwargs = mock_post.call_args
        assert args[0] == WEBHOOK
        assert kwargs["timeout"] == 10
        message = kwargs["json"]
        assert message["text"] == "⚠️ Pacing BEHIND: meta"
        assert "2024-01-05" in message["blocks"][0]["text"]["text"]
        fields = [f["text"] for f in message["blocks"][2]["fields"]]
        assert "*Spend to date:*\n$300.00" in fields
        assert "*Deliverable pacing:*\n40.0%" in fields

    @patch("burst_pacing.utils.slack_notifier.requests.post")
    def test_estimated_note(self, mock_post, notifier, result):
        mock_post.return_value = Mock(raise_for_status=Mock())

        notifier.send_container_summary("meta", result, CLASSIFICATION, "Raise bids")

        blocks = mock_post.call_args.kwargs["json"]["blocks"]
        contexts = [b for b in blocks if b["type"] == "context"]
        assert any("estimated" in b["elements"][0]["text"] for b in contexts)

    @patch("burst_pacing.utils.slack_notifier.requests.post")
    def test_zero_delivery_emoji(self, mock_post, notifier, result):
        mock_post.return_value = Mock(raise_for_status=Mock())

        notifier.send_container_summary(
            "meta", result, {"status": "behind", "is_zero_delivery": True}, "Check setup"
        )

        assert mock_post.call_args.kwargs["json"]["text"].startswith("🚨")

    @patch("burst_pacing.utils.slack_notifier.requests.post")
    def test_network_failure_returns_false(self, mock_post, notifier, result):
        mock_post.side_effect = requests.exceptions.ConnectionError("down")

        assert notifier.send_container_summary("meta", result, CLASSIFICATION, "x") is False

    @patch("burst_pacing.utils.slack_notifier.requests.post")
    def test_http_error_returns_false(self, mock_post, notifier, result):
        response = Mock()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("500")
        mock_post.return_value = response

        assert notifier.send_container_summary("meta", result, CLASSIFICATION, "x") is False


class TestSendBillingMismatch:
    """Test billing alerts."""

    @patch("burst_pacing.utils.slack_notifier.requests.post")
    def test_fields(self, mock_post, notifier):
        mock_post.return_value = Mock(raise_for_status=Mock())
        error = BillingMismatch(Decimal("1000.00"), Decimal("999.00"))

        assert notifier.send_billing_mismatch("MBA-123", error) is True

        message = mock_post.call_args.kwargs["json"]
        fields = [f["text"] for f in message["blocks"][2]["fields"]]
        assert fields == [
            "*Booked total:*\n$1,000.00",
            "*Manual total:*\n$999.00",
            "*Difference:*\n$-1.00",
        ]


class TestConnection:
    """Test webhook connection check."""

    @patch("burst_pacing.utils.slack_notifier.requests.post")
    def test_connection(self, mock_post, notifier):
        mock_post.return_value = Mock(raise_for_status=Mock())
        assert notifier.test_connection() is True

        mock_post.side_effect = requests.exceptions.Timeout("slow")
        assert notifier.test_connection() is False
