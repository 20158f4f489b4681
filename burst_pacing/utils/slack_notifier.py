"""
Slack notification utility.

Posts container pacing summaries and billing alerts to a Slack webhook.
"""

import requests
from typing import Dict, List, Optional
from datetime import datetime, timezone

STATUS_EMOJI = {
    "not_started": "⏳",
    "behind": "⚠️",
    "on_track": "✅",
    "ahead": "⚠️",
}


class SlackNotifier:
    """
    Send formatted Slack notifications for pacing and billing.

    Network failures are reported as False, never raised, so a Slack outage
    never interrupts a pacing run.
    """

    def __init__(self, webhook_url: str, timeout: int = 10):
        """
        Initialize Slack notifier with webhook URL.

        Args:
            webhook_url: Slack incoming webhook URL
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    def send_container_summary(
        self,
        container: str,
        result,
        classification: Dict,
        recommendation: str,
        line_item_count: int = 0
    ) -> bool:
        """
        Send a container pacing summary.

        Args:
            container: Container name (channel value)
            result: Container PacingResult
            classification: PacingAnalyzer.classify() output for spend
            recommendation: Recommendation text
            line_item_count: Number of line items in the container

        Returns:
            True if message sent successfully, False otherwise
        """
        status = classification["status"]
        emoji = "🚨" if classification.get("is_zero_delivery") else STATUS_EMOJI.get(status, "📊")
        spend = result.spend

        fields = [
            {"type": "mrkdwn", "text": f"*Container:*\n{container}"},
            {"type": "mrkdwn", "text": f"*Status:*\n{status.replace('_', ' ').title()}"},
            {"type": "mrkdwn", "text": f"*Spend to date:*\n${spend.actual_to_date:,.2f}"},
            {"type": "mrkdwn", "text": f"*Expected to date:*\n${spend.expected_to_date:,.2f}"},
            {"type": "mrkdwn", "text": f"*Pacing:*\n{spend.pacing_pct:.1f}%"},
            {"type": "mrkdwn", "text": f"*Line items:*\n{line_item_count}"},
        ]
        if result.deliverable is not None:
            fields.append({
                "type": "mrkdwn",
                "text": f"*Deliverable pacing:*\n{result.deliverable.pacing_pct:.1f}%",
            })

        as_of = result.as_of_date.isoformat() if result.as_of_date else "n/a"
        blocks = [
            {
                "type": "header",
                "text": {
                    "type": "plain_text",
                    "text": f"{emoji} Pacing {container} as of {as_of}",
                    "emoji": True
                }
            },
            {"type": "divider"},
            {"type": "section", "fields": fields},
            {"type": "divider"},
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": f"*Recommendation:*\n{recommendation}"
                }
            },
        ]
        if result.is_estimated:
            blocks.append({
                "type": "context",
                "elements": [{
                    "type": "mrkdwn",
                    "text": "Expected values estimated from booked totals (no burst schedule)."
                }]
            })
        blocks.extend(self._footer())

        return self._post({
            "text": f"{emoji} Pacing {status.upper()}: {container}",
            "blocks": blocks
        }, "pacing summary")

    def send_billing_mismatch(self, campaign: str, error) -> bool:
        """
        Alert that a manual billing schedule was rejected.

        Args:
            campaign: Campaign / media plan identifier
            error: BillingMismatch exception

        Returns:
            True if message sent successfully
        """
        message = {
            "text": f"🚨 Billing mismatch: {campaign}",
            "blocks": [
                {
                    "type": "header",
                    "text": {
                        "type": "plain_text",
                        "text": f"🚨 Billing schedule rejected: {campaign}",
                        "emoji": True
                    }
                },
                {"type": "divider"},
                {
                    "type": "section",
                    "fields": [
                        {"type": "mrkdwn", "text": f"*Booked total:*\n${error.expected_total:,.2f}"},
                        {"type": "mrkdwn", "text": f"*Manual total:*\n${error.actual_total:,.2f}"},
                        {"type": "mrkdwn", "text": f"*Difference:*\n${error.difference:,.2f}"},
                    ]
                },
            ] + self._footer()
        }
        return self._post(message, "billing alert")

    def test_connection(self) -> bool:
        """
        Test Slack webhook connection.

        Returns:
            True if connection successful
        """
        message = {
            "text": "Burst pacing - test message",
            "blocks": [
                {
                    "type": "section",
                    "text": {
                        "type": "mrkdwn",
                        "text": "Burst pacing webhook test successful! :white_check_mark:"
                    }
                }
            ]
        }
        return self._post(message, "test message")

    def _footer(self) -> List[Dict]:
        generated = datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')
        return [
            {"type": "divider"},
            {
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": f"Generated at {generated}"}]
            }
        ]

    def _post(self, message: Dict, description: Optional[str] = None) -> bool:
        try:
            response = requests.post(
                self.webhook_url,
                json=message,
                timeout=self.timeout
            )
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            print(f"Failed to send Slack {description or 'message'}: {e}")
            return False
