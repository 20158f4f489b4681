"""Utility modules for notifications and logging."""

from burst_pacing.utils.slack_notifier import SlackNotifier
from burst_pacing.utils.audit_logger import AuditLogger

__all__ = [
    "SlackNotifier",
    "AuditLogger",
]
