"""
Engine settings loaded from environment variables.

    PACING_TIMEZONE           Calendar used for "today" (Australia/Melbourne)
    BILLING_MONTH_FORMAT      Month key format, "%Y-%m" or "%B %Y"
    PACING_BEHIND_THRESHOLD   Pacing % below which a line item is behind (90)
    PACING_AHEAD_THRESHOLD    Pacing % above which a line item is ahead (110)
    SLACK_WEBHOOK_URL         Optional webhook for pacing summaries
    AUDIT_LOG_FILE            Optional JSONL audit log path
"""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_TIMEZONE = "Australia/Melbourne"
DEFAULT_MONTH_FORMAT = "%Y-%m"
MONTH_FORMATS = ("%Y-%m", "%B %Y")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass
class EngineSettings:
    """Configuration shared by the orchestrator and engine components."""
    timezone: str = DEFAULT_TIMEZONE
    month_format: str = DEFAULT_MONTH_FORMAT
    behind_threshold: float = 90.0
    ahead_threshold: float = 110.0
    slack_webhook: Optional[str] = None
    audit_log_file: Optional[str] = None

    def __post_init__(self):
        if self.month_format not in MONTH_FORMATS:
            raise ValueError(
                f"BILLING_MONTH_FORMAT must be one of {MONTH_FORMATS}, "
                f"got {self.month_format!r}"
            )
        if self.behind_threshold > self.ahead_threshold:
            raise ValueError(
                f"Behind threshold ({self.behind_threshold}) must not exceed "
                f"ahead threshold ({self.ahead_threshold})"
            )

    @classmethod
    def from_env(cls) -> "EngineSettings":
        return cls(
            timezone=os.getenv("PACING_TIMEZONE", DEFAULT_TIMEZONE),
            month_format=os.getenv("BILLING_MONTH_FORMAT", DEFAULT_MONTH_FORMAT),
            behind_threshold=_float_env("PACING_BEHIND_THRESHOLD", 90.0),
            ahead_threshold=_float_env("PACING_AHEAD_THRESHOLD", 110.0),
            slack_webhook=os.getenv("SLACK_WEBHOOK_URL") or None,
            audit_log_file=os.getenv("AUDIT_LOG_FILE") or None,
        )
