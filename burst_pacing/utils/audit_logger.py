"""
Audit logging utility.

Records engine diagnostics (skipped bursts, synthetic schedules, unmatched
delivery, billing mismatches) as structured events. The logger is passed
into engine components; the calculation core holds no global state.
Supports JSONL file logging or in-memory collection.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


class AuditLogger:
    """
    Log engine events for diagnostics and audit trail.

    Maintains a record of:
    - Burst records that could not be parsed or normalized
    - Synthetic bursts created from booked totals
    - Line items that matched no delivery rows
    - Per-line-item pacing results
    - Billing overrides rejected for not reconciling
    """

    def __init__(
        self,
        log_file: Optional[str] = None,
        log_dir: Optional[str] = None
    ):
        """
        Initialize audit logger.

        Args:
            log_file: Name of log file (JSONL format). When omitted, events
                      are only kept in memory.
            log_dir: Directory for log files (default: current directory)
        """
        self.events: List[Dict[str, Any]] = []

        if log_file is None:
            self.log_path = None
        elif log_dir:
            self.log_dir = Path(log_dir)
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self.log_path = self.log_dir / log_file
        else:
            self.log_path = Path(log_file)

    def log_event(self, event: Dict[str, Any]):
        """
        Log a generic event.

        Args:
            event: Event dictionary with arbitrary JSON-serializable fields
        """
        if "timestamp" not in event:
            event["timestamp"] = datetime.now(timezone.utc).isoformat()

        if self.log_path is None:
            self.events.append(event)
            return

        with open(self.log_path, "a") as f:
            f.write(json.dumps(event, default=str) + "\n")

    def log_warning(
        self,
        warning_type: str,
        message: str,
        line_item_id: Optional[str] = None,
        context: Optional[Dict] = None
    ):
        """
        Log a fail-soft data problem.

        Args:
            warning_type: Event type (bursts_unparseable, burst_skipped, ...)
            message: Description of what was ignored
            line_item_id: Optional line item identifier
            context: Optional context information
        """
        self.log_event({
            "event_type": warning_type,
            "level": "warning",
            "message": message,
            "line_item_id": line_item_id,
            "context": context or {},
        })

    def log_synthetic_burst(self, line_item_id: Optional[str], burst):
        """Log that a burst was synthesized from booked totals."""
        self.log_event({
            "event_type": "synthetic_burst",
            "level": "info",
            "line_item_id": line_item_id,
            "burst": burst.to_dict(),
        })

    def log_match(
        self,
        line_item_id: Optional[str],
        match_count: int,
        candidate_count: int
    ):
        """
        Log a delivery match that found nothing despite available data.

        Args:
            line_item_id: Normalized line item identifier (may be None)
            match_count: Number of rows matched
            candidate_count: Number of rows that were searched
        """
        self.log_event({
            "event_type": "no_delivery_match",
            "level": "warning",
            "line_item_id": line_item_id,
            "match_count": match_count,
            "candidate_count": candidate_count,
        })

    def log_pacing_result(self, result):
        """
        Log a per-line-item pacing result.

        Args:
            result: PacingResult object
        """
        self.log_event({
            "event_type": "pacing_result",
            "level": "info",
            "line_item_id": result.line_item_id,
            "as_of_date": result.as_of_date.isoformat() if result.as_of_date else None,
            "spend_pacing_pct": float(result.spend.pacing_pct),
            "deliverable_pacing_pct": (
                float(result.deliverable.pacing_pct) if result.deliverable else None
            ),
            "matched_row_count": result.matched_row_count,
            "is_estimated": result.is_estimated,
            "is_available": result.is_available,
        })

    def log_billing_mismatch(self, error):
        """
        Log a rejected manual billing schedule.

        Args:
            error: BillingMismatch exception
        """
        self.log_event({
            "event_type": "billing_mismatch",
            "level": "error",
            "expected_total": str(error.expected_total),
            "actual_total": str(error.actual_total),
            "difference": str(error.difference),
        })

    def log_error(
        self,
        error_type: str,
        error_message: str,
        line_item_id: Optional[str] = None,
        context: Optional[Dict] = None
    ):
        """
        Log an error.

        Args:
            error_type: Type/category of error
            error_message: Error description
            line_item_id: Optional line item identifier
            context: Optional context information
        """
        self.log_event({
            "event_type": "error",
            "level": "error",
            "error_type": error_type,
            "error_message": error_message,
            "line_item_id": line_item_id,
            "context": context or {},
        })

    def get_events(
        self,
        event_type: Optional[str] = None,
        line_item_id: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict]:
        """
        Retrieve events from memory or the log file.

        Args:
            event_type: Filter by event type
            line_item_id: Filter by line item ID
            limit: Maximum number of events to return

        Returns:
            List of event dictionaries
        """
        if self.log_path is None:
            source = list(self.events)
        elif not self.log_path.exists():
            return []
        else:
            source = []
            with open(self.log_path, "r") as f:
                for line in f:
                    try:
                        source.append(json.loads(line.strip()))
                    except json.JSONDecodeError:
                        continue

        events = []
        for event in source:
            if event_type and event.get("event_type") != event_type:
                continue
            if line_item_id and event.get("line_item_id") != line_item_id:
                continue

            events.append(event)

            if limit and len(events) >= limit:
                break

        return events

    def get_summary_stats(self) -> Dict[str, Any]:
        """
        Get summary statistics from the audit log.

        Returns:
            Dictionary with event counts by type and level
        """
        events = self.get_events()

        event_types = {}
        levels = {}
        for event in events:
            event_type = event.get("event_type", "unknown")
            event_types[event_type] = event_types.get(event_type, 0) + 1
            level = event.get("level", "unknown")
            levels[level] = levels.get(level, 0) + 1

        return {
            "total_events": len(events),
            "event_types": event_types,
            "levels": levels,
            "log_file": str(self.log_path) if self.log_path else None,
        }

    def clear_log(self):
        """
        Clear the audit log.

        WARNING: This will delete all audit records.
        """
        self.events = []
        if self.log_path is not None and self.log_path.exists():
            self.log_path.unlink()
