"""
Burst normalization.

Upstream media plans describe bursts with inconsistent field names, string
currency values and occasionally a JSON-encoded list. Every channel reads
them through the single FIELD_ALIASES precedence table below, so the
programmatic and social paths cannot drift apart.
"""

import json
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence

from burst_pacing.models.pacing import Burst, ZERO
from burst_pacing.utils.audit_logger import AuditLogger

# First alias present (not None) wins.
FIELD_ALIASES: Dict[str, Sequence[str]] = {
    "spend": (
        "budget_number",
        "budget",
        "media_investment",
        "mediaInvestment",
        "buy_amount_number",
        "buyAmount",
        "total_spend",
    ),
    "deliverable": (
        "calculated_value_number",
        "calculatedValue",
        "deliverables",
        "conversions",
        "deliverable",
        "total_deliverable",
    ),
    "start": ("start_date", "startDate", "start", "beginDate", "begin_date"),
    "end": ("end_date", "endDate", "end", "stopDate", "stop_date"),
}

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def pick(raw: Dict[str, Any], aliases: Sequence[str], skip_blank: bool = False):
    """
    Return the first alias value present in raw.

    Args:
        raw: Source record
        aliases: Field names in precedence order
        skip_blank: Also treat empty strings as absent

    Returns:
        The first present value, or None
    """
    for alias in aliases:
        value = raw.get(alias)
        if value is None:
            continue
        if skip_blank and isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def parse_number(value: Any) -> Decimal:
    """
    Coerce a loosely typed number to Decimal.

    Strings keep only digits, "." and "-" before parsing, so "$1,250.50"
    becomes 1250.50. Anything that still fails to parse is 0. Never raises.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    else:
        cleaned = _NON_NUMERIC.sub("", str(value))
        try:
            number = Decimal(cleaned)
        except InvalidOperation:
            return ZERO
    if not number.is_finite():
        return ZERO
    return number


def parse_date(value: Any) -> Optional[date]:
    """
    Coerce a date-like value to a calendar date.

    Accepts date, datetime, "YYYY-MM-DD" and ISO datetime strings
    ("2024-01-05T00:00:00Z"). Returns None for anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if len(text) < 10:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def decode_records(value: Any) -> Optional[List[Any]]:
    """
    Turn a list, single record or their JSON encoding into a list.

    A lone record (dict) becomes a one-element list. Returns None when the
    value is a string that is neither, so the caller can tell "malformed"
    apart from "nothing there".
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, dict):
        return [value]
    if isinstance(value, str):
        if not value.strip():
            return []
        try:
            parsed = json.loads(value)
        except ValueError:
            return None
        if isinstance(parsed, dict):
            return [parsed]
        return parsed if isinstance(parsed, list) else None
    return None


class BurstNormalizer:
    """
    Turn heterogeneous raw burst records into canonical Burst values.

    Records without a usable start and end date are skipped rather than
    raising. Normalizing a Burst returns it unchanged.
    """

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        """
        Initialize normalizer.

        Args:
            audit_logger: Optional AuditLogger receiving skip warnings
        """
        self.audit_logger = audit_logger

    def normalize(
        self,
        raw: Any,
        line_item_id: Optional[str] = None
    ) -> Optional[Burst]:
        """
        Normalize a single raw burst record.

        Args:
            raw: Burst instance or mapping with aliased fields
            line_item_id: Owning line item, used only for diagnostics

        Returns:
            Burst, or None if the record cannot be used
        """
        if isinstance(raw, Burst):
            return raw
        if not isinstance(raw, dict):
            self._warn("burst_skipped", "Burst record is not an object", line_item_id)
            return None

        start = parse_date(pick(raw, FIELD_ALIASES["start"], skip_blank=True))
        end = parse_date(pick(raw, FIELD_ALIASES["end"], skip_blank=True))
        if start is None or end is None:
            self._warn(
                "burst_skipped",
                "Burst has no usable start and end date",
                line_item_id,
                {"start": str(start), "end": str(end)},
            )
            return None
        if start > end:
            self._warn(
                "burst_skipped",
                "Burst ends before it starts",
                line_item_id,
                {"start": start.isoformat(), "end": end.isoformat()},
            )
            return None

        spend = parse_number(pick(raw, FIELD_ALIASES["spend"]))
        deliverable = parse_number(pick(raw, FIELD_ALIASES["deliverable"]))

        return Burst(
            start_date=start,
            end_date=end,
            total_spend=max(spend, ZERO),
            total_deliverable=max(deliverable, ZERO),
        )

    def normalize_many(
        self,
        raw: Any,
        line_item_id: Optional[str] = None
    ) -> List[Burst]:
        """
        Normalize a list, single record or JSON encoding of burst records.

        A JSON string that fails to parse yields an empty list; the line item
        then falls back to its window and booked totals downstream.
        """
        records = decode_records(raw)
        if records is None:
            self._warn(
                "bursts_unparseable",
                "Burst data is not a list, record or JSON encoding of either",
                line_item_id,
            )
            return []

        bursts = []
        for record in records:
            burst = self.normalize(record, line_item_id)
            if burst is not None:
                bursts.append(burst)
        return bursts

    def _warn(
        self,
        warning_type: str,
        message: str,
        line_item_id: Optional[str],
        context: Optional[Dict] = None
    ):
        if self.audit_logger is not None:
            self.audit_logger.log_warning(warning_type, message, line_item_id, context)
