"""
Line item and delivery row normalization.

Converts the loosely typed records produced by the media plan and ad-platform
data layers into LineItem and DeliveryRow values. All coercion happens here,
at the boundary; nothing downstream inspects raw field names.
"""

from typing import Any, Dict, Optional, Sequence

from burst_pacing.models.pacing import BuyType, Channel, DeliveryRow, LineItem
from burst_pacing.normalizers.bursts import (
    BurstNormalizer,
    parse_date,
    parse_number,
    pick,
)
from burst_pacing.utils.audit_logger import AuditLogger

LINE_ITEM_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("line_item_id", "lineItemId", "id"),
    "name": ("line_item_name", "lineItemName", "name"),
    "buy_type": ("buy_type", "buyType"),
    "channel": ("channel", "media_channel"),
    "booked_spend": ("total_budget", "totalBudget", "booked_spend"),
    "booked_deliverable": (
        "goal_deliverable_total",
        "goalDeliverableTotal",
        "booked_deliverable",
    ),
    "start": ("start_date", "startDate", "start"),
    "end": ("end_date", "endDate", "end"),
}

DELIVERY_ROW_ALIASES: Dict[str, Sequence[str]] = {
    "date": ("date", "dateDay", "date_day"),
    "id": ("matchedPostfix", "line_item_id", "lineItem", "lineItemId"),
    "channel": ("channel",),
    "spend": ("spend", "amountSpent", "amount_spent"),
    "impressions": ("impressions",),
    "clicks": ("clicks",),
    "conversions": ("conversions", "results"),
    "views": ("views", "video3sViews", "video_3s_views"),
}

_MISSING_IDS = ("undefined", "null")


def normalize_identifier(value: Any) -> Optional[str]:
    """
    Normalize a line item identifier for exact matching.

    Trims and lower-cases. Empty strings and the literal strings "undefined"
    and "null" (left behind by upstream string conversion) count as absent.
    """
    if value is None:
        return None
    text = str(value).strip().lower()
    if not text or text in _MISSING_IDS:
        return None
    return text


def _count(value: Any) -> int:
    return int(parse_number(value))


class LineItemNormalizer:
    """Build LineItem values from raw media plan records."""

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self.audit_logger = audit_logger
        self.burst_normalizer = BurstNormalizer(audit_logger)

    def normalize(
        self,
        raw: Dict[str, Any],
        channel: Optional[Channel] = None
    ) -> LineItem:
        """
        Normalize a raw line item record.

        Bursts are read from "bursts" (list or JSON string) and then from
        "bursts_json". Booked totals are only taken from the record when
        present; otherwise LineItem sums its bursts.

        Args:
            raw: Raw line item mapping
            channel: Channel to use when the record does not name one

        Returns:
            LineItem
        """
        line_item_id = normalize_identifier(pick(raw, LINE_ITEM_ALIASES["id"]))

        raw_bursts = raw.get("bursts")
        if raw_bursts is None:
            raw_bursts = raw.get("bursts_json")
        bursts = self.burst_normalizer.normalize_many(raw_bursts, line_item_id)

        booked_spend = pick(raw, LINE_ITEM_ALIASES["booked_spend"])
        booked_deliverable = pick(raw, LINE_ITEM_ALIASES["booked_deliverable"])
        name = pick(raw, LINE_ITEM_ALIASES["name"], skip_blank=True)

        return LineItem(
            id=line_item_id,
            buy_type=BuyType.parse(pick(raw, LINE_ITEM_ALIASES["buy_type"])),
            bursts=tuple(bursts),
            booked_spend=(
                parse_number(booked_spend) if booked_spend is not None else None
            ),
            booked_deliverable=(
                parse_number(booked_deliverable)
                if booked_deliverable is not None else None
            ),
            name=str(name) if name is not None else None,
            channel=Channel.parse(pick(raw, LINE_ITEM_ALIASES["channel"])) or channel,
            start_date=parse_date(pick(raw, LINE_ITEM_ALIASES["start"], skip_blank=True)),
            end_date=parse_date(pick(raw, LINE_ITEM_ALIASES["end"], skip_blank=True)),
            is_active=bool(raw.get("is_active", True)),
        )


class DeliveryRowNormalizer:
    """Build DeliveryRow values from channel-tagged platform rows."""

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self.audit_logger = audit_logger

    def normalize(
        self,
        raw: Dict[str, Any],
        channel: Optional[Channel] = None
    ) -> Optional[DeliveryRow]:
        """
        Normalize a raw delivery row.

        Args:
            raw: Raw row mapping
            channel: Channel to use when the row does not name one

        Returns:
            DeliveryRow, or None if the row has no usable date
        """
        row_date = parse_date(pick(raw, DELIVERY_ROW_ALIASES["date"], skip_blank=True))
        line_item_id = normalize_identifier(pick(raw, DELIVERY_ROW_ALIASES["id"]))

        if row_date is None:
            if self.audit_logger is not None:
                self.audit_logger.log_warning(
                    "delivery_row_skipped",
                    "Delivery row has no usable date",
                    line_item_id,
                )
            return None

        return DeliveryRow(
            date=row_date,
            line_item_id=line_item_id,
            spend=parse_number(pick(raw, DELIVERY_ROW_ALIASES["spend"])),
            impressions=_count(pick(raw, DELIVERY_ROW_ALIASES["impressions"])),
            clicks=_count(pick(raw, DELIVERY_ROW_ALIASES["clicks"])),
            conversions=_count(pick(raw, DELIVERY_ROW_ALIASES["conversions"])),
            views=_count(pick(raw, DELIVERY_ROW_ALIASES["views"])),
            channel=Channel.parse(pick(raw, DELIVERY_ROW_ALIASES["channel"])) or channel,
        )

    def normalize_many(self, rows, channel: Optional[Channel] = None):
        """Normalize rows, dropping those without a usable date."""
        normalized = []
        for raw in rows:
            row = self.normalize(raw, channel)
            if row is not None:
                normalized.append(row)
        return normalized
