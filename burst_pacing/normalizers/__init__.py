"""Boundary normalization of raw bursts, line items and delivery rows."""

from burst_pacing.normalizers.bursts import (
    FIELD_ALIASES,
    BurstNormalizer,
    parse_date,
    parse_number,
)
from burst_pacing.normalizers.records import (
    DeliveryRowNormalizer,
    LineItemNormalizer,
    normalize_identifier,
)

__all__ = [
    "FIELD_ALIASES",
    "BurstNormalizer",
    "parse_date",
    "parse_number",
    "DeliveryRowNormalizer",
    "LineItemNormalizer",
    "normalize_identifier",
]
