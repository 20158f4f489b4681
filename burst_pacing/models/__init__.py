"""Data models for bursts, delivery and pacing output."""

from burst_pacing.models.pacing import (
    Channel,
    BuyType,
    DeliverableKey,
    MetricKind,
    Burst,
    LineItem,
    DeliveryRow,
    Window,
    Metric,
    DailyPoint,
    PacingResult,
    BillingMonth,
    round_money,
)

__all__ = [
    "Channel",
    "BuyType",
    "DeliverableKey",
    "MetricKind",
    "Burst",
    "LineItem",
    "DeliveryRow",
    "Window",
    "Metric",
    "DailyPoint",
    "PacingResult",
    "BillingMonth",
    "round_money",
]
