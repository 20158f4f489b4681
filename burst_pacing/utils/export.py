"""
DataFrame export of engine outputs.

Each function maps engine dataclasses 1:1 onto rows so downstream tooling
(CSV, notebooks, charts) works on plain tabular data.
"""

from typing import Iterable

import pandas as pd

from burst_pacing.models.pacing import BillingMonth, DailyPoint, DeliveryRow

SERIES_COLUMNS = [
    "date",
    "actual_spend",
    "actual_deliverable",
    "expected_spend",
    "expected_deliverable",
]
DELIVERY_COLUMNS = [
    "date",
    "line_item_id",
    "channel",
    "spend",
    "impressions",
    "clicks",
    "conversions",
    "views",
]
BILLING_COLUMNS = ["month_key", "amount", "media", "fee", "is_estimated"]


def series_to_frame(series: Iterable[DailyPoint]) -> pd.DataFrame:
    """
    Daily pacing series as a DataFrame.

    Adds cumulative actual and expected spend columns.
    """
    df = pd.DataFrame(
        [point.to_dict() for point in series],
        columns=SERIES_COLUMNS
    )
    if df.empty:
        return df

    df["date"] = pd.to_datetime(df["date"])
    df["cumulative_actual_spend"] = df["actual_spend"].cumsum()
    df["cumulative_expected_spend"] = df["expected_spend"].cumsum()
    return df


def delivery_rows_to_frame(rows: Iterable[DeliveryRow]) -> pd.DataFrame:
    """Normalized delivery rows as a DataFrame, one row per record."""
    df = pd.DataFrame([row.to_dict() for row in rows], columns=DELIVERY_COLUMNS)
    if not df.empty:
        df["date"] = pd.to_datetime(df["date"])
        df["spend"] = df["spend"].astype(float)
    return df


def billing_to_frame(months: Iterable[BillingMonth]) -> pd.DataFrame:
    """Billing months as a DataFrame in schedule order."""
    return pd.DataFrame([month.to_dict() for month in months], columns=BILLING_COLUMNS)
