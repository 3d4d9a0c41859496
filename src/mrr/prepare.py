# file: src/mrr/prepare.py
"""
Boundary normalization for raw subscription tables.

Fail-loud gates, applied before any transformation:
- required columns present
- identifiers non-null, one value type per column (mixed types cast to str)
- dates parse (no silent NaT) and are floored to the first of the month
- amounts numeric (no silent NaN) and non-negative
"""

from __future__ import annotations

import logging

import pandas as pd

from src.mrr.schema import INPUT_COLUMNS, SchemaError

logger = logging.getLogger(__name__)


def to_month_start(values: pd.Series) -> pd.Series:
    """Parse to timezone-naive timestamps floored to the first of the month."""
    parsed = pd.to_datetime(values, errors="coerce", utc=True).dt.tz_localize(None)
    return parsed.dt.to_period("M").dt.to_timestamp().astype("datetime64[ns]")


def prepare_subscriptions(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize a raw subscription table to the input contract.

    Args:
        df: Raw table with at least the INPUT_COLUMNS

    Returns:
        DataFrame with exactly INPUT_COLUMNS, month-start dates, float amounts

    Raises:
        SchemaError: on missing columns or unusable values
    """
    missing = [col for col in INPUT_COLUMNS if col not in df.columns]
    if missing:
        raise SchemaError(f"Missing required columns: {missing}")

    work = df[INPUT_COLUMNS].copy().reset_index(drop=True)

    for col in ("subscription_id", "customer_id"):
        n_null = int(work[col].isna().sum())
        if n_null:
            raise SchemaError(f"{col} has {n_null} null value(s)")
        if work[col].map(type).nunique() > 1:
            logger.warning("[prepare] %s mixes value types, casting to str", col)
            work[col] = work[col].astype(str)

    for col in ("start_date", "end_date"):
        parsed = to_month_start(work[col])
        n_bad = int(parsed.isna().sum())
        if n_bad:
            raise SchemaError(f"{col} has {n_bad} unparseable value(s)")
        work[col] = parsed

    amounts = pd.to_numeric(work["monthly_amount"], errors="coerce")
    n_bad = int(amounts.isna().sum())
    if n_bad:
        raise SchemaError(f"monthly_amount has {n_bad} non-numeric value(s)")
    n_negative = int((amounts < 0).sum())
    if n_negative:
        raise SchemaError(f"monthly_amount has {n_negative} negative value(s)")
    work["monthly_amount"] = amounts.astype("float64")

    logger.info(
        "[prepare] %d period(s), %d customer(s)",
        len(work),
        work["customer_id"].nunique(),
    )
    return work
