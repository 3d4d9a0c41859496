# file: src/mrr/spine.py
"""
Date spine: expand each subscription period to one row per covered month.

Month arithmetic is whole calendar months (Jan -> Mar = 2), never day-based.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from src.mrr.schema import INPUT_COLUMNS, SPINE_COLUMNS, InvalidPeriod

logger = logging.getLogger(__name__)


def month_index(values: pd.Series) -> pd.Series:
    """Months since year 0, so consecutive calendar months differ by 1."""
    return values.dt.year * 12 + values.dt.month - 1


def months_from_index(index: np.ndarray) -> pd.Series:
    """Inverse of month_index: first-of-month timestamps."""
    index = np.asarray(index, dtype="int64")
    return pd.to_datetime(
        pd.DataFrame({"year": index // 12, "month": index % 12 + 1, "day": 1})
    ).astype("datetime64[ns]")


def month_diff(start: pd.Timestamp, end: pd.Timestamp) -> int:
    """Whole calendar months from start to end."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def month_range(start: pd.Timestamp, end: pd.Timestamp) -> pd.DatetimeIndex:
    """Inclusive first-of-month range."""
    return pd.date_range(start=start, end=end, freq="MS").astype("datetime64[ns]")


def expand_periods(periods: pd.DataFrame) -> pd.DataFrame:
    """
    Expand subscription periods into subscription months.

    Overlapping periods for the same customer are kept as-is; overlap is
    resolved after classification.

    Args:
        periods: Prepared input table (see prepare_subscriptions)

    Returns:
        DataFrame with SPINE_COLUMNS, one row per (period, month)

    Raises:
        InvalidPeriod: if any period has start_date > end_date
    """
    inverted = periods["start_date"] > periods["end_date"]
    if inverted.any():
        raise InvalidPeriod(periods.loc[inverted, "subscription_id"].tolist())

    if periods.empty:
        return pd.DataFrame(columns=SPINE_COLUMNS)

    start_idx = month_index(periods["start_date"]).to_numpy()
    end_idx = month_index(periods["end_date"]).to_numpy()
    n_months = end_idx - start_idx + 1

    positions = np.repeat(np.arange(len(periods)), n_months)
    spine = periods.iloc[positions][INPUT_COLUMNS].reset_index(drop=True)
    month_idx = np.repeat(start_idx, n_months) + _offsets(n_months)
    spine["month"] = months_from_index(month_idx).to_numpy()

    logger.info("[spine] %d period(s) -> %d subscription month(s)", len(periods), len(spine))
    return spine[SPINE_COLUMNS]


def _offsets(n_months: np.ndarray) -> np.ndarray:
    """0..n-1 for each run length in n_months, concatenated."""
    total = int(n_months.sum())
    run_starts = np.repeat(np.cumsum(n_months) - n_months, n_months)
    return np.arange(total) - run_starts
