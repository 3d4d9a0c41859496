# file: src/mrr/classify.py
"""
Change classification over subscription months.

Per customer, rows are sorted once by (month, start_date, subscription_id) and
scanned linearly to attach neighbor state (previous_amount, previous_month,
next_month). Each row then gets the first matching label:

1. no previous month                            -> NEW
2. no next month, or gap to next month > 1      -> CHURN (mrr forced to 0)
3. gap from previous month > 1                  -> REACTIVATION
4. month == start_date and amount < previous    -> DOWNGRADE
5. month == start_date and amount > previous    -> UPGRADE
6. otherwise                                    -> None
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from src.mrr.schema import CLASSIFIED_COLUMNS, ChangeCategory
from src.mrr.spine import month_diff

logger = logging.getLogger(__name__)

SCAN_ORDER = ["customer_id", "month", "start_date", "subscription_id"]

Row = Dict[str, Any]


def categorize(row: Row, previous: Optional[Row], following: Optional[Row]) -> Optional[ChangeCategory]:
    """Label one subscription month given its neighbors within the customer."""
    if previous is None:
        return ChangeCategory.NEW
    if following is None or month_diff(row["month"], following["month"]) > 1:
        return ChangeCategory.CHURN
    if month_diff(previous["month"], row["month"]) > 1:
        return ChangeCategory.REACTIVATION
    if row["month"] == row["start_date"]:
        if row["monthly_amount"] < previous["monthly_amount"]:
            return ChangeCategory.DOWNGRADE
        if row["monthly_amount"] > previous["monthly_amount"]:
            return ChangeCategory.UPGRADE
    return None


def classify_changes(spine: pd.DataFrame) -> pd.DataFrame:
    """
    Attach neighbor state and change_category to every subscription month.

    Args:
        spine: Output of expand_periods

    Returns:
        DataFrame with CLASSIFIED_COLUMNS, sorted by SCAN_ORDER. Duplicate
        (customer_id, month) rows from overlapping periods are still present.
    """
    if spine.empty:
        return pd.DataFrame(columns=CLASSIFIED_COLUMNS)

    rows = spine.sort_values(SCAN_ORDER, kind="mergesort").reset_index(drop=True)
    records = rows.to_dict("records")
    n = len(records)

    previous_amounts = []
    previous_months = []
    next_months = []
    categories = []
    mrr = []

    for i, row in enumerate(records):
        customer = row["customer_id"]
        previous = records[i - 1] if i > 0 and records[i - 1]["customer_id"] == customer else None
        following = records[i + 1] if i + 1 < n and records[i + 1]["customer_id"] == customer else None

        category = categorize(row, previous, following)

        previous_amounts.append(previous["monthly_amount"] if previous else np.nan)
        previous_months.append(previous["month"] if previous else pd.NaT)
        next_months.append(following["month"] if following else pd.NaT)
        categories.append(category.value if category else None)
        mrr.append(0.0 if category is ChangeCategory.CHURN else float(row["monthly_amount"]))

    rows["previous_amount"] = np.asarray(previous_amounts, dtype="float64")
    rows["previous_month"] = pd.to_datetime(pd.Series(previous_months, dtype="object"))
    rows["next_month"] = pd.to_datetime(pd.Series(next_months, dtype="object"))
    rows["change_category"] = pd.Series(categories, dtype="object")
    rows["mrr"] = np.asarray(mrr, dtype="float64")

    counts = rows["change_category"].value_counts().to_dict()
    logger.info("[classify] %d row(s), categories=%s", len(rows), counts)
    return rows[CLASSIFIED_COLUMNS]


def resolve_duplicate_months(classified: pd.DataFrame) -> pd.DataFrame:
    """
    Keep one row per (customer_id, month).

    Sort key: classified rows before unclassified ones, then scan position.
    The first row per slot wins.
    """
    if classified.empty:
        return classified.copy()

    work = classified.reset_index(drop=True)
    is_unclassified = work["change_category"].isna()
    keyed = work.assign(
        _unclassified=is_unclassified.to_numpy(),
        _seq=np.arange(len(work)),
    )
    keyed = keyed.sort_values(
        ["customer_id", "month", "_unclassified", "_seq"],
        kind="mergesort",
    )
    resolved = (
        keyed.drop_duplicates(subset=["customer_id", "month"], keep="first")
        .drop(columns=["_unclassified", "_seq"])
        .reset_index(drop=True)
    )

    n_dropped = len(work) - len(resolved)
    if n_dropped:
        logger.info("[classify] dropped %d duplicate customer month(s)", n_dropped)
    return resolved
