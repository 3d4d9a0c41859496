# file: src/mrr/project.py
"""
Revenue projection onto a gapless customer calendar.

1. Calendar: every month from a customer's first start_date to last end_date
2. Left join the resolved classified months onto the calendar
3. One ordered scan per customer: forward-fill mrr, compute mrr_change
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import pandas as pd

from src.mrr.schema import OUTPUT_COLUMNS
from src.mrr.spine import month_range

logger = logging.getLogger(__name__)

_NO_CUSTOMER = object()


def build_customer_calendar(periods: pd.DataFrame) -> pd.DataFrame:
    """
    Build the (customer_id, date_month) spine per customer.

    Args:
        periods: Any table with customer_id, start_date, end_date

    Returns:
        DataFrame [customer_id, date_month] sorted by customer then month
    """
    if periods.empty:
        return pd.DataFrame(columns=["customer_id", "date_month"])

    bounds = (
        periods.groupby("customer_id", sort=True)
        .agg(first_month=("start_date", "min"), last_month=("end_date", "max"))
        .reset_index()
    )
    frames = [
        pd.DataFrame({
            "customer_id": b.customer_id,
            "date_month": month_range(b.first_month, b.last_month),
        })
        for b in bounds.itertuples(index=False)
    ]
    return pd.concat(frames, ignore_index=True)


def fill_and_diff(customers: list, values: list) -> tuple[list, list]:
    """
    Forward-fill values and compute deltas in a single pass.

    Both lists must be ordered by customer, then month ascending. A NaN value
    inherits the last known value of the same customer. The first known value
    of a customer has a delta equal to itself.
    """
    filled = []
    changes = []
    current = _NO_CUSTOMER
    carried: Optional[float] = None

    for customer, value in zip(customers, values):
        if customer != current:
            current = customer
            carried = None

        if value is None or math.isnan(value):
            value = carried if carried is not None else math.nan

        if carried is None or math.isnan(value):
            change = value
        else:
            change = value - carried

        filled.append(value)
        changes.append(change)
        if not math.isnan(value):
            carried = value

    return filled, changes


def project_revenue(
    resolved: pd.DataFrame,
    calendar: Optional[pd.DataFrame] = None,
) -> pd.DataFrame:
    """
    Project classified months onto the customer calendar.

    Args:
        resolved: Classified months with one row per (customer_id, month)
        calendar: Customer calendar; built from resolved when omitted

    Returns:
        DataFrame with OUTPUT_COLUMNS sorted by customer_id, date_month
    """
    if calendar is None:
        calendar = build_customer_calendar(resolved)
    if calendar.empty:
        return pd.DataFrame(columns=OUTPUT_COLUMNS)

    observed = resolved[["customer_id", "month", "mrr", "change_category"]].rename(
        columns={"month": "date_month"}
    )
    joined = calendar.merge(
        observed,
        on=["customer_id", "date_month"],
        how="left",
        validate="one_to_one",
    )
    joined = joined.sort_values(["customer_id", "date_month"], kind="mergesort").reset_index(drop=True)

    filled, changes = fill_and_diff(
        joined["customer_id"].tolist(),
        joined["mrr"].astype("float64").tolist(),
    )
    joined["mrr"] = pd.Series(filled, dtype="float64")
    joined["mrr_change"] = pd.Series(changes, dtype="float64")

    joined["change_category"] = pd.Series(
        [c if isinstance(c, str) else None for c in joined["change_category"]],
        index=joined.index,
        dtype="object",
    )

    n_uncategorized = int(joined["change_category"].isna().sum())
    logger.info(
        "[project] %d customer month(s), %d customer(s), %d uncategorized",
        len(joined),
        joined["customer_id"].nunique(),
        n_uncategorized,
    )
    return joined[OUTPUT_COLUMNS]
