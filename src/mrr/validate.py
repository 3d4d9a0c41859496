# file: src/mrr/validate.py
"""
Hard gates on the MRR output table.

- Coverage: one row per customer month, no gaps, no duplicates
- First month of every customer is NEW
- CHURN months report zero mrr
- mrr_change equals the month-over-month mrr delta
- mrr is known and non-negative, categories are valid labels
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from src.mrr.schema import OUTPUT_COLUMNS, ChangeCategory
from src.mrr.spine import month_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationReport:
    ok: bool
    message: str
    details: dict


def _log_validation_snapshot(work: pd.DataFrame, *, stage: str) -> None:
    """Emit compact debug state for stepwise validation tracing."""
    if work.empty:
        logger.warning("[validation][DEBUG][%s] rows=0 (empty frame)", stage)
        return

    logger.warning(
        "[validation][DEBUG][%s] rows=%d customers=%d month_range=[%s, %s]",
        stage,
        len(work),
        work["customer_id"].nunique(),
        work["date_month"].min(),
        work["date_month"].max(),
    )
    logger.warning(
        "[validation][DEBUG][%s] categories=%s",
        stage,
        work["change_category"].value_counts(dropna=False).to_dict(),
    )


def validate_mrr_output(
    df: pd.DataFrame,
    *,
    periods: Optional[pd.DataFrame] = None,
    atol: float = 1e-9,
    debug: bool = False,
) -> ValidationReport:
    """
    Check an MRR table against the output invariants.

    Args:
        df: Output of compute_mrr
        periods: Prepared input; when given, each customer's month range must
            match its earliest start_date and latest end_date
        atol: Absolute tolerance for the delta check
        debug: Log stage snapshots at WARNING

    Returns:
        ValidationReport; details name the offending customers
    """
    missing_cols = set(OUTPUT_COLUMNS) - set(df.columns)
    if missing_cols:
        return ValidationReport(
            False,
            "Missing required columns",
            {"missing_cols": sorted(missing_cols)},
        )

    if df.empty:
        return ValidationReport(True, "MRR table is empty", {"n_rows": 0})

    work = df.copy()
    work["date_month"] = pd.to_datetime(work["date_month"], errors="raise")
    work = work.sort_values(["customer_id", "date_month"], kind="mergesort").reset_index(drop=True)

    if debug:
        _log_validation_snapshot(work, stage="input")

    dup_counts = work.groupby(["customer_id", "date_month"]).size()
    duplicates = dup_counts[dup_counts > 1]
    if not duplicates.empty:
        return ValidationReport(
            False,
            "Duplicate customer months found",
            {"duplicate_pairs": int(len(duplicates))},
        )

    idx = month_index(work["date_month"])
    step = idx.groupby(work["customer_id"]).diff()
    gap_customers = sorted(work.loc[step > 1, "customer_id"].unique().tolist(), key=str)
    if gap_customers:
        return ValidationReport(
            False,
            "Calendar gaps found",
            {"gap_customers": gap_customers[:10]},
        )

    if periods is not None and not periods.empty:
        expected = periods.groupby("customer_id").agg(
            first_month=("start_date", "min"), last_month=("end_date", "max")
        )
        observed = work.groupby("customer_id").agg(
            first_month=("date_month", "min"), last_month=("date_month", "max")
        )
        aligned = expected.join(observed, how="outer", lsuffix="_expected", rsuffix="_observed")
        mismatch = (
            (aligned["first_month_expected"] != aligned["first_month_observed"])
            | (aligned["last_month_expected"] != aligned["last_month_observed"])
        )
        if mismatch.any():
            return ValidationReport(
                False,
                "Calendar coverage mismatch",
                {"mismatched_customers": sorted(aligned.index[mismatch].tolist(), key=str)[:10]},
            )

    if work["mrr"].isna().any():
        return ValidationReport(
            False,
            "Unfilled mrr values found",
            {"n_missing_mrr": int(work["mrr"].isna().sum())},
        )

    if (work["mrr"] < 0).any():
        return ValidationReport(
            False,
            "Negative mrr found",
            {"n_negative": int((work["mrr"] < 0).sum())},
        )

    labels = work["change_category"].dropna()
    unknown = sorted(set(labels) - set(ChangeCategory.values()))
    if unknown:
        return ValidationReport(False, "Unknown change categories", {"unknown": unknown})

    first_rows = work.groupby("customer_id", sort=False).head(1)
    not_new = first_rows.loc[first_rows["change_category"] != ChangeCategory.NEW.value, "customer_id"]
    if not not_new.empty:
        return ValidationReport(
            False,
            "First month is not NEW",
            {"customers": sorted(not_new.tolist(), key=str)[:10]},
        )

    churn = work["change_category"] == ChangeCategory.CHURN.value
    churn_nonzero = churn & (work["mrr"] != 0)
    if churn_nonzero.any():
        return ValidationReport(
            False,
            "CHURN months with non-zero mrr",
            {"n_rows": int(churn_nonzero.sum())},
        )

    previous = work.groupby("customer_id", sort=False)["mrr"].shift(1)
    expected_change = (work["mrr"] - previous).fillna(work["mrr"])
    bad_delta = ~np.isclose(work["mrr_change"], expected_change, atol=atol)
    if bad_delta.any():
        return ValidationReport(
            False,
            "mrr_change inconsistent with mrr",
            {
                "n_rows": int(bad_delta.sum()),
                "customers": sorted(work.loc[bad_delta, "customer_id"].unique().tolist(), key=str)[:10],
            },
        )

    if debug:
        _log_validation_snapshot(work, stage="passed")

    return ValidationReport(
        True,
        "OK",
        {
            "n_rows": int(len(work)),
            "n_customers": int(work["customer_id"].nunique()),
        },
    )


def assert_mrr_contract(df: pd.DataFrame, periods: Optional[pd.DataFrame] = None) -> None:
    """
    Raise a ValueError if the MRR output contract is violated.
    """
    report = validate_mrr_output(df, periods=periods)
    if not report.ok:
        raise ValueError(f"Invalid MRR table: {report.message} {report.details}")
