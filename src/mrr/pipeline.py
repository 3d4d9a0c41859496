# file: src/mrr/pipeline.py
"""
In-memory MRR pipeline: prepare -> spine -> classify -> resolve -> project.

Pure and deterministic for a given input table; safe to rerun.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from src.mrr.classify import classify_changes, resolve_duplicate_months
from src.mrr.prepare import prepare_subscriptions
from src.mrr.project import build_customer_calendar, project_revenue
from src.mrr.spine import expand_periods
from src.mrr.validate import assert_mrr_contract

logger = logging.getLogger(__name__)


@dataclass
class MrrStages:
    """Every intermediate table of one run, for inspection and tests."""
    periods: pd.DataFrame
    spine: pd.DataFrame
    classified: pd.DataFrame
    resolved: pd.DataFrame
    calendar: pd.DataFrame
    mrr: pd.DataFrame


def run_stages(subscriptions: pd.DataFrame) -> MrrStages:
    """Run all stages and keep the intermediate tables."""
    periods = prepare_subscriptions(subscriptions)
    spine = expand_periods(periods)
    classified = classify_changes(spine)
    resolved = resolve_duplicate_months(classified)
    calendar = build_customer_calendar(periods)
    mrr = project_revenue(resolved, calendar)

    return MrrStages(
        periods=periods,
        spine=spine,
        classified=classified,
        resolved=resolved,
        calendar=calendar,
        mrr=mrr,
    )


def compute_mrr(subscriptions: pd.DataFrame, validate: bool = False) -> pd.DataFrame:
    """
    Compute the per-customer monthly MRR series.

    Args:
        subscriptions: Raw table with subscription_id, customer_id,
            start_date, end_date, monthly_amount
        validate: Check output invariants before returning

    Returns:
        DataFrame [date_month, customer_id, mrr, mrr_change, change_category]

    Raises:
        SchemaError: input columns missing or unusable
        InvalidPeriod: a period ends before it starts
        ValueError: validate=True and an output invariant fails
    """
    stages = run_stages(subscriptions)
    if validate:
        assert_mrr_contract(stages.mrr, periods=stages.periods)
        logger.info("[compute] output contract OK (%d rows)", len(stages.mrr))
    return stages.mrr
