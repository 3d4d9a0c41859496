"""
MRR: Subscription revenue reclassification

Step-by-step stages:
1. prepare - Normalize raw subscription periods (SchemaError gate)
2. spine - Expand periods to one row per covered month
3. classify - Label NEW / CHURN / REACTIVATION / DOWNGRADE / UPGRADE
4. project - Gapless customer calendar, forward-filled mrr, mrr_change
5. validate - Output invariants

Usage (CLI):
    python -m src.mrr.cli run --input data/raw/subscriptions.csv
    python -m src.mrr.cli check artifacts/mrr.parquet
"""

from .classify import classify_changes, resolve_duplicate_months
from .pipeline import MrrStages, compute_mrr, run_stages
from .prepare import prepare_subscriptions
from .project import build_customer_calendar, project_revenue
from .schema import (ChangeCategory, InvalidPeriod, SchemaError,
                     SubscriptionPeriod, periods_to_frame)
from .spine import expand_periods, month_diff
from .summary import summarize_mrr
from .validate import ValidationReport, assert_mrr_contract, validate_mrr_output

__all__ = [
    "ChangeCategory",
    "InvalidPeriod",
    "SchemaError",
    "SubscriptionPeriod",
    "periods_to_frame",
    "prepare_subscriptions",
    "expand_periods",
    "month_diff",
    "classify_changes",
    "resolve_duplicate_months",
    "build_customer_calendar",
    "project_revenue",
    "summarize_mrr",
    "ValidationReport",
    "validate_mrr_output",
    "assert_mrr_contract",
    "MrrStages",
    "run_stages",
    "compute_mrr",
]
