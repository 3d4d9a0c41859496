# file: src/mrr/summary.py
"""Monthly MRR movement roll-up across customers."""

from __future__ import annotations

import pandas as pd

from src.mrr.schema import ChangeCategory

BUCKETS = {
    ChangeCategory.NEW.value: "new_mrr",
    ChangeCategory.UPGRADE.value: "upgrade_mrr",
    ChangeCategory.DOWNGRADE.value: "downgrade_mrr",
    ChangeCategory.CHURN.value: "churn_mrr",
    ChangeCategory.REACTIVATION.value: "reactivation_mrr",
}
OTHER_BUCKET = "other_mrr"
SUMMARY_COLUMNS = (
    ["date_month", "total_mrr", "active_customers"]
    + list(BUCKETS.values())
    + [OTHER_BUCKET, "net_change"]
)


def summarize_mrr(mrr: pd.DataFrame) -> pd.DataFrame:
    """
    Aggregate an MRR table to one row per month.

    mrr_change is summed per category bucket; rows without a category land in
    other_mrr. net_change is the sum of all buckets.
    """
    if mrr.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    work = mrr.copy()
    work["bucket"] = work["change_category"].map(BUCKETS).fillna(OTHER_BUCKET)

    movements = (
        work.pivot_table(
            index="date_month",
            columns="bucket",
            values="mrr_change",
            aggfunc="sum",
            fill_value=0.0,
        )
        .reindex(columns=list(BUCKETS.values()) + [OTHER_BUCKET], fill_value=0.0)
    )
    movements.columns.name = None

    totals = work.groupby("date_month").agg(
        total_mrr=("mrr", "sum"),
        active_customers=("mrr", lambda s: int((s > 0).sum())),
    )

    summary = totals.join(movements).reset_index()
    summary["net_change"] = summary[list(BUCKETS.values()) + [OTHER_BUCKET]].sum(axis=1)
    return summary[SUMMARY_COLUMNS].sort_values("date_month").reset_index(drop=True)
