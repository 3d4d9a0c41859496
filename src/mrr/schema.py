# file: src/mrr/schema.py
"""
Column contracts and record types for the MRR pipeline.

Tables flow through the pipeline as DataFrames:
- input:      subscription_id, customer_id, start_date, end_date, monthly_amount
- spine:      input columns + month
- classified: spine columns + previous_amount, previous_month, next_month,
              change_category, mrr
- output:     date_month, customer_id, mrr, mrr_change, change_category
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Iterable, Union

import pandas as pd

Identifier = Union[str, int]

INPUT_COLUMNS = [
    "subscription_id",
    "customer_id",
    "start_date",
    "end_date",
    "monthly_amount",
]
SPINE_COLUMNS = INPUT_COLUMNS + ["month"]
CLASSIFIED_COLUMNS = SPINE_COLUMNS + [
    "previous_amount",
    "previous_month",
    "next_month",
    "change_category",
    "mrr",
]
OUTPUT_COLUMNS = ["date_month", "customer_id", "mrr", "mrr_change", "change_category"]


class SchemaError(ValueError):
    """Input table is missing a required column or has an unusable value."""


class InvalidPeriod(ValueError):
    """A subscription period ends before it starts."""

    def __init__(self, subscription_ids: Iterable[Identifier]):
        self.subscription_ids = list(subscription_ids)
        super().__init__(
            f"start_date > end_date for {len(self.subscription_ids)} period(s): "
            f"{self.subscription_ids[:10]}"
        )


class ChangeCategory(str, Enum):
    """Month-level MRR movement labels, in rule priority order."""

    NEW = "NEW"
    CHURN = "CHURN"
    REACTIVATION = "REACTIVATION"
    DOWNGRADE = "DOWNGRADE"
    UPGRADE = "UPGRADE"

    @classmethod
    def values(cls) -> list[str]:
        return [c.value for c in cls]


@dataclass(frozen=True)
class SubscriptionPeriod:
    """One contiguous billing interval. Dates are month granular, end inclusive."""

    subscription_id: Identifier
    customer_id: Identifier
    start_date: pd.Timestamp
    end_date: pd.Timestamp
    monthly_amount: float


def periods_to_frame(periods: Iterable[SubscriptionPeriod]) -> pd.DataFrame:
    """Build an input table from SubscriptionPeriod records."""
    rows = [asdict(p) for p in periods]
    return pd.DataFrame(rows, columns=INPUT_COLUMNS)
