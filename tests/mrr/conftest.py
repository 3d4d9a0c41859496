"""Shared builders for MRR tests."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from src.mrr.schema import INPUT_COLUMNS


def make_periods(*rows) -> pd.DataFrame:
    """Rows of (subscription_id, customer_id, start, end, amount) with YYYY-MM dates."""
    return pd.DataFrame(
        [
            {
                "subscription_id": sub_id,
                "customer_id": cust_id,
                "start_date": pd.Timestamp(start),
                "end_date": pd.Timestamp(end),
                "monthly_amount": float(amount),
            }
            for sub_id, cust_id, start, end, amount in rows
        ],
        columns=INPUT_COLUMNS,
    )


def synthetic_periods(n_customers: int = 25, seed: int = 7) -> pd.DataFrame:
    """Random customers with 1-3 periods each: adjacent, gapped or overlapping."""
    rng = np.random.default_rng(seed)
    rows = []
    sub_id = 0
    for c in range(n_customers):
        month = int(rng.integers(0, 12))
        for _ in range(int(rng.integers(1, 4))):
            length = int(rng.integers(1, 7))
            start = pd.Timestamp("2021-01-01") + pd.DateOffset(months=month)
            end = start + pd.DateOffset(months=length - 1)
            amount = float(rng.choice([0, 10, 20, 35, 50]))
            rows.append((f"S{sub_id:03d}", f"C{c:03d}", start, end, amount))
            sub_id += 1
            # next period: overlap (-2..-1), adjacent (0) or gap (1..3)
            month += length + int(rng.integers(-2, 4))
    return make_periods(*rows)


@pytest.fixture
def scenario_c() -> pd.DataFrame:
    return make_periods(("S1", "C", "2021-01", "2021-03", 10))


@pytest.fixture
def scenario_d() -> pd.DataFrame:
    return make_periods(
        ("S1", "D", "2021-01", "2021-02", 10),
        ("S2", "D", "2021-02", "2021-04", 20),
    )


@pytest.fixture
def scenario_e() -> pd.DataFrame:
    return make_periods(
        ("S1", "E", "2021-01", "2021-03", 10),
        ("S3", "E", "2021-06", "2021-08", 15),
    )
