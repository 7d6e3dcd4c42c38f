# cohorts.py: retention of customers grouped by the month of their first delivered purchase
from typing import Optional

import numpy as np
import pandas as pd

from olist_insights.dataset import DELIVERED, Tables, month_start, require, take

TRACKED_OFFSETS = [0, 1, 2, 3]


def month_offset(later: pd.Series, earlier: pd.Series) -> pd.Series:
    """Whole calendar months between two month-start timestamps."""
    return (later.dt.year - earlier.dt.year) * 12 + (later.dt.month - earlier.dt.month)


def cohort_orders(tables: Tables) -> pd.DataFrame:
    orders, customers = require(tables, "orders", "customers")
    df = orders[
        (orders["order_status"] == DELIVERED) & orders["order_purchase_timestamp"].notna()
    ].merge(customers[["customer_id", "customer_unique_id"]], on="customer_id", how="inner")
    df = df.assign(order_month=month_start(df["order_purchase_timestamp"]))
    df["cohort_month"] = df.groupby("customer_unique_id")["order_month"].transform("min")
    df["months_since_first_purchase"] = month_offset(df["order_month"], df["cohort_month"])
    return df[["customer_unique_id", "order_id", "cohort_month", "order_month", "months_since_first_purchase"]]


def _active_customers(df: pd.DataFrame) -> pd.DataFrame:
    # cohort x offset grid of distinct active customers
    return (
        df.groupby(["cohort_month", "months_since_first_purchase"])["customer_unique_id"]
        .nunique()
        .unstack(fill_value=0)
        .sort_index()
    )


def cohort_retention(tables: Tables, limit: Optional[int] = 12) -> pd.DataFrame:
    df = cohort_orders(tables)
    columns = ["cohort_month"] + [f"month_{n}" for n in TRACKED_OFFSETS]
    if df.empty:
        return pd.DataFrame(columns=columns + ["retention_month_1_pct", "retention_month_3_pct"])

    grid = _active_customers(df).reindex(columns=TRACKED_OFFSETS, fill_value=0)
    out = pd.DataFrame({"cohort_month": grid.index})
    for n in TRACKED_OFFSETS:
        out[f"month_{n}"] = grid[n].to_numpy()

    base = out["month_0"].replace(0, np.nan)
    out["retention_month_1_pct"] = (out["month_1"] * 100.0 / base).round(2)
    out["retention_month_3_pct"] = (out["month_3"] * 100.0 / base).round(2)
    return take(out, limit)


def cohort_retention_matrix(tables: Tables, max_offset: Optional[int] = None,
                            as_percent: bool = True) -> pd.DataFrame:
    """
    Full retention triangle: one row per cohort, one `month_<n>` column per
    offset. Values are distinct customers, or a percentage of month 0.
    """
    df = cohort_orders(tables)
    if df.empty:
        return pd.DataFrame(columns=["cohort_month"])

    grid = _active_customers(df)
    last = int(grid.columns.max()) if max_offset is None else max_offset
    grid = grid.reindex(columns=range(0, last + 1), fill_value=0)

    if as_percent:
        grid = grid.div(grid[0].replace(0, np.nan), axis=0).mul(100.0).round(2)

    grid.columns = [f"month_{n}" for n in grid.columns]
    return grid.reset_index()
