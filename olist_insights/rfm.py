# rfm.py: Recency, Frequency, Monetary customer segmentation
#
# Each customer gets a 1-5 score per dimension from NTILE(5) buckets, where
# 5 always means better: most recent, most frequent, highest spend.
from typing import Optional

import numpy as np
import pandas as pd

from olist_insights.dataset import Tables, add_item_value, delivered_items, require, with_customers

N_SCORES = 5

CHAMPIONS = "Champions"
LOYAL = "Loyal Customers"
NEW = "New Customers"
AT_RISK = "At Risk"
LOST = "Lost Customers"
PROMISING = "Promising"
REGULAR = "Regular"


def ntile(values: pd.Series, n: int, ascending: bool = True, tiebreak: Optional[pd.Series] = None) -> pd.Series:
    """
    SQL NTILE(n): split rows ordered by `values` into n buckets numbered from 1.
    When rows don't divide evenly the leading buckets hold one extra row.
    """
    total = len(values)
    if total == 0:
        return pd.Series([], index=values.index, dtype=int)

    frame = pd.DataFrame({"value": values})
    keys, order = ["value"], [ascending]
    if tiebreak is not None:
        frame["tiebreak"] = tiebreak
        keys.append("tiebreak")
        order.append(True)
    ranked_index = frame.sort_values(keys, ascending=order, kind="mergesort").index

    q, r = divmod(total, n)
    pos = np.arange(total)
    big = r * (q + 1)
    buckets = np.where(pos < big, pos // (q + 1) + 1, r + (pos - big) // max(q, 1) + 1)
    return pd.Series(buckets, index=ranked_index).reindex(values.index).astype(int)


def segment_customers(r: pd.Series, f: pd.Series, m: pd.Series) -> np.ndarray:
    # first matching rule wins
    conditions = [
        (r >= 4) & (f >= 4) & (m >= 4),
        (r >= 3) & (f >= 3) & (m >= 3),
        (r >= 4) & (f <= 2),
        (r <= 2) & (f >= 3),
        (r <= 2) & (f <= 2),
        (r >= 3) & (f <= 2) & (m <= 2),
    ]
    choices = [CHAMPIONS, LOYAL, NEW, AT_RISK, LOST, PROMISING]
    return np.select(conditions, choices, default=REGULAR)


def rfm_table(tables: Tables) -> pd.DataFrame:
    orders = require(tables, "orders")
    # recency is measured from the latest purchase of any status
    snapshot = orders["order_purchase_timestamp"].max()

    df = add_item_value(with_customers(delivered_items(tables), tables))
    out = df.groupby("customer_unique_id", as_index=False).agg(
        last_purchase=("order_purchase_timestamp", "max"),
        frequency=("order_id", "nunique"),
        monetary=("item_value", "sum"),
    )
    out["recency_days"] = (snapshot - out["last_purchase"]).dt.days
    out["monetary"] = out["monetary"].round(2)

    ids = out["customer_unique_id"]
    out["r_score"] = ntile(out["recency_days"], N_SCORES, ascending=False, tiebreak=ids)
    out["f_score"] = ntile(out["frequency"], N_SCORES, ascending=True, tiebreak=ids)
    out["m_score"] = ntile(out["monetary"], N_SCORES, ascending=True, tiebreak=ids)
    out["customer_segment"] = segment_customers(out["r_score"], out["f_score"], out["m_score"])

    return out[[
        "customer_unique_id",
        "recency_days",
        "frequency",
        "monetary",
        "r_score",
        "f_score",
        "m_score",
        "customer_segment",
    ]]


def rfm_segment_summary(tables: Tables) -> pd.DataFrame:
    rfm = rfm_table(tables)
    out = rfm.groupby("customer_segment", as_index=False).agg(
        customers_count=("customer_unique_id", "size"),
        avg_recency_days=("recency_days", "mean"),
        avg_orders=("frequency", "mean"),
        avg_lifetime_value=("monetary", "mean"),
        segment_total_value=("monetary", "sum"),
    )
    out["revenue_share_pct"] = out["segment_total_value"] * 100.0 / out["segment_total_value"].sum()
    out = out.round({
        "avg_recency_days": 1,
        "avg_orders": 1,
        "avg_lifetime_value": 2,
        "segment_total_value": 2,
        "revenue_share_pct": 2,
    })
    out = out.sort_values(["segment_total_value", "customer_segment"], ascending=[False, True])
    return out.reset_index(drop=True)
