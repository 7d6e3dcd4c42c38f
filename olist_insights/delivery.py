# delivery.py: actual vs promised delivery times for delivered orders
import numpy as np
import pandas as pd

from olist_insights.dataset import DELIVERED, Tables, require

SECONDS_PER_DAY = 86400

ON_TIME = "On Time"
SLIGHTLY_DELAYED = "Slightly Delayed"
DELAYED = "Delayed"
VERY_DELAYED = "Very Delayed"
STATUS_ORDER = [ON_TIME, SLIGHTLY_DELAYED, DELAYED, VERY_DELAYED]


def delivery_times(tables: Tables) -> pd.DataFrame:
    orders = require(tables, "orders")
    df = orders[
        (orders["order_status"] == DELIVERED)
        & orders["order_delivered_customer_date"].notna()
        & orders["order_estimated_delivery_date"].notna()
    ]
    purchase = df["order_purchase_timestamp"]
    actual = (df["order_delivered_customer_date"] - purchase).dt.total_seconds() / SECONDS_PER_DAY
    estimated = (df["order_estimated_delivery_date"] - purchase).dt.total_seconds() / SECONDS_PER_DAY

    # rows with no purchase timestamp compare as false and fall through to Very Delayed
    status = np.select(
        [actual <= estimated, actual <= estimated + 3, actual <= estimated + 7],
        [ON_TIME, SLIGHTLY_DELAYED, DELAYED],
        default=VERY_DELAYED,
    )
    return pd.DataFrame({
        "order_id": df["order_id"].to_numpy(),
        "actual_delivery_days": actual.to_numpy(),
        "estimated_delivery_days": estimated.to_numpy(),
        "delivery_status": status,
    })


def delivery_performance(tables: Tables) -> pd.DataFrame:
    df = delivery_times(tables)
    out = df.groupby("delivery_status", as_index=False).agg(
        orders_count=("order_id", "size"),
        avg_delivery_days=("actual_delivery_days", "mean"),
        min_delivery_days=("actual_delivery_days", "min"),
        max_delivery_days=("actual_delivery_days", "max"),
    )
    out.insert(2, "percentage", (out["orders_count"] * 100.0 / out["orders_count"].sum()).round(2))
    out = out.round({"avg_delivery_days": 1, "min_delivery_days": 1, "max_delivery_days": 1})
    rank = out["delivery_status"].map({name: i for i, name in enumerate(STATUS_ORDER)})
    return out.iloc[rank.argsort(kind="stable")].reset_index(drop=True)
