# customers.py: customer value, order history and acquisition
from typing import Optional

import numpy as np
import pandas as pd

from olist_insights.dataset import (
    Tables,
    add_item_value,
    delivered_items,
    month_start,
    require,
    take,
    with_customers,
)

VIP = "VIP"
HIGH_VALUE = "High Value"
MEDIUM_VALUE = "Medium Value"
LOW_VALUE = "Low Value"
SEGMENT_ORDER = [VIP, HIGH_VALUE, MEDIUM_VALUE, LOW_VALUE]

SEGMENT_THRESHOLDS = [(VIP, 1000), (HIGH_VALUE, 500), (MEDIUM_VALUE, 200)]


def _delivered_customer_items(tables: Tables) -> pd.DataFrame:
    return add_item_value(with_customers(delivered_items(tables), tables))


def _order_values(tables: Tables) -> pd.DataFrame:
    df = _delivered_customer_items(tables)
    return (
        df.groupby(["customer_unique_id", "order_id", "order_purchase_timestamp"], as_index=False)
        ["item_value"].sum()
        .rename(columns={"item_value": "order_value"})
    )


def customer_order_sequence(tables: Tables, limit: Optional[int] = 100) -> pd.DataFrame:
    orders = _order_values(tables)
    orders = orders.sort_values(["customer_unique_id", "order_purchase_timestamp", "order_id"])
    orders["order_number"] = orders.groupby("customer_unique_id").cumcount() + 1
    out = orders[[
        "customer_unique_id",
        "order_id",
        "order_purchase_timestamp",
        "order_number",
        "order_value",
    ]].round(2)
    return take(out, limit)


def classify_spend(lifetime_value: pd.Series) -> np.ndarray:
    conditions = [lifetime_value >= floor for _, floor in SEGMENT_THRESHOLDS]
    choices = [name for name, _ in SEGMENT_THRESHOLDS]
    return np.select(conditions, choices, default=LOW_VALUE)


def customer_spending(tables: Tables) -> pd.DataFrame:
    df = _delivered_customer_items(tables)
    out = df.groupby(["customer_unique_id", "customer_state"], as_index=False, dropna=False).agg(
        total_orders=("order_id", "nunique"),
        lifetime_value=("item_value", "sum"),
        last_order_date=("order_purchase_timestamp", "max"),
    )
    out["lifetime_value"] = out["lifetime_value"].round(2)
    out["customer_segment"] = classify_spend(out["lifetime_value"])
    return out


def spend_segments(tables: Tables) -> pd.DataFrame:
    spending = customer_spending(tables)
    out = spending.groupby("customer_segment", as_index=False).agg(
        customers_count=("customer_unique_id", "size"),
        avg_orders_per_customer=("total_orders", "mean"),
        avg_lifetime_value=("lifetime_value", "mean"),
        segment_total_revenue=("lifetime_value", "sum"),
    )
    out = out.round({
        "avg_orders_per_customer": 1,
        "avg_lifetime_value": 2,
        "segment_total_revenue": 2,
    })
    rank = out["customer_segment"].map({name: i for i, name in enumerate(SEGMENT_ORDER)})
    return out.iloc[rank.argsort(kind="stable")].reset_index(drop=True)


def top_category_customers(tables: Tables, top_categories: int = 5, limit: int = 50) -> pd.DataFrame:
    """
    Customers ranked by what they spent in the best-selling raw categories.

    Uncategorised products never take one of the `top_categories` slots,
    however much revenue they carry.
    """
    products = require(tables, "products")
    df = delivered_items(tables).merge(
        products[["product_id", "product_category_name"]], on="product_id", how="inner"
    )
    best = (
        df.dropna(subset=["product_category_name"])
        .groupby("product_category_name")["price"].sum()
        .nlargest(top_categories)
        .index
    )

    df = with_customers(df[df["product_category_name"].isin(best)], tables)
    out = df.groupby(["customer_unique_id", "customer_state"], as_index=False, dropna=False).agg(
        orders_count=("order_id", "nunique"),
        total_spent=("price", "sum"),
    ).round(2)
    out = out.sort_values(["total_spent", "customer_unique_id"], ascending=[False, True])
    return take(out, limit)


def acquisition_trends(tables: Tables) -> pd.DataFrame:
    orders = _order_values(tables)
    first = (
        orders.sort_values(["customer_unique_id", "order_purchase_timestamp", "order_id"])
        .drop_duplicates("customer_unique_id")
    )
    first = first.assign(acquisition_month=month_start(first["order_purchase_timestamp"]))

    out = first.groupby("acquisition_month", as_index=False).agg(
        new_customers=("customer_unique_id", "nunique"),
        avg_first_order_value=("order_value", "mean"),
    ).sort_values("acquisition_month")
    out["cumulative_customers"] = out["new_customers"].cumsum()
    return out.round(2).reset_index(drop=True)
