# revenue.py: revenue over time for delivered orders
import numpy as np
import pandas as pd

from olist_insights.dataset import (
    DELIVERED,
    Tables,
    add_item_value,
    delivered_items,
    month_start,
    require,
    with_customers,
)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

BLACK_FRIDAY = "Black Friday Season"
CHRISTMAS = "Christmas Season"
REGULAR = "Regular Period"


def _delivered_by_month(tables: Tables) -> pd.DataFrame:
    df = add_item_value(delivered_items(tables))
    return df.assign(month=month_start(df["order_purchase_timestamp"]))


def monthly_revenue_trend(tables: Tables) -> pd.DataFrame:
    df = _delivered_by_month(tables)
    out = df.groupby("month", as_index=False).agg(
        total_orders=("order_id", "nunique"),
        total_items_sold=("product_id", "count"),
        total_revenue=("price", "sum"),
        avg_item_price=("price", "mean"),
        revenue_with_shipping=("item_value", "sum"),
    )
    return out.sort_values("month").round(2).reset_index(drop=True)


def cumulative_revenue(tables: Tables) -> pd.DataFrame:
    df = _delivered_by_month(tables)
    out = (
        df.groupby("month", as_index=False)["price"].sum()
        .rename(columns={"price": "monthly_revenue"})
        .sort_values("month")
    )
    out["cumulative_revenue"] = out["monthly_revenue"].cumsum()
    return out.round(2).reset_index(drop=True)


def month_over_month_growth(tables: Tables) -> pd.DataFrame:
    df = _delivered_by_month(tables)
    out = (
        df.groupby("month", as_index=False)["price"].sum()
        .rename(columns={"price": "revenue"})
        .sort_values("month")
        .reset_index(drop=True)
    )
    # growth is measured on the rounded monthly figures
    out["revenue"] = out["revenue"].round(2)
    prev = out["revenue"].shift(1)
    out["prev_month_revenue"] = prev
    out["revenue_change"] = (out["revenue"] - prev).round(2)
    out["growth_pct"] = ((out["revenue"] - prev) * 100.0 / prev.replace(0, np.nan)).round(2)
    return out


def day_of_week_sales(tables: Tables) -> pd.DataFrame:
    """
    Delivered orders by purchase weekday, Sunday first.
    Order value covers every item in the order.
    """
    orders, items = require(tables, "orders", "order_items")
    totals = (
        add_item_value(items)
        .groupby("order_id", as_index=False)["item_value"].sum()
        .rename(columns={"item_value": "order_value"})
    )
    df = orders[orders["order_status"] == DELIVERED].merge(totals, on="order_id", how="inner")
    df = df.assign(dow=(df["order_purchase_timestamp"].dt.dayofweek + 1) % 7)

    out = df.groupby("dow", as_index=False).agg(
        orders_count=("order_id", "nunique"),
        avg_order_value=("order_value", "mean"),
        total_revenue=("order_value", "sum"),
    ).sort_values("dow")
    out.insert(0, "day_of_week", out["dow"].astype(int).map(dict(enumerate(DAY_NAMES))))
    return out.drop(columns="dow").round(2).reset_index(drop=True)


def quarterly_performance(tables: Tables) -> pd.DataFrame:
    df = with_customers(delivered_items(tables), tables)
    ts = df["order_purchase_timestamp"]
    df = df.assign(year=ts.dt.year, quarter=ts.dt.quarter)
    out = df.groupby(["year", "quarter"], as_index=False).agg(
        total_orders=("order_id", "nunique"),
        revenue=("price", "sum"),
        avg_item_price=("price", "mean"),
        unique_customers=("customer_unique_id", "nunique"),
    )
    out[["year", "quarter"]] = out[["year", "quarter"]].astype(int)
    return out.sort_values(["year", "quarter"]).round(2).reset_index(drop=True)


def holiday_season_revenue(tables: Tables) -> pd.DataFrame:
    df = _delivered_by_month(tables)
    month_no = df["order_purchase_timestamp"].dt.month
    df["period_type"] = np.select(
        [month_no == 11, month_no == 12], [BLACK_FRIDAY, CHRISTMAS], default=REGULAR
    )
    out = df.groupby(["month", "period_type"], as_index=False).agg(
        orders_count=("order_id", "nunique"),
        revenue=("item_value", "sum"),
        avg_order_value=("item_value", "mean"),
    )
    return out.sort_values("month").round(2).reset_index(drop=True)
