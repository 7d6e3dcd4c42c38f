# sales.py: where the money comes from (categories, states, payment types, sellers)
import pandas as pd

from olist_insights.dataset import (
    DELIVERED,
    Tables,
    add_item_value,
    delivered_items,
    require,
    take,
    with_category,
    with_customers,
)


def top_categories_by_revenue(tables: Tables, limit: int = 10) -> pd.DataFrame:
    # every order status counts here, unlike the delivered-only reports
    items = require(tables, "order_items")
    df = with_category(items, tables)
    out = df.groupby("category", as_index=False).agg(
        orders_count=("order_id", "nunique"),
        items_sold=("product_id", "count"),
        total_revenue=("price", "sum"),
        avg_price=("price", "mean"),
    ).round(2)
    out = out.sort_values(["total_revenue", "category"], ascending=[False, True])
    return take(out, limit)


def state_performance(tables: Tables, limit: int = 10) -> pd.DataFrame:
    df = add_item_value(with_customers(delivered_items(tables), tables))
    out = df.groupby("customer_state", as_index=False, dropna=False).agg(
        total_orders=("order_id", "nunique"),
        unique_customers=("customer_id", "nunique"),
        total_revenue=("item_value", "sum"),
        avg_order_value=("item_value", "mean"),
    ).round(2)
    out = out.sort_values(["total_revenue", "customer_state"], ascending=[False, True])
    return take(out, limit)


def payment_methods(tables: Tables) -> pd.DataFrame:
    orders, payments = require(tables, "orders", "order_payments")
    delivered_ids = orders.loc[orders["order_status"] == DELIVERED, "order_id"]
    df = payments[payments["order_id"].isin(delivered_ids)]

    out = df.groupby("payment_type", as_index=False).agg(
        orders_count=("order_id", "nunique"),
        total_paid=("payment_value", "sum"),
        avg_payment=("payment_value", "mean"),
        avg_installments=("payment_installments", "mean"),
    )
    out["revenue_share_pct"] = out["total_paid"] * 100.0 / out["total_paid"].sum()
    out = out.round({
        "total_paid": 2,
        "avg_payment": 2,
        "avg_installments": 1,
        "revenue_share_pct": 2,
    })
    return out.sort_values(["total_paid", "payment_type"], ascending=[False, True]).reset_index(drop=True)


def seller_performance(tables: Tables, min_orders: int = 10, limit: int = 20) -> pd.DataFrame:
    """
    Top sellers by revenue among those with at least `min_orders` delivered orders.

    Reviews are joined per order, so an order with several reviews counts
    its items once per review, mirroring the underlying row-level join.
    """
    sellers, reviews = require(tables, "sellers", "order_reviews")
    df = delivered_items(tables).merge(
        sellers[["seller_id", "seller_city", "seller_state"]], on="seller_id", how="inner"
    )
    df = df.merge(reviews[["order_id", "review_id", "review_score"]], on="order_id", how="left")

    out = df.groupby(["seller_id", "seller_city", "seller_state"], as_index=False, dropna=False).agg(
        orders_fulfilled=("order_id", "nunique"),
        total_revenue=("price", "sum"),
        avg_review_score=("review_score", "mean"),
        reviews_received=("review_id", "count"),
    )
    out = out[out["orders_fulfilled"] >= min_orders].round(2)
    out = out.sort_values(["total_revenue", "seller_id"], ascending=[False, True])
    return take(out, limit)
