# views.py: the three convenience views kept in the database, plus pandas builders
# that produce the same frames from loaded tables
import logging
from typing import Iterable, Optional

import pandas as pd
from sqlalchemy import text

from olist_insights.dataset import (
    DatasetError,
    Tables,
    add_item_value,
    delivered_items,
    month_start,
    require,
    run_query,
    with_category,
    with_customers,
)

logger = logging.getLogger(__name__)

MONTHLY_REVENUE_DASHBOARD = """
CREATE OR REPLACE VIEW monthly_revenue_dashboard AS
SELECT
    DATE_TRUNC('month', o.order_purchase_timestamp) AS month,
    COUNT(DISTINCT o.order_id) AS total_orders,
    COUNT(DISTINCT c.customer_unique_id) AS unique_customers,
    COUNT(oi.product_id) AS items_sold,
    ROUND(SUM(oi.price), 2) AS product_revenue,
    ROUND(SUM(oi.freight_value), 2) AS shipping_revenue,
    ROUND(SUM(oi.price + oi.freight_value), 2) AS total_revenue,
    ROUND(AVG(oi.price + oi.freight_value), 2) AS avg_order_value
FROM orders o
JOIN order_items oi ON o.order_id = oi.order_id
JOIN customers c ON o.customer_id = c.customer_id
WHERE o.order_status = 'delivered'
GROUP BY 1
ORDER BY 1;
"""

CUSTOMER_LIFETIME_VALUE = """
CREATE OR REPLACE VIEW customer_lifetime_value AS
SELECT
    c.customer_unique_id,
    c.customer_state,
    c.customer_city,
    COUNT(DISTINCT o.order_id) AS total_orders,
    MIN(o.order_purchase_timestamp) AS first_order_date,
    MAX(o.order_purchase_timestamp) AS last_order_date,
    ROUND(SUM(oi.price + oi.freight_value), 2) AS lifetime_value,
    ROUND(AVG(oi.price + oi.freight_value), 2) AS avg_order_value,
    ROUND(SUM(oi.price + oi.freight_value) / NULLIF(COUNT(DISTINCT o.order_id), 0), 2) AS revenue_per_order
FROM customers c
JOIN orders o ON c.customer_id = o.customer_id
JOIN order_items oi ON o.order_id = oi.order_id
WHERE o.order_status = 'delivered'
GROUP BY c.customer_unique_id, c.customer_state, c.customer_city;
"""

PRODUCT_PERFORMANCE = """
CREATE OR REPLACE VIEW product_performance AS
SELECT
    p.product_id,
    COALESCE(pt.product_category_name_english, 'Unknown') AS category,
    COUNT(DISTINCT oi.order_id) AS times_ordered,
    ROUND(SUM(oi.price), 2) AS total_revenue,
    ROUND(AVG(oi.price), 2) AS avg_price,
    ROUND(AVG(orv.review_score), 2) AS avg_review_score,
    COUNT(orv.review_id) AS review_count
FROM products p
LEFT JOIN product_category_name_translation pt
    ON p.product_category_name = pt.product_category_name
JOIN order_items oi ON p.product_id = oi.product_id
JOIN orders o ON oi.order_id = o.order_id
LEFT JOIN order_reviews orv ON o.order_id = orv.order_id
WHERE o.order_status = 'delivered'
GROUP BY p.product_id, pt.product_category_name_english;
"""

VIEW_DEFINITIONS = {
    "monthly_revenue_dashboard": MONTHLY_REVENUE_DASHBOARD,
    "customer_lifetime_value": CUSTOMER_LIFETIME_VALUE,
    "product_performance": PRODUCT_PERFORMANCE,
}


# ----------------------------
# Database side
# ----------------------------
def _check_names(names: Iterable[str]) -> list:
    names = list(names)
    unknown = [n for n in names if n not in VIEW_DEFINITIONS]
    if unknown:
        raise DatasetError(f"unknown view(s): {unknown}")
    return names


def create_views(engine, names: Optional[Iterable[str]] = None) -> list:
    names = _check_names(names if names is not None else VIEW_DEFINITIONS)
    # one transaction: either every view is replaced or none is
    with engine.begin() as conn:
        for name in names:
            conn.execute(text(VIEW_DEFINITIONS[name]))
            logger.info("Created view %s", name)
    return names


def read_view(engine, name: str) -> pd.DataFrame:
    _check_names([name])
    return run_query(f"SELECT * FROM {name}", engine)


# ----------------------------
# Pandas equivalents
# ----------------------------
def monthly_revenue_dashboard(tables: Tables) -> pd.DataFrame:
    df = add_item_value(with_customers(delivered_items(tables), tables))
    df = df.assign(month=month_start(df["order_purchase_timestamp"]))
    out = df.groupby("month", as_index=False).agg(
        total_orders=("order_id", "nunique"),
        unique_customers=("customer_unique_id", "nunique"),
        items_sold=("product_id", "count"),
        product_revenue=("price", "sum"),
        shipping_revenue=("freight_value", "sum"),
        total_revenue=("item_value", "sum"),
        avg_order_value=("item_value", "mean"),
    )
    return out.sort_values("month").round(2).reset_index(drop=True)


def customer_lifetime_value(tables: Tables) -> pd.DataFrame:
    df = add_item_value(with_customers(delivered_items(tables), tables))
    keys = ["customer_unique_id", "customer_state", "customer_city"]
    out = df.groupby(keys, as_index=False, dropna=False).agg(
        total_orders=("order_id", "nunique"),
        first_order_date=("order_purchase_timestamp", "min"),
        last_order_date=("order_purchase_timestamp", "max"),
        lifetime_value=("item_value", "sum"),
        avg_order_value=("item_value", "mean"),
    )
    out["revenue_per_order"] = out["lifetime_value"] / out["total_orders"]
    return out.round(2)


def product_performance(tables: Tables) -> pd.DataFrame:
    reviews = require(tables, "order_reviews")
    df = with_category(delivered_items(tables), tables)
    df = df.merge(reviews[["order_id", "review_id", "review_score"]], on="order_id", how="left")
    out = df.groupby(["product_id", "category"], as_index=False).agg(
        times_ordered=("order_id", "nunique"),
        total_revenue=("price", "sum"),
        avg_price=("price", "mean"),
        avg_review_score=("review_score", "mean"),
        review_count=("review_id", "count"),
    )
    return out.round(2)


VIEW_BUILDERS = {
    "monthly_revenue_dashboard": monthly_revenue_dashboard,
    "customer_lifetime_value": customer_lifetime_value,
    "product_performance": product_performance,
}
