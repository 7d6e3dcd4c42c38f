# exploration.py: dataset size, date range and order statuses
import pandas as pd

from olist_insights.dataset import Tables, require

BAR_CHAR = "█"
BAR_WIDTH = 50


def dataset_overview(tables: Tables) -> pd.DataFrame:
    orders, customers, products, sellers = require(
        tables, "orders", "customers", "products", "sellers"
    )
    return pd.DataFrame([{
        "total_orders": len(orders),
        "total_customers": customers["customer_id"].nunique(),
        "total_products": len(products),
        "total_sellers": len(sellers),
        "first_order_date": orders["order_purchase_timestamp"].min(),
        "last_order_date": orders["order_purchase_timestamp"].max(),
    }])


def order_status_distribution(tables: Tables) -> pd.DataFrame:
    orders = require(tables, "orders")
    counts = (
        orders.groupby("order_status", dropna=False)
        .size()
        .rename("order_count")
        .reset_index()
    )
    if counts.empty:
        return counts.assign(percentage=pd.Series(dtype=float), visual_bar=pd.Series(dtype=object))

    total = counts["order_count"].sum()
    longest = counts["order_count"].max()
    counts["percentage"] = (counts["order_count"] * 100.0 / total).round(2)
    # integer division, so only the largest status fills the whole width
    counts["visual_bar"] = [BAR_CHAR * int(n * BAR_WIDTH // longest) for n in counts["order_count"]]
    counts = counts.sort_values(["order_count", "order_status"], ascending=[False, True])
    return counts.reset_index(drop=True)
