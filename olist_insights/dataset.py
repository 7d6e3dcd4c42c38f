# dataset.py: read the pre-loaded Olist tables and the joins every analysis shares
import logging
from typing import Dict, Iterable, List, Optional

import pandas as pd
from sqlalchemy import text

logger = logging.getLogger(__name__)

Tables = Dict[str, pd.DataFrame]

TABLES = [
    "orders",
    "order_items",
    "customers",
    "products",
    "sellers",
    "order_payments",
    "order_reviews",
    "product_category_name_translation",
]

TIMESTAMP_COLUMNS = {
    "orders": [
        "order_purchase_timestamp",
        "order_approved_at",
        "order_delivered_carrier_date",
        "order_delivered_customer_date",
        "order_estimated_delivery_date",
    ],
    "order_items": ["shipping_limit_date"],
    "order_reviews": ["review_creation_date", "review_answer_timestamp"],
}

# columns the analyses read; a table missing any of them is rejected by `require`
REQUIRED_COLUMNS = {
    "orders": [
        "order_id",
        "customer_id",
        "order_status",
        "order_purchase_timestamp",
        "order_delivered_customer_date",
        "order_estimated_delivery_date",
    ],
    "order_items": ["order_id", "product_id", "seller_id", "price", "freight_value"],
    "customers": ["customer_id", "customer_unique_id", "customer_city", "customer_state"],
    "products": ["product_id", "product_category_name"],
    "sellers": ["seller_id", "seller_city", "seller_state"],
    "order_payments": ["order_id", "payment_type", "payment_installments", "payment_value"],
    "order_reviews": ["review_id", "order_id", "review_score"],
    "product_category_name_translation": ["product_category_name", "product_category_name_english"],
}

DELIVERED = "delivered"
UNKNOWN_CATEGORY = "Unknown"


class DatasetError(RuntimeError):
    """A table, column, analysis or view the caller asked for does not exist."""


# ----------------------------
# Loading
# ----------------------------
def run_query(sql: str, engine, params: Optional[dict] = None) -> pd.DataFrame:
    with engine.connect() as conn:
        df = pd.read_sql(text(sql), conn, params=params)
    return df


def parse_timestamps(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    df = df.copy()
    for col in columns:
        if col in df.columns:
            df[col] = pd.to_datetime(df[col], errors="coerce")
    return df


def load_tables(engine, names: Optional[Iterable[str]] = None) -> Tables:
    names = list(names) if names is not None else list(TABLES)
    unknown = [n for n in names if n not in TABLES]
    if unknown:
        raise DatasetError(f"unknown table(s): {unknown}")

    tables: Tables = {}
    for name in names:
        df = run_query(f"SELECT * FROM {name}", engine)
        tables[name] = parse_timestamps(df, TIMESTAMP_COLUMNS.get(name, []))
        logger.info("Loaded %s (%d rows)", name, len(df))
    return tables


# ----------------------------
# Guards
# ----------------------------
def require(tables: Tables, *names: str):
    """
    Return the named frames (a single frame when one name is given), after
    checking each carries the columns listed in REQUIRED_COLUMNS.
    """
    missing = [n for n in names if n not in tables]
    if missing:
        raise DatasetError(f"missing required table(s): {missing}")
    for n in names:
        require_columns(tables[n], n, REQUIRED_COLUMNS.get(n, []))
    frames = [tables[n] for n in names]
    return frames[0] if len(frames) == 1 else frames


def require_columns(df: pd.DataFrame, table_name: str, columns: List[str]) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise DatasetError(f"{table_name}: missing column(s): {missing}")


# ----------------------------
# Shared joins and derived columns
# ----------------------------
def month_start(ts: pd.Series) -> pd.Series:
    return ts.dt.to_period("M").dt.to_timestamp()


def add_item_value(df: pd.DataFrame) -> pd.DataFrame:
    return df.assign(item_value=df["price"] + df["freight_value"])


def items_with_orders(tables: Tables, status: Optional[str] = None) -> pd.DataFrame:
    orders, items = require(tables, "orders", "order_items")
    df = orders.merge(items, on="order_id", how="inner")
    if status is not None:
        df = df[df["order_status"] == status]
    return df.reset_index(drop=True)


def delivered_items(tables: Tables) -> pd.DataFrame:
    return items_with_orders(tables, DELIVERED)


def with_customers(df: pd.DataFrame, tables: Tables) -> pd.DataFrame:
    customers = require(tables, "customers")
    cols = ["customer_id", "customer_unique_id", "customer_city", "customer_state"]
    return df.merge(customers[cols], on="customer_id", how="inner")


def with_category(df: pd.DataFrame, tables: Tables) -> pd.DataFrame:
    """
    Attach the raw category and its English name to rows carrying a product_id.
    Untranslated or uncategorised products share the `Unknown` bucket.
    """
    products, translation = require(tables, "products", "product_category_name_translation")
    translation = translation.dropna(subset=["product_category_name"])
    out = df.merge(products[["product_id", "product_category_name"]], on="product_id", how="inner")
    out = out.merge(
        translation[["product_category_name", "product_category_name_english"]],
        on="product_category_name",
        how="left",
    )
    out["category"] = out["product_category_name_english"].fillna(UNKNOWN_CATEGORY)
    return out


def take(df: pd.DataFrame, limit: Optional[int]) -> pd.DataFrame:
    if limit is not None:
        df = df.head(limit)
    return df.reset_index(drop=True)
