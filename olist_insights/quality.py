# =============================================================================
# DATA QUALITY AUDIT
# =============================================================================
# - Count records that break the expected shape of the marketplace data
# - Reconcile what was charged against what was paid
# - Structural checks (keys, orphans, timelines) reported as errors/warnings

import logging
from typing import Dict, List

import pandas as pd

from olist_insights.dataset import DELIVERED, REQUIRED_COLUMNS, Tables, add_item_value, require, take

logger = logging.getLogger(__name__)

Report = Dict[str, List[str]]


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

PRIMARY_KEYS = {
    "orders": ["order_id"],
    "order_items": ["order_id", "order_item_id"],
    "customers": ["customer_id"],
    "products": ["product_id"],
    "sellers": ["seller_id"],
    "order_payments": ["order_id", "payment_sequential"],
    # review_id alone repeats across orders in the public dump
    "order_reviews": ["review_id", "order_id"],
    "product_category_name_translation": ["product_category_name"],
}

CHILD_TABLES = ["order_items", "order_payments", "order_reviews"]

TIMELINE_COLUMNS = ["order_purchase_timestamp", "order_approved_at", "order_delivered_customer_date"]


# ------------------------------------------------------------
# ISSUE COUNTS & RECONCILIATION
# ------------------------------------------------------------

def data_quality_issues(tables: Tables) -> pd.DataFrame:
    orders, items, payments, reviews, products = require(
        tables, "orders", "order_items", "order_payments", "order_reviews", "products"
    )
    delivered = orders[orders["order_status"] == DELIVERED]

    issues = [
        ("Orders without order items", ~orders["order_id"].isin(items["order_id"])),
        ("Orders without payments", ~orders["order_id"].isin(payments["order_id"])),
        ("Delivered orders without reviews", ~delivered["order_id"].isin(reviews["order_id"])),
        ("Products without category", products["product_category_name"].isna()),
        ("Negative or zero prices", items["price"] <= 0),
    ]
    return pd.DataFrame(
        [(name, int(mask.sum())) for name, mask in issues],
        columns=["issue_type", "count"],
    )


def payment_reconciliation(tables: Tables, tolerance: float = 0.01, limit: int = 20) -> pd.DataFrame:
    """
    Delivered orders whose item total (price + freight) and payment total
    differ by more than `tolerance`.

    Both totals are aggregated on their own before comparing, so an order
    with several items and several payments is not double counted.
    """
    orders, items, payments = require(tables, "orders", "order_items", "order_payments")
    items_total = add_item_value(items).groupby("order_id")["item_value"].sum().rename("items_total")
    payments_total = payments.groupby("order_id")["payment_value"].sum().rename("payments_total")

    df = (
        orders.loc[orders["order_status"] == DELIVERED, ["order_id"]]
        .join(items_total, on="order_id", how="inner")
        .join(payments_total, on="order_id", how="inner")
    )
    df["difference"] = (df["items_total"] - df["payments_total"]).abs()
    out = df[df["difference"] > tolerance].round(2)
    out = out.sort_values(["difference", "order_id"], ascending=[False, True])
    return take(out, limit)



# ------------------------------------------------------------
# VALIDATION REPORT & LOGS
# ------------------------------------------------------------

def init_report() -> Report:
    return {"errors": [], "warnings": [], "info": []}


def log_info(message: str, report: Report) -> None:
    logger.info(message)
    report["info"].append(message)


def log_warning(message: str, report: Report) -> None:
    logger.warning(message)
    report["warnings"].append(message)


def log_error(message: str, report: Report) -> None:
    logger.error(message)
    report["errors"].append(message)


# ------------------------------------------------------------
# STRUCTURAL VALIDATIONS
# ------------------------------------------------------------

def run_column_validations(df: pd.DataFrame, table_name: str, columns: List[str], report: Report) -> bool:
    """Log an error for each column the analyses need but the table lacks."""
    missing = [col for col in columns if col not in df.columns]
    if missing:
        log_error(f"{table_name}: missing column(s): {missing}", report)
    return not missing


def run_key_validations(df: pd.DataFrame, table_name: str, primary_key: List[str], report: Report) -> None:
    """
    Key validations for one table.

    Stops if the key columns are absent.
    """
    if df.empty:
        log_warning(f"{table_name}: table is empty", report)
        return

    missing_pk_columns = [col for col in primary_key if col not in df.columns]
    if missing_pk_columns:
        log_error(f"{table_name}: missing primary key column(s): {missing_pk_columns}", report)
        return

    pk_null_count = df[primary_key].isnull().any(axis=1).sum()
    if pk_null_count > 0:
        log_error(f"{table_name}: {pk_null_count} row(s) with null primary key values", report)

    duplicate_pk_count = df.duplicated(subset=primary_key).sum()
    if duplicate_pk_count > 0:
        log_error(f"{table_name}: {duplicate_pk_count} duplicated primary key value(s)", report)


def run_timeline_validations(orders: pd.DataFrame, report: Report) -> None:
    """
    Order timeline sanity. The public data carries a few of these, so they
    are warnings rather than errors.
    """
    if not run_column_validations(orders, "orders", TIMELINE_COLUMNS, report):
        return

    purchase_ts = orders["order_purchase_timestamp"]

    invalid_approval = (orders["order_approved_at"] < purchase_ts).sum()
    if invalid_approval > 0:
        log_warning(f"orders: {invalid_approval} record(s) where approval precedes purchase", report)

    invalid_delivery = (orders["order_delivered_customer_date"] < purchase_ts).sum()
    if invalid_delivery > 0:
        log_warning(f"orders: {invalid_delivery} record(s) where delivery precedes purchase", report)


def run_cross_table_validations(tables: Tables, report: Report) -> None:
    """Child rows must point at an existing order."""
    if "orders" not in tables or "order_id" not in tables["orders"].columns:
        log_error("Cross-table validation skipped: orders.order_id not loaded", report)
        return

    order_id_set = set(tables["orders"]["order_id"].dropna().unique())

    for table_name in CHILD_TABLES:
        # a missing order_id column is already reported by the column checks
        if table_name not in tables or "order_id" not in tables[table_name].columns:
            continue

        orphans = ~tables[table_name]["order_id"].isin(order_id_set)
        if orphans.any():
            log_error(
                f"{table_name}: {orphans.sum()} orphan record(s) referencing non-existent order_id",
                report,
            )


def validate_tables(tables: Tables) -> Report:
    report = init_report()

    for table_name, primary_key in PRIMARY_KEYS.items():
        if table_name not in tables:
            log_warning(f"{table_name}: not loaded, skipping key checks", report)
            continue

        df = tables[table_name]
        run_column_validations(df, table_name, REQUIRED_COLUMNS.get(table_name, []), report)
        run_key_validations(df, table_name, primary_key, report)

    if "orders" in tables:
        run_timeline_validations(tables["orders"], report)

    run_cross_table_validations(tables, report)

    log_info(
        f"Validation finished: {len(report['errors'])} error(s), {len(report['warnings'])} warning(s)",
        report,
    )
    return report
