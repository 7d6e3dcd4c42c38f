import pandas as pd

from olist_insights.quality import data_quality_issues, payment_reconciliation, validate_tables


def test_data_quality_issues(tables):
    df = data_quality_issues(tables).set_index("issue_type")["count"]
    assert df.to_dict() == {
        "Orders without order items": 1,
        "Orders without payments": 2,
        "Delivered orders without reviews": 1,
        "Products without category": 1,
        "Negative or zero prices": 0,
    }


def test_payment_reconciliation_flags_underpaid_order(tables):
    df = payment_reconciliation(tables)
    assert df.to_dict("records") == [
        {"order_id": "o3", "items_total": 33.0, "payments_total": 30.0, "difference": 3.0},
    ]


def test_payment_reconciliation_does_not_double_count_split_payments(tables):
    # o1 has two items; paying it in two installments must still reconcile
    payments = tables["order_payments"]
    payments.loc[payments["order_id"] == "o1", "payment_value"] = 100.0
    tables["order_payments"] = pd.concat([
        payments,
        pd.DataFrame([{
            "order_id": "o1", "payment_sequential": 2, "payment_type": "voucher",
            "payment_installments": 1, "payment_value": 65.0,
        }]),
    ], ignore_index=True)

    df = payment_reconciliation(tables)
    assert df["order_id"].tolist() == ["o3"]


def test_payment_reconciliation_tolerance(tables):
    assert payment_reconciliation(tables, tolerance=5.0).empty


def test_validate_tables_clean(tables):
    report = validate_tables(tables)
    assert report["errors"] == []
    assert report["warnings"] == []
    assert report["info"]


def test_validate_tables_duplicate_key(tables):
    tables["orders"] = pd.concat([tables["orders"], tables["orders"].iloc[[0]]], ignore_index=True)
    report = validate_tables(tables)
    assert any("orders: 1 duplicated primary key" in e for e in report["errors"])


def test_validate_tables_orphans(tables):
    payments = tables["order_payments"]
    payments.loc[0, "order_id"] = "zz"
    report = validate_tables(tables)
    assert any(e.startswith("order_payments: 1 orphan") for e in report["errors"])


def test_validate_tables_timeline_is_a_warning(tables):
    orders = tables["orders"]
    orders.loc[orders["order_id"] == "o2", "order_delivered_customer_date"] = pd.Timestamp("2017-01-01")
    report = validate_tables(tables)
    assert report["errors"] == []
    assert any("delivery precedes purchase" in w for w in report["warnings"])


def test_validate_tables_missing_table(tables):
    del tables["sellers"]
    report = validate_tables(tables)
    assert any(w.startswith("sellers: not loaded") for w in report["warnings"])


def test_validate_tables_reports_missing_columns(tables):
    tables["orders"] = tables["orders"].drop(columns="order_approved_at")
    tables["order_reviews"] = tables["order_reviews"].drop(columns="review_score")

    report = validate_tables(tables)

    assert "orders: missing column(s): ['order_approved_at']" in report["errors"]
    assert "order_reviews: missing column(s): ['review_score']" in report["errors"]


def test_validate_tables_without_order_ids(tables):
    tables["order_items"] = tables["order_items"].drop(columns="order_id")
    report = validate_tables(tables)
    assert "order_items: missing primary key column(s): ['order_id']" in report["errors"]
    assert not any("orphan" in e for e in report["errors"])
