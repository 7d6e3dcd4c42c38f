import pandas as pd

from olist_insights.customers import (
    acquisition_trends,
    classify_spend,
    customer_order_sequence,
    customer_spending,
    spend_segments,
    top_category_customers,
)


def test_customer_order_sequence(tables):
    df = customer_order_sequence(tables)
    assert df[["customer_unique_id", "order_id", "order_number"]].values.tolist() == [
        ["u1", "o1", 1],
        ["u1", "o2", 2],
        ["u2", "o3", 1],
        ["u2", "o6", 2],
        ["u4", "o5", 1],
    ]
    assert df["order_value"].tolist() == [165.0, 220.0, 33.0, 66.0, 1050.0]
    assert len(customer_order_sequence(tables, limit=2)) == 2


def test_classify_spend_boundaries():
    values = pd.Series([1000.0, 999.99, 500.0, 200.0, 199.99, 0.0])
    assert classify_spend(values).tolist() == [
        "VIP", "High Value", "High Value", "Medium Value", "Low Value", "Low Value",
    ]


def test_customer_spending_merges_customer_ids(tables):
    df = customer_spending(tables).set_index("customer_unique_id")
    assert df.loc["u1", "total_orders"] == 2
    assert df.loc["u1", "lifetime_value"] == 385.0
    assert df.loc["u1", "last_order_date"] == pd.Timestamp("2017-02-05 12:00")
    assert "u3" not in df.index


def test_spend_segments_fixed_order(tables):
    df = spend_segments(tables)
    assert df["customer_segment"].tolist() == ["VIP", "Medium Value", "Low Value"]
    assert df["customers_count"].tolist() == [1, 1, 1]
    assert df["avg_orders_per_customer"].tolist() == [1.0, 2.0, 2.0]
    assert df["avg_lifetime_value"].tolist() == [1050.0, 385.0, 99.0]
    assert df["segment_total_revenue"].tolist() == [1050.0, 385.0, 99.0]


def test_top_category_customers(tables):
    df = top_category_customers(tables, top_categories=1)
    assert df.to_dict("records") == [
        {"customer_unique_id": "u4", "customer_state": "SP", "orders_count": 1, "total_spent": 1000.0},
    ]

    df = top_category_customers(tables, top_categories=2)
    assert df["customer_unique_id"].tolist() == ["u4", "u1"]
    assert df["orders_count"].tolist() == [1, 2]
    assert df["total_spent"].tolist() == [1000.0, 300.0]


def test_top_category_customers_skips_uncategorised_revenue(tables):
    items = tables["order_items"]
    items.loc[items["product_id"] == "p3", "price"] = 5000.0
    df = top_category_customers(tables, top_categories=1)
    assert df["customer_unique_id"].tolist() == ["u4"]


def test_acquisition_trends_counts_each_customer_once(tables):
    df = acquisition_trends(tables)
    assert df["acquisition_month"].tolist() == [pd.Timestamp("2017-01-01"), pd.Timestamp("2017-04-01")]
    # u2's second order in April is not a new acquisition
    assert df["new_customers"].tolist() == [2, 1]
    assert df["avg_first_order_value"].tolist() == [99.0, 1050.0]
    assert df["cumulative_customers"].tolist() == [2, 3]
