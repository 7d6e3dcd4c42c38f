import pandas as pd

from olist_insights.exploration import dataset_overview, order_status_distribution


def test_dataset_overview(tables):
    row = dataset_overview(tables).iloc[0]
    assert row["total_orders"] == 7
    assert row["total_customers"] == 7
    assert row["total_products"] == 4
    assert row["total_sellers"] == 2
    assert row["first_order_date"] == pd.Timestamp("2017-01-10 10:00")
    assert row["last_order_date"] == pd.Timestamp("2017-05-01 00:00")


def test_order_status_distribution(tables):
    df = order_status_distribution(tables)
    assert df["order_status"].tolist() == ["delivered", "canceled", "unavailable"]
    assert df["order_count"].tolist() == [5, 1, 1]
    assert df["percentage"].tolist() == [71.43, 14.29, 14.29]
    assert [len(bar) for bar in df["visual_bar"]] == [50, 10, 10]
    assert set(df["visual_bar"].iloc[0]) == {"█"}


def test_order_status_distribution_empty(tables):
    tables["orders"] = tables["orders"].iloc[0:0]
    df = order_status_distribution(tables)
    assert df.empty
    assert "visual_bar" in df.columns
