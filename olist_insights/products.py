# products.py: product and category level insights
import pandas as pd

from olist_insights.dataset import Tables, delivered_items, require, take, with_category


def top_products_per_category(tables: Tables, top_n: int = 3) -> pd.DataFrame:
    df = with_category(delivered_items(tables), tables)
    out = df.groupby(["category", "product_id"], as_index=False).agg(
        times_sold=("order_id", "nunique"),
        total_revenue=("price", "sum"),
    )
    # competition ranking: tied products share a rank and leave a gap after it
    out["revenue_rank"] = (
        out.groupby("category")["total_revenue"]
        .rank(method="min", ascending=False)
        .astype(int)
    )
    out = out[out["revenue_rank"] <= top_n].round(2)
    out = out.sort_values(["category", "revenue_rank", "product_id"])
    return out[["category", "product_id", "times_sold", "total_revenue", "revenue_rank"]].reset_index(drop=True)


def category_satisfaction(tables: Tables, min_reviews: int = 50, limit: int = 15) -> pd.DataFrame:
    reviews, orders, items = require(tables, "order_reviews", "orders", "order_items")
    df = (
        reviews[["review_id", "order_id", "review_score"]]
        .merge(orders[["order_id"]], on="order_id", how="inner")
        .merge(items[["order_id", "product_id"]], on="order_id", how="inner")
    )
    df = with_category(df, tables)
    score = df["review_score"]
    df = df.assign(
        excellent=(score == 5).astype(int),
        good=(score == 4).astype(int),
        neutral=(score == 3).astype(int),
        poor=(score <= 2).astype(int),
        satisfied=(score >= 4).astype(int),
    )

    out = df.groupby("category", as_index=False).agg(
        total_reviews=("review_id", "count"),
        avg_rating=("review_score", "mean"),
        excellent_reviews=("excellent", "sum"),
        good_reviews=("good", "sum"),
        neutral_reviews=("neutral", "sum"),
        poor_reviews=("poor", "sum"),
        satisfied=("satisfied", "sum"),
        rows=("review_id", "size"),
    )
    out["satisfaction_rate_pct"] = out["satisfied"] * 100.0 / out["rows"]
    out = out[out["total_reviews"] >= min_reviews].drop(columns=["satisfied", "rows"]).round(2)
    out = out.sort_values(["avg_rating", "total_reviews", "category"], ascending=[False, False, True])
    return take(out, limit)


def products_above_category_average(tables: Tables, limit: int = 20) -> pd.DataFrame:
    """
    Delivered products whose mean selling price beats their category's mean.

    The category mean is taken over every order item of the raw (untranslated)
    category regardless of order status. Products without a category never
    qualify.
    """
    products, items = require(tables, "products", "order_items")
    category_avg = (
        items.merge(products[["product_id", "product_category_name"]], on="product_id", how="inner")
        .dropna(subset=["product_category_name"])
        .groupby("product_category_name")["price"].mean()
        .rename("category_avg_price")
    )

    df = with_category(delivered_items(tables), tables)
    per_product = df.groupby(
        ["product_id", "product_category_name", "category"], as_index=False, dropna=False
    ).agg(
        product_avg_price=("price", "mean"),
        times_sold=("order_id", "nunique"),
    )
    per_product = per_product.merge(
        category_avg, left_on="product_category_name", right_index=True, how="inner"
    )
    out = per_product[per_product["product_avg_price"] > per_product["category_avg_price"]]
    out = out[["product_id", "category", "product_avg_price", "category_avg_price", "times_sold"]].round(2)
    out = out.sort_values(["product_avg_price", "product_id"], ascending=[False, True])
    return take(out, limit)


def cross_sell_pairs(tables: Tables, min_orders: int = 10, limit: int = 20) -> pd.DataFrame:
    """Raw category pairs bought together in the same delivered order."""
    products = require(tables, "products")
    df = delivered_items(tables)[["order_id", "product_id", "price"]]
    df = (
        df.merge(products[["product_id", "product_category_name"]], on="product_id", how="inner")
        .dropna(subset=["product_category_name"])
    )

    pairs = df.merge(df, on="order_id", suffixes=("_1", "_2"))
    # ordered product ids keep each pair once and drop self pairs
    pairs = pairs[pairs["product_id_1"] < pairs["product_id_2"]]
    pairs = pairs.assign(combined_price=pairs["price_1"] + pairs["price_2"]).rename(columns={
        "product_category_name_1": "category_1",
        "product_category_name_2": "category_2",
    })

    out = pairs.groupby(["category_1", "category_2"], as_index=False).agg(
        times_bought_together=("order_id", "nunique"),
        avg_combined_price=("combined_price", "mean"),
    )
    out = out[out["times_bought_together"] >= min_orders].round(2)
    out = out.sort_values(
        ["times_bought_together", "category_1", "category_2"], ascending=[False, True, True]
    )
    return take(out, limit)
