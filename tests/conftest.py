import pandas as pd
import pytest


def _ts(values):
    return pd.to_datetime(pd.Series(values, dtype=object))


def build_tables():
    """
    A small marketplace:

    - u1 buys twice (o1 Jan, o2 Feb) under two customer ids, u2 buys twice
      (o3 Jan, o6 Apr), u4 once (o5 Apr), u3 cancels (o4), u5's order o7 is
      unavailable and has no items.
    - p3 has no category, p4's category has no English translation.
    - o3 is paid 3.00 short, o6 has no payment and no review.
    """
    orders = pd.DataFrame({
        "order_id": ["o1", "o2", "o3", "o4", "o5", "o6", "o7"],
        "customer_id": ["c1", "c2", "c3", "c4", "c5", "c6", "c7"],
        "order_status": ["delivered", "delivered", "delivered", "canceled",
                         "delivered", "delivered", "unavailable"],
        "order_purchase_timestamp": _ts([
            "2017-01-10 10:00", "2017-02-05 12:00", "2017-01-20 08:00", "2017-03-01 09:00",
            "2017-04-15 09:00", "2017-04-20 10:00", "2017-05-01 00:00",
        ]),
        "order_approved_at": _ts([
            "2017-01-10 11:00", "2017-02-05 13:00", "2017-01-20 09:00", None,
            "2017-04-15 10:00", "2017-04-20 11:00", None,
        ]),
        "order_delivered_carrier_date": _ts([
            "2017-01-12 10:00", "2017-02-08 12:00", "2017-01-21 08:00", None,
            "2017-04-17 09:00", "2017-04-25 10:00", None,
        ]),
        "order_delivered_customer_date": _ts([
            "2017-01-15 10:00", "2017-02-20 12:00", "2017-01-22 08:00", None,
            "2017-04-25 09:00", "2017-05-10 10:00", None,
        ]),
        "order_estimated_delivery_date": _ts([
            "2017-01-20 10:00", "2017-02-15 12:00", "2017-02-01 08:00", "2017-03-20 00:00",
            "2017-04-23 09:00", "2017-04-30 10:00", "2017-05-20 00:00",
        ]),
    })

    order_items = pd.DataFrame({
        "order_id": ["o1", "o1", "o2", "o3", "o4", "o5", "o6"],
        "order_item_id": [1, 2, 1, 1, 1, 1, 1],
        "product_id": ["p1", "p2", "p1", "p3", "p1", "p4", "p2"],
        "seller_id": ["s1", "s2", "s1", "s2", "s1", "s2", "s1"],
        "shipping_limit_date": _ts(["2017-01-12"] * 7),
        "price": [100.0, 50.0, 200.0, 30.0, 30.0, 1000.0, 60.0],
        "freight_value": [10.0, 5.0, 20.0, 3.0, 3.0, 50.0, 6.0],
    })

    customers = pd.DataFrame({
        "customer_id": ["c1", "c2", "c3", "c4", "c5", "c6", "c7"],
        "customer_unique_id": ["u1", "u1", "u2", "u3", "u4", "u2", "u5"],
        "customer_zip_code_prefix": [1000, 1000, 2000, 3000, 1100, 2000, 4000],
        "customer_city": ["sao paulo", "sao paulo", "rio de janeiro", "belo horizonte",
                          "campinas", "rio de janeiro", "salvador"],
        "customer_state": ["SP", "SP", "RJ", "MG", "SP", "RJ", "BA"],
    })

    products = pd.DataFrame({
        "product_id": ["p1", "p2", "p3", "p4"],
        "product_category_name": ["beleza_saude", "informatica", None, "moveis"],
    })

    sellers = pd.DataFrame({
        "seller_id": ["s1", "s2"],
        "seller_zip_code_prefix": [13000, 80000],
        "seller_city": ["campinas", "curitiba"],
        "seller_state": ["SP", "PR"],
    })

    order_payments = pd.DataFrame({
        "order_id": ["o1", "o2", "o3", "o4", "o5"],
        "payment_sequential": [1, 1, 1, 1, 1],
        "payment_type": ["credit_card", "boleto", "credit_card", "voucher", "credit_card"],
        "payment_installments": [3, 1, 1, 1, 10],
        "payment_value": [165.0, 220.0, 30.0, 33.0, 1050.0],
    })

    order_reviews = pd.DataFrame({
        "review_id": ["r1", "r2", "r3", "r5"],
        "order_id": ["o1", "o2", "o3", "o5"],
        "review_score": [5, 4, 2, 3],
    })

    translation = pd.DataFrame({
        "product_category_name": ["beleza_saude", "informatica"],
        "product_category_name_english": ["health_beauty", "computers"],
    })

    return {
        "orders": orders,
        "order_items": order_items,
        "customers": customers,
        "products": products,
        "sellers": sellers,
        "order_payments": order_payments,
        "order_reviews": order_reviews,
        "product_category_name_translation": translation,
    }


@pytest.fixture
def tables():
    return build_tables()
