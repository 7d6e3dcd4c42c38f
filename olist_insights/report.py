# report.py: run the analyses by name and export the result sets to Excel
import logging
import os
from typing import Callable, Dict, Iterable, Optional

import pandas as pd
from openpyxl import load_workbook
from openpyxl.styles import Font

from olist_insights import cohorts, customers, delivery, exploration, products, quality, revenue, rfm, sales, views
from olist_insights.config import EXPORTS_DIR
from olist_insights.dataset import DatasetError, Tables

logger = logging.getLogger(__name__)

ANALYSES: Dict[str, Callable[[Tables], pd.DataFrame]] = {
    # exploration
    "dataset_overview": exploration.dataset_overview,
    "order_status_distribution": exploration.order_status_distribution,
    # revenue
    "monthly_revenue_trend": revenue.monthly_revenue_trend,
    "cumulative_revenue": revenue.cumulative_revenue,
    "month_over_month_growth": revenue.month_over_month_growth,
    "day_of_week_sales": revenue.day_of_week_sales,
    "quarterly_performance": revenue.quarterly_performance,
    "holiday_season_revenue": revenue.holiday_season_revenue,
    # sales
    "top_categories_by_revenue": sales.top_categories_by_revenue,
    "state_performance": sales.state_performance,
    "payment_methods": sales.payment_methods,
    "seller_performance": sales.seller_performance,
    # products
    "top_products_per_category": products.top_products_per_category,
    "category_satisfaction": products.category_satisfaction,
    "products_above_category_average": products.products_above_category_average,
    "cross_sell_pairs": products.cross_sell_pairs,
    # customers
    "customer_order_sequence": customers.customer_order_sequence,
    "spend_segments": customers.spend_segments,
    "top_category_customers": customers.top_category_customers,
    "acquisition_trends": customers.acquisition_trends,
    "rfm_segments": rfm.rfm_segment_summary,
    "cohort_retention": cohorts.cohort_retention,
    "cohort_retention_matrix": cohorts.cohort_retention_matrix,
    # operations
    "delivery_performance": delivery.delivery_performance,
    "data_quality_issues": quality.data_quality_issues,
    "payment_reconciliation": quality.payment_reconciliation,
    # views
    **views.VIEW_BUILDERS,
}

EXCEL_SHEET_NAME_LIMIT = 31


def check_names(names: Iterable[str]) -> list:
    names = list(names)
    unknown = [n for n in names if n not in ANALYSES]
    if unknown:
        raise DatasetError(f"unknown analysis(es): {unknown}")
    return names


def console_report(df: pd.DataFrame, name: str):
    logger.info("[%s] rows=%d", name, len(df))


def run_analyses(tables: Tables, names: Optional[Iterable[str]] = None) -> Dict[str, pd.DataFrame]:
    names = check_names(names if names is not None else ANALYSES)
    results = {}
    for name in names:
        df = ANALYSES[name](tables)
        console_report(df, name)
        results[name] = df
    return results


# ----------------------------
# Excel export
# ----------------------------
def _sanitize_df(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    for c in df.columns:
        # Excel has no timezone support
        if pd.api.types.is_datetime64_any_dtype(df[c]) and getattr(df[c].dt, "tz", None) is not None:
            df[c] = df[c].dt.tz_convert(None)
        if isinstance(df[c].dtype, pd.CategoricalDtype):
            df[c] = df[c].astype(str)
    return df


def sheet_names(names: Iterable[str]) -> Dict[str, str]:
    """Map result names to unique sheet titles within Excel's length limit."""
    out, used = {}, set()
    for name in names:
        title = name[:EXCEL_SHEET_NAME_LIMIT]
        n = 1
        while title in used:
            suffix = f"_{n}"
            title = name[:EXCEL_SHEET_NAME_LIMIT - len(suffix)] + suffix
            n += 1
        used.add(title)
        out[name] = title
    return out


def export_to_excel(frames: Dict[str, pd.DataFrame], filename: str,
                    exports_dir: str = EXPORTS_DIR) -> str:
    """
    frames: {"result_name": DataFrame, ...}, one sheet each
    """
    os.makedirs(exports_dir, exist_ok=True)
    path = os.path.join(exports_dir, filename)
    titles = sheet_names(frames)

    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for name, df in frames.items():
            _sanitize_df(df).to_excel(writer, sheet_name=titles[name], index=False)

    # header row only: frozen and bold
    wb = load_workbook(path)
    for ws in wb.worksheets:
        ws.freeze_panes = "A2"
        for cell in ws[1]:
            cell.font = Font(bold=True)
    wb.save(path)

    total_rows = sum(len(df) for df in frames.values())
    logger.info("Created file %s, %d sheets, %d rows at %s", os.path.basename(path), len(frames), total_rows, path)
    return path
