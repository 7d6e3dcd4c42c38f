import pandas as pd
import pytest
from openpyxl import load_workbook

from olist_insights.dataset import DatasetError
from olist_insights.report import ANALYSES, export_to_excel, run_analyses, sheet_names


def test_every_analysis_runs_on_a_small_dataset(tables):
    results = run_analyses(tables)
    assert list(results) == list(ANALYSES)
    for name, df in results.items():
        assert isinstance(df, pd.DataFrame), name


def test_run_analyses_subset(tables):
    results = run_analyses(tables, ["delivery_performance", "rfm_segments"])
    assert list(results) == ["delivery_performance", "rfm_segments"]


def test_run_analyses_unknown_name(tables):
    with pytest.raises(DatasetError, match="unknown analysis"):
        run_analyses(tables, ["monthly_revenue_trend", "churn_forecast"])


def test_sheet_names_are_unique_and_short():
    long_a = "a" * 40
    long_b = "a" * 35
    titles = sheet_names(["short", long_a, long_b])
    assert titles["short"] == "short"
    assert len(titles[long_a]) == 31
    assert len(titles[long_b]) == 31
    assert titles[long_a] != titles[long_b]


def test_export_to_excel(tables, tmp_path):
    frames = run_analyses(tables, ["monthly_revenue_trend", "order_status_distribution", "cross_sell_pairs"])
    frames["tz_aware"] = pd.DataFrame({
        "ts": pd.to_datetime(["2017-01-01 10:00"]).tz_localize("UTC"),
        "segment": pd.Categorical(["VIP"]),
    })

    path = export_to_excel(frames, "report.xlsx", exports_dir=str(tmp_path / "out"))

    wb = load_workbook(path)
    assert wb.sheetnames == ["monthly_revenue_trend", "order_status_distribution", "cross_sell_pairs", "tz_aware"]
    ws = wb["monthly_revenue_trend"]
    assert ws.freeze_panes == "A2"
    assert ws["A1"].value == "month"
    assert ws["A1"].font.bold
    assert ws.max_row == 4
    # empty result still gets its header row
    assert wb["cross_sell_pairs"].max_row == 1
    assert wb["tz_aware"]["B2"].value == "VIP"
