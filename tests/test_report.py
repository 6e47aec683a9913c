import os

import pandas as pd

from taxi_tip_jobs import report
from taxi_tip_jobs.features import BIN_ORDER


def test_metrics_table_sorted_by_rmse():
    table = report.metrics_table({
        "elastic_net": {"rmse": 1.4, "mae": 0.9, "r2": 0.5},
        "random_forest": {"rmse": 1.1, "mae": 0.7, "r2": 0.6},
    })
    assert list(table.columns) == ["model", "rmse", "mae", "r2"]
    assert list(table["model"]) == ["random_forest", "elastic_net"]


def test_order_bins():
    df = pd.DataFrame({"traffic_time_bin": ["Night", "AMRush", "PMRush", "Afternoon"],
                       "trips": [1, 2, 3, 4]})
    assert list(report.order_bins(df)["traffic_time_bin"]) == BIN_ORDER


def test_summarise_and_write(spark, features, tmp_path):
    tables = report.summarise(spark, features)
    by_bin = {r.traffic_time_bin: r for r in tables["kpi_by_traffic_time_bin"].collect()}
    assert set(by_bin) == set(BIN_ORDER)
    assert sum(r.trips for r in by_bin.values()) == features.count()

    by_pay = {r.payment_type: r for r in tables["kpi_by_payment_type"].collect()}
    assert by_pay["CSH"].tip_rate == 0.0
    assert by_pay["CRD"].tip_rate == 1.0
    assert by_pay["CSH"].payment_label == "Cash"
    assert by_pay["CRD"].payment_label == "Credit card"

    paths = report.write_tables(tables, str(tmp_path))
    assert len(paths) == 3
    for p in paths:
        assert any(f.startswith("part-") and f.endswith(".csv") for f in os.listdir(p))
