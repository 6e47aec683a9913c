# taxi_tip_jobs/report.py
# Tabular KPIs (Spark SQL) and the model comparison table.
import os
import logging

import pandas as pd

from taxi_tip_jobs.features import BIN_ORDER
from taxi_tip_jobs.ingest import with_payment_labels
from taxi_tip_jobs.models import METRICS

log = logging.getLogger(__name__)


def summarise(spark, df):
    """KPI tables keyed by name; `df` must carry the derived feature columns."""
    with_payment_labels(df).createOrReplaceTempView("trips")

    by_bin = spark.sql("""
        SELECT
            traffic_time_bin,
            COUNT(*) AS trips,
            ROUND(AVG(tip_amount), 2) AS avg_tip,
            ROUND(AVG(tipped), 4) AS tip_rate
        FROM trips
        GROUP BY traffic_time_bin
    """)

    by_payment = spark.sql("""
        SELECT
            payment_type,
            payment_label,
            COUNT(*) AS trips,
            ROUND(AVG(fare_amount), 2) AS avg_fare,
            ROUND(AVG(tip_amount), 2) AS avg_tip,
            ROUND(AVG(tipped), 4) AS tip_rate
        FROM trips
        GROUP BY payment_type, payment_label
        ORDER BY trips DESC
    """)

    by_hour = spark.sql("""
        SELECT
            CAST(pickup_hour AS INT) AS pickup_hour,
            COUNT(*) AS trips,
            ROUND(AVG(tip_amount), 2) AS avg_tip
        FROM trips
        GROUP BY CAST(pickup_hour AS INT)
        ORDER BY pickup_hour
    """)

    return {
        "kpi_by_traffic_time_bin": by_bin,
        "kpi_by_payment_type": by_payment,
        "kpi_by_pickup_hour": by_hour,
    }


def order_bins(df_pd, col="traffic_time_bin"):
    """Sorts a pandas frame by the natural order of the traffic-time bins."""
    df_pd = df_pd.copy()
    df_pd[col] = pd.Categorical(df_pd[col], categories=BIN_ORDER, ordered=True)
    return df_pd.sort_values(col).reset_index(drop=True)


def write_tables(tables, out_dir):
    paths = []
    for name, dfi in tables.items():
        out = os.path.join(out_dir, f"{name}_csv")
        (dfi.coalesce(1)
            .write.mode("overwrite")
            .option("header", "true")
            .csv(out))
        log.info("Saved: %s", out)
        paths.append(out)
    return paths


def metrics_table(metrics):
    """{model: {rmse, mae, r2}} -> one row per model, best RMSE first."""
    rows = [dict(model=name, **{m: vals[m] for m in METRICS}) for name, vals in metrics.items()]
    table = pd.DataFrame(rows, columns=["model", *METRICS])
    return table.sort_values("rmse").reset_index(drop=True)
