# taxi_tip_jobs/run_pipeline.py
# End-to-end run: join -> features -> sample -> split -> fit 3 regressors -> reports & plots.
# Run with:
#   taxi-tips --trip data/raw/trip_data_1.csv --fare data/raw/trip_fare_1.csv

import os
import sys
import logging
import argparse
from datetime import datetime

from taxi_tip_jobs.config import load_settings
from taxi_tip_jobs.session import build_spark, configure_logging
from taxi_tip_jobs.ingest import load_joined
from taxi_tip_jobs.features import add_features, LABEL
from taxi_tip_jobs.sampling import downsample, train_test_split
from taxi_tip_jobs.models import MODEL_NAMES, train_all, feature_importances
from taxi_tip_jobs import plots, report

log = logging.getLogger(__name__)

# Rows pulled to the driver for scatter / histogram plots
PLOT_ROWS = 5_000


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="taxi-tips", description="Fit tip_amount regressors on NYC taxi trips.")
    p.add_argument("--trip", dest="trip_path", help="trip CSV (file, dir or glob)")
    p.add_argument("--fare", dest="fare_path", help="fare CSV (file, dir or glob)")
    p.add_argument("--out", dest="out_dir", help="output directory")
    p.add_argument("--sample-fraction", type=float)
    p.add_argument("--train-fraction", type=float)
    p.add_argument("--seed", type=int)
    p.add_argument("--models", nargs="+", choices=MODEL_NAMES, default=MODEL_NAMES)
    p.add_argument("--no-plots", action="store_true")
    return p.parse_args(argv)


def make_plots(features, results, kpis, run_dir):
    plot_dir = os.path.join(run_dir, "plots")

    by_bin = report.order_bins(kpis["kpi_by_traffic_time_bin"].toPandas())
    plots.save_bar(by_bin, x="traffic_time_bin", y="trips", title="Trips by traffic time bin",
                   xlabel="traffic time bin", ylabel="trips",
                   out_dir=plot_dir, filename="01_trips_by_traffic_bin.png")
    plots.save_bar(by_bin, x="traffic_time_bin", y="tip_rate", title="Share of tipped trips by traffic time bin",
                   xlabel="traffic time bin", ylabel="tip rate",
                   out_dir=plot_dir, filename="02_tip_rate_by_traffic_bin.png")

    tips = features.select(LABEL).limit(PLOT_ROWS).toPandas()
    plots.save_hist(tips[LABEL], title="Tip amount distribution", xlabel="tip (USD)",
                    out_dir=plot_dir, filename="03_tip_amount_hist.png")

    for name, res in results.items():
        pred = res["predictions"]
        plots.save_pred_vs_actual(pred.select(LABEL, "prediction").limit(PLOT_ROWS).toPandas(),
                                  name, plot_dir)
        plots.save_importances(feature_importances(res["model"], pred), name, plot_dir)

    metrics_pd = report.metrics_table({n: r["metrics"] for n, r in results.items()})
    plots.save_metric_comparison(metrics_pd, plot_dir)
    log.info("Plots saved in: %s", plot_dir)


def run(settings, models=None, with_plots=True):
    run_dir = os.path.join(settings.out_dir, f"run_{datetime.now().strftime('%Y%m%d_%H%M%S')}")
    spark = build_spark("nyc-taxi-tips", settings)
    try:
        joined = load_joined(spark, settings)
        features = add_features(spark, joined)
        sample = downsample(features, settings.sample_fraction, seed=settings.seed).cache()
        train, test = train_test_split(sample, settings.train_fraction, seed=settings.seed)

        results = train_all(train, test, names=models, seed=settings.seed,
                            out_dir=os.path.join(settings.out_dir, "models"))

        kpis = report.summarise(spark, sample)
        report.write_tables(kpis, os.path.join(run_dir, "tables"))
        metrics_pd = report.metrics_table({n: r["metrics"] for n, r in results.items()})
        os.makedirs(run_dir, exist_ok=True)
        metrics_pd.to_csv(os.path.join(run_dir, "model_metrics.csv"), index=False)

        if with_plots:
            make_plots(sample, results, kpis, run_dir)

        log.info("Done. Outputs in: %s", run_dir)
        return {n: r["metrics"] for n, r in results.items()}
    finally:
        spark.stop()


def main(argv=None):
    args = parse_args(argv)
    try:
        settings = load_settings(
            trip_path=args.trip_path, fare_path=args.fare_path, out_dir=args.out_dir,
            sample_fraction=args.sample_fraction, train_fraction=args.train_fraction,
            seed=args.seed,
        )
    except ValueError as e:
        print(f"taxi-tips: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level)
    try:
        run(settings, models=args.models, with_plots=not args.no_plots)
    except Exception:
        log.exception("Pipeline failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
