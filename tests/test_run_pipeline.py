import os
import glob

import pytest

from taxi_tip_jobs import run_pipeline


def test_bad_cli_value_exits_2(capsys):
    assert run_pipeline.main(["--sample-fraction", "2"]) == 2
    assert "sample_fraction" in capsys.readouterr().err


def test_rejects_unknown_model():
    with pytest.raises(SystemExit):
        run_pipeline.parse_args(["--models", "xgboost"])


def test_end_to_end(spark, settings, tmp_path, monkeypatch):
    # Reuse the test session and keep it alive after run() finishes
    monkeypatch.setattr(run_pipeline, "build_spark", lambda app_name, s: spark)
    monkeypatch.setattr(spark, "stop", lambda: None)

    out_dir = str(tmp_path / "out")
    code = run_pipeline.main([
        "--trip", settings.trip_path, "--fare", settings.fare_path, "--out", out_dir,
        "--sample-fraction", "1.0", "--models", "elastic_net", "random_forest",
    ])
    assert code == 0

    for name in ("elastic_net", "random_forest"):
        assert os.path.exists(os.path.join(out_dir, "models", name, "metrics.json"))
    [run_dir] = glob.glob(os.path.join(out_dir, "run_*"))
    assert os.path.exists(os.path.join(run_dir, "model_metrics.csv"))
    pngs = {os.path.basename(p) for p in glob.glob(os.path.join(run_dir, "plots", "*.png"))}
    assert "pred_vs_actual_elastic_net.png" in pngs
    assert "importance_random_forest.png" in pngs
    assert "importance_elastic_net.png" not in pngs


def test_failure_returns_1(spark, tmp_path, monkeypatch):
    monkeypatch.setattr(run_pipeline, "build_spark", lambda app_name, s: spark)
    monkeypatch.setattr(spark, "stop", lambda: None)
    missing = str(tmp_path / "nope.csv")
    assert run_pipeline.main(["--trip", missing, "--fare", missing,
                              "--out", str(tmp_path), "--no-plots"]) == 1


def test_bad_log_level_exits_2(monkeypatch, capsys):
    monkeypatch.setenv("TAXI_LOG_LEVEL", "LOUD")
    assert run_pipeline.main([]) == 2
    assert "log_level" in capsys.readouterr().err
