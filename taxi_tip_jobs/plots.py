# taxi_tip_jobs/plots.py
# Static PNG charts from small pandas frames (already aggregated or capped samples).
import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt


def _save(out_dir, filename):
    os.makedirs(out_dir, exist_ok=True)
    plt.tight_layout()
    path = os.path.join(out_dir, filename)
    plt.savefig(path, dpi=130)
    plt.close()
    return path


def save_bar(df_pd, x, y, title, xlabel, ylabel, out_dir, filename, rotate=0):
    plt.figure(figsize=(9, 5))
    plt.bar(df_pd[x].astype(str), df_pd[y])
    plt.title(title)
    plt.xlabel(xlabel)
    plt.ylabel(ylabel)
    if rotate:
        plt.xticks(rotation=rotate, ha="right")
    return _save(out_dir, filename)


def save_hist(values, title, xlabel, out_dir, filename, bins=50):
    plt.figure(figsize=(9, 5))
    plt.hist(values, bins=bins)
    plt.title(title)
    plt.xlabel(xlabel)
    plt.ylabel("trips")
    return _save(out_dir, filename)


def save_pred_vs_actual(df_pd, model_name, out_dir, label="tip_amount"):
    """Scatter of prediction against the actual label with the y = x reference."""
    plt.figure(figsize=(6, 6))
    plt.scatter(df_pd[label], df_pd["prediction"], s=6, alpha=0.4)
    hi = max(df_pd[label].max(), df_pd["prediction"].max(), 1.0)
    lo = min(df_pd[label].min(), df_pd["prediction"].min(), 0.0)
    plt.plot([lo, hi], [lo, hi], color="red", linewidth=1)
    plt.title(f"{model_name}: predicted vs actual {label}")
    plt.xlabel(f"actual {label} (USD)")
    plt.ylabel(f"predicted {label} (USD)")
    return _save(out_dir, f"pred_vs_actual_{model_name}.png")


def save_importances(pairs, model_name, out_dir, top=15):
    """Horizontal bars for (feature, importance) pairs, largest on top."""
    if not pairs:
        return None
    pairs = pairs[:top][::-1]
    plt.figure(figsize=(9, 0.35 * len(pairs) + 1.5))
    plt.barh([p[0] for p in pairs], [p[1] for p in pairs])
    plt.title(f"{model_name}: feature importance")
    plt.xlabel("importance")
    return _save(out_dir, f"importance_{model_name}.png")


def save_metric_comparison(metrics_pd, out_dir, metric="rmse"):
    return save_bar(
        metrics_pd, x="model", y=metric,
        title=f"{metric.upper()} by model", xlabel="model", ylabel=metric,
        out_dir=out_dir, filename=f"compare_{metric}.png", rotate=20,
    )
