# streamlit_app/app.py
# Viewer for the tip models: metrics, run plots/tables and batch scoring of a joined CSV.
# Run with:
#   streamlit run streamlit_app/app.py
import os, io, glob
import streamlit as st
import pandas as pd

from taxi_tip_jobs.config import load_settings
from taxi_tip_jobs.session import build_spark
from taxi_tip_jobs.features import traffic_time_bin
from taxi_tip_jobs.models import MODEL_NAMES, load_model, load_metrics
from taxi_tip_jobs.scoring import score_upload

SETTINGS   = load_settings()
MODELS_DIR = os.path.join(SETTINGS.out_dir, "models")
RUNS_GLOB  = os.path.join(SETTINGS.out_dir, "run_*")

FRIENDLY_MODEL_NAMES = {
    "elastic_net":            "Elastic net (linear)",
    "random_forest":          "Random forest",
    "gradient_boosted_trees": "Gradient-boosted trees",
}


def friendly_label_for_path(p: str) -> str:
    if p == "(none)":
        return p
    base = os.path.basename(p.rstrip("\\/"))
    return FRIENDLY_MODEL_NAMES.get(base, base)


# ========= SPARK SESSION =========
@st.cache_resource
def get_spark():
    return build_spark("nyc-taxi-tips-frontend", SETTINGS)

spark = get_spark()


# ========= HELPERS =========
def list_model_dirs():
    # A saved PipelineModel has …/model/stages/
    cand = [os.path.join(MODELS_DIR, n) for n in MODEL_NAMES]
    return [d for d in cand if os.path.isdir(os.path.join(d, "model", "stages"))]


def latest_run_dir():
    runs = sorted(d for d in glob.glob(RUNS_GLOB) if os.path.isdir(d))
    return runs[-1] if runs else None


# ========= UI =========
st.set_page_config(page_title="NYC Taxi Tips", layout="wide")
st.title("🚖 NYC Taxi Tips")

with st.sidebar:
    st.header("Models")
    model_dirs = list_model_dirs()
    model_sel = st.selectbox("Model", ["(none)"] + model_dirs,
                             index=1 if model_dirs else 0,
                             format_func=friendly_label_for_path)
    st.divider()
    st.header("Traffic time bin")
    hour = st.slider("Pickup hour", 0, 23, 8)
    st.caption(f"Hour {hour} falls in **{traffic_time_bin(hour)}**")

tab1, tab2, tab3 = st.tabs(["📊 Metrics", "📈 Latest run", "🤖 Predictions"])

# ========== TAB 1: Metrics ==========
with tab1:
    rows = []
    for d in model_dirs:
        m = load_metrics(d)
        if m:
            rows.append({"model": friendly_label_for_path(d), **m})
    if not rows:
        st.info("No trained models found. Run `taxi-tips` first.")
    else:
        st.dataframe(pd.DataFrame(rows).sort_values("rmse"))

# ========== TAB 2: Latest run ==========
with tab2:
    run_dir = latest_run_dir()
    if run_dir is None:
        st.info("No runs found.")
    else:
        st.caption(run_dir)
        for p in sorted(glob.glob(os.path.join(run_dir, "plots", "*.png"))):
            st.image(p, caption=os.path.basename(p), use_container_width=True)
        for folder in sorted(glob.glob(os.path.join(run_dir, "tables", "*"))):
            parts = sorted(glob.glob(os.path.join(folder, "part-*.csv")))
            if not parts:
                continue
            st.markdown(f"**{os.path.basename(folder)}**")
            try:
                st.dataframe(pd.read_csv(parts[0]))
            except (OSError, pd.errors.ParserError) as e:
                st.warning(f"Could not read {parts[0]}: {e}")

# ========== TAB 3: Predictions ==========
with tab3:
    st.subheader("Batch predictions for a joined trip+fare CSV")
    up = st.file_uploader("Upload a CSV (with headers)", type=["csv"])
    if up is None:
        st.stop()
    if model_sel == "(none)":
        st.caption("Select a model in the sidebar.")
        st.stop()

    st.caption("Needs the trip and fare columns; tip_amount is optional and shown when present.")
    try:
        model = load_model(model_sel)
        sample_n = st.slider("Rows to score", 100, 5000, 1000, 100)
        pdf = score_upload(spark, model, up.getvalue(), n=sample_n)
        st.dataframe(pdf)

        buf = io.StringIO()
        pdf.to_csv(buf, index=False)
        st.download_button("Download predictions (CSV)", buf.getvalue(),
                           file_name="tip_predictions.csv", mime="text/csv")
    except Exception as e:
        st.error(f"Could not score the uploaded file: {e}")
