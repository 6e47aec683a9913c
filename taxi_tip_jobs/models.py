# taxi_tip_jobs/models.py
# Elastic net, random forest and gradient-boosted trees on tip_amount, each wrapped
# in a Spark ML Pipeline that carries its own preprocessing.

import os
import json
import logging

from pyspark.ml import Pipeline, PipelineModel
from pyspark.ml.feature import (
    StringIndexer, OneHotEncoder, VectorAssembler, StandardScaler, Imputer
)
from pyspark.ml.regression import LinearRegression, RandomForestRegressor, GBTRegressor
from pyspark.ml.evaluation import RegressionEvaluator

from taxi_tip_jobs.features import LABEL, NUMERIC_FEATURES, CATEGORICAL_FEATURES

log = logging.getLogger(__name__)

# name -> (estimator class, default params)
MODEL_SPECS = {
    "elastic_net": (LinearRegression, dict(
        maxIter=100,
        regParam=0.01,
        elasticNetParam=0.5,     # 0 = ridge, 1 = lasso
        standardization=False,   # scaled in the pipeline
    )),
    "random_forest": (RandomForestRegressor, dict(
        numTrees=50,
        maxDepth=8,
        maxBins=32,
        subsamplingRate=0.7,
        featureSubsetStrategy="sqrt",
    )),
    "gradient_boosted_trees": (GBTRegressor, dict(
        maxIter=50,
        maxDepth=5,
        stepSize=0.1,
        subsamplingRate=0.8,
    )),
}
MODEL_NAMES = list(MODEL_SPECS)

METRICS = ("rmse", "mae", "r2")


def feature_stages():
    idx_cols = [f"{c}_idx" for c in CATEGORICAL_FEATURES]
    ohe_cols = [f"{c}_ohe" for c in CATEGORICAL_FEATURES]

    # 1) Categorical encoding (unseen levels go to an extra bucket)
    idx = StringIndexer(inputCols=CATEGORICAL_FEATURES, outputCols=idx_cols, handleInvalid="keep")
    ohe = OneHotEncoder(inputCols=idx_cols, outputCols=ohe_cols)
    # 2) Median imputation for numeric inputs
    imputer = Imputer(strategy="median", inputCols=NUMERIC_FEATURES, outputCols=NUMERIC_FEATURES)
    # 3) Assemble + scale
    assembler = VectorAssembler(inputCols=NUMERIC_FEATURES + ohe_cols,
                                outputCol="features_raw", handleInvalid="keep")
    scaler = StandardScaler(inputCol="features_raw", outputCol="features",
                            withMean=True, withStd=True)
    return [idx, ohe, imputer, assembler, scaler]


def build_pipeline(name, seed=42, **params):
    """
    Returns an unfitted Pipeline for one of MODEL_NAMES. Keyword params
    override the estimator defaults in MODEL_SPECS.
    """
    if name not in MODEL_SPECS:
        raise KeyError(f"Unknown model {name!r}; expected one of {MODEL_NAMES}")
    cls, defaults = MODEL_SPECS[name]
    kwargs = dict(defaults, featuresCol="features", labelCol=LABEL, **params)
    if cls is not LinearRegression:
        kwargs.setdefault("seed", seed)
    return Pipeline(stages=feature_stages() + [cls(**kwargs)])


def fit_model(name, train, seed=42, **params):
    log.info("Fitting %s", name)
    return build_pipeline(name, seed=seed, **params).fit(train)


def predict(model, df):
    return model.transform(df)


def evaluate(pred):
    return {
        m: RegressionEvaluator(labelCol=LABEL, predictionCol="prediction", metricName=m).evaluate(pred)
        for m in METRICS
    }


def _feature_names(pred):
    """Slot names from the assembler metadata, e.g. `payment_type_ohe_CRD`."""
    attrs = pred.schema["features_raw"].metadata.get("ml_attr", {}).get("attrs", {})
    named = sorted((a["idx"], a["name"]) for group in attrs.values() for a in group)
    return [n for _, n in named]


def feature_importances(model, pred):
    """
    (feature, importance) pairs sorted descending for tree models; the
    elastic net has no importances, so it returns an empty list.
    """
    est = model.stages[-1]
    if not hasattr(est, "featureImportances"):
        return []
    scores = est.featureImportances.toArray()
    names = _feature_names(pred)
    if len(names) != len(scores):
        names = [f"f{i}" for i in range(len(scores))]
    pairs = [(n, float(s)) for n, s in zip(names, scores)]
    return sorted(pairs, key=lambda p: -p[1])


def save_model(model, metrics, out_dir):
    os.makedirs(out_dir, exist_ok=True)
    model.write().overwrite().save(os.path.join(out_dir, "model"))
    with open(os.path.join(out_dir, "metrics.json"), "w", encoding="utf-8") as f:
        json.dump(metrics, f, indent=2)
    log.info("Model saved -> %s", os.path.join(out_dir, "model"))


def load_model(out_dir):
    return PipelineModel.load(os.path.join(out_dir, "model"))


def load_metrics(out_dir):
    path = os.path.join(out_dir, "metrics.json")
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def train_all(train, test, names=None, seed=42, out_dir=None, params=None):
    """
    Fits, scores and (when out_dir is set) saves each named model.
    Returns {name: {"model", "metrics", "predictions"}}.
    """
    names = names or MODEL_NAMES
    params = params or {}
    results = {}
    for name in names:
        model = fit_model(name, train, seed=seed, **params.get(name, {}))
        pred = predict(model, test)
        metrics = evaluate(pred)
        log.info("%-24s RMSE=%.4f  MAE=%.4f  R2=%.4f",
                 name, metrics["rmse"], metrics["mae"], metrics["r2"])
        if out_dir:
            save_model(model, metrics, os.path.join(out_dir, name))
        results[name] = {"model": model, "metrics": metrics, "predictions": pred}
    return results
