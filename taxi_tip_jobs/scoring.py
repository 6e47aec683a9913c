# taxi_tip_jobs/scoring.py
# Batch scoring of uploaded CSVs (labelled or not) with a saved pipeline.
import os
import tempfile

from pyspark.sql import functions as F, types as T

from taxi_tip_jobs.features import add_features, LABEL
from taxi_tip_jobs.ingest import read_csv
from taxi_tip_jobs.models import predict

SHOW_COLUMNS = ["traffic_time_bin", "fare_amount", "prediction"]


def to_pandas_safe(sdf, n=1000):
    """Spark DF -> pandas with row limit n, dropping vector columns and formatting timestamps."""
    cast_exprs = []
    for f in sdf.schema.fields:
        col = F.col(f.name)
        if isinstance(f.dataType, T.TimestampType):
            cast_exprs.append(F.date_format(col, "yyyy-MM-dd HH:mm:ss").alias(f.name))
        elif isinstance(f.dataType, T.DecimalType):
            cast_exprs.append(col.cast("double").alias(f.name))
        elif isinstance(f.dataType, (T.StringType, T.NumericType, T.BooleanType, T.DateType)):
            cast_exprs.append(col.alias(f.name))
    return sdf.select(*cast_exprs).limit(n).toPandas()


def score_csv(spark, model, path, n=1000):
    """
    Scores up to n rows of a joined trip+fare CSV. The actual tip is
    shown next to the prediction only when the file carries it.
    """
    sdf = add_features(spark, read_csv(spark, path))
    pred = predict(model, sdf.limit(n))
    cols = SHOW_COLUMNS + ([LABEL] if LABEL in pred.columns else [])
    return to_pandas_safe(pred.select(*cols), n=n)


def score_upload(spark, model, data, n=1000):
    """Writes uploaded bytes to a temp CSV for Spark, scores it and removes the file."""
    with tempfile.NamedTemporaryFile(delete=False, suffix=".csv") as tmp:
        tmp.write(data)
        temp_path = tmp.name
    try:
        # toPandas() materialises before the file goes away
        return score_csv(spark, model, temp_path, n=n)
    finally:
        os.unlink(temp_path)
