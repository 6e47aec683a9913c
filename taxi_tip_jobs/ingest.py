# taxi_tip_jobs/ingest.py
# Read the trip and fare extracts, register them as views and join them with Spark SQL.

import logging

from pyspark.sql import functions as F, types as T

log = logging.getLogger(__name__)

TRIP_COLUMNS = [
    "medallion", "hack_license", "vendor_id", "rate_code", "pickup_datetime",
    "dropoff_datetime", "passenger_count", "trip_time_in_secs", "trip_distance",
]
FARE_COLUMNS = [
    "medallion", "hack_license", "vendor_id", "pickup_datetime", "payment_type",
    "fare_amount", "surcharge", "mta_tax", "tip_amount", "tolls_amount", "total_amount",
]

# Join on the composite trip key; keep only trips that look physically plausible
JOIN_SQL = """
    SELECT
        t.medallion, t.hack_license, t.vendor_id, t.rate_code,
        t.pickup_datetime, t.dropoff_datetime, t.passenger_count,
        t.trip_time_in_secs, t.trip_distance,
        f.payment_type, f.fare_amount, f.surcharge, f.mta_tax,
        f.tip_amount, f.tolls_amount, f.total_amount
    FROM trip t
    JOIN fare f
      ON  t.medallion       = f.medallion
      AND t.hack_license    = f.hack_license
      AND t.vendor_id       = f.vendor_id
      AND t.pickup_datetime = f.pickup_datetime
    WHERE t.passenger_count > 0 AND t.passenger_count < 8
      AND t.trip_distance > 0 AND t.trip_distance <= 100
      AND t.trip_time_in_secs > 30 AND t.trip_time_in_secs < 7200
      AND f.fare_amount > 0 AND f.fare_amount <= 250
      AND f.tip_amount >= 0 AND f.tip_amount < 25
      AND t.rate_code <= 5
      AND f.payment_type IN ('CSH', 'CRD')
"""

# TLC payment codes (2013 extracts)
PAYMENT_LABELS = [
    ("CSH", "Cash"),
    ("CRD", "Credit card"),
    ("NOC", "No charge"),
    ("DIS", "Dispute"),
    ("UNK", "Unknown"),
]


def read_csv(spark, path):
    """
    Reads a headered CSV with schema inference. The public fare extract has
    leading blanks in its header names, so every column name is trimmed.
    """
    df = (spark.read
          .option("header", "true")
          .option("inferSchema", "true")
          .option("timestampFormat", "yyyy-MM-dd HH:mm:ss")
          .csv(path))
    return df.toDF(*[c.strip() for c in df.columns])


def require_columns(df, cols, what):
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise RuntimeError(f"{what} is missing columns: {missing}")


def _normalise_keys(df):
    # Join keys must agree on type across both files
    return (df
            .withColumn("vendor_id", F.trim(F.col("vendor_id").cast("string")))
            .withColumn("pickup_datetime", F.to_timestamp("pickup_datetime")))


def read_trips(spark, path):
    df = read_csv(spark, path)
    require_columns(df, TRIP_COLUMNS, f"Trip file {path}")
    return _normalise_keys(df)


def read_fares(spark, path):
    df = read_csv(spark, path)
    require_columns(df, FARE_COLUMNS, f"Fare file {path}")
    return (_normalise_keys(df)
            .withColumn("payment_type", F.upper(F.trim(F.col("payment_type").cast("string")))))


def register_views(trips, fares):
    trips.createOrReplaceTempView("trip")
    fares.createOrReplaceTempView("fare")


def join_trips_fares(spark):
    """Runs the filtered join over the registered `trip` and `fare` views."""
    return spark.sql(JOIN_SQL)


def load_joined(spark, settings):
    log.info("Reading trips: %s", settings.trip_path)
    trips = read_trips(spark, settings.trip_path)
    log.info("Reading fares: %s", settings.fare_path)
    fares = read_fares(spark, settings.fare_path)

    register_views(trips, fares)
    joined = join_trips_fares(spark)

    if log.isEnabledFor(logging.INFO):
        log.info("Rows -> trips: %s, fares: %s, joined+filtered: %s",
                 f"{trips.count():,}", f"{fares.count():,}", f"{joined.count():,}")
    return joined


def with_payment_labels(df):
    """Left join so rows with an unmapped code keep a null label."""
    schema = T.StructType([
        T.StructField("payment_type", T.StringType(), False),
        T.StructField("payment_label", T.StringType(), False),
    ])
    lookup = df.sparkSession.createDataFrame(PAYMENT_LABELS, schema)
    return df.join(F.broadcast(lookup), on="payment_type", how="left")
