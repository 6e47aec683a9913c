# taxi_tip_jobs/features.py
# Derived columns: pickup hour, traffic-time bin, tip flag and a couple of ratios.

# Ordered for plotting; (bin, first hour, last hour). Night wraps midnight.
TRAFFIC_TIME_BINS = [
    ("AMRush",    7, 10),
    ("Afternoon", 11, 15),
    ("PMRush",    16, 19),
    ("Night",     20, 6),
]
BIN_ORDER = [name for name, _, _ in TRAFFIC_TIME_BINS]

LABEL = "tip_amount"
NUMERIC_FEATURES = [
    "passenger_count", "trip_time_in_secs", "trip_distance",
    "fare_amount", "surcharge", "tolls_amount", "pickup_hour",
]
CATEGORICAL_FEATURES = ["vendor_id", "rate_code", "payment_type", "traffic_time_bin"]

FEATURE_COLUMNS_SQL = """
        vendor_id,
        CAST(rate_code AS STRING)            AS rate_code,
        payment_type,
        CAST(passenger_count AS DOUBLE)      AS passenger_count,
        CAST(trip_time_in_secs AS DOUBLE)    AS trip_time_in_secs,
        CAST(trip_distance AS DOUBLE)        AS trip_distance,
        CAST(fare_amount AS DOUBLE)          AS fare_amount,
        CAST(surcharge AS DOUBLE)            AS surcharge,
        CAST(tolls_amount AS DOUBLE)         AS tolls_amount,
        pickup_datetime,
        CAST(HOUR(pickup_datetime) AS DOUBLE) AS pickup_hour,
        CASE
            WHEN HOUR(pickup_datetime) <= 6 OR HOUR(pickup_datetime) >= 20 THEN 'Night'
            WHEN HOUR(pickup_datetime) <= 10 THEN 'AMRush'
            WHEN HOUR(pickup_datetime) <= 15 THEN 'Afternoon'
            ELSE 'PMRush'
        END                                   AS traffic_time_bin,
        ROUND(trip_time_in_secs / 60.0, 2)    AS trip_time_min,
        CASE WHEN trip_distance > 0 THEN ROUND(fare_amount / trip_distance, 2) END AS fare_per_mile
"""

# Only present when the input carries the fare outcome (training data, not new trips)
LABEL_COLUMNS_SQL = """,
        CAST(tip_amount AS DOUBLE)           AS tip_amount,
        CASE WHEN tip_amount > 0 THEN 1 ELSE 0 END AS tipped
"""
TOTAL_COLUMN_SQL = """,
        CAST(total_amount AS DOUBLE)         AS total_amount
"""


def traffic_time_bin(hour):
    """
    Python twin of the SQL CASE in FEATURE_COLUMNS_SQL, used by the dashboard to
    bin a single pickup hour.
    """
    if hour is None:
        return None
    if hour <= 6 or hour >= 20:
        return "Night"
    if hour <= 10:
        return "AMRush"
    if hour <= 15:
        return "Afternoon"
    return "PMRush"


def features_sql(columns):
    """SELECT over the `{joined}` frame; label columns only when `columns` has them."""
    sql = "SELECT" + FEATURE_COLUMNS_SQL
    if LABEL in columns:
        sql += LABEL_COLUMNS_SQL
    if "total_amount" in columns:
        sql += TOTAL_COLUMN_SQL
    return sql + "FROM {joined}"


def add_features(spark, df):
    # Bound as a query argument; no session-wide temp view
    return spark.sql(features_sql(df.columns), joined=df)
