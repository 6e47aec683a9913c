# taxi_tip_jobs/session.py
import logging

from pyspark.sql import SparkSession

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level="INFO"):
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    # py4j is chatty at INFO
    logging.getLogger("py4j").setLevel(logging.WARNING)


def build_spark(app_name, settings):
    # Initialize Spark session
    spark = (
        SparkSession.builder
        .appName(app_name)
        .master(settings.master)
        .config("spark.sql.shuffle.partitions", str(settings.shuffle_partitions))
        .config("spark.sql.legacy.timeParserPolicy", "LEGACY")
        .config("spark.sql.execution.arrow.pyspark.enabled", "true")
        .getOrCreate()
    )
    spark.sparkContext.setLogLevel("WARN")
    return spark
