import os
import csv
import shutil
from pathlib import Path

import pytest

from taxi_tip_jobs.config import load_settings

N_VALID = 80

TRIP_HEADER = [
    "medallion", "hack_license", "vendor_id", "rate_code", "store_and_fwd_flag",
    "pickup_datetime", "dropoff_datetime", "passenger_count", "trip_time_in_secs",
    "trip_distance", "pickup_longitude", "pickup_latitude", "dropoff_longitude",
    "dropoff_latitude",
]
FARE_HEADER = [
    "medallion", "hack_license", "vendor_id", "pickup_datetime", "payment_type",
    "fare_amount", "surcharge", "mta_tax", "tip_amount", "tolls_amount", "total_amount",
]


def trip_row(i, passengers=1, secs=None, distance=None, rate_code=None):
    hour = i % 24
    minutes = 5 + i % 40
    secs = secs if secs is not None else minutes * 60
    return [
        f"M{i:04d}", f"H{i:04d}", "CMT" if i % 2 else "VTS",
        rate_code if rate_code is not None else 1 + i % 2, "N",
        f"2013-01-{1 + i % 28:02d} {hour:02d}:{i % 60:02d}:00",
        f"2013-01-{1 + i % 28:02d} {hour:02d}:{i % 60:02d}:{min(secs, 59):02d}",
        passengers, secs,
        distance if distance is not None else round(0.5 + (i % 15) * 0.7, 2),
        -73.98, 40.75, -73.95, 40.77,
    ]


def fare_row(i, payment=None, tip=None, fare=None):
    payment = payment or ("CRD" if i % 3 else "CSH")
    fare = fare if fare is not None else 5.0 + i % 20
    surcharge = 0.5 if i % 4 == 0 else 0.0
    if tip is None:
        tip = round(fare * 0.2, 2) if payment == "CRD" else 0.0
    total = round(fare + surcharge + 0.5 + tip, 2)
    return [
        f"M{i:04d}", f"H{i:04d}", "CMT" if i % 2 else "VTS",
        f"2013-01-{1 + i % 28:02d} {i % 24:02d}:{i % 60:02d}:00",
        payment, fare, surcharge, 0.5, tip, 0.0, total,
    ]


def write_taxi_csvs(directory: Path):
    trips = [trip_row(i) for i in range(N_VALID)]
    fares = [fare_row(i) for i in range(N_VALID)]

    # Each of these violates exactly one filter of the join
    bad = N_VALID
    trips.append(trip_row(bad, passengers=0));        fares.append(fare_row(bad))
    trips.append(trip_row(bad + 1, secs=10));         fares.append(fare_row(bad + 1))
    trips.append(trip_row(bad + 2, distance=150.0));  fares.append(fare_row(bad + 2))
    trips.append(trip_row(bad + 3, rate_code=6));     fares.append(fare_row(bad + 3))
    trips.append(trip_row(bad + 4));                  fares.append(fare_row(bad + 4, payment="NOC"))
    trips.append(trip_row(bad + 5));                  fares.append(fare_row(bad + 5, tip=40.0))
    trips.append(trip_row(bad + 6));                  fares.append(fare_row(bad + 6, fare=0.0))
    trips.append(trip_row(bad + 7));                  fares.append(fare_row(bad + 7, fare=300.0))
    trips.append(trip_row(bad + 8, secs=7200));       fares.append(fare_row(bad + 8))
    # Fare without a matching trip
    fares.append(fare_row(bad + 9))

    trip_path = directory / "trip_data.csv"
    fare_path = directory / "trip_fare.csv"
    with open(trip_path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(TRIP_HEADER)
        w.writerows(trips)
    with open(fare_path, "w", newline="", encoding="utf-8") as f:
        # The public fare extract pads its header names with a space
        f.write(", ".join(FARE_HEADER) + "\n")
        csv.writer(f).writerows(fares)
    return trip_path, fare_path


@pytest.fixture(scope="session")
def taxi_csvs(tmp_path_factory):
    return write_taxi_csvs(tmp_path_factory.mktemp("raw"))


@pytest.fixture(scope="session")
def settings(taxi_csvs, tmp_path_factory):
    trip_path, fare_path = taxi_csvs
    return load_settings(
        trip_path=str(trip_path),
        fare_path=str(fare_path),
        out_dir=str(tmp_path_factory.mktemp("out")),
        master="local[2]",
        shuffle_partitions=4,
        sample_fraction=1.0,
    )


@pytest.fixture(scope="session")
def spark(settings):
    if not (os.environ.get("JAVA_HOME") or shutil.which("java")):
        pytest.skip("Spark tests need a Java runtime")
    from taxi_tip_jobs.session import build_spark

    spark = build_spark("taxi-tip-tests", settings)
    yield spark
    spark.stop()


@pytest.fixture(scope="session")
def joined(spark, settings):
    from taxi_tip_jobs.ingest import load_joined

    return load_joined(spark, settings).cache()


@pytest.fixture(scope="session")
def features(spark, joined):
    from taxi_tip_jobs.features import add_features

    return add_features(spark, joined).cache()
