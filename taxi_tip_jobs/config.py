# taxi_tip_jobs/config.py
# Paths and knobs for the jobs. Defaults can be overridden by env vars or the CLI.

import os
import logging
from collections import namedtuple

# ===== Defaults =====
TRIP_PATH          = os.path.join("data", "raw", "trip_data.csv")
FARE_PATH          = os.path.join("data", "raw", "trip_fare.csv")
OUT_DIR            = os.path.join("data", "processed")
SPARK_MASTER       = "local[*]"
SHUFFLE_PARTITIONS = 64
SAMPLE_FRACTION    = 0.1
TRAIN_FRACTION     = 0.75
SEED               = 42
LOG_LEVEL          = "INFO"

Settings = namedtuple("Settings", [
    "trip_path", "fare_path", "out_dir", "master", "shuffle_partitions",
    "sample_fraction", "train_fraction", "seed", "log_level",
])


def _parse_int(raw):
    # int() would silently truncate 3.7
    if isinstance(raw, float) and not raw.is_integer():
        raise ValueError(raw)
    if isinstance(raw, bool):
        raise TypeError(raw)
    return int(raw)


# setting name -> (env var, default, parser)
_FIELDS = {
    "trip_path":          ("TAXI_TRIP_PATH",          TRIP_PATH,          str),
    "fare_path":          ("TAXI_FARE_PATH",          FARE_PATH,          str),
    "out_dir":            ("TAXI_OUT_DIR",            OUT_DIR,            str),
    "master":             ("TAXI_SPARK_MASTER",       SPARK_MASTER,       str),
    "shuffle_partitions": ("TAXI_SHUFFLE_PARTITIONS", SHUFFLE_PARTITIONS, _parse_int),
    "sample_fraction":    ("TAXI_SAMPLE_FRACTION",    SAMPLE_FRACTION,    float),
    "train_fraction":     ("TAXI_TRAIN_FRACTION",     TRAIN_FRACTION,     float),
    "seed":               ("TAXI_SEED",               SEED,               _parse_int),
    "log_level":          ("TAXI_LOG_LEVEL",          LOG_LEVEL,          str),
}


def check_fraction(name, value):
    """Raise ValueError unless 0 < value <= 1."""
    if not (0.0 < value <= 1.0):
        raise ValueError(f"{name} must be in (0, 1], got {value}")
    return value


def load_settings(**overrides):
    """
    Builds the Settings record: explicit overrides win over environment
    variables, which win over the module defaults. Overrides set to None
    are ignored so CLI flags that were not given fall through.
    """
    unknown = set(overrides) - set(_FIELDS)
    if unknown:
        raise ValueError(f"Unknown settings: {sorted(unknown)}")

    values = {}
    for name, (env_var, default, parse) in _FIELDS.items():
        raw = overrides.get(name)
        if raw is None:
            raw = os.environ.get(env_var, default)
        try:
            values[name] = parse(raw)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid value for {name} ({env_var}): {raw!r}") from None

    check_fraction("sample_fraction", values["sample_fraction"])
    check_fraction("train_fraction", values["train_fraction"])
    if values["shuffle_partitions"] < 1:
        raise ValueError("shuffle_partitions must be >= 1")
    values["log_level"] = values["log_level"].upper()
    if not isinstance(logging.getLevelName(values["log_level"]), int):
        raise ValueError(f"Unknown log_level (TAXI_LOG_LEVEL): {values['log_level']!r}")
    return Settings(**values)
