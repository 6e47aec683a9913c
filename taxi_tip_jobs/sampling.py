# taxi_tip_jobs/sampling.py
import logging

from taxi_tip_jobs.config import check_fraction

log = logging.getLogger(__name__)


def downsample(df, fraction, seed=42):
    """Bernoulli sample without replacement; fraction 1.0 keeps everything."""
    check_fraction("fraction", fraction)
    if fraction == 1.0:
        return df
    log.info("Down-sampling to %.1f%% (seed=%d)", fraction * 100, seed)
    return df.sample(withReplacement=False, fraction=fraction, seed=seed)


def train_test_split(df, train_fraction=0.75, seed=42):
    check_fraction("train_fraction", train_fraction)
    if train_fraction == 1.0:
        raise ValueError("train_fraction of 1.0 leaves no test rows")
    train, test = df.randomSplit([train_fraction, 1.0 - train_fraction], seed=seed)
    return train, test
