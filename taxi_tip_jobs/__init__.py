"""Spark jobs for modelling NYC taxi tips from the trip and fare extracts."""

__version__ = "0.1.0"
