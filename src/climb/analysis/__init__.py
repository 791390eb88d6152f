"""Incrementality analytics engine."""

from climb.analysis.aggregation import (
    build_incrementality_dataset,
    filter_segment_by_period,
)
from climb.analysis.correlation import (
    compute_lag_correlations,
    cross_correlate,
    pearson_correlation,
)
from climb.analysis.identity import build_first_seen_index, create_patient_identity_key
from climb.analysis.regression import compute_distributed_lag_effect, fit_distributed_lag
from climb.analysis.segments import classify_department

__all__ = [
    "build_first_seen_index",
    "build_incrementality_dataset",
    "classify_department",
    "compute_distributed_lag_effect",
    "compute_lag_correlations",
    "create_patient_identity_key",
    "cross_correlate",
    "filter_segment_by_period",
    "fit_distributed_lag",
    "pearson_correlation",
]
