"""
Pearson and lagged cross-correlation between aligned time series.

Degenerate input (empty series, mismatched lengths, zero variance) yields
a correlation of 0 or an empty sweep rather than an error.
"""

import logging

from collections.abc import Sequence

import numpy as np

from climb.analysis.types import (
    CorrelationStrength,
    HourlyPoint,
    LagCorrelationPoint,
)
from climb.constants import CorrelationThresholds as CT

logger = logging.getLogger(__name__)

__all__ = [
    "compute_lag_correlations",
    "correlation_level",
    "cross_correlate",
    "pearson_correlation",
    "select_top_lag",
]


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Calculate the Pearson correlation coefficient of two equal-length series.

    r = (nΣxy - ΣxΣy) / sqrt((nΣx² - (Σx)²)(nΣy² - (Σy)²))

    Args:
        x: First series
        y: Second series

    Returns:
        Correlation in [-1, 1]; 0 when lengths differ, the series are
        empty, or either series is constant
    """
    if len(x) != len(y) or len(x) == 0:
        return 0.0

    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    n = len(xs)

    sum_x = float(np.sum(xs))
    sum_y = float(np.sum(ys))
    sum_xy = float(np.sum(xs * ys))
    sum_x2 = float(np.sum(xs * xs))
    sum_y2 = float(np.sum(ys * ys))

    numerator = n * sum_xy - sum_x * sum_y
    variance_product = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)
    denominator = float(np.sqrt(max(variance_product, 0.0)))
    if denominator == 0:
        return 0.0

    return float(np.clip(numerator / denominator, -1.0, 1.0))


def cross_correlate(
    source: Sequence[float], target: Sequence[float], max_lag: int
) -> list[LagCorrelationPoint]:
    """
    Sweep Pearson correlation over lags in [-max_lag, +max_lag].

    For each lag, source[i] is paired with target[i + lag] wherever both
    indices exist. A lag is reported only if at least two pairs remain.
    No best lag is chosen here; see select_top_lag().

    Args:
        source: Stimulus series (e.g. hourly ad conversions)
        target: Response series (e.g. hourly true first visits)
        max_lag: Largest absolute shift to evaluate

    Returns:
        LagCorrelationPoint per usable lag, in ascending lag order
    """
    if max_lag < 0 or len(source) == 0 or len(target) == 0:
        return []

    results: list[LagCorrelationPoint] = []
    for lag in range(-max_lag, max_lag + 1):
        start = max(0, -lag)
        stop = min(len(source), len(target) - lag)
        if stop - start < 2:
            continue

        aligned_source = source[start:stop]
        aligned_target = target[start + lag : stop + lag]
        results.append(
            LagCorrelationPoint(
                lag=lag,
                correlation=pearson_correlation(aligned_source, aligned_target),
                paired_samples=stop - start,
            )
        )
    return results


def compute_lag_correlations(
    hourly: Sequence[HourlyPoint], max_lag: int
) -> list[LagCorrelationPoint]:
    """
    Correlate hourly ad conversions with hourly true first visits.

    Points are ordered by hour before the sweep. Hours without any event
    are absent from the series, so a lag counts populated hours rather
    than clock hours and a small lag can span days. Positive lags mean
    the first visits follow the conversions.

    Returns:
        Lag correlations sorted by |correlation| descending (stable)
    """
    if not hourly:
        return []

    ordered = sorted(hourly, key=lambda point: point.iso_hour)
    source = [point.listing_cv for point in ordered]
    target = [float(point.true_first) for point in ordered]

    results = cross_correlate(source, target, max_lag)
    logger.debug(f"Lag sweep over {len(ordered)} hours produced {len(results)} lags")
    return sorted(results, key=lambda point: -abs(point.correlation))


def select_top_lag(
    correlations: Sequence[LagCorrelationPoint],
) -> LagCorrelationPoint | None:
    """Lag with the largest |correlation|; the earliest one wins ties."""
    best: LagCorrelationPoint | None = None
    for point in correlations:
        if best is None or abs(point.correlation) > abs(best.correlation):
            best = point
    return best


def correlation_level(value: float) -> CorrelationStrength:
    """Describe the strength of a correlation coefficient."""
    magnitude = abs(value)
    if magnitude >= CT.STRONG:
        return "strong"
    if magnitude >= CT.MODERATE:
        return "moderate"
    if magnitude >= CT.WEAK:
        return "weak"
    return "none"
