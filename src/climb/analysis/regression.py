"""
Distributed-lag regression of true first visits on ad conversions.

Fits target[t] = b0 + sum_{l=0..L} b_l * source[t-l] by ordinary least
squares. The normal equations are solved with Gauss-Jordan elimination
and partial pivoting; a near-zero pivot means the system is singular and
no result is returned.
"""

import logging

from collections.abc import Sequence

import numpy as np

from climb.analysis.types import DistributedLagResult, HourlyPoint
from climb.constants import SINGULAR_PIVOT_EPSILON

logger = logging.getLogger(__name__)

__all__ = [
    "build_lag_design",
    "compute_distributed_lag_effect",
    "fit_distributed_lag",
    "solve_linear_system",
]


def solve_linear_system(
    matrix: np.ndarray,
    rhs: np.ndarray,
    epsilon: float = SINGULAR_PIVOT_EPSILON,
) -> np.ndarray | None:
    """
    Solve matrix @ x = rhs by Gauss-Jordan elimination with partial pivoting.

    For each column the row with the largest-magnitude entry among the
    remaining rows is swapped into the pivot position, normalized, and
    eliminated from every other row.

    Args:
        matrix: Square coefficient matrix (n x n)
        rhs: Right-hand side vector (n)
        epsilon: Pivots smaller than this are treated as zero

    Returns:
        Solution vector, or None if the system is singular
    """
    n = len(matrix)
    augmented = np.hstack(
        [np.asarray(matrix, dtype=float), np.asarray(rhs, dtype=float).reshape(n, 1)]
    )

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(augmented[col:, col])))
        max_abs = abs(augmented[pivot_row, col])
        if max_abs < epsilon:
            logger.debug(f"Singular system: pivot {max_abs:.3g} in column {col}")
            return None

        if pivot_row != col:
            augmented[[col, pivot_row]] = augmented[[pivot_row, col]]

        augmented[col, col:] /= augmented[col, col]

        for row in range(n):
            if row == col:
                continue
            factor = augmented[row, col]
            if factor != 0:
                augmented[row, col:] -= factor * augmented[col, col:]

    return augmented[:, n].copy()


def build_lag_design(
    source: Sequence[float], target: Sequence[float], max_lag: int
) -> tuple[np.ndarray, np.ndarray]:
    """
    Build the design matrix and target vector for a distributed-lag fit.

    One row per index t in [max_lag, len(source)), laid out as
    [1, source[t], source[t-1], ..., source[t-max_lag]]. Earlier indices
    lack a full history and are dropped.

    Returns:
        Tuple of (design matrix, target vector)
    """
    length = min(len(source), len(target))
    rows = [
        [1.0] + [float(source[t - lag]) for lag in range(max_lag + 1)]
        for t in range(max_lag, length)
    ]
    y = [float(target[t]) for t in range(max_lag, length)]

    design = np.array(rows, dtype=float).reshape(len(rows), max_lag + 2)
    return design, np.array(y, dtype=float)


def fit_distributed_lag(
    source: Sequence[float], target: Sequence[float], max_lag: int
) -> DistributedLagResult | None:
    """
    Fit a distributed-lag linear model by ordinary least squares.

    Args:
        source: Stimulus series (e.g. hourly ad conversions)
        target: Response series (e.g. hourly true first visits)
        max_lag: Number of past periods included besides the current one

    Returns:
        DistributedLagResult, or None when there are fewer than
        max_lag + 2 usable rows or the normal equations are singular
    """
    if max_lag < 0 or len(source) == 0:
        return None

    design, y = build_lag_design(source, target, max_lag)
    if len(y) < max_lag + 2:
        logger.debug(
            f"Distributed lag needs {max_lag + 2} rows, only {len(y)} available"
        )
        return None

    xtx = design.T @ design
    xty = design.T @ y

    coefficients = solve_linear_system(xtx, xty)
    if coefficients is None:
        return None

    predictions = design @ coefficients
    mean_y = float(np.mean(y))
    ss_tot = float(np.sum((y - mean_y) ** 2))
    ss_res = float(np.sum((y - predictions) ** 2))
    r_squared = 1.0 if ss_tot == 0 else min(1.0, max(0.0, 1.0 - ss_res / ss_tot))

    return DistributedLagResult(
        max_lag=max_lag,
        coefficients=[float(value) for value in coefficients],
        total_effect=float(np.sum(coefficients[1:])),
        r_squared=r_squared,
        sample_size=len(y),
    )


def compute_distributed_lag_effect(
    hourly: Sequence[HourlyPoint], max_lag: int
) -> DistributedLagResult | None:
    """
    Fit hourly true first visits against hourly ad conversions.

    Lag l refers to the l-th preceding populated hour, not l clock hours.
    """
    if not hourly:
        return None

    ordered = sorted(hourly, key=lambda point: point.iso_hour)
    return fit_distributed_lag(
        [point.listing_cv for point in ordered],
        [float(point.true_first) for point in ordered],
        max_lag,
    )
