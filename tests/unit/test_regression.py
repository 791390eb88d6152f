"""
Tests for the distributed-lag regression and its linear solver.
"""

import numpy as np
import pytest

from climb.analysis.regression import (
    build_lag_design,
    compute_distributed_lag_effect,
    fit_distributed_lag,
    solve_linear_system,
)
from tests.helpers.synthetic_data import make_hourly_series

SOURCE = [1.0, 5.0, 2.0, 8.0, 3.0, 9.0, 4.0, 7.0, 6.0, 0.0, 2.0, 5.0]


class TestSolveLinearSystem:
    """Test Gauss-Jordan elimination with partial pivoting."""

    def test_solves_known_system(self):
        matrix = np.array([[2.0, 1.0, -1.0], [-3.0, -1.0, 2.0], [-2.0, 1.0, 2.0]])
        rhs = np.array([8.0, -11.0, -3.0])

        solution = solve_linear_system(matrix, rhs)

        assert solution == pytest.approx([2.0, 3.0, -1.0])

    def test_zero_leading_entry_needs_pivoting(self):
        matrix = np.array([[0.0, 1.0], [1.0, 0.0]])
        rhs = np.array([4.0, 7.0])

        assert solve_linear_system(matrix, rhs) == pytest.approx([7.0, 4.0])

    def test_singular_returns_none(self):
        matrix = np.array([[1.0, 2.0], [2.0, 4.0]])

        assert solve_linear_system(matrix, np.array([1.0, 2.0])) is None

    def test_inputs_not_modified(self):
        matrix = np.array([[4.0, 1.0], [1.0, 3.0]])
        rhs = np.array([1.0, 2.0])

        solve_linear_system(matrix, rhs)

        assert matrix.tolist() == [[4.0, 1.0], [1.0, 3.0]]
        assert rhs.tolist() == [1.0, 2.0]


class TestLagDesign:
    """Test design matrix construction."""

    def test_rows_drop_missing_history(self):
        design, y = build_lag_design([1.0, 2.0, 3.0, 4.0], [10.0, 20.0, 30.0, 40.0], 2)

        assert design.tolist() == [[1.0, 3.0, 2.0, 1.0], [1.0, 4.0, 3.0, 2.0]]
        assert y.tolist() == [30.0, 40.0]

    def test_no_rows(self):
        design, y = build_lag_design([1.0], [1.0], 3)

        assert design.shape == (0, 5)
        assert len(y) == 0


class TestFitDistributedLag:
    """Test the OLS fit."""

    def test_recovers_pure_scaling(self):
        target = [3.0 * value for value in SOURCE]

        result = fit_distributed_lag(SOURCE, target, max_lag=0)

        assert result is not None
        assert result.coefficients == pytest.approx([0.0, 3.0], abs=1e-6)
        assert result.total_effect == pytest.approx(3.0)
        assert result.r_squared == pytest.approx(1.0)
        assert result.sample_size == len(SOURCE)

    def test_recovers_lagged_weights(self):
        target = [0.0] + [
            2.0 + 0.5 * SOURCE[t] + 1.5 * SOURCE[t - 1] for t in range(1, len(SOURCE))
        ]

        result = fit_distributed_lag(SOURCE, target, max_lag=1)

        assert result is not None
        assert result.coefficients == pytest.approx([2.0, 0.5, 1.5], abs=1e-6)
        assert result.total_effect == pytest.approx(2.0)
        assert result.sample_size == len(SOURCE) - 1
        assert result.max_lag == 1

    def test_noisy_fit_has_partial_r_squared(self):
        rng = np.random.default_rng(3)
        source = rng.integers(0, 6, size=200).astype(float).tolist()
        target = (np.array(source) * 0.4 + rng.normal(0, 1.0, size=200)).tolist()

        result = fit_distributed_lag(source, target, max_lag=2)

        assert result is not None
        assert 0.0 < result.r_squared < 1.0
        assert len(result.coefficients) == 4
        assert result.coefficients[1] == pytest.approx(0.4, abs=0.15)

    def test_constant_target_defines_r_squared_one(self):
        result = fit_distributed_lag(SOURCE, [5.0] * len(SOURCE), max_lag=0)

        assert result is not None
        assert result.r_squared == 1.0
        assert result.coefficients == pytest.approx([5.0, 0.0], abs=1e-6)

    def test_too_few_rows_returns_none(self):
        assert fit_distributed_lag([1.0, 2.0, 3.0], [1.0, 2.0, 3.0], max_lag=2) is None
        assert fit_distributed_lag(SOURCE[:3], SOURCE[:3], max_lag=24) is None

    def test_constant_source_is_singular(self):
        assert fit_distributed_lag([2.0] * 10, SOURCE[:10], max_lag=0) is None

    @pytest.mark.parametrize(("source", "max_lag"), [([], 0), (SOURCE, -1)])
    def test_degenerate_inputs(self, source, max_lag):
        assert fit_distributed_lag(source, source, max_lag) is None


class TestHourlyDistributedLag:
    """Test the hourly wrapper."""

    def test_sorts_hourly_points(self):
        hourly = make_hourly_series(
            "2025-01-06", SOURCE, [int(2 * value) for value in SOURCE]
        )

        result = compute_distributed_lag_effect(hourly[::-1], max_lag=0)

        assert result is not None
        assert result.total_effect == pytest.approx(2.0)

    def test_empty(self):
        assert compute_distributed_lag_effect([], 24) is None
