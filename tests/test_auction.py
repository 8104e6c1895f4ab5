"""Tests for the auction assignment solver."""

import numpy as np
import pytest
from scipy.optimize import linear_sum_assignment

from field_radar.auction import AuctionSolver, NOT_MATCHED


def assignment_total(benefit, assignment):
    return sum(benefit[row, col] for row, col in enumerate(assignment) if col != NOT_MATCHED)


def assert_valid(assignment, n_rows, n_cols):
    assert len(assignment) == n_rows
    matched = [col for col in assignment if col != NOT_MATCHED]
    assert len(matched) == len(set(matched))
    assert all(0 <= col < n_cols for col in matched)


class TestAuctionSolver:
    """Tests for AuctionSolver."""

    @pytest.mark.parametrize("shape", [(0, 0), (0, 3), (3, 0)])
    def test_empty_matrices(self, shape):
        assignment = AuctionSolver().solve(np.zeros(shape))
        assert len(assignment) == shape[0]
        assert np.all(assignment == NOT_MATCHED)

    def test_diagonal_is_exact(self):
        benefit = np.array([
            [0.9, 0.1, 0.2],
            [0.2, 0.8, 0.1],
            [0.1, 0.3, 0.7],
        ])
        np.testing.assert_array_equal(AuctionSolver().solve(benefit), [0, 1, 2])

    def test_contested_object_goes_to_higher_total(self):
        # Both rows prefer column 0; giving it to row 1 maximizes the total
        benefit = np.array([
            [0.9, 0.8],
            [1.0, 0.1],
        ])
        np.testing.assert_array_equal(AuctionSolver().solve(benefit), [1, 0])

    def test_zero_benefit_never_assigned(self):
        benefit = np.array([
            [0.0, 0.0],
            [1.0, 0.0],
        ])
        np.testing.assert_array_equal(AuctionSolver().solve(benefit), [NOT_MATCHED, 0])

    def test_more_rows_than_columns(self):
        benefit = np.array([
            [0.2],
            [0.9],
            [0.4],
        ])
        np.testing.assert_array_equal(AuctionSolver().solve(benefit),
                                      [NOT_MATCHED, 0, NOT_MATCHED])

    def test_deterministic(self):
        rng = np.random.default_rng(3)
        benefit = rng.uniform(0.0, 1.0, (6, 5))
        solver = AuctionSolver(max_iter=50)
        np.testing.assert_array_equal(solver.solve(benefit), solver.solve(benefit))

    @pytest.mark.parametrize("seed", range(20))
    def test_assignment_valid_for_random_matrices(self, seed):
        rng = np.random.default_rng(seed)
        n_rows, n_cols = rng.integers(1, 8, size=2)
        benefit = rng.uniform(0.0, 1.0, (n_rows, n_cols))
        benefit[rng.uniform(size=benefit.shape) < 0.2] = 0.0

        # A tight cap must still produce a valid assignment
        for max_iter in (1, 3, 1000):
            assignment = AuctionSolver(max_iter=max_iter).solve(benefit)
            assert_valid(assignment, n_rows, n_cols)
            for row, col in enumerate(assignment):
                if col != NOT_MATCHED:
                    assert benefit[row, col] > 0

    def test_tied_preference_reaches_best_total(self):
        # Row 0 is indifferent; only giving it column 1 frees column 0 for row 1
        benefit = np.array([
            [1.0, 1.0],
            [1.0, 0.7],
        ])
        assignment = AuctionSolver().solve(benefit)
        np.testing.assert_array_equal(assignment, [1, 0])
        assert assignment_total(benefit, assignment) == pytest.approx(2.0)

    @pytest.mark.parametrize("seed", range(20))
    def test_matches_exact_solver(self, seed):
        rng = np.random.default_rng(100 + seed)
        n_rows, n_cols = rng.integers(1, 8, size=2)
        benefit = rng.uniform(0.05, 1.0, (n_rows, n_cols))
        if seed % 2:
            benefit[rng.uniform(size=benefit.shape) < 0.3] = 0.0

        rows, cols = linear_sum_assignment(benefit, maximize=True)
        optimum = benefit[rows, cols].sum()

        assignment = AuctionSolver(max_iter=10000).solve(benefit)
        assert_valid(assignment, n_rows, n_cols)
        assert assignment_total(benefit, assignment) == pytest.approx(optimum, abs=1e-6)

    def test_default_cap_is_exact_on_tracker_sized_problems(self):
        rng = np.random.default_rng(7)
        benefit = rng.uniform(0.05, 1.0, (6, 8))
        rows, cols = linear_sum_assignment(benefit, maximize=True)

        assignment = AuctionSolver().solve(benefit)
        assert assignment_total(benefit, assignment) == pytest.approx(
            benefit[rows, cols].sum(), abs=1e-6)
