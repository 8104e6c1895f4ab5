# =============================================================================
# Field Radar - Auction Assignment
# =============================================================================
# Price-based auction algorithm for the maximum-weight assignment between
# tracks (rows) and observations (columns).
# =============================================================================

import numpy as np

from .config import TRACKER_MAX_ITER

# Assignment value of an unmatched row
NOT_MATCHED = -1

# Epsilon shrink factor between scaling phases
EPSILON_SCALING = 5.0

# Final epsilon relative to the largest benefit, per bidder
FINAL_EPSILON = 1e-7


class AuctionSolver:
    """
    Gauss-Seidel auction with epsilon scaling for rectangular benefit matrices.

    The rectangular problem is padded to a square one: every row owns a
    zero-valued "unmatched" slot, and filler rows absorb the columns nobody
    takes. Pairs with benefit <= 0 are never assigned. Each phase restarts
    the bidding with a smaller epsilon and the prices of the previous phase,
    so the final total is within FINAL_EPSILON * max(benefit) of the optimum.

    Results are deterministic: bidders bid in index order and ties go to the
    lowest object index. max_iter caps the bidding rounds of each phase; a
    phase cut short by the cap falls back to the last complete phase.
    """

    def __init__(self, max_iter: int = TRACKER_MAX_ITER):
        """
        Args:
            max_iter: Maximum number of bidding rounds per scaling phase
        """
        self.max_iter = max_iter

    def solve(self, benefit: np.ndarray) -> np.ndarray:
        """
        Assign columns to rows maximizing total benefit.

        Args:
            benefit: (rows, cols) benefit matrix

        Returns:
            Array of length rows; column index per row or NOT_MATCHED
        """
        benefit = np.asarray(benefit, dtype=np.float64)
        n_rows, n_cols = benefit.shape
        if n_rows == 0 or n_cols == 0 or not np.any(benefit > 0):
            return np.full(n_rows, NOT_MATCHED, dtype=np.int64)

        value = self._pad(benefit)
        scale = benefit.max()
        size = len(value)

        prices = np.zeros(size)
        epsilon = scale / 2.0
        final_epsilon = FINAL_EPSILON * scale / size
        result = None

        while True:
            owner, complete = self._phase(value, prices, epsilon, scale)
            if not complete:
                break
            result = owner
            if epsilon <= final_epsilon:
                break
            epsilon = max(epsilon / EPSILON_SCALING, final_epsilon)

        if result is None:
            result = owner
        return self._unpad(result, n_rows, n_cols)

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _pad(benefit: np.ndarray) -> np.ndarray:
        """Square value matrix; -inf marks pairs that may not be assigned."""
        n_rows, n_cols = benefit.shape
        size = n_rows + n_cols
        value = np.full((size, size), -np.inf)
        value[:n_rows, :n_cols] = np.where(benefit > 0, benefit, -np.inf)
        # Row i may stay unmatched through its own slot
        value[np.arange(n_rows), n_cols + np.arange(n_rows)] = 0.0
        # Filler rows take any leftover column
        value[n_rows:, :] = 0.0
        return value

    @staticmethod
    def _unpad(owner: np.ndarray, n_rows: int, n_cols: int) -> np.ndarray:
        assignment = np.full(n_rows, NOT_MATCHED, dtype=np.int64)
        for col in range(n_cols):
            row = owner[col]
            if 0 <= row < n_rows:
                assignment[row] = col
        return assignment

    def _phase(self, value: np.ndarray, prices: np.ndarray, epsilon: float,
               scale: float):
        """
        One bidding phase at a fixed epsilon. Prices are updated in place.

        Returns:
            (owner per object, True if every bidder was assigned)
        """
        size = len(value)
        owner = np.full(size, NOT_MATCHED, dtype=np.int64)
        assignment = np.full(size, NOT_MATCHED, dtype=np.int64)

        for _ in range(self.max_iter):
            bidders = np.flatnonzero(assignment == NOT_MATCHED)
            if len(bidders) == 0:
                return owner, True

            for bidder in bidders:
                net = value[bidder] - prices
                best = int(np.argmax(net))
                best_value = net[best]

                net[best] = -np.inf
                second_value = net.max()
                if not np.isfinite(second_value):
                    # Single admissible object
                    second_value = best_value - scale
                prices[best] += best_value - second_value + epsilon

                previous = owner[best]
                if previous != NOT_MATCHED:
                    assignment[previous] = NOT_MATCHED
                owner[best] = bidder
                assignment[bidder] = best

        return owner, bool(np.all(assignment != NOT_MATCHED))
