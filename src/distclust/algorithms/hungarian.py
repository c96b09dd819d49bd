"""
Kuhn-Munkres (Hungarian) assignment solver.

Computes a minimum-cost perfect matching between the rows and the columns of
a square cost matrix. The solver runs the classical six-step Munkres
procedure as an explicit state machine over a working copy of the matrix:

1. Row reduction
2. Star independent zeros
3. Cover starred columns (done when all columns are covered)
4. Prime uncovered zeros, shifting covers from columns to rows
5. Augment along an alternating path of primed and starred zeros
6. Shift the smallest uncovered value to create new zeros
"""

from typing import List, Optional, Tuple
import torch
from torch import Tensor

from ..base.data_structures import Assignment
from ..exceptions import InvalidArgumentError
from ..utils.validation import MatrixLike, validate_square_matrix


_NONE = 0
_STAR = 1
_PRIME = 2

_DONE = 0


class HungarianSolver:
    """Minimum-cost perfect matching on a square cost matrix.

    Parameters
    ----------
    cost : array-like of shape (n, n)
        Cost matrix as a tensor, numpy array, lazy matrix or nested list
    device : torch.device, optional
        Device for computation

    Attributes
    ----------
    n_steps_ : int
        Number of state machine transitions performed by ``solve``

    Examples
    --------
    >>> solver = HungarianSolver([[4.0, 1.0], [2.0, 3.0]])
    >>> cost, pairs = solver.solve()
    >>> cost, pairs
    (3.0, [(0, 1), (1, 0)])
    """

    def __init__(self, cost: MatrixLike, device: Optional[torch.device] = None):
        self.cost = validate_square_matrix(cost, error=InvalidArgumentError,
                                           name='cost matrix', device=device)
        self.n = self.cost.shape[0]
        self.n_steps_ = 0
        self._reset()

    def _reset(self) -> None:
        device = self.cost.device
        self.c = self.cost.clone()
        self.row_covered = torch.zeros(self.n, dtype=torch.bool, device=device)
        self.col_covered = torch.zeros(self.n, dtype=torch.bool, device=device)
        self.marked = torch.zeros(self.n, self.n, dtype=torch.int8, device=device)
        self.z0 = (0, 0)

    def solve(self) -> Assignment:
        """Run the state machine to completion.

        Returns:
            Assignment(cost, pairs) with pairs in row order and cost summed
            over the original matrix entries
        """
        self._reset()
        steps = {
            1: self._step1,
            2: self._step2,
            3: self._step3,
            4: self._step4,
            5: self._step5,
            6: self._step6,
        }
        self.n_steps_ = 0
        step = 1
        while step != _DONE:
            step = steps[step]()
            self.n_steps_ += 1

        starred = (self.marked == _STAR).nonzero().tolist()
        pairs = [(int(i), int(j)) for i, j in starred]
        total = sum(self.cost[i, j].item() for i, j in pairs)
        return Assignment(cost=total, pairs=pairs)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _step1(self) -> int:
        """Subtract each row's minimum from the row."""
        self.c -= self.c.min(dim=1, keepdim=True).values
        return 2

    def _step2(self) -> int:
        """Star every zero that has no starred zero in its row or column."""
        row_covered = [False] * self.n
        col_covered = [False] * self.n
        for i, j in (self.c == 0).nonzero().tolist():
            if not row_covered[i] and not col_covered[j]:
                self.marked[i, j] = _STAR
                row_covered[i] = True
                col_covered[j] = True

        self._clear_covers()
        return 3

    def _step3(self) -> int:
        """Cover the columns holding a starred zero."""
        starred = self.marked == _STAR
        self.col_covered |= starred.any(dim=0)
        if starred.sum().item() >= self.n:
            return _DONE
        return 4

    def _step4(self) -> int:
        """Prime uncovered zeros until one has no starred zero in its row."""
        while True:
            zero = self._find_uncovered_zero()
            if zero is None:
                return 6
            row, col = zero
            self.marked[row, col] = _PRIME
            star_col = self._find_in_row(row, _STAR)
            if star_col >= 0:
                self.row_covered[row] = True
                self.col_covered[star_col] = False
            else:
                self.z0 = (row, col)
                return 5

    def _step5(self) -> int:
        """Flip stars and primes along the alternating path starting at z0."""
        path: List[Tuple[int, int]] = [self.z0]
        while True:
            row = self._find_in_col(path[-1][1], _STAR)
            if row < 0:
                break
            path.append((row, path[-1][1]))
            col = self._find_in_row(row, _PRIME)
            path.append((row, col))

        for i, j in path:
            self.marked[i, j] = _NONE if self.marked[i, j] == _STAR else _STAR

        self._clear_covers()
        self.marked[self.marked == _PRIME] = _NONE
        return 3

    def _step6(self) -> int:
        """Add the smallest uncovered value to covered rows and subtract it
        from uncovered columns."""
        uncovered = self._uncovered_mask()
        minval = self.c[uncovered].min()

        # Covered row and uncovered column receive +m-m: left untouched
        both_covered = self.row_covered.unsqueeze(1) & self.col_covered.unsqueeze(0)
        self.c[both_covered] += minval
        self.c[uncovered] -= minval
        return 4

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _clear_covers(self) -> None:
        self.row_covered.zero_()
        self.col_covered.zero_()

    def _uncovered_mask(self) -> Tensor:
        return (~self.row_covered).unsqueeze(1) & (~self.col_covered).unsqueeze(0)

    def _find_uncovered_zero(self) -> Optional[Tuple[int, int]]:
        """First uncovered zero in row-major order."""
        zeros = ((self.c == 0) & self._uncovered_mask()).nonzero()
        if zeros.shape[0] == 0:
            return None
        row, col = zeros[0].tolist()
        return row, col

    def _find_in_row(self, row: int, mark: int) -> int:
        cols = (self.marked[row] == mark).nonzero()
        return int(cols[0, 0]) if cols.shape[0] > 0 else -1

    def _find_in_col(self, col: int, mark: int) -> int:
        rows = (self.marked[:, col] == mark).nonzero()
        return int(rows[0, 0]) if rows.shape[0] > 0 else -1


def hungarian(cost: MatrixLike, device: Optional[torch.device] = None) -> Assignment:
    """Solve the assignment problem for a square cost matrix.

    Args:
        cost: (n, n) cost matrix (tensor, numpy array, lazy matrix or nested list)
        device: Optional device for computation

    Returns:
        Assignment(cost, pairs): total cost and one (row, col) pair per row

    Raises:
        InvalidArgumentError: If the matrix is empty or not square
    """
    return HungarianSolver(cost, device=device).solve()
