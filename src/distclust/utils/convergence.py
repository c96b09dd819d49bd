"""
Convergence criteria for iterative clustering.

Message-passing clustering stops once its labelling has been stable for a
given number of consecutive iterations.
"""

from typing import Dict, Any, Union, Sequence
import torch
from torch import Tensor

from ..base.interfaces import ConvergenceCriterion
from ..exceptions import DomainError


class IdenticalAssignments(ConvergenceCriterion):
    """Convergence once assignments are unchanged for ``patience`` iterations.

    The first labelling is compared against ``initial`` (all zeros by
    default), so a labelling that never moves away from it also counts as
    stable.
    """

    def __init__(self, patience: int = 10,
                 initial: Union[Tensor, Sequence[int], None] = None):
        """
        Args:
            patience: Number of consecutive identical labellings required
            initial: Labelling the first iteration is compared against
        """
        super().__init__()
        if patience <= 1:
            raise DomainError(f"The number of stable iterations to stop must be > 1, got {patience}.")
        self.patience = patience
        self._initial = initial
        self._prev_assignments = None
        self._stable_count = 0

    def check(self, current_state: Dict[str, Any]) -> bool:
        """Check if assignments have stayed identical long enough."""
        current_assignments = current_state['assignments']
        if not isinstance(current_assignments, Tensor):
            current_assignments = torch.as_tensor(current_assignments, dtype=torch.long)

        if self._prev_assignments is None:
            if self._initial is None:
                self._prev_assignments = torch.zeros_like(current_assignments)
            else:
                self._prev_assignments = torch.as_tensor(
                    self._initial, dtype=current_assignments.dtype,
                    device=current_assignments.device
                )

        n_changed = (current_assignments != self._prev_assignments).sum().item()

        if n_changed == 0:
            self._stable_count += 1
        else:
            self._stable_count = 0
            self._prev_assignments = current_assignments.clone()

        self.history.append({
            'iteration': current_state.get('iteration', len(self.history)),
            'n_changed': n_changed,
            'stable_count': self._stable_count
        })

        return self._stable_count >= self.patience

    @property
    def stable_count(self) -> int:
        return self._stable_count

    def reset(self):
        super().reset()
        self._prev_assignments = None
        self._stable_count = 0
