"""
Outlier statistics for circular data.

Both statistics compare the mean resultant length of a set of angles with
the one obtained when each angle is left out.
"""

from typing import List, Sequence

import torch

from ..exceptions import DomainError
from ..utils.validation import as_tensor


def _leave_one_out_lengths(angles: Sequence[float], context: str):
    theta = as_tensor(angles).reshape(-1)
    n = theta.shape[0]
    if n < 2:
        raise DomainError(f"{context}: at least two angles are needed, got {n}.")

    cos, sin = torch.cos(theta), torch.sin(theta)
    c, s = cos.sum(), sin.sum()
    r = torch.sqrt((c / n) ** 2 + (s / n) ** 2)
    r_without = torch.sqrt(((c - cos) / (n - 1)) ** 2 + ((s - sin) / (n - 1)) ** 2)
    return r, r_without


def angular_outliers_e(angles: Sequence[float]) -> List[float]:
    """Mardia's E statistic of each angle (radians).

    ``E_i = (1 - R_{-i}) / (1 - R)`` where ``R`` is the mean resultant length
    and ``R_{-i}`` the one computed without angle i. The lower the value,
    the more outlying the angle.

    Raises:
        DomainError: If fewer than two angles are given
    """
    r, r_without = _leave_one_out_lengths(angles, 'angular_outliers_e')
    return ((1.0 - r_without) / (1.0 - r)).tolist()


def angular_outliers_c(angles: Sequence[float]) -> List[float]:
    """Collett's C statistic of each angle (radians).

    ``C_i = R_{-i} / R``. The higher the value, the more outlying the angle.

    Raises:
        DomainError: If fewer than two angles are given
    """
    r, r_without = _leave_one_out_lengths(angles, 'angular_outliers_c')
    return (r_without / r).tolist()
