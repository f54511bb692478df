"""Elementary functions acting on AD arrays and plain numbers alike."""

from __future__ import annotations

import numpy as np
import scipy.sparse as sps

from .forward_mode import AdArray

__all__ = [
    "value",
    "minimum",
    "concatenate",
]


def value(var):
    """Returns the values of an AD array, or ``var`` itself."""
    if isinstance(var, AdArray):
        return var.val
    return var


def _blend(flag: np.ndarray, var1, var2):
    """Element-wise ``var1`` where ``flag`` is 1, ``var2`` where it is 0."""
    if isinstance(var1, AdArray) or isinstance(var2, AdArray):
        return var1 * flag + var2 * (1.0 - flag)
    return np.where(flag > 0, var1, var2)


def minimum(var1, var2):
    """Element-wise minimum. Where values coincide, ``var1`` is chosen, including its
    derivatives."""
    flag = np.asarray(value(var1) <= value(var2), dtype=float)
    return _blend(flag, var1, var2)


def concatenate(variables) -> AdArray:
    """Stacks the values and Jacobians of a sequence of AD arrays."""
    vals = [var.val.ravel() for var in variables]
    jacs = [var.jac for var in variables]

    return AdArray(np.concatenate(vals), sps.vstack(jacs, format="csc"))
