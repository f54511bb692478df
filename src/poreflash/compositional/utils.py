"""Contains utility functions for the compositional subpackage, as well as the custom
exception classes :class:`CompositionalModellingError` and
:class:`FlashConvergenceFailure`."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence, TypeVar, cast

import numba
import numpy as np

from ._core import NUMBA_FAST_MATH

if TYPE_CHECKING:
    from .states import FluidState

__all__ = [
    "safe_sum",
    "normalize_rows",
    "CompositionalModellingError",
    "FlashConvergenceFailure",
]


_Addable = TypeVar("_Addable")
"""A type variable representing any type supporting the + overload.

Note:
    Used in :func:`safe_sum` to state that the return value type is the same as the
    argument type.

"""


def safe_sum(x: Sequence[_Addable]) -> _Addable:
    """Safely sum the elements, without creating a first addition with 0.

    Important for AD arrays to avoid overhead.

    Parameters:
        x: A sequence of any objects which support the ``+`` operation.

    Returns:
        The sum of ``x``.

    """
    if len(x) >= 1:
        sum_ = x[0]
        for i in range(1, len(x)):
            # Using TypeVar to indicate that return type is same as argument type
            # MyPy says that the TypeVar has no __add__, hence not adable...
            sum_ = sum_ + x[i]  # type: ignore[operator]
        return sum_
    else:
        return cast(_Addable, 0)


@numba.njit("float64[:,:](float64[:,:])", fastmath=NUMBA_FAST_MATH, cache=True)
def normalize_rows(x: np.ndarray) -> np.ndarray:
    """Takes a 2D array and normalizes it row-wise.

    Each row vector is divided by the sum of row elements.

    Inteded use is for families of fractional variables, which ought to be normalized
    such that they fulfill the unity constraint.

    NJIT-ed function with signature ``(float64[:,:]) -> float64[:,:]``.

    Parameters:
        x: ``shape=(N, M)``

            Rectangular 2D array.

    Returns:
        A normalized version of ``X``, with the normalization performed row-wise.

    """
    return (x.T / x.sum(axis=1)).T


class CompositionalModellingError(Exception):
    """Custom exception class to alert the user when using the compositional
    framework logically inconsistent."""


class FlashConvergenceFailure(CompositionalModellingError):
    """Raised when the local equilibrium problem could not be solved.

    This includes invalid input (negative or vanishing total molar densities), a
    singular linearization, non-finite iterates and reaching the maximal number of
    iterations.

    The caller (usually the global nonlinear solver) is expected to treat the current
    step as invalid. No equilibrium state is returned in this case.

    Parameters:
        message: Description of the failure.
        last_iterate: ``default=None``

            The fluid state at the last iterate, if any iterate was computed.
        residual_norm: ``default=nan``

            Maximum norm of the residual at the last iterate ``[mol / m^3]``.
        num_iter: ``default=0``

            Number of performed iterations.

    """

    def __init__(
        self,
        message: str,
        last_iterate: Optional[FluidState] = None,
        residual_norm: float = np.nan,
        num_iter: int = 0,
    ) -> None:
        super().__init__(message)
        self.last_iterate: Optional[FluidState] = last_iterate
        self.residual_norm: float = residual_norm
        self.num_iter: int = num_iter
