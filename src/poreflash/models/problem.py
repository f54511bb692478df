"""Base class for the description of multi-phase problems.

A problem provides spatially varying parameters of the porous medium, queried per
degree of freedom of an element context. All queries take the same arguments:

- ``context``: The element context (see :mod:`poreflash.models.element_context`).
- ``dof_idx``: Index of the degree of freedom in the context.
- ``time_idx``: Index of the time level.

Concrete problems override the queries they need. Queries which are not overridden
raise a :class:`NotImplementedError` on first use, including the material law
parameters, for which no default is provided.

"""

from __future__ import annotations

import logging
from typing import Any, Optional

import numpy as np

import poreflash as pf

__all__ = ["MultiPhaseBaseProblem", "harmonic_mean"]

logger = logging.getLogger(__name__)


def harmonic_mean(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Element-wise harmonic mean ``2 x y / (x + y)``, defined as zero where
    ``x * y <= 0``."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    result = np.zeros(np.broadcast(x, y).shape)
    positive = x * y > 0.0
    xp = np.broadcast_to(x, result.shape)[positive]
    yp = np.broadcast_to(y, result.shape)[positive]
    result[positive] = 2.0 * xp * yp / (xp + yp)
    return result


class MultiPhaseBaseProblem:
    """Base class for multi-phase problems.

    Parameters:
        params: ``default=None``

            Supported parameters:

            - ``'dim'``: Dimension of the domain (default 2).
            - ``'enable_gravity'``: Flag to enable gravity in the last coordinate
              direction (default False).

    """

    def __init__(self, params: Optional[dict] = None) -> None:
        if params is None:
            params = {}

        self.params: dict = params
        """Parameters given at instantiation."""

        self.dim: int = int(params.get("dim", 2))
        """Dimension of the domain."""

        self._gravity: np.ndarray = np.zeros(self.dim)
        if params.get("enable_gravity", False):
            self._gravity[self.dim - 1] = -pf.GRAVITY_ACCELERATION

    def gravity(
        self, context: Any = None, dof_idx: int = 0, time_idx: int = 0
    ) -> np.ndarray:
        """Gravitational acceleration ``[m / s^2]``, zero if gravity is disabled."""
        return self._gravity.copy()

    def extrusion_factor(self, context: Any, dof_idx: int, time_idx: int) -> float:
        """Extrusion factor of lower-dimensional domains, 1 by default."""
        return 1.0

    def to_dim_matrix(self, value: pf.number) -> np.ndarray:
        """Returns ``value`` times the identity of size ``dim``."""
        return value * np.eye(self.dim)

    def porosity(self, context: Any, dof_idx: int, time_idx: int) -> float:
        raise NotImplementedError("Not implemented: Problem.porosity()")

    def intrinsic_permeability(
        self, context: Any, dof_idx: int, time_idx: int
    ) -> np.ndarray:
        raise NotImplementedError("Not implemented: Problem.intrinsic_permeability()")

    def material_law_params(self, context: Any, dof_idx: int, time_idx: int) -> Any:
        raise NotImplementedError("Not implemented: Problem.material_law_params()")

    def temperature(self, context: Any, dof_idx: int, time_idx: int) -> float:
        raise NotImplementedError("Not implemented: Problem.temperature()")

    def heat_capacity_solid(self, context: Any, dof_idx: int, time_idx: int) -> float:
        """Volumetric heat capacity of the solid ``[J / m^3 K]``."""
        raise NotImplementedError("Not implemented: Problem.heat_capacity_solid()")

    def heat_conduction_params(self, context: Any, dof_idx: int, time_idx: int) -> Any:
        raise NotImplementedError("Not implemented: Problem.heat_conduction_params()")

    def ergun_coefficient(self, context: Any, dof_idx: int, time_idx: int) -> float:
        """Coefficient of the Forchheimer term ``[-]``."""
        raise NotImplementedError("Not implemented: Problem.ergun_coefficient()")

    def intersection_intrinsic_permeability(
        self, context: Any, interior_idx: int, exterior_idx: int, time_idx: int
    ) -> np.ndarray:
        """Intrinsic permeability at the face between two degrees of freedom, as the
        element-wise harmonic mean of the adjacent permeabilities."""
        K1 = self.intrinsic_permeability(context, interior_idx, time_idx)
        K2 = self.intrinsic_permeability(context, exterior_idx, time_idx)
        return harmonic_mean(K1, K2)
