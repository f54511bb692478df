"""Element context providing the volume variables update with primary variables,
positions, the problem and thermodynamic hints.

Hints are previously converged volume variables of the same degree of freedom and time
level. They are stored in a :class:`ThermodynamicHintCache`, which is replaced as a
whole after each assembly pass. The update only reads hints.

"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

if TYPE_CHECKING:
    from .flash_model import FlashModel
    from .problem import MultiPhaseBaseProblem
    from .volume_variables import FlashVolumeVariables

__all__ = ["ThermodynamicHintCache", "ElementContext"]

logger = logging.getLogger(__name__)


class ThermodynamicHintCache:
    """Store of converged volume variables by degree of freedom and time index."""

    def __init__(self) -> None:
        self._hints: dict[tuple[int, int], FlashVolumeVariables] = {}

    def __len__(self) -> int:
        return len(self._hints)

    def get(self, dof_idx: int, time_idx: int) -> Optional[FlashVolumeVariables]:
        """Returns the hint for a degree of freedom and time index, or None."""
        return self._hints.get((dof_idx, time_idx), None)

    def commit(self, volume_variables: Sequence[FlashVolumeVariables]) -> None:
        """Replaces all stored hints by the given volume variables, keyed by their
        degree of freedom and time index."""
        self._hints = {(vv.dof_idx, vv.time_idx): vv for vv in volume_variables}
        logger.debug(f"Committed {len(self._hints)} thermodynamic hints.")

    def clear(self) -> None:
        self._hints = {}


class ElementContext:
    """Local view on the unknowns of a set of degrees of freedom.

    Parameters:
        model: The model owning the configuration.
        problem: The problem providing parameters of the porous medium.
        primary_variables: ``shape=(num_dofs, num_pv)``

            Primary variables per degree of freedom. A list of such arrays can be
            given to provide values per time index.
        positions: ``default=None``

            ``shape=(num_dofs, dim)``

            Coordinates of the degrees of freedom. Zero if not given.
        hints: ``default=None``

            Cache containing thermodynamic hints.

    """

    def __init__(
        self,
        model: FlashModel,
        problem: MultiPhaseBaseProblem,
        primary_variables: np.ndarray | list[np.ndarray],
        positions: Optional[np.ndarray] = None,
        hints: Optional[ThermodynamicHintCache] = None,
    ) -> None:
        if not isinstance(primary_variables, list):
            primary_variables = [primary_variables]

        self.model: FlashModel = model
        self.problem: MultiPhaseBaseProblem = problem

        self._primary_variables: list[np.ndarray] = [
            np.atleast_2d(np.array(pv, dtype=float)) for pv in primary_variables
        ]
        num_dofs = self._primary_variables[0].shape[0]
        if positions is None:
            positions = np.zeros((num_dofs, problem.dim))
        self._positions: np.ndarray = np.atleast_2d(np.array(positions, dtype=float))
        self.hints: Optional[ThermodynamicHintCache] = hints

    @property
    def num_time_levels(self) -> int:
        return len(self._primary_variables)

    def num_dofs(self, time_idx: int = 0) -> int:
        return self._primary_variables[time_idx].shape[0]

    def primary_vars(self, dof_idx: int, time_idx: int = 0) -> np.ndarray:
        """Returns a copy of the primary variables of a degree of freedom."""
        return self._primary_variables[time_idx][dof_idx].copy()

    def position(self, dof_idx: int, time_idx: int = 0) -> np.ndarray:
        return self._positions[dof_idx].copy()

    def thermodynamic_hint(
        self, dof_idx: int, time_idx: int = 0
    ) -> Optional[FlashVolumeVariables]:
        """Returns the previously converged volume variables of the degree of
        freedom, if hints are enabled and available."""
        if self.hints is None or not self.model.enable_thermodynamic_hints:
            return None
        return self.hints.get(dof_idx, time_idx)

    def perturbed(
        self, dof_idx: int, pv_idx: int, delta: float, time_idx: int = 0
    ) -> ElementContext:
        """Returns a context sharing problem, model and hints, where one primary
        variable of one degree of freedom is shifted by ``delta``."""
        primary_variables = [pv.copy() for pv in self._primary_variables]
        primary_variables[time_idx][dof_idx, pv_idx] += delta
        return ElementContext(
            self.model, self.problem, primary_variables, self._positions, self.hints
        )
