"""Module containing an abstraction layer for the local flash procedure, the
adaptive tolerance rule and the validation of flash input."""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

import numpy as np

import poreflash as pf

from .._core import MOLAR_MASS_WATER_REF
from ..fluid_system import FluidSystem, ParameterCache
from ..states import FluidState
from ..utils import CompositionalModellingError, FlashConvergenceFailure

if TYPE_CHECKING:
    from poreflash.params.material_laws import MaterialLaw

__all__ = [
    "FlashResults",
    "flash_tolerance",
    "check_total_concentrations",
    "AbstractFlash",
]

logger = logging.getLogger(__name__)


@dataclass
class FlashResults:
    """Data class for storing information about the convergence of a local flash."""

    num_iter: int = 0
    """Number of performed iterations. Zero if the initial guess already satisfied the
    tolerance."""

    residual_norm: float = np.nan
    """Maximum norm of the residual at the returned state ``[mol / m^3]``."""


def flash_tolerance(requested: float, outer_epsilon: float) -> float:
    """Resolves the tolerance of the local flash.

    A positive ``requested`` value is used as is. Otherwise the tolerance is coupled
    to the perturbation of the outer Newton scheme, such that the flash is solved
    tighter than the step used for numerical derivatives:

    .. math::

        \\varepsilon_{flash} = \\frac{\\varepsilon_{outer}}{100 M_{ref}},

    with :math:`M_{ref}` being
    :data:`~poreflash.compositional._core.MOLAR_MASS_WATER_REF`.

    Parameters:
        requested: Tolerance requested by the user. Non-positive values indicate that
            none was requested.
        outer_epsilon: Perturbation magnitude of the outer linearization.

    Returns:
        The tolerance ``[mol / m^3]``.

    """
    if requested > 0.0:
        return float(requested)
    return float(outer_epsilon) / (100.0 * MOLAR_MASS_WATER_REF)


def check_total_concentrations(c_total: Any, num_components: int) -> np.ndarray:
    """Validates the total molar densities of components given to a flash.

    Parameters:
        c_total: ``shape=(num_components,)``

            Total molar densities ``[mol / m^3]``.
        num_components: Number of components in the fluid system.

    Raises:
        FlashConvergenceFailure: If the input has the wrong size, contains
            non-finite or negative values, or if all values are zero.

    Returns:
        ``c_total`` as a float array.

    """
    c = np.asarray(c_total, dtype=float).ravel()
    if c.shape[0] != num_components:
        raise FlashConvergenceFailure(
            f"Expecting {num_components} total molar densities, {c.shape[0]} given."
        )
    if not np.all(np.isfinite(c)):
        raise FlashConvergenceFailure(f"Non-finite total molar densities {c}.")
    if np.any(c < 0.0):
        raise FlashConvergenceFailure(f"Negative total molar densities {c}.")
    if not np.any(c > 0.0):
        raise FlashConvergenceFailure("All total molar densities are zero.")
    return c


class AbstractFlash(abc.ABC):
    """Abstract base class for local flash algorithms operating on one control
    volume.

    Parameters:
        fluid_system: The fluid system providing densities and fugacities.
        params: ``default=None``

            Parameters for the flash. Solver parameters can be set using the key
            ``'solver_params'`` with a dictionary containing

            - ``'max_iterations'``: Maximal number of iterations (default 100).
            - ``'tolerance'``: Default tolerance used when ``solve`` is called without
              a positive tolerance (default 1e-8).

            The section ``[flash]`` of the package configuration can override both
            defaults.

    Raises:
        CompositionalModellingError: If the fluid system has less than 2 phases or
            less than 1 component.

    """

    def __init__(self, fluid_system: FluidSystem, params: Optional[dict] = None) -> None:
        super().__init__()

        if params is None:
            params = {}

        if fluid_system.num_phases < 2:
            raise CompositionalModellingError(
                "Flash requires at least 2 modelled phases."
            )
        if fluid_system.num_components < 1:
            raise CompositionalModellingError(
                "Flash requires at least 1 modelled component."
            )

        self.fluid_system: FluidSystem = fluid_system
        """The fluid system passed at instantiation."""

        self.params: dict = params
        """Flash parameters given at instantiation."""

        cfg = pf.config.get("flash", {})
        self.solver_params: dict[str, float] = {
            "tolerance": float(cfg.get("tolerance", 1e-8)),
            "max_iterations": float(cfg.get("max_iterations", 100)),
        }
        """A dictionary containing solver parameters.

        Note:
            Values are converted to floats, as in the configuration file.

        """
        self.solver_params.update(
            {k: float(v) for k, v in params.get(pf.SOLVER_PARAMS, {}).items()}
        )

    @property
    def num_phases(self) -> int:
        return self.fluid_system.num_phases

    @property
    def num_components(self) -> int:
        return self.fluid_system.num_components

    @property
    def max_iterations(self) -> int:
        return int(self.solver_params["max_iterations"])

    def resolve_tolerance(self, tolerance: float) -> float:
        """Returns ``tolerance`` if positive, the default tolerance otherwise."""
        if tolerance > 0.0:
            return float(tolerance)
        return float(self.solver_params["tolerance"])

    @abc.abstractmethod
    def guess_initial(
        self,
        fluid_state: FluidState,
        param_cache: ParameterCache,
        c_total: np.ndarray,
        material_law: Optional[MaterialLaw] = None,
        material_params: Any = None,
    ) -> None:
        """Fills ``fluid_state`` with an initial guess for the flash, computed from
        the total molar densities and the temperature stored in the state.

        If a material law and its parameters are given, the guess accounts for the
        capillary pressures between the phases.

        Raises:
            FlashConvergenceFailure: If ``c_total`` is invalid.

        """

    @abc.abstractmethod
    def solve(
        self,
        fluid_state: FluidState,
        param_cache: ParameterCache,
        material_law: MaterialLaw,
        material_params: Any,
        c_total: np.ndarray,
        tolerance: float,
    ) -> FlashResults:
        """Solves the equilibrium problem and writes the result into ``fluid_state``.

        Viscosities are not set.

        Parameters:
            fluid_state: Initial guess, modified in place.
            param_cache: Parameter cache of the current update.
            material_law: Material law providing capillary pressures.
            material_params: Parameters of the material law.
            c_total: ``shape=(num_components,)``

                Total molar densities of components ``[mol / m^3]``.
            tolerance: Tolerance for the max-norm of the residual ``[mol / m^3]``.

        Raises:
            FlashConvergenceFailure: If the input is invalid or the flash did not
                converge. The state passed as ``fluid_state`` is in that case not
                modified.

        Returns:
            Convergence information.

        """
