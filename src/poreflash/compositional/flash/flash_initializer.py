"""Module containing functionality to provide initial guesses for the local equilibrium
problem, when no previously converged state is available."""

from __future__ import annotations

import logging
from typing import Callable

import numba
import numpy as np
from scipy.optimize import brentq

from .._core import NUMBA_CACHE, NUMBA_FAST_MATH, P_STANDARD
from ..fluid_system import FluidSystem, ParameterCache
from ..states import FluidState
from ..utils import CompositionalModellingError
from .abstract_flash import check_total_concentrations

__all__ = [
    "rachford_rice_residual",
    "rachford_rice_gas_fraction",
    "FlashInitializer",
]

logger = logging.getLogger(__name__)


# region Rachford-Rice equation


@numba.njit(
    numba.f8(numba.f8[:], numba.f8[:], numba.f8),
    fastmath=NUMBA_FAST_MATH,
    cache=NUMBA_CACHE,
)
def rachford_rice_residual(z: np.ndarray, K: np.ndarray, beta: float) -> float:
    r"""Evaluates the binary-phase Rachford-Rice equation

    .. math::

        g(\beta) = \sum_i \frac{z_i (K_i - 1)}{1 + \beta (K_i - 1)}.

    Parameters:
        z: ``shape=(num_components,)``

            Vector of feed fractions.
        K: ``shape=(num_components,)``

            K-values of components between gas and reference phase.
        beta: Gas fraction.

    """
    return np.sum(z * (K - 1.0) / (1.0 + beta * (K - 1.0)))


@numba.njit(
    numba.f8(numba.f8[:], numba.f8[:]),
    fastmath=NUMBA_FAST_MATH,
    cache=NUMBA_CACHE,
)
def rachford_rice_gas_fraction(z: np.ndarray, K: np.ndarray) -> float:
    """Solves the Rachford-Rice equation for the gas fraction by bisection.

    The residual is strictly decreasing in the gas fraction. If it has no root in
    ``[0, 1]``, the feed lies outside the two-phase region and the bound of the
    dominant phase is returned (0 for liquid, 1 for gas).

    NJIT-ed function with signature ``(float64[:], float64[:]) -> float64``.

    Parameters:
        z: ``shape=(num_components,)``

            Vector of feed fractions.
        K: ``shape=(num_components,)``

            K-values of components between gas and reference phase.

    Returns:
        The gas fraction in ``[0, 1]``.

    """
    if rachford_rice_residual(z, K, 0.0) <= 0.0:
        return 0.0
    if rachford_rice_residual(z, K, 1.0) >= 0.0:
        return 1.0

    low = 0.0
    high = 1.0
    for _ in range(200):
        mid = 0.5 * (low + high)
        if rachford_rice_residual(z, K, mid) > 0.0:
            low = mid
        else:
            high = mid
        if high - low < 1e-14:
            break
    return 0.5 * (low + high)


# endregion


class FlashInitializer:
    """Deterministic initial guess for a two-phase flash from total molar densities.

    1. Overall fractions ``z = c / sum(c)``.
    2. For a trial pressure, K-values ``phi_L / phi_G`` from the fluid system, the gas
       fraction from the Rachford-Rice equation (clipped to ``[0, 1]``) and phase
       compositions ``x_L = z / (1 + beta (K - 1))``, ``x_G = K x_L``.
    3. The pressure is chosen such that the phase volumes fill exactly the unit pore
       volume, using Brent's method on ``log(p)``.
    4. Saturations follow from the phase volumes.

    Capillary pressure is ignored. The temperature stored in the fluid state is used,
    but not modified.

    Parameters:
        fluid_system: A fluid system with a reference phase and a gas phase.
        params: ``default=None``

            Supported parameters:

            - ``'initial_pressure'``: Starting point of the bracketing procedure
              (default :data:`~poreflash.compositional._core.P_STANDARD`).
            - ``'max_bracketing_steps'``: Maximal number of doublings or halvings of
              the pressure when bracketing the root (default 60).

    Raises:
        NotImplementedError: If the fluid system does not have exactly 2 phases.

    """

    def __init__(self, fluid_system: FluidSystem, params: dict | None = None) -> None:
        if params is None:
            params = {}
        if fluid_system.num_phases != 2:
            raise NotImplementedError(
                "Initial guesses only implemented for 2-phase fluid systems."
            )

        self.fluid_system: FluidSystem = fluid_system

        self.initial_pressure: float = float(params.get("initial_pressure", P_STANDARD))
        self.max_bracketing_steps: int = int(params.get("max_bracketing_steps", 60))

    def phase_split(
        self, p: float, T: float, z: np.ndarray, param_cache: ParameterCache
    ) -> tuple[float, np.ndarray, np.ndarray]:
        """Computes the gas fraction and phase compositions at given pressure and
        temperature.

        Returns:
            A 3-tuple containing the gas fraction and the mole fractions in the
            reference and in the gas phase.

        """
        K = self.fluid_system.equilibrium_ratios(p, T, z, param_cache)
        beta = rachford_rice_gas_fraction(z, K)
        x_ref = z / (1.0 + beta * (K - 1.0))
        x_gas = K * x_ref
        return beta, x_ref, x_gas

    def _volume_residual(
        self, c_sum: float, z: np.ndarray, T: float, param_cache: ParameterCache
    ) -> Callable[[float], float]:
        """Returns the residual of the volume constraint as a function of ``log(p)``."""
        fs = self.fluid_system
        ref = fs.reference_phase_idx
        gas = fs.gas_phase_idx

        def residual(log_p: float) -> float:
            p = float(np.exp(log_p))
            beta, x_ref, x_gas = self.phase_split(p, T, z, param_cache)
            rho_ref = fs.molar_density(ref, p, T, x_ref, param_cache)
            rho_gas = fs.molar_density(gas, p, T, x_gas, param_cache)
            return c_sum * ((1.0 - beta) / rho_ref + beta / rho_gas) - 1.0

        return residual

    def _find_pressure(self, residual: Callable[[float], float]) -> float:
        """Brackets the root of the volume residual starting at the initial pressure
        and refines it with Brent's method."""
        a = np.log(self.initial_pressure)
        fa = residual(a)
        if fa == 0.0:
            return float(np.exp(a))

        # Too much volume at the current pressure means the pressure must increase.
        step = np.log(2.0) if fa > 0.0 else -np.log(2.0)
        for _ in range(self.max_bracketing_steps):
            b = a + step
            fb = residual(b)
            if fa * fb <= 0.0:
                low, high = min(a, b), max(a, b)
                return float(np.exp(brentq(residual, low, high, xtol=1e-12)))
            a, fa = b, fb

        logger.warning(
            "Could not bracket the pressure of the initial flash guess."
            + f" Using {self.initial_pressure} Pa."
        )
        return self.initial_pressure

    def guess_initial(
        self, fluid_state: FluidState, param_cache: ParameterCache, c_total: np.ndarray
    ) -> None:
        """Fills ``fluid_state`` with pressures, saturations, compositions, densities
        and fugacity coefficients of the initial guess.

        Raises:
            FlashConvergenceFailure: If ``c_total`` is invalid.
            CompositionalModellingError: If the temperature in ``fluid_state`` is not
                positive.

        """
        fs = self.fluid_system
        c = check_total_concentrations(c_total, fs.num_components)

        T = float(fluid_state.temperature[fs.reference_phase_idx])
        if not T > 0.0:
            raise CompositionalModellingError(
                "Temperature must be set before computing an initial flash guess."
            )

        c_sum = float(c.sum())
        z = c / c_sum

        p = self._find_pressure(self._volume_residual(c_sum, z, T, param_cache))
        beta, x_ref, x_gas = self.phase_split(p, T, z, param_cache)

        ref = fs.reference_phase_idx
        gas = fs.gas_phase_idx
        rho_gas = fs.molar_density(gas, p, T, x_gas, param_cache)
        s_gas = float(np.clip(c_sum * beta / rho_gas, 0.0, 1.0))

        fluid_state.pressure = np.full(fs.num_phases, p)
        fluid_state.saturation = np.zeros(fs.num_phases)
        fluid_state.saturation[gas] = s_gas
        fluid_state.saturation[ref] = 1.0 - s_gas
        fluid_state.mole_fraction = np.zeros((fs.num_phases, fs.num_components))
        fluid_state.mole_fraction[ref] = x_ref
        fluid_state.mole_fraction[gas] = x_gas
        fs.update_fluid_state(fluid_state, param_cache)

        logger.debug(
            f"Initial flash guess: p = {p:.6e}, gas fraction = {beta:.6e},"
            + f" gas saturation = {s_gas:.6e}"
        )
