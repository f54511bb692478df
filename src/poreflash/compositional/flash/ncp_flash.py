"""Module containing a local flash based on a nonlinear complementarity problem (NCP),
solved with a damped Newton method.

The unknowns of the local problem are

- the pressure of the reference phase ``p_0``,
- the saturations of all but the reference phase ``S_1, ..., S_{M-1}``,
- the extended mole fractions ``x_ij`` of all components in all phases.

The equations, all measured in ``[mol / m^3]``, are

- the mass balance per component ``sum_j S_j rho_j x_ij - c_i``,
- iso-fugacity of each component between each non-reference phase and the reference
  phase ``(f_ij - f_i0) / (R T)``,
- a complementarity condition per phase ``C * min(S_j, 1 - sum_i x_ij)``, with
  ``C = sum_i c_i``.

The condition ``min(S_j, 1 - sum_i x_ij) = 0`` states that either a phase is absent,
or its fractions sum up to 1. Phase pressures are related by the capillary pressures of
the material law ``p_j = p_0 + pc_j - pc_0``.

The Jacobian is computed using forward-mode AD.

"""

from __future__ import annotations

import logging
from typing import Any, Optional

import numpy as np

from poreflash.ad import AdArray, concatenate, initAdArrays, minimum, value

from .._core import P_STANDARD, R_IDEAL_MOL
from ..fluid_system import FluidSystem, ParameterCache
from ..states import FluidState
from ..utils import CompositionalModellingError, FlashConvergenceFailure, safe_sum
from .abstract_flash import AbstractFlash, FlashResults, check_total_concentrations
from .flash_initializer import FlashInitializer

__all__ = ["NcpFlash"]

logger = logging.getLogger(__name__)


class NcpFlash(AbstractFlash):
    """Local flash at fixed total molar densities and temperature.

    The temperature is taken from the given fluid state and is not modified.

    In addition to the solver parameters of :class:`AbstractFlash`, the following
    entries of ``solver_params`` control the damping of Newton updates:

    - ``'max_pressure_change'``: Maximal change of the pressure per iteration,
      relative to ``max(|p|, P_STANDARD)`` (default 0.3).
    - ``'max_saturation_change'``: Maximal absolute change of saturations (default
      0.2).
    - ``'max_fraction_change'``: Maximal absolute change of mole fractions (default
      0.15).

    If an update exceeds any of the limits, the whole update is scaled down such that
    it respects all of them.

    Parameters for the initial guess can be passed with the key
    ``'initializer_params'``, see :class:`FlashInitializer`.

    """

    def __init__(self, fluid_system: FluidSystem, params: Optional[dict] = None) -> None:
        super().__init__(fluid_system, params)

        self.solver_params.setdefault("max_pressure_change", 0.3)
        self.solver_params.setdefault("max_saturation_change", 0.2)
        self.solver_params.setdefault("max_fraction_change", 0.15)

        self.initializer: FlashInitializer = FlashInitializer(
            fluid_system, self.params.get("initializer_params", None)
        )
        """Provides initial guesses if no previous state is available."""

    @property
    def num_unknowns(self) -> int:
        """``num_phases * (1 + num_components)``."""
        return self.num_phases * (1 + self.num_components)

    def fraction_index(self, phase_idx: int, comp_idx: int) -> int:
        """Index of the mole fraction of a component in a phase in the vector of
        unknowns."""
        return self.num_phases + phase_idx * self.num_components + comp_idx

    def guess_initial(
        self,
        fluid_state: FluidState,
        param_cache: ParameterCache,
        c_total: np.ndarray,
        material_law: Any = None,
        material_params: Any = None,
    ) -> None:
        """Computes a guess with :class:`FlashInitializer`.

        If a material law is given, the phase pressures of the guess are shifted by
        the capillary pressures at the guessed saturations. The pressure of the gas
        phase is kept if the gas is present, otherwise the pressure of the reference
        phase.

        """
        self.initializer.guess_initial(fluid_state, param_cache, c_total)
        if material_law is None:
            return

        fs = self.fluid_system
        pc = [
            float(np.ravel(value(pc_j))[0])
            for pc_j in material_law.capillary_pressures(
                material_params, list(fluid_state.saturation)
            )
        ]
        anchor = fs.reference_phase_idx
        try:
            gas = fs.gas_phase_idx
        except CompositionalModellingError:
            gas = None
        if gas is not None and fluid_state.saturation[gas] > 0.0:
            anchor = gas

        p_anchor = float(fluid_state.pressure[anchor])
        fluid_state.pressure = np.array(
            [p_anchor + (pc[j] - pc[anchor]) for j in range(fs.num_phases)]
        )
        fs.update_fluid_state(fluid_state, param_cache)

    def _pack(self, fluid_state: FluidState) -> np.ndarray:
        """Assembles the vector of unknowns from a fluid state."""
        M = self.num_phases
        X = np.zeros(self.num_unknowns)
        X[0] = fluid_state.pressure[0]
        X[1:M] = fluid_state.saturation[1:M]
        X[M:] = np.asarray(fluid_state.mole_fraction, dtype=float).ravel()
        return X

    def _evaluate(
        self,
        X: np.ndarray,
        T: float,
        c: np.ndarray,
        param_cache: ParameterCache,
        material_law: Any,
        material_params: Any,
    ) -> tuple[AdArray, dict[str, np.ndarray]]:
        """Evaluates the residual and its Jacobian at ``X``.

        Returns:
            The residual as an AD array and a dictionary with the values of phase
            pressures, saturations, mole fractions, molar densities and fugacity
            coefficients at ``X``.

        """
        fs = self.fluid_system
        M = self.num_phases
        N = self.num_components
        c_sum = float(c.sum())
        RT = R_IDEAL_MOL * T

        variables = initAdArrays([np.array([v]) for v in X])
        p_ref = variables[0]
        saturations = [1.0 - safe_sum(variables[1:M])] + variables[1:M]
        fractions = [
            [variables[self.fraction_index(j, i)] for i in range(N)] for j in range(M)
        ]

        pc = material_law.capillary_pressures(material_params, saturations)
        pressures = [p_ref + pc[j] - pc[0] for j in range(M)]

        rho = []
        phi = []
        for j in range(M):
            rho.append(fs.molar_density(j, pressures[j], T, fractions[j], param_cache))
            phi.append(
                [
                    fs.fugacity_coefficient(
                        j, i, pressures[j], T, fractions[j], param_cache
                    )
                    for i in range(N)
                ]
            )

        equations = []
        for i in range(N):
            equations.append(
                safe_sum([saturations[j] * rho[j] * fractions[j][i] for j in range(M)])
                - c[i]
            )
        for j in range(1, M):
            for i in range(N):
                f_ij = phi[j][i] * fractions[j][i] * pressures[j]
                f_i0 = phi[0][i] * fractions[0][i] * pressures[0]
                equations.append((f_ij - f_i0) / RT)
        for j in range(M):
            equations.append(
                c_sum * minimum(saturations[j], 1.0 - safe_sum(fractions[j]))
            )

        values = {
            "pressure": np.array([float(np.ravel(value(p))[0]) for p in pressures]),
            "saturation": np.array(
                [float(np.ravel(value(s))[0]) for s in saturations]
            ),
            "mole_fraction": X[M:].reshape((M, N)).copy(),
            "molar_density": np.array([float(np.ravel(value(r))[0]) for r in rho]),
            "fugacity_coefficient": np.array(
                [[float(np.ravel(value(phi_ij))[0]) for phi_ij in phi_j] for phi_j in phi]
            ),
        }
        return concatenate(equations), values

    def _write(self, fluid_state: FluidState, values: dict[str, np.ndarray]) -> None:
        """Writes evaluated values into a fluid state, including mass densities."""
        fluid_state.pressure = values["pressure"].copy()
        fluid_state.saturation = values["saturation"].copy()
        fluid_state.mole_fraction = values["mole_fraction"].copy()
        fluid_state.molar_density = values["molar_density"].copy()
        fluid_state.fugacity_coefficient = values["fugacity_coefficient"].copy()
        fluid_state.density = np.array(
            [
                fluid_state.molar_density[j] * fluid_state.average_molar_mass(j)
                for j in range(self.num_phases)
            ]
        )

    def _last_iterate(
        self, fluid_state: FluidState, values: dict[str, np.ndarray]
    ) -> FluidState:
        last = fluid_state.copy()
        self._write(last, values)
        return last

    def _damp(self, X: np.ndarray, dX: np.ndarray) -> np.ndarray:
        """Scales an update such that it respects the maximal changes per type of
        unknown."""
        M = self.num_phases
        limits = np.empty_like(dX)
        p_scale = max(abs(float(X[0])), P_STANDARD)
        limits[0] = self.solver_params["max_pressure_change"] * p_scale
        limits[1:M] = self.solver_params["max_saturation_change"]
        limits[M:] = self.solver_params["max_fraction_change"]

        abs_dX = np.abs(dX)
        exceeding = abs_dX > limits
        if np.any(exceeding):
            dX = dX * float(np.min(limits[exceeding] / abs_dX[exceeding]))
        return dX

    def solve(
        self,
        fluid_state: FluidState,
        param_cache: ParameterCache,
        material_law: Any,
        material_params: Any,
        c_total: np.ndarray,
        tolerance: float,
    ) -> FlashResults:
        c = check_total_concentrations(c_total, self.num_components)
        tol = self.resolve_tolerance(tolerance)

        T = float(fluid_state.temperature[0])
        if not T > 0.0:
            raise CompositionalModellingError(
                "Temperature must be set before solving the flash."
            )

        X = self._pack(fluid_state)
        if not np.all(np.isfinite(X)):
            raise FlashConvergenceFailure(
                "Non-finite initial guess for the flash.", last_iterate=fluid_state.copy()
            )

        num_iter = 0
        while True:
            F, values = self._evaluate(
                X, T, c, param_cache, material_law, material_params
            )
            res = F.val
            res_norm = float(np.max(np.abs(res)))

            if not np.isfinite(res_norm):
                raise FlashConvergenceFailure(
                    f"Non-finite flash residual after {num_iter} iterations.",
                    last_iterate=self._last_iterate(fluid_state, values),
                    residual_norm=res_norm,
                    num_iter=num_iter,
                )

            if res_norm < tol:
                self._write(fluid_state, values)
                logger.debug(
                    f"Flash converged after {num_iter} iterations:"
                    + f" residual norm {res_norm:.3e} < {tol:.3e}"
                )
                return FlashResults(num_iter=num_iter, residual_norm=res_norm)

            if num_iter >= self.max_iterations:
                raise FlashConvergenceFailure(
                    f"Flash did not converge within {self.max_iterations} iterations:"
                    + f" residual norm {res_norm:.3e} >= {tol:.3e}",
                    last_iterate=self._last_iterate(fluid_state, values),
                    residual_norm=res_norm,
                    num_iter=num_iter,
                )

            try:
                dX = np.linalg.solve(F.full_jac(), -res)
            except np.linalg.LinAlgError as err:
                raise FlashConvergenceFailure(
                    f"Singular flash Jacobian after {num_iter} iterations.",
                    last_iterate=self._last_iterate(fluid_state, values),
                    residual_norm=res_norm,
                    num_iter=num_iter,
                ) from err

            if not np.all(np.isfinite(dX)):
                raise FlashConvergenceFailure(
                    f"Non-finite flash update after {num_iter} iterations.",
                    last_iterate=self._last_iterate(fluid_state, values),
                    residual_norm=res_norm,
                    num_iter=num_iter,
                )

            X = X + self._damp(X, dX)
            num_iter += 1
