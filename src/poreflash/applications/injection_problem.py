"""Problem setup for gas injection into a water-saturated aquifer below a layer of low
permeability.

The domain is vertical, with the second coordinate pointing upwards. Initially, the
pore space is filled with water at hydrostatic pressure, containing a small amount of
dissolved gas.

"""

from __future__ import annotations

from typing import Optional

import numpy as np

import poreflash as pf
from poreflash.compositional.fluid_system import ParameterCache, WaterGasFluidSystem
from poreflash.models.problem import MultiPhaseBaseProblem
from poreflash.params.heat_conduction import SomertonParams
from poreflash.params.material_laws import BrooksCoreyParams

__all__ = ["InjectionProblem"]


class InjectionProblem(MultiPhaseBaseProblem):
    """Injection problem for the water-gas fluid system.

    Parameters:
        fluid_system: The fluid system, used to compute initial total molar
            densities.
        params: ``default=None``

            Supported parameters in addition to those of the base class:

            - ``'depth_bor'``: Depth of the bottom of the reservoir, i.e. the vertical
              position at which the pressure is at its reference value
              ``1e5 Pa`` (default 1000).
            - ``'layer_bottom'``: Vertical position of the bottom of the layer of low
              permeability (default 22).
            - ``'temperature'``: Temperature of the reservoir (default 293.15).
            - ``'initial_gas_mass_fraction'``: Mass fraction of gas dissolved in the
              water (default 1e-6).

    """

    def __init__(
        self, fluid_system: WaterGasFluidSystem, params: Optional[dict] = None
    ) -> None:
        super().__init__(params)

        self.fluid_system: WaterGasFluidSystem = fluid_system

        self.depth_bor: float = float(self.params.get("depth_bor", 1000.0))
        self.layer_bottom: float = float(self.params.get("layer_bottom", 22.0))
        self._temperature: float = float(self.params.get("temperature", 293.15))
        self.initial_gas_mass_fraction: float = float(
            self.params.get("initial_gas_mass_fraction", 1e-6)
        )

        self._fine_K: np.ndarray = self.to_dim_matrix(1e-12)
        self._coarse_K: np.ndarray = self.to_dim_matrix(5e-14)
        self._material_params = BrooksCoreyParams(
            entry_pressure=1e4,
            lambda_=2.0,
            residual_saturation_wetting=0.2,
            residual_saturation_nonwetting=0.05,
        )
        self._heat_conduction_params = SomertonParams.from_porosity(0.3)

    def is_fine_material(self, position: np.ndarray) -> bool:
        return position[1] < self.layer_bottom

    def porosity(self, context, dof_idx, time_idx):
        return 0.3

    def intrinsic_permeability(self, context, dof_idx, time_idx):
        if self.is_fine_material(context.position(dof_idx, time_idx)):
            return self._fine_K.copy()
        return self._coarse_K.copy()

    def material_law_params(self, context, dof_idx, time_idx):
        return self._material_params

    def temperature(self, context, dof_idx, time_idx):
        return self._temperature

    def heat_capacity_solid(self, context, dof_idx, time_idx):
        # granite: specific heat capacity times density
        return 790.0 * 2700.0

    def heat_conduction_params(self, context, dof_idx, time_idx):
        return self._heat_conduction_params

    def hydrostatic_pressure(self, position: np.ndarray) -> float:
        """Pressure of a water column with density 1000 above the position."""
        return 1e5 + 1000.0 * pf.GRAVITY_ACCELERATION * (self.depth_bor - position[1])

    def initial_primary_variables(self, positions: np.ndarray) -> np.ndarray:
        """Total molar densities of a pore space filled with water at hydrostatic
        pressure, with a small mass fraction of dissolved gas.

        Parameters:
            positions: ``shape=(num_dofs, dim)``

                Coordinates of the degrees of freedom.

        Returns:
            ``shape=(num_dofs, num_components)``

        """
        fs = self.fluid_system
        M = fs.molar_masses
        w_gas = self.initial_gas_mass_fraction
        w = np.zeros(fs.num_components)
        w[fs.H2O_IDX] = 1.0 - w_gas
        w[fs.AIR_IDX] = w_gas
        x = (w / M) / np.sum(w / M)

        cache = ParameterCache()
        positions = np.atleast_2d(positions)
        primary_vars = np.zeros((positions.shape[0], fs.num_components))
        for k, position in enumerate(positions):
            p = self.hydrostatic_pressure(position)
            rho = fs.molar_density(fs.LIQUID_IDX, p, self._temperature, x, cache)
            primary_vars[k] = rho * x
        return primary_vars

    def __repr__(self) -> str:
        return (
            f"InjectionProblem(depth_bor={self.depth_bor},"
            + f" layer_bottom={self.layer_bottom})"
        )
