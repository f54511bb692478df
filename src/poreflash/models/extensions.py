"""Extension modules adding derived quantities to the volume variables.

Each module is a strategy object selected once when the model is configured. Disabled
variants perform no computations and contribute no fields. Enabled variants write
their results as attributes of the volume variables, named by the module's
:attr:`ExtensionModule.fields`, such that neither the volume variables nor the output
need to know about their layout.

The modules are updated after the flash converged and relative permeabilities,
porosity and intrinsic permeability are available.

"""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, Any, Optional

import numpy as np

from poreflash.compositional.fluid_system import ParameterCache
from poreflash.compositional.states import FluidState
from poreflash.params.heat_conduction import Somerton

if TYPE_CHECKING:
    from .element_context import ElementContext
    from .volume_variables import FlashVolumeVariables

__all__ = [
    "ExtensionModule",
    "EnergyModule",
    "IsothermalEnergyModule",
    "ThermalEnergyModule",
    "DiffusionModule",
    "NoDiffusionModule",
    "MolecularDiffusionModule",
    "VelocityModule",
    "DarcyVelocityModule",
    "ForchheimerVelocityModule",
]

logger = logging.getLogger(__name__)


class ExtensionModule(abc.ABC):
    """Interface of extension modules."""

    enabled: bool = False
    """Flag indicating whether the module computes anything."""

    fields: tuple[str, ...] = ()
    """Names of the attributes the module writes into the volume variables."""

    def initialize(self, volume_variables: FlashVolumeVariables) -> None:
        """Declares the fields of this module on the volume variables."""
        for name in self.fields:
            setattr(volume_variables, name, None)

    @abc.abstractmethod
    def update(
        self,
        volume_variables: FlashVolumeVariables,
        param_cache: ParameterCache,
        context: ElementContext,
        dof_idx: int,
        time_idx: int,
    ) -> None:
        """Computes the fields of this module based on the converged fluid state of
        ``volume_variables``."""


# region Energy


class EnergyModule(ExtensionModule):
    """Energy modules additionally determine the temperature of the fluid before the
    flash is solved."""

    @abc.abstractmethod
    def update_temperatures(
        self,
        fluid_state: FluidState,
        context: ElementContext,
        dof_idx: int,
        time_idx: int,
    ) -> None:
        """Sets the temperature of all phases in ``fluid_state``."""


class IsothermalEnergyModule(EnergyModule):
    """Temperature given by the problem, no energy-related fields."""

    def update_temperatures(self, fluid_state, context, dof_idx, time_idx):
        T = context.problem.temperature(context, dof_idx, time_idx)
        fluid_state.set_temperature(T)

    def update(self, volume_variables, param_cache, context, dof_idx, time_idx):
        pass


class ThermalEnergyModule(EnergyModule):
    """Temperature as a primary variable, with phase enthalpies and internal energies,
    the heat capacity of the solid and the effective thermal conductivity.

    Parameters:
        temperature_idx: Index of the temperature in the primary variables.
        heat_conduction_law: ``default=None``

            Law computing the effective conductivity from the parameters given by the
            problem. Defaults to :class:`~poreflash.params.heat_conduction.Somerton`.

    """

    enabled = True
    fields = ("internal_energy", "heat_capacity_solid", "thermal_conductivity")

    def __init__(
        self, temperature_idx: int, heat_conduction_law: Optional[Any] = None
    ) -> None:
        self.temperature_idx: int = temperature_idx
        if heat_conduction_law is None:
            heat_conduction_law = Somerton()
        self.heat_conduction_law = heat_conduction_law

    def update_temperatures(self, fluid_state, context, dof_idx, time_idx):
        T = context.primary_vars(dof_idx, time_idx)[self.temperature_idx]
        fluid_state.set_temperature(T)

    def update(self, volume_variables, param_cache, context, dof_idx, time_idx):
        fs = volume_variables.fluid_system
        state = volume_variables.fluid_state
        problem = context.problem

        internal_energy = np.zeros(state.num_phases)
        for j in range(state.num_phases):
            h = fs.enthalpy(state, param_cache, j)
            state.enthalpy[j] = h
            internal_energy[j] = h - state.pressure[j] / state.density[j]

        volume_variables.internal_energy = internal_energy
        volume_variables.heat_capacity_solid = problem.heat_capacity_solid(
            context, dof_idx, time_idx
        )
        volume_variables.thermal_conductivity = (
            self.heat_conduction_law.thermal_conductivity(
                problem.heat_conduction_params(context, dof_idx, time_idx), state
            )
        )


# endregion

# region Diffusion


class DiffusionModule(ExtensionModule):
    """Base class of diffusion modules."""


class NoDiffusionModule(DiffusionModule):
    def update(self, volume_variables, param_cache, context, dof_idx, time_idx):
        pass


class MolecularDiffusionModule(DiffusionModule):
    """Molecular diffusion with the Millington-Quirk tortuosity
    ``tau_j = max(1e-4, phi S_j)^(7/3) / phi^2`` and effective coefficients
    ``D_eff_ij = phi S_j tau_j D_ij``.

    Fields are arrays with phases row-wise and components column-wise, the tortuosity
    is given per phase.

    """

    enabled = True
    fields = ("diffusion_coefficient", "tortuosity", "effective_diffusion_coefficient")

    MIN_WETTED_FRACTION: float = 1e-4

    def update(self, volume_variables, param_cache, context, dof_idx, time_idx):
        fs = volume_variables.fluid_system
        state = volume_variables.fluid_state
        phi = volume_variables.porosity

        D = np.zeros((state.num_phases, state.num_components))
        for j in range(state.num_phases):
            for i in range(state.num_components):
                D[j, i] = fs.diffusion_coefficient(state, param_cache, j, i)

        wetted = np.maximum(self.MIN_WETTED_FRACTION, phi * state.saturation)
        tau = wetted ** (7.0 / 3.0) / phi**2

        volume_variables.diffusion_coefficient = D
        volume_variables.tortuosity = tau
        volume_variables.effective_diffusion_coefficient = (
            (phi * state.saturation * tau)[:, np.newaxis] * D
        )


# endregion

# region Velocity


class VelocityModule(ExtensionModule):
    """Base class of velocity modules."""


class DarcyVelocityModule(VelocityModule):
    """Darcy's law requires no additional quantities per degree of freedom."""

    def update(self, volume_variables, param_cache, context, dof_idx, time_idx):
        pass


class ForchheimerVelocityModule(VelocityModule):
    """Forchheimer's law, requiring the Ergun coefficient and the square roots of the
    intrinsic permeability in the coordinate directions."""

    enabled = True
    fields = ("ergun_coefficient", "sqrt_intrinsic_permeability")

    def update(self, volume_variables, param_cache, context, dof_idx, time_idx):
        volume_variables.ergun_coefficient = context.problem.ergun_coefficient(
            context, dof_idx, time_idx
        )
        volume_variables.sqrt_intrinsic_permeability = np.sqrt(
            np.diag(volume_variables.intrinsic_permeability)
        )


# endregion
