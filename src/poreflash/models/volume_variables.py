"""Volume variables: the local closure relations evaluated per degree of freedom.

The flash-based volume variables compute the equilibrium state of the fluid from the
total molar densities of the components, which are the primary variables of the
compositional model.

"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import numpy as np

from poreflash.compositional.flash import FlashResults, flash_tolerance
from poreflash.compositional.fluid_system import ParameterCache
from poreflash.compositional.states import FluidState

if TYPE_CHECKING:
    from .element_context import ElementContext
    from .flash_model import FlashModel

__all__ = ["DiscreteVolumeVariables", "FlashVolumeVariables"]

logger = logging.getLogger(__name__)


class DiscreteVolumeVariables:
    """Bookkeeping common to all volume variables of a discretization."""

    def __init__(self) -> None:
        self.dof_idx: int = -1
        """Index of the degree of freedom of the last update."""

        self.time_idx: int = -1
        """Time index of the last update."""

        self.extrusion_factor: float = 1.0
        """Extrusion factor given by the problem."""

    def update(self, context: ElementContext, dof_idx: int, time_idx: int) -> None:
        self.dof_idx = dof_idx
        self.time_idx = time_idx
        self.extrusion_factor = context.problem.extrusion_factor(
            context, dof_idx, time_idx
        )


class FlashVolumeVariables(DiscreteVolumeVariables):
    """Volume variables of the flash-based compositional model.

    An update performs the following steps:

    1. Temperature of the fluid from the energy module.
    2. Total molar densities ``c_total`` from the primary variables, starting at the
       index ``c_tot0_idx``.
    3. The flash tolerance, as requested by the model or derived from the perturbation
       of the linearizer (see
       :func:`~poreflash.compositional.flash.abstract_flash.flash_tolerance`).
    4. Material law parameters from the problem.
    5. The initial guess: the fluid state of a thermodynamic hint with the current
       temperature, or a guess computed by the flash with the capillary pressures of
       the material law.
    6. The flash.
    7. Generic bookkeeping of :class:`DiscreteVolumeVariables`.
    8. Phase viscosities.
    9. Relative permeabilities.
    10. Porosity and intrinsic permeability from the problem.
    11. Velocity, energy and diffusion modules.

    A :class:`~poreflash.compositional.utils.FlashConvergenceFailure` raised by the
    flash is not handled. The instance keeps the values of its last successful update
    in that case.

    Parameters:
        model: The model providing fluid system, material law, flash and extension
            modules.

    """

    def __init__(self, model: FlashModel) -> None:
        super().__init__()

        self.model: FlashModel = model

        self.fluid_state: FluidState = model.fluid_system.new_fluid_state()
        """The converged fluid state."""

        self.relative_permeability: np.ndarray = np.zeros(model.fluid_system.num_phases)
        """Relative permeability per phase."""

        self.porosity: float = 0.0
        self.intrinsic_permeability: np.ndarray = np.zeros((0, 0))

        self.flash_results: Optional[FlashResults] = None
        """Convergence information of the last flash."""

        for module in model.extension_modules:
            module.initialize(self)

    @property
    def fluid_system(self):
        return self.model.fluid_system

    def mobility(self, phase_idx: int) -> float:
        """Relative permeability divided by viscosity of a phase."""
        return (
            self.relative_permeability[phase_idx]
            / self.fluid_state.viscosity[phase_idx]
        )

    def update(self, context: ElementContext, dof_idx: int, time_idx: int) -> None:
        model = self.model
        fluid_system = model.fluid_system
        problem = context.problem

        fluid_state = fluid_system.new_fluid_state()
        model.energy_module.update_temperatures(fluid_state, context, dof_idx, time_idx)

        c0 = model.indices.c_tot0_idx
        primary_vars = context.primary_vars(dof_idx, time_idx)
        c_total = primary_vars[c0 : c0 + fluid_system.num_components]

        tolerance = flash_tolerance(model.flash_tolerance, model.linearizer.base_epsilon)

        material_params = problem.material_law_params(context, dof_idx, time_idx)
        param_cache = ParameterCache()
        hint = context.thermodynamic_hint(dof_idx, time_idx)
        if hint is not None:
            T = float(fluid_state.temperature[0])
            fluid_state.assign(hint.fluid_state)
            fluid_state.set_temperature(T)
        else:
            model.flash.guess_initial(
                fluid_state, param_cache, c_total, model.material_law, material_params
            )

        self.flash_results = model.flash.solve(
            fluid_state,
            param_cache,
            model.material_law,
            material_params,
            c_total,
            tolerance,
        )
        super().update(context, dof_idx, time_idx)

        for j in range(fluid_system.num_phases):
            fluid_state.viscosity[j] = fluid_system.viscosity(fluid_state, param_cache, j)

        self.fluid_state = fluid_state
        self.relative_permeability = model.material_law.relative_permeabilities(
            material_params, fluid_state
        )

        self.porosity = problem.porosity(context, dof_idx, time_idx)
        self.intrinsic_permeability = np.asarray(
            problem.intrinsic_permeability(context, dof_idx, time_idx), dtype=float
        )

        model.velocity_module.update(self, param_cache, context, dof_idx, time_idx)
        model.energy_module.update(self, param_cache, context, dof_idx, time_idx)
        model.diffusion_module.update(self, param_cache, context, dof_idx, time_idx)
