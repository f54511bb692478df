"""Composition root of the flash-based compositional model.

The model resolves its configuration once at instantiation: the fluid system and
material law are injected, the flash, the linearizer and the extension modules are
selected by parameters.

"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import poreflash as pf
from poreflash.compositional.flash import NcpFlash
from poreflash.compositional.fluid_system import FluidSystem
from poreflash.params.material_laws import MaterialLaw

from .element_context import ElementContext, ThermodynamicHintCache
from .extensions import (
    DarcyVelocityModule,
    DiffusionModule,
    EnergyModule,
    ExtensionModule,
    ForchheimerVelocityModule,
    IsothermalEnergyModule,
    MolecularDiffusionModule,
    NoDiffusionModule,
    ThermalEnergyModule,
    VelocityModule,
)
from .linearizer import FiniteDifferenceLinearizer
from .volume_variables import FlashVolumeVariables

__all__ = ["FlashIndices", "FlashModel"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlashIndices:
    """Positions of primary variables of the flash-based model."""

    c_tot0_idx: int = 0
    """Index of the total molar density of the first component. The remaining
    components follow consecutively."""

    temperature_idx: Optional[int] = None
    """Index of the temperature, if the energy equation is enabled."""


class FlashModel:
    """Flash-based compositional model.

    Parameters:
        fluid_system: Fluid system.
        material_law: Material law for capillary pressures and relative
            permeabilities.
        params: ``default=None``

            Supported parameters:

            - ``'enable_energy'``: Temperature as primary variable (default False).
            - ``'enable_diffusion'``: Molecular diffusion (default False).
            - ``'velocity_module'``: ``'darcy'`` (default) or ``'forchheimer'``.
            - ``'flash_tolerance'``: Requested tolerance of the flash. Non-positive
              values couple the tolerance to ``'base_epsilon'``. Defaults to the
              ``tolerance`` of the ``[flash]`` section of the configuration, or 0.
            - ``'base_epsilon'``: Base perturbation of the linearizer (default 1e-8).
            - ``'enable_thermodynamic_hints'``: Use hints as initial guesses (default
              True).
            - ``'flash_params'``: Parameters passed to the flash.

    Raises:
        ValueError: If the velocity module is unknown.

    """

    def __init__(
        self,
        fluid_system: FluidSystem,
        material_law: MaterialLaw,
        params: Optional[dict] = None,
    ) -> None:
        if params is None:
            params = {}

        self.params: dict = params
        self.fluid_system: FluidSystem = fluid_system
        self.material_law: MaterialLaw = material_law

        enable_energy = bool(params.get("enable_energy", False))
        enable_diffusion = bool(params.get("enable_diffusion", False))
        velocity = str(params.get("velocity_module", "darcy")).lower()

        self.indices: FlashIndices = FlashIndices(
            c_tot0_idx=0,
            temperature_idx=fluid_system.num_components if enable_energy else None,
        )

        cfg = pf.config.get("flash", {})
        self.flash_tolerance: float = float(
            params.get("flash_tolerance", cfg.get("tolerance", 0.0))
        )
        """Requested tolerance of the flash."""

        self.enable_thermodynamic_hints: bool = bool(
            params.get("enable_thermodynamic_hints", True)
        )

        self.flash: NcpFlash = NcpFlash(fluid_system, params.get(pf.FLASH_PARAMS, None))
        self.linearizer: FiniteDifferenceLinearizer = FiniteDifferenceLinearizer(
            {"base_epsilon": params.get("base_epsilon", 1e-8)}
        )

        self.energy_module: EnergyModule
        if enable_energy:
            self.energy_module = ThermalEnergyModule(self.indices.temperature_idx)
        else:
            self.energy_module = IsothermalEnergyModule()

        self.diffusion_module: DiffusionModule
        if enable_diffusion:
            self.diffusion_module = MolecularDiffusionModule()
        else:
            self.diffusion_module = NoDiffusionModule()

        self.velocity_module: VelocityModule
        if velocity == "darcy":
            self.velocity_module = DarcyVelocityModule()
        elif velocity == "forchheimer":
            self.velocity_module = ForchheimerVelocityModule()
        else:
            raise ValueError(f"Unknown velocity module {velocity}.")

        logger.info(
            f"Configured flash model with {fluid_system.num_phases} phases and"
            + f" {fluid_system.num_components} components"
            + f" (energy: {enable_energy}, diffusion: {enable_diffusion},"
            + f" velocity: {velocity})."
        )

    @property
    def num_primary_variables(self) -> int:
        """Total molar densities of all components, and the temperature if enabled."""
        num_pv = self.fluid_system.num_components
        if self.indices.temperature_idx is not None:
            num_pv += 1
        return num_pv

    @property
    def extension_modules(self) -> tuple[ExtensionModule, ...]:
        """Velocity, energy and diffusion modules, in the order of their update."""
        return (self.velocity_module, self.energy_module, self.diffusion_module)

    def volume_variables(self) -> FlashVolumeVariables:
        """Returns new volume variables of this model."""
        return FlashVolumeVariables(self)

    def update_all(
        self, context: ElementContext, time_idx: int = 0
    ) -> list[FlashVolumeVariables]:
        """Updates the volume variables of all degrees of freedom in ``context``.

        The updates are independent of each other.

        """
        result = []
        for dof_idx in range(context.num_dofs(time_idx)):
            vv = self.volume_variables()
            vv.update(context, dof_idx, time_idx)
            result.append(vv)
        return result

    def commit_hints(
        self,
        hints: ThermodynamicHintCache,
        volume_variables: Sequence[FlashVolumeVariables],
    ) -> None:
        """Stores converged volume variables as hints for the next assembly pass.

        Does nothing if hints are disabled.

        """
        if self.enable_thermodynamic_hints:
            hints.commit(volume_variables)
