"""Effective heat conduction of a fluid-filled porous medium."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from poreflash.compositional.states import FluidState

__all__ = ["SomertonParams", "Somerton"]


@dataclass
class SomertonParams:
    """Parameters of the Somerton law."""

    fully_saturated_conductivity: float
    """Conductivity of the medium fully saturated with the wetting phase
    ``[W / m K]``."""

    vacuum_conductivity: float
    """Conductivity of the dry medium ``[W / m K]``."""

    @classmethod
    def from_porosity(
        cls,
        porosity: float,
        solid_conductivity: float = 2.8,
        liquid_conductivity: float = 0.6,
    ) -> SomertonParams:
        """Geometric mean of solid and liquid conductivity for the saturated medium,
        solid conductivity scaled by the solid fraction for the dry medium.

        The defaults correspond to granite and water.

        """
        return cls(
            fully_saturated_conductivity=solid_conductivity ** (1.0 - porosity)
            * liquid_conductivity**porosity,
            vacuum_conductivity=solid_conductivity ** (1.0 - porosity),
        )


class Somerton:
    """Somerton law ``lambda = lambda_dry + sqrt(Sw) (lambda_sat - lambda_dry)``."""

    wetting_phase_idx: int = 0

    def thermal_conductivity(
        self, params: SomertonParams, fluid_state: FluidState
    ) -> float:
        sw = float(np.clip(fluid_state.saturation[self.wetting_phase_idx], 0.0, 1.0))
        dry = params.vacuum_conductivity
        sat = params.fully_saturated_conductivity
        return dry + np.sqrt(sw) * (sat - dry)
