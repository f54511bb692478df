"""Module containing the data structure storing the thermodynamic state of the fluid in
a single control volume.

Note:
    The fluid state is a contract between the flash, the fluid system and the volume
    variables: the flash writes pressures, saturations, compositions and densities,
    the volume variables add viscosities and energy-related quantities.

    The container itself does not validate its content. Unity of fractions in present
    phases is guaranteed by the flash upon convergence.

"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Optional

import numpy as np

from .utils import normalize_rows

__all__ = [
    "FluidState",
    "initialize_fluid_state",
]


@dataclass
class FluidState:
    """Thermodynamic state of a multiphase, multicomponent fluid in one control volume.

    Per-phase quantities are stored in arrays indexed by phase, per-component and
    per-phase quantities in 2D arrays with phases row-wise.

    """

    pressure: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Pressure per phase ``[Pa]``."""

    temperature: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Temperature per phase ``[K]``.

    Equal in all phases, unless set otherwise explicitly.

    """

    saturation: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Volumetric phase fractions ``[-]``."""

    mole_fraction: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    """Mole fractions of components (columns) in phases (rows) ``[-]``.

    For phases which are not present, these are extended fractions which do not
    necessarily sum up to 1.

    """

    molar_density: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Molar density per phase ``[mol / m^3]``."""

    density: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Mass density per phase ``[kg / m^3]``."""

    viscosity: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Dynamic viscosity per phase ``[Pa s]``."""

    enthalpy: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Specific enthalpy per phase ``[J / kg]``."""

    fugacity_coefficient: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    """Fugacity coefficients of components (columns) in phases (rows) ``[-]``."""

    molar_masses: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Molar masses of the components ``[kg / mol]``."""

    @property
    def num_phases(self) -> int:
        return self.pressure.shape[0]

    @property
    def num_components(self) -> int:
        return self.mole_fraction.shape[1]

    def assign(self, other: FluidState) -> None:
        """Copies all values of another fluid state into this one.

        The arrays are copied, no memory is shared with ``other`` afterwards.

        """
        for f in fields(self):
            setattr(self, f.name, np.array(getattr(other, f.name), dtype=float))

    def copy(self) -> FluidState:
        """Returns a deep copy of this fluid state."""
        fs = FluidState()
        fs.assign(self)
        return fs

    def set_temperature(self, temperature: float) -> None:
        """Sets the temperature of all phases."""
        self.temperature = np.full(self.num_phases, float(temperature))

    @property
    def normalized_mole_fraction(self) -> np.ndarray:
        """Mole fractions normalized per phase, such that they sum up to 1 in each
        phase, including phases which are not present."""
        return normalize_rows(np.ascontiguousarray(self.mole_fraction, dtype=float))

    def average_molar_mass(self, phase_idx: int) -> float:
        """Mean molar mass of a phase ``[kg / mol]``, based on normalized fractions."""
        x = self.mole_fraction[phase_idx] / self.mole_fraction[phase_idx].sum()
        return float(np.dot(x, self.molar_masses))

    def mass_fraction(self, phase_idx: int) -> np.ndarray:
        """Mass fractions of all components in a phase.

        They are computed from normalized mole fractions and hence sum up to 1.

        """
        xm = self.mole_fraction[phase_idx] * self.molar_masses
        return xm / xm.sum()

    def molarity(self, phase_idx: int, comp_idx: int) -> float:
        """Molar concentration of a component in a phase ``[mol / m^3]``."""
        return float(
            self.molar_density[phase_idx] * self.mole_fraction[phase_idx, comp_idx]
        )

    def fugacity(self, phase_idx: int, comp_idx: int) -> float:
        """Fugacity of a component in a phase ``[Pa]``."""
        return float(
            self.fugacity_coefficient[phase_idx, comp_idx]
            * self.mole_fraction[phase_idx, comp_idx]
            * self.pressure[phase_idx]
        )


def initialize_fluid_state(
    num_phases: int,
    num_components: int,
    molar_masses: Optional[np.ndarray] = None,
) -> FluidState:
    """Creates a fluid state filled with zero values of defined size.

    Parameters:
        num_phases: Number of phases.
        num_components: Number of components.
        molar_masses: ``default=None``

            Molar masses of the components. If None, they are set to 1.

    """
    state = FluidState()
    state.pressure = np.zeros(num_phases)
    state.temperature = np.zeros(num_phases)
    state.saturation = np.zeros(num_phases)
    state.mole_fraction = np.zeros((num_phases, num_components))
    state.molar_density = np.zeros(num_phases)
    state.density = np.zeros(num_phases)
    state.viscosity = np.zeros(num_phases)
    state.enthalpy = np.zeros(num_phases)
    state.fugacity_coefficient = np.zeros((num_phases, num_components))
    if molar_masses is None:
        state.molar_masses = np.ones(num_components)
    else:
        state.molar_masses = np.array(molar_masses, dtype=float)
    return state
