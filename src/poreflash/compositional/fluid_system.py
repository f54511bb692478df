"""Module containing the fluid system interface and a two-phase water-gas fluid system.

A fluid system provides the thermodynamic closure of the fluid: phase densities and
fugacity coefficients (required to solve the equilibrium problem), and transport
properties evaluated at equilibrium (viscosities, enthalpies, conductivities,
diffusion coefficients).

Important:
    Densities and fugacity coefficients must be written with plain arithmetic and the
    functions in :mod:`poreflash.ad`, such that pressure and fractions can be passed
    as AD arrays when linearizing the equilibrium problem.

"""

from __future__ import annotations

import abc
import logging
from typing import Any, Callable, Optional, Sequence

import numpy as np

from ._core import P_STANDARD, R_IDEAL_MOL, T_REF, T_STANDARD, PhysicalState
from .states import FluidState
from .utils import CompositionalModellingError, safe_sum

__all__ = [
    "ParameterCache",
    "FluidSystem",
    "WaterGasFluidSystem",
    "water_saturation_pressure",
    "water_viscosity",
    "air_viscosity",
    "air_henry_coefficient",
]

logger = logging.getLogger(__name__)


class ParameterCache:
    """Scratch storage for temperature-dependent pure component properties.

    A cache lives for the duration of one update of volume variables, i.e. one flash
    solve and the evaluation of properties at equilibrium. Values are invalidated
    whenever a different temperature is requested.

    """

    def __init__(self) -> None:
        self.temperature: Optional[float] = None
        """Temperature at which the cached values are valid."""

        self.values: dict[str, float] = {}
        """Cached values by name."""

        self.num_evaluations: int = 0
        """Number of evaluations of property correlations performed through this
        cache."""

    def get(self, name: str, temperature: float, func: Callable[[float], float]) -> float:
        """Returns the cached value of ``func`` at ``temperature``, evaluating it if
        necessary."""
        if self.temperature != temperature:
            self.values.clear()
            self.temperature = temperature
        if name not in self.values:
            self.values[name] = func(temperature)
            self.num_evaluations += 1
        return self.values[name]


def water_saturation_pressure(T: float) -> float:
    """Saturation pressure of water ``[Pa]`` by the Antoine equation.

    Coefficients valid between 1 and 100 degree Celsius, extrapolated outside.

    """
    T_celsius = T - 273.15
    p_mmhg = 10.0 ** (8.07131 - 1730.63 / (233.426 + T_celsius))
    return 133.322368 * p_mmhg


def air_henry_coefficient(T: float) -> float:
    """Henry coefficient of air in water ``[Pa]``, relating the mole fraction of
    dissolved air to its fugacity.

    Van't Hoff temperature dependency around ``7.4e9 Pa`` at 298.15 K.

    """
    return 7.4e9 * np.exp(-1500.0 * (1.0 / T - 1.0 / 298.15))


def water_viscosity(T: float) -> float:
    """Dynamic viscosity of liquid water ``[Pa s]`` by the Vogel equation."""
    return 1e-3 * np.exp(-3.7188 + 578.919 / (-137.546 + T))


def air_viscosity(T: float) -> float:
    """Dynamic viscosity of air ``[Pa s]`` by Sutherland's law."""
    return 1.716e-5 * (T / 273.15) ** 1.5 * (273.15 + 110.4) / (T + 110.4)


class FluidSystem(abc.ABC):
    """Abstract interface of a fluid system with a fixed set of phases and components.

    The first phase is the reference phase of the equilibrium problem.

    Parameters:
        params: ``default=None``

            Parameters of the fluid system.

    """

    phase_names: tuple[str, ...] = ()
    """Names of the modelled phases."""

    phase_states: tuple[PhysicalState, ...] = ()
    """Physical state per phase."""

    component_names: tuple[str, ...] = ()
    """Names of the modelled components."""

    molar_masses: np.ndarray = np.zeros(0)
    """Molar masses of components ``[kg / mol]``."""

    def __init__(self, params: Optional[dict] = None) -> None:
        if params is None:
            params = {}
        self.params: dict = params
        """Parameters given at instantiation."""

    @property
    def num_phases(self) -> int:
        return len(self.phase_names)

    @property
    def num_components(self) -> int:
        return len(self.component_names)

    @property
    def reference_phase_idx(self) -> int:
        return 0

    @property
    def gas_phase_idx(self) -> int:
        """Index of the gas phase.

        Raises:
            CompositionalModellingError: If no gas phase is modelled.

        """
        for j, state in enumerate(self.phase_states):
            if state == PhysicalState.gas:
                return j
        raise CompositionalModellingError("No gas phase modelled.")

    @abc.abstractmethod
    def molar_density(
        self, phase_idx: int, p: Any, T: float, x: Sequence[Any], cache: ParameterCache
    ) -> Any:
        """Molar density of a phase ``[mol / m^3]``.

        Parameters:
            phase_idx: Phase index.
            p: Pressure of the phase. Can be an AD array.
            T: Temperature.
            x: Mole fractions of all components in the phase. Can be AD arrays.
            cache: Parameter cache.

        """

    @abc.abstractmethod
    def fugacity_coefficient(
        self,
        phase_idx: int,
        comp_idx: int,
        p: Any,
        T: float,
        x: Sequence[Any],
        cache: ParameterCache,
    ) -> Any:
        """Fugacity coefficient of a component in a phase. Arguments as for
        :meth:`molar_density`."""

    @abc.abstractmethod
    def viscosity(
        self, fluid_state: FluidState, cache: ParameterCache, phase_idx: int
    ) -> float:
        """Dynamic viscosity of a phase at the given state ``[Pa s]``."""

    @abc.abstractmethod
    def enthalpy(
        self, fluid_state: FluidState, cache: ParameterCache, phase_idx: int
    ) -> float:
        """Specific enthalpy of a phase ``[J / kg]``."""

    @abc.abstractmethod
    def thermal_conductivity(
        self, fluid_state: FluidState, cache: ParameterCache, phase_idx: int
    ) -> float:
        """Thermal conductivity of a phase ``[W / m K]``."""

    @abc.abstractmethod
    def diffusion_coefficient(
        self,
        fluid_state: FluidState,
        cache: ParameterCache,
        phase_idx: int,
        comp_idx: int,
    ) -> float:
        """Molecular diffusion coefficient of a component in a phase ``[m^2 / s]``."""

    def saturation_pressure(self, T: float, cache: Optional[ParameterCache] = None) -> float:
        """Saturation pressure of the solvent ``[Pa]``.

        Optional, used for output only.

        """
        raise NotImplementedError(
            f"{type(self).__name__} does not provide a saturation pressure."
        )

    def gas_dissolution_factor(
        self, p: float, T: float, cache: Optional[ParameterCache] = None
    ) -> float:
        """Volume of gas dissolved in the liquid at pressure ``p``, per volume of
        liquid, both at surface conditions ``[m^3 / m^3]``.

        Optional, used for output only.

        """
        raise NotImplementedError(
            f"{type(self).__name__} does not provide a gas dissolution factor."
        )

    def gas_formation_volume_factor(self, p: float, T: float) -> float:
        """Volume of the gas phase at ``p`` and ``T`` per volume at surface
        conditions ``[-]``. Optional, used for output only."""
        raise NotImplementedError(
            f"{type(self).__name__} does not provide a gas formation volume factor."
        )

    def liquid_formation_volume_factor(self, p: float, T: float) -> float:
        """Volume of the liquid phase at ``p`` and ``T`` per volume at surface
        conditions ``[-]``. Optional, used for output only."""
        raise NotImplementedError(
            f"{type(self).__name__} does not provide a liquid formation volume factor."
        )

    def fugacity(
        self,
        phase_idx: int,
        comp_idx: int,
        p: Any,
        T: float,
        x: Sequence[Any],
        cache: ParameterCache,
    ) -> Any:
        """Fugacity ``phi_i x_i p`` of a component in a phase ``[Pa]``."""
        phi = self.fugacity_coefficient(phase_idx, comp_idx, p, T, x, cache)
        return phi * x[comp_idx] * p

    def equilibrium_ratios(
        self, p: float, T: float, x: np.ndarray, cache: ParameterCache
    ) -> np.ndarray:
        """K-values ``y_i / x_i`` between the gas phase and the reference phase,
        computed as ratios of fugacity coefficients at equal pressure and
        composition."""
        ref = self.reference_phase_idx
        gas = self.gas_phase_idx
        K = np.zeros(self.num_components)
        for i in range(self.num_components):
            phi_ref = self.fugacity_coefficient(ref, i, p, T, x, cache)
            phi_gas = self.fugacity_coefficient(gas, i, p, T, x, cache)
            K[i] = phi_ref / phi_gas
        return K

    def new_fluid_state(self) -> FluidState:
        """Returns a fluid state of correct size for this fluid system, filled with
        zeros."""
        from .states import initialize_fluid_state

        return initialize_fluid_state(
            self.num_phases, self.num_components, self.molar_masses
        )

    def update_fluid_state(self, fluid_state: FluidState, cache: ParameterCache) -> None:
        """Evaluates molar and mass densities and fugacity coefficients of all phases
        at the pressures, temperatures and compositions stored in ``fluid_state``."""
        for j in range(self.num_phases):
            p = float(fluid_state.pressure[j])
            T = float(fluid_state.temperature[j])
            x = fluid_state.mole_fraction[j]
            rho = self.molar_density(j, p, T, x, cache)
            fluid_state.molar_density[j] = rho
            fluid_state.density[j] = rho * fluid_state.average_molar_mass(j)
            for i in range(self.num_components):
                fluid_state.fugacity_coefficient[j, i] = self.fugacity_coefficient(
                    j, i, p, T, x, cache
                )


class WaterGasFluidSystem(FluidSystem):
    """Two-phase fluid system of water and a gas (air) with a liquid and a gas phase.

    - Liquid phase: slightly compressible, dilute solution. The molar density depends
      only on pressure. Water follows Raoult's law with the saturation pressure, the
      gas Henry's law.
    - Gas phase: ideal gas mixture.

    Supported parameters (with defaults):

    - ``'liquid_reference_density'``: ``998.2`` mass density of water at the reference
      pressure ``[kg / m^3]``.
    - ``'liquid_compressibility'``: ``4.5e-10`` ``[1 / Pa]``.
    - ``'reference_pressure'``: :data:`~poreflash.compositional._core.P_STANDARD`.

    """

    phase_names = ("liquid", "gas")
    phase_states = (PhysicalState.liquid, PhysicalState.gas)
    component_names = ("H2O", "air")
    molar_masses = np.array([18.01528e-3, 28.9647e-3])

    LIQUID_IDX: int = 0
    GAS_IDX: int = 1
    H2O_IDX: int = 0
    AIR_IDX: int = 1

    def __init__(self, params: Optional[dict] = None) -> None:
        super().__init__(params)
        self.liquid_reference_density: float = float(
            self.params.get("liquid_reference_density", 998.2)
        )
        self.liquid_compressibility: float = float(
            self.params.get("liquid_compressibility", 4.5e-10)
        )
        self.reference_pressure: float = float(
            self.params.get("reference_pressure", P_STANDARD)
        )
        if self.liquid_reference_density <= 0.0:
            raise ValueError("Reference density of the liquid must be positive.")
        if self.liquid_compressibility < 0.0:
            raise ValueError("Compressibility of the liquid must be non-negative.")

    @property
    def liquid_reference_molar_density(self) -> float:
        """Molar density of the liquid at the reference pressure ``[mol / m^3]``."""
        return self.liquid_reference_density / self.molar_masses[self.H2O_IDX]

    def saturation_pressure(self, T: float, cache: Optional[ParameterCache] = None) -> float:
        if cache is None:
            return water_saturation_pressure(T)
        return cache.get("psat_H2O", T, water_saturation_pressure)

    def henry(self, T: float, cache: Optional[ParameterCache] = None) -> float:
        if cache is None:
            return air_henry_coefficient(T)
        return cache.get("henry_air", T, air_henry_coefficient)

    def _liquid_volume_ratio(self, p: float) -> float:
        """Molar density of the liquid at ``p`` relative to the reference pressure."""
        return 1.0 + self.liquid_compressibility * (p - self.reference_pressure)

    def gas_dissolution_factor(
        self, p: float, T: float, cache: Optional[ParameterCache] = None
    ) -> float:
        """Air dissolved by Henry's law in water in contact with a gas phase at
        pressure ``p``, which holds water vapor at its saturation pressure.

        Zero if ``p`` does not exceed the saturation pressure.

        """
        x_air = max(0.0, p - self.saturation_pressure(T, cache)) / self.henry(T, cache)
        if x_air >= 1.0:
            raise CompositionalModellingError(
                f"No dissolution factor for a liquid at pressure {p} Pa."
            )
        liquid_std = self.liquid_reference_molar_density * self._liquid_volume_ratio(
            P_STANDARD
        )
        gas_std = P_STANDARD / (R_IDEAL_MOL * T_STANDARD)
        return x_air / (1.0 - x_air) * liquid_std / gas_std

    def gas_formation_volume_factor(self, p: float, T: float) -> float:
        return (P_STANDARD / p) * (T / T_STANDARD)

    def liquid_formation_volume_factor(self, p: float, T: float) -> float:
        """The liquid density does not depend on temperature, hence neither does the
        factor."""
        return self._liquid_volume_ratio(P_STANDARD) / self._liquid_volume_ratio(p)

    def molar_density(self, phase_idx, p, T, x, cache):
        if phase_idx == self.LIQUID_IDX:
            rho_ref = self.liquid_reference_molar_density
            return rho_ref * (
                1.0 + self.liquid_compressibility * (p - self.reference_pressure)
            )
        return p / (R_IDEAL_MOL * T)

    def fugacity_coefficient(self, phase_idx, comp_idx, p, T, x, cache):
        if phase_idx == self.LIQUID_IDX:
            if comp_idx == self.H2O_IDX:
                return self.saturation_pressure(T, cache) / p
            return self.henry(T, cache) / p
        return 1.0

    def viscosity(self, fluid_state, cache, phase_idx):
        T = float(fluid_state.temperature[phase_idx])
        if phase_idx == self.LIQUID_IDX:
            return cache.get("mu_H2O", T, water_viscosity)
        return cache.get("mu_air", T, air_viscosity)

    def enthalpy(self, fluid_state, cache, phase_idx):
        T = float(fluid_state.temperature[phase_idx])
        if phase_idx == self.LIQUID_IDX:
            return 4180.0 * (T - T_REF)
        w = fluid_state.mass_fraction(phase_idx)
        h_vapor = 2.501e6 + 1870.0 * (T - T_REF)
        h_air = 1005.0 * (T - T_REF)
        return float(safe_sum([w[self.H2O_IDX] * h_vapor, w[self.AIR_IDX] * h_air]))

    def thermal_conductivity(self, fluid_state, cache, phase_idx):
        if phase_idx == self.LIQUID_IDX:
            return 0.6
        return 0.026

    def diffusion_coefficient(self, fluid_state, cache, phase_idx, comp_idx):
        if phase_idx == self.LIQUID_IDX:
            return 2e-9
        T = float(fluid_state.temperature[phase_idx])
        p = float(fluid_state.pressure[phase_idx])
        return 2.13e-5 * (T / 273.15) ** 1.8 * (P_STANDARD / p)
