"""Collection of named per-dof fields from updated volume variables, to be written by
an external visualization sink.

Field names follow the pattern ``<quantity>_<phase>`` for per-phase quantities and
``<quantity>_<component>^<phase>`` for per-component and per-phase quantities, using
the names of the fluid system.

"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

import numpy as np

if TYPE_CHECKING:
    from poreflash.compositional.fluid_system import FluidSystem
    from poreflash.models.volume_variables import FlashVolumeVariables

__all__ = ["collect_fields"]

logger = logging.getLogger(__name__)


def _stack(values: list) -> np.ndarray:
    return np.array(values, dtype=float)


def collect_fields(
    volume_variables: Sequence[FlashVolumeVariables],
    fluid_system: FluidSystem,
    include_correlations: bool = False,
) -> dict[str, np.ndarray]:
    """Collects fields of updated volume variables.

    Parameters:
        volume_variables: Volume variables, one per degree of freedom, in the order of
            the degrees of freedom.
        fluid_system: Fluid system providing the names of phases and components.
        include_correlations: ``default=False``

            If True, adds the fields ``'saturation_pressure'``,
            ``'gas_dissolution_factor'`` (at the pressure of the reference phase),
            ``'gas_formation_volume_factor'`` (at the pressure of the gas phase) and
            ``'liquid_formation_volume_factor'`` (at the pressure of the reference
            phase). The fluid system must provide these correlations.

    Returns:
        A dictionary of arrays with one value per degree of freedom (first axis).
        Fields of enabled extension modules are included using the module's field
        names, vector and matrix valued fields get additional axes.

    """
    fields: dict[str, np.ndarray] = {}
    if len(volume_variables) == 0:
        return fields

    phases = fluid_system.phase_names
    components = fluid_system.component_names

    states = [vv.fluid_state for vv in volume_variables]

    fields["porosity"] = _stack([vv.porosity for vv in volume_variables])
    fields["temperature"] = _stack([fs.temperature[0] for fs in states])

    for j, phase in enumerate(phases):
        fields[f"pressure_{phase}"] = _stack([fs.pressure[j] for fs in states])
        fields[f"saturation_{phase}"] = _stack([fs.saturation[j] for fs in states])
        fields[f"density_{phase}"] = _stack([fs.density[j] for fs in states])
        fields[f"molar_density_{phase}"] = _stack(
            [fs.molar_density[j] for fs in states]
        )
        fields[f"viscosity_{phase}"] = _stack([fs.viscosity[j] for fs in states])
        fields[f"relative_permeability_{phase}"] = _stack(
            [vv.relative_permeability[j] for vv in volume_variables]
        )
        fields[f"mobility_{phase}"] = _stack(
            [vv.mobility(j) for vv in volume_variables]
        )
        for i, comp in enumerate(components):
            fields[f"mole_fraction_{comp}^{phase}"] = _stack(
                [fs.mole_fraction[j, i] for fs in states]
            )
            fields[f"mass_fraction_{comp}^{phase}"] = _stack(
                [fs.mass_fraction(j)[i] for fs in states]
            )

    if include_correlations:
        ref = fluid_system.reference_phase_idx
        gas = fluid_system.gas_phase_idx
        fields["saturation_pressure"] = _stack(
            [fluid_system.saturation_pressure(fs.temperature[0]) for fs in states]
        )
        fields["gas_dissolution_factor"] = _stack(
            [
                fluid_system.gas_dissolution_factor(fs.pressure[ref], fs.temperature[ref])
                for fs in states
            ]
        )
        fields["gas_formation_volume_factor"] = _stack(
            [
                fluid_system.gas_formation_volume_factor(
                    fs.pressure[gas], fs.temperature[gas]
                )
                for fs in states
            ]
        )
        fields["liquid_formation_volume_factor"] = _stack(
            [
                fluid_system.liquid_formation_volume_factor(
                    fs.pressure[ref], fs.temperature[ref]
                )
                for fs in states
            ]
        )

    for module in volume_variables[0].model.extension_modules:
        if not module.enabled:
            continue
        for name in module.fields:
            fields[name] = _stack([getattr(vv, name) for vv in volume_variables])

    logger.debug(
        f"Collected {len(fields)} fields for {len(volume_variables)} degrees of freedom."
    )
    return fields
