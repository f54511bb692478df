"""Tests for the extension modules of the volume variables, configured through the
flash model."""

from __future__ import annotations

import numpy as np
import pytest

import poreflash as pf
from poreflash.models import extensions as ext


class SandProblem(pf.MultiPhaseBaseProblem):
    def porosity(self, context, dof_idx, time_idx):
        return 0.2

    def intrinsic_permeability(self, context, dof_idx, time_idx):
        return np.diag([4e-12, 1e-12])

    def material_law_params(self, context, dof_idx, time_idx):
        return pf.BrooksCoreyParams()

    def temperature(self, context, dof_idx, time_idx):
        return 293.15

    def heat_capacity_solid(self, context, dof_idx, time_idx):
        return 2e6

    def heat_conduction_params(self, context, dof_idx, time_idx):
        return pf.SomertonParams(
            fully_saturated_conductivity=2.0, vacuum_conductivity=0.5
        )

    def ergun_coefficient(self, context, dof_idx, time_idx):
        return 0.55


def update_single(params: dict, primary_vars) -> pf.FlashVolumeVariables:
    model = pf.FlashModel(pf.WaterGasFluidSystem(), pf.BrooksCorey(), params)
    context = pf.ElementContext(model, SandProblem(), np.array([primary_vars]))
    vv = model.volume_variables()
    vv.update(context, 0, 0)
    return vv


def test_default_configuration():
    model = pf.FlashModel(pf.WaterGasFluidSystem(), pf.BrooksCorey())
    assert isinstance(model.energy_module, ext.IsothermalEnergyModule)
    assert isinstance(model.diffusion_module, ext.NoDiffusionModule)
    assert isinstance(model.velocity_module, ext.DarcyVelocityModule)
    assert not any(module.enabled for module in model.extension_modules)
    assert model.num_primary_variables == 2


def test_unknown_velocity_module():
    with pytest.raises(ValueError):
        pf.FlashModel(
            pf.WaterGasFluidSystem(), pf.BrooksCorey(), {"velocity_module": "stokes"}
        )


def test_isothermal_temperature_from_problem():
    vv = update_single({}, [20000.0, 20.0])
    assert np.all(vv.fluid_state.temperature == 293.15)
    assert not hasattr(vv, "internal_energy")


def test_thermal_module():
    model = pf.FlashModel(
        pf.WaterGasFluidSystem(), pf.BrooksCorey(), {"enable_energy": True}
    )
    assert model.indices.temperature_idx == 2
    assert model.num_primary_variables == 3

    vv = update_single({"enable_energy": True}, [20000.0, 20.0, 310.0])
    state = vv.fluid_state

    # temperature taken from the primary variables, not from the problem
    assert np.all(state.temperature == 310.0)
    assert np.all(state.enthalpy != 0.0)
    assert np.allclose(
        vv.internal_energy, state.enthalpy - state.pressure / state.density
    )
    assert vv.heat_capacity_solid == 2e6
    expected = 0.5 + np.sqrt(state.saturation[0]) * 1.5
    assert np.isclose(vv.thermal_conductivity, expected)


def test_molecular_diffusion():
    vv = update_single({"enable_diffusion": True}, [20000.0, 20.0])
    state = vv.fluid_state
    phi = 0.2

    assert vv.diffusion_coefficient.shape == (2, 2)
    assert np.all(vv.diffusion_coefficient[0] == 2e-9)

    tau = (phi * state.saturation) ** (7.0 / 3.0) / phi**2
    assert np.allclose(vv.tortuosity, tau)
    assert np.allclose(
        vv.effective_diffusion_coefficient,
        (phi * state.saturation * tau)[:, np.newaxis] * vv.diffusion_coefficient,
    )


def test_tortuosity_is_bounded_for_absent_phases():
    vv = update_single({"enable_diffusion": True}, [55500.0, 0.01])
    phi = 0.2
    assert np.isclose(vv.fluid_state.saturation[1], 0.0, atol=1e-12)
    assert np.isclose(vv.tortuosity[1], 1e-4 ** (7.0 / 3.0) / phi**2)
    assert np.allclose(vv.effective_diffusion_coefficient[1], 0.0, atol=1e-30)


def test_forchheimer_module():
    vv = update_single({"velocity_module": "Forchheimer"}, [20000.0, 20.0])
    assert vv.ergun_coefficient == 0.55
    assert np.allclose(vv.sqrt_intrinsic_permeability, [2e-6, 1e-6])


def test_disabled_modules_declare_no_fields():
    model = pf.FlashModel(pf.WaterGasFluidSystem(), pf.BrooksCorey())
    vv = model.volume_variables()
    for name in ext.ThermalEnergyModule.fields + ext.MolecularDiffusionModule.fields:
        assert not hasattr(vv, name)
