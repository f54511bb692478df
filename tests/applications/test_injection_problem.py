"""Tests for the gas injection problem: parameters of the layered domain and the
hydrostatic initial condition."""

from __future__ import annotations

import numpy as np
import pytest

import poreflash as pf


@pytest.fixture
def fluid_system() -> pf.WaterGasFluidSystem:
    return pf.WaterGasFluidSystem()


@pytest.fixture
def problem(fluid_system) -> pf.InjectionProblem:
    return pf.InjectionProblem(fluid_system)


@pytest.fixture
def model(fluid_system) -> pf.FlashModel:
    return pf.FlashModel(fluid_system, pf.BrooksCorey())


def test_layered_permeability(problem, model):
    positions = np.array([[5.0, 10.0], [5.0, 30.0]])
    context = pf.ElementContext(
        model, problem, np.zeros((2, 2)), positions=positions
    )
    assert np.all(problem.intrinsic_permeability(context, 0, 0) == 1e-12 * np.eye(2))
    assert np.all(problem.intrinsic_permeability(context, 1, 0) == 5e-14 * np.eye(2))
    assert problem.porosity(context, 0, 0) == 0.3
    assert problem.temperature(context, 1, 0) == 293.15
    assert problem.heat_capacity_solid(context, 0, 0) == 790.0 * 2700.0

    params = problem.material_law_params(context, 0, 0)
    assert params.residual_saturation_wetting == 0.2
    assert params.residual_saturation_nonwetting == 0.05


def test_hydrostatic_pressure(problem):
    assert np.isclose(problem.hydrostatic_pressure(np.array([0.0, 1000.0])), 1e5)
    assert np.isclose(
        problem.hydrostatic_pressure(np.array([0.0, 0.0])),
        1e5 + 1000.0 * pf.GRAVITY_ACCELERATION * 1000.0,
    )


def test_initial_primary_variables(problem, fluid_system):
    positions = np.array([[0.0, 0.0], [0.0, 500.0]])
    primary_vars = problem.initial_primary_variables(positions)
    assert primary_vars.shape == (2, 2)

    # mass fraction of dissolved gas
    masses = primary_vars * fluid_system.molar_masses
    w_gas = masses[:, 1] / masses.sum(axis=1)
    assert np.allclose(w_gas, 1e-6)

    # deeper positions hold more water
    assert primary_vars[0, 0] > primary_vars[1, 0]


def test_initial_state_is_liquid_at_hydrostatic_pressure(problem, model):
    positions = np.array([[0.0, 0.0], [0.0, 10.0], [0.0, 30.0]])
    context = pf.ElementContext(
        model, problem, problem.initial_primary_variables(positions), positions
    )
    vvs = model.update_all(context)

    for vv, position in zip(vvs, positions):
        state = vv.fluid_state
        assert np.isclose(state.saturation[1], 0.0, atol=1e-12)
        assert np.isclose(
            state.pressure[0], problem.hydrostatic_pressure(position), rtol=1e-6
        )
        assert np.isclose(state.mass_fraction(0)[1], 1e-6, rtol=1e-5)
        assert np.allclose(vv.relative_permeability, [1.0, 0.0])
        assert vv.porosity == 0.3

    # permeabilities of the fine and the coarse material
    assert vvs[1].intrinsic_permeability[0, 0] == 1e-12
    assert vvs[2].intrinsic_permeability[0, 0] == 5e-14


def test_repr(problem):
    assert repr(problem) == "InjectionProblem(depth_bor=1000.0, layer_bottom=22.0)"
