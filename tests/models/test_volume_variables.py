"""Tests for the update of flash-based volume variables, including the warm start from
thermodynamic hints and the coupling of the flash tolerance to the linearizer."""

from __future__ import annotations

import numpy as np
import pytest

import poreflash as pf

T = 293.15


class SandProblem(pf.MultiPhaseBaseProblem):
    def __init__(self, params=None, temperature=T):
        super().__init__(params)
        self._temperature = temperature

    def porosity(self, context, dof_idx, time_idx):
        return 0.2

    def intrinsic_permeability(self, context, dof_idx, time_idx):
        return self.to_dim_matrix(1e-12)

    def material_law_params(self, context, dof_idx, time_idx):
        return pf.BrooksCoreyParams()

    def temperature(self, context, dof_idx, time_idx):
        return self._temperature


class SolveSpy:
    """Records the arguments of the flash and delegates to it."""

    def __init__(self, flash: pf.NcpFlash):
        self.flash = flash
        self.solve = flash.solve
        self.calls: list[dict] = []

    def __call__(self, fluid_state, param_cache, material_law, material_params, c, tol):
        self.calls.append(
            {"initial_state": fluid_state.copy(), "c_total": c.copy(), "tolerance": tol}
        )
        return self.solve(
            fluid_state, param_cache, material_law, material_params, c, tol
        )


@pytest.fixture
def model() -> pf.FlashModel:
    return pf.FlashModel(pf.WaterGasFluidSystem(), pf.BrooksCorey())


@pytest.fixture
def spy(model, monkeypatch) -> SolveSpy:
    spy = SolveSpy(model.flash)
    monkeypatch.setattr(model.flash, "solve", spy)
    return spy


def make_context(model, primary_vars, problem=None, hints=None) -> pf.ElementContext:
    if problem is None:
        problem = SandProblem()
    return pf.ElementContext(
        model, problem, np.atleast_2d(np.array(primary_vars, dtype=float)), hints=hints
    )


def test_update_two_phase(model):
    context = make_context(model, [20000.0, 20.0])
    vv = model.volume_variables()
    vv.update(context, 0, 0)

    state = vv.fluid_state
    assert vv.dof_idx == 0 and vv.time_idx == 0
    assert vv.extrusion_factor == 1.0
    assert vv.porosity == 0.2
    assert np.all(vv.intrinsic_permeability == 1e-12 * np.eye(2))
    assert vv.flash_results.residual_norm < pf.flash_tolerance(0.0, 1e-8)

    # viscosities are set after the flash
    assert np.all(state.viscosity > 0.0)
    assert state.viscosity[0] > state.viscosity[1]

    kr = pf.BrooksCorey().relative_permeabilities(pf.BrooksCoreyParams(), state)
    assert np.all(vv.relative_permeability == kr)
    for j in range(2):
        assert vv.mobility(j) == vv.relative_permeability[j] / state.viscosity[j]


def test_liquid_filled_pore(model):
    context = make_context(model, [55500.0, 0.01])
    vv = model.volume_variables()
    vv.update(context, 0, 0)

    state = vv.fluid_state
    assert np.isclose(state.saturation[1], 0.0, atol=1e-12)
    assert state.mass_fraction(0)[1] > 0.0
    assert np.allclose(vv.relative_permeability, [1.0, 0.0])
    assert np.isclose(vv.mobility(1), 0.0, atol=1e-12)


def test_tolerance_from_linearizer(model, spy):
    vv = model.volume_variables()
    vv.update(make_context(model, [20000.0, 20.0]), 0, 0)
    assert np.isclose(spy.calls[-1]["tolerance"], 1e-8 / (100 * 18e-3))

    model.linearizer.base_epsilon = 1e-6
    vv.update(make_context(model, [20000.0, 20.0]), 0, 0)
    assert np.isclose(spy.calls[-1]["tolerance"], 1e-6 / (100 * 18e-3))


def test_requested_tolerance_is_used():
    model = pf.FlashModel(
        pf.WaterGasFluidSystem(), pf.BrooksCorey(), {"flash_tolerance": 1e-10}
    )
    monkeypatched = SolveSpy(model.flash)
    model.flash.solve = monkeypatched
    model.volume_variables().update(make_context(model, [20000.0, 20.0]), 0, 0)
    assert monkeypatched.calls[0]["tolerance"] == 1e-10


def test_total_concentrations_from_primary_variables(model, spy):
    model.volume_variables().update(make_context(model, [20000.0, 20.0]), 0, 0)
    assert np.all(spy.calls[0]["c_total"] == [20000.0, 20.0])


def test_hint_is_used_with_current_temperature(model, spy):
    hints = pf.ThermodynamicHintCache()

    # converged state at a lower temperature
    cold = make_context(model, [20000.0, 20.0], problem=SandProblem(temperature=280.0))
    model.commit_hints(hints, model.update_all(cold))
    assert len(hints) == 1
    hint = hints.get(0, 0)
    hint_state = hint.fluid_state.copy()

    warm = make_context(model, [20000.0, 20.0], hints=hints)
    vv = model.volume_variables()
    vv.update(warm, 0, 0)

    initial = spy.calls[-1]["initial_state"]
    # all values of the hint are used, except for the temperature
    assert np.all(initial.temperature == T)
    assert np.all(initial.pressure == hint_state.pressure)
    assert np.all(initial.mole_fraction == hint_state.mole_fraction)
    assert np.all(initial.saturation == hint_state.saturation)

    # the hint is not modified by the update
    assert np.all(hint.fluid_state.temperature == 280.0)
    assert np.all(hint.fluid_state.pressure == hint_state.pressure)
    assert vv.fluid_state is not hint.fluid_state
    assert np.all(vv.fluid_state.temperature == T)


def test_converged_hint_needs_no_iterations(model):
    hints = pf.ThermodynamicHintCache()
    context = make_context(model, [20000.0, 20.0], hints=hints)
    model.commit_hints(hints, model.update_all(context))

    vv = model.volume_variables()
    vv.update(context, 0, 0)
    assert vv.flash_results.num_iter == 0


def test_hints_disabled():
    model = pf.FlashModel(
        pf.WaterGasFluidSystem(),
        pf.BrooksCorey(),
        {"enable_thermodynamic_hints": False},
    )
    hints = pf.ThermodynamicHintCache()
    context = make_context(model, [20000.0, 20.0], hints=hints)
    vvs = model.update_all(context)
    model.commit_hints(hints, vvs)
    assert len(hints) == 0

    hints.commit(vvs)
    assert context.thermodynamic_hint(0, 0) is None

    # the guess is computed from scratch
    vv = model.volume_variables()
    vv.update(context, 0, 0)
    assert vv.flash_results.num_iter > 0


def test_update_all_is_independent_per_dof(model):
    primary_vars = np.array([[20000.0, 20.0], [55500.0, 0.01], [30000.0, 10.0]])
    context = make_context(model, primary_vars)
    vvs = model.update_all(context)

    assert [vv.dof_idx for vv in vvs] == [0, 1, 2]
    for k, vv in enumerate(vvs):
        single = make_context(model, primary_vars[k])
        reference = model.volume_variables()
        reference.update(single, 0, 0)
        assert np.all(vv.fluid_state.pressure == reference.fluid_state.pressure)
        assert np.all(vv.fluid_state.saturation == reference.fluid_state.saturation)


def test_hints_are_replaced_on_commit(model):
    hints = pf.ThermodynamicHintCache()
    context = make_context(model, [[20000.0, 20.0], [30000.0, 10.0]])
    model.commit_hints(hints, model.update_all(context))
    assert len(hints) == 2

    model.commit_hints(hints, model.update_all(make_context(model, [20000.0, 20.0])))
    assert len(hints) == 1
    assert hints.get(1, 0) is None

    hints.clear()
    assert len(hints) == 0


def test_flash_failure_propagates(model):
    vv = model.volume_variables()
    with pytest.raises(pf.FlashConvergenceFailure):
        vv.update(make_context(model, [0.0, 0.0]), 0, 0)
    with pytest.raises(pf.FlashConvergenceFailure):
        vv.update(make_context(model, [-1.0, 20.0]), 0, 0)


def test_perturbed_context(model):
    context = make_context(model, [[20000.0, 20.0], [30000.0, 10.0]])
    perturbed = context.perturbed(1, 0, 5.0)
    assert np.all(perturbed.primary_vars(1) == [30005.0, 10.0])
    assert np.all(perturbed.primary_vars(0) == [20000.0, 20.0])
    # the original context is not modified
    assert np.all(context.primary_vars(1) == [30000.0, 10.0])
    assert perturbed.problem is context.problem
    assert np.all(perturbed.position(1) == 0.0)


def test_failed_update_keeps_last_state(model):
    context = make_context(model, [[20000.0, 20.0], [0.0, 0.0]])
    vv = model.volume_variables()
    vv.update(context, 0, 0)
    state = vv.fluid_state
    results = vv.flash_results

    with pytest.raises(pf.FlashConvergenceFailure):
        vv.update(context, 1, 0)

    assert vv.dof_idx == 0
    assert vv.fluid_state is state
    assert vv.flash_results is results


def test_unsaturated_pore_with_capillary_guess(model, spy):
    vv = model.volume_variables()
    vv.update(make_context(model, [1000.0, 0.01]), 0, 0)

    state = vv.fluid_state
    assert 0.017 < state.saturation[0] < 0.019
    assert state.pressure[0] < 0.0 < state.pressure[1]
    assert vv.flash_results.num_iter <= 20

    # the guess already accounts for the capillary pressure
    initial = spy.calls[0]["initial_state"]
    pc = pf.BrooksCorey().capillary_pressure(
        pf.BrooksCoreyParams(), initial.saturation[0]
    )
    assert np.isclose(initial.pressure[1] - initial.pressure[0], pc)
