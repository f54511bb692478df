"""Tests for the Brooks-Corey law, the material without capillarity and the Somerton
heat conduction law."""

from __future__ import annotations

import numpy as np
import pytest

import poreflash as pf
from poreflash.ad import initAdArrays
from poreflash.compositional import initialize_fluid_state


def state_with_saturation(sw: float) -> pf.FluidState:
    state = initialize_fluid_state(2, 2)
    state.saturation[:] = [sw, 1.0 - sw]
    return state


@pytest.fixture
def law() -> pf.BrooksCorey:
    return pf.BrooksCorey()


@pytest.mark.parametrize(
    "sw, pc",
    [
        (0.25, 2e4),  # pe * Se^(-1/2)
        (1.0, 1e4),  # entry pressure
        (1.1, 9.5e3),  # linear extension above full saturation
        (0.01, 1e5),  # regularization threshold
    ],
)
def test_capillary_pressure_values(law, sw, pc):
    params = pf.BrooksCoreyParams()
    assert np.isclose(law.capillary_pressure(params, sw), pc)


def test_regularization_is_continuous(law):
    params = pf.BrooksCoreyParams(low_saturation_threshold=0.05)
    eps = 1e-10
    for se in [params.low_saturation_threshold, 1.0]:
        below = law.capillary_pressure(params, se - eps)
        above = law.capillary_pressure(params, se + eps)
        assert np.isclose(below, above, rtol=1e-7)

    # the linear extension keeps the capillary pressure monotonically decreasing
    sw = np.linspace(-0.1, 1.2, 50)
    pc = np.array([law.capillary_pressure(params, s) for s in sw])
    assert np.all(np.diff(pc) < 0.0)


def test_capillary_pressure_derivative(law):
    params = pf.BrooksCoreyParams(residual_saturation_wetting=0.2)
    sw = initAdArrays([np.array([0.4])])[0]
    pc = law.capillary_pressure(params, sw)

    se = 0.25
    dpc_dse = -params.entry_pressure / params.lambda_ * se ** (-1.5)
    assert np.allclose(pc.val, params.entry_pressure * se ** (-0.5))
    assert np.allclose(pc.full_jac(), dpc_dse / 0.8)


def test_capillary_pressures_per_phase(law):
    params = pf.BrooksCoreyParams()
    pc = law.capillary_pressures(params, [0.25, 0.75])
    assert pc[0] == 0.0
    assert np.isclose(pc[1], 2e4)
    with pytest.raises(ValueError):
        law.capillary_pressures(params, [0.2, 0.3, 0.5])


@pytest.mark.parametrize(
    "sw, kr",
    [
        (1.0, [1.0, 0.0]),
        (0.0, [0.0, 1.0]),
        (0.5, [0.0625, 0.1875]),
        # values beyond the physical range are clipped
        (1.2, [1.0, 0.0]),
        (-0.1, [0.0, 1.0]),
    ],
)
def test_relative_permeabilities(law, sw, kr):
    params = pf.BrooksCoreyParams()
    assert np.allclose(
        law.relative_permeabilities(params, state_with_saturation(sw)), kr
    )


def test_relative_permeabilities_with_residual_saturations(law):
    params = pf.BrooksCoreyParams(
        residual_saturation_wetting=0.2, residual_saturation_nonwetting=0.05
    )
    assert np.allclose(
        law.relative_permeabilities(params, state_with_saturation(0.2)), [0.0, 1.0]
    )
    assert np.allclose(
        law.relative_permeabilities(params, state_with_saturation(0.95)), [1.0, 0.0]
    )


@pytest.mark.parametrize(
    "kwargs",
    [
        {"entry_pressure": 0.0},
        {"lambda_": -1.0},
        {"residual_saturation_wetting": -0.1},
        {"residual_saturation_wetting": 0.6, "residual_saturation_nonwetting": 0.4},
        {"low_saturation_threshold": 1.0},
    ],
)
def test_invalid_parameters(kwargs):
    with pytest.raises(ValueError):
        pf.BrooksCoreyParams(**kwargs)


def test_null_material():
    law = pf.NullMaterial()
    assert law.capillary_pressures(None, [0.3, 0.7]) == [0.0, 0.0]
    kr = law.relative_permeabilities(None, state_with_saturation(0.3))
    assert np.allclose(kr, [0.3, 0.7])


def test_somerton():
    params = pf.SomertonParams(fully_saturated_conductivity=2.0, vacuum_conductivity=0.5)
    law = pf.Somerton()
    assert np.isclose(law.thermal_conductivity(params, state_with_saturation(1.0)), 2.0)
    assert np.isclose(law.thermal_conductivity(params, state_with_saturation(0.0)), 0.5)
    assert np.isclose(
        law.thermal_conductivity(params, state_with_saturation(0.25)), 0.5 + 0.5 * 1.5
    )


def test_somerton_params_from_porosity():
    params = pf.SomertonParams.from_porosity(0.3)
    assert np.isclose(params.fully_saturated_conductivity, 2.8**0.7 * 0.6**0.3)
    assert np.isclose(params.vacuum_conductivity, 2.8**0.7)
