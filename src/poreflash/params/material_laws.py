"""Material laws relating phase saturations to capillary pressures and relative
permeabilities.

Capillary pressures are returned per phase, such that the pressure of phase ``j`` is
given by ``p_j = p_0 + pc_j - pc_0``. For two-phase laws, the wetting phase is the
reference phase with ``pc_0 = 0`` and the non-wetting phase has the capillary
pressure of the law.

Capillary pressure laws accept AD arrays (see :mod:`poreflash.ad`), since they enter
the local flash. Relative permeabilities are evaluated with plain numbers at the
converged state.

"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from poreflash.ad import value
from poreflash.compositional.states import FluidState

__all__ = [
    "BrooksCoreyParams",
    "MaterialLaw",
    "BrooksCorey",
    "NullMaterial",
]

logger = logging.getLogger(__name__)


def _scalar(var: Any) -> float:
    """Value of a scalar number or a single-valued AD array."""
    return float(np.ravel(value(var))[0])


@dataclass
class BrooksCoreyParams:
    """Parameters of the regularized Brooks-Corey law.

    Raises:
        ValueError: If the entry pressure or the shape parameter are not positive, if
            residual saturations are negative or do not leave a mobile range, or if
            the regularization threshold is not in ``(0, 1)``.

    """

    entry_pressure: float = 1e4
    """Entry pressure ``pe`` ``[Pa]``."""

    lambda_: float = 2.0
    """Pore size distribution index ``[-]``."""

    residual_saturation_wetting: float = 0.0
    """Residual saturation of the wetting phase ``[-]``."""

    residual_saturation_nonwetting: float = 0.0
    """Residual saturation of the non-wetting phase ``[-]``."""

    low_saturation_threshold: float = 0.01
    """Effective saturation below which the capillary pressure is extended
    linearly."""

    def __post_init__(self) -> None:
        if self.entry_pressure <= 0.0:
            raise ValueError(f"Entry pressure must be positive: {self.entry_pressure}")
        if self.lambda_ <= 0.0:
            raise ValueError(f"Brooks-Corey lambda must be positive: {self.lambda_}")
        swr = self.residual_saturation_wetting
        snr = self.residual_saturation_nonwetting
        if swr < 0.0 or snr < 0.0 or swr + snr >= 1.0:
            raise ValueError(f"Invalid residual saturations ({swr}, {snr}).")
        if not 0.0 < self.low_saturation_threshold < 1.0:
            raise ValueError(
                "Regularization threshold must be in (0, 1): "
                + f"{self.low_saturation_threshold}"
            )


class MaterialLaw(abc.ABC):
    """Interface of material laws used by the flash and the volume variables."""

    wetting_phase_idx: int = 0
    """Index of the wetting phase, which is the reference phase of capillary
    pressures."""

    @abc.abstractmethod
    def capillary_pressures(self, params: Any, saturations: Sequence[Any]) -> list[Any]:
        """Capillary pressure per phase.

        Parameters:
            params: Material law parameters.
            saturations: Saturations of all phases. Can be AD arrays.

        """

    @abc.abstractmethod
    def relative_permeabilities(
        self, params: Any, fluid_state: FluidState
    ) -> np.ndarray:
        """Relative permeability per phase at the state ``fluid_state``."""


class BrooksCorey(MaterialLaw):
    """Regularized Brooks-Corey law for two phases.

    In terms of the effective wetting saturation
    ``Se = (Sw - Swr) / (1 - Swr - Snr)``, the capillary pressure is

    - ``pe * Se^(-1 / lambda)`` for ``threshold < Se < 1``,
    - a linear extension with the slope at the threshold below it,
    - a linear extension with the slope at ``Se = 1`` above 1.

    Relative permeabilities are computed with ``Se`` clipped to ``[0, 1]``:
    ``krw = Se^((2 + 3 lambda) / lambda)``,
    ``krn = (1 - Se)^2 (1 - Se^((2 + lambda) / lambda))``.

    """

    def effective_saturation(self, params: BrooksCoreyParams, sw: Any) -> Any:
        swr = params.residual_saturation_wetting
        snr = params.residual_saturation_nonwetting
        return (sw - swr) / (1.0 - swr - snr)

    def _dpc_dse(self, params: BrooksCoreyParams, se: float) -> float:
        lam = params.lambda_
        return -params.entry_pressure / lam * se ** (-1.0 / lam - 1.0)

    def capillary_pressure(self, params: BrooksCoreyParams, sw: Any) -> Any:
        """Capillary pressure ``p_n - p_w`` as a function of the wetting saturation."""
        se = self.effective_saturation(params, sw)
        se_val = _scalar(se)
        pe = params.entry_pressure
        threshold = params.low_saturation_threshold

        if se_val >= 1.0:
            return pe + self._dpc_dse(params, 1.0) * (se - 1.0)
        elif se_val <= threshold:
            pc_threshold = pe * threshold ** (-1.0 / params.lambda_)
            return pc_threshold + self._dpc_dse(params, threshold) * (se - threshold)
        else:
            return pe * se ** (-1.0 / params.lambda_)

    def capillary_pressures(
        self, params: BrooksCoreyParams, saturations: Sequence[Any]
    ) -> list[Any]:
        if len(saturations) != 2:
            raise ValueError("Brooks-Corey law is defined for 2 phases only.")
        return [0.0, self.capillary_pressure(params, saturations[0])]

    def relative_permeability_wetting(self, params: BrooksCoreyParams, sw: float) -> float:
        se = float(np.clip(self.effective_saturation(params, sw), 0.0, 1.0))
        lam = params.lambda_
        return se ** ((2.0 + 3.0 * lam) / lam)

    def relative_permeability_nonwetting(
        self, params: BrooksCoreyParams, sw: float
    ) -> float:
        se = float(np.clip(self.effective_saturation(params, sw), 0.0, 1.0))
        lam = params.lambda_
        return (1.0 - se) ** 2 * (1.0 - se ** ((2.0 + lam) / lam))

    def relative_permeabilities(
        self, params: BrooksCoreyParams, fluid_state: FluidState
    ) -> np.ndarray:
        sw = float(fluid_state.saturation[self.wetting_phase_idx])
        return np.array(
            [
                self.relative_permeability_wetting(params, sw),
                self.relative_permeability_nonwetting(params, sw),
            ]
        )


class NullMaterial(MaterialLaw):
    """Material without capillarity and with linear relative permeabilities
    ``kr_j = S_j``, for any number of phases."""

    def capillary_pressures(self, params: Any, saturations: Sequence[Any]) -> list[Any]:
        return [0.0 for _ in saturations]

    def relative_permeabilities(self, params: Any, fluid_state: FluidState) -> np.ndarray:
        return np.clip(np.asarray(fluid_state.saturation, dtype=float), 0.0, 1.0)
