"""Local linearization of volume variables with respect to primary variables by
forward finite differences.

The base perturbation of the linearizer determines the default tolerance of the local
flash, see :func:`~poreflash.compositional.flash.abstract_flash.flash_tolerance`.

"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

import numpy as np

if TYPE_CHECKING:
    from .element_context import ElementContext
    from .volume_variables import FlashVolumeVariables

__all__ = ["FiniteDifferenceLinearizer"]

logger = logging.getLogger(__name__)


class FiniteDifferenceLinearizer:
    """Forward finite differences of quantities computed from volume variables.

    Parameters:
        params: ``default=None``

            Supported parameters:

            - ``'base_epsilon'``: Base perturbation (default 1e-8).

    Raises:
        ValueError: If the base perturbation is not positive.

    """

    def __init__(self, params: Optional[dict] = None) -> None:
        if params is None:
            params = {}

        self.base_epsilon: float = float(params.get("base_epsilon", 1e-8))
        """Base perturbation, scaled by the magnitude of the perturbed value."""

        if not self.base_epsilon > 0.0:
            raise ValueError(f"Base epsilon must be positive: {self.base_epsilon}")

    def numeric_epsilon(self, pv_idx: int, value: float) -> float:
        """Perturbation of a primary variable with a given value."""
        return self.base_epsilon * max(1.0, abs(value))

    def linearize(
        self,
        context: ElementContext,
        dof_idx: int,
        quantity: Callable[[FlashVolumeVariables], float],
        time_idx: int = 0,
    ) -> np.ndarray:
        """Derivatives of a scalar quantity of the volume variables of a degree of
        freedom with respect to each of its primary variables.

        The unperturbed and each perturbed state are computed with a fresh update of
        the volume variables, using the hints of ``context``.

        Parameters:
            context: Element context containing the primary variables.
            dof_idx: Degree of freedom.
            quantity: Function evaluating the quantity from updated volume
                variables.
            time_idx: ``default=0``

                Time index.

        Returns:
            An array with one derivative per primary variable.

        """
        model = context.model
        vv = model.volume_variables()
        vv.update(context, dof_idx, time_idx)
        value_0 = float(quantity(vv))

        primary_vars = context.primary_vars(dof_idx, time_idx)
        derivatives = np.zeros(primary_vars.shape[0])
        for pv_idx, pv in enumerate(primary_vars):
            eps = self.numeric_epsilon(pv_idx, pv)
            perturbed = context.perturbed(dof_idx, pv_idx, eps, time_idx)
            vv_eps = model.volume_variables()
            vv_eps.update(perturbed, dof_idx, time_idx)
            derivatives[pv_idx] = (float(quantity(vv_eps)) - value_0) / eps

        return derivatives
