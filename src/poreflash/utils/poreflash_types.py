"""Type aliases used throughout the package."""

from typing import Union

import numpy as np

__all__ = ["number"]

number = Union[float, int, np.number]
"""Scalar numbers."""
