"""Output of per-dof fields."""

__all__ = []

from . import field_output
from .field_output import *

__all__.extend(field_output.__all__)
