"""Soil parameters: material laws for capillarity and relative permeability, and
effective heat conduction."""

__all__ = []

from . import heat_conduction, material_laws
from .heat_conduction import *
from .material_laws import *

__all__.extend(material_laws.__all__)
__all__.extend(heat_conduction.__all__)
