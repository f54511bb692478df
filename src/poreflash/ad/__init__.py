"""Forward-mode automatic differentiation used to linearize local systems, such as the
equilibrium problem solved per degree of freedom."""

__all__ = []

from . import forward_mode, functions
from .forward_mode import *
from .functions import *

__all__.extend(forward_mode.__all__)
__all__.extend(functions.__all__)
