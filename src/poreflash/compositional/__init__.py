"""The compositional subpackage provides the thermodynamic part of the volume variables:
the state of a multi-phase multi-component fluid in a control volume, fluid systems
providing closure relations, and the local flash computing phase equilibria.

1. :mod:`poreflash.compositional.states` contains the fluid state, the container
   exchanged between flash, fluid system and volume variables.
2. :mod:`poreflash.compositional.fluid_system` contains the interface for fluid systems
   and a water-gas system.
3. :mod:`poreflash.compositional.flash` contains the local flash.

Units are standard SI units. Amounts of substance are measured in moles, the
tolerance of the flash is hence given in ``[mol / m^3]``.

"""

__all__ = []

from . import _core, flash, fluid_system, states, utils
from ._core import *
from .fluid_system import *
from .states import *
from .utils import *
from .flash import *

__all__.extend(_core.__all__)
__all__.extend(states.__all__)
__all__.extend(utils.__all__)
__all__.extend(fluid_system.__all__)
__all__.extend(flash.__all__)
