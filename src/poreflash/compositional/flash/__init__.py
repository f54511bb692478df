"""Sub-package containing the local flash for fluid phase equilibria per control
volume."""

__all__ = []

from . import abstract_flash, flash_initializer, ncp_flash
from .abstract_flash import *
from .flash_initializer import *
from .ncp_flash import *

__all__.extend(abstract_flash.__all__)
__all__.extend(flash_initializer.__all__)
__all__.extend(ncp_flash.__all__)
