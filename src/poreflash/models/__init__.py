"""Model components assembled around the volume variables: the problem base class,
element contexts with thermodynamic hints, extension modules, the local linearizer and
the flash-based compositional model."""

__all__ = []

from . import (
    element_context,
    extensions,
    flash_model,
    linearizer,
    problem,
    volume_variables,
)
from .element_context import *
from .extensions import *
from .flash_model import *
from .linearizer import *
from .problem import *
from .volume_variables import *

__all__.extend(problem.__all__)
__all__.extend(element_context.__all__)
__all__.extend(extensions.__all__)
__all__.extend(volume_variables.__all__)
__all__.extend(linearizer.__all__)
__all__.extend(flash_model.__all__)
