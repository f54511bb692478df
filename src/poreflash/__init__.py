"""   poreflash.

Root directory for the poreflash package. Contains the following sub-packages:

ad: Forward-mode automatic differentiation for local systems of equations.

compositional: Fluid states, fluid systems and the local flash.

params: Material laws and heat conduction laws.

models: Problem base class, element contexts, extension modules, volume variables and
the flash-based model.

io: Collection of per-dof output fields.

applications: Complete problem setups.


isort:skip_file

"""

import os
from pathlib import Path
import configparser


__version__ = "0.1.0"

# Try to read the config file from the directory where python process was launched
try:
    cwd = Path(os.getcwd())
    pth = cwd / Path("poreflash.cfg")
    cfg = configparser.ConfigParser()
    cfg.read(pth)
    config = dict(cfg)
except (OSError, configparser.Error):
    # the assumption is that no configurations are given
    config = {}

# ------------------------------------
# Simplified namespaces. The rule of thumb is that classes and modules that a
# user can be exposed to should have a shortcut here.

from poreflash.utils.common_constants import *
from poreflash.utils.poreflash_types import *

from poreflash import ad

# Compositional
from poreflash import compositional
from poreflash.compositional.states import FluidState
from poreflash.compositional.fluid_system import (
    ParameterCache,
    FluidSystem,
    WaterGasFluidSystem,
)
from poreflash.compositional.utils import (
    CompositionalModellingError,
    FlashConvergenceFailure,
)
from poreflash.compositional.flash import NcpFlash, flash_tolerance

# Parameters
from poreflash.params.material_laws import (
    BrooksCorey,
    BrooksCoreyParams,
    NullMaterial,
)
from poreflash.params.heat_conduction import Somerton, SomertonParams

# Models
from poreflash.models.problem import MultiPhaseBaseProblem
from poreflash.models.element_context import ElementContext, ThermodynamicHintCache
from poreflash.models.volume_variables import FlashVolumeVariables
from poreflash.models.flash_model import FlashModel
from poreflash.models import extensions

# I/O
from poreflash.io.field_output import collect_fields

from poreflash.applications.injection_problem import InjectionProblem
