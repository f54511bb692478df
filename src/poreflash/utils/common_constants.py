"""
The module is intended to give access to a set of unified keywords and constants.

To access the quantities, invoke pf.KEY.

"""

""" Physical constants """
# Magnitude of the gravitational acceleration [m / s^2]
GRAVITY_ACCELERATION = 9.81

""" Global keywords """
# Used in parameter dictionaries to identify parameters of the local flash
FLASH_PARAMS = "flash_params"

# Used in parameter dictionaries to identify solver parameters of the local flash
SOLVER_PARAMS = "solver_params"
