"""Complete problem setups."""

__all__ = []

from . import injection_problem
from .injection_problem import *

__all__.extend(injection_problem.__all__)
