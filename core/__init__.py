"""
Core Components.

Structure:
    models/: Pure data structures (no business logic)
    logic/: Pure calculations and geometry
"""

from . import models
from . import logic

__all__ = ['models', 'logic']
