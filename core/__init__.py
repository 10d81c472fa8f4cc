"""
Core Envelope Domain.

Structure:
    models/: Pure data structures (no business logic)
    logic/: Business logic separated from models (state machine)
"""

from . import models
from . import logic

__all__ = [
    'models',
    'logic',
]
