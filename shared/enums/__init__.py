"""
Enums for the roulette feed services
"""

from .spin_color import SpinColor

__all__ = [
    "SpinColor",
]
