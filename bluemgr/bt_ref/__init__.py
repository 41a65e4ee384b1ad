"""
Bluetooth reference data and constants.
"""

from . import constants

__all__ = ["constants"]
