"""
Data Generation Module
"""
from .simulator import PLACES, TelecomSimulator, diurnal_factor

__all__ = [
    "PLACES",
    "TelecomSimulator",
    "diurnal_factor",
]
