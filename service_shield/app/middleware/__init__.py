"""
Shield middleware package.
"""

from .shield import Shield, ShieldOptions, shield, shield_debug, shield_forbidden

__all__ = ["Shield", "ShieldOptions", "shield", "shield_debug", "shield_forbidden"]
