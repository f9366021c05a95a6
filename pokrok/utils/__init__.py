"""Pure Python utilities for Pokrok.

Submodules:
    - dt_utils: Local calendar-day normalization and date arithmetic
    - math_utils: Half-up percentage rounding and numeric helpers

Usage:
    from . import dt_utils
    from .math_utils import calculate_percentage
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
