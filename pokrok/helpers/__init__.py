"""View-facing helper functions for Pokrok.

These helpers assemble engine results into the shapes day and week views
consume. They never re-implement scheduling rules.

Submodules:
    - day_view_helpers: Display vs. counted items and progress for a day

Usage:
    from .day_view_helpers import build_day_overview
"""

from . import day_view_helpers

__all__ = ["day_view_helpers"]
