"""
Visualization modules for growth-rate expression analysis.
"""

from .plots import PlotGenerator
from .style import get_color_palette, setup_publication_style

__all__ = ["PlotGenerator", "get_color_palette", "setup_publication_style"]
