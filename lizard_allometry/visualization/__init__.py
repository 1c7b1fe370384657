"""
Visualization module for lizard allometry.

Provides fitted-curve plots and the rendered HTML report.
"""

from .allometry_plots import AllometryPlotter
from .report import ReportRenderer, parameter_table, format_p_value

__all__ = [
    "AllometryPlotter",
    "ReportRenderer",
    "parameter_table",
    "format_p_value",
]
