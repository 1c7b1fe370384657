"""
Lizard Allometry Analysis
=========================

This package fits weight as a power function of snout-to-vent length and
compares a population-wide model against a species/sex-specific one.

Modules:
    data: Observation records and the CSV loader
    analysis: Log-linearized starting values, non-linear fitting, RMSE
    visualization: Fitted-curve plots and the rendered HTML report
"""

__version__ = "1.0.0"
__author__ = "Research Team"

from . import data
from . import analysis
from . import visualization
