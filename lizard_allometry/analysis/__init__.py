"""
Analysis module for lizard allometry.

Provides log-linear starting values, non-linear least squares fitting,
parameter inference and model comparison.
"""

from .statistics import (
    ConfidenceInterval,
    ParameterEstimate,
    ModelComparison,
    rmse,
    r_squared,
    compare_models,
    parameter_inference,
)
from .allometry import (
    AllometricModel,
    AllometryFitter,
    FittedModel,
    FitConvergenceError,
    InsufficientDataError,
    POWER_LAW,
    power_law,
    log_linear_guess,
)
from .results_analyzer import AllometryAnalyzer, AllometryAnalysis

__all__ = [
    "ConfidenceInterval",
    "ParameterEstimate",
    "ModelComparison",
    "rmse",
    "r_squared",
    "compare_models",
    "parameter_inference",
    "AllometricModel",
    "AllometryFitter",
    "FittedModel",
    "FitConvergenceError",
    "InsufficientDataError",
    "POWER_LAW",
    "power_law",
    "log_linear_guess",
    "AllometryAnalyzer",
    "AllometryAnalysis",
]
