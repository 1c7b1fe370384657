"""
Data module for lizard allometry analysis.

Provides the observation records and the loader that validates them.
"""

from .data_loader import (
    Observation,
    ObservationSet,
    LizardDataLoader,
    InvalidObservationError,
    EmptySubsetError,
    DEFAULT_COLUMNS,
    DEFAULT_SEX_LABELS,
)

__all__ = [
    "Observation",
    "ObservationSet",
    "LizardDataLoader",
    "InvalidObservationError",
    "EmptySubsetError",
    "DEFAULT_COLUMNS",
    "DEFAULT_SEX_LABELS",
]
