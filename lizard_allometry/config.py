"""
Configuration for the lizard allometry analysis.
"""

import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

import yaml

from .data.data_loader import DEFAULT_COLUMNS, DEFAULT_SEX_LABELS


logger = logging.getLogger(__name__)


@dataclass
class AnalysisConfig:
    """Configuration for one analysis run."""
    data_file: str = "data/lizards.csv"
    delimiter: str = ","
    columns: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLUMNS))
    sex_labels: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SEX_LABELS))
    invalid_policy: str = "drop"
    subset_species: Optional[str] = "CNTI"
    subset_sex: Optional[str] = "Male"
    tolerance: float = 1e-8
    max_iterations: int = 50
    confidence_level: float = 0.95
    figure_formats: List[str] = field(default_factory=lambda: ["png"])
    report_title: str = "Lizard weight allometry"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisConfig":
        """
        Build from the nested YAML layout.

        Unknown keys are ignored with a warning.
        """
        data = data or {}
        known = {
            "analysis": ["report_title"],
            "data": ["data_file", "delimiter", "columns", "sex_labels", "invalid_policy"],
            "subset": ["species", "sex"],
            "solver": ["tolerance", "max_iterations", "confidence_level"],
            "output": ["figure_formats"],
        }
        kwargs: Dict[str, Any] = {}
        for section, keys in known.items():
            values = data.get(section) or {}
            for key, value in values.items():
                if key not in keys:
                    logger.warning(f"Ignoring unknown config key: {section}.{key}")
                    continue
                target = f"subset_{key}" if section == "subset" else key
                kwargs[target] = value
        for section in data:
            if section not in known:
                logger.warning(f"Ignoring unknown config section: {section}")

        if "columns" in kwargs:
            kwargs["columns"] = {**DEFAULT_COLUMNS, **kwargs["columns"]}
        for key, cast in (("tolerance", float), ("confidence_level", float), ("max_iterations", int)):
            if key in kwargs:
                kwargs[key] = cast(kwargs[key])
        return cls(**kwargs)


def load_config(config_path: Union[str, Path]) -> AnalysisConfig:
    """Load configuration from YAML file, falling back to defaults if absent."""
    config_path = Path(config_path)
    if not config_path.exists():
        logger.warning(f"Config not found at {config_path}, using defaults")
        return AnalysisConfig()

    with open(config_path) as f:
        return AnalysisConfig.from_dict(yaml.safe_load(f))
