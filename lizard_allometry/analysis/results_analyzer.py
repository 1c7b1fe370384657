"""
Results analyzer for the lizard allometry study.

Chains the stages explicitly: observations -> population-wide fit ->
subset fit -> predictions on the subset -> RMSE comparison.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional

import numpy as np
import pandas as pd

from ..data.data_loader import ObservationSet
from .allometry import AllometryFitter, AllometricModel, FittedModel, POWER_LAW
from .statistics import ModelComparison, compare_models


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllometryAnalysis:
    """Everything the report needs, as plain data."""
    observations: ObservationSet
    subset: ObservationSet
    general_fit: FittedModel
    subset_fit: FittedModel
    general_predictions: np.ndarray
    subset_predictions: np.ndarray
    comparison: ModelComparison
    species: Optional[str] = None
    sex: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataset": self.observations.name,
            "n_observations": len(self.observations),
            "subset": {
                "name": self.subset.name,
                "species": self.species,
                "sex": self.sex,
                "n_observations": len(self.subset),
            },
            "general_fit": self.general_fit.to_dict(),
            "subset_fit": self.subset_fit.to_dict(),
            "predictions": {
                "sv_length": self.subset.lengths,
                "actual_weight": self.subset.weights,
                "general_model": self.general_predictions,
                "subset_model": self.subset_predictions,
            },
            "comparison": self.comparison.to_dict(),
        }

    def predictions_frame(self) -> pd.DataFrame:
        """Per-observation predictions of both models on the subset."""
        return pd.DataFrame({
            "sv_length": self.subset.lengths,
            "weight": self.subset.weights,
            "general_prediction": self.general_predictions,
            "subset_prediction": self.subset_predictions,
        })


class AllometryAnalyzer:
    """
    Runs the population-wide vs subset-specific comparison.
    """

    def __init__(
        self,
        fitter: Optional[AllometryFitter] = None,
        model: AllometricModel = POWER_LAW,
    ):
        self.fitter = fitter or AllometryFitter()
        self.model = model

    def run(
        self,
        observations: ObservationSet,
        species: Optional[str] = None,
        sex: Optional[str] = None,
    ) -> AllometryAnalysis:
        """
        Fit both models and compare them on the subset.

        Args:
            observations: Full cleaned dataset
            species: Species code selecting the subset
            sex: Sex label selecting the subset

        Returns:
            AllometryAnalysis
        """
        general_fit = self.fitter.fit(observations, self.model)

        subset = observations.filter(species=species, sex=sex)
        subset_fit = self.fitter.fit(subset, self.model)

        general_predictions = general_fit.predict(subset.lengths)
        subset_predictions = subset_fit.predict(subset.lengths)

        comparison = compare_models(
            subset.weights,
            general_predictions,
            subset_predictions,
            general_name=f"{observations.name} model",
            subset_name=f"{subset.name} model",
        )
        logger.info(
            f"RMSE on '{subset.name}': general={comparison.general_rmse:.4f}, "
            f"subset={comparison.subset_rmse:.4f} -> {comparison.better_model}"
        )

        return AllometryAnalysis(
            observations=observations,
            subset=subset,
            general_fit=general_fit,
            subset_fit=subset_fit,
            general_predictions=general_predictions,
            subset_predictions=subset_predictions,
            comparison=comparison,
            species=species,
            sex=sex,
        )

    @staticmethod
    def summarize_observations(observations: ObservationSet) -> pd.DataFrame:
        """Counts and mean measurements per species and sex."""
        df = observations.to_dataframe()
        if df.empty:
            return pd.DataFrame(
                columns=["species", "sex", "count", "mean_sv_length", "mean_weight"]
            )
        return (
            df.groupby(["species", "sex"])
            .agg(
                count=("weight", "size"),
                mean_sv_length=("sv_length", "mean"),
                mean_weight=("weight", "mean"),
            )
            .reset_index()
        )

    def export_results(
        self,
        analysis: AllometryAnalysis,
        output_path: Path,
        format: str = "json",
    ) -> None:
        """
        Export analysis results.

        Args:
            analysis: Completed analysis
            output_path: Output file path
            format: 'json' or 'csv'
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if format == "json":
            def convert(obj):
                if isinstance(obj, np.ndarray):
                    return obj.tolist()
                elif isinstance(obj, (np.integer, np.floating)):
                    return float(obj)
                elif hasattr(obj, "to_dict"):
                    return obj.to_dict()
                return obj

            def recursive_convert(d):
                if isinstance(d, dict):
                    return {k: recursive_convert(v) for k, v in d.items()}
                elif isinstance(d, list):
                    return [recursive_convert(v) for v in d]
                else:
                    return convert(d)

            with open(output_path, "w") as f:
                json.dump(recursive_convert(analysis.to_dict()), f, indent=2)

        elif format == "csv":
            analysis.predictions_frame().to_csv(output_path, index=False)
        else:
            raise ValueError(f"Unknown format: {format}")

        logger.info(f"Exported {format} results to {output_path}")
