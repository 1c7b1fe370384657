"""
Statistical utilities for allometric model evaluation.

Provides parameter inference from a fitted covariance matrix and the
root-mean-square error comparison between competing models.
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Dict, Any, Sequence
from scipy import stats


@dataclass(frozen=True)
class ConfidenceInterval:
    """Confidence interval result."""
    lower: float
    upper: float
    point_estimate: float
    confidence_level: float
    method: str

    @property
    def width(self) -> float:
        return self.upper - self.lower

    @property
    def margin_of_error(self) -> float:
        return self.width / 2

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lower": self.lower,
            "upper": self.upper,
            "point_estimate": self.point_estimate,
            "confidence_level": self.confidence_level,
            "method": self.method,
            "width": self.width,
        }


@dataclass(frozen=True)
class ParameterEstimate:
    """Point estimate of one model parameter with its t test."""
    name: str
    estimate: float
    std_error: float
    t_statistic: float
    p_value: float
    confidence_interval: ConfidenceInterval

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "estimate": self.estimate,
            "std_error": self.std_error,
            "t_statistic": self.t_statistic,
            "p_value": self.p_value,
            "confidence_interval": self.confidence_interval.to_dict(),
        }


@dataclass(frozen=True)
class ModelComparison:
    """RMSE of two models evaluated on the same observations."""
    general_name: str
    subset_name: str
    general_rmse: float
    subset_rmse: float
    n_observations: int

    @property
    def better_model(self) -> str:
        if self.subset_rmse < self.general_rmse:
            return self.subset_name
        if self.general_rmse < self.subset_rmse:
            return self.general_name
        return "tie"

    @property
    def rmse_reduction(self) -> float:
        """How much lower the subset model's RMSE is (negative if higher)."""
        return self.general_rmse - self.subset_rmse

    def to_dict(self) -> Dict[str, Any]:
        return {
            "general_name": self.general_name,
            "subset_name": self.subset_name,
            "general_rmse": self.general_rmse,
            "subset_rmse": self.subset_rmse,
            "n_observations": self.n_observations,
            "better_model": self.better_model,
            "rmse_reduction": self.rmse_reduction,
        }


def rmse(actual: Sequence[float], predicted: Sequence[float]) -> float:
    """Root-mean-square error, sqrt(mean((predicted - actual)^2))."""
    actual = np.asarray(actual, dtype=float)
    predicted = np.asarray(predicted, dtype=float)
    if actual.shape != predicted.shape:
        raise ValueError("Series must be same length")
    if actual.size == 0:
        raise ValueError("Series cannot be empty")
    return float(np.sqrt(np.mean((predicted - actual) ** 2)))


def compare_models(
    actual: Sequence[float],
    general_predictions: Sequence[float],
    subset_predictions: Sequence[float],
    general_name: str = "general",
    subset_name: str = "subset",
) -> ModelComparison:
    """
    Compare two sets of predictions against the same actual values.

    Args:
        actual: Observed weights of the subset
        general_predictions: Predictions of the population-wide model
        subset_predictions: Predictions of the subset-specific model
        general_name: Label for the population-wide model
        subset_name: Label for the subset-specific model

    Returns:
        ModelComparison holding both RMSE values
    """
    return ModelComparison(
        general_name=general_name,
        subset_name=subset_name,
        general_rmse=rmse(actual, general_predictions),
        subset_rmse=rmse(actual, subset_predictions),
        n_observations=len(actual),
    )


def r_squared(actual: Sequence[float], predicted: Sequence[float]) -> float:
    actual = np.asarray(actual, dtype=float)
    predicted = np.asarray(predicted, dtype=float)
    ss_res = np.sum((actual - predicted) ** 2)
    ss_tot = np.sum((actual - np.mean(actual)) ** 2)
    return float(1 - ss_res / ss_tot) if ss_tot > 0 else 0.0


def parameter_inference(
    names: Sequence[str],
    estimates: Sequence[float],
    covariance: np.ndarray,
    dof: int,
    confidence_level: float = 0.95,
) -> List[ParameterEstimate]:
    """
    Standard errors, two-sided t tests and confidence intervals.

    Args:
        names: Parameter names
        estimates: Fitted parameter values
        covariance: Parameter covariance matrix, already scaled by the
            residual variance
        dof: Residual degrees of freedom
        confidence_level: Confidence level (0-1)

    Returns:
        One ParameterEstimate per parameter, in order
    """
    if dof < 1:
        raise ValueError(f"Need at least one residual degree of freedom, got {dof}")

    std_errors = np.sqrt(np.diag(np.asarray(covariance, dtype=float)))
    t_crit = stats.t.ppf(1 - (1 - confidence_level) / 2, dof)

    results = []
    for name, estimate, se in zip(names, estimates, std_errors):
        estimate = float(estimate)
        se = float(se)
        if se > 0:
            t_stat = estimate / se
            p_value = float(2 * stats.t.sf(abs(t_stat), dof))
        else:
            # Exact fit: the estimate is known without error
            t_stat = float(np.copysign(np.inf, estimate)) if estimate != 0 else 0.0
            p_value = 0.0 if estimate != 0 else 1.0
        results.append(
            ParameterEstimate(
                name=name,
                estimate=estimate,
                std_error=se,
                t_statistic=float(t_stat),
                p_value=p_value,
                confidence_interval=ConfidenceInterval(
                    lower=estimate - t_crit * se,
                    upper=estimate + t_crit * se,
                    point_estimate=estimate,
                    confidence_level=confidence_level,
                    method="t",
                ),
            )
        )
    return results
