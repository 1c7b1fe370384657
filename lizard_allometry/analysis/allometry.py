"""
Allometric curve fitting for lizard morphometrics.

Fits weight = a * length^b by non-linear least squares, starting from the
estimates of a log-log linear regression.
"""

import logging
import warnings
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple, Callable, Sequence

import numpy as np
import pandas as pd
from scipy import optimize
from scipy import stats

from ..data.data_loader import ObservationSet, InvalidObservationError, EmptySubsetError
from .statistics import ParameterEstimate, parameter_inference, r_squared


logger = logging.getLogger(__name__)


class InsufficientDataError(ValueError):
    """Raised when there are too few usable observations to estimate parameters."""


class FitConvergenceError(RuntimeError):
    """Raised when the non-linear solver does not reach a usable optimum."""

    def __init__(self, reason: str, dataset: str = ""):
        self.reason = reason
        self.dataset = dataset
        where = f" on '{dataset}'" if dataset else ""
        super().__init__(f"Fit did not converge{where}: {reason}")


def power_law(length, a, b):
    """weight = a * length^b"""
    return a * np.power(length, b)


@dataclass(frozen=True)
class AllometricModel:
    """A parametric model: a pure function of (length, *params) and its parameter names."""
    name: str
    function: Callable
    param_names: Tuple[str, ...]
    formula: str = ""

    @property
    def n_params(self) -> int:
        return len(self.param_names)

    def evaluate(self, lengths, params: Dict[str, float]) -> np.ndarray:
        lengths = np.asarray(lengths, dtype=float)
        return self.function(lengths, *[params[name] for name in self.param_names])


POWER_LAW = AllometricModel(
    name="power_law",
    function=power_law,
    param_names=("a", "b"),
    formula="weight = a * sv_length^b",
)


@dataclass(frozen=True)
class FittedModel:
    """An AllometricModel bound to parameters estimated from one dataset."""
    model: AllometricModel
    estimates: Tuple[ParameterEstimate, ...]
    observations: ObservationSet
    initial_guess: Dict[str, float]
    residual_std_error: float
    degrees_of_freedom: int
    n_function_evals: int
    solver_message: str = ""
    residuals: np.ndarray = field(default_factory=lambda: np.array([]), repr=False, compare=False)

    @property
    def parameters(self) -> Dict[str, float]:
        return {est.name: est.estimate for est in self.estimates}

    @property
    def a(self) -> float:
        return self.parameters["a"]

    @property
    def b(self) -> float:
        return self.parameters["b"]

    @property
    def dataset_name(self) -> str:
        return self.observations.name

    @property
    def rmse(self) -> float:
        return float(np.sqrt(np.mean(self.residuals ** 2)))

    @property
    def r_squared(self) -> float:
        fitted = self.observations.weights - self.residuals
        return r_squared(self.observations.weights, fitted)

    def predict(self, lengths: Sequence[float]) -> np.ndarray:
        """Predicted weights for the given lengths, in input order."""
        return self.model.evaluate(lengths, self.parameters)

    def parameter_table(self) -> pd.DataFrame:
        """Parameter name, estimate, standard error, t statistic and p-value."""
        return pd.DataFrame(
            [
                {
                    "term": est.name,
                    "estimate": est.estimate,
                    "std_error": est.std_error,
                    "statistic": est.t_statistic,
                    "p_value": est.p_value,
                }
                for est in self.estimates
            ],
            columns=["term", "estimate", "std_error", "statistic", "p_value"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model.name,
            "formula": self.model.formula,
            "dataset": self.dataset_name,
            "n_observations": len(self.observations),
            "initial_guess": self.initial_guess,
            "parameters": [est.to_dict() for est in self.estimates],
            "residual_std_error": self.residual_std_error,
            "degrees_of_freedom": self.degrees_of_freedom,
            "n_function_evals": self.n_function_evals,
            "rmse": self.rmse,
            "r_squared": self.r_squared,
            "solver_message": self.solver_message,
        }


def _require_positive(lengths: np.ndarray, weights: np.ndarray) -> None:
    if lengths.size == 0:
        raise EmptySubsetError("Cannot estimate parameters from zero observations")
    if lengths.shape != weights.shape:
        raise ValueError("lengths and weights must be the same shape")
    if not (np.all(np.isfinite(lengths)) and np.all(np.isfinite(weights))):
        raise InvalidObservationError("Lengths and weights must be finite")
    if np.any(lengths <= 0) or np.any(weights <= 0):
        raise InvalidObservationError(
            "Lengths and weights must be strictly positive for the log transform"
        )


def log_linear_guess(lengths: Sequence[float], weights: Sequence[float]) -> Dict[str, float]:
    """
    Starting values from ln(weight) = ln(a) + b * ln(length).

    Args:
        lengths: Snout-to-vent lengths
        weights: Body weights

    Returns:
        {"a": exp(intercept), "b": slope}
    """
    lengths = np.asarray(lengths, dtype=float)
    weights = np.asarray(weights, dtype=float)
    _require_positive(lengths, weights)

    if lengths.size < 2:
        raise InsufficientDataError("Log-linear regression needs at least two observations")
    log_length = np.log(lengths)
    if np.ptp(log_length) == 0:
        raise InsufficientDataError("All lengths are identical; slope is undefined")

    result = stats.linregress(log_length, np.log(weights))
    return {"a": float(np.exp(result.intercept)), "b": float(result.slope)}


class AllometryFitter:
    """
    Non-linear least squares fitter for allometric models.

    Each call to fit is independent: starting values are always derived from
    the data being fit unless given explicitly.
    """

    def __init__(
        self,
        tolerance: float = 1e-8,
        max_iterations: int = 50,
        confidence_level: float = 0.95,
    ):
        """
        Args:
            tolerance: Relative tolerance on parameter change and sum of squares
            max_iterations: Iteration cap; the solver gets
                max_iterations * (n_params + 1) function evaluations
            confidence_level: Level of the parameter confidence intervals
        """
        if tolerance <= 0:
            raise ValueError("tolerance must be positive")
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.tolerance = tolerance
        self.max_iterations = max_iterations
        self.confidence_level = confidence_level

    def fit(
        self,
        observations: ObservationSet,
        model: AllometricModel = POWER_LAW,
        initial_guess: Optional[Dict[str, float]] = None,
    ) -> FittedModel:
        """
        Fit a model to a set of observations.

        Args:
            observations: Observations to fit
            model: Model whose function is minimized
            initial_guess: Starting values (log-linear estimates if None)

        Returns:
            FittedModel

        Raises:
            EmptySubsetError: if observations is empty
            InsufficientDataError: if there are not more observations than parameters
            FitConvergenceError: if the solver fails
        """
        x = observations.lengths
        y = observations.weights
        _require_positive(x, y)

        n = len(x)
        k = model.n_params
        if n <= k:
            raise InsufficientDataError(
                f"'{observations.name}' has {n} observations; need more than {k} "
                f"to estimate {list(model.param_names)}"
            )

        if initial_guess is None:
            initial_guess = log_linear_guess(x, y)
        p0 = [initial_guess[name] for name in model.param_names]
        logger.info(f"Fitting {model.name} to '{observations.name}' (n={n}) from {initial_guess}")

        max_evals = self.max_iterations * (k + 1)
        with warnings.catch_warnings():
            warnings.simplefilter("error", optimize.OptimizeWarning)
            try:
                popt, pcov, infodict, mesg, _ = optimize.curve_fit(
                    model.function,
                    x,
                    y,
                    p0=p0,
                    method="lm",
                    xtol=self.tolerance,
                    ftol=self.tolerance,
                    maxfev=max_evals,
                    full_output=True,
                )
            except optimize.OptimizeWarning as e:
                raise FitConvergenceError(f"singular gradient ({e})", observations.name) from e
            except RuntimeError as e:
                raise FitConvergenceError(str(e), observations.name) from e

        if not np.all(np.isfinite(popt)):
            raise FitConvergenceError(f"non-finite estimates {popt}", observations.name)
        if not np.all(np.isfinite(pcov)):
            raise FitConvergenceError("singular gradient", observations.name)

        residuals = y - model.function(x, *popt)
        dof = n - k
        residual_std_error = float(np.sqrt(np.sum(residuals ** 2) / dof))
        estimates = parameter_inference(
            model.param_names, popt, pcov, dof, self.confidence_level
        )

        for est in estimates:
            if est.estimate <= 0:
                logger.warning(
                    f"Fitted {est.name}={est.estimate:.4g} on '{observations.name}' "
                    f"is not positive; the allometric fit is physically implausible"
                )

        fitted = FittedModel(
            model=model,
            estimates=tuple(estimates),
            observations=observations,
            initial_guess=dict(initial_guess),
            residual_std_error=residual_std_error,
            degrees_of_freedom=dof,
            n_function_evals=int(infodict["nfev"]),
            solver_message=str(mesg),
            residuals=residuals,
        )
        logger.info(
            f"Converged on '{observations.name}' after {fitted.n_function_evals} evaluations: "
            + ", ".join(f"{e.name}={e.estimate:.6g} (SE {e.std_error:.3g})" for e in estimates)
        )
        return fitted

    def fit_subset(
        self,
        observations: ObservationSet,
        species: Optional[str] = None,
        sex: Optional[str] = None,
        model: AllometricModel = POWER_LAW,
    ) -> FittedModel:
        """Filter to one species/sex combination and fit only those rows."""
        subset = observations.filter(species=species, sex=sex)
        return self.fit(subset, model)
