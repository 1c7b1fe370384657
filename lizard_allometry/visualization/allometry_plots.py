"""
Allometry plots for the lizard study.

Provides matplotlib-based visualizations of fitted weight-length curves.
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from matplotlib.axes import Axes
from typing import List, Optional, Tuple
from pathlib import Path

from ..analysis.allometry import FittedModel
from ..analysis.results_analyzer import AllometryAnalysis
from ..data.data_loader import ObservationSet


class AllometryPlotter:
    """
    Plotter for weight vs snout-to-vent length figures.
    """

    COLORS = {
        "primary": "#2E86AB",
        "secondary": "#A23B72",
        "tertiary": "#F18F01",
        "quaternary": "#C73E1D",
        "neutral": "#7F8C8D",
    }

    SEX_COLORS = {
        "Female": "#A23B72",
        "Male": "#2E86AB",
    }

    STYLE = {
        "font.family": "sans-serif",
        "font.sans-serif": ["Arial", "Helvetica", "DejaVu Sans"],
        "font.size": 10,
        "axes.labelsize": 11,
        "axes.titlesize": 12,
        "xtick.labelsize": 9,
        "ytick.labelsize": 9,
        "legend.fontsize": 9,
        "figure.dpi": 150,
        "savefig.dpi": 300,
        "axes.linewidth": 1.0,
        "axes.spines.top": False,
        "axes.spines.right": False,
    }

    XLABEL = "Snout-to-vent length (mm)"
    YLABEL = "Body weight (g)"

    def __init__(self):
        plt.rcParams.update(self.STYLE)

    def _smooth_curve(self, fitted: FittedModel, lengths: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        x_smooth = np.linspace(lengths.min(), lengths.max(), 200)
        return x_smooth, fitted.predict(x_smooth)

    def plot_fit(
        self,
        fitted: FittedModel,
        observations: Optional[ObservationSet] = None,
        title: Optional[str] = None,
        ax: Optional[Axes] = None,
    ) -> Tuple[Figure, Axes]:
        """
        Plot observed weights coloured by sex with the fitted curve.

        Args:
            fitted: Fitted model to overlay
            observations: Points to draw (the fitted dataset if None)
            title: Plot title
            ax: Optional axes to plot on

        Returns:
            Figure and Axes objects
        """
        if ax is None:
            fig, ax = plt.subplots(figsize=(8, 5))
        else:
            fig = ax.figure

        observations = observations if observations is not None else fitted.observations
        df = observations.to_dataframe()

        for i, (sex, group) in enumerate(df.groupby("sex")):
            ax.scatter(
                group["sv_length"], group["weight"],
                s=25, alpha=0.6,
                c=self.SEX_COLORS.get(sex, list(self.COLORS.values())[i % len(self.COLORS)]),
                edgecolors="white", linewidth=0.5,
                label=sex,
            )

        x_smooth, y_smooth = self._smooth_curve(fitted, observations.lengths)
        ax.plot(
            x_smooth, y_smooth,
            color=self.COLORS["tertiary"], linewidth=2,
            label=f"Fitted: {fitted.a:.3g} * SVL^{fitted.b:.3f}",
        )

        ax.set_xlabel(self.XLABEL)
        ax.set_ylabel(self.YLABEL)
        ax.set_title(title or f"Allometric fit: {fitted.dataset_name}")
        ax.legend(loc="upper left", frameon=True, framealpha=0.9)
        ax.grid(True, alpha=0.3, linestyle="--")

        fig.tight_layout()
        return fig, ax

    def plot_model_comparison(
        self,
        analysis: AllometryAnalysis,
        title: Optional[str] = None,
        ax: Optional[Axes] = None,
    ) -> Tuple[Figure, Axes]:
        """
        Plot the subset's observations with both fitted curves.

        Args:
            analysis: Completed analysis
            title: Plot title
            ax: Optional axes to plot on

        Returns:
            Figure and Axes objects
        """
        if ax is None:
            fig, ax = plt.subplots(figsize=(8, 5))
        else:
            fig = ax.figure

        subset = analysis.subset
        comparison = analysis.comparison

        ax.scatter(
            subset.lengths, subset.weights,
            s=30, c=self.COLORS["neutral"], alpha=0.7,
            edgecolors="white", linewidth=0.5,
            label="Observed", zorder=5,
        )

        x_smooth, general_curve = self._smooth_curve(analysis.general_fit, subset.lengths)
        _, subset_curve = self._smooth_curve(analysis.subset_fit, subset.lengths)

        ax.plot(
            x_smooth, general_curve,
            color=self.COLORS["primary"], linewidth=2, linestyle="--",
            label=f"General model (RMSE {comparison.general_rmse:.2f})",
        )
        ax.plot(
            x_smooth, subset_curve,
            color=self.COLORS["quaternary"], linewidth=2,
            label=f"Subset model (RMSE {comparison.subset_rmse:.2f})",
        )

        ax.set_xlabel(self.XLABEL)
        ax.set_ylabel(self.YLABEL)
        ax.set_title(title or f"General vs subset model: {subset.name}")
        ax.legend(loc="upper left", frameon=True, framealpha=0.9)
        ax.grid(True, alpha=0.3, linestyle="--")

        fig.tight_layout()
        return fig, ax

    def plot_residuals(
        self,
        analysis: AllometryAnalysis,
        ax: Optional[Axes] = None,
    ) -> Tuple[Figure, Axes]:
        """Residuals of both models against length on the subset."""
        if ax is None:
            fig, ax = plt.subplots(figsize=(8, 4))
        else:
            fig = ax.figure

        lengths = analysis.subset.lengths
        actual = analysis.subset.weights

        ax.axhline(0, color="black", linewidth=0.8)
        ax.scatter(
            lengths, actual - analysis.general_predictions,
            s=20, c=self.COLORS["primary"], alpha=0.7, marker="o",
            label="General model",
        )
        ax.scatter(
            lengths, actual - analysis.subset_predictions,
            s=20, c=self.COLORS["quaternary"], alpha=0.7, marker="^",
            label="Subset model",
        )

        ax.set_xlabel(self.XLABEL)
        ax.set_ylabel("Residual (g)")
        ax.set_title(f"Residuals on {analysis.subset.name}")
        ax.legend(loc="best", frameon=True, framealpha=0.9)
        ax.grid(True, alpha=0.3, linestyle="--")

        fig.tight_layout()
        return fig, ax

    def save_figure(
        self,
        fig: Figure,
        path: Path,
        formats: Optional[List[str]] = None,
    ) -> List[Path]:
        """Save figure in the given formats and close it."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        saved = []
        for fmt in formats or ["png"]:
            save_path = path.with_suffix(f".{fmt}")
            fig.savefig(
                save_path,
                format=fmt,
                bbox_inches="tight",
                facecolor="white",
                edgecolor="none",
            )
            saved.append(save_path)

        plt.close(fig)
        return saved
