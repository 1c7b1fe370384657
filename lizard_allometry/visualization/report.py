"""
HTML report for the lizard allometry study.

Reads a completed AllometryAnalysis and the saved figure files; performs no
fitting of its own.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

import pandas as pd
from jinja2 import Environment, PackageLoader

from ..analysis.allometry import FittedModel
from ..analysis.results_analyzer import AllometryAnalysis, AllometryAnalyzer


logger = logging.getLogger(__name__)


def format_p_value(p: float) -> str:
    if p < 0.001:
        return "< 0.001"
    return f"{p:.3f}"


def parameter_table(fitted: FittedModel) -> pd.DataFrame:
    """Display-ready parameter table."""
    table = fitted.parameter_table()
    table["estimate"] = table["estimate"].map(lambda v: f"{v:.4g}")
    table["std_error"] = table["std_error"].map(lambda v: f"{v:.4g}")
    table["statistic"] = table["statistic"].map(lambda v: f"{v:.3f}")
    table["p_value"] = table["p_value"].map(format_p_value)
    return table.rename(columns={
        "term": "Parameter",
        "estimate": "Estimate",
        "std_error": "Std. error",
        "statistic": "t statistic",
        "p_value": "p-value",
    })


class ReportRenderer:
    """
    Renders the analysis as a standalone HTML document.
    """

    TEMPLATE = "report.html.j2"

    def __init__(self, title: str = "Lizard weight allometry"):
        self.title = title
        self.env = Environment(
            loader=PackageLoader("lizard_allometry", "visualization/templates"),
            autoescape=True,
        )

    @staticmethod
    def _table_html(fitted: FittedModel) -> str:
        return parameter_table(fitted).to_html(index=False, classes="params", border=0)

    def narrative(self, analysis: AllometryAnalysis) -> Dict[str, str]:
        """Narrative paragraphs keyed by section."""
        general = analysis.general_fit
        subset = analysis.subset_fit
        comparison = analysis.comparison
        selection = " ".join(p for p in (analysis.species, analysis.sex) if p) or "all"

        intro = (
            f"Body weight was modelled as W = a * SVL^b for {len(analysis.observations)} "
            f"lizards. Starting values came from a linear regression of ln(W) on ln(SVL); "
            f"the parameters were then refined by non-linear least squares."
        )
        general_text = (
            f"Across all species and both sexes the fitted model is "
            f"W = {general.a:.4g} * SVL^{general.b:.3f} "
            f"(residual standard error {general.residual_std_error:.3f} g on "
            f"{general.degrees_of_freedom} degrees of freedom)."
        )
        subset_text = (
            f"Fitting only the {selection} subset ({len(analysis.subset)} lizards) gives "
            f"W = {subset.a:.4g} * SVL^{subset.b:.3f} "
            f"(residual standard error {subset.residual_std_error:.3f} g on "
            f"{subset.degrees_of_freedom} degrees of freedom)."
        )
        if comparison.better_model == comparison.subset_name:
            verdict = "the subset-specific model fits its own subset better"
        elif comparison.better_model == comparison.general_name:
            verdict = "the general model fits the subset better"
        else:
            verdict = "both models fit the subset equally well"
        comparison_text = (
            f"On the {selection} subset the general model has an RMSE of "
            f"{comparison.general_rmse:.3f} g and the subset model an RMSE of "
            f"{comparison.subset_rmse:.3f} g, so {verdict}."
        )
        return {
            "intro": intro,
            "general": general_text,
            "subset": subset_text,
            "comparison": comparison_text,
        }

    def render(
        self,
        analysis: AllometryAnalysis,
        figures: Optional[Dict[str, Path]] = None,
        output_path: Optional[Path] = None,
    ) -> str:
        """
        Render the report.

        Args:
            analysis: Completed analysis
            figures: Figure paths keyed by 'general_fit', 'comparison', 'residuals'
            output_path: Write the document here if given; image links are
                made relative to its directory

        Returns:
            The HTML document
        """
        base_dir = Path(output_path).parent if output_path else None

        figure_links = {}
        for key, path in (figures or {}).items():
            src = Path(path)
            if base_dir is not None:
                src = Path(os.path.relpath(src, base_dir))
            figure_links[key] = src.as_posix()

        summary = AllometryAnalyzer.summarize_observations(analysis.observations)

        template = self.env.get_template(self.TEMPLATE)
        document = template.render(
            title=self.title,
            narrative=self.narrative(analysis),
            summary_table=summary.to_html(
                index=False, classes="params", border=0, float_format=lambda v: f"{v:.2f}"
            ),
            general_table=self._table_html(analysis.general_fit),
            subset_table=self._table_html(analysis.subset_fit),
            figures=figure_links,
        )

        if output_path is not None:
            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(document, encoding="utf-8")
            logger.info(f"Report written to {output_path}")

        return document
