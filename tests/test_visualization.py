"""Tests for plots and the rendered report."""

import pytest
import matplotlib.pyplot as plt

from lizard_allometry.analysis.results_analyzer import AllometryAnalyzer
from lizard_allometry.visualization.allometry_plots import AllometryPlotter
from lizard_allometry.visualization.report import (
    ReportRenderer,
    parameter_table,
    format_p_value,
)


@pytest.fixture
def analysis(noisy_observations):
    return AllometryAnalyzer().run(noisy_observations, species="CNTI", sex="Male")


class TestAllometryPlotter:
    """Tests for the matplotlib figures."""

    def test_plot_fit(self, analysis):
        fig, ax = AllometryPlotter().plot_fit(analysis.general_fit)

        labels = [t.get_text() for t in ax.get_legend().get_texts()]
        assert "Male" in labels
        assert "Female" in labels
        assert any(label.startswith("Fitted") for label in labels)
        plt.close(fig)

    def test_plot_model_comparison(self, analysis):
        fig, ax = AllometryPlotter().plot_model_comparison(analysis)

        assert len(ax.get_lines()) == 2
        plt.close(fig)

    def test_plot_on_existing_axes(self, analysis):
        fig, axes = plt.subplots(1, 2)
        plotter = AllometryPlotter()

        returned_fig, ax = plotter.plot_residuals(analysis, ax=axes[1])

        assert returned_fig is fig
        assert ax is axes[1]
        plt.close(fig)

    def test_save_figure(self, analysis, tmp_path):
        plotter = AllometryPlotter()
        fig, _ = plotter.plot_fit(analysis.subset_fit)

        saved = plotter.save_figure(fig, tmp_path / "figures" / "subset_fit", ["png", "pdf"])

        assert [p.suffix for p in saved] == [".png", ".pdf"]
        assert all(p.exists() and p.stat().st_size > 0 for p in saved)


class TestReport:
    """Tests for the HTML report."""

    def test_format_p_value(self):
        assert format_p_value(0.0001) == "< 0.001"
        assert format_p_value(0.0456) == "0.046"

    def test_parameter_table(self, analysis):
        table = parameter_table(analysis.subset_fit)

        assert list(table.columns) == ["Parameter", "Estimate", "Std. error", "t statistic", "p-value"]
        assert list(table["Parameter"]) == ["a", "b"]

    def test_narrative_mentions_both_rmse(self, analysis):
        text = ReportRenderer().narrative(analysis)["comparison"]

        assert f"{analysis.comparison.general_rmse:.3f}" in text
        assert f"{analysis.comparison.subset_rmse:.3f}" in text
        assert "subset-specific model fits its own subset better" in text

    def test_render(self, analysis, tmp_path):
        plotter = AllometryPlotter()
        figures = {}
        for key, (fig, _) in (
            ("general_fit", plotter.plot_fit(analysis.general_fit)),
            ("comparison", plotter.plot_model_comparison(analysis)),
        ):
            figures[key] = plotter.save_figure(fig, tmp_path / "figures" / key)[0]

        output = tmp_path / "report.html"
        document = ReportRenderer("Test report").render(analysis, figures, output)

        assert output.exists()
        assert output.read_text(encoding="utf-8") == document
        assert "<h1>Test report</h1>" in document
        assert document.count('class="dataframe params"') == 3
        assert 'src="figures/general_fit.png"' in document
        assert 'src="figures/comparison.png"' in document
        assert "residuals.png" not in document

    def test_render_without_output(self, analysis):
        document = ReportRenderer().render(analysis)

        assert document.startswith("<!DOCTYPE html>")
        assert "<img" not in document

    def test_render_escapes_title(self, analysis):
        document = ReportRenderer("Males & <females>").render(analysis)

        assert "<h1>Males &amp; &lt;females&gt;</h1>" in document
        assert "<females>" not in document
        assert document.count('class="dataframe params"') == 3
