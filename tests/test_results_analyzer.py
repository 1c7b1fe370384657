"""Tests for the end-to-end analysis and its exports."""

import json
from pathlib import Path

import pytest
import numpy as np
import pandas as pd

from lizard_allometry.config import load_config
from lizard_allometry.data.data_loader import EmptySubsetError, LizardDataLoader
from lizard_allometry.analysis.allometry import AllometryFitter
from lizard_allometry.analysis.results_analyzer import AllometryAnalyzer, AllometryAnalysis


class TestAllometryAnalyzer:
    """Tests for the general vs subset comparison."""

    def test_run(self, noisy_observations):
        analysis = AllometryAnalyzer().run(noisy_observations, species="CNTI", sex="Male")

        assert isinstance(analysis, AllometryAnalysis)
        assert len(analysis.general_fit.observations) == 40
        assert len(analysis.subset) == 20
        assert len(analysis.general_predictions) == len(analysis.subset)
        assert len(analysis.subset_predictions) == len(analysis.subset)

    def test_subset_model_fits_its_subset_better(self, noisy_observations):
        analysis = AllometryAnalyzer().run(noisy_observations, species="CNTI", sex="Male")
        comparison = analysis.comparison

        assert comparison.subset_rmse <= comparison.general_rmse
        assert comparison.better_model == comparison.subset_name
        assert comparison.n_observations == 20

    def test_predictions_use_subset_lengths(self, noisy_observations):
        analysis = AllometryAnalyzer().run(noisy_observations, species="UTST", sex="Female")

        np.testing.assert_allclose(
            analysis.general_predictions,
            analysis.general_fit.predict(analysis.subset.lengths),
        )
        np.testing.assert_allclose(
            analysis.subset_predictions,
            analysis.subset_fit.predict(analysis.subset.lengths),
        )

    def test_empty_subset(self, noisy_observations):
        with pytest.raises(EmptySubsetError):
            AllometryAnalyzer().run(noisy_observations, species="CNTI", sex="Female")

    def test_custom_fitter(self, noisy_observations):
        fitter = AllometryFitter(confidence_level=0.9)
        analysis = AllometryAnalyzer(fitter).run(noisy_observations, species="CNTI")

        ci = analysis.subset_fit.estimates[0].confidence_interval
        assert ci.confidence_level == 0.9

    def test_summarize_observations(self, mixed_observations):
        summary = AllometryAnalyzer.summarize_observations(mixed_observations)

        assert list(summary.columns) == ["species", "sex", "count", "mean_sv_length", "mean_weight"]
        assert summary["count"].sum() == 37
        row = summary[(summary["species"] == "CNTI") & (summary["sex"] == "Male")].iloc[0]
        assert row["count"] == 15
        assert row["mean_sv_length"] == pytest.approx(30.0)


class TestExport:
    """Tests for exporting analysis results."""

    @pytest.fixture
    def analysis(self, noisy_observations):
        return AllometryAnalyzer().run(noisy_observations, species="CNTI", sex="Male")

    def test_export_json(self, analysis, tmp_path):
        path = tmp_path / "out" / "analysis.json"
        AllometryAnalyzer().export_results(analysis, path, "json")

        data = json.loads(path.read_text())
        assert data["subset"]["species"] == "CNTI"
        assert data["subset"]["n_observations"] == 20
        assert [p["name"] for p in data["general_fit"]["parameters"]] == ["a", "b"]
        assert len(data["predictions"]["subset_model"]) == 20
        assert data["comparison"]["subset_rmse"] == pytest.approx(analysis.comparison.subset_rmse)

    def test_export_csv(self, analysis, tmp_path):
        path = tmp_path / "predictions.csv"
        AllometryAnalyzer().export_results(analysis, path, "csv")

        df = pd.read_csv(path)
        assert list(df.columns) == ["sv_length", "weight", "general_prediction", "subset_prediction"]
        assert len(df) == 20

    def test_unknown_format(self, analysis, tmp_path):
        with pytest.raises(ValueError):
            AllometryAnalyzer().export_results(analysis, tmp_path / "x.xml", "xml")


class TestBundledData:
    """Runs the shipped configuration against the sample dataset."""

    def test_sample_dataset(self):
        root = Path(__file__).parent.parent
        config = load_config(root / "config" / "analysis_config.yaml")
        loader = LizardDataLoader(config.columns, config.sex_labels, config.invalid_policy)
        observations = loader.load(root / config.data_file)

        analysis = AllometryAnalyzer().run(
            observations, species=config.subset_species, sex=config.subset_sex
        )

        assert len(observations) == 37
        assert len(analysis.subset) == 14
        assert 2.5 < analysis.subset_fit.b < 3.5
        assert analysis.comparison.subset_rmse <= analysis.comparison.general_rmse
