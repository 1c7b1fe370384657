#!/usr/bin/env python3
"""
Main entry point for the lizard allometry report.

Usage:
    python run_analysis.py
    python run_analysis.py --config config/analysis_config.yaml
    python run_analysis.py --data path/to/lizards.csv --output-dir results
"""

import argparse
import sys
import logging
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from lizard_allometry.config import AnalysisConfig, load_config
from lizard_allometry.data import LizardDataLoader, ObservationSet, EmptySubsetError, InvalidObservationError
from lizard_allometry.analysis import (
    AllometryAnalyzer,
    AllometryAnalysis,
    AllometryFitter,
    FitConvergenceError,
    InsufficientDataError,
)
from lizard_allometry.visualization import AllometryPlotter, ReportRenderer


PROJECT_ROOT = Path(__file__).parent.parent


def setup_logging(log_file: Path = None, level: str = "INFO"):
    """Configure logging."""
    handlers = [logging.StreamHandler()]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def load_data(config: AnalysisConfig, data_path: Path) -> ObservationSet:
    """Load and validate the capture records."""
    logging.info(f"Loading observations from {data_path}")
    loader = LizardDataLoader(
        columns=config.columns,
        sex_labels=config.sex_labels,
        invalid_policy=config.invalid_policy,
    )
    return loader.load(data_path, sep=config.delimiter)


def run_analysis(config: AnalysisConfig, observations: ObservationSet) -> AllometryAnalysis:
    """Fit the general and subset models and compare them."""
    fitter = AllometryFitter(
        tolerance=config.tolerance,
        max_iterations=config.max_iterations,
        confidence_level=config.confidence_level,
    )
    analyzer = AllometryAnalyzer(fitter)
    return analyzer.run(observations, species=config.subset_species, sex=config.subset_sex)


def generate_figures(analysis: AllometryAnalysis, config: AnalysisConfig, output_dir: Path) -> dict:
    """Save the figures and return the PNG path of each."""
    logging.info("Generating figures...")
    plotter = AllometryPlotter()
    figure_dir = output_dir / "figures"
    formats = list(dict.fromkeys(["png"] + list(config.figure_formats)))

    figures = {}
    for key, (fig, _) in (
        ("general_fit", plotter.plot_fit(analysis.general_fit)),
        ("comparison", plotter.plot_model_comparison(analysis)),
        ("residuals", plotter.plot_residuals(analysis)),
    ):
        saved = plotter.save_figure(fig, figure_dir / key, formats)
        figures[key] = saved[0]

    logging.info(f"Figures saved: {[str(p) for p in figures.values()]}")
    return figures


def print_summary(analysis: AllometryAnalysis) -> None:
    comparison = analysis.comparison
    print("\n" + "=" * 60)
    print("LIZARD ALLOMETRY SUMMARY")
    print("=" * 60)
    for label, fitted in (("General", analysis.general_fit), ("Subset", analysis.subset_fit)):
        print(
            f"{label:<8} n={len(fitted.observations):<5} "
            f"a={fitted.a:.4g}  b={fitted.b:.4f}  RSE={fitted.residual_std_error:.3f}"
        )
    print(f"RMSE on {analysis.subset.name}:")
    print(f"  general model: {comparison.general_rmse:.4f}")
    print(f"  subset model:  {comparison.subset_rmse:.4f}")
    print(f"Better model: {comparison.better_model}")
    print("=" * 60 + "\n")


def main():
    parser = argparse.ArgumentParser(
        description="Fit weight = a * SVL^b to lizard records and render the report"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=PROJECT_ROOT / "config" / "analysis_config.yaml",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--data",
        type=Path,
        help="Data file (overrides data.data_file in the config)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=PROJECT_ROOT / "results",
        help="Output directory for results",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    args = parser.parse_args()

    args.output_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(args.output_dir / "analysis.log", args.log_level)

    config = load_config(args.config)
    data_path = args.data or Path(config.data_file)
    if not data_path.is_absolute() and not data_path.exists():
        data_path = PROJECT_ROOT / data_path

    try:
        observations = load_data(config, data_path)
        analysis = run_analysis(config, observations)
    except (FileNotFoundError, KeyError, InvalidObservationError) as e:
        logging.error(f"Could not load data: {e}")
        sys.exit(1)
    except (EmptySubsetError, InsufficientDataError, FitConvergenceError) as e:
        logging.error(f"Analysis failed: {e}")
        sys.exit(1)
    except ValueError as e:
        logging.error(f"Invalid configuration: {e}")
        sys.exit(1)

    analyzer = AllometryAnalyzer()
    analyzer.export_results(analysis, args.output_dir / "analysis.json", "json")
    analyzer.export_results(analysis, args.output_dir / "predictions.csv", "csv")

    figures = generate_figures(analysis, config, args.output_dir)
    ReportRenderer(config.report_title).render(
        analysis, figures, args.output_dir / "report.html"
    )

    print_summary(analysis)
    logging.info("Analysis pipeline completed successfully!")


if __name__ == "__main__":
    main()
