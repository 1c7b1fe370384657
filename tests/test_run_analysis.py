"""Tests for the command-line entry point."""

import importlib.util
import sys
from pathlib import Path

import pytest


SCRIPT = Path(__file__).parent.parent / "scripts" / "run_analysis.py"


@pytest.fixture
def run_analysis():
    spec = importlib.util.spec_from_file_location("run_analysis", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def write_config(path, data_file, invalid_policy="drop", tolerance="1.0e-8"):
    path.write_text(
        "data:\n"
        f"  data_file: {data_file}\n"
        f"  invalid_policy: {invalid_policy}\n"
        "solver:\n"
        f"  tolerance: {tolerance}\n"
    )
    return path


class TestMain:
    """Tests for failure handling in main."""

    @pytest.mark.parametrize(
        "overrides",
        [{"invalid_policy": "ignore"}, {"tolerance": "-1"}],
    )
    def test_invalid_config_exits(self, run_analysis, lizard_csv, tmp_path, monkeypatch, overrides):
        config = write_config(tmp_path / "config.yaml", lizard_csv, **overrides)
        monkeypatch.setattr(
            sys, "argv",
            ["run_analysis.py", "--config", str(config), "--output-dir", str(tmp_path / "out")],
        )

        with pytest.raises(SystemExit) as exc:
            run_analysis.main()

        assert exc.value.code == 1
        assert not (tmp_path / "out" / "report.html").exists()

    def test_missing_data_exits(self, run_analysis, tmp_path, monkeypatch):
        config = write_config(tmp_path / "config.yaml", tmp_path / "absent.csv")
        monkeypatch.setattr(
            sys, "argv",
            ["run_analysis.py", "--config", str(config), "--output-dir", str(tmp_path / "out")],
        )

        with pytest.raises(SystemExit) as exc:
            run_analysis.main()

        assert exc.value.code == 1
