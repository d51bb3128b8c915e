"""Tests for the CLI argument handling in main.py"""

import argparse
import json

import pytest

from logexplorer.config import ExplorerConfig
from logexplorer.engine import LogExplorerEngine
from logexplorer.preferences import Preferences
from main import apply_chart_flag, build_parser, parse_end, seed_params

from tests.fakes import FakeLogApi


class TestParseEnd:
    def test_integer_micros(self):
        assert parse_end("1700000000000000") == 1_700_000_000_000_000

    def test_iso_instant(self):
        assert parse_end("2023-11-14T22:13:20Z") == 1_700_000_000_000_000

    def test_invalid(self):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_end("last tuesday")


class TestSeedParams:
    def test_flags_win_over_params(self):
        args = build_parser().parse_args(
            ["--params", "ref=9&s=old&te=1", "-s", "new", "--te", "5"]
        )
        assert seed_params(args) == {"ref": "9", "s": "new", "te": "5"}

    def test_params_only(self):
        args = build_parser().parse_args(["--params", "?q=status%3D500"])
        assert seed_params(args) == {"q": "status=500"}


class TestChartFlag:
    def _engine(self, path):
        return LogExplorerEngine(
            FakeLogApi(), ExplorerConfig(), preferences=Preferences(str(path))
        )

    def test_toggle_chart_is_saved(self, tmp_path):
        path = tmp_path / "prefs.json"
        apply_chart_flag(self._engine(path), build_parser().parse_args(["--toggle-chart"]))

        assert json.loads(path.read_text()) == {"show_chart": False}
        assert self._engine(path).snapshot().show_chart is False

    def test_no_chart_leaves_preference_alone(self, tmp_path):
        path = tmp_path / "prefs.json"
        apply_chart_flag(self._engine(path), build_parser().parse_args(["--no-chart"]))

        assert not path.exists()
