"""Tests for the pkggraph command line."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from pkggraph import __version__
from pkggraph.cli import cli
from pkggraph.utils.cache import get_cache_path


@pytest.fixture
def runner(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    """CLI runner with a private cache directory."""
    monkeypatch.setenv("PKGGRAPH_CACHE_DIR", str(temp_dir / "cache"))
    monkeypatch.delenv("PKGGRAPH_WORKERS", raising=False)
    monkeypatch.delenv("PKGGRAPH_USE_CACHE", raising=False)
    return CliRunner()


class TestBuild:
    """Tests for `pkggraph build`."""

    def test_report(self, runner: CliRunner, sample_dump_file: Path) -> None:
        result = runner.invoke(cli, ["build", str(sample_dump_file), "--workers", "1"])

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["metadata"]["node_count"] == 6
        assert report["metadata"]["edge_count"] == 7
        assert report["package_count"] == 3
        assert report["cached"] is False

    def test_second_run_uses_cache(
        self, runner: CliRunner, sample_dump_file: Path, temp_dir: Path
    ) -> None:
        runner.invoke(cli, ["build", str(sample_dump_file)])
        assert get_cache_path(sample_dump_file, temp_dir / "cache").exists()

        result = runner.invoke(cli, ["build", str(sample_dump_file)])

        report = json.loads(result.stdout)
        assert report["cached"] is True
        assert report["metadata"]["edge_count"] == 7

    def test_no_cache(self, runner: CliRunner, sample_dump_file: Path, temp_dir: Path) -> None:
        result = runner.invoke(cli, ["build", str(sample_dump_file), "--no-cache"])

        assert result.exit_code == 0
        assert not (temp_dir / "cache").exists()

    def test_exports(self, runner: CliRunner, sample_dump_file: Path, temp_dir: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "build",
                str(sample_dump_file),
                "--dot",
                str(temp_dir / "graph"),
                "--json",
                str(temp_dir / "graph.json"),
            ],
        )

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["dot"] == str(temp_dir / "graph.dot")
        assert "->" in (temp_dir / "graph.dot").read_text()
        exported = json.loads((temp_dir / "graph.json").read_text())
        assert exported["metadata"]["edge_count"] == 7

    def test_show_warnings(self, runner: CliRunner, temp_dir: Path) -> None:
        dump = temp_dir / "bad.json"
        dump.write_text(
            json.dumps(
                [
                    {"name": "a", "versions": {"1.0.0": {"dependencies": {"b": "latest"}}}},
                    {"name": "b", "versions": {"1.0.0": {}}},
                ]
            )
        )

        result = runner.invoke(cli, ["build", str(dump), "--show-warnings", "--no-cache"])

        assert result.exit_code == 0
        report = json.loads(result.stdout)
        assert report["warning_count"] == 1
        assert report["warnings"][0]["kind"] == "invalid_range"
        assert report["warnings"][0]["range"] == "latest"

    def test_broken_dump(self, runner: CliRunner, temp_dir: Path) -> None:
        dump = temp_dir / "broken.json"
        dump.write_text('[{"name": "a", "versions": {}}')

        result = runner.invoke(cli, ["build", str(dump)])

        assert result.exit_code == 1
        assert result.stdout == ""

    def test_invalid_config(
        self, runner: CliRunner, sample_dump_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PKGGRAPH_LOG_LEVEL", "LOUD")

        result = runner.invoke(cli, ["build", str(sample_dump_file)])

        assert result.exit_code == 2


class TestDeps:
    """Tests for `pkggraph deps`."""

    def test_direct_dependencies(self, runner: CliRunner, sample_dump_file: Path) -> None:
        result = runner.invoke(cli, ["deps", str(sample_dump_file), "app", "1.0.0"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["target"] == "app@1.0.0"
        labels = {r["label"] for r in data["results"]}
        assert labels == {"lib@1.0.0", "lib@1.2.0", "util@2.1.0"}
        assert all(r["depth"] == 1 for r in data["results"])

    def test_reverse(self, runner: CliRunner, sample_dump_file: Path) -> None:
        result = runner.invoke(
            cli, ["deps", str(sample_dump_file), "util", "2.2.0", "--reverse", "--depth", "2"]
        )

        data = json.loads(result.stdout)
        depths = {r["label"]: r["depth"] for r in data["results"]}
        assert depths == {"lib@1.0.0": 1, "lib@1.2.0": 1, "app@1.0.0": 2}

    def test_unknown_version(self, runner: CliRunner, sample_dump_file: Path) -> None:
        result = runner.invoke(cli, ["deps", str(sample_dump_file), "app", "9.9.9"])

        assert result.exit_code == 1


class TestCycles:
    """Tests for `pkggraph cycles`."""

    def test_reports_cycle(self, runner: CliRunner, temp_dir: Path) -> None:
        dump = temp_dir / "cycle.json"
        dump.write_text(
            json.dumps(
                [
                    {"name": "a", "versions": {"1.0.0": {"dependencies": {"b": "^1.0.0"}}}},
                    {"name": "b", "versions": {"1.0.0": {"dependencies": {"a": "1.x"}}}},
                ]
            )
        )

        result = runner.invoke(cli, ["cycles", str(dump)])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data == {"cycle_count": 1, "cycles": [["a@1.0.0", "b@1.0.0"]]}

    def test_no_cycles(self, runner: CliRunner, sample_dump_file: Path) -> None:
        result = runner.invoke(cli, ["cycles", str(sample_dump_file)])

        assert json.loads(result.stdout)["cycle_count"] == 0


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["--version"])

    assert __version__ in result.output
