"""Tests for CLI interface.

Test Coverage:
    - Argument parsing
    - Command routing
    - Load command against a local data directory
    - Health command output formats
    - Error handling
"""

import json

import pytest

from pldg.cli import cmd_version, create_parser, main
from pldg.sources import COHORT_FILES


@pytest.fixture
def data_dir(tmp_path):
    """A data directory holding a cohort 2 export."""
    folder = tmp_path / "cohort-2"
    folder.mkdir()
    (folder / COHORT_FILES["2"]).write_text(
        "Name,Program Week\nada,Week 1\ngrace,Week 1\nlin,Week 2\n",
        encoding="utf-8",
    )
    return tmp_path


class TestParserCreation:
    """Test CLI parser creation."""

    def test_parser_has_commands(self):
        """Parser has load, health and version commands."""
        parser = create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["--help"])

    def test_parser_prog_name(self):
        """Parser has correct program name."""
        assert create_parser().prog == "pldg"


class TestLoadCommand:
    """Test load command parsing and execution."""

    def test_load_requires_cohort(self):
        """Load command requires a cohort argument."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(["load"])

    def test_load_defaults(self):
        """Load command has sensible defaults."""
        args = create_parser().parse_args(["load", "2"])
        assert args.command == "load"
        assert args.cohort == "2"
        assert args.source is None
        assert args.format == "text"
        assert args.rows == 5
        assert args.base_url is None
        assert args.data_dir is None

    def test_load_rejects_unknown_source(self):
        """--source only accepts registered source names."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(["load", "2", "--source", "ftp"])

    def test_load_json(self, data_dir, capsys):
        """JSON output reports rows, columns and attempts."""
        exit_code = main(["load", "2", "--data-dir", str(data_dir), "--format", "json"])

        assert exit_code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["cohort_id"] == "2"
        assert payload["source"] == "csv"
        assert payload["rows"] == 3
        assert payload["columns"] == ["Name", "Program Week"]
        assert [a["status"] for a in payload["attempts"]] == ["loaded"]

    def test_load_text(self, data_dir, capsys):
        """Text output shows a summary and a preview."""
        exit_code = main(["load", "2", "--data-dir", str(data_dir), "--rows", "2"])

        assert exit_code == 0
        out = capsys.readouterr().out
        assert "Cohort 2: 3 rows x 2 columns (source: csv)" in out
        assert "ada" in out
        assert "lin" not in out

    def test_load_falls_back_from_placeholder(self, data_dir, capsys):
        """Starting on a placeholder source falls back to csv."""
        exit_code = main([
            "load", "2", "--data-dir", str(data_dir),
            "--source", "mongodb", "--format", "json",
        ])

        assert exit_code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["source"] == "csv"
        assert [(a["source"], a["status"]) for a in payload["attempts"]] == [
            ("mongodb", "failed"),
            ("csv", "loaded"),
        ]

    def test_load_interrupted(self, data_dir, mocker):
        """Ctrl-C during a load exits 130."""
        mocker.patch("pldg.cli._run_async", side_effect=KeyboardInterrupt)

        assert main(["load", "2", "--data-dir", str(data_dir)]) == 130

    def test_load_unexpected_error(self, data_dir, mocker, capsys):
        """Unexpected failures exit 1 with the message on stderr."""
        mocker.patch("pldg.cli._run_async", side_effect=RuntimeError("loop broke"))

        assert main(["load", "2", "--data-dir", str(data_dir)]) == 1
        assert "Error: loop broke" in capsys.readouterr().err

    def test_load_exhausted(self, tmp_path, capsys):
        """Exhausting every source exits 1 and explains each attempt."""
        exit_code = main(["load", "2", "--data-dir", str(tmp_path)])

        assert exit_code == 1
        err = capsys.readouterr().err
        assert "All data adapters failed for cohort 2" in err
        assert "skipped_unhealthy" in err


class TestHealthCommand:
    """Test health command."""

    def test_health_json(self, data_dir, capsys):
        """JSON health map covers every registered source."""
        exit_code = main(["health", "--data-dir", str(data_dir), "--format", "json"])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out) == {
            "csv": True,
            "mongodb": False,
            "storacha": False,
        }

    def test_health_text(self, tmp_path, capsys):
        """Text output lists one line per source."""
        exit_code = main(["health", "--data-dir", str(tmp_path)])

        assert exit_code == 0
        out = capsys.readouterr().out
        assert "csv       unavailable" in out
        assert "storacha  unavailable" in out

    def test_health_watch(self, data_dir, capsys):
        """--watch with --count repeats the report."""
        exit_code = main([
            "health", "--data-dir", str(data_dir),
            "--format", "json", "--watch", "0", "--count", "2",
        ])

        assert exit_code == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 2

    def test_health_count_requires_watch(self, data_dir, capsys):
        """--count without --watch is rejected instead of ignored."""
        exit_code = main(["health", "--data-dir", str(data_dir), "--count", "2"])

        assert exit_code == 1
        captured = capsys.readouterr()
        assert "--count requires --watch" in captured.err
        assert captured.out == ""


class TestVersionCommand:
    """Test version command."""

    def test_version_command_parsed(self):
        """Version command is parsed correctly."""
        args = create_parser().parse_args(["version"])
        assert args.command == "version"

    def test_version_command_execution(self, capsys):
        """Version command executes and prints version."""
        exit_code = cmd_version(create_parser().parse_args(["version"]))

        assert exit_code == 0
        out = capsys.readouterr().out
        assert "PLDG dashboard data layer v0.3.0" in out
        assert "csv, mongodb, storacha" in out


class TestMain:
    """Test main routing."""

    def test_no_command_prints_help(self, capsys):
        """No command prints help and exits 0."""
        assert main([]) == 0
        assert "usage: pldg" in capsys.readouterr().out
