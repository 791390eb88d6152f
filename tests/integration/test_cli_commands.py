"""
Tests for CLI commands.

These tests verify the command-line interface functionality including:
- import-snapshot replacing and appending store contents
- analyze in text and JSON output modes
- db stats command
- config show/set commands
"""

import json

import pytest

from click.testing import CliRunner

from climb.cli import cli


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_option(temp_db):
    return ["--database", str(temp_db)]


@pytest.fixture
def imported(cli_runner, db_option, snapshot_file):
    result = cli_runner.invoke(cli, [*db_option, "import-snapshot", str(snapshot_file)])
    assert result.exit_code == 0, result.output
    return result


@pytest.mark.integration
class TestImportSnapshot:
    """Test the import-snapshot command."""

    def test_import_reports_counts(self, imported):
        assert "4 reservations" in imported.output
        assert "2 visits" in imported.output
        assert "3 listing rows" in imported.output
        assert "2 survey rows" in imported.output

    def test_append(self, cli_runner, db_option, snapshot_file, imported):
        result = cli_runner.invoke(
            cli, [*db_option, "import-snapshot", "--append", str(snapshot_file)]
        )

        assert result.exit_code == 0
        assert "8 reservations" in result.output

    def test_invalid_snapshot(self, cli_runner, db_option, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"survey_data": [{"date": "2025-01-06"}]}')

        result = cli_runner.invoke(cli, [*db_option, "import-snapshot", str(path)])

        assert result.exit_code == 1
        assert "not a valid snapshot" in result.output

    def test_non_finite_values_rejected(self, cli_runner, db_option, tmp_path):
        path = tmp_path / "nan.json"
        path.write_text(
            '{"listing_data": [{"category": "内科", "data": '
            '[{"date": "2025-01-06", "hourly_cv": [1, NaN, 2]}]}]}',
            encoding="utf-8",
        )

        result = cli_runner.invoke(cli, [*db_option, "import-snapshot", str(path)])

        assert result.exit_code == 1
        assert "not a valid snapshot" in result.output

    def test_missing_file(self, cli_runner, db_option, tmp_path):
        result = cli_runner.invoke(
            cli, [*db_option, "import-snapshot", str(tmp_path / "nope.json")]
        )

        assert result.exit_code == 2


@pytest.mark.integration
class TestAnalyze:
    """Test the analyze command."""

    def test_text_report(self, cli_runner, db_option, imported):
        result = cli_runner.invoke(cli, [*db_option, "analyze", "--segment", "general"])

        assert result.exit_code == 0, result.output
        assert "Segment: general" in result.output
        assert "True first visits:     1" in result.output
        assert "[LOW IMPACT]" in result.output
        assert "not enough data" in result.output

    def test_json_report(self, cli_runner, db_option, imported):
        result = cli_runner.invoke(
            cli,
            [
                *db_option,
                "analyze",
                "--json",
                "--start-month",
                "2025-01",
                "--end-month",
                "2025-01",
                "--lag-window",
                "2",
            ],
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["segment"] == "all"
        assert payload["start_month"] == "2025-01"
        assert payload["dataset"]["totals"]["reservations"] == 3
        assert all(abs(p["lag"]) <= 2 for p in payload["lag_correlations"])

    def test_empty_store(self, cli_runner, db_option):
        result = cli_runner.invoke(cli, [*db_option, "analyze"])

        assert result.exit_code == 1
        assert "No data in store" in result.output

    def test_invalid_month(self, cli_runner, db_option, imported):
        result = cli_runner.invoke(cli, [*db_option, "analyze", "--start-month", "2025-1"])

        assert result.exit_code == 2
        assert "YYYY-MM" in result.output

    def test_reversed_period(self, cli_runner, db_option, imported):
        result = cli_runner.invoke(
            cli,
            [*db_option, "analyze", "--start-month", "2025-03", "--end-month", "2025-01"],
        )

        assert result.exit_code == 2

    def test_unknown_segment(self, cli_runner, db_option, imported):
        result = cli_runner.invoke(cli, [*db_option, "analyze", "--segment", "dental"])

        assert result.exit_code == 2

    def test_window_from_config(self, cli_runner, db_option, imported):
        cli_runner.invoke(cli, ["config", "set", "analysis.lag_correlation_window", "1"])

        result = cli_runner.invoke(cli, [*db_option, "analyze", "--json"])

        payload = json.loads(result.stdout)
        assert payload["lag_correlations"]
        assert all(abs(p["lag"]) <= 1 for p in payload["lag_correlations"])


@pytest.mark.integration
class TestDbStats:
    """Test the db stats command."""

    def test_stats_empty(self, cli_runner, db_option):
        result = cli_runner.invoke(cli, [*db_option, "db", "stats"])

        assert result.exit_code == 0
        assert "Reservations:    0" in result.output

    def test_stats_after_import(self, cli_runner, db_option, imported):
        result = cli_runner.invoke(cli, [*db_option, "db", "stats"])

        assert "Reservations:    4" in result.output
        assert "Survey rows:     2" in result.output


@pytest.mark.integration
class TestConfigCommands:
    """Test config show/set."""

    def test_show_empty(self, cli_runner):
        result = cli_runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "(empty)" in result.output

    def test_set_then_show(self, cli_runner):
        result = cli_runner.invoke(
            cli, ["config", "set", "analysis.distributed_lag_window", "12"]
        )
        assert result.exit_code == 0

        shown = cli_runner.invoke(cli, ["config", "show"])
        assert '"distributed_lag_window": 12' in shown.output

    def test_set_rejects_bad_key(self, cli_runner):
        result = cli_runner.invoke(cli, ["config", "set", "nosection", "1"])

        assert result.exit_code == 1
