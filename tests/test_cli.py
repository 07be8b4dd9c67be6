"""
Tests for the command line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from slotquery.cli.app import EXIT_INVALID_QUERY, EXIT_NO_DATA, app

runner = CliRunner()


@pytest.fixture
def data_file(tmp_path, monkeypatch):
    """Run every command from an empty directory with its own data file."""
    monkeypatch.chdir(tmp_path)
    return tmp_path / "availability.json"


def _invoke(*args):
    return runner.invoke(app, list(args))


def _find_json(data_file, *args):
    result = _invoke("find", "--json", "-f", str(data_file), *args)
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestFind:
    """Tests for the find command."""

    def test_block_then_find(self, data_file):
        blocked = _invoke("block", "2026-01-05", "--slot", "09:00", "--slot", "10:00", "-f", str(data_file))
        assert blocked.exit_code == 0, blocked.output

        wire = _find_json(
            data_file,
            "--start", "2026-01-05", "--end", "2026-01-05", "--period", "morning", "-n", "6",
        )

        assert [item["time"] for item in wire["items"]] == ["06:00", "07:00", "08:00", "11:00"]
        assert wire["query"]["timePreference"] == "morning"

    def test_default_count_applied(self, data_file):
        _invoke("block", "2026-01-06", "-f", str(data_file))

        wire = _find_json(data_file, "--start", "2026-01-05", "--end", "2026-01-07")

        assert len(wire["items"]) == 10
        assert wire["query"]["count"] == 10

    def test_table_output(self, data_file):
        _invoke("block", "2026-01-05", "--half", "am", "-f", str(data_file))

        result = _invoke("find", "--start", "2026-01-05", "--end", "2026-01-05", "-n", "2", "-f", str(data_file))

        assert result.exit_code == 0, result.output
        assert "12:00 PM" in result.output
        assert "1:00 PM" in result.output
        assert "Monday, 05.01.2026 | 12:00 PM (afternoon)" in result.output

    def test_find_days(self, data_file):
        _invoke("block", "2026-01-05", "-f", str(data_file))

        result = _invoke(
            "find", "--intent", "find_days", "--start", "2026-01-05", "--end", "2026-01-06",
            "-f", str(data_file),
        )

        assert result.exit_code == 0, result.output
        assert "1 fully open day(s)" in result.output
        assert "06.01.2026" in result.output

    def test_no_matches_shows_hints(self, data_file):
        _invoke("block", "2026-01-05", "-f", str(data_file))

        result = _invoke("find", "--start", "2026-01-05", "--end", "2026-01-05", "-f", str(data_file))

        assert result.exit_code == 0, result.output
        assert "No matching availability found" in result.output

    def test_no_data_file(self, data_file):
        result = _invoke("find", "--start", "2026-01-05", "--end", "2026-01-06", "-f", str(data_file))

        assert result.exit_code == EXIT_NO_DATA
        assert "No calendar data available" in result.output

    @pytest.mark.parametrize(
        "args",
        [
            ("--start", "2026-01-10", "--end", "2026-01-05"),
            ("--start", "2026-01-05", "--end", "2026-01-06", "-n", "0"),
            ("--start", "2026-01-05", "--end", "2026-01-06", "--intent", "check_date"),
            ("--start", "2026-01-05", "--end", "2026-01-06", "--period", "night"),
            ("--start", "yesterday-ish"),
        ],
    )
    def test_invalid_queries(self, data_file, args):
        _invoke("block", "2026-01-05", "-f", str(data_file))

        result = _invoke("find", "-f", str(data_file), *args)

        assert result.exit_code == EXIT_INVALID_QUERY, result.output
        assert "Error" in result.output

    def test_conflicting_week_flags(self, data_file):
        result = _invoke("find", "--this-week", "--next-week", "-f", str(data_file))
        assert result.exit_code == 1


class TestExecute:
    """Tests for the execute command."""

    def test_execute_query_file(self, data_file, tmp_path):
        _invoke("block", "2026-01-05", "--slot", "18:00", "-f", str(data_file))
        query_file = tmp_path / "query.json"
        query_file.write_text(json.dumps({
            "intent": "find_slots",
            "dateRange": {"start": "2026-01-05", "end": "2026-01-06"},
            "timePreference": "evening",
            "count": 4,
        }), encoding="utf-8")

        result = _invoke("execute", str(query_file), "-f", str(data_file))

        assert result.exit_code == 0, result.output
        wire = json.loads(result.output)
        assert [(item["date"], item["time"]) for item in wire["items"]] == [
            ("2026-01-05", "19:00"),
            ("2026-01-05", "20:00"),
            ("2026-01-05", "21:00"),
            ("2026-01-06", "18:00"),
        ]

    def test_execute_invalid_json(self, data_file, tmp_path):
        query_file = tmp_path / "query.json"
        query_file.write_text("{broken", encoding="utf-8")

        result = _invoke("execute", str(query_file), "-f", str(data_file))

        assert result.exit_code == EXIT_INVALID_QUERY


class TestCalendarCommands:
    """Tests for block, unblock, show, export and import."""

    def test_show(self, data_file):
        _invoke("block", "2026-01-05", "--slot", "09:00", "--event", "Dentist", "-f", str(data_file))
        _invoke("block", "2026-01-07", "-f", str(data_file))

        result = _invoke("show", "-f", str(data_file))

        assert result.exit_code == 0, result.output
        assert "09:00" in result.output
        assert "Dentist" in result.output
        assert "whole day" in result.output

    def test_show_empty(self, data_file):
        result = _invoke("show", "-f", str(data_file))

        assert result.exit_code == 0
        assert "No blocked dates" in result.output

    def test_unblock_slot(self, data_file):
        _invoke("block", "2026-01-05", "--slot", "09:00", "--slot", "10:00", "-f", str(data_file))

        result = _invoke("unblock", "2026-01-05", "--slot", "09:00", "-f", str(data_file))
        assert result.exit_code == 0, result.output

        wire = _find_json(
            data_file,
            "--start", "2026-01-05", "--end", "2026-01-05", "--period", "morning",
        )
        assert "09:00" in [item["time"] for item in wire["items"]]
        assert "10:00" not in [item["time"] for item in wire["items"]]

    def test_unblock_without_data(self, data_file):
        result = _invoke("unblock", "2026-01-05", "-f", str(data_file))
        assert result.exit_code == EXIT_NO_DATA

    def test_block_invalid_slot(self, data_file):
        result = _invoke("block", "2026-01-05", "--slot", "23:00", "-f", str(data_file))
        assert result.exit_code == EXIT_INVALID_QUERY

    def test_clear(self, data_file):
        _invoke("block", "2026-01-05", "-f", str(data_file))

        result = _invoke("clear", "--yes", "-f", str(data_file))

        assert result.exit_code == 0, result.output
        assert not data_file.exists()
        assert _invoke("find", "--start", "2026-01-05", "-f", str(data_file)).exit_code == EXIT_NO_DATA

    def test_clear_declined(self, data_file):
        _invoke("block", "2026-01-05", "-f", str(data_file))

        result = runner.invoke(app, ["clear", "-f", str(data_file)], input="n\n")

        assert result.exit_code == 1
        assert data_file.exists()

    def test_export_and_import(self, data_file, tmp_path):
        _invoke("block", "2026-01-05", "-f", str(data_file))
        export_file = tmp_path / "export.json"

        exported = _invoke("export", "-o", str(export_file), "-f", str(data_file))
        assert exported.exit_code == 0, exported.output

        target = tmp_path / "restored.json"
        imported = _invoke("import", str(export_file), "-f", str(target))

        assert imported.exit_code == 0, imported.output
        assert "Imported 1 blocked date(s)" in imported.output
        assert json.loads(target.read_text(encoding="utf-8"))["blockedDates"]["2026-01-05"]["fullDayBlock"]


def test_periods():
    result = _invoke("periods")

    assert result.exit_code == 0
    assert "morning" in result.output
    assert "18:00 - 21:00" in result.output


def test_version():
    result = _invoke("version")

    assert result.exit_code == 0
    assert "slotquery" in result.output
