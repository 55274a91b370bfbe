"""Tests for the calendar_manager entry script."""

import pytest

import calendar_manager
from calendar_engine.csv_codec import HEADER
from calendar_manager import main


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's real config and root logging handlers out of the tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setattr(calendar_manager, "configure_logging", lambda *args, **kwargs: None)


@pytest.fixture
def snapshot(tmp_path, csv_row):
    path = tmp_path / "work.csv"
    path.write_text("\n".join([
        HEADER,
        csv_row(),
        csv_row(subject='"Holiday"', start_date="05/02/2025", start_time="",
                end_date="05/02/2025", end_time="", all_day="True"),
    ]) + "\n", encoding="utf-8")
    return path


class TestCommands:
    """Tests for each command in the dispatch table."""

    def test_print_day(self, snapshot, capsys):
        """print lists the events starting on a day."""
        assert main([str(snapshot), "print", "2025-05-01"]) == 0
        out = capsys.readouterr().out
        assert "2025-05-01 10:00 - 2025-05-01 11:00  Meeting @ Room 1" in out
        assert "Holiday" not in out

    def test_print_range(self, snapshot, capsys):
        """print with two dates includes the whole last day."""
        assert main([str(snapshot), "print", "2025-05-01", "2025-05-02"]) == 0
        out = capsys.readouterr().out
        assert "2025-05-02 (all day)  Holiday" in out

    def test_status(self, snapshot, capsys):
        """status prints Busy or Available."""
        assert main([str(snapshot), "status", "2025-05-01T10:30"]) == 0
        assert capsys.readouterr().out.strip() == "Busy"

        assert main([str(snapshot), "status", "2025-05-01T11:00"]) == 0
        assert capsys.readouterr().out.strip() == "Available"

    def test_status_with_utc_offset(self, snapshot, capsys):
        """A time with an offset is read in the calendar's zone instead of crashing."""
        args = ["--timezone", "America/New_York", str(snapshot), "status"]

        # 14:30 UTC is 10:30 in New York
        assert main(args + ["2025-05-01T14:30Z"]) == 0
        assert capsys.readouterr().out.strip() == "Busy"

        assert main(args + ["2025-05-01T10:30+00:00"]) == 0
        assert capsys.readouterr().out.strip() == "Available"

    def test_print_with_utc_offset(self, snapshot, capsys):
        """print converts offset bounds before querying."""
        assert main(["--timezone", "America/New_York", str(snapshot), "print",
                     "2025-05-01T13:00Z", "2025-05-01T15:00Z"]) == 0
        assert "Meeting" in capsys.readouterr().out

    def test_export(self, snapshot, tmp_path):
        """export writes the calendar back out unchanged."""
        out_file = tmp_path / "out.csv"
        assert main([str(snapshot), "export", str(out_file)]) == 0
        assert out_file.read_text(encoding="utf-8") == snapshot.read_text(encoding="utf-8")

    def test_validate(self, snapshot, capsys):
        """validate reports how many events imported."""
        assert main(["--calendar", "Work", "--timezone", "Europe/London", str(snapshot), "validate"]) == 0
        assert capsys.readouterr().out.startswith("2 events imported")


class TestFailures:
    """Tests for error exits."""

    def test_missing_snapshot(self, tmp_path, capsys):
        """A missing snapshot exits 1."""
        assert main([str(tmp_path / "nope.csv"), "validate"]) == 1
        assert "Snapshot file not found" in capsys.readouterr().err

    def test_bad_snapshot(self, tmp_path, capsys):
        """An invalid snapshot exits 1 with the line-tagged message."""
        path = tmp_path / "bad.csv"
        path.write_text(HEADER + '\n"",05/01/2025,10:00 AM,05/01/2025,11:00 AM,False,"","",False\n', encoding="utf-8")

        assert main([str(path), "validate"]) == 1
        assert "Line 2: Event name is mandatory" in capsys.readouterr().err

    def test_oversized_field(self, tmp_path, csv_row, capsys):
        """A field beyond the CSV size limit exits 1 instead of raising."""
        path = tmp_path / "huge.csv"
        path.write_text(HEADER + "\n" + csv_row(description='"' + "x" * 200_000 + '"') + "\n", encoding="utf-8")

        assert main([str(path), "validate"]) == 1
        assert "Line 2: field larger than field limit" in capsys.readouterr().err

    def test_bad_timezone(self, snapshot, capsys):
        """An unknown timezone exits 1."""
        assert main(["--timezone", "Nowhere/Land", str(snapshot), "validate"]) == 1
        assert "Invalid timezone: Nowhere/Land" in capsys.readouterr().err

    def test_bad_date_argument(self, snapshot, capsys):
        """An unparseable date exits 1."""
        assert main([str(snapshot), "print", "yesterday"]) == 1
        assert "Invalid date/time" in capsys.readouterr().err

    def test_missing_config(self, snapshot, tmp_path, capsys):
        """An explicit config path that does not exist exits 1."""
        assert main(["-c", str(tmp_path / "none.toml"), str(snapshot), "validate"]) == 1
        assert "Configuration file not found" in capsys.readouterr().err
