from __future__ import annotations

from datetime import date

from typer.testing import CliRunner

from focus_tracker.cli import app
from focus_tracker.models import UsageRecord
from focus_tracker.storage import CsvUsageStore, SqliteUsageStore

runner = CliRunner()
DAY = date(2024, 5, 6)


def _seed_sqlite(data_dir):
    store = SqliteUsageStore(data_dir / "usage.sqlite3")
    store.upsert(UsageRecord(DAY, "NeoVim", 3723))
    store.upsert(UsageRecord(DAY, "Discord", 60))
    store.upsert(UsageRecord(date(2024, 5, 7), "Firefox", 5))
    store.close()


def test_summary_lists_identities_for_day(tmp_path):
    _seed_sqlite(tmp_path)
    result = runner.invoke(
        app, ["summary", "--date", "2024-05-06", "--data-dir", str(tmp_path)]
    )
    assert result.exit_code == 0, result.output
    assert "Summary for 2024-05-06" in result.output
    assert "Tracked time: 01:03:03" in result.output
    assert result.output.index("NeoVim") < result.output.index("Discord")
    assert "Firefox" not in result.output


def test_summary_without_activity(tmp_path):
    result = runner.invoke(
        app, ["summary", "--date", "2023-01-01", "--data-dir", str(tmp_path)]
    )
    assert result.exit_code == 0
    assert "No activity recorded" in result.output


def test_usage_lookup(tmp_path):
    _seed_sqlite(tmp_path)
    result = runner.invoke(
        app, ["usage", "NeoVim", "--date", "2024-05-06", "--data-dir", str(tmp_path)]
    )
    assert result.exit_code == 0
    assert "NeoVim on 2024-05-06: 01:02:03" in result.output

    missing = runner.invoke(
        app, ["usage", "Slack", "--date", "2024-05-06", "--data-dir", str(tmp_path)]
    )
    assert "No usage recorded for Slack" in missing.output


def test_records_reads_csv_backend(tmp_path):
    store = CsvUsageStore(tmp_path / "usage.csv")
    store.upsert(UsageRecord(DAY, "Telegram", 42))
    result = runner.invoke(
        app, ["records", "--backend", "csv", "--data-dir", str(tmp_path)]
    )
    assert result.exit_code == 0, result.output
    assert "2024-05-06  Telegram" in result.output
    assert "00:00:42" in result.output


def test_invalid_date_is_rejected(tmp_path):
    result = runner.invoke(
        app, ["summary", "--date", "06/05/2024", "--data-dir", str(tmp_path)]
    )
    assert result.exit_code != 0


def test_unknown_backend_is_rejected(tmp_path):
    result = runner.invoke(
        app, ["records", "--backend", "duckdb", "--data-dir", str(tmp_path)]
    )
    assert result.exit_code != 0


def test_paths_reports_locations(tmp_path):
    result = runner.invoke(app, ["paths", "--data-dir", str(tmp_path / "data")])
    assert result.exit_code == 0
    assert str(tmp_path / "data" / "usage.sqlite3") in result.output
    assert (tmp_path / "data").is_dir()


def test_unusable_data_dir_exits_cleanly(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    result = runner.invoke(app, ["records", "--data-dir", str(blocker / "data")])
    assert result.exit_code == 1
    assert "Failed to create data directory" in result.output


class _RecordingTracker:
    runs = []

    def __init__(self, store, settings):
        self.store = store
        self.settings = settings

    def run_forever(self):
        _RecordingTracker.runs.append(self.settings)
        self.store.close()


def _no_session(*args, **kwargs):
    return False


def test_track_exits_when_session_is_required_but_missing(tmp_path, monkeypatch):
    _RecordingTracker.runs = []
    monkeypatch.setattr("focus_tracker.hyprland.wait_for_session", _no_session)
    monkeypatch.setattr("focus_tracker.tracker.FocusTracker", _RecordingTracker)

    result = runner.invoke(
        app, ["track", "--require-session", "--data-dir", str(tmp_path)]
    )

    assert result.exit_code == 1
    assert "Hyprland session is not available" in result.output
    assert _RecordingTracker.runs == []


def test_track_polls_anyway_when_session_is_missing(tmp_path, monkeypatch):
    _RecordingTracker.runs = []
    monkeypatch.setattr("focus_tracker.hyprland.wait_for_session", _no_session)
    monkeypatch.setattr("focus_tracker.tracker.FocusTracker", _RecordingTracker)

    result = runner.invoke(
        app,
        [
            "track",
            "--interval",
            "250",
            "--session-timeout",
            "0",
            "--data-dir",
            str(tmp_path),
        ],
    )

    assert result.exit_code == 0, result.output
    assert len(_RecordingTracker.runs) == 1
    assert _RecordingTracker.runs[0].poll_interval.total_seconds() == 0.25
    assert (tmp_path / "usage.sqlite3").exists()
