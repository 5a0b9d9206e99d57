import json
import os

from click.testing import CliRunner

from attendance_import.cli import cli
from attendance_import.store import SessionStore

SEED = [
    {
        "shortname": "CLI101",
        "fullname": "CLI course",
        "activities": [{"name": "Attendance", "subnet": ""}],
        "groups": ["Red"],
    }
]


def test_headers_command():
    result = CliRunner().invoke(cli, ["headers"])
    assert result.exit_code == 0
    assert "header0: course" in result.output
    assert "header12: subnet" in result.output


def test_seed_and_run(tmp_path, monkeypatch):
    monkeypatch.setenv("ATTENDANCE_IMPORT_STAGING", str(tmp_path / "staging"))
    db = str(tmp_path / "cli.db")
    seed = tmp_path / "seed.json"
    seed.write_text(json.dumps(SEED), encoding="utf-8")
    sessions = tmp_path / "sessions.csv"
    sessions.write_text(
        "course;groups;date;from;to\nCLI101;Red;2024-01-01;08:00;09:00\nCLI101;;bad;08:00;09:00\n",
        encoding="utf-8",
    )
    report = tmp_path / "report.csv"
    runner = CliRunner()

    r = runner.invoke(cli, ["seed", "--input", str(seed), "--db", db])
    assert r.exit_code == 0, r.output

    r = runner.invoke(
        cli,
        ["run", "--input", str(sessions), "--delimiter", "semicolon", "--db", db, "--report", str(report)],
    )
    assert r.exit_code == 0, r.output
    assert "error:malformedfield" in r.output
    assert "Import complete: 1 created, 0 duplicates" in r.output
    assert os.path.exists(report)
    assert SessionStore(db).count_sessions() == 1

    r = runner.invoke(
        cli, ["run", "--input", str(sessions), "--delimiter", "semicolon", "--db", db, "--strict"]
    )
    assert r.exit_code == 1
    assert SessionStore(db).count_sessions() == 1


def test_run_requires_input():
    r = CliRunner().invoke(cli, ["run"])
    assert r.exit_code != 0
