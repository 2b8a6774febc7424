"""Pruebas de la interfaz de línea de comandos.

Tests for the command line interface.
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from proyector.cli import app

DEMO_FIXTURE = Path(__file__).resolve().parents[1] / "fixtures" / "demo.yaml"


@pytest.fixture
def cli(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    monkeypatch.delenv("LOG_DIR", raising=False)
    monkeypatch.delenv("RANDOM_SEED", raising=False)
    runner = CliRunner()
    db_path = tmp_path / "cli.db"

    def invoke(*args):
        return runner.invoke(app, ["--db", str(db_path), *args])

    return invoke


def _json(result):
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_init_reports_default_settings(cli, tmp_path):
    payload = _json(cli("init"))

    assert payload["database"] == str(tmp_path / "cli.db")
    assert payload["settings"]["target_sample_size"] == 74


def test_seed_select_and_project(cli):
    counts = _json(cli("seed", str(DEMO_FIXTURE)))
    assert counts["stations"] == 8

    selection = _json(cli("auto-select", "--target", "30", "--seed", "4"))
    assert selection["total_selected"] == 8
    assert [row["region_name"] for row in selection["summary"]] == ["Norte", "Sur"]

    projection = _json(cli("project"))
    assert projection["summary"]["sample_stations"] == 8
    assert {row["participant_short_name"] for row in projection["projection"]} == {"AZ", "RO", "AV"}


def test_toggle_and_stations(cli):
    _json(cli("seed", str(DEMO_FIXTURE)))
    regions = _json(cli("stations"))["regions"]
    station_id = next(s["id"] for s in regions[0]["stations"] if not s["is_sample"])

    toggled = _json(cli("toggle", str(station_id), "--include"))
    assert toggled["is_sample"] is True

    toggled = _json(cli("toggle", str(station_id), "--exclude"))
    assert toggled["is_sample"] is False


def test_update_settings_and_show(cli):
    updated = _json(cli("update-settings", "--target", "120", "--confidence", "0.99", "--active"))
    assert updated["target_sample_size"] == 120
    assert updated["is_active"] is True

    shown = _json(cli("settings"))
    assert shown["confidence_level"] == 0.99


def test_runs_and_diff(cli):
    _json(cli("seed", str(DEMO_FIXTURE)))
    first = _json(cli("auto-select", "--target", "30", "--seed", "1"))
    second = _json(cli("auto-select", "--target", "30", "--seed", "2"))

    runs = _json(cli("runs"))
    assert [run["id"] for run in runs] == [second["run_id"], first["run_id"]]

    diff = _json(cli("diff-runs", str(first["run_id"]), str(second["run_id"])))
    assert diff["from_run"] == first["run_id"]


def test_target_outside_operator_range_is_rejected(cli):
    result = cli("auto-select", "--target", "10")

    assert result.exit_code != 0


def test_engine_errors_exit_with_code_one(cli):
    result = cli("toggle", "999", "--include")

    assert result.exit_code == 1
    assert "not found" in result.output


def test_invalid_configuration_exits_with_code_one(cli, monkeypatch):
    monkeypatch.setenv("DESIGN_EFFECT", "0")

    result = cli("settings")

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_run_shows_its_stations(cli):
    _json(cli("seed", str(DEMO_FIXTURE)))
    selection = _json(cli("auto-select", "--target", "30", "--seed", "3"))

    shown = _json(cli("run", str(selection["run_id"])))

    assert shown["id"] == selection["run_id"]
    assert len(shown["station_ids"]) == selection["total_selected"]


def test_seeding_twice_exits_with_code_one(cli):
    _json(cli("seed", str(DEMO_FIXTURE)))

    result = cli("seed", str(DEMO_FIXTURE))

    assert result.exit_code == 1
    assert "fresh database" in result.output
