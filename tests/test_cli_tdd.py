from __future__ import annotations

import json
from pathlib import Path
from typing import List

import pytest
from typer.testing import CliRunner

from bingo_assist.cli import app
from bingo_assist.version import __version__

runner = CliRunner()

# B, I, N (without center), G, O columns in fill order
FILL: List[str] = [str(n) for n in [1, 2, 3, 4, 5, 16, 17, 18, 19, 20, 31, 32, 33, 34, 46, 47, 48, 49, 50, 61, 62, 63, 64, 65]]


@pytest.fixture
def invoke(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    store = str(tmp_path / "store.json")

    def _invoke(*args: str):
        return runner.invoke(app, ["--store", store, *args])

    return _invoke


def _new_filled_card(invoke, name: str = "Lucky") -> str:
    result = invoke("card", "new", name)
    assert result.exit_code == 0, result.output
    card_id = result.stdout.strip().splitlines()[-1]
    result = invoke("card", "fill", card_id, *FILL)
    assert result.exit_code == 0, result.output
    return card_id


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_card_lifecycle(invoke):
    card_id = _new_filled_card(invoke)
    listing = invoke("card", "list")
    assert f"{card_id}\tLucky\t25/25" in listing.stdout

    bad = invoke("card", "set", card_id, "0", "2")
    assert bad.exit_code == 1
    assert "already used in column B" in bad.output

    ok = invoke("card", "set", card_id, "0", "15")
    assert ok.exit_code == 0

    report = invoke("card", "verify", card_id)
    assert report.exit_code == 0
    assert json.loads(report.stdout)["ok"] is True

    assert invoke("card", "delete", card_id).exit_code == 0
    missing = invoke("card", "show", card_id)
    assert missing.exit_code == 1
    assert "Card not found" in missing.output


def test_fill_rejects_wrong_count(invoke):
    card_id = invoke("card", "new", "Short").stdout.strip()
    result = invoke("card", "fill", card_id, "1", "2")
    assert result.exit_code == 1
    assert "Expected 24 numbers" in result.output


def test_session_play_announces_win_once(invoke):
    card_id = _new_filled_card(invoke)
    start = invoke("session", "start", "--mode", "standard")
    assert start.exit_code == 0, start.output
    assert "mode STANDARD" in start.stdout

    result = invoke("call", "1", "16", "31", "46", "61")
    assert result.exit_code == 0, result.output
    assert "BINGO! Lucky: Standard Bingo" in result.stdout

    again = invoke("call", "2")
    assert "BINGO!" not in again.stdout

    status = invoke("status")
    assert status.exit_code == 0, status.output
    assert "Lucky" in status.stdout

    assert invoke("session", "reset").exit_code == 0
    replay = invoke("call", "1", "16", "31", "46", "61")
    assert "BINGO! Lucky" in replay.stdout
    assert card_id


def test_call_without_session_fails(invoke):
    result = invoke("call", "5")
    assert result.exit_code == 1
    assert "No active session" in result.output


def test_check_outputs_verdict(invoke):
    card_id = _new_filled_card(invoke)
    result = invoke("check", card_id, "--called", "1,17,49,65", "--mode", "STANDARD")
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["result"] == {
        "isWin": True,
        "winType": "Standard Bingo",
        "winningLines": ["diagMain"],
        "completedLineCount": 1,
    }
    assert payload["marks"][12] is True


def test_export_import(invoke, tmp_path: Path):
    _new_filled_card(invoke)
    out = tmp_path / "cards.json"
    assert invoke("card", "export", str(out)).exit_code == 0
    assert invoke("card", "export", str(out)).exit_code == 1

    other_store = str(tmp_path / "other.json")
    result = runner.invoke(app, ["--store", other_store, "card", "import", str(out)])
    assert result.exit_code == 0, result.output
    assert "Imported 1 card(s)" in result.stdout


def test_modes_lists_every_rule(invoke):
    result = invoke("modes")
    for name in ("STANDARD", "DOUBLE", "BOX", "X", "BLACKOUT", "NONE"):
        assert name in result.stdout


def test_import_rejects_malformed_and_shuffled_cards(invoke, tmp_path: Path):
    bad = tmp_path / "bad.json"
    bad.write_text('{"cards": [{"name": "x", "cells": []}]}', encoding="utf-8")
    result = invoke("card", "import", str(bad))
    assert result.exit_code == 1
    assert "Malformed card entry" in result.output

    _new_filled_card(invoke)
    out = tmp_path / "cards.json"
    assert invoke("card", "export", str(out)).exit_code == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    data["cards"][0]["cells"].reverse()
    out.write_text(json.dumps(data), encoding="utf-8")
    other_store = str(tmp_path / "other.json")
    result = runner.invoke(app, ["--store", other_store, "card", "import", str(out)])
    assert result.exit_code == 1
    assert "breaks the column rules" in result.output


def test_clear_rejects_out_of_range_cell(invoke):
    card_id = _new_filled_card(invoke)
    result = invoke("card", "clear", card_id, "30")
    assert result.exit_code == 1
    assert "Cell index must be within 0..24" in result.output


def test_session_restart_reports_kept_mode(invoke):
    _new_filled_card(invoke)
    assert invoke("session", "start", "--mode", "STANDARD").exit_code == 0
    restart = invoke("session", "start", "--mode", "BLACKOUT")
    assert restart.exit_code == 0, restart.output
    assert "Kept mode STANDARD" in restart.stdout
    assert "session mode BLACKOUT" in restart.stdout
    assert "mode STANDARD" in restart.stdout

    same = invoke("session", "start", "--mode", "STANDARD")
    assert "Kept mode" not in same.stdout


def test_uncalling_everything_rearms_announcements(invoke):
    _new_filled_card(invoke)
    assert invoke("session", "start").exit_code == 0
    first = invoke("call", "1", "16", "31", "46", "61")
    assert "BINGO! Lucky" in first.stdout

    cleared = invoke("call", "1", "16", "31", "46", "61")
    assert cleared.exit_code == 0, cleared.output
    assert "BINGO!" not in cleared.stdout

    replay = invoke("call", "1", "16", "31", "46", "61")
    assert "BINGO! Lucky: Standard Bingo" in replay.stdout
