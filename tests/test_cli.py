"""Tests for the command line interface."""

import json

import pytest

from shelflife.cli import main


@pytest.fixture(autouse=True)
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "cli.db"
    monkeypatch.setenv("SHELFLIFE_DB", str(path))
    return path


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit):
        main([])
    assert "usage" in capsys.readouterr().out


def test_normalize(capsys):
    main(["normalize", "03/09/25", "--today", "2025-03-01"])
    out = capsys.readouterr().out
    assert out.splitlines()[0] == "2025-03-09"
    assert "Mar 9, 2025" in out
    assert "8d left" in out


def test_normalize_json(capsys):
    main(["normalize", "EXP: 29/02/2023", "--json"])
    data = json.loads(capsys.readouterr().out)
    assert data == {"expiry_date": "unknown", "days_left": None, "status": "unknown"}


def test_normalize_rejects_bad_today():
    with pytest.raises(SystemExit):
        main(["normalize", "03/09/25", "--today", "09/03/2025"])


def test_add_and_list(capsys):
    main(["add", "--user", "alice", "Milk", "1 liter", "11/01/2025"])
    main(["add", "--user", "alice", "Rice", "2 kg", "unknown"])
    main(["add", "--user", "alice", "Bread", "1", "2025-01-08"])
    capsys.readouterr()

    main(["list", "--user", "alice", "--today", "2025-01-10", "--json"])
    data = json.loads(capsys.readouterr().out)
    assert [d["item_name"] for d in data] == ["Bread", "Milk", "Rice"]
    assert [d["status"] for d in data] == ["expired", "expiring-soon", "unknown"]


def test_list_filter_expiring(capsys):
    main(["add", "--user", "alice", "Milk", "1", "2025-01-12"])
    main(["add", "--user", "alice", "Pasta", "1", "2025-06-01"])
    capsys.readouterr()

    main(["list", "--user", "alice", "--today", "2025-01-10", "--filter", "expiring"])
    out = capsys.readouterr().out
    assert "Total 2 | fresh 1 | expiring 1 | expired 0 | unknown 0" in out
    assert "Milk" in out
    assert "Pasta" not in out.split("\n", 1)[1]
    assert "Use soon: Milk" in out


def test_add_unreadable_date_warns(capsys):
    main(["add", "--user", "alice", "Cheese", "1", "sometime"])
    captured = capsys.readouterr()
    assert "expires unknown" in captured.out
    assert "Could not read expiry date" in captured.err


def test_notify(capsys):
    main(["add", "--user", "alice", "Milk", "1", "2025-01-11"])
    capsys.readouterr()

    main(["notify", "--user", "alice", "--today", "2025-01-10"])
    out = capsys.readouterr().out
    assert "1 unread (1 new)" in out
    assert "Expires Tomorrow: Milk expires tomorrow." in out

    main(["notify", "--user", "alice", "--today", "2025-01-10", "--mark-read"])
    assert "0 unread (0 new)" in capsys.readouterr().out


def test_check(capsys):
    main(["add", "--user", "alice", "Milk", "1", "2025-01-11"])
    main(["add", "--user", "bob", "Eggs", "12", "2025-01-20"])
    capsys.readouterr()

    main(["check", "--today", "2025-01-10"])
    out = capsys.readouterr().out
    assert "1 item(s) expiring on 2025-01-11" in out
    assert "[alice] Milk (1)  1d" in out

    main(["check", "--today", "2025-01-10", "--days-ahead", "3"])
    assert "No items expiring on 2025-01-13." in capsys.readouterr().out


def test_scan_requires_api_key(monkeypatch, tmp_path):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    img = tmp_path / "r.jpg"
    img.write_bytes(b"fake")
    with pytest.raises(ValueError, match="API key"):
        main(["scan", "--image", str(img)])
