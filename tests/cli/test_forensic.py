"""
Forensic CLI Tests
"""

import json

import pytest

from message_flags.forensic import main


@pytest.fixture
def event_log(tmp_path):
    path = tmp_path / "events.jsonl"
    lines = [
        {"type": "EVENT_NEW_MESSAGE", "message": {"id": 2, "flags": ["wildcard_mentioned"]}},
        {"type": "EVENT_UPDATE_MESSAGE_FLAGS", "operation": "add", "flag": "starred", "messages": [3, 4]},
        {"type": "EVENT_TYPING"},
    ]
    path.write_text("\n".join(json.dumps(line) for line in lines) + "\n", encoding="utf-8")
    return str(path)


def test_replay_json(event_log, capsys):
    assert main(["replay", event_log, "--json"]) == 0

    out = capsys.readouterr().out
    state = json.loads(out[out.index("{"):])
    assert state["mentioned"] == [2]
    assert state["starred"] == [3, 4]
    assert "3 events, 2 changed state, 1 rejected" in out


def test_replay_trace(event_log, capsys):
    assert main(["replay", event_log, "--trace"]) == 0

    out = capsys.readouterr().out
    assert "new_message" in out
    assert "REJECTED" in out
    assert "starred" in out


def test_query(event_log, capsys):
    assert main(["query", event_log, "starred", "4"]) == 0
    assert "starred on 4: set" in capsys.readouterr().out

    assert main(["query", event_log, "read", "4"]) == 0
    assert "read on 4: not set" in capsys.readouterr().out


def test_query_unknown_flag(event_log):
    assert main(["query", event_log, "shiny", "4"]) == 2


def test_verify(event_log, capsys):
    assert main(["verify", event_log]) == 0
    assert "[PASS]" in capsys.readouterr().out


def test_missing_log(tmp_path, capsys):
    assert main(["replay", str(tmp_path / "missing.jsonl")]) == 1
    assert "No event log" in capsys.readouterr().out


def test_no_command(capsys):
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out.lower()
