"""Tests for the pii-sentinel CLI."""

import io
import json

import pytest

from pii_sentinel.cli import main


@pytest.fixture(autouse=True)
def no_env_config(monkeypatch):
    monkeypatch.setattr("pii_sentinel.cli.DEFAULT_CONFIG", "")


def test_sanitize_text(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("Mail john@x.com, card 4111 1111 1111 1111"))
    assert main(["sanitize-text"]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out["text"] == "Mail [EMAIL], card xxxxxx1111 1111"
    assert [m["rule"] for m in out["matches"]][:2] == ["Email", "Credit Card"]


def test_rules_lists_table_in_order(capsys):
    assert main(["rules"]) == 0
    rules = json.loads(capsys.readouterr().out)
    assert rules[0]["name"] == "Email"
    assert rules[-1]["name"] == "Card Keyword"
    assert {r["masking"] for r in rules} == {"full", "partial"}


def test_custom_rules_and_disabled_rules(tmp_path, capsys):
    rules_file = tmp_path / "rules.yaml"
    rules_file.write_text(
        "rules:\n"
        "  - name: Ticket\n"
        "    pattern: 'TCK-\\d+'\n"
        "    placeholder: '[TICKET]'\n"
        "  - name: Digits\n"
        "    pattern: '\\d+'\n"
        "    placeholder: '[N]'\n"
    )
    config = tmp_path / "sentinel.yaml"
    config.write_text("pii_sentinel:\n  disabled_rules: [Digits]\n")

    assert main(["--config", str(config), "--rules", str(rules_file), "rules"]) == 0
    assert [r["name"] for r in json.loads(capsys.readouterr().out)] == ["Ticket"]


def test_sanitize_file_writes_output(tmp_path, capsys):
    src = tmp_path / "notes.txt"
    src.write_text("ip 192.168.1.20")
    assert main(["sanitize-file", str(src)]) == 0

    out = json.loads(capsys.readouterr().out)
    written = tmp_path / "notes.sanitized.txt"
    assert out["kind"] == "text"
    assert out["output"] == str(written)
    assert out["image_outcome"] is None
    assert written.read_text() == "ip [IP_ADDRESS]"
    assert src.read_text() == "ip 192.168.1.20"


def test_bad_rules_file_exits_nonzero(tmp_path, capsys):
    bad = tmp_path / "rules.yaml"
    bad.write_text("rules:\n  - name: Broken\n    pattern: '('\n    placeholder: '[X]'\n")
    assert main(["--rules", str(bad), "rules"]) == 1
    assert capsys.readouterr().err.startswith("error:")
