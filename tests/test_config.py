"""Tests for config loading and YAML rule tables."""

import re

import pytest

from pii_sentinel import ConfigurationError, Masking, TextSanitizer
from pii_sentinel.config import (
    build_rules,
    create_file_sanitizer,
    load_config,
    load_from_yaml,
    load_rules_from_yaml,
    rules_from_data,
)

from conftest import StubRecognizer


RULES_YAML = """\
rules:
  - name: Employee ID
    pattern: 'EMP-(\\d{6})'
    placeholder: '[EMPLOYEE]'
    masking: partial
    ignore_case: true
  - name: Email
    pattern: '[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\\.[a-zA-Z]{2,}'
    placeholder: '[EMAIL]'
"""


def test_defaults():
    cfg = load_config({})
    assert cfg["rules_file"] is None
    assert cfg["jpeg_quality"] == 90
    assert cfg["fallback_markers"] == ("card", "id")
    assert cfg["ocr_lang"] == "eng"


def test_nested_key_supported():
    cfg = load_config({"pii_sentinel": {"image": {"jpeg_quality": 75, "digit_padding": 12}}})
    assert cfg["jpeg_quality"] == 75
    assert cfg["digit_padding"] == 12


def test_bad_values_rejected():
    with pytest.raises(ConfigurationError):
        load_config({"image": {"jpeg_quality": 0}})
    with pytest.raises(ConfigurationError):
        load_config({"ocr": {"timeout": "soon"}})


@pytest.mark.parametrize("data", [
    {"image": ["jpeg_quality", 80]},
    {"pii_sentinel": {"ocr": "eng"}},
    {"pii_sentinel": ["image"]},
    ["image"],
])
def test_sections_must_be_mappings(data):
    with pytest.raises(ConfigurationError):
        load_config(data)


def test_rules_from_yaml_keep_order(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(RULES_YAML)
    rules = load_rules_from_yaml(path)

    assert rules.names == ["Employee ID", "Email"]
    emp = rules.get("Employee ID")
    assert emp.masking is Masking.PARTIAL_LAST_FOUR
    assert emp.flags & re.IGNORECASE

    result = TextSanitizer(rules).sanitize("badge emp-123456, mail a@b.io")
    assert result.text == "badge emp-xxxxxx3456, mail [EMAIL]"


def test_reordering_rules_changes_output():
    generic = {"name": "Digits", "pattern": r"\d+", "placeholder": "[N]"}
    specific = {"name": "Year", "pattern": r"\b(?:19|20)\d{2}\b", "placeholder": "[YEAR]"}
    a = TextSanitizer(rules_from_data({"rules": [specific, generic]})).sanitize("born 1990")
    b = TextSanitizer(rules_from_data({"rules": [generic, specific]})).sanitize("born 1990")
    assert a.text == "born [YEAR]"
    assert b.text == "born [N]"


@pytest.mark.parametrize("data", [
    None,
    {"rules": "nope"},
    {"rules": ["not a mapping"]},
    {"rules": [{"name": "X", "pattern": "x"}]},
    {"rules": [{"name": "X", "pattern": "x", "placeholder": "[X]", "masking": "half"}]},
    {"rules": [{"name": "X", "pattern": "(", "placeholder": "[X]"}]},
])
def test_malformed_rule_tables(data):
    with pytest.raises(ConfigurationError):
        rules_from_data(data)


def test_malformed_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("rules: [unclosed")
    with pytest.raises(ConfigurationError):
        load_rules_from_yaml(path)


def test_missing_file():
    with pytest.raises(ConfigurationError):
        load_from_yaml("/nonexistent/pii-sentinel.yaml")


def test_disabled_rules(tmp_path):
    cfg = load_config({"disabled_rules": ["Card Keyword"]})
    assert "Card Keyword" not in build_rules(cfg).names


def test_create_file_sanitizer_applies_image_config(tmp_path):
    path = tmp_path / "sentinel.yaml"
    path.write_text(
        "pii_sentinel:\n"
        "  image:\n"
        "    keyword_padding: 3\n"
        "    fallback_markers: [secret]\n"
        "    jpeg_quality: 70\n"
    )
    cfg = load_from_yaml(path)
    sanitizer = create_file_sanitizer(cfg, recognizer=StubRecognizer())

    assert sanitizer.jpeg_quality == 70
    assert sanitizer.image_redactor.config.keyword_padding == 3
    assert sanitizer.image_redactor.config.digit_padding == 40
    assert sanitizer.image_redactor.is_suspicious("TOP-SECRET.png")
    assert not sanitizer.image_redactor.is_suspicious("card.png")


def test_create_file_sanitizer_builds_tesseract_by_default():
    from pii_sentinel.ocr import TesseractRecognizer
    sanitizer = create_file_sanitizer({"ocr": {"lang": "deu", "timeout": 7}})
    assert isinstance(sanitizer.recognizer, TesseractRecognizer)
    assert sanitizer.recognizer.lang == "deu"
    assert sanitizer.recognizer.timeout == 7
