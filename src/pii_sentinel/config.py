"""YAML/dict config loader for pii-sentinel.

Supports loading from a YAML file or a plain dict (for embedding in a
larger application config).

Example YAML:

    pii_sentinel:
      rules_file: ~/.pii-sentinel/rules.yaml   # replaces the built-in table
      disabled_rules:
        - Card Keyword
      image:
        keyword_padding: 35
        digit_padding: 40
        fallback_markers: [card, id]
        fallback_on_any_failure: false
        jpeg_quality: 90
      ocr:
        lang: eng
        timeout: 30

Rule files list rules in priority order:

    rules:
      - name: Email
        pattern: '[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\\.[a-zA-Z]{2,}'
        placeholder: '[EMAIL]'
      - name: Employee ID
        pattern: 'EMP-(\\d{6})'
        placeholder: '[EMPLOYEE]'
        masking: partial
        ignore_case: true
"""

from __future__ import annotations
import re
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError
from .files import JPEG_QUALITY, FileSanitizer
from .image import DEFAULT_KEYWORDS, ImageRedactor, ImageRedactorConfig
from .ocr import TesseractRecognizer
from .patterns import RuleSet
from .types import Masking, SanitizationRule

_IMAGE_INT_KEYS = ("keyword_padding", "digit_padding", "rule_padding", "word_padding")


def _read_yaml(path: str | Path) -> Any:
    path = Path(path).expanduser()
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Malformed YAML in {path}: {exc}") from exc


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "pii_sentinel" key or flat
    if isinstance(data, dict) and "pii_sentinel" in data:
        data = data["pii_sentinel"] or {}
    if not isinstance(data, dict):
        raise ConfigurationError("pii_sentinel config must be a mapping")

    image = data.get("image") or {}
    ocr = data.get("ocr") or {}
    for section, value in (("image", image), ("ocr", ocr)):
        if not isinstance(value, dict):
            raise ConfigurationError(f"pii_sentinel.{section} must be a mapping")
    try:
        cfg = {
            "rules_file": data.get("rules_file"),
            "disabled_rules": list(data.get("disabled_rules", [])),
            "keywords": tuple(image.get("keywords", DEFAULT_KEYWORDS)),
            "fallback_markers": tuple(image.get("fallback_markers", ("card", "id"))),
            "fallback_on_any_failure": bool(image.get("fallback_on_any_failure", False)),
            "jpeg_quality": int(image.get("jpeg_quality", JPEG_QUALITY)),
            "ocr_lang": str(ocr.get("lang", "eng")),
            "ocr_timeout": float(ocr.get("timeout", 30)),
        }
        for key in _IMAGE_INT_KEYS:
            if key in image:
                cfg[key] = int(image[key])
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid pii_sentinel config value: {exc}") from exc

    if not 1 <= cfg["jpeg_quality"] <= 100:
        raise ConfigurationError(f"jpeg_quality must be within 1..100, got {cfg['jpeg_quality']}")
    return cfg


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    return load_config(_read_yaml(path))


def rules_from_data(data: Any) -> RuleSet:
    """Build a RuleSet from a ``{"rules": [...]}`` mapping, keeping list order."""
    entries = data.get("rules") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ConfigurationError("Rule file must contain a 'rules' list")

    rules: list[SanitizationRule] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Rule #{i} must be a mapping")
        try:
            name, pattern, placeholder = entry["name"], entry["pattern"], entry["placeholder"]
        except KeyError as exc:
            raise ConfigurationError(f"Rule #{i} is missing {exc.args[0]!r}") from exc
        try:
            masking = Masking(entry.get("masking", "full"))
        except ValueError as exc:
            raise ConfigurationError(
                f"Rule {name!r}: masking must be 'full' or 'partial'"
            ) from exc
        flags = re.IGNORECASE if entry.get("ignore_case") else 0
        rules.append(SanitizationRule(str(name), str(pattern), str(placeholder), masking, flags))
    return RuleSet(rules)


def load_rules_from_yaml(path: str | Path) -> RuleSet:
    """Load a rule table from a YAML file."""
    return rules_from_data(_read_yaml(path))


def build_rules(cfg: dict[str, Any]) -> RuleSet:
    rules = load_rules_from_yaml(cfg["rules_file"]) if cfg.get("rules_file") else RuleSet.default()
    if cfg.get("disabled_rules"):
        rules = rules.without(cfg["disabled_rules"])
    return rules


def build_image_config(cfg: dict[str, Any]) -> ImageRedactorConfig:
    overrides = {key: cfg[key] for key in _IMAGE_INT_KEYS if key in cfg}
    return ImageRedactorConfig(
        keywords=cfg["keywords"],
        fallback_markers=cfg["fallback_markers"],
        fallback_on_any_failure=cfg["fallback_on_any_failure"],
        **overrides,
    )


def create_file_sanitizer(config: dict[str, Any], recognizer=None) -> FileSanitizer:
    """Create a fully configured FileSanitizer from a config dict."""
    cfg = load_config(config) if "jpeg_quality" not in config else config
    rules = build_rules(cfg)
    if recognizer is None:
        recognizer = TesseractRecognizer(lang=cfg["ocr_lang"], timeout=cfg["ocr_timeout"])
    return FileSanitizer(
        rules,
        recognizer,
        image_redactor=ImageRedactor(rules, build_image_config(cfg)),
        jpeg_quality=cfg["jpeg_quality"],
    )
