"""CLI interface for pii-sentinel.

Usage:
    # Sanitize text (stdin: raw text, stdout: JSON with text and matches)
    echo 'Mail john@x.com, card 4111111111111111' | \\
        python -m pii_sentinel.cli sanitize-text

    # Sanitize a file (writes scan.sanitized.png next to it)
    python -m pii_sentinel.cli sanitize-file scan.png

    # Show the active rule table
    python -m pii_sentinel.cli --config sentinel.yaml rules

Logs go to stderr so stdout stays machine-readable.
"""

from __future__ import annotations
import argparse
import json
import logging
import mimetypes
import os
import sys
from pathlib import Path

from .config import build_rules, create_file_sanitizer, load_config, load_from_yaml
from .errors import SentinelError
from .sanitizer import TextSanitizer
from .types import FallbackBlur, Match, RedactionOutcome, StructuredRedaction, UploadedFile


DEFAULT_CONFIG = os.environ.get("PII_SENTINEL_CONFIG", "")


def _load_cfg(args: argparse.Namespace) -> dict:
    cfg = load_from_yaml(args.config) if args.config else load_config({})
    if args.rules:
        cfg["rules_file"] = args.rules
    return cfg


def _matches_json(matches: list[Match]) -> list[dict]:
    return [
        {"rule": m.rule_name, "value": m.matched_value, "placeholder": m.placeholder_used}
        for m in matches
    ]


def _outcome_json(outcome: RedactionOutcome | None) -> dict | None:
    if outcome is None:
        return None
    if isinstance(outcome, StructuredRedaction):
        return {
            "type": "structured",
            "regions": [
                {"bounds": list(r.bounds()), "reason": r.reason} for r in outcome.regions
            ],
        }
    kind = "fallback_blur" if isinstance(outcome, FallbackBlur) else "unverified"
    return {"type": kind, "reason": outcome.reason}


def _default_output(path: Path) -> Path:
    return path.with_name(f"{path.stem}.sanitized{path.suffix}")


def cmd_sanitize_text(args: argparse.Namespace) -> None:
    """Sanitize plain text on stdin."""
    sanitizer = TextSanitizer(build_rules(_load_cfg(args)))
    result = sanitizer.sanitize(sys.stdin.read())
    json.dump({"text": result.text, "matches": _matches_json(result.matches)},
              sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_sanitize_file(args: argparse.Namespace) -> None:
    """Sanitize a file and write the re-encoded artifact."""
    path = Path(args.path)
    content_type = args.content_type or mimetypes.guess_type(path.name)[0] or ""
    upload = UploadedFile(path.name, content_type, path.read_bytes())

    result = create_file_sanitizer(_load_cfg(args)).sanitize(upload)

    output = Path(args.output) if args.output else _default_output(path)
    output.write_bytes(result.file.data)
    json.dump({
        "kind": result.kind,
        "output": str(output),
        "content_type": result.file.content_type,
        "matches": _matches_json(result.matches),
        "image_outcome": _outcome_json(result.image_outcome),
    }, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_rules(args: argparse.Namespace) -> None:
    """List the active rule table in priority order."""
    rules = build_rules(_load_cfg(args))
    json.dump([
        {
            "name": rule.name,
            "placeholder": rule.placeholder,
            "masking": rule.masking.value,
            "ignore_case": rule.ignore_case,
        }
        for rule in rules
    ], sys.stdout, indent=2)
    sys.stdout.write("\n")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pii-sentinel",
        description="Rule-based PII sanitization for text, files and images",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="YAML config file")
    parser.add_argument("--rules", default="", help="YAML rule table replacing the built-in one")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (stderr)")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("sanitize-text", help="Sanitize plain text (stdin)")
    p_file = sub.add_parser("sanitize-file", help="Sanitize a file")
    p_file.add_argument("path")
    p_file.add_argument("--output", "-o", default="", help="Output path")
    p_file.add_argument("--content-type", default="", help="Override the guessed MIME type")
    sub.add_parser("rules", help="List active rules")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cmds = {
        "sanitize-text": cmd_sanitize_text,
        "sanitize-file": cmd_sanitize_file,
        "rules": cmd_rules,
    }
    try:
        cmds[args.command](args)
    except SentinelError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
