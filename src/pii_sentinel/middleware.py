"""Outbound guard for chat pipelines: sanitize before anything reaches a model.

Usage:
    guard = PromptGuard.create(recognizer=my_ocr)

    # Before sending to provider
    safe_messages = guard.pre_send(messages)
    prompt, result = guard.attach_file(prompt, upload)

    # Audit trail for the caller to log
    for match in guard.matches:
        print(match.rule_name, match.placeholder_used)
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field

from .files import FileSanitizer
from .patterns import RuleSet
from .sanitizer import TextSanitizer
from .types import FileSanitizationResult, Match, UploadedFile

PREVIEW_CHARS = 1000


@dataclass
class PromptGuard:
    """Sits between the chat caller and the model call."""

    sanitizer: TextSanitizer
    files: FileSanitizer
    matches: list[Match] = field(default_factory=list)

    @classmethod
    def create(cls, *, rules: RuleSet | None = None, recognizer=None) -> PromptGuard:
        """Factory: one RuleSet shared by the text and file paths."""
        rules = rules if rules is not None else RuleSet.default()
        return cls(sanitizer=TextSanitizer(rules), files=FileSanitizer(rules, recognizer))

    def pre_send(self, messages: list[dict]) -> list[dict]:
        """Sanitize outbound non-system messages."""
        safe, found = self.sanitizer.sanitize_messages(messages)
        self.matches.extend(found)
        return safe

    def sanitize_text(self, text: str) -> str:
        """Sanitize a single string (convenience)."""
        result = self.sanitizer.sanitize(text)
        self.matches.extend(result.matches)
        return result.text

    def attach_file(self, text: str, file: UploadedFile) -> tuple[str, FileSanitizationResult]:
        """Sanitize ``file`` and append a note about it to the outbound prompt text."""
        result = self.files.sanitize(file)
        self.matches.extend(result.matches)
        if result.sanitized_text is not None:
            preview = result.sanitized_text[:PREVIEW_CHARS]
            if len(result.sanitized_text) > PREVIEW_CHARS:
                preview += "..."
            note = (
                f'\n\n[System Note: The attached file "{file.name}" has been sanitized. '
                "Sensitive data inside the file has been masked.]"
                f"\n[Sanitized File Content Preview]:\n{preview}"
            )
        else:
            note = (
                f'\n\n[System Note: The attached file "{file.name}" has been processed. '
                "Metadata has been stripped and PII masking applied where possible.]"
            )
        return text + note, result

    @property
    def stats(self) -> dict:
        return {
            "matches": len(self.matches),
            "by_rule": dict(Counter(m.rule_name for m in self.matches)),
        }
