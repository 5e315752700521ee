"""Placeholder selection and capture-group splicing."""

from __future__ import annotations
import re

from .types import SanitizationRule

MASK_PREFIX = "xxxxxx"
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def partial_mask(value: str) -> str | None:
    """Return ``xxxxxx`` plus the last four alphanumerics of ``value``.

    With fewer than four alphanumerics all of them are kept.  Returns None
    when ``value`` holds no alphanumerics at all.
    """
    clean = _NON_ALNUM.sub("", value)
    if not clean:
        return None
    return MASK_PREFIX + clean[-4:]


class MaskingPolicy:
    """Decides what replaces a sensitive value.

    The choice is keyed on the rule's declared ``masking`` field, so two
    rules with the same pattern can mask differently.
    """

    def placeholder_for(self, rule: SanitizationRule, value: str) -> str:
        if rule.partial:
            masked = partial_mask(value)
            if masked is not None:
                return masked
        return rule.placeholder

    def replacement(self, rule: SanitizationRule, m: re.Match[str]) -> tuple[str, str, str]:
        """Return ``(sensitive_value, placeholder, replacement_text)`` for one match.

        If the rule's group took part in the match only the group's span is
        swapped for the placeholder, keeping the surrounding context (a field
        label such as ``Name:``).  Otherwise the whole match is replaced.
        """
        whole = m.group(0)
        if m.re.groups and m.start(1) != -1:
            value = m.group(1)
            placeholder = self.placeholder_for(rule, value)
            return value, placeholder, self.splice(whole, m.start(1) - m.start(), value, placeholder)
        placeholder = self.placeholder_for(rule, whole)
        return whole, placeholder, placeholder

    @staticmethod
    def splice(whole: str, offset: int, value: str, placeholder: str) -> str:
        """Replace ``value`` at ``offset`` inside ``whole`` with ``placeholder``."""
        return whole[:offset] + placeholder + whole[offset + len(value):]
