"""TextSanitizer: the main text API.  Ordered rule cascade with masking.

Usage:
    from pii_sentinel import RuleSet, TextSanitizer

    sanitizer = TextSanitizer(RuleSet.default())   # reusable, thread-safe

    result = sanitizer.sanitize("Email me at john@acme.com")
    print(result.text)        # "Email me at [EMAIL]"
    print(result.matches)     # [Match(rule_name='Email', ...)]
"""

from __future__ import annotations
import logging
import re

from .masking import MaskingPolicy
from .patterns import RuleSet
from .types import Match, SanitizationRule, SanitizedResult

logger = logging.getLogger(__name__)


class TextSanitizer:
    """Applies a RuleSet to strings.

    Rules run in table order.  Rule *i* rewrites every non-overlapping
    match in the text produced by rules ``0..i-1``; its placeholders are
    plain text to the rules after it.  Sanitizing is a pure function of the
    input and the RuleSet and does not raise.
    """

    def __init__(self, rules: RuleSet | None = None, policy: MaskingPolicy | None = None) -> None:
        self.rules = rules if rules is not None else RuleSet.default()
        self.policy = policy or MaskingPolicy()

    def sanitize(self, text: str) -> SanitizedResult:
        """Redact every rule region in ``text``.

        Returns a SanitizedResult whose matches are ordered by rule, then
        by position within that rule's pass.
        """
        matches: list[Match] = []
        if not text:
            return SanitizedResult(text=text, matches=matches)

        result = text
        for rule, pattern in self.rules.compiled():
            result = pattern.sub(self._replacer(rule, matches), result)

        if matches:
            logger.debug("Sanitized text: %d matches across %d rules",
                         len(matches), len({m.rule_name for m in matches}))
        return SanitizedResult(text=result, matches=matches)

    def _replacer(self, rule: SanitizationRule, sink: list[Match]):
        def replace(m: re.Match[str]) -> str:
            value, placeholder, replacement = self.policy.replacement(rule, m)
            sink.append(Match(rule_name=rule.name, matched_value=value, placeholder_used=placeholder))
            return replacement
        return replace

    def sanitize_messages(
        self,
        messages: list[dict],
        *,
        content_key: str = "content",
        skip_roles: frozenset[str] = frozenset({"system"}),
    ) -> tuple[list[dict], list[Match]]:
        """Sanitize a list of OpenAI-format chat messages.

        Returns new message dicts plus the matches from all of them.  Does
        NOT mutate the originals.
        """
        out: list[dict] = []
        matches: list[Match] = []
        for msg in messages:
            content = msg.get(content_key)
            if isinstance(content, str) and content and msg.get("role") not in skip_roles:
                result = self.sanitize(content)
                matches.extend(result.matches)
                out.append({**msg, content_key: result.text})
            else:
                out.append(dict(msg))
        return out, matches
