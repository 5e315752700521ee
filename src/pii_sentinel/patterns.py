"""The rule table and the compiled, read-only RuleSet.

Rules run in the order listed.  Each rule scans the text as left by the
rules before it, so placeholders written by an early rule are ordinary
input to the later, broader ones (the Safety Net and Generic ID rules in
particular).  Reordering the table changes the output.

Patterns are compiled with ``re.ASCII``: ``\\d``, ``\\w`` and ``\\b`` cover
ASCII characters only.
"""

from __future__ import annotations
import logging
import re
from typing import Iterable, Iterator

from .errors import ConfigurationError
from .types import Masking, SanitizationRule

logger = logging.getLogger(__name__)

_I = re.IGNORECASE
_PARTIAL = Masking.PARTIAL_LAST_FOUR

DEFAULT_RULES: tuple[SanitizationRule, ...] = (
    SanitizationRule(
        "Email",
        r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}",
        "[EMAIL]",
    ),
    SanitizationRule(
        "Credit Card",
        r"\b(?:\d[ -]*?){12,19}\b",
        "[CARD]", _PARTIAL,
    ),
    # Catches long digit runs the card rule's boundaries missed.
    SanitizationRule(
        "Safety Net (Card-like)",
        r"(?:\d[ \t\n-]*?){12,20}",
        "[SENSITIVE]", _PARTIAL,
    ),
    SanitizationRule(
        "Phone Number",
        r"\b(?:\+?\d{1,3}[- ]?)?\(?\d{3}\)?[- ]?\d{3}[- ]?\d{4}\b",
        "[PHONE]", _PARTIAL,
    ),
    SanitizationRule(
        "Social Security Number",
        r"\b\d{3}[- ]?\d{2}[- ]?\d{4}\b",
        "[SSN]", _PARTIAL,
    ),
    SanitizationRule(
        "IPv4 Address",
        r"\b(?:\d{1,3}\.){3}\d{1,3}\b",
        "[IP_ADDRESS]",
    ),
    SanitizationRule(
        "Password/Secret",
        r"(?:password|passwd|secret|key|token|auth|api_key|api-key)\s*[:=]\s*[\"']?([a-zA-Z0-9_\-]{8,})[\"']?",
        "[SECRET]", flags=_I,
    ),
    SanitizationRule(
        "Aadhaar Number",
        r"\b\d{4}[ -]?\d{4}[ -]?\d{4}\b",
        "[AADHAAR]", _PARTIAL,
    ),
    SanitizationRule(
        "Virtual ID (VID)",
        r"\b\d{4}[ -]?\d{4}[ -]?\d{4}[ -]?\d{4}\b",
        "[VID]", _PARTIAL,
    ),
    SanitizationRule(
        "Mobile Number",
        r"\b(?:(?:\+|0{0,2})91[\s-]?)?[6789]\d{9}\b",
        "[MOBILE]", _PARTIAL,
    ),
    SanitizationRule(
        "Registration/Roll Number",
        r"\b(?:Reg(?:istration)?|Roll|Enrollment|Seat|Hall\s*Ticket|Admit\s*Card|Application"
        r"|Exam|Ticket|Debit\s*Card|Credit\s*Card|Card)\s*(?:No|Number|Code|Id)?\s*(?:is|:|=|\s)+\s*"
        r"(?!(?:No|Number|Code|Id)\b)([A-Z0-9-]{4,20})\b",
        "[REG_NO]", _PARTIAL, _I,
    ),
    SanitizationRule(
        "College/Center Code",
        r"\b(?:College|Inst|Center|School|Dept|Venue)\s*(?:Code|Id|No)?\s*(?:is|:|=|\s)+\s*"
        r"(?!(?:Code|Id|No)\b)([A-Z0-9]{3,10})\b",
        "[CODE]", flags=_I,
    ),
    SanitizationRule(
        "Address",
        r"\b(?:Address|Residing\s*at|Location|Venue)\s*(?:is|:|=|\s)+\s*([\w\s,.-]{10,100})",
        "[ADDRESS]", flags=_I,
    ),
    SanitizationRule(
        "Full Name",
        r"\b(?:Name|Student\s*Name|Candidate\s*Name|User|Cardholder|Name\s*on\s*Card)\s*(?:is|:|=|\s)+\s*"
        r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+){1,3})",
        "[NAME]", flags=_I,
    ),
    SanitizationRule(
        "Generic ID",
        r"\b[A-Z0-9]{2,4}[0-9]{5,12}\b",
        "[ID]", _PARTIAL,
    ),
    SanitizationRule(
        "Card Expiry",
        r"\b(?:Valid\s*Thru|Exp(?:iry)?|Expires|Expiry\s*Date|Valid\s*From|From)\s*(?:is|:|=|\s)*\s*"
        r"(\d{2}\s*[/\-]\s*\d{2,4})\b",
        "[DATE]", flags=_I,
    ),
    # Month alternation is non-capturing so the whole MM/YY is replaced.
    SanitizationRule(
        "Card Expiry (Standalone)",
        r"\b(?:0[1-9]|1[0-2])\s*[/\-]\s*\d{2,4}\b",
        "[DATE]",
    ),
    SanitizationRule(
        "CVV/CVC",
        r"\b(?:CVV|CVC|Security\s*Code)\s*(?:is|:|=|\s)*\s*(\d{3,4})\b",
        "[CVV]", _PARTIAL, _I,
    ),
    SanitizationRule(
        "PAN Card",
        r"\b[A-Z]{5}[0-9]{4}[A-Z]{1}\b",
        "[PAN]", _PARTIAL,
    ),
    SanitizationRule(
        "IFSC Code",
        r"\b[A-Z]{4}0[A-Z0-9]{6}\b",
        "[IFSC]", _PARTIAL,
    ),
    SanitizationRule(
        "Bank Account",
        r"\b(?:\d{9,18})\b",
        "[ACCOUNT]", _PARTIAL,
    ),
    SanitizationRule(
        "Date of Birth",
        r"\b(?:DOB|Date\s*of\s*Birth|Born)\s*(?:is|:|=|\s)*\s*(\d{2}[-/]\d{2}[-/]\d{2,4})\b",
        "[DOB]", flags=_I,
    ),
    SanitizationRule(
        "Card Keyword",
        r"\b(?:BANK|CREDIT|DEBIT|VISA|MASTERCARD|CVV|CVC|EXPIRY|VALID|THRU|CARDHOLDER|AADHAAR|PAN"
        r"|INCOME TAX|GOVT|INDIA|UNIQUE IDENTIFICATION|AUTHORITY)\b",
        "[SENSITIVE]", flags=_I,
    ),
)

# Probes used to reject patterns that can consume nothing.
_EMPTY_PROBES = ("", " ", "a", "A", "0", "-")


def _compile(rule: SanitizationRule) -> re.Pattern[str]:
    try:
        compiled = re.compile(rule.pattern, rule.flags | re.ASCII)
    except (re.error, ValueError) as exc:
        raise ConfigurationError(f"Rule {rule.name!r} has an invalid pattern: {exc}") from exc
    if compiled.groups > 1:
        raise ConfigurationError(
            f"Rule {rule.name!r} has {compiled.groups} capturing groups; at most one is allowed"
        )
    for probe in _EMPTY_PROBES:
        m = compiled.search(probe)
        if m is not None and m.start() == m.end():
            raise ConfigurationError(f"Rule {rule.name!r} can match the empty string")
    return compiled


def relax_pattern(rule: SanitizationRule) -> re.Pattern[str]:
    """Compile ``rule`` for OCR text: word boundaries dropped, case ignored.

    OCR tokenization breaks natural word boundaries, so ``\\b`` anchors
    would make the rules miss text a human can read in the image.
    Character classes stay ASCII-only, as for the strict patterns.
    """
    return re.compile(rule.pattern.replace(r"\b", ""), rule.flags | re.IGNORECASE | re.ASCII)


class RuleSet:
    """Ordered, immutable table of sanitization rules.

    All patterns are compiled (and validated) here, so a bad table fails
    before any text is processed.  Compiled ``re.Pattern`` objects carry no
    scan position, so one RuleSet can be shared across threads.
    """

    __slots__ = ("_rules", "_compiled", "_relaxed")

    def __init__(self, rules: Iterable[SanitizationRule]) -> None:
        rules = tuple(rules)
        seen: set[str] = set()
        for rule in rules:
            if rule.name in seen:
                raise ConfigurationError(f"Duplicate rule name {rule.name!r}")
            seen.add(rule.name)
            if not isinstance(rule.masking, Masking):
                raise ConfigurationError(f"Rule {rule.name!r} has unknown masking {rule.masking!r}")
        self._rules = rules
        self._compiled = tuple((rule, _compile(rule)) for rule in rules)
        try:
            self._relaxed = tuple((rule, relax_pattern(rule)) for rule in rules)
        except (re.error, ValueError) as exc:
            raise ConfigurationError(f"Rule table cannot be relaxed for OCR text: {exc}") from exc
        logger.debug("Built rule set with %d rules", len(rules))

    @classmethod
    def default(cls) -> RuleSet:
        return cls(DEFAULT_RULES)

    def without(self, names: Iterable[str]) -> RuleSet:
        """Return a new RuleSet with the named rules removed, order preserved."""
        drop = set(names)
        unknown = drop - set(self.names)
        if unknown:
            raise ConfigurationError(f"Unknown rule names: {', '.join(sorted(unknown))}")
        return RuleSet(r for r in self._rules if r.name not in drop)

    def compiled(self) -> tuple[tuple[SanitizationRule, re.Pattern[str]], ...]:
        return self._compiled

    def relaxed(self) -> tuple[tuple[SanitizationRule, re.Pattern[str]], ...]:
        """Rules compiled for OCR line/word text."""
        return self._relaxed

    @property
    def names(self) -> list[str]:
        return [r.name for r in self._rules]

    def get(self, name: str) -> SanitizationRule | None:
        for rule in self._rules:
            if rule.name == name:
                return rule
        return None

    def __iter__(self) -> Iterator[SanitizationRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"<RuleSet: {len(self._rules)} rules>"
