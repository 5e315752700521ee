"""Core types."""

from __future__ import annotations
import enum
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from PIL import Image


class Masking(enum.Enum):
    """How a rule's placeholder is produced."""
    FULL = "full"                          # static placeholder, e.g. [EMAIL]
    PARTIAL_LAST_FOUR = "partial"          # xxxxxx + last 4 alphanumerics


@dataclass(frozen=True, slots=True)
class SanitizationRule:
    """One entry of the rule cascade.

    ``pattern`` is the regex source; it may hold at most one capturing
    group.  When the group participates in a match only the captured text
    is treated as sensitive and the rest of the match is kept as context.
    """
    name: str
    pattern: str
    placeholder: str
    masking: Masking = Masking.FULL
    flags: int = 0                         # re.IGNORECASE etc.

    @property
    def partial(self) -> bool:
        return self.masking is Masking.PARTIAL_LAST_FOUR

    @property
    def ignore_case(self) -> bool:
        return bool(self.flags & re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class Match:
    """A single redaction performed by the text cascade."""
    rule_name: str
    matched_value: str       # the sensitive substring that was replaced
    placeholder_used: str


@dataclass(slots=True)
class SanitizedResult:
    """Result of sanitizing a string."""
    text: str
    matches: list[Match] = field(default_factory=list)   # in rule order


# ── OCR geometry ─────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned box in pixel space, x1/y1 exclusive."""
    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    def union(self, other: BoundingBox) -> BoundingBox:
        return BoundingBox(
            min(self.x0, other.x0), min(self.y0, other.y0),
            max(self.x1, other.x1), max(self.y1, other.y1),
        )


@dataclass(frozen=True, slots=True)
class OcrWord:
    text: str
    bbox: BoundingBox


@dataclass(frozen=True, slots=True)
class OcrLine:
    text: str
    bbox: BoundingBox
    words: tuple[OcrWord, ...] = ()


@dataclass(frozen=True, slots=True)
class RedactionRegion:
    """A rectangle to paint opaque: the box grown by ``padding`` on every side."""
    bbox: BoundingBox
    padding: int
    reason: str = ""         # "keyword" | "digits" | "rule:<name>" | "word-digits" | ...

    def bounds(self) -> tuple[int, int, int, int]:
        """Painted area as (left, top, right, bottom), right/bottom exclusive."""
        p = self.padding
        return (self.bbox.x0 - p, self.bbox.y0 - p, self.bbox.x1 + p, self.bbox.y1 + p)


# ── Image outcomes ───────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class StructuredRedaction:
    """Recognition succeeded; these regions were painted (possibly none)."""
    regions: tuple[RedactionRegion, ...] = ()


@dataclass(frozen=True, slots=True)
class FallbackBlur:
    """Recognition failed; the whole frame was blurred and overlaid."""
    reason: str


@dataclass(frozen=True, slots=True)
class Unverified:
    """Recognition failed and the fallback was not triggered for this file."""
    reason: str


RedactionOutcome = Union[StructuredRedaction, FallbackBlur, Unverified]


@dataclass(slots=True)
class ImageRedaction:
    image: Image.Image
    outcome: RedactionOutcome


# ── Files ────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class UploadedFile:
    """An in-memory file: name, declared MIME type and raw bytes."""
    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(slots=True)
class FileSanitizationResult:
    """Result of sanitizing a file."""
    file: UploadedFile                     # always a fresh object
    kind: str                              # "image" | "text" | "binary"
    sanitized_text: str | None = None      # text files only
    matches: list[Match] = field(default_factory=list)
    image_outcome: RedactionOutcome | None = None
