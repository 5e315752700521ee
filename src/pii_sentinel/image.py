"""Image redaction driven by OCR geometry.

Each recognized line goes through three tiers, first hit wins:

1. keyword   - line mentions a banking/identity term: paint the line +35px
2. digits    - 4-20 digit-like characters (OCR confusions included): line +40px
3. rule      - any text rule, word boundaries relaxed: line +10px

When no tier fires for the line, tiers 2 and 3 are retried on each word
(3-20 digit-likes, word box +10px) so a lone CVV is still caught.

If recognition itself fails and the filename looks like a card or ID
scan, the whole frame is blurred and darkened instead.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from .errors import RecognitionFailure
from .ocr import Recognizer
from .patterns import RuleSet
from .types import (
    FallbackBlur,
    ImageRedaction,
    OcrLine,
    RedactionRegion,
    StructuredRedaction,
    Unverified,
)

logger = logging.getLogger(__name__)

DEFAULT_KEYWORDS: tuple[str, ...] = (
    "BANK", "CREDIT", "DEBIT", "VISA", "MASTERCARD", "CVV", "CVC",
    "EXPIRY", "VALID", "THRU", "CARDHOLDER", "AADHAAR", "VID", "VIRTUAL ID", "PAN",
    "INCOME TAX", "GOVT", "INDIA", "UNIQUE IDENTIFICATION", "AUTHORITY",
    "MALE", "FEMALE", "GENDER", "DOB", "BIRTH",
)

# OCR reads 8 as B, 0 as O, 1 as I/i/l/L.
DIGIT_LIKE = "[0-9BOIilL]"
_SEPARATOR = r"[ \t\n-]"


def digit_run(minimum: int, maximum: int = 20) -> re.Pattern[str]:
    return re.compile(rf"(?:{DIGIT_LIKE}{_SEPARATOR}*?){{{minimum},{maximum}}}")


LINE_DIGITS = digit_run(4)
WORD_DIGITS = digit_run(3)

FALLBACK_LABEL = "REDACTED FOR PRIVACY"


@dataclass
class ImageRedactorConfig:
    """Tunables for the OCR redaction cascade."""
    keywords: tuple[str, ...] = DEFAULT_KEYWORDS
    keyword_padding: int = 35
    digit_padding: int = 40
    rule_padding: int = 10
    word_padding: int = 10
    # Filename substrings (case-insensitive) that trigger the fallback blur
    fallback_markers: tuple[str, ...] = ("card", "id")
    fallback_on_any_failure: bool = False
    blur_radius: int = 30
    overlay_alpha: int = 204          # 0.8 opacity
    label: str = FALLBACK_LABEL
    line_digits: re.Pattern[str] = field(default=LINE_DIGITS, repr=False)
    word_digits: re.Pattern[str] = field(default=WORD_DIGITS, repr=False)

    def __post_init__(self) -> None:
        self.keywords = tuple(k.upper() for k in self.keywords)
        self.fallback_markers = tuple(m.lower() for m in self.fallback_markers)


class ImageRedactor:
    """Paints opaque boxes over sensitive OCR regions of a raster image.

    Stateless between calls: each ``redact`` works on its own copy of the
    image, and the RuleSet is read-only.
    """

    def __init__(self, rules: RuleSet | None = None, config: ImageRedactorConfig | None = None) -> None:
        self.rules = rules if rules is not None else RuleSet.default()
        self.config = config or ImageRedactorConfig()

    def redact(
        self,
        image: Image.Image,
        recognize: Recognizer,
        *,
        filename: str = "",
    ) -> ImageRedaction:
        """Redact ``image`` using one call to ``recognize``.

        The input image is never modified; the returned ImageRedaction holds
        a fresh copy built from raw pixel data (no metadata carried over)
        and an outcome telling precise redaction apart from the fallback.
        """
        working = clean_copy(image)
        try:
            lines = list(recognize(working))
        except Exception as exc:  # any collaborator failure, timeouts included
            return self._recognition_failed(working, filename, exc)

        draw = ImageDraw.Draw(working)
        applied: list[RedactionRegion] = []
        for index, line in enumerate(lines):
            for region in self.regions_for_line(line):
                logger.debug("Redacting line %d (%s)", index, region.reason)
                paint(draw, region)
                applied.append(region)

        logger.debug("OCR redaction complete: %d lines, %d regions", len(lines), len(applied))
        return ImageRedaction(image=working, outcome=StructuredRedaction(tuple(applied)))

    # ── Decision cascade ─────────────────────────────────────────────

    def regions_for_line(self, line: OcrLine) -> list[RedactionRegion]:
        """Regions to paint for one OCR line (empty when nothing fires)."""
        cfg = self.config
        text = line.text.strip()
        if not text:
            return []

        upper = text.upper()
        if any(kw in upper for kw in cfg.keywords):
            return [RedactionRegion(line.bbox, cfg.keyword_padding, "keyword")]

        if cfg.line_digits.search(text):
            return [RedactionRegion(line.bbox, cfg.digit_padding, "digits")]

        rule_name = self._first_rule_hit(text)
        if rule_name is not None:
            return [RedactionRegion(line.bbox, cfg.rule_padding, f"rule:{rule_name}")]

        regions: list[RedactionRegion] = []
        for word in line.words:
            word_text = word.text.strip()
            if not word_text:
                continue
            if cfg.word_digits.search(word_text):
                regions.append(RedactionRegion(word.bbox, cfg.word_padding, "word-digits"))
                continue
            rule_name = self._first_rule_hit(word_text)
            if rule_name is not None:
                regions.append(RedactionRegion(word.bbox, cfg.word_padding, f"word-rule:{rule_name}"))
        return regions

    def _first_rule_hit(self, text: str) -> str | None:
        for rule, pattern in self.rules.relaxed():
            if pattern.search(text):
                return rule.name
        return None

    # ── Fallback ─────────────────────────────────────────────────────

    def is_suspicious(self, filename: str) -> bool:
        name = (filename or "").lower()
        return any(marker in name for marker in self.config.fallback_markers)

    def _recognition_failed(self, working: Image.Image, filename: str, exc: Exception) -> ImageRedaction:
        reason = f"{type(exc).__name__}: {exc}"
        logger.warning("OCR redaction failed (%s)", type(exc).__name__)
        if not (self.config.fallback_on_any_failure or self.is_suspicious(filename)):
            logger.warning("OCR failed on a file not flagged for the fallback; image left unredacted")
            return ImageRedaction(image=working, outcome=Unverified(reason))

        logger.warning("OCR failed on a sensitive-looking file; applying safety blur")
        try:
            blurred = blur_frame(working, self.config)
        except (OSError, ValueError, MemoryError) as fail:
            raise RecognitionFailure(
                f"Recognition failed ({reason}) and the fallback blur could not run"
            ) from fail
        return ImageRedaction(image=blurred, outcome=FallbackBlur(reason))


def paint(draw: ImageDraw.ImageDraw, region: RedactionRegion) -> None:
    """Fill ``region`` with black.  Repainting the same area changes nothing."""
    left, top, right, bottom = region.bounds()
    if right <= left or bottom <= top:
        return
    # Pillow rectangles include their right/bottom edge.
    draw.rectangle((left, top, right - 1, bottom - 1), fill="black")


def blur_frame(image: Image.Image, config: ImageRedactorConfig) -> Image.Image:
    """Blur the whole frame, overlay near-opaque black and stamp the label."""
    frame = image.convert("RGBA").filter(ImageFilter.GaussianBlur(config.blur_radius))
    overlay = Image.new("RGBA", frame.size, (0, 0, 0, config.overlay_alpha))
    frame = Image.alpha_composite(frame, overlay)
    draw = ImageDraw.Draw(frame)
    draw.text((20, 26), config.label, fill=(255, 255, 255, 255), font=ImageFont.load_default(size=24))
    return frame.convert(image.mode)


def has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )


def clean_copy(image: Image.Image) -> Image.Image:
    """Rebuild ``image`` from raw pixel bytes so no container metadata survives."""
    mode = "RGBA" if has_alpha(image) else "RGB"
    converted = image.convert(mode)
    return Image.frombytes(mode, converted.size, converted.tobytes())
