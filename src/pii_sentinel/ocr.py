"""Recognizer contract and the Tesseract adapter.

The image redactor only consumes recognizer *output*: lines with
bounding boxes, each holding its words.  Anything callable as
``recognize(image) -> Sequence[OcrLine]`` works, which keeps tests free of
a tesseract binary.
"""

from __future__ import annotations
import logging
from typing import Protocol, Sequence

import pytesseract
from PIL import Image
from pytesseract import Output

from .errors import RecognitionFailure
from .types import BoundingBox, OcrLine, OcrWord

logger = logging.getLogger(__name__)

_WORD_LEVEL = 5


class Recognizer(Protocol):
    def __call__(self, image: Image.Image) -> Sequence[OcrLine]: ...


class TesseractRecognizer:
    """Line/word OCR via ``pytesseract.image_to_data``.

    ``timeout`` (seconds, 0 disables) bounds one recognition call; a
    timeout raises RecognitionFailure like any other tesseract error.
    """

    def __init__(self, *, lang: str = "eng", timeout: float = 30.0) -> None:
        self.lang = lang
        self.timeout = timeout

    def __call__(self, image: Image.Image) -> list[OcrLine]:
        try:
            data = pytesseract.image_to_data(
                image,
                lang=self.lang,
                timeout=self.timeout,
                output_type=Output.DICT,
            )
        except (RuntimeError, OSError) as exc:
            # TesseractError and the timeout are RuntimeErrors,
            # TesseractNotFoundError is an OSError.
            raise RecognitionFailure(f"tesseract failed: {exc}") from exc
        lines = lines_from_data(data)
        logger.debug("Tesseract recognized %d lines", len(lines))
        return lines


def lines_from_data(data: dict[str, list]) -> list[OcrLine]:
    """Group ``image_to_data`` word rows into lines.

    Words sharing ``(page_num, block_num, par_num, line_num)`` form one
    line; the line box is the union of its word boxes.  Lines keep the
    order in which tesseract first reports them.
    """
    texts = data.get("text", [])
    pages = data.get("page_num") or [1] * len(texts)
    grouped: dict[tuple[int, int, int, int], list[OcrWord]] = {}
    for i, text in enumerate(texts):
        if int(data["level"][i]) != _WORD_LEVEL:
            continue
        text = (text or "").strip()
        if not text:
            continue
        left, top = int(data["left"][i]), int(data["top"][i])
        box = BoundingBox(left, top, left + int(data["width"][i]), top + int(data["height"][i]))
        key = (
            int(pages[i]),
            int(data["block_num"][i]),
            int(data["par_num"][i]),
            int(data["line_num"][i]),
        )
        grouped.setdefault(key, []).append(OcrWord(text=text, bbox=box))

    lines: list[OcrLine] = []
    for words in grouped.values():
        bbox = words[0].bbox
        for word in words[1:]:
            bbox = bbox.union(word.bbox)
        lines.append(OcrLine(text=" ".join(w.text for w in words), bbox=bbox, words=tuple(words)))
    return lines
