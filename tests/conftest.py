import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest
from PIL import Image

from pii_sentinel import BoundingBox, OcrLine, OcrWord, RuleSet


class StubRecognizer:
    """Returns canned OCR lines (or raises) and counts calls."""

    def __init__(self, lines=(), error: Exception | None = None):
        self.lines = list(lines)
        self.error = error
        self.calls = 0

    def __call__(self, image):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.lines


def line(text, box, words=()):
    """Build an OcrLine from plain tuples: words are (text, (x0, y0, x1, y1))."""
    return OcrLine(
        text=text,
        bbox=BoundingBox(*box),
        words=tuple(OcrWord(w, BoundingBox(*b)) for w, b in words),
    )


@pytest.fixture(scope="session")
def rules():
    return RuleSet.default()


@pytest.fixture
def canvas():
    return Image.new("RGB", (400, 300), "white")
