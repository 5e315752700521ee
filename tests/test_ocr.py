"""Tests for the Tesseract adapter (no tesseract binary needed)."""

import pytest
from PIL import Image

from pii_sentinel import BoundingBox, RecognitionFailure
from pii_sentinel.ocr import TesseractRecognizer, lines_from_data


def _data(rows):
    """Build an image_to_data dict from (level, block, par, line, left, top, w, h, text) rows."""
    keys = ["level", "block_num", "par_num", "line_num", "left", "top", "width", "height", "text"]
    data = {k: [] for k in keys}
    for row in rows:
        for k, v in zip(keys, row):
            data[k].append(v)
    data["page_num"] = [1] * len(rows)
    return data


def test_words_grouped_into_lines():
    data = _data([
        (1, 0, 0, 0, 0, 0, 400, 300, ""),
        (4, 1, 1, 1, 10, 10, 200, 20, ""),
        (5, 1, 1, 1, 10, 10, 50, 20, "Card"),
        (5, 1, 1, 1, 70, 12, 80, 18, "4111"),
        (5, 1, 1, 2, 10, 40, 60, 20, "Hello"),
        (5, 1, 1, 2, 80, 40, 10, 20, "  "),
    ])
    lines = lines_from_data(data)

    assert [l.text for l in lines] == ["Card 4111", "Hello"]
    assert lines[0].bbox == BoundingBox(10, 10, 150, 30)
    assert [w.text for w in lines[0].words] == ["Card", "4111"]
    assert lines[0].words[1].bbox == BoundingBox(70, 12, 150, 30)
    assert len(lines[1].words) == 1


def test_no_words_no_lines():
    assert lines_from_data(_data([(1, 0, 0, 0, 0, 0, 10, 10, "")])) == []


def test_recognizer_passes_lang_and_timeout(monkeypatch):
    seen = {}

    def fake(image, **kwargs):
        seen.update(kwargs)
        return _data([(5, 1, 1, 1, 0, 0, 5, 5, "hi")])

    monkeypatch.setattr("pii_sentinel.ocr.pytesseract.image_to_data", fake)
    lines = TesseractRecognizer(lang="deu", timeout=5)(Image.new("RGB", (10, 10)))

    assert seen["lang"] == "deu"
    assert seen["timeout"] == 5
    assert [l.text for l in lines] == ["hi"]


@pytest.mark.parametrize("error", [RuntimeError("Tesseract process timeout"), OSError("not installed")])
def test_recognizer_errors_become_recognition_failure(monkeypatch, error):
    def fake(image, **kwargs):
        raise error

    monkeypatch.setattr("pii_sentinel.ocr.pytesseract.image_to_data", fake)
    with pytest.raises(RecognitionFailure):
        TesseractRecognizer()(Image.new("RGB", (10, 10)))
