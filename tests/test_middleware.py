"""Tests for PromptGuard."""

import io

from PIL import Image

from pii_sentinel import PromptGuard, UploadedFile
from pii_sentinel.middleware import PREVIEW_CHARS

from conftest import StubRecognizer


def _guard(rules):
    return PromptGuard.create(rules=rules, recognizer=StubRecognizer())


def test_pre_send_skips_system_messages(rules):
    guard = _guard(rules)
    messages = [
        {"role": "system", "content": "Escalate to ops@corp.com"},
        {"role": "user", "content": "My email is jane@doe.org"},
        {"role": "assistant", "content": "Noted."},
    ]
    safe = guard.pre_send(messages)

    assert safe[0]["content"] == "Escalate to ops@corp.com"
    assert safe[1]["content"] == "My email is [EMAIL]"
    assert safe[2]["content"] == "Noted."
    assert messages[1]["content"] == "My email is jane@doe.org"
    assert [m.rule_name for m in guard.matches] == ["Email"]


def test_sanitize_text_accumulates_matches(rules):
    guard = _guard(rules)
    assert guard.sanitize_text("host 10.0.0.1") == "host [IP_ADDRESS]"
    guard.sanitize_text("a@b.io and c@d.io")
    assert guard.stats == {"matches": 3, "by_rule": {"IPv4 Address": 1, "Email": 2}}


def test_attach_text_file_appends_preview(rules):
    guard = _guard(rules)
    prompt, result = guard.attach_file(
        "Summarise this", UploadedFile("notes.txt", "text/plain", b"reach me at bob@x.org"),
    )

    assert prompt.startswith("Summarise this\n\n[System Note: The attached file \"notes.txt\" has been sanitized.")
    assert prompt.endswith("[Sanitized File Content Preview]:\nreach me at [EMAIL]")
    assert "bob@x.org" not in prompt
    assert result.file.data == b"reach me at [EMAIL]"
    assert guard.stats["by_rule"] == {"Email": 1}


def test_long_preview_truncated(rules):
    guard = _guard(rules)
    body = ("lorem " * 400).encode()
    prompt, _ = guard.attach_file("", UploadedFile("long.txt", "text/plain", body))
    preview = prompt.split("[Sanitized File Content Preview]:\n", 1)[1]
    assert preview.endswith("...")
    assert len(preview) == PREVIEW_CHARS + 3


def test_attach_image_gets_processed_note(rules):
    buf = io.BytesIO()
    Image.new("RGB", (20, 20), "white").save(buf, format="PNG")
    guard = _guard(rules)
    prompt, result = guard.attach_file("look", UploadedFile("pic.png", "image/png", buf.getvalue()))

    assert result.kind == "image"
    assert "has been processed. Metadata has been stripped" in prompt
    assert "Preview" not in prompt
