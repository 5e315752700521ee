"""Exception kinds raised by the sanitizers."""

from __future__ import annotations


class SentinelError(Exception):
    """Base class for every error raised by pii_sentinel."""


class ConfigurationError(SentinelError, ValueError):
    """A rule table or config value is malformed.  Raised before any text is processed."""


class DecodeError(SentinelError, RuntimeError):
    """Input bytes could not be decoded into a raster image."""


class RecognitionFailure(SentinelError, RuntimeError):
    """The OCR collaborator failed or timed out.

    ImageRedactor absorbs this and applies its fallback; it only escapes
    when the fallback itself cannot run.
    """


class EncodingError(SentinelError, RuntimeError):
    """A sanitized artifact could not be re-encoded.  Never forward the original instead."""
