"""PII Sentinel: deterministic, rule-based PII sanitization for text, files and OCR'd images."""

from .errors import ConfigurationError, DecodeError, EncodingError, RecognitionFailure, SentinelError
from .patterns import DEFAULT_RULES, RuleSet
from .masking import MaskingPolicy
from .sanitizer import TextSanitizer
from .image import ImageRedactor, ImageRedactorConfig
from .files import FileSanitizer
from .middleware import PromptGuard
from .config import create_file_sanitizer, load_config, load_from_yaml, load_rules_from_yaml
from .types import (
    BoundingBox,
    FallbackBlur,
    FileSanitizationResult,
    ImageRedaction,
    Masking,
    Match,
    OcrLine,
    OcrWord,
    RedactionRegion,
    SanitizationRule,
    SanitizedResult,
    StructuredRedaction,
    Unverified,
    UploadedFile,
)

__all__ = [
    "RuleSet", "DEFAULT_RULES", "SanitizationRule", "Masking",
    "TextSanitizer", "MaskingPolicy", "SanitizedResult", "Match",
    "ImageRedactor", "ImageRedactorConfig", "ImageRedaction",
    "StructuredRedaction", "FallbackBlur", "Unverified",
    "BoundingBox", "OcrLine", "OcrWord", "RedactionRegion",
    "FileSanitizer", "FileSanitizationResult", "UploadedFile",
    "PromptGuard",
    "create_file_sanitizer", "load_config", "load_from_yaml", "load_rules_from_yaml",
    "SentinelError", "ConfigurationError", "DecodeError", "RecognitionFailure", "EncodingError",
]
__version__ = "0.1.0"
