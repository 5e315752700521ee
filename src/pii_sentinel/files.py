"""FileSanitizer: routes a file to the text or image path, or re-wraps its bytes.

Every result is a new UploadedFile built from sanitized or re-encoded
bytes, never the caller's object, so nothing hidden in the original
container can ride along by reference.
"""

from __future__ import annotations
import io
import logging
import mimetypes

from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import DecodeError, EncodingError
from .image import ImageRedactor
from .ocr import Recognizer, TesseractRecognizer
from .patterns import RuleSet
from .sanitizer import TextSanitizer
from .types import FileSanitizationResult, UploadedFile

logger = logging.getLogger(__name__)

TEXT_TYPES = frozenset({"text/plain", "text/csv", "application/json", "text/markdown"})
TEXT_SUFFIXES = (".txt", ".csv", ".json", ".md")
DEFAULT_IMAGE_TYPE = "image/jpeg"
DEFAULT_TEXT_TYPE = "text/plain"
JPEG_QUALITY = 90

# Formats whose encoder accepts a ``quality`` option.
_LOSSY = {"JPEG", "WEBP"}
# Formats that cannot store an alpha channel.
_NO_ALPHA = {"JPEG", "BMP"}


def base_mime(content_type: str | None) -> str:
    """Lower-cased MIME type with any parameters (``; charset=...``) dropped."""
    return (content_type or "").split(";", 1)[0].strip().lower()


def classify(file: UploadedFile) -> str:
    """Return ``"image"``, ``"text"`` or ``"binary"`` for ``file``.

    The declared MIME type decides first; the extension only fills in
    when the type is missing or not a text type.
    """
    content_type = base_mime(file.content_type)
    name = file.name.lower()
    if not content_type:
        guessed, _ = mimetypes.guess_type(name)
        if guessed and guessed.startswith("image/"):
            return "image"
    if content_type.startswith("image/"):
        return "image"
    if content_type in TEXT_TYPES or name.endswith(TEXT_SUFFIXES):
        return "text"
    return "binary"


def image_format_for(content_type: str) -> tuple[str, str]:
    """Map a MIME type to a Pillow save format, falling back to JPEG."""
    Image.init()
    content_type = base_mime(content_type) or DEFAULT_IMAGE_TYPE
    if content_type == "image/jpg":
        content_type = DEFAULT_IMAGE_TYPE
    for fmt, mime in Image.MIME.items():
        if mime == content_type and fmt in Image.SAVE:
            return fmt, content_type
    return "JPEG", DEFAULT_IMAGE_TYPE


class FileSanitizer:
    """Dispatches files to the text cascade or the OCR image redactor."""

    def __init__(
        self,
        rules: RuleSet | None = None,
        recognizer: Recognizer | None = None,
        *,
        image_redactor: ImageRedactor | None = None,
        jpeg_quality: int = JPEG_QUALITY,
    ) -> None:
        self.rules = rules if rules is not None else RuleSet.default()
        self.text_sanitizer = TextSanitizer(self.rules)
        self.image_redactor = image_redactor or ImageRedactor(self.rules)
        self.recognizer = recognizer if recognizer is not None else TesseractRecognizer()
        self.jpeg_quality = jpeg_quality

    def sanitize(self, file: UploadedFile) -> FileSanitizationResult:
        kind = classify(file)
        logger.debug("Sanitizing %s file (%d bytes)", kind, file.size)
        if kind == "image":
            return self._sanitize_image(file)
        if kind == "text":
            return self._sanitize_text(file)
        return self._copy_binary(file)

    # ── Paths ────────────────────────────────────────────────────────

    def _sanitize_text(self, file: UploadedFile) -> FileSanitizationResult:
        content = file.data.decode("utf-8", errors="replace")
        result = self.text_sanitizer.sanitize(content)
        try:
            data = result.text.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise EncodingError(f"Could not encode sanitized text of {file.name!r}") from exc
        out = UploadedFile(file.name, file.content_type or DEFAULT_TEXT_TYPE, data)
        return FileSanitizationResult(
            file=out, kind="text", sanitized_text=result.text, matches=result.matches,
        )

    def _sanitize_image(self, file: UploadedFile) -> FileSanitizationResult:
        image = decode_image(file)
        redaction = self.image_redactor.redact(image, self.recognizer, filename=file.name)
        fmt, content_type = image_format_for(file.content_type)
        data = encode_image(redaction.image, fmt, quality=self.jpeg_quality)
        return FileSanitizationResult(
            file=UploadedFile(file.name, content_type, data),
            kind="image",
            image_outcome=redaction.outcome,
        )

    @staticmethod
    def _copy_binary(file: UploadedFile) -> FileSanitizationResult:
        data = bytes(memoryview(file.data))
        return FileSanitizationResult(
            file=UploadedFile(file.name, file.content_type, data), kind="binary",
        )


def decode_image(file: UploadedFile) -> Image.Image:
    """Open and fully decode ``file`` as an upright raster image."""
    try:
        image = Image.open(io.BytesIO(file.data))
        image.load()
        return ImageOps.exif_transpose(image)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise DecodeError(f"Unable to decode image {file.name!r} ({file.content_type})") from exc


def encode_image(image: Image.Image, fmt: str, *, quality: int = JPEG_QUALITY) -> bytes:
    """Encode ``image`` as ``fmt`` from its pixels alone."""
    if fmt in _NO_ALPHA and image.mode != "RGB":
        image = image.convert("RGB")
    params: dict[str, object] = {}
    if fmt in _LOSSY:
        params["quality"] = quality
    buf = io.BytesIO()
    try:
        image.save(buf, format=fmt, **params)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodingError(f"Unable to encode redacted image as {fmt}") from exc
    return buf.getvalue()
