"""Text extraction from uploaded organization documents."""

from dataclasses import dataclass

# Allowed file extensions for document analysis
ALLOWED_EXTENSIONS = {".txt", ".md"}

# Allowed content types when extension is missing or unknown
ALLOWED_CONTENT_TYPES = ("text/plain", "text/markdown")

# Rejected with a hint to paste the text instead
REJECTED_EXTENSIONS = {".pdf", ".docx", ".doc", ".xlsx", ".xls", ".pptx", ".ppt"}


@dataclass
class FileTextResult:
    """Result of text extraction from a file."""

    text: str
    detected_encoding: str
    truncated: bool = False


def _get_extension(filename: str) -> str:
    """Extract lowercase file extension from filename."""
    if "." in filename:
        return "." + filename.rsplit(".", 1)[-1].lower()
    return ""


def _is_allowed_content_type(content_type: str | None) -> bool:
    if not content_type:
        return False
    return content_type.lower().split(";")[0].strip() in ALLOWED_CONTENT_TYPES


def _decode_bytes(raw_bytes: bytes) -> tuple[str, str]:
    """
    Decode bytes with the utf-8-sig / utf-8 / latin-1 fallback chain.

    Raises:
        ValueError: If no encoding works
    """
    if raw_bytes.startswith(b"\xef\xbb\xbf"):
        try:
            return raw_bytes.decode("utf-8-sig"), "utf-8-sig"
        except UnicodeDecodeError:
            pass

    for encoding in ("utf-8", "latin-1"):
        try:
            return raw_bytes.decode(encoding), encoding
        except UnicodeDecodeError:
            continue

    raise ValueError(
        "Unable to decode file content. Supported encodings: UTF-8, UTF-8-BOM, Latin-1."
    )


def extract_text_from_upload(
    filename: str,
    content_type: str | None,
    raw_bytes: bytes,
    max_chars: int | None = None,
) -> FileTextResult:
    """
    Extract text content from an uploaded document.

    Args:
        filename: Original filename
        content_type: MIME content type (may be None)
        raw_bytes: Raw file bytes
        max_chars: Keep at most this many characters

    Returns:
        FileTextResult with extracted text and detected encoding

    Raises:
        ValueError: If the file type is not supported or content cannot be decoded
    """
    extension = _get_extension(filename)

    if extension in REJECTED_EXTENSIONS:
        raise ValueError(
            f"Unsupported file type {extension}. Upload .txt or .md files, "
            "or paste the document text into the chat."
        )

    if not (extension in ALLOWED_EXTENSIONS or _is_allowed_content_type(content_type)):
        raise ValueError("Unsupported file type. Allowed extensions: .md, .txt.")

    text, encoding = _decode_bytes(raw_bytes)
    text = text.strip()
    if not text:
        raise ValueError("File is empty.")

    truncated = max_chars is not None and len(text) > max_chars
    if truncated:
        text = text[:max_chars]
    return FileTextResult(text=text, detected_encoding=encoding, truncated=truncated)
