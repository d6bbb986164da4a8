"""Tests for file text extraction."""

import pytest

from grant_agent.core.file_text import extract_text_from_upload


def test_extract_text_txt_utf8():
    """Test extracting text from a UTF-8 .txt file."""
    content = "Our mission is to heal through ceremony."

    result = extract_text_from_upload(
        filename="about.txt",
        content_type="text/plain",
        raw_bytes=content.encode("utf-8"),
    )

    assert result.text == content
    assert result.detected_encoding == "utf-8"
    assert result.truncated is False


def test_extract_text_utf8_bom():
    result = extract_text_from_upload("about.md", None, b"\xef\xbb\xbf# About us")

    assert result.text == "# About us"
    assert result.detected_encoding == "utf-8-sig"


def test_extract_text_latin1_fallback():
    raw_bytes = "Caf\xe9 programs".encode("latin-1")

    result = extract_text_from_upload("notes.txt", "text/plain", raw_bytes)

    assert result.text == "Caf\xe9 programs"
    assert result.detected_encoding == "latin-1"


def test_content_type_allows_unknown_extension():
    result = extract_text_from_upload("notes", "text/markdown; charset=utf-8", b"hello")
    assert result.text == "hello"


def test_binary_office_formats_rejected_with_hint():
    with pytest.raises(ValueError, match="paste the document text"):
        extract_text_from_upload("report.pdf", "application/pdf", b"%PDF-1.4")


def test_unknown_type_rejected():
    with pytest.raises(ValueError, match="Unsupported file type"):
        extract_text_from_upload("image.png", "image/png", b"\x89PNG")


def test_empty_file_rejected():
    with pytest.raises(ValueError, match="File is empty"):
        extract_text_from_upload("blank.txt", "text/plain", b"   \n ")


def test_max_chars_truncates():
    result = extract_text_from_upload("long.txt", "text/plain", b"a" * 100, max_chars=40)

    assert len(result.text) == 40
    assert result.truncated is True
