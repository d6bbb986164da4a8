"""Learn an organization profile from uploaded documents."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from grant_agent.chains.analyze_documents import analyze_documents
from grant_agent.core.config import get_settings
from grant_agent.core.file_text import extract_text_from_upload
from grant_agent.core.logging import get_logger
from grant_agent.core.profile_merge import normalize_extracted_updates
from grant_agent.db import profiles as profiles_db

logger = get_logger(__name__)

ANALYSIS_FAILED_REPLY = "I had trouble analyzing your documents. Please try again in a moment."


class UploadedDocument(BaseModel):
    filename: str
    content_type: str | None = None
    data: bytes


class FileExtraction(BaseModel):
    filename: str
    success: bool
    chars: int = 0
    truncated: bool = False
    error: str | None = None


class DocumentAnalysisResult(BaseModel):
    """Analysis reply plus what happened to each file and the stored profile."""

    content: str
    success: bool
    files: list[FileExtraction] = Field(default_factory=list)
    profile: dict[str, Any] | None = None
    profile_saved: bool = False


def _no_text_reply(files: list[FileExtraction]) -> str:
    details = "\n".join(f"• **{f.filename}**: {f.error}" for f in files)
    return (
        "I wasn't able to extract text from any of the uploaded files:\n\n"
        f"{details}\n\n"
        "Upload .txt or .md files, or describe your organization here in the chat."
    )


def profile_row_from_extraction(extracted: dict[str, Any]) -> dict[str, Any] | None:
    """
    Build a new profile row from the structured extraction.

    Field values go through the same boundary normalization as chat
    extraction. Returns None when no profile name was extracted.
    """
    name = str(extracted.get("profile_name") or "").strip()
    if not name:
        return None

    row: dict[str, Any] = {"profile_name": name}
    for field, update in normalize_extracted_updates(extracted).updates.items():
        if update.kind == "replace":
            row[field] = update.value
        elif update.kind == "list":
            row[field] = update.items if field == "focus_areas" else ", ".join(update.items)
        else:
            row[field] = update.text
    return row


async def analyze_uploaded_documents(
    uploads: list[UploadedDocument],
    user_message: str | None = None,
) -> DocumentAnalysisResult:
    """
    Extract text from uploads, analyze it and store the learned profile.

    Unsupported or undecodable files are reported per file. A failed
    analysis call yields an unsuccessful result with an apology.
    """
    settings = get_settings()
    files: list[FileExtraction] = []
    documents: list[tuple[str, str]] = []

    for upload in uploads:
        if len(upload.data) > settings.MAX_UPLOAD_BYTES:
            files.append(
                FileExtraction(filename=upload.filename, success=False, error="File too large")
            )
            continue
        try:
            extracted = extract_text_from_upload(
                upload.filename,
                upload.content_type,
                upload.data,
                max_chars=settings.MAX_DOCUMENT_CHARS,
            )
        except ValueError as e:
            logger.warning(f"Could not extract text from {upload.filename}: {e}")
            files.append(FileExtraction(filename=upload.filename, success=False, error=str(e)))
            continue

        documents.append((upload.filename, extracted.text))
        files.append(
            FileExtraction(
                filename=upload.filename,
                success=True,
                chars=len(extracted.text),
                truncated=extracted.truncated,
            )
        )

    if not documents:
        return DocumentAnalysisResult(content=_no_text_reply(files), success=False, files=files)

    failed = [f.filename for f in files if not f.success]
    try:
        analysis, structured = await analyze_documents(documents, user_message, failed)
    except Exception as e:
        logger.warning(f"Document analysis call failed: {e}")
        return DocumentAnalysisResult(content=ANALYSIS_FAILED_REPLY, success=False, files=files)

    result = DocumentAnalysisResult(content=analysis, success=True, files=files)
    row = profile_row_from_extraction(structured) if structured else None
    if row is None:
        return result

    row["documents_analyzed"] = [
        f"Analysis from {datetime.now(timezone.utc).isoformat()}: {', '.join(n for n, _ in documents)}"
    ]
    try:
        result.profile = await profiles_db.create_profile(row, activate=True)
        result.profile_saved = True
    except Exception as e:
        logger.warning(f"Failed to save analyzed profile: {e}")
        result.profile = row
    return result
