"""API endpoint for organization document analysis."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from grant_agent.api.dependencies import require_settings
from grant_agent.services.document_analysis import (
    DocumentAnalysisResult,
    UploadedDocument,
    analyze_uploaded_documents,
)

router = APIRouter(dependencies=[Depends(require_settings)])


@router.post("/analyze", response_model=DocumentAnalysisResult)
async def analyze_documents(
    files: Annotated[list[UploadFile], File(description="Organization documents (.txt, .md)")],
    user_message: Annotated[str | None, Form()] = None,
) -> DocumentAnalysisResult:
    """Analyze uploaded documents and store the learned profile."""
    if not files:
        raise HTTPException(status_code=400, detail="No files provided")

    uploads = [
        UploadedDocument(
            filename=f.filename or "upload",
            content_type=f.content_type,
            data=await f.read(),
        )
        for f in files
    ]
    return await analyze_uploaded_documents(uploads, user_message)
