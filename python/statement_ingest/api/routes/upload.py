"""
Upload API Routes

Statement upload, upload history and recategorization endpoints.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ...categorizer import TransactionCategorizer
from ...ingestion import DEFAULT_SOURCE_ID, StatementIngestor, recategorize_transactions
from ...repository import TransactionRepository
from ..dependencies import get_categorizer, get_ingestor, get_repository

router = APIRouter(tags=["upload"])


class UploadedFile(BaseModel):
    """Upload history entry."""

    id: str
    original_name: str
    source_id: str | None
    file_size: int
    file_type: str | None
    total_extracted: int
    processed_count: int
    duplicate_count: int
    failed_count: int
    status: str
    error_message: str | None
    uploaded_at: datetime | None
    processed_at: datetime | None


class RecategorizeResponse(BaseModel):
    """Recategorization result."""

    updated: int
    unchanged: int
    total: int


@router.post("/upload")
async def upload_statement(
    statement: UploadFile = File(...),
    source_id: str = Form(DEFAULT_SOURCE_ID),
    ingestor: StatementIngestor = Depends(get_ingestor),
) -> JSONResponse:
    """Upload and ingest a CSV or PDF statement.

    Returns:
        Ingestion report; 400 if the file could not be ingested
    """
    content = await statement.read()
    file_name = statement.filename or "upload"

    valid, error = ingestor.validate_file(file_name, len(content))
    if not valid:
        raise HTTPException(status_code=413, detail=error)

    report = await run_in_threadpool(ingestor.ingest, content, file_name, source_id)
    return JSONResponse(
        status_code=200 if report.success else 400,
        content=report.to_dict(),
    )


@router.get("/uploaded-files", response_model=list[UploadedFile])
def list_uploaded_files(
    repository: TransactionRepository = Depends(get_repository),
) -> list[UploadedFile]:
    """List the most recent uploads."""
    return [
        UploadedFile(
            id=s.id,
            original_name=s.original_name,
            source_id=s.source_id,
            file_size=s.file_size,
            file_type=s.file_type,
            total_extracted=s.total_extracted,
            processed_count=s.processed_count,
            duplicate_count=s.duplicate_count,
            failed_count=s.failed_count,
            status=s.status.value,
            error_message=s.error_message,
            uploaded_at=s.uploaded_at,
            processed_at=s.processed_at,
        )
        for s in repository.list_ingestion_summaries(limit=20)
    ]


@router.post("/recategorize-transactions", response_model=RecategorizeResponse)
def recategorize(
    source_id: str | None = None,
    repository: TransactionRepository = Depends(get_repository),
    categorizer: TransactionCategorizer = Depends(get_categorizer),
) -> RecategorizeResponse:
    """Re-run the current rule table over stored transactions."""
    result = recategorize_transactions(repository, categorizer, source_id)
    return RecategorizeResponse(**result.to_dict())
