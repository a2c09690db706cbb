"""Pipeline API router - batch ingestion, report diagnostics, tag suggestions."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from ...errors import PipelineError
from ...models.ingest import BatchJob, IngestRecord
from ...service import PipelineService

logger = logging.getLogger(__name__)

router = APIRouter()


def _service(request: Request) -> PipelineService:
    return request.app.state.service


# Health endpoint - must be before parameterized routes
@router.get("/pipeline/health")
def pipeline_health(request: Request):
    """Pipeline health check."""
    return _service(request).health()


class RecordIn(BaseModel):
    """Uploaded object as reported by upload-URL issuance."""

    storageKey: str
    albumId: int
    userId: int
    fileName: str

    def to_record(self) -> IngestRecord:
        return IngestRecord(
            storage_key=self.storageKey,
            album_id=self.albumId,
            user_id=self.userId,
            file_name=self.fileName,
        )


class BatchSubmitRequest(BaseModel):
    """Batch submission request."""

    records: List[RecordIn] = Field(min_length=1)


class BatchResponse(BaseModel):
    """Batch job response."""

    id: str
    status: str
    attempts: int
    records: int
    error: Optional[str] = None

    @classmethod
    def from_job(cls, job: BatchJob) -> "BatchResponse":
        return cls(
            id=job.id,
            status=job.status.value,
            attempts=job.attempts,
            records=len(job.records),
            error=job.error,
        )


@router.post("/pipeline/batches", response_model=BatchResponse, status_code=202)
def submit_batch(body: BatchSubmitRequest, request: Request):
    """Enqueue a batch of uploaded objects for classification."""
    try:
        job = _service(request).submit_batch([r.to_record() for r in body.records])
    except PipelineError as e:
        logger.error(f"Rejected batch submission: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    return BatchResponse.from_job(job)


@router.get("/pipeline/batches/{job_id}", response_model=BatchResponse)
def get_batch(job_id: str, request: Request):
    """Get a batch job's status."""
    job = _service(request).get_batch(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Batch job not found")
    return BatchResponse.from_job(job)


@router.get("/pipeline/reports")
def list_reports(request: Request) -> Dict[str, Any]:
    """Active and recently finished report jobs per report type."""
    return _service(request).report_status()


@router.get("/albums/{album_id}/suggestions")
def get_suggestions(album_id: int, request: Request) -> Dict[str, Any]:
    """Recognized users who could be tagged in an album."""
    return _service(request).suggest_tags(album_id)
