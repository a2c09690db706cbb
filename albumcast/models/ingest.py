"""Ingestion models - upload events and the batch jobs that carry them."""

import uuid as uuid_module
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from .base import utcnow


class IngestRecord(BaseModel):
    """An uploaded object awaiting classification.

    Created when an upload URL is issued and consumed once by a batch worker.
    """

    storage_key: str
    album_id: int
    user_id: int
    file_name: str

    def to_event_record(self, bucket: str) -> Dict[str, Any]:
        """Render the record in the storage-event shape the classifiers expect."""
        return {
            "s3": {
                "bucket": {"name": bucket},
                "object": {"key": self.storage_key},
            },
            "metadata": {
                "albumId": self.album_id,
                "userId": self.user_id,
                "fileName": self.file_name,
            },
        }


class BatchStatus(str, Enum):
    """Lifecycle states for batch jobs."""

    ENQUEUED = "enqueued"
    PROCESSING = "processing"
    RETRYING = "retrying"
    COMPLETED = "completed"
    EXHAUSTED = "exhausted"


@dataclass
class BatchJob:
    """An ordered group of ingest records plus its attempt counter."""

    records: List[IngestRecord]
    id: str = field(default_factory=lambda: str(uuid_module.uuid4()))
    status: BatchStatus = BatchStatus.ENQUEUED
    attempts: int = 0
    error: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (BatchStatus.COMPLETED, BatchStatus.EXHAUSTED)
