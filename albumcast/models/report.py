"""Report job models - delayed per-album report executions."""

import uuid as uuid_module
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .base import utcnow


class ReportType(str, Enum):
    """Kinds of album reports."""

    FACE = "face"
    BLUR = "blur"
    DUPLICATE = "duplicate"


class ReportStatus(str, Enum):
    """Lifecycle states for report jobs."""

    PENDING = "pending"
    EXECUTING = "executing"
    RETRYING = "retrying"
    DONE = "done"
    EXHAUSTED = "exhausted"


ACTIVE_REPORT_STATUSES = (
    ReportStatus.PENDING,
    ReportStatus.EXECUTING,
    ReportStatus.RETRYING,
)


@dataclass
class ReportJob:
    """A scheduled report for one album.

    Identity is (report_type, album_id); at most one non-terminal instance
    exists per identity.
    """

    report_type: ReportType
    album_id: int
    delay_seconds: float
    id: str = field(default_factory=lambda: str(uuid_module.uuid4()))
    status: ReportStatus = ReportStatus.PENDING
    attempts: int = 0
    count: Optional[int] = None
    notified: int = 0
    error: Optional[str] = None
    scheduled_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @property
    def identity(self) -> Tuple[ReportType, int]:
        return (self.report_type, self.album_id)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_REPORT_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for diagnostics."""
        return {
            "id": self.id,
            "report_type": self.report_type.value,
            "album_id": self.album_id,
            "status": self.status.value,
            "attempts": self.attempts,
            "count": self.count,
            "notified": self.notified,
            "error": self.error,
            "scheduled_at": self.scheduled_at.isoformat(),
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
        }
