"""Unified model definitions for albumcast."""

from .album import AccessRole, Album, AlbumMember
from .base import TimestampMixin
from .image import Image, ImageStatus
from .ingest import BatchJob, BatchStatus, IngestRecord
from .match import DetectionMatch
from .notification import Notification
from .report import ReportJob, ReportStatus, ReportType
from .user import User

__all__ = [
    "AccessRole",
    "Album",
    "AlbumMember",
    "BatchJob",
    "BatchStatus",
    "DetectionMatch",
    "Image",
    "ImageStatus",
    "IngestRecord",
    "Notification",
    "ReportJob",
    "ReportStatus",
    "ReportType",
    "TimestampMixin",
    "User",
]
