"""Report definitions.

A report definition captures everything that differs between the face, blur
and duplicate reports: the aggregate recomputed at fire time and who gets
told about it. Timing, coalescing and retries live in ReportScheduler and
are shared by all three.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from albumcast.db.repositories.album import AlbumRepository, Recipient
from albumcast.models.report import ReportType

if TYPE_CHECKING:
    from albumcast.recognition.reconciler import MatchReconciler

logger = logging.getLogger(__name__)


@dataclass
class ReportContext:
    """Sources of truth available to a report's count function."""

    albums: AlbumRepository
    reconciler: Optional["MatchReconciler"] = None


@dataclass
class Audience:
    """One group of recipients and what they are told.

    Attributes:
        recipients: Function returning the group for an album
        notification_type: Value of the ``type`` metadata field
        title: Notification title
        message: Function building the body from (album title, count)
        count_field: Metadata field carrying the count, if any
    """

    recipients: Callable[[AlbumRepository, int], List[Recipient]]
    notification_type: str
    title: str
    message: Callable[[str, int], str]
    count_field: Optional[str] = None


@dataclass
class ReportDefinition:
    """Definition of a debounced album report.

    Attributes:
        report_type: Which report this is
        count: Aggregate recomputed from current state when the report fires
        audiences: Recipient groups notified when the count is nonzero
        default_delay_s: Delay used when a trigger passes none
    """

    report_type: ReportType
    count: Callable[[ReportContext, int], int]
    audiences: List[Audience] = field(default_factory=list)
    default_delay_s: float = 300.0


class ReportRegistry:
    """Registry for report definitions, keyed by report type."""

    def __init__(self) -> None:
        self._reports: Dict[ReportType, ReportDefinition] = {}

    def register(self, definition: ReportDefinition) -> None:
        """Register a report definition.

        Raises:
            ValueError: If the report type is already registered
        """
        if definition.report_type in self._reports:
            raise ValueError(f"Report '{definition.report_type.value}' is already registered")
        self._reports[definition.report_type] = definition

    def get(self, report_type: ReportType) -> Optional[ReportDefinition]:
        return self._reports.get(report_type)

    def list_reports(self) -> List[ReportType]:
        return list(self._reports.keys())


# Global registry instance
REPORTS = ReportRegistry()


def register_report(definition: ReportDefinition) -> ReportDefinition:
    """Register a report in the global REPORTS registry and return it."""
    REPORTS.register(definition)
    return definition


def plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count != 1 else ''}"


def admins(albums: AlbumRepository, album_id: int) -> List[Recipient]:
    return albums.admins(album_id)


def viewers(albums: AlbumRepository, album_id: int) -> List[Recipient]:
    return albums.viewers(album_id)
