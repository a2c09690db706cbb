"""Executes a fired report against current state."""

import logging
from dataclasses import dataclass
from typing import Optional

from albumcast.db.connection import SessionFactory
from albumcast.db.repositories.album import AlbumRepository
from albumcast.errors import PermanentDataError
from albumcast.notifications.dispatcher import NotificationContent, NotificationDispatcher
from albumcast.recognition.reconciler import MatchReconciler

from .reports import ReportContext, ReportDefinition

logger = logging.getLogger(__name__)


@dataclass
class ReportOutcome:
    count: int
    notified: int = 0


class ReportRunner:
    """Recomputes a report's aggregate at fire time and notifies recipients."""

    def __init__(
        self,
        session_factory: SessionFactory,
        notifier: NotificationDispatcher,
        reconciler: Optional[MatchReconciler] = None,
    ) -> None:
        self.session_factory = session_factory
        self.notifier = notifier
        self.reconciler = reconciler

    def run(self, definition: ReportDefinition, album_id: int) -> ReportOutcome:
        """Run one report for one album.

        Args:
            definition: Which report to run
            album_id: The album

        Returns:
            The recomputed count and number of notifications created

        Raises:
            PermanentDataError: If the album no longer exists
        """
        report = definition.report_type.value
        logger.info(f"Processing {report} report for album {album_id}")

        with self.session_factory() as session:
            albums = AlbumRepository(session)
            album = albums.get(album_id)
            if album is None:
                raise PermanentDataError(f"Album {album_id} not found")

            context = ReportContext(albums=albums, reconciler=self.reconciler)
            count = definition.count(context, album_id)
            if count == 0:
                logger.info(f"Nothing to report for {report} report on album {album_id}")
                return ReportOutcome(count=0)

            notified = 0
            for audience in definition.audiences:
                content = NotificationContent(
                    notification_type=audience.notification_type,
                    title=audience.title,
                    body=audience.message(album.album_title, count),
                    count_field=audience.count_field,
                    count=count,
                )
                for recipient in audience.recipients(albums, album_id):
                    self.notifier.notify(session, recipient, album, content)
                    notified += 1

        logger.info(
            f"Sent {report} report for album {album_id}: count={count}, notified={notified}"
        )
        return ReportOutcome(count=count, notified=notified)
