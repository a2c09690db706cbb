"""Duplicate check report."""

from albumcast.models.report import ReportType

from ..reports import Audience, ReportContext, ReportDefinition, admins, plural, register_report


def count_duplicate_images(context: ReportContext, album_id: int) -> int:
    return context.albums.count_duplicates(album_id)


duplicate_report: ReportDefinition = register_report(
    ReportDefinition(
        report_type=ReportType.DUPLICATE,
        count=count_duplicate_images,
        default_delay_s=300.0,
        audiences=[
            Audience(
                recipients=admins,
                notification_type="duplicate_report",
                title="Duplicate Check Results",
                message=lambda title, count: (
                    f'Your album "{title}" has {plural(count, "duplicate image")}.'
                ),
                count_field="duplicateCount",
            )
        ],
    )
)
