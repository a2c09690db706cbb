"""Blur check report."""

from albumcast.models.report import ReportType

from ..reports import Audience, ReportContext, ReportDefinition, admins, plural, register_report


def count_blurred_images(context: ReportContext, album_id: int) -> int:
    return context.albums.count_blurred(album_id)


blur_report: ReportDefinition = register_report(
    ReportDefinition(
        report_type=ReportType.BLUR,
        count=count_blurred_images,
        default_delay_s=300.0,
        audiences=[
            Audience(
                recipients=admins,
                notification_type="blur_report",
                title="Blur Check Results",
                message=lambda title, count: (
                    f'Your album "{title}" has {plural(count, "blurred image")}.'
                ),
                count_field="blurCount",
            )
        ],
    )
)
