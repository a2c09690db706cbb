"""Face recognition report.

Counts recognized users who are not yet members of the album. Admins get
the count; viewers are told that new images arrived.
"""

from albumcast.models.report import ReportType

from ..reports import (
    Audience,
    ReportContext,
    ReportDefinition,
    admins,
    plural,
    register_report,
    viewers,
)


def count_unshared_recognized_users(context: ReportContext, album_id: int) -> int:
    """Count distinct recognized users for an album who are not members.

    Args:
        context: Report sources; needs a reconciler
        album_id: The album

    Returns:
        Number of recognized non-member users
    """
    if context.reconciler is None:
        raise RuntimeError("Face report requires a match reconciler")
    recognized = context.reconciler.recognized_user_ids(album_id)
    members = set(context.albums.member_ids(album_id))
    return len(recognized - members)


face_report: ReportDefinition = register_report(
    ReportDefinition(
        report_type=ReportType.FACE,
        count=count_unshared_recognized_users,
        default_delay_s=60.0,
        audiences=[
            Audience(
                recipients=admins,
                notification_type="face_recognition_report",
                title="Face Recognition Complete",
                message=lambda title, count: (
                    f"Face recognition identified {plural(count, 'user')} "
                    f'(not part of the album) in your album "{title}".'
                ),
                count_field="recognizedCount",
            ),
            Audience(
                recipients=viewers,
                notification_type="new_images_added",
                title="New Images Added",
                message=lambda title, count: (
                    f'New images have been added to the album "{title}".'
                ),
            ),
        ],
    )
)
