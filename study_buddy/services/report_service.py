"""Bug reports and feature requests submitted from the app."""

from study_buddy.errors import ValidationError
from study_buddy.repositories import reports_repo

REPORT_TYPES = ('bug', 'feature', 'improvement', 'other')
REPORT_STATUS_NEW = 'new'
MIN_DESCRIPTION_LENGTH = 10
MAX_DESCRIPTION_LENGTH = 5000
MAX_LISTED_REPORTS = 50


def submit_report(app_ctx, uid, user_email, payload):
    report_type = str(payload.get('type', '') or '').strip().lower()
    description = str(payload.get('description', '') or '').strip()
    if not report_type or not description:
        raise ValidationError('type', None, 'Type and description are required')
    if report_type not in REPORT_TYPES:
        raise ValidationError('type', list(REPORT_TYPES), f"Type must be one of: {', '.join(REPORT_TYPES)}")
    if len(description) < MIN_DESCRIPTION_LENGTH:
        raise ValidationError(
            'description',
            MIN_DESCRIPTION_LENGTH,
            f'Description must be at least {MIN_DESCRIPTION_LENGTH} characters',
        )
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            'description',
            MAX_DESCRIPTION_LENGTH,
            f'Description must be at most {MAX_DESCRIPTION_LENGTH} characters',
        )

    now_ts = app_ctx.time.time()
    doc_ref = reports_repo.new_doc_ref(app_ctx.db)
    report = {
        'report_id': doc_ref.id,
        'uid': uid,
        'user_email': str(user_email or '').lower() or 'unknown',
        'type': report_type,
        'description': description,
        'status': REPORT_STATUS_NEW,
        'created_at': now_ts,
        'updated_at': now_ts,
    }
    doc_ref.set(report)
    app_ctx.logger.info(f"Report submitted by user {uid}: {doc_ref.id}")
    return report


def list_reports(app_ctx, uid):
    reports = [doc.to_dict() or {} for doc in reports_repo.list_by_uid(app_ctx.db, uid)]
    reports.sort(key=lambda item: item.get('created_at', 0) or 0, reverse=True)
    return reports[:MAX_LISTED_REPORTS]
