"""Business logic handlers for subject APIs."""

from study_buddy.services import resource_service
from study_buddy.repositories import subjects_repo


def subject_payload(subject, counts):
    return {
        'id': subject.get('subject_id', ''),
        'name': subject.get('name', ''),
        'color': subject.get('color', resource_service.DEFAULT_SUBJECT_COLOR),
        'created_at': subject.get('created_at'),
        'updated_at': subject.get('updated_at'),
        'note_count': counts.get('note_count', 0),
        'flashcard_set_count': counts.get('flashcard_set_count', 0),
    }


def get_subjects(app_ctx, request):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    uid = decoded_token['uid']
    try:
        subjects = [doc.to_dict() or {} for doc in subjects_repo.list_by_uid(app_ctx.db, uid)]
        subjects.sort(key=lambda item: item.get('created_at', 0) or 0, reverse=True)
        return app_ctx.jsonify([
            subject_payload(subject, resource_service.subject_counts(app_ctx, subject.get('subject_id', '')))
            for subject in subjects
        ])
    except Exception as e:
        return app_ctx.error_response(e, 'Could not load subjects')


def create_subject(app_ctx, request):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return app_ctx.jsonify({'error': 'Invalid payload'}), 400
    try:
        subject = resource_service.create_subject(
            app_ctx,
            decoded_token['uid'],
            decoded_token.get('email', ''),
            payload.get('name', ''),
            payload.get('color'),
        )
        return app_ctx.jsonify(subject_payload(subject, subject)), 201
    except Exception as e:
        return app_ctx.error_response(e, 'Could not create subject')


def get_subject(app_ctx, request, subject_id):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    try:
        subject = resource_service.get_owned_subject(app_ctx, decoded_token['uid'], subject_id)
        return app_ctx.jsonify(subject_payload(subject, resource_service.subject_counts(app_ctx, subject_id)))
    except Exception as e:
        return app_ctx.error_response(e, 'Could not load subject')


def update_subject(app_ctx, request, subject_id):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return app_ctx.jsonify({'error': 'Invalid payload'}), 400
    try:
        subject = resource_service.update_subject(app_ctx, decoded_token['uid'], subject_id, payload)
        return app_ctx.jsonify(subject_payload(subject, resource_service.subject_counts(app_ctx, subject_id)))
    except Exception as e:
        return app_ctx.error_response(e, 'Could not update subject')


def delete_subject(app_ctx, request, subject_id):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    try:
        resource_service.delete_subject(app_ctx, decoded_token['uid'], subject_id)
        return '', 204
    except Exception as e:
        return app_ctx.error_response(e, 'Could not delete subject')
