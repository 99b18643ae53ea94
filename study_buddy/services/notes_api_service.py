"""Business logic handlers for note upload/list/delete APIs."""

from study_buddy.services import resource_service
from study_buddy.services.rate_limit_service import SCOPE_UPLOAD


def note_payload(note):
    return {
        'id': note.get('note_id', ''),
        'subject_id': note.get('subject_id', ''),
        'file_name': note.get('file_name', ''),
        'file_size': int(note.get('file_size', 0) or 0),
        'blob_url': note.get('blob_url', ''),
        'text_url': note.get('text_url'),
        'uploaded_at': note.get('uploaded_at'),
    }


def get_notes(app_ctx, request, subject_id):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    try:
        notes = resource_service.list_notes(app_ctx, decoded_token['uid'], subject_id)
        return app_ctx.jsonify([note_payload(note) for note in notes])
    except Exception as e:
        return app_ctx.error_response(e, 'Could not load notes')


def upload_note(app_ctx, request):
    decoded_token, error = app_ctx.authorize(request, scope=SCOPE_UPLOAD)
    if error:
        return error
    uid = decoded_token['uid']
    if not str(request.content_type or '').startswith('multipart/form-data'):
        return app_ctx.jsonify({'error': 'Content-Type must be multipart/form-data'}), 400
    subject_id = str(request.form.get('subjectId') or request.form.get('subject_id') or '').strip()
    if not subject_id:
        return app_ctx.jsonify({'error': 'subjectId field is required'}), 400
    uploaded_file = request.files.get('file')
    if uploaded_file is None or not uploaded_file.filename:
        return app_ctx.jsonify({'error': 'file field is required'}), 400

    try:
        file_bytes = uploaded_file.read()
        note, note_count = resource_service.upload_note(
            app_ctx,
            uid,
            decoded_token.get('email', ''),
            subject_id,
            uploaded_file.filename,
            file_bytes,
        )
        body = note_payload(note)
        body['note_count'] = note_count
        return app_ctx.jsonify(body), 201
    except Exception as e:
        return app_ctx.error_response(e, 'Failed to upload note')


def delete_note(app_ctx, request, note_id):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    try:
        resource_service.delete_note(app_ctx, decoded_token['uid'], note_id)
        return '', 204
    except Exception as e:
        return app_ctx.error_response(e, 'Could not delete note')
