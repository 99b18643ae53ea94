"""Business logic handlers for flashcard-set APIs."""

from study_buddy.services import resource_service


def flashcard_set_payload(flashcard_set):
    return {
        'id': flashcard_set.get('flashcard_set_id', ''),
        'subject_id': flashcard_set.get('subject_id', ''),
        'name': flashcard_set.get('name', ''),
        'description': flashcard_set.get('description', ''),
        'flashcards': list(flashcard_set.get('flashcards') or []),
        'created_at': flashcard_set.get('created_at'),
        'updated_at': flashcard_set.get('updated_at'),
    }


def get_flashcard_sets(app_ctx, request, subject_id):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    try:
        sets = resource_service.list_flashcard_sets(app_ctx, decoded_token['uid'], subject_id)
        return app_ctx.jsonify([flashcard_set_payload(item) for item in sets])
    except Exception as e:
        return app_ctx.error_response(e, 'Could not load flashcard sets')


def create_flashcard_set(app_ctx, request):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return app_ctx.jsonify({'error': 'Invalid payload'}), 400
    if 'subjectId' in payload and 'subject_id' not in payload:
        payload['subject_id'] = payload['subjectId']
    try:
        flashcard_set = resource_service.create_flashcard_set(app_ctx, decoded_token['uid'], payload)
        return app_ctx.jsonify(flashcard_set_payload(flashcard_set)), 201
    except Exception as e:
        return app_ctx.error_response(e, 'Could not create flashcard set')


def get_flashcard_set(app_ctx, request, set_id):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    try:
        return app_ctx.jsonify(flashcard_set_payload(resource_service.get_flashcard_set(app_ctx, decoded_token['uid'], set_id)))
    except Exception as e:
        return app_ctx.error_response(e, 'Could not load flashcard set')


def update_flashcard_set(app_ctx, request, set_id):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return app_ctx.jsonify({'error': 'Invalid payload'}), 400
    try:
        flashcard_set = resource_service.update_flashcard_set(app_ctx, decoded_token['uid'], set_id, payload)
        return app_ctx.jsonify(flashcard_set_payload(flashcard_set))
    except Exception as e:
        return app_ctx.error_response(e, 'Could not update flashcard set')


def delete_flashcard_set(app_ctx, request, set_id):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    try:
        resource_service.delete_flashcard_set(app_ctx, decoded_token['uid'], set_id)
        return '', 204
    except Exception as e:
        return app_ctx.error_response(e, 'Could not delete flashcard set')
