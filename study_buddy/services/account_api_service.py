"""Business logic handlers for user profile APIs."""

from study_buddy.repositories import users_repo
from study_buddy.services import user_sync_service


def sync_user(app_ctx, request):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    uid = decoded_token['uid']
    payload = request.get_json(silent=True) or {}
    claims = user_sync_service.claims_from_request(decoded_token, payload)
    result = app_ctx.sync_profile(uid, claims)
    if not result.ok:
        return app_ctx.jsonify({'error': 'Could not sync user profile'}), 500
    return app_ctx.jsonify({
        'ok': True,
        'created': result.created,
        'user': user_sync_service.profile_payload(result.profile),
    })


def get_me(app_ctx, request):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    uid = decoded_token['uid']
    try:
        snapshot = users_repo.get_doc(app_ctx.db, uid)
        if not snapshot.exists:
            return app_ctx.jsonify({'error': 'User profile not found'}), 404
        return app_ctx.jsonify(user_sync_service.profile_payload(snapshot.to_dict() or {}))
    except Exception as e:
        return app_ctx.error_response(e, 'Could not load user profile')
