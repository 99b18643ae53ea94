"""Public read-only handlers: version changelog and the limits table."""

from study_buddy.repositories import version_updates_repo

MAX_VERSION_UPDATES = 10


def _iso(value):
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return value


def version_update_payload(data):
    return {
        'version': data.get('version', ''),
        'title': data.get('title', ''),
        'description': data.get('description', ''),
        'features': [str(item) for item in (data.get('features') or [])],
        'release_date': _iso(data.get('release_date')),
    }


def get_version_updates(app_ctx, request):
    try:
        docs = version_updates_repo.list_recent(app_ctx.db, MAX_VERSION_UPDATES, app_ctx.firestore)
        return app_ctx.jsonify([version_update_payload(doc.to_dict() or {}) for doc in docs])
    except Exception as e:
        return app_ctx.error_response(e, 'Failed to fetch version updates')


def get_latest_version_update(app_ctx, request):
    try:
        docs = version_updates_repo.list_recent(app_ctx.db, 1, app_ctx.firestore)
        if not docs:
            return app_ctx.jsonify({'error': 'No version updates found'}), 404
        return app_ctx.jsonify(version_update_payload(docs[0].to_dict() or {}))
    except Exception as e:
        return app_ctx.error_response(e, 'Failed to fetch latest version update')


def get_limits(app_ctx, request):
    return app_ctx.jsonify(app_ctx.limits.as_public_dict())
