"""Business logic handlers for flashcard game result and stats APIs."""

from study_buddy.services import game_stats_service


def save_result(app_ctx, request):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return app_ctx.jsonify({'error': 'Invalid payload'}), 400
    try:
        return app_ctx.jsonify(game_stats_service.record_result(app_ctx, decoded_token['uid'], payload))
    except Exception as e:
        return app_ctx.error_response(e, 'Failed to save game result')


def get_set_stats(app_ctx, request, set_id):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    try:
        return app_ctx.jsonify(game_stats_service.get_set_stats(
            app_ctx,
            decoded_token['uid'],
            set_id,
            request.args.get('gameType'),
        ))
    except Exception as e:
        return app_ctx.error_response(e, 'Failed to get game stats')


def get_overall_stats(app_ctx, request):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    try:
        return app_ctx.jsonify(game_stats_service.get_overall_stats(app_ctx, decoded_token['uid']))
    except Exception as e:
        return app_ctx.error_response(e, 'Failed to get game stats')


def get_recent_results(app_ctx, request):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    try:
        limit = game_stats_service.parse_recent_limit(request.args.get('limit'))
        return app_ctx.jsonify(game_stats_service.get_recent_results(app_ctx, decoded_token['uid'], limit))
    except Exception as e:
        return app_ctx.error_response(e, 'Failed to get recent results')
