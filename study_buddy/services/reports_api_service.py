"""Business logic handlers for bug report / feature request APIs."""

from study_buddy.services import report_service


def report_payload(report):
    return {
        'id': report.get('report_id', ''),
        'type': report.get('type', ''),
        'description': report.get('description', ''),
        'status': report.get('status', report_service.REPORT_STATUS_NEW),
        'created_at': report.get('created_at'),
        'updated_at': report.get('updated_at'),
    }


def submit_report(app_ctx, request):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return app_ctx.jsonify({'error': 'Invalid payload'}), 400
    try:
        report = report_service.submit_report(app_ctx, decoded_token['uid'], decoded_token.get('email', ''), payload)
        return app_ctx.jsonify({'message': 'Report submitted successfully', 'report_id': report['report_id']}), 201
    except Exception as e:
        return app_ctx.error_response(e, 'Failed to submit report')


def get_reports(app_ctx, request):
    decoded_token, error = app_ctx.authorize(request)
    if error:
        return error
    try:
        reports = report_service.list_reports(app_ctx, decoded_token['uid'])
        return app_ctx.jsonify({'reports': [report_payload(report) for report in reports]})
    except Exception as e:
        return app_ctx.error_response(e, 'Failed to fetch reports')
