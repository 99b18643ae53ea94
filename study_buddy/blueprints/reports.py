from flask import Blueprint, request

from study_buddy.extensions import get_app_ctx
from study_buddy.services import reports_api_service

reports_bp = Blueprint('reports_api', __name__)


@reports_bp.route('/api/reports', methods=['POST'])
def submit_report():
    return reports_api_service.submit_report(get_app_ctx(), request)


@reports_bp.route('/api/reports', methods=['GET'])
def get_reports():
    return reports_api_service.get_reports(get_app_ctx(), request)
