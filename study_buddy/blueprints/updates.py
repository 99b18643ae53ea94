from flask import Blueprint, request

from study_buddy.extensions import get_app_ctx
from study_buddy.services import updates_api_service

updates_bp = Blueprint('updates_api', __name__)


@updates_bp.route('/api/version-updates', methods=['GET'])
def get_version_updates():
    return updates_api_service.get_version_updates(get_app_ctx(), request)


@updates_bp.route('/api/version-updates/latest', methods=['GET'])
def get_latest_version_update():
    return updates_api_service.get_latest_version_update(get_app_ctx(), request)


@updates_bp.route('/api/limits', methods=['GET'])
def get_limits():
    return updates_api_service.get_limits(get_app_ctx(), request)
