from flask import Blueprint, request

from study_buddy.extensions import get_app_ctx
from study_buddy.services import account_api_service

account_bp = Blueprint('account_api', __name__)


@account_bp.route('/api/users/sync', methods=['POST'])
def sync_user():
    return account_api_service.sync_user(get_app_ctx(), request)


@account_bp.route('/api/users/me', methods=['GET'])
def get_me():
    return account_api_service.get_me(get_app_ctx(), request)
