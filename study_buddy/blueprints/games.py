from flask import Blueprint, request

from study_buddy.extensions import get_app_ctx
from study_buddy.services import games_api_service

games_bp = Blueprint('games_api', __name__)


@games_bp.route('/api/games/results', methods=['POST'])
def save_result():
    return games_api_service.save_result(get_app_ctx(), request)


@games_bp.route('/api/games/stats/<set_id>', methods=['GET'])
def get_set_stats(set_id):
    return games_api_service.get_set_stats(get_app_ctx(), request, set_id)


@games_bp.route('/api/games/stats', methods=['GET'])
def get_overall_stats():
    return games_api_service.get_overall_stats(get_app_ctx(), request)


@games_bp.route('/api/games/recent', methods=['GET'])
def get_recent_results():
    return games_api_service.get_recent_results(get_app_ctx(), request)
