from flask import Blueprint, request

from study_buddy.extensions import get_app_ctx
from study_buddy.services import subjects_api_service

subjects_bp = Blueprint('subjects_api', __name__)


@subjects_bp.route('/api/subjects', methods=['GET'])
def get_subjects():
    return subjects_api_service.get_subjects(get_app_ctx(), request)


@subjects_bp.route('/api/subjects', methods=['POST'])
def create_subject():
    return subjects_api_service.create_subject(get_app_ctx(), request)


@subjects_bp.route('/api/subjects/<subject_id>', methods=['GET'])
def get_subject(subject_id):
    return subjects_api_service.get_subject(get_app_ctx(), request, subject_id)


@subjects_bp.route('/api/subjects/<subject_id>', methods=['PUT'])
def update_subject(subject_id):
    return subjects_api_service.update_subject(get_app_ctx(), request, subject_id)


@subjects_bp.route('/api/subjects/<subject_id>', methods=['DELETE'])
def delete_subject(subject_id):
    return subjects_api_service.delete_subject(get_app_ctx(), request, subject_id)
