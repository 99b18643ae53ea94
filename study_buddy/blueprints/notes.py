from flask import Blueprint, request

from study_buddy.extensions import get_app_ctx
from study_buddy.services import notes_api_service

notes_bp = Blueprint('notes_api', __name__)


@notes_bp.route('/api/notes/upload', methods=['POST'])
def upload_note():
    return notes_api_service.upload_note(get_app_ctx(), request)


@notes_bp.route('/api/notes/delete/<note_id>', methods=['DELETE'])
def delete_note(note_id):
    return notes_api_service.delete_note(get_app_ctx(), request, note_id)


@notes_bp.route('/api/notes/<subject_id>', methods=['GET'])
def get_notes(subject_id):
    return notes_api_service.get_notes(get_app_ctx(), request, subject_id)
