from flask import Blueprint, request

from study_buddy.extensions import get_app_ctx
from study_buddy.services import flashcards_api_service

flashcards_bp = Blueprint('flashcards_api', __name__)


@flashcards_bp.route('/api/flashcards', methods=['POST'])
def create_flashcard_set():
    return flashcards_api_service.create_flashcard_set(get_app_ctx(), request)


@flashcards_bp.route('/api/flashcards/set/<set_id>', methods=['GET'])
def get_flashcard_set(set_id):
    return flashcards_api_service.get_flashcard_set(get_app_ctx(), request, set_id)


@flashcards_bp.route('/api/flashcards/set/<set_id>', methods=['PUT'])
def update_flashcard_set(set_id):
    return flashcards_api_service.update_flashcard_set(get_app_ctx(), request, set_id)


@flashcards_bp.route('/api/flashcards/set/<set_id>', methods=['DELETE'])
def delete_flashcard_set(set_id):
    return flashcards_api_service.delete_flashcard_set(get_app_ctx(), request, set_id)


@flashcards_bp.route('/api/flashcards/<subject_id>', methods=['GET'])
def get_flashcard_sets(subject_id):
    return flashcards_api_service.get_flashcard_sets(get_app_ctx(), request, subject_id)
