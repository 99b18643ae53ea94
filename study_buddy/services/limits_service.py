"""Limit policy: stateless checks over the configured ceilings."""

from study_buddy.config import DEFAULT_LIMITS
from study_buddy.errors import ValidationError


def file_extension(filename):
    """Return the lowercased suffix from the final dot, or '' when there is none."""
    name = str(filename or '')
    index = name.rfind('.')
    if index < 0:
        return ''
    return name[index:].lower()


def is_valid_file_size(size_bytes, limits=DEFAULT_LIMITS):
    return 0 < size_bytes <= limits.max_file_size_bytes


def is_valid_file_type(filename, limits=DEFAULT_LIMITS):
    extension = file_extension(filename)
    return bool(extension) and extension in limits.allowed_file_types


def is_valid_string_length(value, max_length):
    return 0 < len(value) <= max_length


def validate_string(value, max_length, field):
    text = str(value or '').strip()
    if not is_valid_string_length(text, max_length):
        raise ValidationError(field, max_length, f'{field} must be between 1 and {max_length} characters')
    return text


def validate_upload(filename, size_bytes, limits=DEFAULT_LIMITS):
    if not is_valid_string_length(str(filename or ''), limits.max_note_filename_length):
        raise ValidationError(
            'file_name',
            limits.max_note_filename_length,
            f'File name must be between 1 and {limits.max_note_filename_length} characters',
        )
    if not is_valid_file_type(filename, limits):
        raise ValidationError(
            'file_type',
            list(limits.allowed_file_types),
            f"Only PDF files are allowed. Allowed types: {', '.join(limits.allowed_file_types)}",
        )
    if not is_valid_file_size(size_bytes, limits):
        raise ValidationError(
            'file_size',
            limits.max_file_size_bytes,
            f'File size must be between 1 byte and {limits.max_file_size_mb}MB',
        )


def validate_flashcards(raw_cards, limits=DEFAULT_LIMITS):
    if raw_cards is None:
        return []
    if not isinstance(raw_cards, list):
        raise ValidationError('flashcards', None, 'flashcards must be a list')
    cleaned = []
    for card in raw_cards:
        if not isinstance(card, dict):
            raise ValidationError('flashcards', None, 'Each flashcard must be an object')
        cleaned.append({
            'front': validate_string(card.get('front'), limits.max_flashcard_question_length, 'front'),
            'back': validate_string(card.get('back'), limits.max_flashcard_answer_length, 'back'),
            'studied': bool(card.get('studied', False)),
        })
    return cleaned
