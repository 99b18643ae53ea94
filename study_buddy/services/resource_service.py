"""Subject, note and flashcard-set operations guarded by the quota enforcer.

Ordering on the note path: quota check, then record insert (with a
placeholder blob URL), then blob upload, then the record is pointed at the
uploaded blob, then text extraction stores a plain-text copy and sets
``text_url``. On deletion the record goes first and blob cleanup follows as a
best-effort step whose failure is only logged.
"""

from study_buddy.errors import DependencyFailure, NotFound, ValidationError
from study_buddy.repositories import flashcard_sets_repo, notes_repo, subjects_repo
from study_buddy.services import limits_service, text_extraction_service
from study_buddy.services.blob_service import PLACEHOLDER_BLOB_URL
from study_buddy.services.quota_service import KIND_FLASHCARD_SET, KIND_NOTE, KIND_SUBJECT

DEFAULT_SUBJECT_COLOR = '#3B82F6'
MAX_COLOR_LENGTH = 32
MAX_FLASHCARD_SET_NAME_LENGTH = 200
MAX_FLASHCARD_SET_DESCRIPTION_LENGTH = 1000


def _owned_doc(snapshot, uid, label):
    if not snapshot.exists:
        raise NotFound(f'{label} not found')
    data = snapshot.to_dict() or {}
    if data.get('uid', '') != uid:
        raise NotFound(f'{label} not found')
    return data


def get_owned_subject(app_ctx, uid, subject_id):
    if not subject_id:
        raise NotFound('Subject not found')
    return _owned_doc(subjects_repo.get_doc(app_ctx.db, subject_id), uid, 'Subject')


def _clean_color(raw_color):
    color = str(raw_color or '').strip()[:MAX_COLOR_LENGTH]
    return color or DEFAULT_SUBJECT_COLOR


def subject_counts(app_ctx, subject_id):
    return {
        'note_count': app_ctx.quota.current_count(KIND_NOTE, subject_id),
        'flashcard_set_count': app_ctx.quota.current_count(KIND_FLASHCARD_SET, subject_id),
    }


def create_subject(app_ctx, uid, user_email, name, color=None):
    clean_name = limits_service.validate_string(name, app_ctx.limits.max_subject_name_length, 'name')
    app_ctx.quota.ensure_can_create(KIND_SUBJECT, uid)
    now_ts = app_ctx.time.time()
    doc_ref = subjects_repo.new_doc_ref(app_ctx.db)
    subject = {
        'subject_id': doc_ref.id,
        'uid': uid,
        'user_email': str(user_email or '').lower(),
        'name': clean_name,
        'color': _clean_color(color),
        'created_at': now_ts,
        'updated_at': now_ts,
    }
    app_ctx.quota.create_within_quota(KIND_SUBJECT, uid, doc_ref, subject)
    app_ctx.logger.info(f"Subject created: {doc_ref.id} for user {uid}")
    return dict(subject, note_count=0, flashcard_set_count=0)


def update_subject(app_ctx, uid, subject_id, payload):
    subject = get_owned_subject(app_ctx, uid, subject_id)
    updates = {}
    if 'name' in payload:
        updates['name'] = limits_service.validate_string(payload.get('name'), app_ctx.limits.max_subject_name_length, 'name')
    if 'color' in payload:
        updates['color'] = _clean_color(payload.get('color'))
    if updates:
        updates['updated_at'] = app_ctx.time.time()
        subjects_repo.update_doc(app_ctx.db, subject_id, updates)
        subject.update(updates)
    return subject


def delete_subject(app_ctx, uid, subject_id):
    """Delete a subject with its notes, their blobs and its flashcard sets."""
    get_owned_subject(app_ctx, uid, subject_id)
    db = app_ctx.db
    try:
        notes = []
        for doc in notes_repo.list_by_subject(db, uid, subject_id):
            note = doc.to_dict() or {}
            notes_repo.doc_ref(db, doc.id).delete()
            notes.append(note)
            # Once the record is gone nothing else can find these blobs.
            _cleanup_note_blobs(app_ctx, note)
        flashcard_sets = flashcard_sets_repo.list_by_subject(db, uid, subject_id)
        for doc in flashcard_sets:
            flashcard_sets_repo.doc_ref(db, doc.id).delete()
        app_ctx.quota.drop_owner(KIND_NOTE, subject_id)
        app_ctx.quota.drop_owner(KIND_FLASHCARD_SET, subject_id)
    except Exception as exc:
        raise DependencyFailure(f'Could not delete resources of subject {subject_id}') from exc
    app_ctx.quota.delete_and_release(KIND_SUBJECT, uid, subjects_repo.doc_ref(db, subject_id))
    app_ctx.logger.info(
        f"Subject deleted: {subject_id} ({len(notes)} notes, {len(flashcard_sets)} flashcard sets)"
    )
    return {'notes_deleted': len(notes), 'flashcard_sets_deleted': len(flashcard_sets)}


def _cleanup_note_blobs(app_ctx, note):
    for result in app_ctx.blob_store.delete_note_blobs(note):
        if not result.ok:
            app_ctx.logger.warning(
                f"Blob cleanup failed for note {note.get('note_id', '')}: {result.error}"
            )


def list_notes(app_ctx, uid, subject_id):
    get_owned_subject(app_ctx, uid, subject_id)
    notes = [doc.to_dict() or {} for doc in notes_repo.list_by_subject(app_ctx.db, uid, subject_id)]
    notes.sort(key=lambda note: note.get('uploaded_at', 0) or 0, reverse=True)
    return notes


def upload_note(app_ctx, uid, user_email, subject_id, file_name, file_bytes):
    get_owned_subject(app_ctx, uid, subject_id)
    app_ctx.quota.ensure_can_create(KIND_NOTE, subject_id)
    limits_service.validate_upload(file_name, len(file_bytes), app_ctx.limits)

    doc_ref = notes_repo.new_doc_ref(app_ctx.db)
    note = {
        'note_id': doc_ref.id,
        'uid': uid,
        'user_email': str(user_email or '').lower(),
        'subject_id': subject_id,
        'file_name': file_name,
        'file_size': len(file_bytes),
        'blob_name': '',
        'blob_url': PLACEHOLDER_BLOB_URL,
        'text_url': None,
        'uploaded_at': app_ctx.time.time(),
    }
    note_count = app_ctx.quota.create_within_quota(KIND_NOTE, subject_id, doc_ref, note)

    try:
        uploaded = app_ctx.blob_store.upload(uid, subject_id, file_bytes, file_name)
    except Exception as exc:
        app_ctx.logger.error(f"Error uploading note {doc_ref.id} to storage: {exc}")
        app_ctx.quota.delete_and_release(KIND_NOTE, subject_id, doc_ref)
        raise DependencyFailure('Failed to upload file to storage') from exc

    updates = {'blob_name': uploaded.blob_name, 'blob_url': uploaded.blob_url}
    try:
        notes_repo.update_doc(app_ctx.db, doc_ref.id, updates)
    except Exception as exc:
        app_ctx.logger.error(f"Error recording blob for note {doc_ref.id}: {exc}")
        app_ctx.blob_store.delete_by_url(uploaded.blob_url)
        app_ctx.quota.delete_and_release(KIND_NOTE, subject_id, doc_ref)
        raise DependencyFailure('Failed to save note') from exc
    note.update(updates)
    app_ctx.logger.info(f"Note created: {doc_ref.id} with blob URL: {uploaded.blob_url}")

    extraction = text_extraction_service.extract_note_text(app_ctx, note, file_bytes)
    if extraction.ok:
        note['text_url'] = extraction.text_url
    return note, note_count


def delete_note(app_ctx, uid, note_id):
    ref = notes_repo.doc_ref(app_ctx.db, note_id)
    note = _owned_doc(ref.get(), uid, 'Note')
    app_ctx.quota.delete_and_release(KIND_NOTE, note.get('subject_id', ''), ref)
    _cleanup_note_blobs(app_ctx, note)
    app_ctx.logger.info(f"Note deleted: {note_id}")
    return note


def _clean_set_fields(app_ctx, payload, partial=False):
    fields = {}
    if not partial or 'name' in payload:
        fields['name'] = limits_service.validate_string(payload.get('name'), MAX_FLASHCARD_SET_NAME_LENGTH, 'name')
    if not partial or 'description' in payload:
        fields['description'] = str(payload.get('description', '') or '').strip()[:MAX_FLASHCARD_SET_DESCRIPTION_LENGTH]
    if not partial or 'flashcards' in payload:
        fields['flashcards'] = limits_service.validate_flashcards(payload.get('flashcards', []), app_ctx.limits)
    return fields


def list_flashcard_sets(app_ctx, uid, subject_id):
    get_owned_subject(app_ctx, uid, subject_id)
    sets = [doc.to_dict() or {} for doc in flashcard_sets_repo.list_by_subject(app_ctx.db, uid, subject_id)]
    sets.sort(key=lambda item: item.get('created_at', 0) or 0, reverse=True)
    return sets


def get_flashcard_set(app_ctx, uid, set_id):
    return _owned_doc(flashcard_sets_repo.get_doc(app_ctx.db, set_id), uid, 'Flashcard set')


def create_flashcard_set(app_ctx, uid, payload):
    subject_id = str(payload.get('subject_id', '') or '').strip()
    if not subject_id:
        raise ValidationError('subject_id', None, 'subject_id is required')
    get_owned_subject(app_ctx, uid, subject_id)
    app_ctx.quota.ensure_can_create(KIND_FLASHCARD_SET, subject_id)
    fields = _clean_set_fields(app_ctx, payload)
    now_ts = app_ctx.time.time()
    doc_ref = flashcard_sets_repo.new_doc_ref(app_ctx.db)
    flashcard_set = dict(
        fields,
        flashcard_set_id=doc_ref.id,
        uid=uid,
        subject_id=subject_id,
        created_at=now_ts,
        updated_at=now_ts,
    )
    app_ctx.quota.create_within_quota(KIND_FLASHCARD_SET, subject_id, doc_ref, flashcard_set)
    return flashcard_set


def update_flashcard_set(app_ctx, uid, set_id, payload):
    flashcard_set = get_flashcard_set(app_ctx, uid, set_id)
    updates = _clean_set_fields(app_ctx, payload, partial=True)
    if updates:
        updates['updated_at'] = app_ctx.time.time()
        flashcard_sets_repo.update_doc(app_ctx.db, set_id, updates)
        flashcard_set.update(updates)
    return flashcard_set


def delete_flashcard_set(app_ctx, uid, set_id):
    flashcard_set = get_flashcard_set(app_ctx, uid, set_id)
    app_ctx.quota.delete_and_release(
        KIND_FLASHCARD_SET,
        flashcard_set.get('subject_id', ''),
        flashcard_sets_repo.doc_ref(app_ctx.db, set_id),
    )
    return flashcard_set
