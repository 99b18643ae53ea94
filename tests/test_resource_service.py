import re

import pytest

from study_buddy.errors import DependencyFailure, NotFound, QuotaExceeded, ValidationError
from study_buddy.services import resource_service, text_extraction_service
from study_buddy.services.quota_service import KIND_FLASHCARD_SET, KIND_NOTE, KIND_SUBJECT

TWO_MIB = 2 * 1024 * 1024


def test_eleventh_subject_is_rejected_without_creating_a_record(app_ctx, fake_db):
    for index in range(10):
        resource_service.create_subject(app_ctx, "u1", "u1@example.com", f"Subject {index}")

    with pytest.raises(QuotaExceeded) as excinfo:
        resource_service.create_subject(app_ctx, "u1", "u1@example.com", "Subject 11")

    assert excinfo.value.kind == KIND_SUBJECT
    assert excinfo.value.limit == 10
    assert len(fake_db.store("subjects")) == 10


def test_subject_name_is_validated(app_ctx, fake_db):
    with pytest.raises(ValidationError):
        resource_service.create_subject(app_ctx, "u1", "", "   ")
    with pytest.raises(ValidationError):
        resource_service.create_subject(app_ctx, "u1", "", "x" * 101)
    assert fake_db.store("subjects") == {}


def test_upload_note_stores_blob_and_increments_count(app_ctx, fake_bucket):
    subject = resource_service.create_subject(app_ctx, "u1", "", "Biology")
    subject_id = subject["subject_id"]

    note, note_count = resource_service.upload_note(app_ctx, "u1", "", subject_id, "Chapter 1.pdf", b"x" * TWO_MIB)

    assert note_count == 1
    assert re.fullmatch(rf"u1/{subject_id}/\d{{13}}-Chapter_1\.pdf", note["blob_name"])
    assert note["blob_name"] in fake_bucket.objects
    assert note["file_name"] == "Chapter 1.pdf"
    assert note["file_size"] == TWO_MIB
    assert resource_service.subject_counts(app_ctx, subject_id)["note_count"] == 1


def test_invalid_upload_has_no_side_effects(app_ctx, fake_db, fake_bucket):
    subject_id = resource_service.create_subject(app_ctx, "u1", "", "Biology")["subject_id"]

    with pytest.raises(ValidationError):
        resource_service.upload_note(app_ctx, "u1", "", subject_id, "notes.docx", b"data")
    with pytest.raises(ValidationError):
        resource_service.upload_note(app_ctx, "u1", "", subject_id, "empty.pdf", b"")

    assert fake_db.store("notes") == {}
    assert fake_bucket.objects == {}
    assert app_ctx.quota.current_count(KIND_NOTE, subject_id) == 0


def test_upload_failure_rolls_back_the_note_record(app_ctx, fake_db, fake_bucket):
    subject_id = resource_service.create_subject(app_ctx, "u1", "", "Biology")["subject_id"]
    fake_bucket.fail_uploads = True

    with pytest.raises(DependencyFailure):
        resource_service.upload_note(app_ctx, "u1", "", subject_id, "a.pdf", b"data")

    assert fake_db.store("notes") == {}
    assert app_ctx.quota.current_count(KIND_NOTE, subject_id) == 0


def test_note_quota_is_enforced_before_upload(app_ctx, fake_bucket):
    subject_id = resource_service.create_subject(app_ctx, "u1", "", "Biology")["subject_id"]
    for index in range(10):
        resource_service.upload_note(app_ctx, "u1", "", subject_id, f"n{index}.pdf", b"data")

    with pytest.raises(QuotaExceeded) as excinfo:
        resource_service.upload_note(app_ctx, "u1", "", subject_id, "n10.pdf", b"data")

    assert excinfo.value.kind == KIND_NOTE
    assert len(fake_bucket.objects) == 10


def test_upload_to_someone_elses_subject_is_not_found(app_ctx):
    subject_id = resource_service.create_subject(app_ctx, "owner", "", "Biology")["subject_id"]

    with pytest.raises(NotFound):
        resource_service.upload_note(app_ctx, "intruder", "", subject_id, "a.pdf", b"data")


def test_delete_note_with_placeholder_url_makes_no_storage_call(app_ctx, fake_db, fake_bucket):
    subject_id = resource_service.create_subject(app_ctx, "u1", "", "Biology")["subject_id"]
    fake_db.store("notes")["n1"] = {
        "note_id": "n1",
        "uid": "u1",
        "subject_id": subject_id,
        "file_name": "a.pdf",
        "blob_url": "placeholder://none",
    }

    resource_service.delete_note(app_ctx, "u1", "n1")

    assert "n1" not in fake_db.store("notes")
    assert fake_bucket.blob_calls == 0


def test_delete_note_survives_blob_cleanup_failure(app_ctx, fake_db, fake_bucket):
    subject_id = resource_service.create_subject(app_ctx, "u1", "", "Biology")["subject_id"]
    note, _ = resource_service.upload_note(app_ctx, "u1", "", subject_id, "a.pdf", b"data")
    fake_bucket.fail_deletes = True

    resource_service.delete_note(app_ctx, "u1", note["note_id"])

    assert fake_db.store("notes") == {}
    assert app_ctx.quota.current_count(KIND_NOTE, subject_id) == 0


def test_delete_subject_cascades_notes_blobs_and_flashcard_sets(app_ctx, fake_db, fake_bucket):
    subject_id = resource_service.create_subject(app_ctx, "u1", "", "Biology")["subject_id"]
    other_id = resource_service.create_subject(app_ctx, "u1", "", "Chemistry")["subject_id"]
    resource_service.upload_note(app_ctx, "u1", "", subject_id, "a.pdf", b"a")
    resource_service.upload_note(app_ctx, "u1", "", subject_id, "b.pdf", b"b")
    kept_note, _ = resource_service.upload_note(app_ctx, "u1", "", other_id, "c.pdf", b"c")
    resource_service.create_flashcard_set(app_ctx, "u1", {
        "subject_id": subject_id,
        "name": "Cells",
        "flashcards": [{"front": "What is a cell?", "back": "The unit of life"}],
    })

    summary = resource_service.delete_subject(app_ctx, "u1", subject_id)

    assert summary == {"notes_deleted": 2, "flashcard_sets_deleted": 1}
    assert list(fake_db.store("subjects")) == [other_id]
    assert [n["note_id"] for n in fake_db.store("notes").values()] == [kept_note["note_id"]]
    assert fake_db.store("flashcard_sets") == {}
    assert list(fake_bucket.objects) == [kept_note["blob_name"]]
    assert app_ctx.quota.current_count(KIND_SUBJECT, "u1") == 1
    assert app_ctx.quota.current_count(KIND_NOTE, subject_id) == 0
    assert app_ctx.quota.current_count(KIND_FLASHCARD_SET, subject_id) == 0


def test_flashcard_set_ceiling(app_ctx, limits):
    subject_id = resource_service.create_subject(app_ctx, "u1", "", "Biology")["subject_id"]
    for index in range(limits.max_flashcard_sets_per_subject):
        resource_service.create_flashcard_set(app_ctx, "u1", {"subject_id": subject_id, "name": f"Set {index}"})

    with pytest.raises(QuotaExceeded) as excinfo:
        resource_service.create_flashcard_set(app_ctx, "u1", {"subject_id": subject_id, "name": "One too many"})

    assert excinfo.value.kind == KIND_FLASHCARD_SET
    assert excinfo.value.limit == 20


def test_update_flashcard_set_validates_cards(app_ctx):
    subject_id = resource_service.create_subject(app_ctx, "u1", "", "Biology")["subject_id"]
    created = resource_service.create_flashcard_set(app_ctx, "u1", {"subject_id": subject_id, "name": "Cells"})

    updated = resource_service.update_flashcard_set(app_ctx, "u1", created["flashcard_set_id"], {
        "flashcards": [{"front": "Q", "back": "A", "studied": True}],
    })

    assert updated["name"] == "Cells"
    assert updated["flashcards"] == [{"front": "Q", "back": "A", "studied": True}]
    with pytest.raises(ValidationError):
        resource_service.update_flashcard_set(app_ctx, "u1", created["flashcard_set_id"], {
            "flashcards": [{"front": "Q", "back": "A" * 1001}],
        })


def test_failed_subject_delete_still_removes_blobs_of_deleted_notes(app_ctx, fake_db, fake_bucket, monkeypatch):
    subject_id = resource_service.create_subject(app_ctx, "u1", "", "Biology")["subject_id"]
    resource_service.upload_note(app_ctx, "u1", "", subject_id, "a.pdf", b"a")

    def _fail(kind, owner_id, doc_ref):
        raise DependencyFailure("document store unavailable")

    monkeypatch.setattr(app_ctx.quota, "delete_and_release", _fail)

    with pytest.raises(DependencyFailure):
        resource_service.delete_subject(app_ctx, "u1", subject_id)

    assert fake_db.store("notes") == {}
    assert fake_bucket.objects == {}
    assert subject_id in fake_db.store("subjects")


def test_upload_note_stores_extracted_text(app_ctx, fake_db, fake_bucket, monkeypatch):
    subject_id = resource_service.create_subject(app_ctx, "u1", "", "Biology")["subject_id"]
    monkeypatch.setattr(text_extraction_service, "extract_pdf_text", lambda data: "Mitochondria")

    note, _ = resource_service.upload_note(app_ctx, "u1", "", subject_id, "a.pdf", b"%PDF-1.4")

    text_name = f"u1/{subject_id}/{note['note_id']}.txt"
    assert fake_bucket.objects[text_name]["data"] == b"Mitochondria"
    assert fake_db.store("notes")[note["note_id"]]["text_url"] == note["text_url"]
    assert note["text_url"].endswith(f"/{note['note_id']}.txt")

    resource_service.delete_note(app_ctx, "u1", note["note_id"])

    assert fake_bucket.objects == {}


def test_unreadable_pdf_keeps_note_without_text(app_ctx, fake_db, fake_bucket):
    subject_id = resource_service.create_subject(app_ctx, "u1", "", "Biology")["subject_id"]

    note, note_count = resource_service.upload_note(app_ctx, "u1", "", subject_id, "a.pdf", b"not really a pdf")

    assert note_count == 1
    assert note["text_url"] is None
    assert fake_db.store("notes")[note["note_id"]]["text_url"] is None
    assert list(fake_bucket.objects) == [note["blob_name"]]
