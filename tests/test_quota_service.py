import pytest

from study_buddy.config import LimitsConfig
from study_buddy.errors import DependencyFailure, QuotaExceeded
from study_buddy.services.quota_service import KIND_NOTE, KIND_SUBJECT, QuotaEnforcer


@pytest.fixture()
def quota(fake_db, app_ctx):
    return QuotaEnforcer(fake_db, app_ctx.firestore, LimitsConfig(max_subjects_per_user=2, max_notes_per_subject=1))


def _create_subject(quota, fake_db, uid, name):
    ref = fake_db.collection("subjects").document()
    return quota.create_within_quota(KIND_SUBJECT, uid, ref, {"subject_id": ref.id, "uid": uid, "name": name}), ref


def test_create_within_quota_counts_up_to_ceiling(quota, fake_db):
    assert quota.can_create(KIND_SUBJECT, "u1") is True

    assert _create_subject(quota, fake_db, "u1", "A")[0] == 1
    assert _create_subject(quota, fake_db, "u1", "B")[0] == 2

    assert quota.can_create(KIND_SUBJECT, "u1") is False
    with pytest.raises(QuotaExceeded) as excinfo:
        _create_subject(quota, fake_db, "u1", "C")
    assert excinfo.value.kind == KIND_SUBJECT
    assert excinfo.value.limit == 2
    assert excinfo.value.current_count == 2
    assert len(fake_db.store("subjects")) == 2


def test_quota_is_per_owner(quota, fake_db):
    _create_subject(quota, fake_db, "u1", "A")
    _create_subject(quota, fake_db, "u1", "B")

    assert quota.can_create(KIND_SUBJECT, "u2") is True


def test_missing_counter_is_seeded_from_existing_records(quota, fake_db):
    fake_db.store("subjects").update({
        "s1": {"uid": "legacy", "name": "A"},
        "s2": {"uid": "legacy", "name": "B"},
    })

    assert quota.current_count(KIND_SUBJECT, "legacy") == 2
    with pytest.raises(QuotaExceeded):
        quota.ensure_can_create(KIND_SUBJECT, "legacy")


def test_delete_and_release_frees_a_slot(quota, fake_db):
    _, first = _create_subject(quota, fake_db, "u1", "A")
    _create_subject(quota, fake_db, "u1", "B")

    assert quota.delete_and_release(KIND_SUBJECT, "u1", first) is True
    assert quota.current_count(KIND_SUBJECT, "u1") == 1
    assert quota.delete_and_release(KIND_SUBJECT, "u1", first) is False
    assert quota.current_count(KIND_SUBJECT, "u1") == 1


def test_note_ceiling_is_per_subject(quota, fake_db):
    ref = fake_db.collection("notes").document()
    quota.create_within_quota(KIND_NOTE, "subj-1", ref, {"subject_id": "subj-1"})

    assert quota.can_create(KIND_NOTE, "subj-1") is False
    assert quota.can_create(KIND_NOTE, "subj-2") is True


def test_unknown_kind_is_rejected(quota):
    with pytest.raises(ValueError):
        quota.can_create("chat", "u1")


def test_store_outage_surfaces_as_dependency_failure(quota, fake_db):
    fake_db.unavailable = True

    with pytest.raises(DependencyFailure):
        quota.can_create(KIND_SUBJECT, "u1")


def test_concurrent_creators_at_last_slot_cannot_both_succeed(quota, fake_db):
    _create_subject(quota, fake_db, "u1", "A")
    competing = []

    def _competing_create():
        competing.append(_create_subject(quota, fake_db, "u1", "B")[0])

    fake_db.before_commit.append(_competing_create)

    with pytest.raises(QuotaExceeded) as excinfo:
        _create_subject(quota, fake_db, "u1", "C")

    assert competing == [2]
    assert excinfo.value.current_count == 2
    assert sorted(s["name"] for s in fake_db.store("subjects").values()) == ["A", "B"]
    assert quota.current_count(KIND_SUBJECT, "u1") == 2


def test_concurrent_releases_do_not_lose_a_decrement(quota, fake_db):
    _, first = _create_subject(quota, fake_db, "u1", "A")
    _, second = _create_subject(quota, fake_db, "u1", "B")
    fake_db.before_commit.append(lambda: quota.delete_and_release(KIND_SUBJECT, "u1", second))

    assert quota.delete_and_release(KIND_SUBJECT, "u1", first) is True

    assert fake_db.store("subjects") == {}
    assert quota.current_count(KIND_SUBJECT, "u1") == 0
