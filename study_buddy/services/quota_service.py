"""Per-owner quota enforcement for subjects, notes and flashcard sets.

Each owner has a counter document in ``quota_counters``. Creation reads the
counter, checks the ceiling, writes the new record and bumps the counter in a
single Firestore transaction, so two concurrent creators cannot both pass at
``ceiling - 1``. A missing counter is seeded from a count query over the
owned collection.
"""

import time

from study_buddy.errors import DependencyFailure, QuotaExceeded
from study_buddy.repositories import flashcard_sets_repo, notes_repo, quota_counters_repo, subjects_repo

KIND_SUBJECT = 'subject'
KIND_NOTE = 'note'
KIND_FLASHCARD_SET = 'flashcard_set'
KINDS = (KIND_SUBJECT, KIND_NOTE, KIND_FLASHCARD_SET)


class QuotaEnforcer:
    def __init__(self, db, firestore_module, limits, *, time_module=time):
        self.db = db
        self.firestore_module = firestore_module
        self.limits = limits
        self.time_module = time_module

    def ceiling(self, kind):
        if kind == KIND_SUBJECT:
            return self.limits.max_subjects_per_user
        if kind == KIND_NOTE:
            return self.limits.max_notes_per_subject
        if kind == KIND_FLASHCARD_SET:
            return self.limits.max_flashcard_sets_per_subject
        raise ValueError(f'Unknown quota kind: {kind}')

    def _count_existing(self, kind, owner_id):
        if kind == KIND_SUBJECT:
            return subjects_repo.count_by_uid(self.db, owner_id)
        if kind == KIND_NOTE:
            return notes_repo.count_by_subject(self.db, owner_id)
        return flashcard_sets_repo.count_by_subject(self.db, owner_id)

    def _count_from_snapshot(self, snapshot, kind, owner_id):
        if snapshot.exists:
            return int((snapshot.to_dict() or {}).get('count', 0) or 0)
        return self._count_existing(kind, owner_id)

    def current_count(self, kind, owner_id):
        self.ceiling(kind)
        try:
            snapshot = quota_counters_repo.counter_doc_ref(self.db, kind, owner_id).get()
            return self._count_from_snapshot(snapshot, kind, owner_id)
        except Exception as exc:
            raise DependencyFailure(f'Could not count {kind} resources for {owner_id}') from exc

    def can_create(self, kind, owner_id) -> bool:
        return self.current_count(kind, owner_id) < self.ceiling(kind)

    def ensure_can_create(self, kind, owner_id):
        limit = self.ceiling(kind)
        count = self.current_count(kind, owner_id)
        if count >= limit:
            raise QuotaExceeded(kind, limit, count)
        return count

    def create_within_quota(self, kind, owner_id, doc_ref, payload):
        """Insert ``payload`` at ``doc_ref`` if the owner is below its ceiling.

        Returns the owner's count after the insert. Raises ``QuotaExceeded``
        with nothing written when the ceiling is already reached.
        """
        limit = self.ceiling(kind)
        counter_ref = quota_counters_repo.counter_doc_ref(self.db, kind, owner_id)

        @self.firestore_module.transactional
        def _txn(txn):
            snapshot = counter_ref.get(transaction=txn)
            count = self._count_from_snapshot(snapshot, kind, owner_id)
            if count >= limit:
                raise QuotaExceeded(kind, limit, count)
            txn.set(doc_ref, payload)
            txn.set(counter_ref, {
                'kind': kind,
                'owner_id': owner_id,
                'count': count + 1,
                'updated_at': self.time_module.time(),
            }, merge=True)
            return count + 1

        try:
            return _txn(self.db.transaction())
        except QuotaExceeded:
            raise
        except Exception as exc:
            raise DependencyFailure(f'Could not create {kind} for {owner_id}') from exc

    def delete_and_release(self, kind, owner_id, doc_ref):
        """Delete the record at ``doc_ref`` and give its slot back to the owner."""
        self.ceiling(kind)
        counter_ref = quota_counters_repo.counter_doc_ref(self.db, kind, owner_id)

        @self.firestore_module.transactional
        def _txn(txn):
            record = doc_ref.get(transaction=txn)
            counter = counter_ref.get(transaction=txn)
            if not record.exists:
                return False
            txn.delete(doc_ref)
            if counter.exists:
                count = int((counter.to_dict() or {}).get('count', 0) or 0)
                txn.set(counter_ref, {
                    'count': max(0, count - 1),
                    'updated_at': self.time_module.time(),
                }, merge=True)
            return True

        try:
            return _txn(self.db.transaction())
        except Exception as exc:
            raise DependencyFailure(f'Could not delete {kind} for {owner_id}') from exc

    def drop_owner(self, kind, owner_id):
        """Remove the counter of an owner that no longer exists."""
        quota_counters_repo.delete_counter(self.db, kind, owner_id)
