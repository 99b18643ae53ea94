"""Firestore accessors for per-owner quota counters."""

COLLECTION = 'quota_counters'


def counter_id(kind, owner_id):
    return f"{kind}__{owner_id}"


def counter_doc_ref(db, kind, owner_id):
    return db.collection(COLLECTION).document(counter_id(kind, owner_id))


def delete_counter(db, kind, owner_id):
    return counter_doc_ref(db, kind, owner_id).delete()
