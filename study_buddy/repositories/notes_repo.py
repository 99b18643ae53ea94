"""Firestore accessors for notes collection."""

from .query_utils import apply_where, count_query

COLLECTION = 'notes'


def doc_ref(db, note_id):
    return db.collection(COLLECTION).document(note_id)


def new_doc_ref(db):
    return db.collection(COLLECTION).document()


def get_doc(db, note_id):
    return doc_ref(db, note_id).get()


def update_doc(db, note_id, updates):
    return doc_ref(db, note_id).update(updates)


def list_by_subject(db, uid, subject_id):
    query = apply_where(apply_where(db.collection(COLLECTION), 'uid', '==', uid), 'subject_id', '==', subject_id)
    return list(query.stream())


def count_by_subject(db, subject_id):
    return count_query(apply_where(db.collection(COLLECTION), 'subject_id', '==', subject_id))
