"""Firestore accessors for flashcard_sets collection."""

from .query_utils import apply_where, count_query

COLLECTION = 'flashcard_sets'


def doc_ref(db, set_id):
    return db.collection(COLLECTION).document(set_id)


def new_doc_ref(db):
    return db.collection(COLLECTION).document()


def get_doc(db, set_id):
    return doc_ref(db, set_id).get()


def update_doc(db, set_id, updates):
    return doc_ref(db, set_id).update(updates)


def list_by_subject(db, uid, subject_id):
    query = apply_where(apply_where(db.collection(COLLECTION), 'uid', '==', uid), 'subject_id', '==', subject_id)
    return list(query.stream())


def count_by_subject(db, subject_id):
    return count_query(apply_where(db.collection(COLLECTION), 'subject_id', '==', subject_id))
