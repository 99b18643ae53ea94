"""Firestore accessors for subjects collection."""

from .query_utils import apply_where, count_query

COLLECTION = 'subjects'


def doc_ref(db, subject_id):
    return db.collection(COLLECTION).document(subject_id)


def new_doc_ref(db):
    return db.collection(COLLECTION).document()


def get_doc(db, subject_id):
    return doc_ref(db, subject_id).get()


def update_doc(db, subject_id, updates):
    return doc_ref(db, subject_id).update(updates)


def list_by_uid(db, uid):
    return list(apply_where(db.collection(COLLECTION), 'uid', '==', uid).stream())


def count_by_uid(db, uid):
    return count_query(apply_where(db.collection(COLLECTION), 'uid', '==', uid))
