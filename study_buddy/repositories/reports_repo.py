"""Firestore accessors for bug reports and feature requests."""

from .query_utils import apply_where

COLLECTION = 'reports'


def new_doc_ref(db):
    return db.collection(COLLECTION).document()


def list_by_uid(db, uid):
    return list(apply_where(db.collection(COLLECTION), 'uid', '==', uid).stream())
