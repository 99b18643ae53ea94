"""Firestore accessors for per-user, per-flashcard-set game stats."""

from .query_utils import apply_where

COLLECTION = 'game_stats'


def stats_id(uid, flashcard_set_id, game_type):
    return f"{uid}__{flashcard_set_id}__{game_type}"


def doc_ref(db, uid, flashcard_set_id, game_type):
    return db.collection(COLLECTION).document(stats_id(uid, flashcard_set_id, game_type))


def get_doc(db, uid, flashcard_set_id, game_type):
    return doc_ref(db, uid, flashcard_set_id, game_type).get()


def list_by_uid(db, uid):
    return list(apply_where(db.collection(COLLECTION), 'uid', '==', uid).stream())
