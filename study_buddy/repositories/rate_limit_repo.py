"""Firestore accessors for fixed-window rate limit counters."""

import hashlib


def window_counter_id(key, window_seconds, window_start):
    raw = f"{key}|{window_seconds}|{int(window_start)}".encode('utf-8')
    return hashlib.sha256(raw).hexdigest()


def counter_doc_ref(db, collection_name, key, window_seconds, window_start):
    return db.collection(collection_name).document(window_counter_id(key, window_seconds, window_start))
