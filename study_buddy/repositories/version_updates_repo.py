"""Firestore accessors for the version_updates changelog."""

COLLECTION = 'version_updates'


def doc_ref(db, version):
    return db.collection(COLLECTION).document(str(version))


def set_doc(db, version, data):
    return doc_ref(db, version).set(data)


def list_recent(db, limit, firestore_module):
    query = db.collection(COLLECTION).order_by('release_date', direction=firestore_module.Query.DESCENDING)
    if isinstance(limit, int) and limit > 0:
        query = query.limit(limit)
    return list(query.stream())
