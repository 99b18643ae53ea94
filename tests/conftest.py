import copy
import itertools
import time
from types import SimpleNamespace
from urllib.parse import quote

import pytest
from google.api_core.exceptions import NotFound

from study_buddy import create_app
from study_buddy.config import AppConfig, LimitsConfig
from study_buddy.runtime import AppContext
from study_buddy.services.blob_service import BlobStore

_ids = itertools.count(1)


class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocRef:
    def __init__(self, db, collection_name, doc_id):
        self._db = db
        self.collection_name = collection_name
        self.id = doc_id

    @property
    def _store(self):
        return self._db.store(self.collection_name)

    @property
    def key(self):
        return (self.collection_name, self.id)

    def get(self, transaction=None):
        self._db.touch()
        if transaction is not None:
            transaction.record_read(self)
        return FakeSnapshot(self, copy.deepcopy(self._store.get(self.id)))

    def set(self, data, merge=False):
        self._db.touch()
        if merge and self.id in self._store:
            merged = dict(self._store[self.id])
            merged.update(copy.deepcopy(data))
            self._store[self.id] = merged
        else:
            self._store[self.id] = copy.deepcopy(data)
        self._db.bump(self.key)

    def update(self, updates):
        self._db.touch()
        if self.id not in self._store:
            raise KeyError(f'No document to update: {self.collection_name}/{self.id}')
        self._store[self.id].update(copy.deepcopy(updates))
        self._db.bump(self.key)

    def delete(self):
        self._db.touch()
        self._store.pop(self.id, None)
        self._db.bump(self.key)


_OPS = {
    '==': lambda left, right: left == right,
    '>=': lambda left, right: left is not None and left >= right,
    '<=': lambda left, right: left is not None and left <= right,
    'in': lambda left, right: left in right,
}


class FakeQuery:
    def __init__(self, db, collection_name, filters=(), order=None, limit_count=None):
        self._db = db
        self.collection_name = collection_name
        self._filters = tuple(filters)
        self._order = order
        self._limit = limit_count

    def where(self, *args, **kwargs):
        if 'filter' in kwargs:
            flt = kwargs['filter']
            condition = (flt.field_path, flt.op_string, flt.value)
        else:
            condition = tuple(args)
        return FakeQuery(self._db, self.collection_name, self._filters + (condition,), self._order, self._limit)

    def order_by(self, field_path, direction='ASCENDING'):
        return FakeQuery(self._db, self.collection_name, self._filters, (field_path, direction), self._limit)

    def limit(self, count):
        return FakeQuery(self._db, self.collection_name, self._filters, self._order, count)

    def _matches(self):
        self._db.touch()
        items = []
        for doc_id, data in self._db.store(self.collection_name).items():
            if all(_OPS[op](data.get(field), value) for field, op, value in self._filters):
                items.append((doc_id, data))
        if self._order:
            field_path, direction = self._order
            items.sort(key=lambda item: item[1].get(field_path), reverse=direction == 'DESCENDING')
        if self._limit:
            items = items[:self._limit]
        return items

    def stream(self):
        for doc_id, data in self._matches():
            yield FakeSnapshot(FakeDocRef(self._db, self.collection_name, doc_id), copy.deepcopy(data))

    def count(self):
        total = len(self._matches())
        return SimpleNamespace(get=lambda: [[SimpleNamespace(value=total)]])


class FakeCollection(FakeQuery):
    def document(self, doc_id=None):
        return FakeDocRef(self._db, self.collection_name, doc_id or f'doc{next(_ids)}')


class TransactionConflict(Exception):
    pass


class FakeTransaction:
    """Buffers writes and commits them only if nothing it read has changed."""

    def __init__(self, db):
        self._db = db
        self.attempts = 0
        self._reads = {}
        self._writes = []

    def begin(self):
        self.attempts += 1
        self._reads = {}
        self._writes = []

    def record_read(self, ref):
        self._reads.setdefault(ref.key, self._db.version(ref.key))

    def set(self, ref, data, merge=False):
        self._writes.append(lambda: ref.set(data, merge=merge))

    def update(self, ref, updates):
        self._writes.append(lambda: ref.update(updates))

    def delete(self, ref):
        self._writes.append(ref.delete)

    def commit(self):
        self._db.run_before_commit()
        for key, version in self._reads.items():
            if self._db.version(key) != version:
                raise TransactionConflict(f'{key[0]}/{key[1]} changed during the transaction')
        for write in self._writes:
            write()


class FakeFirestoreDB:
    """In-memory stand-in for a Firestore client.

    Every write bumps a per-document version. ``before_commit`` callbacks run
    once, just before the next transaction commits, to simulate a competing
    writer.
    """

    def __init__(self):
        self.collections = {}
        self.versions = {}
        self.before_commit = []
        self.unavailable = False

    def touch(self):
        if self.unavailable:
            raise RuntimeError('document store unavailable')

    def store(self, name):
        return self.collections.setdefault(name, {})

    def version(self, key):
        return self.versions.get(key, 0)

    def bump(self, key):
        self.versions[key] = self.version(key) + 1

    def run_before_commit(self):
        callbacks, self.before_commit = self.before_commit, []
        for callback in callbacks:
            callback()

    def collection(self, name):
        return FakeCollection(self, name)

    def transaction(self):
        self.touch()
        return FakeTransaction(self)


class FakeFirestoreModule:
    MAX_ATTEMPTS = 5

    class Query:
        ASCENDING = 'ASCENDING'
        DESCENDING = 'DESCENDING'

    @staticmethod
    def transactional(fn):
        def _run(transaction):
            for _ in range(FakeFirestoreModule.MAX_ATTEMPTS):
                transaction.begin()
                result = fn(transaction)
                try:
                    transaction.commit()
                except TransactionConflict:
                    continue
                return result
            raise TransactionConflict('transaction retries exhausted')
        return _run


class FakeBlob:
    def __init__(self, bucket, name):
        self._bucket = bucket
        self.name = name

    @property
    def public_url(self):
        return f'https://storage.googleapis.com/{self._bucket.name}/{quote(self.name)}'

    def upload_from_string(self, data, content_type=None):
        if self._bucket.fail_uploads:
            raise RuntimeError('object store unavailable')
        self._bucket.objects[self.name] = {'data': bytes(data), 'content_type': content_type}

    def delete(self):
        self._bucket.delete_calls.append(self.name)
        if self._bucket.fail_deletes:
            raise RuntimeError('permission denied')
        if self.name not in self._bucket.objects:
            raise NotFound(f'No such object: {self._bucket.name}/{self.name}')
        del self._bucket.objects[self.name]


class FakeBucket:
    def __init__(self, name='study-buddy-test'):
        self.name = name
        self.objects = {}
        self.delete_calls = []
        self.blob_calls = 0
        self.fail_uploads = False
        self.fail_deletes = False

    def blob(self, name):
        self.blob_calls += 1
        return FakeBlob(self, name)


class FakeAuth:
    """Accepts tokens of the form ``token-<uid>``."""

    def verify_id_token(self, token):
        if not token.startswith('token-'):
            raise ValueError('invalid token')
        uid = token[len('token-'):]
        return {'uid': uid, 'email': f'{uid}@example.com', 'email_verified': True}


@pytest.fixture()
def auth_headers():
    def _headers(uid):
        return {'Authorization': f'Bearer token-{uid}'}
    return _headers


@pytest.fixture()
def fake_db():
    return FakeFirestoreDB()


@pytest.fixture()
def firestore_module():
    return FakeFirestoreModule


@pytest.fixture()
def fake_bucket():
    return FakeBucket()


@pytest.fixture()
def limits():
    return LimitsConfig()


@pytest.fixture()
def app_ctx(fake_db, fake_bucket, limits, firestore_module):
    config = AppConfig(
        runtime_env='test',
        storage_bucket=fake_bucket.name,
        rate_limit_firestore_enabled=False,
        limits=limits,
    )
    return AppContext(
        config,
        db=fake_db,
        blob_store=BlobStore(fake_bucket, clock=time.time),
        auth_module=FakeAuth(),
        firestore_module=firestore_module,
    )


@pytest.fixture()
def client(app_ctx):
    app = create_app(app_ctx.config, app_ctx=app_ctx)
    app.config['TESTING'] = True
    with app.test_client() as test_client:
        yield test_client
