"""
In-memory stand-in for the Firestore client.

Covers the subset of the google-cloud-firestore API used by
atms.firestore_dao: collections, documents, FieldFilter queries with
ordering and limits, ArrayUnion/ArrayRemove transforms and write batches.
"""
import copy
import itertools

from google.api_core.exceptions import NotFound
from google.cloud.firestore_v1 import ArrayRemove, ArrayUnion


_ids = itertools.count(1)


def _apply_transforms(current, data):
    result = dict(current)
    for key, value in data.items():
        if isinstance(value, ArrayUnion):
            existing = list(result.get(key) or [])
            for v in value.values:
                if v not in existing:
                    existing.append(v)
            result[key] = existing
        elif isinstance(value, ArrayRemove):
            result[key] = [v for v in (result.get(key) or []) if v not in value.values]
        else:
            result[key] = copy.deepcopy(value)
    return result


def _matches(doc, field, op, value):
    actual = doc.get(field)
    if op == '==':
        return actual == value
    if op == '!=':
        return actual != value
    if op == 'in':
        return actual in value
    if op == 'array_contains':
        return isinstance(actual, list) and value in actual
    if op == 'array_contains_any':
        return isinstance(actual, list) and any(v in actual for v in value)
    if actual is None:
        return False
    if op == '<':
        return actual < value
    if op == '<=':
        return actual <= value
    if op == '>':
        return actual > value
    if op == '>=':
        return actual >= value
    raise ValueError(f'Unsupported operator {op}')


class FakeSnapshot:

    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocument:

    def __init__(self, store, collection, doc_id):
        self._store = store
        self._collection = collection
        self.id = doc_id

    @property
    def _docs(self):
        return self._store.setdefault(self._collection, {})

    def get(self):
        return FakeSnapshot(self, self._docs.get(self.id))

    def set(self, data, merge=False):
        current = self._docs.get(self.id, {}) if merge else {}
        self._docs[self.id] = _apply_transforms(current, data)

    def update(self, data):
        if self.id not in self._docs:
            raise NotFound(f'No document to update: {self._collection}/{self.id}')
        self._docs[self.id] = _apply_transforms(self._docs[self.id], data)

    def delete(self):
        self._docs.pop(self.id, None)


class FakeQuery:

    def __init__(self, store, collection, filters=None, orders=None, limit=None):
        self._store = store
        self._collection = collection
        self._filters = filters or []
        self._orders = orders or []
        self._limit = limit

    def _copy(self, **changes):
        kwargs = {'filters': list(self._filters), 'orders': list(self._orders), 'limit': self._limit}
        kwargs.update(changes)
        return FakeQuery(self._store, self._collection, **kwargs)

    def where(self, filter=None):
        return self._copy(filters=self._filters + [(filter.field_path, filter.op_string, filter.value)])

    def order_by(self, field, direction='ASCENDING'):
        return self._copy(orders=self._orders + [(field, direction)])

    def limit(self, count):
        return self._copy(limit=count)

    def stream(self):
        docs = self._store.get(self._collection, {})
        rows = [(doc_id, data) for doc_id, data in docs.items()
                if all(_matches(data, f, op, v) for f, op, v in self._filters)]
        for field, direction in reversed(self._orders):
            # Missing values sort first, like Firestore nulls
            rows.sort(key=lambda r: (r[1].get(field) is not None, r[1].get(field)),
                      reverse=direction == 'DESCENDING')
        if self._limit is not None:
            rows = rows[:self._limit]
        return iter([FakeSnapshot(FakeDocument(self._store, self._collection, doc_id), data)
                     for doc_id, data in rows])

    def get(self):
        return list(self.stream())


class FakeCollection(FakeQuery):

    def __init__(self, store, name):
        super().__init__(store, name)
        self.id = name

    def document(self, doc_id=None):
        return FakeDocument(self._store, self._collection, doc_id or f'doc{next(_ids)}')

    def add(self, data):
        ref = self.document()
        ref.set(data)
        return None, ref


class FakeBatch:

    def __init__(self):
        self._ops = []

    def set(self, ref, data, merge=False):
        self._ops.append(lambda: ref.set(data, merge=merge))

    def update(self, ref, data):
        self._ops.append(lambda: ref.update(data))

    def delete(self, ref):
        self._ops.append(ref.delete)

    def commit(self):
        for op in self._ops:
            op()
        self._ops = []


class FakeFirestore:

    def __init__(self):
        self.store = {}

    def collection(self, name):
        return FakeCollection(self.store, name)

    def batch(self):
        return FakeBatch()

    def docs(self, name):
        """All documents of a collection as {id: data}, for assertions."""
        return copy.deepcopy(self.store.get(name, {}))
