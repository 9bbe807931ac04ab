"""
Mock Firestore for local development and tests.

Implements the subset of the firebase_admin Firestore client used by the
services (collection/document get, set, update, where, order_by, limit,
stream, batch). Documents live in memory and are flushed to a JSON file
when a path is configured.
"""

import copy
import json
import logging
import os
import threading
import uuid
from typing import Any, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

DESCENDING = "DESCENDING"
ASCENDING = "ASCENDING"

_OPERATORS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a is not None and a < b,
    "<=": lambda a, b: a is not None and a <= b,
    ">": lambda a, b: a is not None and a > b,
    ">=": lambda a, b: a is not None and a >= b,
    "in": lambda a, b: a in b,
    "array_contains": lambda a, b: isinstance(a, list) and b in a,
}


class MockDocumentSnapshot:
    """Read-only view of a document at the time of the read."""

    def __init__(self, reference: "MockDocumentReference", data: Optional[Dict]):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict]:
        return copy.deepcopy(self._data) if self._data is not None else None


class MockDocumentReference:
    def __init__(self, client: "MockFirestore", collection: str, doc_id: str):
        self._client = client
        self._collection = collection
        self.id = doc_id

    def get(self) -> MockDocumentSnapshot:
        with self._client._lock:
            data = self._client._data.get(self._collection, {}).get(self.id)
            return MockDocumentSnapshot(self, copy.deepcopy(data))

    def set(self, data: Dict, merge: bool = False) -> None:
        with self._client._lock:
            docs = self._client._data.setdefault(self._collection, {})
            if merge and self.id in docs:
                docs[self.id].update(copy.deepcopy(data))
            else:
                docs[self.id] = copy.deepcopy(data)
            self._client._persist()

    def update(self, data: Dict) -> None:
        with self._client._lock:
            docs = self._client._data.setdefault(self._collection, {})
            if self.id not in docs:
                raise KeyError(f"No document to update: {self._collection}/{self.id}")
            docs[self.id].update(copy.deepcopy(data))
            self._client._persist()

    def delete(self) -> None:
        with self._client._lock:
            self._client._data.get(self._collection, {}).pop(self.id, None)
            self._client._persist()


class MockQuery:
    def __init__(
        self,
        client: "MockFirestore",
        collection: str,
        filters: Optional[List[Tuple[str, str, Any]]] = None,
        order: Optional[Tuple[str, str]] = None,
        limit_count: Optional[int] = None,
    ):
        self._client = client
        self._collection = collection
        self._filters = filters or []
        self._order = order
        self._limit = limit_count

    def where(self, field_path: str, op_string: str, value: Any) -> "MockQuery":
        if op_string not in _OPERATORS:
            raise ValueError(f"Unsupported operator: {op_string}")
        return MockQuery(
            self._client, self._collection,
            self._filters + [(field_path, op_string, value)], self._order, self._limit,
        )

    def order_by(self, field_path: str, direction: str = ASCENDING) -> "MockQuery":
        return MockQuery(
            self._client, self._collection, self._filters, (field_path, direction), self._limit,
        )

    def limit(self, count: int) -> "MockQuery":
        return MockQuery(self._client, self._collection, self._filters, self._order, count)

    def stream(self) -> Iterator[MockDocumentSnapshot]:
        with self._client._lock:
            docs = copy.deepcopy(self._client._data.get(self._collection, {}))

        matches = [
            (doc_id, data) for doc_id, data in docs.items()
            if all(_OPERATORS[op](data.get(field), value) for field, op, value in self._filters)
        ]

        if self._order:
            field, direction = self._order
            present = [m for m in matches if m[1].get(field) is not None]
            missing = [m for m in matches if m[1].get(field) is None]
            present.sort(key=lambda m: m[1][field], reverse=str(direction).upper() == DESCENDING)
            matches = present + missing

        if self._limit is not None:
            matches = matches[: self._limit]

        for doc_id, data in matches:
            ref = MockDocumentReference(self._client, self._collection, doc_id)
            yield MockDocumentSnapshot(ref, data)

    def get(self) -> List[MockDocumentSnapshot]:
        return list(self.stream())


class MockCollectionReference(MockQuery):
    def __init__(self, client: "MockFirestore", name: str):
        super().__init__(client, name)
        self.id = name

    def document(self, doc_id: Optional[str] = None) -> MockDocumentReference:
        return MockDocumentReference(self._client, self._collection, doc_id or uuid.uuid4().hex)


class MockWriteBatch:
    """Collects writes and applies them together on commit()."""

    def __init__(self, client: "MockFirestore"):
        self._client = client
        self._writes: List[Tuple[str, MockDocumentReference, Optional[Dict]]] = []

    def set(self, reference: MockDocumentReference, data: Dict, merge: bool = False) -> None:
        self._writes.append(("merge" if merge else "set", reference, data))

    def update(self, reference: MockDocumentReference, data: Dict) -> None:
        self._writes.append(("update", reference, data))

    def commit(self) -> None:
        with self._client._lock:
            for kind, ref, data in self._writes:
                docs = self._client._data.setdefault(ref._collection, {})
                if kind == "set":
                    docs[ref.id] = copy.deepcopy(data)
                elif ref.id in docs:
                    docs[ref.id].update(copy.deepcopy(data))
                elif kind == "merge":
                    docs[ref.id] = copy.deepcopy(data)
                else:
                    raise KeyError(f"No document to update: {ref._collection}/{ref.id}")
            self._client._persist()
        self._writes = []


class MockFirestore:
    """In-memory Firestore stand-in with optional JSON file persistence."""

    def __init__(self, path: Optional[str] = None):
        self._path = path
        self._lock = threading.RLock()
        self._data: Dict[str, Dict[str, Dict]] = {}

        if path and os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    self._data = json.load(f)
                logger.info(f"[MOCK DB] Loaded {sum(len(d) for d in self._data.values())} documents from {path}")
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"[MOCK DB] Could not load {path}: {e}. Starting empty.")
                self._data = {}

    def collection(self, name: str) -> MockCollectionReference:
        return MockCollectionReference(self, name)

    def collections(self) -> List[MockCollectionReference]:
        with self._lock:
            return [MockCollectionReference(self, name) for name in self._data]

    def batch(self) -> MockWriteBatch:
        return MockWriteBatch(self)

    def _persist(self) -> None:
        if not self._path:
            return
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, default=str)


_mock_db: Optional[MockFirestore] = None


def get_mock_db(path: Optional[str] = None) -> MockFirestore:
    """Get or create the process-wide mock database."""
    global _mock_db
    if _mock_db is None:
        _mock_db = MockFirestore(path)
    return _mock_db
