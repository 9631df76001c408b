from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

_OPS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
}


@dataclass
class FakeDocumentSnapshot:
    id: str
    _data: Optional[Dict[str, Any]]

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        if self._data is None:
            return None
        # Shallow copy so callers cannot mutate stored documents.
        return dict(self._data)


class FakeDocumentRef:
    def __init__(self, collection: "FakeCollectionRef", doc_id: str):
        self._collection = collection
        self.id = doc_id

    @property
    def path(self) -> str:
        return f"{self._collection.path}/{self.id}"

    def collection(self, name: str) -> "FakeCollectionRef":
        # Subcollections are keyed by their full path, e.g. users/u1/transactions
        return FakeCollectionRef(self._collection._db, f"{self.path}/{name}")

    def get(self) -> FakeDocumentSnapshot:
        return FakeDocumentSnapshot(id=self.id, _data=self._collection._docs.get(self.id))

    def set(self, data: Dict[str, Any]) -> None:
        self._collection._docs[self.id] = dict(data)


class FakeQuery:
    """Chainable subset of the Firestore query API used by the report data source."""

    def __init__(self, collection: "FakeCollectionRef"):
        self._collection = collection
        self._filters: List[tuple] = []
        self._order: Optional[tuple] = None
        self._limit: Optional[int] = None

    def where(self, field: str, op: str, value: Any) -> "FakeQuery":
        if op not in _OPS:
            raise NotImplementedError(f"operator {op!r} not supported by the fake")
        self._filters.append((field, op, value))
        return self

    def order_by(self, field: str, direction: str = "ASCENDING") -> "FakeQuery":
        self._order = (field, direction)
        return self

    def limit(self, n: int) -> "FakeQuery":
        self._limit = n
        return self

    def stream(self) -> Iterable[FakeDocumentSnapshot]:
        self._collection._db.queries.append((self._collection.path, tuple(self._filters), self._order))
        docs = list(self._collection._docs.items())
        for field, op, value in self._filters:
            # Like Firestore, documents without the field never match a filter on it.
            docs = [(i, d) for i, d in docs if field in d and _OPS[op](d[field], value)]
        if self._order:
            field, direction = self._order
            docs = sorted(
                [(i, d) for i, d in docs if field in d],
                key=lambda item: item[1][field],
                reverse=direction == "DESCENDING",
            )
        if self._limit is not None:
            docs = docs[: self._limit]
        for doc_id, data in docs:
            yield FakeDocumentSnapshot(id=doc_id, _data=dict(data))


class FakeCollectionRef:
    def __init__(self, db: "FakeFirestore", path: str):
        self._db = db
        self.path = path
        self._docs: Dict[str, Dict[str, Any]] = db._collections.setdefault(path, {})

    def document(self, doc_id: str) -> FakeDocumentRef:
        return FakeDocumentRef(self, doc_id)

    def where(self, field: str, op: str, value: Any) -> FakeQuery:
        return FakeQuery(self).where(field, op, value)

    def order_by(self, field: str, direction: str = "ASCENDING") -> FakeQuery:
        return FakeQuery(self).order_by(field, direction)

    def limit(self, n: int) -> FakeQuery:
        return FakeQuery(self).limit(n)

    def stream(self) -> Iterable[FakeDocumentSnapshot]:
        return FakeQuery(self).stream()


class FakeFirestore:
    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        # (collection path, filters, order) of every executed query
        self.queries: List[tuple] = []

    def collection(self, name: str) -> FakeCollectionRef:
        return FakeCollectionRef(self, name)
