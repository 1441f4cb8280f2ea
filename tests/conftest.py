"""Common utilities for tests."""

from __future__ import annotations

import unittest.mock
from typing import Any, Optional

from mockfirestore import CollectionReference, MockFirestore, Query


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support FieldFilter."""

    def collection_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:  # noqa: E501
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(CollectionReference, "_where"):
        CollectionReference._where = CollectionReference.where
        CollectionReference.where = collection_where

    def query_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(Query, "_where"):
        Query._where = Query.where
        Query.where = query_where


class MockBatch:
    """Queues writes and applies them, in order, on commit."""

    def __init__(self, db: Any) -> None:
        self.db = db
        self.writes: list[tuple[str, Any, Any]] = []
        self.commit = unittest.mock.MagicMock(side_effect=self._real_commit)

    def update(self, ref: Any, data: Any) -> None:
        self.writes.append(("update", ref, data))

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.writes.append(("set", ref, data))

    def delete(self, ref: Any) -> None:
        self.writes.append(("delete", ref, None))

    def _real_commit(self) -> None:
        for op, ref, data in self.writes:
            if op == "delete":
                ref.delete()
            elif op == "set":
                ref.set(data)
            else:
                ref.update(data)


def make_db() -> MockFirestore:
    """An in-memory Firestore whose batches commit their writes."""
    patch_mockfirestore()
    db = MockFirestore()
    db.batches = []

    def new_batch() -> MockBatch:
        batch = MockBatch(db)
        db.batches.append(batch)
        return batch

    db.batch = new_batch
    return db


def seed(db: MockFirestore, collection: str, doc_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Write a document and return it as a store record."""
    db.collection(collection).document(doc_id).set(data)
    return {**data, "id": doc_id}


def docs(db: MockFirestore, collection: str) -> dict[str, dict[str, Any]]:
    """Every document in a collection, keyed by id."""
    return {doc.id: doc.to_dict() for doc in db.collection(collection).stream()}
