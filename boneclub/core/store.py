"""Entity store: CRUD and filter access to Firestore collections."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, TypeVar

from firebase_admin import firestore
from google.api_core import exceptions as core_exceptions
from google.api_core import retry as core_retry

from boneclub.errors import NotFoundError, RateLimitError, RemoteError

from .constants import (
    FIRESTORE_BATCH_LIMIT,
    FIRESTORE_IN_LIMIT,
    STORE_RETRY_INITIAL_DELAY,
    STORE_RETRY_MAX_DELAY,
    STORE_RETRY_MULTIPLIER,
    STORE_RETRY_TIMEOUT,
)
from .settings import get_setting

if TYPE_CHECKING:
    from google.cloud.firestore_v1.batch import WriteBatch
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

T = TypeVar("T")

THROTTLED = (core_exceptions.TooManyRequests, core_exceptions.ResourceExhausted)


def build_retry(max_delay: float = STORE_RETRY_MAX_DELAY) -> core_retry.Retry:
    """Exponential backoff for throttled calls, each delay capped at `max_delay`."""
    return core_retry.Retry(
        predicate=core_retry.if_exception_type(*THROTTLED),
        initial=STORE_RETRY_INITIAL_DELAY,
        multiplier=STORE_RETRY_MULTIPLIER,
        maximum=max_delay,
        timeout=STORE_RETRY_TIMEOUT,
    )


class EntityStore:
    """Thin access layer over Firestore with the error taxonomy applied.

    Every record is returned as a plain dict carrying its document ``id``.
    """

    def __init__(
        self, db: Client | None = None, retry: core_retry.Retry | None = None
    ) -> None:
        """Wrap a Firestore client, defaulting to the app's client."""
        self.db = db if db is not None else firestore.client()
        self.retry = (
            retry
            if retry is not None
            else build_retry(get_setting("STORE_RETRY_MAX_DELAY", STORE_RETRY_MAX_DELAY))
        )

    def _call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a backend call with throttling retries and mapped errors."""
        try:
            return self.retry(fn)(*args, **kwargs)
        except core_exceptions.RetryError as e:
            raise RateLimitError() from e
        except THROTTLED as e:
            raise RateLimitError() from e
        except core_exceptions.NotFound as e:
            raise NotFoundError(str(e.message)) from e
        except core_exceptions.GoogleAPICallError as e:
            logging.error(f"Store call failed: {e}")
            raise RemoteError(f"The backend request failed: {e.message}") from e

    def ref(self, collection: str, doc_id: str | None = None) -> DocumentReference:
        """Return a document reference; a new id is allocated when none is given."""
        if doc_id is None:
            return self.db.collection(collection).document()
        return self.db.collection(collection).document(doc_id)

    @staticmethod
    def _to_record(snapshot: Any) -> dict[str, Any]:
        data = snapshot.to_dict() or {}
        data["id"] = snapshot.id
        return data

    def find(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Fetch a record, or None when it does not exist."""
        if not doc_id:
            return None
        snapshot = self._call(self.ref(collection, doc_id).get)
        if not snapshot.exists:
            return None
        return self._to_record(snapshot)

    def get(self, collection: str, doc_id: str, label: str = "Record") -> dict[str, Any]:
        """Fetch a record or raise NotFoundError."""
        record = self.find(collection, doc_id)
        if record is None:
            raise NotFoundError(f"{label} not found.")
        return record

    def filter(
        self,
        collection: str,
        where: Iterable[tuple[str, str, Any]] = (),
        order_by: str | None = None,
        limit: int | None = None,
        **equals: Any,
    ) -> list[dict[str, Any]]:
        """Return records matching every equality and `where` clause."""
        query: Any = self.db.collection(collection)
        clauses = [(field, "==", value) for field, value in equals.items()]
        clauses.extend(where)
        for field, op, value in clauses:
            query = query.where(filter=firestore.FieldFilter(field, op, value))
        if order_by:
            query = query.order_by(order_by)
        if limit:
            query = query.limit(limit)
        snapshots = self._call(lambda: list(query.stream()))
        return [self._to_record(doc) for doc in snapshots]

    def filter_in(
        self, collection: str, field: str, values: Iterable[Any], **equals: Any
    ) -> list[dict[str, Any]]:
        """Return records whose `field` is one of `values`, chunked for 'in' limits."""
        values = list(values)
        results: list[dict[str, Any]] = []
        for start in range(0, len(values), FIRESTORE_IN_LIMIT):
            chunk = values[start : start + FIRESTORE_IN_LIMIT]
            results.extend(
                self.filter(collection, where=[(field, "in", chunk)], **equals)
            )
        return results

    def create(
        self, collection: str, fields: dict[str, Any], batch: WriteBatch | None = None
    ) -> dict[str, Any]:
        """Create a record; the store assigns the id and `created_date`."""
        ref = self.ref(collection)
        data = {**fields, "created_date": firestore.SERVER_TIMESTAMP}
        if batch is not None:
            batch.set(ref, data)
        else:
            self._call(ref.set, data)
        return {**data, "id": ref.id}

    def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        batch: WriteBatch | None = None,
    ) -> None:
        """Apply a partial update, queued on `batch` when one is given."""
        ref = self.ref(collection, doc_id)
        if batch is not None:
            batch.update(ref, fields)
            return
        snapshot = self._call(ref.get)
        if not snapshot.exists:
            raise NotFoundError("Record not found.")
        self._call(ref.update, fields)

    def delete(
        self, collection: str, doc_id: str, batch: WriteBatch | None = None
    ) -> None:
        """Delete a record, queued on `batch` when one is given."""
        ref = self.ref(collection, doc_id)
        if batch is not None:
            batch.delete(ref)
            return
        self._call(ref.delete)

    def batch(self) -> WriteBatch:
        """Start an atomic write batch."""
        return self.db.batch()

    def commit(self, batch: WriteBatch) -> None:
        """Commit a batch built with this store."""
        self._call(batch.commit)

    def create_many(
        self, collection: str, records: Iterable[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Create records in batches that respect the Firestore write limit."""
        records = list(records)
        created: list[dict[str, Any]] = []
        for start in range(0, len(records), FIRESTORE_BATCH_LIMIT):
            batch = self.batch()
            for fields in records[start : start + FIRESTORE_BATCH_LIMIT]:
                created.append(self.create(collection, fields, batch=batch))
            self.commit(batch)
        return created

    def delete_many(self, collection: str, doc_ids: Iterable[str]) -> int:
        """Delete records in batches that respect the Firestore write limit."""
        ids = list(doc_ids)
        for start in range(0, len(ids), FIRESTORE_BATCH_LIMIT):
            batch = self.batch()
            for doc_id in ids[start : start + FIRESTORE_BATCH_LIMIT]:
                batch.delete(self.ref(collection, doc_id))
            self.commit(batch)
        return len(ids)

    def update_many(
        self, collection: str, doc_ids: Iterable[str], fields: dict[str, Any]
    ) -> int:
        """Apply the same partial update to many records in batches."""
        ids = list(doc_ids)
        for start in range(0, len(ids), FIRESTORE_BATCH_LIMIT):
            batch = self.batch()
            for doc_id in ids[start : start + FIRESTORE_BATCH_LIMIT]:
                batch.update(self.ref(collection, doc_id), fields)
            self.commit(batch)
        return len(ids)
