"""Document store primitives.

This module exposes the small set of document-database operations the roster
engine relies on: single-document get/set/update, array-union and
array-remove field mutations, counters, equality and bounded "in" queries,
and batched writes. Every method commits its own transaction, so each call is
atomic for one document only. ``WriteBatch`` is the single exception and
commits all of its writes together.
"""

import copy
import logging
import secrets
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import pytz
from sqlalchemy.orm import Session

from rosterlink.config import STORE_IN_QUERY_LIMIT
from rosterlink.models.document import DocumentModel

logger = logging.getLogger(__name__)

Mutator = Callable[[Dict[str, Any]], bool]


class DocumentNotFoundError(Exception):
    """Exception raised when a document does not exist."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document '{collection}/{doc_id}' not found")


def utc_now() -> str:
    return datetime.now(pytz.utc).isoformat()


def chunked(values: Iterable[str], size: int = STORE_IN_QUERY_LIMIT) -> Iterator[List[str]]:
    """Split values into lists small enough for one "in" query."""
    items = list(values)
    for start in range(0, len(items), size):
        yield items[start:start + size]


def _unique(values: Iterable[Any]) -> List[Any]:
    seen = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def _to_dict(model: DocumentModel) -> Dict[str, Any]:
    doc = copy.deepcopy(model.data or {})
    doc["id"] = model.doc_id
    return doc


class WriteBatch:
    """Collects sets and deletes and applies them in one transaction."""

    def __init__(self, store: "DocumentStore"):
        self._store = store
        self._sets: List[Tuple[str, str, Dict[str, Any]]] = []
        self._deletes: List[Tuple[str, str]] = []

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> "WriteBatch":
        self._sets.append((collection, doc_id, data))
        return self

    def delete(self, collection: str, doc_id: str) -> "WriteBatch":
        self._deletes.append((collection, doc_id))
        return self

    def __len__(self) -> int:
        return len(self._sets) + len(self._deletes)

    def commit(self) -> None:
        self._store._commit_batch(self._sets, self._deletes)


class DocumentStore:
    """JSON document collections persisted through SQLAlchemy."""

    def __init__(self, db: Session, in_query_limit: int = STORE_IN_QUERY_LIMIT):
        """Initialize DocumentStore.

        Args:
            db: SQLAlchemy Session.
            in_query_limit: Maximum number of values in one "in" query.
        """
        self.db = db
        self.in_query_limit = in_query_limit

    @staticmethod
    def new_id() -> str:
        return secrets.token_hex(10)

    def _query(self, collection: str):
        return self.db.query(DocumentModel).filter(DocumentModel.collection == collection)

    def _get_model(
        self, collection: str, doc_id: str, for_update: bool = False
    ) -> Optional[DocumentModel]:
        query = self._query(collection).filter(DocumentModel.doc_id == doc_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def _put(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        payload = copy.deepcopy(data)
        payload.pop("id", None)
        now = utc_now()
        model = self._get_model(collection, doc_id)
        if model is None:
            self.db.add(
                DocumentModel(
                    collection=collection,
                    doc_id=doc_id,
                    data=payload,
                    create_at=now,
                    update_at=now,
                )
            )
        else:
            model.data = payload
            model.update_at = now

    # --- Reads ---

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Get one document.

        Args:
            collection: Collection name.
            doc_id: Document ID.

        Returns:
            The document data with its ``id`` key, or None if missing.
        """
        model = self._get_model(collection, doc_id)
        if model is None:
            return None
        return _to_dict(model)

    def get_many(self, collection: str, doc_ids: Iterable[str]) -> List[Dict[str, Any]]:
        """Get documents by id, sharding into bounded "in" queries.

        Missing ids are skipped. Results keep the order of ``doc_ids``.
        """
        ids = _unique(doc_ids)
        found: Dict[str, Dict[str, Any]] = {}
        for batch in chunked(ids, self.in_query_limit):
            models = self._query(collection).filter(DocumentModel.doc_id.in_(batch)).all()
            for model in models:
                found[model.doc_id] = _to_dict(model)
        return [found[doc_id] for doc_id in ids if doc_id in found]

    def where(
        self,
        collection: str,
        field: str,
        value: str,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        """Query documents whose string field equals value."""
        models = (
            self._query(collection)
            .filter(DocumentModel.data[field].as_string() == value)
            .all()
        )
        docs = [_to_dict(m) for m in models]
        if order_by:
            docs.sort(key=lambda d: d.get(order_by) or "", reverse=descending)
        return docs

    def where_in(self, collection: str, field: str, values: Sequence[str]) -> List[Dict[str, Any]]:
        """Query documents whose string field is one of values.

        Raises:
            ValueError: If more values are given than one query accepts.
        """
        if len(values) > self.in_query_limit:
            raise ValueError(
                f"'in' queries accept at most {self.in_query_limit} values, got {len(values)}"
            )
        if not values:
            return []
        models = (
            self._query(collection)
            .filter(DocumentModel.data[field].as_string().in_(list(values)))
            .all()
        )
        return [_to_dict(m) for m in models]

    # --- Writes ---

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Create a document with a generated id and return that id."""
        doc_id = self.new_id()
        self.set(collection, doc_id, data)
        return doc_id

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Create or overwrite one document."""
        try:
            self._put(collection, doc_id, data)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def delete(self, collection: str, doc_id: str) -> None:
        """Delete one document. Deleting a missing document is a no-op."""
        try:
            query = self._query(collection).filter(DocumentModel.doc_id == doc_id)
            query.delete(synchronize_session="fetch")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def update_with(self, collection: str, doc_id: str, mutator: Mutator) -> Dict[str, Any]:
        """Atomically read, modify and write one document.

        The mutator receives a private copy of the document data and returns
        True if it changed anything. Nothing is written when it returns False.
        Exceptions raised by the mutator roll the transaction back and
        propagate.

        Args:
            collection: Collection name.
            doc_id: Document ID.
            mutator: Callable editing the document data in place.

        Returns:
            The document as it is after the call.

        Raises:
            DocumentNotFoundError: If the document does not exist.
        """
        try:
            model = self._get_model(collection, doc_id, for_update=True)
            if model is None:
                raise DocumentNotFoundError(collection, doc_id)
            data = copy.deepcopy(model.data or {})
            changed = mutator(data)
            if changed:
                data.pop("id", None)
                model.data = data
                model.update_at = utc_now()
                self.db.commit()
            else:
                # release the row lock
                self.db.rollback()
        except Exception:
            self.db.rollback()
            raise
        result = copy.deepcopy(data)
        result["id"] = doc_id
        return result

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Merge fields into an existing document."""

        def mutate(data: Dict[str, Any]) -> bool:
            data.update(copy.deepcopy(fields))
            return True

        return self.update_with(collection, doc_id, mutate)

    def array_union(
        self, collection: str, doc_id: str, field: str, values: Iterable[Any]
    ) -> Dict[str, Any]:
        """Add values to an array field, skipping ones already present."""
        additions = _unique(values)

        def mutate(data: Dict[str, Any]) -> bool:
            current = list(data.get(field) or [])
            missing = [v for v in additions if v not in current]
            if not missing:
                return False
            data[field] = current + missing
            return True

        return self.update_with(collection, doc_id, mutate)

    def array_remove(
        self, collection: str, doc_id: str, field: str, values: Iterable[Any]
    ) -> Dict[str, Any]:
        """Remove every occurrence of values from an array field."""
        removals = _unique(values)

        def mutate(data: Dict[str, Any]) -> bool:
            current = list(data.get(field) or [])
            kept = [v for v in current if v not in removals]
            if len(kept) == len(current):
                return False
            data[field] = kept
            return True

        return self.update_with(collection, doc_id, mutate)

    def increment(
        self, collection: str, doc_id: str, field: str, amount: int = 1
    ) -> Dict[str, Any]:
        """Add amount to a numeric field (missing counts as zero)."""

        def mutate(data: Dict[str, Any]) -> bool:
            data[field] = (data.get(field) or 0) + amount
            return True

        return self.update_with(collection, doc_id, mutate)

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def _commit_batch(
        self,
        sets: List[Tuple[str, str, Dict[str, Any]]],
        deletes: List[Tuple[str, str]],
    ) -> None:
        try:
            for collection, doc_id, data in sets:
                self._put(collection, doc_id, data)
            for collection, doc_id in deletes:
                query = self._query(collection).filter(DocumentModel.doc_id == doc_id)
                query.delete(synchronize_session="fetch")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.debug("Committed batch: %d sets, %d deletes", len(sets), len(deletes))
