"""Base class for document-backed services.

Each service owns one collection and shares the soft delete lifecycle:
active -> deleted (soft) -> restored, or deleted -> permanently removed.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

import structlog

from profman.core.errors import ConflictError, NotFoundError
from profman.core.records import Record, now_iso, restore_fields, soft_delete_fields
from profman.db import get_store

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=Record)


class DocumentService(Generic[T]):
    """CRUD helpers over a single collection."""

    collection: str = ""
    record_type: type[T]
    entity_name: str = "Resource"

    def __init__(self, store=None):
        self._store = store

    @property
    def store(self):
        return self._store if self._store is not None else get_store()

    def _get_document(self, doc_id: str) -> dict[str, Any]:
        """Fetch a document or raise NotFoundError."""
        document = self.store.get(self.collection, doc_id)
        if document is None:
            raise NotFoundError(f"{self.entity_name} not found")
        return document

    def get(self, doc_id: str) -> T:
        return self.record_type.from_dict(self._get_document(doc_id))

    def _all(self, **filters: Any) -> list[dict[str, Any]]:
        return self.store.query(self.collection, filters=filters or None)

    def _update(self, doc_id: str, fields: dict[str, Any]) -> T:
        self._get_document(doc_id)
        document = self.store.update(self.collection, doc_id, {**fields, "updatedAt": now_iso()})
        return self.record_type.from_dict(document)

    def soft_delete(self, doc_id: str) -> None:
        """Mark a record deleted and inactive.

        Raises:
            NotFoundError: If the record doesn't exist
            ConflictError: If the record is already deleted
        """
        document = self._get_document(doc_id)
        if document.get("isDeleted"):
            raise ConflictError(f"{self.entity_name} is already deleted")
        self.store.update(self.collection, doc_id, soft_delete_fields())
        logger.info(f"{self.collection}.soft_deleted", id=doc_id)

    def restore(self, doc_id: str) -> T:
        """Undo a soft delete.

        Raises:
            NotFoundError: If the record doesn't exist
            ConflictError: If the record is not deleted
        """
        document = self._get_document(doc_id)
        if not document.get("isDeleted"):
            raise ConflictError(f"{self.entity_name} is not deleted")
        document = self.store.update(self.collection, doc_id, restore_fields())
        logger.info(f"{self.collection}.restored", id=doc_id)
        return self.record_type.from_dict(document)

    def permanent_delete(self, doc_id: str) -> None:
        """Remove a record for good; later reads are 404."""
        self._get_document(doc_id)
        self.store.delete(self.collection, doc_id)
        logger.info(f"{self.collection}.permanently_deleted", id=doc_id)
