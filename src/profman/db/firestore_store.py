"""Firestore-backed document store (firebase-admin)."""

from __future__ import annotations

from typing import Any

import structlog
from google.cloud.firestore_v1 import DELETE_FIELD as FIRESTORE_DELETE_FIELD
from google.cloud.firestore_v1.base_query import FieldFilter

from profman.core.errors import DuplicateKeyError, NotFoundError
from profman.db.database import DELETE_FIELD, validate_doc_id

logger = structlog.get_logger(__name__)


def create_firestore_client(project_id: str | None = None, credentials_path: str | None = None):
    """Initialise firebase-admin once and return its Firestore client."""
    import firebase_admin
    from firebase_admin import credentials, firestore

    if not firebase_admin._apps:
        cred = credentials.Certificate(credentials_path) if credentials_path else None
        options = {"projectId": project_id} if project_id else None
        firebase_admin.initialize_app(cred, options)
        logger.info("firestore.initialized", project_id=project_id)

    return firestore.client()


class FirestoreDocumentStore:
    """Same API as SqliteDocumentStore, on a Firestore client."""

    backend = "firestore"

    def __init__(self, client):
        self.db = client

    def new_id(self) -> str:
        return self.db.collection("_ids").document().id

    def insert(
        self, collection: str, data: dict[str, Any], doc_id: str | None = None
    ) -> dict[str, Any]:
        doc_id = validate_doc_id(doc_id or data.get("id") or self.new_id())
        ref = self.db.collection(collection).document(doc_id)
        if ref.get().exists:
            raise DuplicateKeyError(f"Document {collection}/{doc_id} already exists")
        document = {**data, "id": doc_id}
        ref.set(document)
        return document

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        validate_doc_id(doc_id)
        snapshot = self.db.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return {**snapshot.to_dict(), "id": snapshot.id}

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> dict[str, Any]:
        validate_doc_id(doc_id)
        document = {**data, "id": doc_id}
        self.db.collection(collection).document(doc_id).set(document)
        return document

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        validate_doc_id(doc_id)
        ref = self.db.collection(collection).document(doc_id)
        if not ref.get().exists:
            raise NotFoundError(f"Document {collection}/{doc_id} not found")

        payload = {
            key: FIRESTORE_DELETE_FIELD if value is DELETE_FIELD else value
            for key, value in fields.items()
        }
        ref.update(payload)
        snapshot = ref.get()
        return {**snapshot.to_dict(), "id": snapshot.id}

    def delete(self, collection: str, doc_id: str) -> bool:
        validate_doc_id(doc_id)
        ref = self.db.collection(collection).document(doc_id)
        if not ref.get().exists:
            return False
        ref.delete()
        return True

    def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        query = self.db.collection(collection)
        for name, value in (filters or {}).items():
            query = query.where(filter=FieldFilter(name, "==", value))
        if order_by:
            direction = "DESCENDING" if descending else "ASCENDING"
            query = query.order_by(order_by, direction=direction)
        return [{**doc.to_dict(), "id": doc.id} for doc in query.stream()]
