"""Document store for ProfMan.

Provides:
- SqliteDocumentStore (default, local and tests)
- FirestoreDocumentStore (firebase-admin, production)
- get_store() returning the configured backend
"""

from __future__ import annotations

from pathlib import Path

import structlog

from profman.config.app_config import load_app_config
from profman.db.database import DELETE_FIELD, SqliteDocumentStore, validate_doc_id

logger = structlog.get_logger(__name__)


# Collection names
USERS = "users"
SUBJECTS = "subjects"
SUBJECT_ASSIGNMENTS = "subjectAssignments"
BRANCHES = "branches"
QUIZZES = "quizzes"
QUIZ_ATTEMPTS = "quizAttempts"
EXAMS = "exams"
EXAM_SUBMISSIONS = "examSubmissions"

_store = None


def get_store():
    """Get the global document store, building it from config on first use."""
    global _store
    if _store is None:
        config = load_app_config()
        if config.database.backend == "firestore":
            from profman.db.firestore_store import FirestoreDocumentStore, create_firestore_client

            client = create_firestore_client(
                project_id=config.database.firebase_project_id,
                credentials_path=config.database.firebase_credentials,
            )
            _store = FirestoreDocumentStore(client)
        else:
            _store = SqliteDocumentStore(Path(config.database.path))
        logger.info("store.ready", backend=_store.backend)
    return _store


def set_store(store) -> None:
    """Install a specific store (tests, CLI --db option)."""
    global _store
    _store = store


def reset_store() -> None:
    """Reset the store (for testing)."""
    global _store
    _store = None


__all__ = [
    "DELETE_FIELD",
    "SqliteDocumentStore",
    "get_store",
    "reset_store",
    "set_store",
    "validate_doc_id",
    "USERS",
    "SUBJECTS",
    "SUBJECT_ASSIGNMENTS",
    "BRANCHES",
    "QUIZZES",
    "QUIZ_ATTEMPTS",
    "EXAMS",
    "EXAM_SUBMISSIONS",
]
