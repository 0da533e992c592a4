"""Subjects and professor assignments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from profman.core.errors import ConflictError
from profman.core.records import Page, Record, matches_search, now_iso, paginate
from profman.core.service import DocumentService
from profman.db import BRANCHES, SUBJECT_ASSIGNMENTS, SUBJECTS

logger = structlog.get_logger(__name__)

SUBJECT_SEARCH_KEYS = ("code", "title", "description")


@dataclass
class Subject(Record):
    """A catalogue subject, e.g. CS101."""

    id: str
    code: str
    title: str
    description: str = ""
    credits: int = 0
    is_active: bool = True
    is_deleted: bool = False
    deleted_at: str | None = None
    assigned_professors: list[str] = field(default_factory=list)
    created_by: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class SubjectAssignment(Record):
    """Audit record: a professor was assigned to a subject."""

    id: str
    subject_id: str
    professor_id: str
    assigned_at: str
    assigned_by: str


class SubjectService(DocumentService[Subject]):
    collection = SUBJECTS
    record_type = Subject
    entity_name = "Subject"

    def list_subjects(
        self,
        page: int = 1,
        limit: int = 10,
        is_active: bool | None = None,
        search: str | None = None,
        include_deleted: bool = False,
    ) -> Page:
        filters = {} if is_active is None else {"isActive": is_active}
        documents = self._all(**filters)
        if not include_deleted:
            documents = [d for d in documents if not d.get("isDeleted")]
        documents = [d for d in documents if matches_search(d, search, SUBJECT_SEARCH_KEYS)]
        result = paginate(documents, page, limit)
        result.items = [Subject.from_dict(d) for d in result.items]
        return result

    def active_subjects(self) -> list[Subject]:
        return [
            Subject.from_dict(d)
            for d in self._all(isActive=True)
            if not d.get("isDeleted")
        ]

    def find_by_code(self, code: str) -> Subject | None:
        matches = self._all(code=code)
        return Subject.from_dict(matches[0]) if matches else None

    def create_subject(
        self, code: str, title: str, description: str, credits: int, created_by: str
    ) -> Subject:
        """Create a subject; the code must be unique (409 otherwise)."""
        if self.find_by_code(code) is not None:
            raise ConflictError("Subject with this code already exists")

        now = now_iso()
        subject = Subject(
            id=self.store.new_id(),
            code=code,
            title=title,
            description=description,
            credits=credits,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        self.store.insert(self.collection, subject.to_dict(), doc_id=subject.id)
        logger.info("subject.created", subject_id=subject.id, code=code)
        return subject

    def update_subject(self, subject_id: str, updates: dict[str, Any]) -> Subject:
        fields = {k: v for k, v in updates.items() if v is not None}
        code = fields.get("code")
        if code:
            existing = self.find_by_code(code)
            if existing is not None and existing.id != subject_id:
                raise ConflictError("Subject with this code already exists")
        subject = self._update(subject_id, fields)
        logger.info("subject.updated", subject_id=subject_id)
        return subject

    # -------------------------------------------------------------------------
    # Professor assignment
    # -------------------------------------------------------------------------

    def assign_professors(
        self, subject_id: str, professor_ids: list[str], assigned_by: str
    ) -> Subject:
        """Replace the assigned professors and record one audit entry each."""
        subject = self._update(subject_id, {"assignedProfessors": list(professor_ids)})

        now = now_iso()
        for professor_id in professor_ids:
            assignment = SubjectAssignment(
                id=self.store.new_id(),
                subject_id=subject_id,
                professor_id=professor_id,
                assigned_at=now,
                assigned_by=assigned_by,
            )
            self.store.insert(SUBJECT_ASSIGNMENTS, assignment.to_dict(), doc_id=assignment.id)

        logger.info("subject.professors_assigned", subject_id=subject_id, count=len(professor_ids))
        return subject

    def get_assignments(self, subject_id: str) -> list[SubjectAssignment]:
        """Assignment history for a subject, newest first."""
        self._get_document(subject_id)
        documents = self.store.query(
            SUBJECT_ASSIGNMENTS,
            filters={"subjectId": subject_id},
            order_by="assignedAt",
            descending=True,
        )
        return [SubjectAssignment.from_dict(d) for d in documents]

    def subjects_assigned_to(self, professor_id: str) -> list[Subject]:
        """Active subjects a professor has been assigned to."""
        assignments = self.store.query(SUBJECT_ASSIGNMENTS, filters={"professorId": professor_id})
        return self._active_by_ids(a["subjectId"] for a in assignments)

    def remove_assignment(self, subject_id: str, professor_id: str) -> Subject:
        document = self._get_document(subject_id)
        remaining = [p for p in document.get("assignedProfessors", []) if p != professor_id]
        subject = self._update(subject_id, {"assignedProfessors": remaining})

        assignments = self.store.query(
            SUBJECT_ASSIGNMENTS,
            filters={"subjectId": subject_id, "professorId": professor_id},
        )
        for assignment in assignments:
            self.store.delete(SUBJECT_ASSIGNMENTS, assignment["id"])

        logger.info("subject.assignment_removed", subject_id=subject_id, professor_id=professor_id)
        return subject

    def subjects_by_professor(self, professor_id: str) -> list[Subject]:
        """Active subjects the professor teaches through active branches."""
        branches = self.store.query(BRANCHES, filters={"professorId": professor_id, "isActive": True})
        return self._active_by_ids(b["subjectId"] for b in branches)

    def _active_by_ids(self, subject_ids) -> list[Subject]:
        subjects = []
        seen: set[str] = set()
        for subject_id in subject_ids:
            if subject_id in seen:
                continue
            seen.add(subject_id)
            document = self.store.get(self.collection, subject_id)
            if document and document.get("isActive") and not document.get("isDeleted"):
                subjects.append(Subject.from_dict(document))
        return subjects
