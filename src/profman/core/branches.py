"""Branches: a professor's section of a subject with a weekly content plan."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

import structlog

from profman.core.errors import NotFoundError, ValidationError
from profman.core.records import Page, Record, matches_search, now_iso, paginate
from profman.core.service import DocumentService
from profman.db import BRANCHES, SUBJECTS, USERS

logger = structlog.get_logger(__name__)

ResourceType = Literal["video", "document", "link", "quiz", "assignment"]
AssignmentType = Literal["quiz", "exam", "assignment", "project"]

BRANCH_SEARCH_KEYS = ("title", "description")


@dataclass
class WeekResource(Record):
    type: ResourceType
    title: str
    url: str | None = None
    file_id: str | None = None
    description: str | None = None


@dataclass
class WeekAssignment(Record):
    title: str
    description: str
    due_date: str
    points: float
    type: AssignmentType


@dataclass
class WeekContent(Record):
    """One week of a branch's timeline."""

    week_number: int
    title: str
    description: str = ""
    resources: list[WeekResource] = field(default_factory=list)
    assignments: list[WeekAssignment] = field(default_factory=list)

    nested = {"resources": WeekResource, "assignments": WeekAssignment}


@dataclass
class Branch(Record):
    id: str
    subject_id: str
    professor_id: str
    title: str
    description: str = ""
    week_structure: list[WeekContent] = field(default_factory=list)
    is_active: bool = True
    is_deleted: bool = False
    deleted_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    nested = {"week_structure": WeekContent}


class BranchService(DocumentService[Branch]):
    collection = BRANCHES
    record_type = Branch
    entity_name = "Branch"

    def list_branches(
        self,
        page: int = 1,
        limit: int = 10,
        subject_id: str | None = None,
        professor_id: str | None = None,
        is_active: bool | None = None,
        search: str | None = None,
        include_deleted: bool = False,
    ) -> Page:
        filters: dict[str, Any] = {}
        if subject_id:
            filters["subjectId"] = subject_id
        if professor_id:
            filters["professorId"] = professor_id
        if is_active is not None:
            filters["isActive"] = is_active

        documents = self._all(**filters)
        if not include_deleted:
            documents = [d for d in documents if not d.get("isDeleted")]
        documents = [d for d in documents if matches_search(d, search, BRANCH_SEARCH_KEYS)]
        result = paginate(documents, page, limit)
        result.items = [Branch.from_dict(d) for d in result.items]
        return result

    def _active(self, **filters: Any) -> list[Branch]:
        return [
            Branch.from_dict(d)
            for d in self._all(isActive=True, **filters)
            if not d.get("isDeleted")
        ]

    def active_branches(self) -> list[Branch]:
        return self._active()

    def branches_by_professor(self, professor_id: str) -> list[Branch]:
        return self._active(professorId=professor_id)

    def branches_by_subject(self, subject_id: str) -> list[Branch]:
        return self._active(subjectId=subject_id)

    def _require_professor(self, professor_id: str) -> None:
        user = self.store.get(USERS, professor_id)
        if user is None:
            raise NotFoundError("Professor not found")
        if user.get("role") != "professor":
            raise ValidationError("User is not a professor")

    def create_branch(
        self,
        subject_id: str,
        professor_id: str,
        title: str,
        description: str = "",
        week_structure: list[dict[str, Any]] | None = None,
    ) -> Branch:
        """Create a branch for an existing subject and professor.

        Raises:
            NotFoundError: If the subject or professor doesn't exist
            ValidationError: If the user isn't a professor
        """
        if self.store.get(SUBJECTS, subject_id) is None:
            raise NotFoundError("Subject not found")
        self._require_professor(professor_id)

        now = now_iso()
        branch = Branch(
            id=self.store.new_id(),
            subject_id=subject_id,
            professor_id=professor_id,
            title=title,
            description=description,
            week_structure=[WeekContent.from_dict(w) for w in week_structure or []],
            created_at=now,
            updated_at=now,
        )
        self.store.insert(self.collection, branch.to_dict(), doc_id=branch.id)
        logger.info("branch.created", branch_id=branch.id, subject_id=subject_id)
        return branch

    def update_branch(self, branch_id: str, updates: dict[str, Any]) -> Branch:
        fields = {k: v for k, v in updates.items() if v is not None}
        if "professorId" in fields:
            self._require_professor(fields["professorId"])
        if "subjectId" in fields and self.store.get(SUBJECTS, fields["subjectId"]) is None:
            raise NotFoundError("Subject not found")
        branch = self._update(branch_id, fields)
        logger.info("branch.updated", branch_id=branch_id)
        return branch

    def clone_branch(self, branch_id: str, new_professor_id: str, new_title: str) -> Branch:
        """Copy subject, description and week structure to a new professor."""
        try:
            original = self.get(branch_id)
        except NotFoundError as e:
            raise NotFoundError("Original branch not found") from e
        self._require_professor(new_professor_id)

        now = now_iso()
        clone = Branch(
            id=self.store.new_id(),
            subject_id=original.subject_id,
            professor_id=new_professor_id,
            title=new_title,
            description=original.description,
            week_structure=original.week_structure,
            created_at=now,
            updated_at=now,
        )
        self.store.insert(self.collection, clone.to_dict(), doc_id=clone.id)
        logger.info("branch.cloned", source_id=branch_id, branch_id=clone.id)
        return clone
