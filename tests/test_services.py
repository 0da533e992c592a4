"""Tests for the user, auth, subject and branch services."""

import pytest

from profman.core.auth import AuthService
from profman.core.branches import BranchService
from profman.core.errors import (
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from profman.core.security import verify_password
from profman.core.subjects import SubjectService

PROFESSOR_PASSWORD = "Prof1234"
STUDENT_NUMBER = "20230001"


class TestUserService:
    def test_create_hashes_password(self, users, professor):
        stored = users.get(professor.id)
        assert stored.password_hash != PROFESSOR_PASSWORD
        assert verify_password(PROFESSOR_PASSWORD, stored.password_hash)
        assert "passwordHash" not in stored.to_public_dict()

    def test_duplicate_email(self, users, professor):
        with pytest.raises(ConflictError) as exc_info:
            users.create_user(professor.email, "Other", "professor", password="Prof1234")
        assert exc_info.value.code == "USER_EXISTS"

    def test_duplicate_student_number(self, users, student):
        with pytest.raises(ConflictError):
            users.create_user(
                "other@university.edu", "Other", "student", password="x", student_number=STUDENT_NUMBER
            )

    def test_list_filters_and_search(self, users, admin, professor, student):
        assert users.list_users(role="professor").total == 1
        assert [u.id for u in users.list_users(search="alice").items] == [student.id]
        assert users.list_users(search=STUDENT_NUMBER).total == 1
        assert users.list_users(limit=2).total_pages == 2

    def test_deleted_users_hidden(self, users, student):
        users.soft_delete(student.id)
        assert users.list_users().total == 0
        assert users.list_users(is_deleted=True).total == 1
        assert users.get_students() == []

    def test_update_rehashes_password(self, users, professor):
        users.update_user(professor.id, {"password": "NewPass123"})
        assert verify_password("NewPass123", users.get(professor.id).password_hash)

    def test_update_email_taken(self, users, admin, professor):
        with pytest.raises(ConflictError):
            users.update_user(professor.id, {"email": admin.email})


class TestAuthService:
    def test_login(self, users, professor):
        result = AuthService(users).login(professor.email, PROFESSOR_PASSWORD)
        data = result.to_dict()
        assert data["user"]["id"] == professor.id
        assert data["accessToken"] and data["refreshToken"]
        assert data["requiresPasswordChange"] is False

    @pytest.mark.parametrize("email, password", [
        ("prof.smith@university.edu", "wrong"),
        ("nobody@university.edu", "Prof1234"),
    ])
    def test_login_failures(self, users, professor, email, password):
        with pytest.raises(UnauthorizedError, match="Invalid credentials"):
            AuthService(users).login(email, password)

    def test_login_inactive(self, users, professor):
        users.update_user(professor.id, {"isActive": False})
        with pytest.raises(UnauthorizedError, match="inactive"):
            AuthService(users).login(professor.email, PROFESSOR_PASSWORD)

    def test_student_auto_login_creates_account(self, users):
        result = AuthService(users).auto_login_student("new.student@university.edu", "20239999")

        assert result.requires_password_change is True
        created = users.find_by_email("new.student@university.edu")
        assert created.role == "student"
        assert created.student_number == "20239999"
        assert created.display_name == "new.student"

    def test_student_auto_login_existing(self, users, student):
        result = AuthService(users).auto_login_student(student.email, STUDENT_NUMBER)
        assert result.user.id == student.id
        with pytest.raises(UnauthorizedError):
            AuthService(users).auto_login_student(student.email, "20230002")

    def test_refresh(self, users, professor):
        auth = AuthService(users)
        tokens = auth.login(professor.email, PROFESSOR_PASSWORD)
        assert auth.refresh(tokens.refresh_token)
        with pytest.raises(InvalidTokenError):
            auth.refresh(tokens.access_token)

    def test_refresh_deleted_user(self, users, professor):
        auth = AuthService(users)
        tokens = auth.login(professor.email, PROFESSOR_PASSWORD)
        users.soft_delete(professor.id)
        with pytest.raises(UnauthorizedError):
            auth.refresh(tokens.refresh_token)

    def test_change_password_clears_flag(self, users):
        auth = AuthService(users)
        result = auth.auto_login_student("new@university.edu", "20231111")
        auth.change_password(result.user.id, "20231111", "Better123")

        again = auth.login("new@university.edu", "Better123")
        assert again.requires_password_change is False

    def test_change_password_wrong_current(self, users, professor):
        with pytest.raises(ValidationError, match="Current password is incorrect"):
            AuthService(users).change_password(professor.id, "nope", "Better123")


@pytest.fixture
def subjects(store):
    return SubjectService(store)


@pytest.fixture
def branches(store):
    return BranchService(store)


@pytest.fixture
def subject(subjects, admin):
    return subjects.create_subject("CS101", "Intro to CS", "Basics", 3, admin.id)


class TestSubjectService:
    def test_duplicate_code(self, subjects, subject, admin):
        with pytest.raises(ConflictError):
            subjects.create_subject("CS101", "Again", "", 3, admin.id)

    def test_update_code_conflict(self, subjects, subject, admin):
        other = subjects.create_subject("CS201", "Data Structures", "", 4, admin.id)
        with pytest.raises(ConflictError):
            subjects.update_subject(other.id, {"code": "CS101"})
        assert subjects.update_subject(other.id, {"code": "CS202"}).code == "CS202"

    def test_assign_professors_records_history(self, subjects, subject, admin, professor):
        updated = subjects.assign_professors(subject.id, [professor.id], admin.id)

        assert updated.assigned_professors == [professor.id]
        history = subjects.get_assignments(subject.id)
        assert [a.professor_id for a in history] == [professor.id]
        assert history[0].assigned_by == admin.id
        assert [s.id for s in subjects.subjects_assigned_to(professor.id)] == [subject.id]

    def test_remove_assignment(self, subjects, subject, admin, professor):
        subjects.assign_professors(subject.id, [professor.id], admin.id)
        updated = subjects.remove_assignment(subject.id, professor.id)

        assert updated.assigned_professors == []
        assert subjects.get_assignments(subject.id) == []

    def test_subjects_by_professor_via_branches(self, subjects, branches, subject, professor):
        branches.create_branch(subject.id, professor.id, "Section A")
        assert [s.code for s in subjects.subjects_by_professor(professor.id)] == ["CS101"]

    def test_list_search(self, subjects, subject, admin):
        subjects.create_subject("MATH101", "Calculus I", "Limits", 4, admin.id)
        assert [s.code for s in subjects.list_subjects(search="calc").items] == ["MATH101"]


WEEKS = [
    {
        "weekNumber": 1,
        "title": "Introduction",
        "description": "Course overview",
        "resources": [{"title": "Slides", "type": "pdf", "url": "https://example.com/w1.pdf"}],
        "assignments": [],
    }
]


class TestBranchService:
    def test_create_requires_subject(self, branches, professor):
        with pytest.raises(NotFoundError, match="Subject not found"):
            branches.create_branch("missing", professor.id, "Section A")

    def test_create_requires_professor_role(self, branches, subject, student):
        with pytest.raises(ValidationError, match="not a professor"):
            branches.create_branch(subject.id, student.id, "Section A")

    def test_week_structure_round_trip(self, branches, subject, professor):
        branch = branches.create_branch(subject.id, professor.id, "Section A", week_structure=WEEKS)
        stored = branches.get(branch.id)
        assert stored.week_structure[0].title == "Introduction"
        assert stored.week_structure[0].resources[0].url == "https://example.com/w1.pdf"

    def test_clone_copies_content(self, branches, users, subject, professor):
        other = users.create_user("prof.jones@university.edu", "Jane Jones", "professor", password="Prof1234")
        branch = branches.create_branch(subject.id, professor.id, "Section A", "Mornings", WEEKS)

        clone = branches.clone_branch(branch.id, other.id, "Section B")

        assert clone.id != branch.id
        assert clone.professor_id == other.id
        assert clone.subject_id == subject.id
        assert clone.description == "Mornings"
        assert clone.to_dict()["weekStructure"] == branches.get(branch.id).to_dict()["weekStructure"]

    def test_clone_missing(self, branches, professor):
        with pytest.raises(NotFoundError, match="Original branch not found"):
            branches.clone_branch("missing", professor.id, "Copy")

    def test_listing(self, branches, subject, professor):
        first = branches.create_branch(subject.id, professor.id, "Section A")
        branches.create_branch(subject.id, professor.id, "Section B")
        branches.soft_delete(first.id)

        assert [b.title for b in branches.active_branches()] == ["Section B"]
        assert len(branches.branches_by_subject(subject.id)) == 1
        assert branches.list_branches(professor_id=professor.id).total == 1
        assert branches.list_branches(include_deleted=True).total == 2
