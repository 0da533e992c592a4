"""Demo data for local development.

Creates admins, professors, students, a handful of subjects, one branch
with a week structure and an auto-graded quiz. Seeding is idempotent on
user emails and subject codes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from profman.core.branches import BranchService
from profman.core.quizzes import QuizService
from profman.core.subjects import SubjectService
from profman.core.users import UserService

logger = structlog.get_logger(__name__)

ADMIN_PASSWORD = "Admin123"
PROFESSOR_PASSWORD = "Prof1234"

ADMINS = [("admin@profman.com", "System Administrator")]

PROFESSORS = [
    ("prof.smith@university.edu", "Dr. John Smith"),
    ("prof.davis@university.edu", "Dr. Sarah Davis"),
]

# Students log in with their student number as password
STUDENTS = [
    ("student1@university.edu", "Alice Johnson", "20230001"),
    ("student2@university.edu", "Bob Williams", "20230002"),
    ("student3@university.edu", "Carol Brown", "20230003"),
]

SUBJECTS = [
    ("CS101", "Introduction to Programming", "Variables, control flow, functions and basic data structures", 3),
    ("CS201", "Data Structures", "Lists, trees, graphs and hash tables", 4),
    ("MATH101", "Calculus I", "Limits, derivatives and integrals", 4),
]

WEEK_STRUCTURE = [
    {
        "weekNumber": 1,
        "title": "Getting Started",
        "description": "Course overview and tooling",
        "resources": [
            {"type": "document", "title": "Syllabus"},
            {"type": "link", "title": "Python downloads", "url": "https://www.python.org/downloads/"},
        ],
        "assignments": [],
    },
    {
        "weekNumber": 2,
        "title": "Variables and Types",
        "description": "Numbers, strings and booleans",
        "resources": [{"type": "video", "title": "Types walkthrough"}],
        "assignments": [
            {
                "title": "Types worksheet",
                "description": "Short exercises on type conversion",
                "dueDate": "2030-01-15T23:59:00+00:00",
                "points": 10,
                "type": "assignment",
            }
        ],
    },
]

QUIZ_QUESTIONS = [
    {
        "type": "multiple_choice",
        "question": "Which keyword defines a function in Python?",
        "options": ["func", "def", "lambda", "fn"],
        "correctAnswer": "def",
        "points": 2,
    },
    {
        "type": "true_false",
        "question": "Python lists are immutable.",
        "correctAnswer": False,
        "points": 1,
    },
    {
        "type": "numeric",
        "question": "What is 7 / 2 in Python 3?",
        "correctAnswer": 3.5,
        "tolerance": 0.01,
        "points": 2,
    },
    {
        "type": "multiple_select",
        "question": "Which of these are immutable types?",
        "options": ["tuple", "list", "str", "dict"],
        "correctAnswer": ["tuple", "str"],
        "points": 2,
        "partialCredit": True,
    },
]


@dataclass
class SeedSummary:
    users: int = 0
    subjects: int = 0
    branches: int = 0
    quizzes: int = 0
    skipped: list[str] = field(default_factory=list)


def seed_demo_data(store=None) -> SeedSummary:
    """Populate the store with demo records."""
    users = UserService(store)
    subjects = SubjectService(store)
    branches = BranchService(store)
    quizzes = QuizService(store)
    summary = SeedSummary()

    def ensure_user(email: str, name: str, role: str, password: str, number: str | None = None):
        existing = users.find_by_email(email)
        if existing is not None:
            summary.skipped.append(email)
            return existing
        summary.users += 1
        return users.create_user(email, name, role, password=password, student_number=number)

    admin = None
    for email, name in ADMINS:
        admin = ensure_user(email, name, "admin", ADMIN_PASSWORD)
    professors = [ensure_user(email, name, "professor", PROFESSOR_PASSWORD) for email, name in PROFESSORS]
    for email, name, number in STUDENTS:
        ensure_user(email, name, "student", number, number)

    created_subjects = []
    for code, title, description, credits in SUBJECTS:
        subject = subjects.find_by_code(code)
        if subject is None:
            subject = subjects.create_subject(code, title, description, credits, created_by=admin.id)
            subjects.assign_professors(subject.id, [professors[0].id], assigned_by=admin.id)
            summary.subjects += 1
        else:
            summary.skipped.append(code)
        created_subjects.append(subject)

    intro = created_subjects[0]
    if not branches.branches_by_subject(intro.id):
        branch = branches.create_branch(
            subject_id=intro.id,
            professor_id=professors[0].id,
            title=f"{intro.code} - Section A",
            description="Morning section",
            week_structure=WEEK_STRUCTURE,
        )
        summary.branches += 1

        quizzes.create_quiz(
            {
                "branchId": branch.id,
                "weekNumber": 2,
                "title": "Python Basics Check",
                "description": "Warm-up quiz on week 1 and 2 topics",
                "questions": QUIZ_QUESTIONS,
                "timeLimit": 15,
                "attemptsAllowed": 3,
            }
        )
        summary.quizzes += 1

    logger.info(
        "seed.completed",
        users=summary.users,
        subjects=summary.subjects,
        branches=summary.branches,
        quizzes=summary.quizzes,
    )
    return summary
