"""Input validation helpers shared by the API schemas and the CLI.

Functions:
- password_problems(password) -> list[str]: Policy violations, empty if valid
- check_password(password) -> str: Return password or raise ValueError
- check_subject_code(code) -> str: Normalise and validate a subject code
- is_student_login(email, password) -> bool: Institutional email + student number
"""

import re

SUBJECT_CODE_RE = re.compile(r"^[A-Z0-9]{2,10}$")
STUDENT_NUMBER_RE = re.compile(r"^\d+$")

MIN_PASSWORD_LENGTH = 6


def password_problems(password: str) -> list[str]:
    """List the password policy rules this password breaks."""
    problems = []
    if len(password) < MIN_PASSWORD_LENGTH:
        problems.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if not (
        re.search(r"[a-z]", password)
        and re.search(r"[A-Z]", password)
        and re.search(r"\d", password)
    ):
        problems.append(
            "Password must contain at least one uppercase letter, "
            "one lowercase letter, and one number"
        )
    return problems


def check_password(password: str) -> str:
    """Return the password unchanged or raise ValueError with the first problem."""
    problems = password_problems(password)
    if problems:
        raise ValueError(problems[0])
    return password


def check_subject_code(code: str) -> str:
    """Subject codes are 2-10 uppercase letters or digits."""
    if not SUBJECT_CODE_RE.match(code):
        raise ValueError("Subject code must be 2-10 uppercase letters or numbers")
    return code


def is_student_login(email: str, password: str) -> bool:
    """Students sign in with their institutional email and student number."""
    return "@" in email and bool(STUDENT_NUMBER_RE.match(password))
