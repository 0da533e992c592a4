"""Core business logic.

Modules:
- errors: Error hierarchy mapped to HTTP status codes
- records: Record mapping, soft delete fields, pagination
- security: Password hashing, bearer tokens, sealed secrets
- service: Shared soft delete lifecycle for document services
- users / auth: Accounts and authentication flows
- subjects / branches: Catalogue and course sections
- quizzes / quiz_grader: Quizzes and auto-graded attempts
- exams / exam_grader: Exams, submissions, manual grading, letter grades
"""
