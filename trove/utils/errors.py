# utils/errors.py
"""
Error taxonomy of the judging core.

Every error carries a stable ``code`` so callers can branch on the kind of
failure, and a human-readable message that the bot shows verbatim.
"""
from typing import ClassVar


class TroveError(Exception):
    code: ClassVar[str] = "error"
    default_message: ClassVar[str] = "Operation failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(TroveError, LookupError):
    code = "not_found"
    default_message = "Object not found."


class ConflictError(TroveError, ValueError):
    code = "conflict"
    default_message = "Object already exists."


class ValidationError(TroveError, ValueError):
    code = "validation"
    default_message = "Invalid input."


class RubricNotFound(NotFoundError):
    default_message = "Rubric not found."


class SubmissionNotFound(NotFoundError):
    default_message = "Submission not found."


class AssignmentNotFound(NotFoundError):
    default_message = "Assignment not found."


class EventNotFound(NotFoundError):
    default_message = "Event not found."


class TeamNotFound(NotFoundError):
    default_message = "Team not found."


class UserNotFound(NotFoundError):
    default_message = "User not found."


class RubricAlreadyExists(ConflictError):
    default_message = "A rubric already exists for this event and track."


class SubmissionIncomplete(ValidationError):
    default_message = "Please fill in all required fields."


class InvalidSubmissionState(ValidationError):
    default_message = "Submission is not in submitted state."


class InvalidScoreValue(ValidationError):
    default_message = "Scores must be finite numbers."
