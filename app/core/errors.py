"""
Error taxonomy shared by the services and mapped onto HTTP responses in main.py
"""

from typing import Any, Optional


class TastingError(Exception):
    """Base class for every expected failure of a tasting operation"""

    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str, details: Any = None, event_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.event_id = event_id


class NotFoundError(TastingError):
    status_code = 404
    error_code = "not_found"


class EventNotFoundError(NotFoundError):
    error_code = "event_not_found"

    def __init__(self, event_id: str):
        super().__init__("Event not found", event_id=event_id)


class InvalidJoinCodeError(NotFoundError):
    error_code = "invalid_join_code"

    def __init__(self, join_code: str):
        super().__init__("Invalid join code", details={"join_code": join_code})


class ParticipantNotFoundError(NotFoundError):
    error_code = "participant_not_found"

    def __init__(self, participant_id: str):
        super().__init__("Participant not found", details={"participant_id": participant_id})


class CapacityExceededError(TastingError):
    status_code = 409
    error_code = "capacity_exceeded"


class InvalidInputError(TastingError):
    status_code = 422
    error_code = "invalid_input"


class InvalidCategoryError(InvalidInputError):
    error_code = "invalid_category"


class ConflictError(TastingError):
    status_code = 409
    error_code = "conflict"


class TransientError(TastingError):
    """Store timeout or lost connection; the caller may retry"""

    status_code = 503
    error_code = "transient"


class InternalError(TastingError):
    status_code = 500
    error_code = "internal_error"
