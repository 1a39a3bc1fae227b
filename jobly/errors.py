"""
Exception classes raised by the models, the SQL helpers and validation.

Each error carries a status code so that an outer surface (CLI, HTTP)
can translate it without inspecting the message.
"""

from typing import List, Optional, Union


class JoblyError(Exception):
    """Base exception for all Jobly errors."""

    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize error with message and optional details.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BadRequestError(JoblyError):
    """Raised when a request carries invalid or unusable data."""

    status_code = 400

    def __init__(self, errors: Union[str, List[str]], details: Optional[dict] = None):
        if isinstance(errors, str):
            errors = [errors]
        details = dict(details or {})
        details.setdefault("errors", list(errors))
        super().__init__("; ".join(errors), details)
        self.errors = list(errors)


class NotFoundError(JoblyError):
    """Raised when a requested company or job does not exist."""

    status_code = 404


class NoDataProvided(BadRequestError):
    """Raised when a partial update is attempted with zero fields."""

    def __init__(self, message: str = "No data"):
        super().__init__(message)


class UnknownFilterKey(BadRequestError):
    """
    Raised when a search filter is not part of the entity's filter spec.

    Attributes:
        key: The offending filter key
    """

    def __init__(self, key: str):
        super().__init__(f"Unknown filter: {key}", details={"key": key})
        self.key = key
