"""
Errors raised by the ready plans feature.

Terminal errors carry the HTTP status and the extra diagnostic fields the
API returns next to ``error``. PersistError never leaves the orchestrator.
"""

from typing import Any

from fastapi import status


class ReadyPlanError(Exception):
    """Base class for errors rendered as ``{"error": message, **payload}``."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **payload: Any):
        super().__init__(message)
        self.message = message
        self.payload = payload

    def to_response(self) -> dict[str, Any]:
        return {"error": self.message, **self.payload}


class AuthError(ReadyPlanError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ValidationError(ReadyPlanError):
    status_code = status.HTTP_400_BAD_REQUEST


class PreconditionError(ReadyPlanError):
    """Network, density or compatibility thresholds are not met."""

    status_code = status.HTTP_400_BAD_REQUEST


class DataFetchError(ReadyPlanError):
    """A store read failed before any plan could be scheduled."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class PersistError(Exception):
    """Inserting one plan failed; the batch continues without it."""
