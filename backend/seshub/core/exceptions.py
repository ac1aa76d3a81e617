"""Application-specific exceptions."""

from datetime import datetime
from typing import Any


class SESHubError(Exception):
    """Base class for domain errors carrying an HTTP status code."""

    default_status_code = 400

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code or self.default_status_code

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, status_code={self.status_code})"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class AuthenticationError(SESHubError):
    """Domain-specific authentication error."""

    default_status_code = 401


class AuthorizationError(SESHubError):
    """Domain-specific authorization error."""

    default_status_code = 403


class ValidationError(SESHubError):
    """Domain-specific validation error."""

    default_status_code = 422

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, details=details, status_code=status_code)
        self.field = field

    def __repr__(self) -> str:
        field_info = f", field={self.field!r}" if self.field else ""
        return f"ValidationError(message={self.message!r}{field_info}, status_code={self.status_code})"

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.field:
            payload["field"] = self.field
        return payload


class NotFoundError(SESHubError):
    """Requested resource does not exist or is not visible to the caller."""

    default_status_code = 404

    def __init__(self, resource: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"{resource} not found", details=details)
        self.resource = resource


class ConflictError(SESHubError):
    default_status_code = 409


class BusinessLogicError(SESHubError):
    """A request that is well-formed but violates a business rule."""

    default_status_code = 400


class AccountLockedError(SESHubError):
    """Client account is locked after repeated login failures."""

    default_status_code = 423

    def __init__(self, locked_until: datetime) -> None:
        super().__init__(
            "Account is locked",
            details={"locked_until": locked_until.isoformat()},
        )
        self.locked_until = locked_until
