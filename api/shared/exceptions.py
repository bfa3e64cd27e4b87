"""Shared exceptions for the persona chat API."""
from typing import Any, Dict, Optional


class ChatStoreException(Exception):
    """Base exception for the chat store."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(ChatStoreException):
    """Raised when a required field is missing or malformed."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class NotFoundError(ChatStoreException):
    """Raised when a resource is absent or not owned by the caller."""

    status_code = 404

    def __init__(self, resource: str, identifier: str):
        message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(message, "NOT_FOUND", {"resource": resource, "identifier": identifier})


class StorageUnavailable(ChatStoreException):
    """Raised when the durable store times out or drops the connection.

    Callers may retry with backoff; the store itself never retries.
    """

    status_code = 503

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "STORAGE_UNAVAILABLE", details)


class PersonaResolutionError(ChatStoreException):
    """Raised by a persona lookup; always degraded to a placeholder name."""

    def __init__(self, persona_id: str, message: str):
        full_message = f"Persona '{persona_id}' lookup failed: {message}"
        super().__init__(full_message, "PERSONA_RESOLUTION_ERROR", {"persona_id": persona_id})


def require_fields(**fields: Any) -> None:
    """Raise ValidationError naming every empty field, in argument order."""
    missing = [
        name
        for name, value in fields.items()
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}.",
            {"missing": missing},
        )
