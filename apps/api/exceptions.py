"""Exception taxonomy for the collections core.

Every error raised by the schema store, the CRUD service or the reconciler
derives from CoreError. The Flask error handlers registered in
apps.api.main turn these into ``{"error": message}`` JSON responses.
"""

# flake8: noqa: E501


from typing import Iterable, List, Optional


class CoreError(Exception):
    """Base class for all collection core errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Serialise the error into the response envelope."""
        return {"error": self.message}


class ValidationError(CoreError):
    """One or more field-level validation failures.

    Carries every message, not just the first, so callers can render all
    violations at once. A ValidationError always means no write happened.
    """

    status_code = 500

    def __init__(self, messages: Iterable[str]):
        self.messages: List[str] = list(messages)
        super().__init__("; ".join(self.messages) or "Validation failed")

    def to_dict(self) -> dict:
        return {"error": self.message, "errors": list(self.messages)}


class NotFoundError(CoreError):
    """A record or schema definition does not exist."""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Optional[object] = None):
        self.resource_type = resource_type
        self.resource_id = resource_id
        if resource_id is None:
            message = f"{resource_type} not found"
        else:
            message = f"{resource_type} not found: {resource_id}"
        super().__init__(message)


class DuplicateDefinitionError(CoreError):
    """A schema definition write violated a uniqueness invariant."""

    status_code = 409


class StorageConfigError(CoreError):
    """Upload storage is enabled but its credentials are missing.

    Raised at startup only; it is not recoverable per request.
    """


class UnexpectedError(CoreError):
    """Anything else, surfaced with its original message."""

    @classmethod
    def wrap(cls, error: Exception) -> "UnexpectedError":
        wrapped = cls(str(error) or error.__class__.__name__)
        wrapped.__cause__ = error
        return wrapped
