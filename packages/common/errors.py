"""Error taxonomy shared by the domain services.

Services translate raw `BaaSError` values into these classes before they
reach a route handler; handlers never inspect store error codes.
"""

from typing import Any, Mapping


class ConlangError(Exception):
    """Base class for every error a domain service raises."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ConlangError):
    """Client-detected bad input, keyed by the offending field."""

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()) or "invalid input")

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls({field: message})


class DuplicateNameError(ConlangError):
    """The (owner, name) pair is already taken."""

    def __init__(self, name: str) -> None:
        super().__init__(f"You already have a language named '{name}'")
        self.name = name


class NotFoundError(ConlangError):
    """A lookup by id returned no rows."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class RemoteError(ConlangError):
    """Any other store-reported failure: constraint, policy denial, network."""

    GENERIC_MESSAGE = "The server could not complete the request"

    def __init__(
        self,
        operation: str,
        message: str | None = None,
        *,
        entity_id: str | None = None,
        code: str | None = None,
        hint: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message or self.GENERIC_MESSAGE)
        self.operation = operation
        self.entity_id = entity_id
        self.code = code
        self.hint = hint
        self.details = details

    def context(self) -> dict[str, Any]:
        """Logging context without any credential-bearing data."""
        return {"operation": self.operation, "entity_id": self.entity_id, "code": self.code}


class PartialFailure(ConlangError):
    """A later step of a multi-step operation failed after an earlier one succeeded.

    Logged by the service that detects it and never raised to the caller.
    """

    def __init__(self, operation: str, completed: str, failed: str, entity_id: str | None, cause: str) -> None:
        super().__init__(
            f"{operation}: '{completed}' succeeded but '{failed}' failed ({cause})"
        )
        self.operation = operation
        self.completed = completed
        self.failed = failed
        self.entity_id = entity_id
        self.cause = cause


class AuthError(ConlangError):
    """The auth service rejected credentials, a token or a sign-up."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code
