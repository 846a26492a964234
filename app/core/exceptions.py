"""
Platform-wide exception hierarchy.

Services raise these; ``create_app`` registers one handler per type so
every blueprint gets the same HTTP status and JSON envelope.

Usage:
    from app.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Report", resource_id=42)
    raise ValidationError("Report cannot be completed", violations=[...])
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Project", "Report").
        resource_id: The key that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when well-formed input violates a business rule.

    Lifecycle gating failures carry the complete list of violated
    conditions in ``violations`` — never only the first one — so the
    caller can present every remediation hint at once.

    Maps to HTTP 422.

    Args:
        message: Human-readable summary.
        violations: One dict per violated condition
                    (``{"code", "message", ...}``).
        details: Optional field-level breakdown.
    """

    def __init__(
        self,
        message: str,
        violations: list[dict] | None = None,
        details: dict | None = None,
    ) -> None:
        self.violations = list(violations or [])
        self.details = details or {}
        super().__init__(message)


class ReportLockedError(ValidationError):
    """Raised when a mutation targets a Completed report, or a Draft whose
    checklist is locked by a recorded signature.

    Maps to HTTP 409.
    """


class PermissionDeniedError(Exception):
    """Raised when the acting user lacks write access to the project, or
    tries to fill a signature slot their role may not sign.

    Maps to HTTP 403. Not retryable without a role/assignment change.
    """

    def __init__(self, user_id: int | str | None, action: str, reason: str) -> None:
        self.user_id = user_id
        self.action = action
        self.reason = reason
        super().__init__(f"User {user_id} may not {action}: {reason}")


class ReferentialIntegrityError(Exception):
    """Raised when deleting a row that other rows still reference.

    Maps to HTTP 409. Deletion stays blocked; nothing cascades.
    """

    def __init__(self, resource: str, resource_id: int | str, dependent: str, count: int) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.dependent = dependent
        self.count = count
        super().__init__(
            f"{resource} id={resource_id} possui {count} {dependent} vinculado(s); exclusão bloqueada"
        )


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique value or clash
    with existing state.

    Maps to HTTP 409.
    """

    def __init__(self, resource: str, field: str, value: str | None = None, message: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(message or f"{resource} with {field}={value!r} already exists")


class StorageError(Exception):
    """Raised when the persistence layer rejects a write.

    The underlying driver/ORM message is preserved in ``detail``; the core
    never retries silently.
    """

    def __init__(self, message: str, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(message)


class UploadError(Exception):
    """Raised when a photo cannot be stored. The target result's photo list
    is left untouched.
    """


class AuthenticationError(Exception):
    """Raised when no valid session backs the request. Maps to HTTP 401."""
