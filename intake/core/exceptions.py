"""
Platform-wide exception hierarchy.

Services raise these types; blueprints register handlers against them once
and get consistent HTTP status codes everywhere.

Usage:
    from intake.core.exceptions import NotFoundError, IncompleteSectionsError

    raise NotFoundError(resource="Tenant", resource_id=42)
    raise IncompleteSectionsError(["Providers & Credentials"])
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist within the given scope.

    Args:
        resource: Human-readable model/entity name (e.g. "Tenant", "Phase").
        resource_id: The key that was looked up. Included in logs, not in HTTP response.
        tenant_id: Optional. The scope that was enforced. For debug logging only.
    """

    def __init__(
        self,
        resource: str,
        resource_id: int | str | None = None,
        tenant_id: int | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.tenant_id = tenant_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        if tenant_id is not None:
            msg += f" (tenant={tenant_id})"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when a section payload is malformed or targets a read-only section.

    Maps to HTTP 400 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when a transition conflicts with the current state.

    Maps to HTTP 409.
    """


class PhaseLockedError(ConflictError):
    """Raised when a non-elevated caller writes into a submitted phase."""

    def __init__(self, phase: int | str) -> None:
        self.phase = phase
        super().__init__(
            f"Phase {phase} has been submitted and is locked. "
            "Contact your account manager to request changes."
        )


class IncompleteSectionsError(Exception):
    """Raised by the submission gate when required sections are not complete.

    Recoverable: the caller completes the listed sections and submits again.
    Maps to HTTP 422.

    Args:
        missing_titles: Human-readable titles of every incomplete required section.
    """

    def __init__(self, missing_titles: list[str]) -> None:
        self.missing_titles = list(missing_titles)
        super().__init__(
            "Cannot submit, incomplete sections: " + ", ".join(self.missing_titles)
        )


class AuthenticationError(Exception):
    """Raised when no resolved identity is attached to the request. HTTP 401."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class ForbiddenError(Exception):
    """Raised when the caller's tenant does not match the target tenant and
    the caller lacks elevated privilege. HTTP 403, never retried.
    """

    def __init__(self, message: str = "Forbidden: cannot access this tenant") -> None:
        super().__init__(message)
