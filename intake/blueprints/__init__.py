"""
Intake Completion & Phase-Gating Service
Blueprint registry and shared error mapping.
"""

import logging

from flask import request
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from intake.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    IncompleteSectionsError,
    NotFoundError,
    PhaseLockedError,
    ValidationError,
)
from intake.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def register_error_handlers(bp):
    """Map core.exceptions onto the standard JSON error body for one blueprint."""

    @bp.errorhandler(IncompleteSectionsError)
    def _handle_incomplete(error: IncompleteSectionsError):
        return api_error(E.INCOMPLETE_SECTIONS, str(error),
                         details={"missing_sections": error.missing_titles})

    @bp.errorhandler(AuthenticationError)
    def _handle_unauthenticated(error: AuthenticationError):
        return api_error(E.UNAUTHENTICATED, str(error))

    @bp.errorhandler(ForbiddenError)
    def _handle_forbidden(error: ForbiddenError):
        return api_error(E.FORBIDDEN, str(error))

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        logger.info("Not found: %s", error, extra={"tenant_id": error.tenant_id})
        return api_error(E.NOT_FOUND, f"{error.resource} not found")

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @bp.errorhandler(PhaseLockedError)
    def _handle_phase_locked(error: PhaseLockedError):
        return api_error(E.PHASE_LOCKED, str(error), details={"phase": error.phase})

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return api_error(E.CONFLICT_STATE, str(error))

    @bp.errorhandler(IntegrityError)
    def _handle_integrity(error: IntegrityError):
        logger.warning("Integrity error on %s: %s", request.endpoint, error.orig)
        return api_error(E.CONFLICT_STATE, "Duplicate or constraint violation")

    @bp.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return error
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")

    return bp


def json_body() -> dict:
    """Request JSON object; anything else is a ValidationError."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
