"""Shared utility functions for section writers and blueprints.

clean_text:       empty / whitespace-only strings → None
apply_fields:     whitelist copy of payload keys onto a model row
require_choice:   enum check that collects field errors instead of raising early
require_row_id:   integer check for ids echoed back in list payloads
parse_datetime:   ISO 8601 → aware UTC datetime (raises ValueError)
get_owned_or_404: tenant-scoped fetch by primary key
"""
import logging
from datetime import datetime, timezone

from intake.core.exceptions import NotFoundError, ValidationError
from intake.models import db

logger = logging.getLogger(__name__)


def clean_text(value):
    """Coerce a submitted value for a text column.

    Empty strings are stored as NULL so completion checks see "not filled".
    Non-string scalars are stringified.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    return value if value.strip() else None


def coerce_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def apply_fields(record, data: dict, text_fields=(), bool_fields=()):
    """Copy whitelisted keys from ``data`` onto ``record``.

    PUT semantics: a whitelisted key that is absent from ``data`` is reset
    (text → None, bool → False). Keys outside the whitelist are ignored.
    """
    for name in text_fields:
        setattr(record, name, clean_text(data.get(name)))
    for name in bool_fields:
        setattr(record, name, coerce_bool(data.get(name, False)))
    return record


def require_choice(errors: dict, field: str, value, choices, *, prefix: str = ""):
    """Record an error for ``field`` if ``value`` is set and not one of ``choices``."""
    if value is None or value == "":
        return
    if not isinstance(value, str):
        errors[f"{prefix}{field}"] = "must be a string"
    elif value not in choices:
        errors[f"{prefix}{field}"] = f"must be one of: {', '.join(choices)}"


def raise_if_errors(errors: dict, message: str = "Invalid section payload"):
    if errors:
        raise ValidationError(message, details=errors)


def require_list(data: dict, key: str) -> list:
    """Return ``data[key]`` as a list of dicts, or raise ValidationError."""
    value = data.get(key, [])
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise ValidationError(f"'{key}' must be a list of objects", details={key: "invalid"})
    return value


def require_row_id(value, field: str) -> int:
    """Return a client-supplied row id, or raise ValidationError unless it is an integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Row id must be an integer", details={field: "invalid"})
    return value


def parse_datetime(value) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC.

    Raises ValueError on empty or malformed input.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        if not value:
            raise ValueError("Timestamp is required")
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError("Invalid timestamp. Use ISO 8601 (YYYY-MM-DDTHH:MM:SS).") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def get_owned_or_404(model, pk, tenant_id: int, label: str | None = None):
    """Fetch a tenant-scoped row by primary key.

    A row that exists under another tenant is reported as not found.
    """
    obj = model.query_for_tenant(tenant_id).filter_by(id=pk).first()
    if obj is None:
        raise NotFoundError(resource=label or model.__name__, resource_id=pk, tenant_id=tenant_id)
    return obj


def delete_owned(model, pk, tenant_id: int, label: str | None = None) -> None:
    obj = get_owned_or_404(model, pk, tenant_id, label)
    db.session.delete(obj)
    db.session.commit()
    logger.info("%s deleted", label or model.__name__,
                extra={"tenant_id": tenant_id})
