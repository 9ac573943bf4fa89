"""
Section Snapshot Service — append-only history of saved section payloads.

Design decisions:
    - SectionSnapshot is APPEND-ONLY. Nothing here updates or deletes a row.
    - rollback_to() restores by writing new rows that carry the historical
      payload, tagged with rolled_back_from; it never touches the domain
      tables. Re-applying the payload is the section writers' job.
    - Snapshots are a best-effort side channel of a save: the domain write
      has already been committed and must not be undone by a history failure.
"""

from __future__ import annotations

import logging
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from intake.core.exceptions import NotFoundError, ValidationError
from intake.models import db
from intake.models.auth import Tenant
from intake.models.onboarding import SectionSnapshot
from intake.services.sections import SNAPSHOT_SECTION_IDS

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100


def record_snapshot(
    section_id: int,
    data: dict,
    actor_id: int | None,
    tenant_id: int,
    program_id: int | None = None,
    *,
    rolled_back_from: datetime | None = None,
) -> SectionSnapshot:
    """Append one snapshot row and commit."""
    snapshot = SectionSnapshot(
        tenant_id=tenant_id,
        section_id=section_id,
        data=data or {},
        user_id=actor_id,
        program_id=program_id,
        rolled_back_from=rolled_back_from,
    )
    db.session.add(snapshot)
    db.session.commit()
    return snapshot


def record_snapshot_safely(
    section_id: int,
    data: dict,
    actor_id: int | None,
    tenant_id: int,
    program_id: int | None = None,
) -> SectionSnapshot | None:
    """record_snapshot() that logs instead of raising. Returns None on failure."""
    try:
        return record_snapshot(section_id, data, actor_id, tenant_id, program_id)
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(
            "Snapshot write failed",
            extra={"tenant_id": tenant_id, "section_id": section_id},
        )
        return None


def _history_limit(limit: int | None) -> int:
    if limit is not None:
        return limit
    return current_app.config.get("SNAPSHOT_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT)


def history(tenant_id: int, limit: int | None = None) -> list[dict]:
    """Newest-first snapshot list for a tenant."""
    rows = (
        SectionSnapshot.query_for_tenant(tenant_id)
        .order_by(SectionSnapshot.created_at.desc(), SectionSnapshot.id.desc())
        .limit(_history_limit(limit))
        .all()
    )
    return [r.to_dict() for r in rows]


def latest_snapshot_at(tenant_id: int, section_id: int, timestamp: datetime) -> SectionSnapshot | None:
    """Newest snapshot for a section created at or before ``timestamp``."""
    return (
        SectionSnapshot.query_for_tenant(tenant_id)
        .filter(
            SectionSnapshot.section_id == section_id,
            SectionSnapshot.created_at <= timestamp,
        )
        .order_by(SectionSnapshot.created_at.desc(), SectionSnapshot.id.desc())
        .first()
    )


def rollback_to(tenant_id: int, timestamp: datetime, actor_id: int | None) -> int:
    """Re-append, per section, the newest payload at or before ``timestamp``.

    Sections without earlier history are skipped. Returns the number of rows
    written (0 when nothing predates the timestamp).

    Raises:
        ValidationError: no timestamp given.
        NotFoundError: unknown tenant.
    """
    if timestamp is None:
        raise ValidationError("timestamp is required")
    if db.session.get(Tenant, tenant_id) is None:
        raise NotFoundError(resource="Tenant", resource_id=tenant_id)

    written = 0
    for section_id in SNAPSHOT_SECTION_IDS:
        source = latest_snapshot_at(tenant_id, section_id, timestamp)
        if source is None:
            continue
        db.session.add(SectionSnapshot(
            tenant_id=tenant_id,
            section_id=section_id,
            data=dict(source.data or {}),
            user_id=actor_id,
            program_id=source.program_id,
            rolled_back_from=timestamp,
        ))
        written += 1

    if written:
        db.session.commit()
    logger.info(
        "Snapshot rollback: %d section(s) restored",
        written,
        extra={"tenant_id": tenant_id, "actor_id": actor_id},
    )
    return written
