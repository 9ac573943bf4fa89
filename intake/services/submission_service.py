"""
Submission Gate — the only path from DRAFT to SUBMITTED for self-service
callers.

Check and transition happen in one transaction under a row lock on the
tenant, so two concurrent submits serialise: the second one sees the phase
already SUBMITTED and gets a ConflictError instead of re-stamping
submitted_at (or creating a second self network contract).

Statuses are always recomputed here; whatever the client last displayed is
never trusted.

Usage:
    from intake.services.submission_service import submit

    try:
        submit(tenant_id, 1, actor_id=user_id)
    except IncompleteSectionsError as exc:
        exc.missing_titles  # ["Providers & Credentials"]
"""

import logging

from intake.core.exceptions import ConflictError, IncompleteSectionsError, NotFoundError
from intake.models import db
from intake.models.buyer import NetworkContract
from intake.models.onboarding import PHASE_SUBMITTED
from intake.services import phase_service
from intake.services.completion_service import compute_statuses
from intake.services.phase_service import SELLER_FLOW, strategy_for
from intake.services.sections import (
    BUYER_REQUIRED_BY_PHASE,
    SELLER_REQUIRED_SECTIONS,
    CompletionStatus,
    section_title,
)
from intake.services.seller_completion_service import compute_seller_statuses

logger = logging.getLogger(__name__)


def _missing_titles(required, statuses: dict) -> list[str]:
    return [
        section_title(sid) for sid in required
        if statuses.get(sid) != CompletionStatus.COMPLETE
    ]


def submit(tenant_id: int, phase: int, *, actor_id: int | None = None) -> dict:
    """Gate and submit one buyer phase.

    Raises:
        NotFoundError: unknown tenant, unknown phase number, or phase never unlocked.
        ConflictError: phase already SUBMITTED.
        IncompleteSectionsError: a required section is not complete.
    """
    required = BUYER_REQUIRED_BY_PHASE.get(phase)
    if required is None:
        raise NotFoundError(resource="Phase", resource_id=phase, tenant_id=tenant_id)

    try:
        tenant = phase_service._get_tenant(tenant_id, for_update=True)
        phase_statuses = phase_service.status_map_for_tenant(tenant)
        current = phase_statuses.get(phase)
        if current is None:
            raise NotFoundError(resource="Phase", resource_id=phase, tenant_id=tenant_id)
        if current == PHASE_SUBMITTED:
            raise ConflictError(f"Phase {phase} has already been submitted")

        missing = _missing_titles(required, compute_statuses(tenant_id))
        if missing:
            raise IncompleteSectionsError(missing)

        record = strategy_for(phase).submit(tenant, phase)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Phase submitted",
        extra={"tenant_id": tenant_id, "phase": phase, "actor_id": actor_id},
    )
    return record.to_dict()


def submit_seller_flow(tenant_id: int, *, actor_id: int | None = None) -> dict:
    """Gate and submit the seller flow.

    A tenant that is also a buyer gets a self network contract covering all
    of its own locations, written in the same transaction.
    """
    try:
        tenant = phase_service._get_tenant(tenant_id, for_update=True)
        if SELLER_FLOW.current_status(tenant_id) == PHASE_SUBMITTED:
            raise ConflictError("Seller onboarding has already been submitted")

        missing = _missing_titles(SELLER_REQUIRED_SECTIONS, compute_seller_statuses(tenant_id))
        if missing:
            raise IncompleteSectionsError(missing)

        flow = SELLER_FLOW.submit(tenant_id)
        if tenant.is_affiliate:
            _ensure_self_contract(tenant_id)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Seller flow submitted",
        extra={"tenant_id": tenant_id, "actor_id": actor_id},
    )
    return flow.to_dict()


def _ensure_self_contract(tenant_id: int) -> NetworkContract:
    contract = NetworkContract.query_for_tenant(tenant_id).filter_by(seller_id=tenant_id).first()
    if contract is None:
        contract = NetworkContract(tenant_id=tenant_id, seller_id=tenant_id)
        db.session.add(contract)
    contract.scope_all = True
    return contract
