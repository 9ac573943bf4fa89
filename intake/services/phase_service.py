"""
Phase Lifecycle Service — DRAFT / SUBMITTED transitions per (tenant, phase).

Phase state lives in two places for historical reasons:
  - phase 1: Tenant.status / Tenant.submitted_at (legacy, source of truth)
    plus an optional tenant_phases row kept in sync
  - phase >= 2: tenant_phases rows only, created lazily on first unlock

Which store a phase uses is decided by PHASE_STRATEGIES; callers never
branch on the phase number themselves.

The seller flow is a single-phase flow stored in onboarding_flows and is
handled by SellerFlowStrategy.

Transitions flush but never commit. The caller owns the transaction.
"""

import logging
from datetime import datetime, timezone

from intake.core.exceptions import NotFoundError, PhaseLockedError
from intake.models import db
from intake.models.auth import Tenant
from intake.models.onboarding import (
    FLOW_TYPE_SELLER,
    PHASE_DRAFT,
    PHASE_SUBMITTED,
    OnboardingFlow,
    TenantPhase,
)

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


def _get_tenant(tenant_id: int, *, for_update: bool = False) -> Tenant:
    query = Tenant.query.filter_by(id=tenant_id)
    if for_update:
        # overwrite any copy already in the identity map with the locked row
        query = query.with_for_update().populate_existing()
    tenant = query.first()
    if tenant is None:
        raise NotFoundError(resource="Tenant", resource_id=tenant_id)
    return tenant


def _get_record(tenant_id: int, phase: int) -> TenantPhase | None:
    return TenantPhase.query_for_tenant(tenant_id).filter_by(phase=phase).first()


def _upsert_record(tenant_id: int, phase: int) -> TenantPhase:
    record = _get_record(tenant_id, phase)
    if record is None:
        record = TenantPhase(tenant_id=tenant_id, phase=phase, status=PHASE_DRAFT)
        db.session.add(record)
    return record


# ═══════════════════════════════════════════════════════════════
# Strategies
# ═══════════════════════════════════════════════════════════════


class PhaseRecordStrategy:
    """Phase state stored only in tenant_phases."""

    def current_status(self, tenant: Tenant, record: TenantPhase | None) -> str | None:
        """Return DRAFT / SUBMITTED, or None when the phase was never unlocked."""
        return record.status if record else None

    def unlock(self, tenant: Tenant, phase: int) -> TenantPhase:
        record = _upsert_record(tenant.id, phase)
        record.status = PHASE_DRAFT
        record.unlocked_at = _now()
        record.submitted_at = None
        return record

    def submit(self, tenant: Tenant, phase: int) -> TenantPhase:
        record = _get_record(tenant.id, phase)
        if record is None:
            raise NotFoundError(resource="Phase", resource_id=phase, tenant_id=tenant.id)
        record.status = PHASE_SUBMITTED
        record.submitted_at = _now()
        return record

    def reopen(self, tenant: Tenant, phase: int) -> TenantPhase:
        record = _get_record(tenant.id, phase)
        if record is None:
            raise NotFoundError(resource="Phase", resource_id=phase, tenant_id=tenant.id)
        record.status = PHASE_DRAFT
        record.submitted_at = None
        return record


class LegacyTenantPhaseStrategy(PhaseRecordStrategy):
    """Phase 1: tenant columns are authoritative; the phase row mirrors them."""

    def current_status(self, tenant, record):
        return tenant.status or PHASE_DRAFT

    def unlock(self, tenant, phase):
        record = super().unlock(tenant, phase)
        tenant.status = PHASE_DRAFT
        tenant.submitted_at = None
        return record

    def submit(self, tenant, phase):
        now = _now()
        tenant.status = PHASE_SUBMITTED
        tenant.submitted_at = now
        record = _upsert_record(tenant.id, phase)
        record.status = PHASE_SUBMITTED
        record.submitted_at = now
        return record

    def reopen(self, tenant, phase):
        tenant.status = PHASE_DRAFT
        tenant.submitted_at = None
        record = _get_record(tenant.id, phase)
        if record is not None:
            record.status = PHASE_DRAFT
            record.submitted_at = None
        return record


PHASE_STRATEGIES = {1: LegacyTenantPhaseStrategy()}
_DEFAULT_STRATEGY = PhaseRecordStrategy()


def strategy_for(phase: int) -> PhaseRecordStrategy:
    return PHASE_STRATEGIES.get(phase, _DEFAULT_STRATEGY)


# ═══════════════════════════════════════════════════════════════
# Buyer phase API
# ═══════════════════════════════════════════════════════════════


def unlock_phase(tenant_id: int, phase: int) -> dict:
    """Open a phase for editing: DRAFT, unlocked_at=now, submitted_at cleared."""
    tenant = _get_tenant(tenant_id)
    record = strategy_for(phase).unlock(tenant, phase)
    db.session.flush()
    logger.info("Phase unlocked", extra={"tenant_id": tenant_id, "phase": phase})
    return record.to_dict()


def lock_phase(tenant_id: int, phase: int) -> dict:
    """Mark a phase SUBMITTED without running the completion gate.

    Administrative override; self-service submission goes through
    submission_service.submit.
    """
    tenant = _get_tenant(tenant_id)
    record = strategy_for(phase).submit(tenant, phase)
    db.session.flush()
    logger.info("Phase locked", extra={"tenant_id": tenant_id, "phase": phase})
    return record.to_dict()


def unlock_phase_for_editing(tenant_id: int, phase: int) -> dict:
    """Reopen a submitted phase. Section data is left untouched."""
    tenant = _get_tenant(tenant_id)
    record = strategy_for(phase).reopen(tenant, phase)
    db.session.flush()
    logger.info("Phase reopened for editing", extra={"tenant_id": tenant_id, "phase": phase})
    if record is None:
        return _legacy_phase_dict(tenant)
    return record.to_dict()


def _legacy_phase_dict(tenant: Tenant) -> dict:
    return {
        "phase": 1,
        "status": tenant.status or PHASE_DRAFT,
        "unlocked_at": None,
        "submitted_at": tenant.submitted_at.isoformat() if tenant.submitted_at else None,
    }


def status_map_for_tenant(tenant: Tenant) -> dict[int, str]:
    """{phase: status} for every unlocked phase; phase 1 is always present."""
    records = TenantPhase.query_for_tenant(tenant.id).populate_existing().all()
    by_phase = {r.phase: r for r in records}
    by_phase.setdefault(1, None)
    result = {}
    for phase, record in by_phase.items():
        status = strategy_for(phase).current_status(tenant, record)
        if status is not None:
            result[phase] = status
    return result


def phase_status_map(tenant_id: int) -> dict[int, str]:
    return status_map_for_tenant(_get_tenant(tenant_id))


def list_phase_statuses(tenant_id: int) -> list[dict]:
    """Ordered phase list; phase 1 is synthesised from the tenant if no row exists."""
    tenant = _get_tenant(tenant_id)
    records = {
        r.phase: r
        for r in TenantPhase.query_for_tenant(tenant_id).order_by(TenantPhase.phase).all()
    }
    result = []
    if 1 not in records:
        result.append(_legacy_phase_dict(tenant))
    for phase, record in sorted(records.items()):
        item = record.to_dict()
        item["status"] = strategy_for(phase).current_status(tenant, record)
        result.append(item)
    return result


def assert_phase_editable(tenant_id: int, phase: int) -> None:
    """Raise PhaseLockedError when the phase is SUBMITTED."""
    if phase_status_map(tenant_id).get(phase) == PHASE_SUBMITTED:
        raise PhaseLockedError(phase)


# ═══════════════════════════════════════════════════════════════
# Seller flow
# ═══════════════════════════════════════════════════════════════


class SellerFlowStrategy:
    """Single-phase seller flow stored in onboarding_flows."""

    flow_type = FLOW_TYPE_SELLER

    def get(self, tenant_id: int) -> OnboardingFlow | None:
        return (
            OnboardingFlow.query_for_tenant(tenant_id)
            .filter_by(flow_type=self.flow_type)
            .populate_existing()
            .first()
        )

    def current_status(self, tenant_id: int) -> str:
        flow = self.get(tenant_id)
        return flow.status if flow else PHASE_DRAFT

    def submit(self, tenant_id: int) -> OnboardingFlow:
        flow = self.get(tenant_id)
        if flow is None:
            flow = OnboardingFlow(tenant_id=tenant_id, flow_type=self.flow_type, unlocked_at=_now())
            db.session.add(flow)
        flow.status = PHASE_SUBMITTED
        flow.submitted_at = _now()
        return flow

    def unlock_for_editing(self, tenant_id: int) -> OnboardingFlow:
        flow = self.get(tenant_id)
        if flow is None:
            raise NotFoundError(resource="OnboardingFlow", resource_id=self.flow_type, tenant_id=tenant_id)
        flow.status = PHASE_DRAFT
        flow.submitted_at = None
        return flow


SELLER_FLOW = SellerFlowStrategy()


def seller_flow_status(tenant_id: int) -> dict:
    _get_tenant(tenant_id)
    flow = SELLER_FLOW.get(tenant_id)
    if flow is None:
        return {"flow_type": FLOW_TYPE_SELLER, "status": PHASE_DRAFT,
                "unlocked_at": None, "submitted_at": None}
    return flow.to_dict()


def unlock_seller_flow_for_editing(tenant_id: int) -> dict:
    _get_tenant(tenant_id)
    flow = SELLER_FLOW.unlock_for_editing(tenant_id)
    db.session.flush()
    logger.info("Seller flow reopened for editing", extra={"tenant_id": tenant_id})
    return flow.to_dict()


def assert_seller_flow_editable(tenant_id: int) -> None:
    if SELLER_FLOW.current_status(tenant_id) == PHASE_SUBMITTED:
        raise PhaseLockedError("seller")
