"""
Buyer Completion Service — derives the per-section status map.

Status is a view, never a stored fact: every call re-reads the domain
tables. The reads are not wrapped in one transaction; a concurrent edit
landing between two reads is acceptable for a human-paced form.

Two steps, so the dashboard load and the save path share one evaluator:
  1. load_buyer_records(tenant_id)    → BuyerRecords bundle (I/O)
  2. evaluate_buyer_statuses(records) → {section_id: status} (pure)

Usage:
    from intake.services.completion_service import compute_statuses

    statuses = compute_statuses(tenant_id)
    statuses[6]  # "in_progress"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from intake.models import db
from intake.models.auth import Tenant
from intake.models.buyer import (
    SUB_SERVICE_TYPES,
    CareNavConfig,
    LabNetwork,
    Location,
    Program,
    Provider,
    RadiologyNetwork,
    Service,
    SubService,
)
from intake.models.onboarding import PHASE_SUBMITTED
from intake.services import completion_rules as rules
from intake.services import phase_service
from intake.services.sections import (
    BUYER_SECTIONS,
    CARE_NAV_FIELDS,
    LOCATION_ROW_FIELDS,
    PAYMENT_FIELDS,
    PAYOUT_FIELDS,
    PROVIDER_ROW_FIELDS,
    CompletionStatus,
)

logger = logging.getLogger(__name__)

# Evaluation errors that degrade a section to not_started instead of raising.
_DEGRADABLE_ERRORS = (AttributeError, TypeError, ValueError, KeyError)


@dataclass
class BuyerRecords:
    """Everything the buyer evaluator reads, fetched in one pass."""

    tenant: Tenant | None = None
    program: Program | None = None
    services: list = field(default_factory=list)
    sub_services: list = field(default_factory=list)
    locations: list = field(default_factory=list)
    providers: list = field(default_factory=list)
    lab_network: LabNetwork | None = None
    radiology_network: RadiologyNetwork | None = None
    care_nav: CareNavConfig | None = None
    phase_statuses: dict = field(default_factory=dict)


def load_buyer_records(tenant_id: int) -> BuyerRecords:
    """Fetch the buyer domain records for one tenant.

    An unknown tenant yields an empty bundle (every section not_started).
    """
    tenant = db.session.get(Tenant, tenant_id)
    if tenant is None:
        return BuyerRecords()

    program = Program.query_for_tenant(tenant_id).first()
    services, sub_services = [], []
    if program is not None:
        services = Service.query.filter_by(program_id=program.id).all()
        sub_services = SubService.query.filter_by(program_id=program.id).all()

    return BuyerRecords(
        tenant=tenant,
        program=program,
        services=services,
        sub_services=sub_services,
        locations=Location.query_for_tenant(tenant_id).all(),
        providers=Provider.query_for_tenant(tenant_id).all(),
        lab_network=LabNetwork.query_for_tenant(tenant_id).first(),
        radiology_network=RadiologyNetwork.query_for_tenant(tenant_id).first(),
        care_nav=CareNavConfig.query_for_tenant(tenant_id).first(),
        phase_statuses=phase_service.status_map_for_tenant(tenant),
    )


# ── Section evaluators ──────────────────────────────────────────────────────


def _program_overview(r: BuyerRecords) -> str:
    if r.program is None:
        return CompletionStatus.NOT_STARTED
    p = r.program
    return rules.contact_block([
        r.tenant.legal_name,
        p.program_name,
        p.admin_contact_name,
        p.admin_contact_email,
        p.executive_sponsor_name,
        p.executive_sponsor_email,
        p.it_contact_name,
    ])


def _default_services(r: BuyerRecords) -> str:
    return rules.boolean_confirmation(r.program is not None and r.program.default_services_confirmed)


def _extended_services(r: BuyerRecords) -> str:
    return rules.collection_selection(r.services)


def _payouts_and_payments(r: BuyerRecords) -> str:
    return rules.record_block(r.program, PAYOUT_FIELDS + PAYMENT_FIELDS)


def _locations(r: BuyerRecords) -> str:
    return rules.per_row_completeness(r.locations, LOCATION_ROW_FIELDS)


def _providers(r: BuyerRecords) -> str:
    return rules.per_row_completeness(r.providers, PROVIDER_ROW_FIELDS)


def _lab_network(r: BuyerRecords) -> str:
    return rules.conditional_record(r.lab_network, rules.lab_network_ready)


def _always_complete(r: BuyerRecords) -> str:
    return CompletionStatus.COMPLETE


def _care_navigation(r: BuyerRecords) -> str:
    return rules.conditional_record(
        r.care_nav,
        lambda cn: rules.count_filled(cn, CARE_NAV_FIELDS) == len(CARE_NAV_FIELDS),
    )


def _phase_submitted(phase: int):
    def _evaluate(r: BuyerRecords) -> str:
        if r.phase_statuses.get(phase) == PHASE_SUBMITTED:
            return CompletionStatus.COMPLETE
        return CompletionStatus.NOT_STARTED
    return _evaluate


def _service_configuration(r: BuyerRecords) -> str:
    """Every configurable category picked in section 3 needs one sub-service."""
    if 2 not in r.phase_statuses:
        return CompletionStatus.NOT_STARTED

    categories = [
        s.service_type for s in r.services
        if s.selected and s.service_type in SUB_SERVICE_TYPES
    ]
    if not categories:
        return CompletionStatus.NOT_STARTED

    with_selection = {
        ss.service_type for ss in r.sub_services
        if ss.selected and ss.sub_type in SUB_SERVICE_TYPES.get(ss.service_type, ())
    }
    covered = [c for c in categories if c in with_selection]
    if len(covered) == len(categories):
        return CompletionStatus.COMPLETE
    if covered:
        return CompletionStatus.IN_PROGRESS
    return CompletionStatus.NOT_STARTED


# Section 8 (Radiology Network) is hidden but still a dependency of older
# prerequisite chains; it must always report complete.
ALWAYS_COMPLETE_OVERRIDES = frozenset({8})

SECTION_EVALUATORS = {
    1: _program_overview,
    2: _default_services,
    3: _extended_services,
    4: _payouts_and_payments,
    5: _locations,
    6: _providers,
    7: _lab_network,
    9: _care_navigation,
    10: _phase_submitted(1),
    11: _service_configuration,
    12: _phase_submitted(2),
}
SECTION_EVALUATORS.update({sid: _always_complete for sid in ALWAYS_COMPLETE_OVERRIDES})


def evaluate_buyer_statuses(records: BuyerRecords) -> dict[int, str]:
    """Reduce a BuyerRecords bundle to {section_id: status} for all 12 sections."""
    statuses: dict[int, str] = {}
    for meta in BUYER_SECTIONS:
        evaluator = SECTION_EVALUATORS[meta.id]
        if records.tenant is None and meta.id not in ALWAYS_COMPLETE_OVERRIDES:
            statuses[meta.id] = CompletionStatus.NOT_STARTED
            continue
        try:
            statuses[meta.id] = evaluator(records)
        except _DEGRADABLE_ERRORS:
            logger.warning(
                "Section %s evaluation failed; reporting not_started",
                meta.id,
                exc_info=True,
                extra={"tenant_id": records.tenant.id if records.tenant else None},
            )
            statuses[meta.id] = CompletionStatus.NOT_STARTED
    return statuses


def compute_statuses(tenant_id: int) -> dict[int, str]:
    """Live status map for every buyer section of a tenant."""
    return evaluate_buyer_statuses(load_buyer_records(tenant_id))
