"""
Seller Completion Service — status map for the seller flow (S-1 .. S-R).

Same reduction primitives as the buyer flow, fed from the seller tables.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from intake.models import db
from intake.models.auth import Tenant
from intake.models.onboarding import PHASE_SUBMITTED
from intake.models.seller import (
    SellerLabNetwork,
    SellerLocation,
    SellerProfile,
    SellerProvider,
    SellerServiceOffering,
)
from intake.services import completion_rules as rules
from intake.services.phase_service import SELLER_FLOW
from intake.services.sections import (
    LOCATION_ROW_FIELDS,
    PROVIDER_ROW_FIELDS,
    SELLER_BILLING_FIELDS,
    SELLER_ORG_FIELDS,
    SELLER_REQUIRED_SECTIONS,
    SELLER_SECTIONS,
    CompletionStatus,
)

logger = logging.getLogger(__name__)

_DEGRADABLE_ERRORS = (AttributeError, TypeError, ValueError, KeyError)

# S-6 counts as untouched while none of these is filled.
_BILLING_PRESENCE_FIELDS = ("ach_account_holder_name", "ach_routing_number", "ach_account_number")


@dataclass
class SellerRecords:
    tenant: Tenant | None = None
    profile: SellerProfile | None = None
    locations: list = field(default_factory=list)
    providers: list = field(default_factory=list)
    offerings: list = field(default_factory=list)
    lab_network: SellerLabNetwork | None = None
    flow_status: str | None = None


def load_seller_records(tenant_id: int) -> SellerRecords:
    tenant = db.session.get(Tenant, tenant_id)
    if tenant is None:
        return SellerRecords()
    return SellerRecords(
        tenant=tenant,
        profile=SellerProfile.query_for_tenant(tenant_id).first(),
        locations=SellerLocation.query_for_tenant(tenant_id).all(),
        providers=SellerProvider.query_for_tenant(tenant_id).all(),
        offerings=SellerServiceOffering.query_for_tenant(tenant_id).all(),
        lab_network=SellerLabNetwork.query_for_tenant(tenant_id).first(),
        flow_status=SELLER_FLOW.current_status(tenant_id),
    )


def _billing(r: SellerRecords) -> str:
    profile = r.profile
    if profile is None or rules.count_filled(profile, _BILLING_PRESENCE_FIELDS) == 0:
        return CompletionStatus.NOT_STARTED
    if rules.count_filled(profile, SELLER_BILLING_FIELDS) == len(SELLER_BILLING_FIELDS):
        return CompletionStatus.COMPLETE
    return CompletionStatus.IN_PROGRESS


SECTION_EVALUATORS = {
    "S-1": lambda r: rules.record_block(r.profile, SELLER_ORG_FIELDS),
    "S-2": lambda r: rules.per_row_completeness(r.locations, LOCATION_ROW_FIELDS),
    "S-3": lambda r: rules.per_row_completeness(r.providers, PROVIDER_ROW_FIELDS),
    "S-4": lambda r: rules.collection_selection(r.offerings),
    "S-5": lambda r: rules.conditional_record(r.lab_network, rules.lab_network_ready),
    "S-6": _billing,
}


def _review(r: SellerRecords, statuses: dict) -> str:
    """Submitted flow: complete. Ready to submit: in_progress."""
    if r.flow_status == PHASE_SUBMITTED:
        return CompletionStatus.COMPLETE
    if all(statuses.get(code) == CompletionStatus.COMPLETE for code in SELLER_REQUIRED_SECTIONS):
        return CompletionStatus.IN_PROGRESS
    return CompletionStatus.NOT_STARTED


def evaluate_seller_statuses(records: SellerRecords) -> dict[str, str]:
    statuses: dict[str, str] = {}
    for meta in SELLER_SECTIONS:
        if meta.id not in SECTION_EVALUATORS:
            continue
        if records.tenant is None:
            statuses[meta.id] = CompletionStatus.NOT_STARTED
            continue
        try:
            statuses[meta.id] = SECTION_EVALUATORS[meta.id](records)
        except _DEGRADABLE_ERRORS:
            logger.warning(
                "Seller section %s evaluation failed; reporting not_started",
                meta.id,
                exc_info=True,
                extra={"tenant_id": records.tenant.id},
            )
            statuses[meta.id] = CompletionStatus.NOT_STARTED
    statuses["S-R"] = _review(records, statuses)
    return statuses


def compute_seller_statuses(tenant_id: int) -> dict[str, str]:
    """Live status map for every seller section of a tenant."""
    return evaluate_seller_statuses(load_seller_records(tenant_id))
