"""
Onboarding overview — everything the form shell needs in one read.

Buyer statuses, phase list, visible sections and per-section lock state;
seller statuses, flow status and lock state when the tenant is a seller.
"""

from intake.services import phase_service
from intake.services.completion_service import compute_statuses
from intake.services.phase_service import SELLER_FLOW
from intake.services.sections import SELLER_SECTIONS, lock_map, visible_sections
from intake.services.seller_completion_service import compute_seller_statuses


def load_overview(tenant_id: int) -> dict:
    tenant = phase_service._get_tenant(tenant_id)
    phase_statuses = phase_service.status_map_for_tenant(tenant)
    statuses = compute_statuses(tenant_id)
    sections = visible_sections(phase_statuses.keys())

    overview = {
        "tenant": {
            "id": tenant.id,
            "name": tenant.name,
            "legal_name": tenant.legal_name,
            "is_affiliate": tenant.is_affiliate,
            "is_seller": tenant.is_seller,
        },
        "statuses": statuses,
        "phases": phase_service.list_phase_statuses(tenant_id),
        "sections": [s.to_dict() for s in sections],
        "locks": lock_map(sections, statuses, phase_statuses),
    }

    if tenant.is_seller:
        seller_statuses = compute_seller_statuses(tenant_id)
        flow_status = SELLER_FLOW.current_status(tenant_id)
        overview["seller"] = {
            "statuses": seller_statuses,
            "flow": phase_service.seller_flow_status(tenant_id),
            "sections": [s.to_dict() for s in SELLER_SECTIONS],
            "locks": lock_map(SELLER_SECTIONS, seller_statuses, {1: flow_status}),
        }
    return overview
