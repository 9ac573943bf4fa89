"""
Section catalog, prerequisite graph and lock resolver.

Two static catalogs exist: the buyer flow (integer ids 1-12, two phases) and
the seller flow ("S-1" .. "S-R", one phase). Both are defined once here and
never change at runtime.

Lock rule (identical for both flows):
    locked = phase_statuses[section.min_phase] == "SUBMITTED"
             OR unmet_prerequisites(section, statuses) != []

The two halves are independent; a section with no prerequisites can only be
locked by phase submission.

Usage:
    from intake.services.sections import is_locked, unmet_prerequisites

    unmet = unmet_prerequisites(10, statuses)
    if is_locked(6, statuses, {1: "DRAFT"}):
        ...
"""

from __future__ import annotations

from dataclasses import dataclass, field

from intake.core.exceptions import NotFoundError
from intake.models.onboarding import PHASE_SUBMITTED


class CompletionStatus:
    """Derived section status. Never persisted."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SectionMeta:
    id: int | str
    title: str
    group: str
    description: str
    min_phase: int = 1
    hidden: bool = False
    required_fields: tuple[str, ...] = field(default_factory=tuple)
    snapshot_id: int | None = None
    read_only: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "group": self.group,
            "description": self.description,
            "min_phase": self.min_phase,
            "hidden": self.hidden,
        }


# ── Required field lists ────────────────────────────────────────────────────

PROGRAM_OVERVIEW_FIELDS = (
    "legal_name",
    "program_name",
    "admin_contact_name",
    "admin_contact_email",
    "executive_sponsor_name",
    "executive_sponsor_email",
    "it_contact_name",
)

PAYOUT_FIELDS = (
    "w9_file_path",
    "ach_routing_number",
    "ach_account_number",
    "ach_account_type",
    "ach_account_holder_name",
    "bank_doc_file_path",
)
PAYMENT_FIELDS = (
    "payment_ach_account_holder_name",
    "payment_ach_account_type",
    "payment_ach_routing_number",
    "payment_ach_account_number",
)

LOCATION_ROW_FIELDS = (
    "location_name",
    "street_address",
    "city",
    "state",
    "zip",
    "location_npi",
    "phone_number",
)
PROVIDER_ROW_FIELDS = ("first_name", "last_name", "npi", "license_number")
LAB_NETWORK_FIELDS = ("network_type", "coordination_contact_name")
CARE_NAV_FIELDS = ("acknowledged", "primary_escalation_name", "secondary_escalation_name")

SELLER_ORG_FIELDS = ("legal_name", "admin_contact_name", "admin_contact_email")
SELLER_BILLING_FIELDS = (
    "ach_account_holder_name",
    "ach_routing_number",
    "ach_account_number",
    "ach_account_type",
)


# ═══════════════════════════════════════════════════════════════
# Buyer flow
# ═══════════════════════════════════════════════════════════════

BUYER_SECTIONS: tuple[SectionMeta, ...] = (
    SectionMeta(1, "Client & Program Overview", "program",
                "Identify your organization and program details",
                required_fields=PROGRAM_OVERVIEW_FIELDS, snapshot_id=1),
    SectionMeta(2, "Default Program Services", "program",
                "Confirm included services",
                required_fields=("default_services_confirmed",), snapshot_id=2),
    SectionMeta(3, "In-Person & Extended Services", "program",
                "Select additional services", snapshot_id=3),
    SectionMeta(4, "Payouts & Payments", "program",
                "Payment and billing setup",
                required_fields=PAYOUT_FIELDS + PAYMENT_FIELDS, snapshot_id=4),
    SectionMeta(5, "Physical Locations", "operations",
                "Add your practice locations",
                required_fields=LOCATION_ROW_FIELDS, snapshot_id=5),
    SectionMeta(6, "Providers & Credentials", "operations",
                "Add provider information",
                required_fields=PROVIDER_ROW_FIELDS, snapshot_id=6),
    SectionMeta(7, "Lab Network", "operations",
                "Lab network configuration",
                required_fields=LAB_NETWORK_FIELDS, snapshot_id=7),
    SectionMeta(8, "Radiology Network", "operations",
                "Radiology network setup", hidden=True, snapshot_id=8),
    SectionMeta(9, "Care Navigation", "operations",
                "Care Nav services and escalation",
                required_fields=CARE_NAV_FIELDS, snapshot_id=9),
    SectionMeta(10, "Review & Submit", "review",
                "Review and submit your form", snapshot_id=10, read_only=True),
    SectionMeta(11, "Service Configuration", "service_config",
                "Configure covered sub-services for each category",
                min_phase=2, snapshot_id=11),
    SectionMeta(12, "Review & Submit Phase 2", "review",
                "Review service configuration and submit",
                min_phase=2, snapshot_id=12, read_only=True),
)

# Sections not listed have no prerequisites.
BUYER_PREREQUISITES: dict[int, tuple[int, ...]] = {
    2: (1,),
    3: (1,),
    4: (1,),
    6: (5,),
    10: (1, 2, 3, 4, 5, 6, 7, 9),
    12: (11,),
}

# Required for the submission gate, per phase. Section 8 is intentionally
# absent: it is hidden and always reports complete.
BUYER_REQUIRED_BY_PHASE: dict[int, tuple[int, ...]] = {
    1: (1, 2, 3, 4, 5, 6, 7, 9),
    2: (11,),
}


# ═══════════════════════════════════════════════════════════════
# Seller flow
# ═══════════════════════════════════════════════════════════════

SELLER_SECTIONS: tuple[SectionMeta, ...] = (
    SectionMeta("S-1", "Organization Info", "seller",
                "Legal name and organization contacts",
                required_fields=SELLER_ORG_FIELDS, snapshot_id=101),
    SectionMeta("S-2", "Locations", "seller",
                "Add your care-delivery locations",
                required_fields=LOCATION_ROW_FIELDS, snapshot_id=102),
    SectionMeta("S-3", "Providers", "seller",
                "Add your provider roster",
                required_fields=PROVIDER_ROW_FIELDS, snapshot_id=103),
    SectionMeta("S-4", "Services Offered", "seller",
                "Select the services you deliver", snapshot_id=104),
    SectionMeta("S-5", "Lab Network", "seller",
                "Lab network configuration",
                required_fields=LAB_NETWORK_FIELDS, snapshot_id=105),
    SectionMeta("S-6", "Billing Setup", "seller",
                "Payout account details",
                required_fields=SELLER_BILLING_FIELDS, snapshot_id=106),
    SectionMeta("S-R", "Review & Submit", "review",
                "Review and submit your care-delivery profile", read_only=True),
)

SELLER_PREREQUISITES: dict[str, tuple[str, ...]] = {
    "S-R": ("S-1", "S-2", "S-3", "S-4", "S-5", "S-6"),
}

SELLER_REQUIRED_SECTIONS: tuple[str, ...] = ("S-1", "S-2", "S-3", "S-4", "S-5", "S-6")


_BUYER_BY_ID = {s.id: s for s in BUYER_SECTIONS}
_SELLER_BY_ID = {s.id: s for s in SELLER_SECTIONS}

# Every snapshot id a rollback has to consider.
SNAPSHOT_SECTION_IDS: tuple[int, ...] = tuple(
    s.snapshot_id for s in BUYER_SECTIONS + SELLER_SECTIONS if s.snapshot_id is not None
)


def _catalog_for(section_id):
    if isinstance(section_id, str):
        return _SELLER_BY_ID, SELLER_PREREQUISITES
    return _BUYER_BY_ID, BUYER_PREREQUISITES


def get_section_meta(section_id: int | str) -> SectionMeta:
    """Return the static SectionMeta or raise NotFoundError."""
    by_id, _ = _catalog_for(section_id)
    meta = by_id.get(section_id)
    if meta is None:
        raise NotFoundError(resource="Section", resource_id=section_id)
    return meta


def section_title(section_id: int | str) -> str:
    by_id, _ = _catalog_for(section_id)
    meta = by_id.get(section_id)
    return meta.title if meta else f"Section {section_id}"


def prerequisites_of(section_id: int | str) -> tuple:
    _, graph = _catalog_for(section_id)
    return graph.get(section_id, ())


# ═══════════════════════════════════════════════════════════════
# Lock resolver
# ═══════════════════════════════════════════════════════════════

def unmet_prerequisites(section_id: int | str, statuses: dict) -> list[SectionMeta]:
    """Return SectionMeta for every prerequisite whose status is not complete.

    A prerequisite missing from ``statuses`` counts as unmet.
    """
    get_section_meta(section_id)
    return [
        get_section_meta(pid)
        for pid in prerequisites_of(section_id)
        if statuses.get(pid) != CompletionStatus.COMPLETE
    ]


def is_phase_submitted(phase: int, phase_statuses: dict) -> bool:
    return phase_statuses.get(phase) == PHASE_SUBMITTED


def is_locked(section_id: int | str, statuses: dict, phase_statuses: dict) -> bool:
    """True when the section's phase is submitted or a prerequisite is unmet."""
    meta = get_section_meta(section_id)
    if is_phase_submitted(meta.min_phase, phase_statuses):
        return True
    return bool(unmet_prerequisites(section_id, statuses))


def lock_map(sections, statuses: dict, phase_statuses: dict) -> dict:
    """Per-section lock state with the titles of unmet prerequisites.

    Returns:
        {section_id: {"locked": bool, "phase_submitted": bool,
                      "unmet_prerequisites": [title, ...]}}
    """
    result = {}
    for meta in sections:
        unmet = unmet_prerequisites(meta.id, statuses)
        phase_submitted = is_phase_submitted(meta.min_phase, phase_statuses)
        result[meta.id] = {
            "locked": phase_submitted or bool(unmet),
            "phase_submitted": phase_submitted,
            "unmet_prerequisites": [m.title for m in unmet],
        }
    return result


def visible_sections(unlocked_phases) -> list[SectionMeta]:
    """Buyer sections shown for the given unlocked phase numbers."""
    unlocked = set(unlocked_phases)
    return [s for s in BUYER_SECTIONS if not s.hidden and s.min_phase in unlocked]
