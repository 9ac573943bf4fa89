"""
Buyer Section Service — writes one section's payload and returns live statuses.

One code path serves both the tenant's own users and platform
administrators; they differ only in RequestContext.is_elevated, which
bypasses the submitted-phase lock.

Save sequence:
    1. resolve SectionMeta (NotFoundError), reject read-only sections
    2. unless elevated: phase must be unlocked and not SUBMITTED
    3. section writer → commit
    4. snapshot (best-effort, after commit)
    5. return compute_statuses()

Prerequisites are not enforced here; they only drive UI locking.
"""

import logging

from intake.core.exceptions import ConflictError, ValidationError
from intake.models import db
from intake.models.auth import Tenant
from intake.models.buyer import (
    ACH_ACCOUNT_TYPES,
    LAB_NETWORK_TYPES,
    LOCATION_ACCESS_TYPES,
    PROVIDER_TYPES,
    SERVICE_TYPES,
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
from intake.services import phase_service
from intake.services.completion_service import compute_statuses
from intake.services.context_service import RequestContext
from intake.services.sections import PAYMENT_FIELDS, PAYOUT_FIELDS, get_section_meta
from intake.services.snapshot_service import record_snapshot_safely
from intake.utils.helpers import (
    apply_fields,
    clean_text,
    coerce_bool,
    delete_owned,
    get_owned_or_404,
    raise_if_errors,
    require_choice,
    require_list,
    require_row_id,
)

logger = logging.getLogger(__name__)

PROGRAM_CONTACT_FIELDS = (
    "program_name",
    "admin_contact_name",
    "admin_contact_email",
    "executive_sponsor_name",
    "executive_sponsor_email",
    "it_contact_name",
    "it_contact_email",
    "it_contact_phone",
)
LOCATION_TEXT_FIELDS = (
    "location_name",
    "street_address",
    "street_address2",
    "city",
    "state",
    "zip",
    "close_by_description",
    "location_npi",
    "phone_number",
    "hours_of_operation",
    "access_type",
    "scheduling_system_override",
)
LOCATION_BOOL_FIELDS = ("has_on_site_labs", "has_on_site_radiology", "has_on_site_pharmacy")
PROVIDER_TEXT_FIELDS = (
    "first_name",
    "last_name",
    "provider_type",
    "license_number",
    "license_state",
    "npi",
    "dea_number",
)
LAB_TEXT_FIELDS = (
    "network_type",
    "other_network_name",
    "coordination_contact_name",
    "coordination_contact_email",
    "coordination_contact_phone",
)
RADIOLOGY_TEXT_FIELDS = (
    "network_name",
    "order_delivery_method",
    "order_delivery_endpoint",
    "results_delivery_method",
    "results_delivery_endpoint",
    "coordination_contact_name",
    "coordination_contact_email",
    "coordination_contact_phone",
)
CARE_NAV_TEXT_FIELDS = (
    "primary_escalation_name",
    "primary_escalation_email",
    "secondary_escalation_name",
    "secondary_escalation_email",
)


def _get_or_create_program(tenant_id: int) -> Program:
    program = Program.query_for_tenant(tenant_id).first()
    if program is None:
        program = Program(tenant_id=tenant_id)
        db.session.add(program)
        db.session.flush()
    return program


def _get_or_create(model, tenant_id: int):
    record = model.query_for_tenant(tenant_id).first()
    if record is None:
        record = model(tenant_id=tenant_id)
        db.session.add(record)
    return record


def _pick(data: dict, fields) -> dict:
    return {f: data.get(f) for f in fields}


# ── Section writers ─────────────────────────────────────────────────────────
# Each writer applies the payload and returns the snapshot payload.


def _write_program_overview(ctx: RequestContext, data: dict) -> dict:
    tenant = db.session.get(Tenant, ctx.tenant_id)
    tenant.legal_name = clean_text(data.get("legal_name"))
    program = _get_or_create_program(ctx.tenant_id)
    apply_fields(program, data, text_fields=PROGRAM_CONTACT_FIELDS)
    return _pick(data, ("legal_name",) + PROGRAM_CONTACT_FIELDS)


def _write_default_services(ctx, data):
    program = _get_or_create_program(ctx.tenant_id)
    program.default_services_confirmed = coerce_bool(data.get("default_services_confirmed"))
    return {"default_services_confirmed": program.default_services_confirmed}


def _write_extended_services(ctx, data):
    rows = require_list(data, "services")
    errors = {}
    seen = set()
    for i, row in enumerate(rows):
        key = f"services[{i}].service_type"
        service_type = row.get("service_type")
        require_choice(errors, "service_type", service_type, SERVICE_TYPES, prefix=f"services[{i}].")
        if not service_type:
            errors[key] = "required"
        elif key in errors:
            continue
        elif service_type in seen:
            errors[key] = "duplicate"
        else:
            seen.add(service_type)
    raise_if_errors(errors)

    program = _get_or_create_program(ctx.tenant_id)
    Service.query.filter_by(program_id=program.id).delete()
    saved = []
    for row in rows:
        service = Service(
            program_id=program.id,
            service_type=row["service_type"],
            selected=coerce_bool(row.get("selected")),
            other_name=clean_text(row.get("other_name")),
        )
        db.session.add(service)
        saved.append(service.to_dict())
    return {"services": saved}


def _write_payouts_and_payments(ctx, data):
    errors = {}
    require_choice(errors, "ach_account_type", data.get("ach_account_type"), ACH_ACCOUNT_TYPES)
    require_choice(errors, "payment_ach_account_type", data.get("payment_ach_account_type"), ACH_ACCOUNT_TYPES)
    raise_if_errors(errors)

    program = _get_or_create_program(ctx.tenant_id)
    apply_fields(program, data, text_fields=PAYOUT_FIELDS + PAYMENT_FIELDS)
    return _pick(data, PAYOUT_FIELDS + PAYMENT_FIELDS)


def _upsert_rows(ctx, model, key, rows, text_fields, bool_fields=(), json_fields=()):
    """Update rows that carry an id, create the rest. Returns the saved rows."""
    saved = []
    for i, row in enumerate(rows):
        if row.get("id") not in (None, ""):
            row_id = require_row_id(row["id"], f"{key}[{i}].id")
            record = get_owned_or_404(model, row_id, ctx.tenant_id)
        else:
            record = model(tenant_id=ctx.tenant_id)
            db.session.add(record)
        apply_fields(record, row, text_fields=text_fields, bool_fields=bool_fields)
        for name in json_fields:
            setattr(record, name, row.get(name) or None)
        saved.append(record)
    db.session.flush()
    return saved


def _write_locations(ctx, data):
    rows = require_list(data, "locations")
    errors = {}
    for i, row in enumerate(rows):
        require_choice(errors, "access_type", row.get("access_type"), LOCATION_ACCESS_TYPES, prefix=f"locations[{i}].")
    raise_if_errors(errors)

    tenant = db.session.get(Tenant, ctx.tenant_id)
    tenant.default_scheduling_system = clean_text(data.get("default_scheduling_system"))
    saved = _upsert_rows(
        ctx, Location, "locations", rows, LOCATION_TEXT_FIELDS, LOCATION_BOOL_FIELDS, json_fields=("weekly_schedule",),
    )
    return {
        "default_scheduling_system": tenant.default_scheduling_system,
        "locations": [loc.to_dict() for loc in saved],
    }


def _write_providers(ctx, data):
    rows = require_list(data, "providers")
    errors = {}
    for i, row in enumerate(rows):
        require_choice(errors, "provider_type", row.get("provider_type"), PROVIDER_TYPES, prefix=f"providers[{i}].")
    raise_if_errors(errors)

    saved = _upsert_rows(ctx, Provider, "providers", rows, PROVIDER_TEXT_FIELDS)
    return {"providers": [p.to_dict() for p in saved]}


def _write_lab_network(ctx, data):
    errors = {}
    require_choice(errors, "network_type", data.get("network_type"), LAB_NETWORK_TYPES)
    raise_if_errors(errors)

    lab = _get_or_create(LabNetwork, ctx.tenant_id)
    apply_fields(lab, data, text_fields=LAB_TEXT_FIELDS, bool_fields=("integration_acknowledged",))
    return _pick(data, LAB_TEXT_FIELDS + ("integration_acknowledged",))


def _write_radiology_network(ctx, data):
    radiology = _get_or_create(RadiologyNetwork, ctx.tenant_id)
    apply_fields(radiology, data, text_fields=RADIOLOGY_TEXT_FIELDS)
    return _pick(data, RADIOLOGY_TEXT_FIELDS)


def _write_care_navigation(ctx, data):
    care_nav = _get_or_create(CareNavConfig, ctx.tenant_id)
    apply_fields(care_nav, data, text_fields=CARE_NAV_TEXT_FIELDS, bool_fields=("acknowledged",))
    return _pick(data, CARE_NAV_TEXT_FIELDS + ("acknowledged",))


def _write_service_configuration(ctx, data):
    rows = require_list(data, "sub_services")
    errors = {}
    seen = set()
    for i, row in enumerate(rows):
        category = row.get("service_type")
        if not isinstance(category, str) or category not in SUB_SERVICE_TYPES:
            errors[f"sub_services[{i}].service_type"] = "not a configurable service category"
            continue
        key = f"sub_services[{i}].sub_type"
        sub_type = row.get("sub_type")
        require_choice(errors, "sub_type", sub_type, SUB_SERVICE_TYPES[category], prefix=f"sub_services[{i}].")
        if not sub_type:
            errors[key] = "required"
        elif key in errors:
            continue
        elif (category, sub_type) in seen:
            errors[key] = "duplicate"
        else:
            seen.add((category, sub_type))
    raise_if_errors(errors)

    program = _get_or_create_program(ctx.tenant_id)
    SubService.query.filter_by(program_id=program.id).delete()
    saved = []
    for row in rows:
        db.session.add(SubService(
            program_id=program.id,
            service_type=row["service_type"],
            sub_type=row["sub_type"],
            selected=coerce_bool(row.get("selected")),
        ))
        saved.append({
            "service_type": row["service_type"],
            "sub_type": row["sub_type"],
            "selected": coerce_bool(row.get("selected")),
        })
    return {"sub_services": saved}


SECTION_WRITERS = {
    1: _write_program_overview,
    2: _write_default_services,
    3: _write_extended_services,
    4: _write_payouts_and_payments,
    5: _write_locations,
    6: _write_providers,
    7: _write_lab_network,
    8: _write_radiology_network,
    9: _write_care_navigation,
    11: _write_service_configuration,
}


# ── Section readers ─────────────────────────────────────────────────────────
# Each reader returns the form payload in the shape its writer accepts, with
# blank strings for unset text so a client can prefill the form directly.


def _text_values(record, fields) -> dict:
    return {f: (getattr(record, f) or "") if record is not None else "" for f in fields}


def _bool_values(record, fields) -> dict:
    return {f: bool(getattr(record, f)) if record is not None else False for f in fields}


def _read_program_overview(tenant_id):
    tenant = db.session.get(Tenant, tenant_id)
    program = Program.query_for_tenant(tenant_id).first()
    return {"legal_name": tenant.legal_name or "", **_text_values(program, PROGRAM_CONTACT_FIELDS)}


def _read_default_services(tenant_id):
    program = Program.query_for_tenant(tenant_id).first()
    return _bool_values(program, ("default_services_confirmed",))


def _saved_services(tenant_id) -> dict:
    program = Program.query_for_tenant(tenant_id).first()
    if program is None:
        return {}
    return {s.service_type: s for s in program.services}


def _read_extended_services(tenant_id):
    saved = _saved_services(tenant_id)
    return {
        "services": [
            {
                "service_type": service_type,
                "selected": bool(saved[service_type].selected) if service_type in saved else False,
                "other_name": (saved[service_type].other_name or "") if service_type in saved else "",
            }
            for service_type in SERVICE_TYPES
        ],
    }


def _read_payouts_and_payments(tenant_id):
    return _text_values(Program.query_for_tenant(tenant_id).first(), PAYOUT_FIELDS + PAYMENT_FIELDS)


def _read_locations(tenant_id):
    tenant = db.session.get(Tenant, tenant_id)
    rows = Location.query_for_tenant(tenant_id).order_by(Location.created_at, Location.id).all()
    return {
        "default_scheduling_system": tenant.default_scheduling_system,
        "locations": [loc.to_dict() for loc in rows],
    }


def _read_providers(tenant_id):
    rows = Provider.query_for_tenant(tenant_id).order_by(Provider.created_at, Provider.id).all()
    return {"providers": [p.to_dict() for p in rows]}


def _read_lab_network(tenant_id):
    lab = LabNetwork.query_for_tenant(tenant_id).first()
    data = _text_values(lab, LAB_TEXT_FIELDS)
    data["network_type"] = lab.network_type if lab is not None else None
    data.update(_bool_values(lab, ("integration_acknowledged",)))
    return data


def _read_radiology_network(tenant_id):
    return _text_values(RadiologyNetwork.query_for_tenant(tenant_id).first(), RADIOLOGY_TEXT_FIELDS)


def _read_care_navigation(tenant_id):
    care_nav = CareNavConfig.query_for_tenant(tenant_id).first()
    return {**_text_values(care_nav, CARE_NAV_TEXT_FIELDS), **_bool_values(care_nav, ("acknowledged",))}


def _read_service_configuration(tenant_id):
    """Sub-service choices grouped by the categories selected in section 3."""
    program = Program.query_for_tenant(tenant_id).first()
    if program is None:
        return {"categories": {}}
    chosen = {(s.service_type, s.sub_type): s.selected for s in program.sub_services}
    categories = {}
    for service in program.services:
        if not service.selected or service.service_type not in SUB_SERVICE_TYPES:
            continue
        categories[service.service_type] = [
            {"sub_type": sub_type, "selected": bool(chosen.get((service.service_type, sub_type), False))}
            for sub_type in SUB_SERVICE_TYPES[service.service_type]
        ]
    # catalog order, not insertion order
    return {"categories": {k: categories[k] for k in SERVICE_TYPES if k in categories}}


SECTION_READERS = {
    1: _read_program_overview,
    2: _read_default_services,
    3: _read_extended_services,
    4: _read_payouts_and_payments,
    5: _read_locations,
    6: _read_providers,
    7: _read_lab_network,
    8: _read_radiology_network,
    9: _read_care_navigation,
    11: _read_service_configuration,
}


# ── Public API ──────────────────────────────────────────────────────────────


def _assert_writable(ctx: RequestContext, phase: int) -> None:
    if ctx.is_elevated:
        return
    phase_statuses = phase_service.phase_status_map(ctx.tenant_id)
    if phase not in phase_statuses:
        raise ConflictError(f"Phase {phase} has not been unlocked")
    phase_service.assert_phase_editable(ctx.tenant_id, phase)


def save_section(ctx: RequestContext, section_id: int, data: dict) -> dict[int, str]:
    """Persist one buyer section and return the recomputed status map.

    Raises:
        NotFoundError: unknown section id, or a row id not owned by the tenant.
        ValidationError: read-only section or malformed payload.
        PhaseLockedError: phase SUBMITTED and caller not elevated.
    """
    meta = get_section_meta(section_id)
    if meta.read_only:
        raise ValidationError(f"Section '{meta.title}' is read-only")
    if not isinstance(data, dict):
        raise ValidationError("Section payload must be a JSON object")
    _assert_writable(ctx, meta.min_phase)

    try:
        snapshot_data = SECTION_WRITERS[section_id](ctx, data)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Section saved",
        extra={
            "tenant_id": ctx.tenant_id,
            "section_id": section_id,
            "actor_id": ctx.actor_id,
            "elevated": ctx.is_elevated,
        },
    )
    program = Program.query_for_tenant(ctx.tenant_id).first()
    record_snapshot_safely(
        meta.snapshot_id, snapshot_data, ctx.actor_id, ctx.tenant_id,
        program.id if program else ctx.program_id,
    )
    return compute_statuses(ctx.tenant_id)


def delete_location(ctx: RequestContext, location_id: int) -> dict[int, str]:
    if not ctx.is_elevated:
        phase_service.assert_phase_editable(ctx.tenant_id, 1)
    delete_owned(Location, location_id, ctx.tenant_id)
    return compute_statuses(ctx.tenant_id)


def delete_provider(ctx: RequestContext, provider_id: int) -> dict[int, str]:
    if not ctx.is_elevated:
        phase_service.assert_phase_editable(ctx.tenant_id, 1)
    delete_owned(Provider, provider_id, ctx.tenant_id)
    return compute_statuses(ctx.tenant_id)


def load_section(tenant_id: int, section_id: int) -> dict:
    """Return the stored payload for one buyer section.

    Raises:
        NotFoundError: unknown section id or tenant.
        ValidationError: review sections hold no payload of their own.
    """
    meta = get_section_meta(section_id)
    if meta.read_only:
        raise ValidationError(f"Section '{meta.title}' has no stored payload")
    phase_service._get_tenant(tenant_id)
    return SECTION_READERS[section_id](tenant_id)
