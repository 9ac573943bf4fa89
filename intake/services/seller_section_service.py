"""
Seller Section Service — writers for S-1 .. S-6.

Mirrors section_service for the seller tables. The seller flow has a single
phase, gated by the OnboardingFlow record instead of tenant_phases.
"""

import logging

from intake.core.exceptions import ValidationError
from intake.models import db
from intake.models.buyer import ACH_ACCOUNT_TYPES, LAB_NETWORK_TYPES, LOCATION_ACCESS_TYPES, PROVIDER_TYPES
from intake.models.seller import (
    SELLER_SERVICE_TYPES,
    SellerLabNetwork,
    SellerLocation,
    SellerProfile,
    SellerProvider,
    SellerServiceOffering,
)
from intake.services import phase_service
from intake.services.context_service import RequestContext
from intake.services.sections import get_section_meta
from intake.services.section_service import LAB_TEXT_FIELDS, PROVIDER_TEXT_FIELDS
from intake.services.seller_completion_service import compute_seller_statuses
from intake.services.snapshot_service import record_snapshot_safely
from intake.utils.helpers import (
    apply_fields,
    coerce_bool,
    delete_owned,
    get_owned_or_404,
    raise_if_errors,
    require_choice,
    require_list,
    require_row_id,
)

logger = logging.getLogger(__name__)

ORG_TEXT_FIELDS = (
    "legal_name",
    "admin_contact_name",
    "admin_contact_email",
    "admin_contact_phone",
    "operations_contact_name",
    "operations_contact_email",
    "operations_contact_phone",
)
BILLING_TEXT_FIELDS = (
    "w9_file_path",
    "ach_account_holder_name",
    "ach_account_type",
    "ach_routing_number",
    "ach_account_number",
    "bank_doc_file_path",
)
SELLER_LOCATION_TEXT_FIELDS = (
    "location_name",
    "street_address",
    "street_address2",
    "city",
    "state",
    "zip",
    "location_npi",
    "phone_number",
    "hours_of_operation",
    "access_type",
)
SELLER_LOCATION_BOOL_FIELDS = ("has_on_site_labs", "has_on_site_radiology", "has_on_site_pharmacy")


def _get_or_create(model, tenant_id: int):
    record = model.query_for_tenant(tenant_id).first()
    if record is None:
        record = model(tenant_id=tenant_id)
        db.session.add(record)
    return record


def _write_org_info(ctx, data):
    profile = _get_or_create(SellerProfile, ctx.tenant_id)
    apply_fields(profile, data, text_fields=ORG_TEXT_FIELDS)
    return {f: data.get(f) for f in ORG_TEXT_FIELDS}


def _write_rows(ctx, model, key, data, text_fields, bool_fields=(), choice=None):
    rows = require_list(data, key)
    if choice:
        field, choices = choice
        errors = {}
        for i, row in enumerate(rows):
            require_choice(errors, field, row.get(field), choices, prefix=f"{key}[{i}].")
        raise_if_errors(errors)

    saved = []
    for i, row in enumerate(rows):
        if row.get("id") not in (None, ""):
            row_id = require_row_id(row["id"], f"{key}[{i}].id")
            record = get_owned_or_404(model, row_id, ctx.tenant_id)
        else:
            record = model(tenant_id=ctx.tenant_id)
            db.session.add(record)
        apply_fields(record, row, text_fields=text_fields, bool_fields=bool_fields)
        saved.append(record)
    db.session.flush()
    return {key: [r.to_dict() for r in saved]}


def _write_locations(ctx, data):
    return _write_rows(
        ctx, SellerLocation, "locations", data,
        SELLER_LOCATION_TEXT_FIELDS, SELLER_LOCATION_BOOL_FIELDS,
        choice=("access_type", LOCATION_ACCESS_TYPES),
    )


def _write_providers(ctx, data):
    return _write_rows(
        ctx, SellerProvider, "providers", data, PROVIDER_TEXT_FIELDS,
        choice=("provider_type", PROVIDER_TYPES),
    )


def _write_services(ctx, data):
    rows = require_list(data, "services")
    errors = {}
    seen = set()
    for i, row in enumerate(rows):
        key = f"services[{i}].service_type"
        service_type = row.get("service_type")
        require_choice(errors, "service_type", service_type, SELLER_SERVICE_TYPES, prefix=f"services[{i}].")
        if not service_type:
            errors[key] = "required"
        elif key in errors:
            continue
        elif service_type in seen:
            errors[key] = "duplicate"
        else:
            seen.add(service_type)
    raise_if_errors(errors)

    SellerServiceOffering.query_for_tenant(ctx.tenant_id).delete()
    saved = []
    for row in rows:
        selected = coerce_bool(row.get("selected"))
        db.session.add(SellerServiceOffering(
            tenant_id=ctx.tenant_id, service_type=row["service_type"], selected=selected,
        ))
        saved.append({"service_type": row["service_type"], "selected": selected})
    return {"services": saved}


def _write_lab_network(ctx, data):
    errors = {}
    require_choice(errors, "network_type", data.get("network_type"), LAB_NETWORK_TYPES)
    raise_if_errors(errors)

    lab = _get_or_create(SellerLabNetwork, ctx.tenant_id)
    apply_fields(lab, data, text_fields=LAB_TEXT_FIELDS, bool_fields=("integration_acknowledged",))
    return {f: data.get(f) for f in LAB_TEXT_FIELDS + ("integration_acknowledged",)}


def _write_billing(ctx, data):
    errors = {}
    require_choice(errors, "ach_account_type", data.get("ach_account_type"), ACH_ACCOUNT_TYPES)
    raise_if_errors(errors)

    profile = _get_or_create(SellerProfile, ctx.tenant_id)
    apply_fields(profile, data, text_fields=BILLING_TEXT_FIELDS)
    return {f: data.get(f) for f in BILLING_TEXT_FIELDS}


SECTION_WRITERS = {
    "S-1": _write_org_info,
    "S-2": _write_locations,
    "S-3": _write_providers,
    "S-4": _write_services,
    "S-5": _write_lab_network,
    "S-6": _write_billing,
}


def _text_values(record, fields) -> dict:
    return {f: (getattr(record, f) or "") if record is not None else "" for f in fields}


def _read_org_info(tenant_id):
    return _text_values(SellerProfile.query_for_tenant(tenant_id).first(), ORG_TEXT_FIELDS)


def _read_rows(model, key):
    def _read(tenant_id):
        rows = model.query_for_tenant(tenant_id).order_by(model.created_at, model.id).all()
        return {key: [r.to_dict() for r in rows]}
    return _read


def _read_services(tenant_id):
    offered = {o.service_type: o.selected for o in SellerServiceOffering.query_for_tenant(tenant_id).all()}
    return {
        "services": [
            {"service_type": service_type, "selected": bool(offered.get(service_type, False))}
            for service_type in SELLER_SERVICE_TYPES
        ],
    }


def _read_lab_network(tenant_id):
    lab = SellerLabNetwork.query_for_tenant(tenant_id).first()
    data = _text_values(lab, LAB_TEXT_FIELDS)
    data["network_type"] = lab.network_type if lab is not None else None
    data["integration_acknowledged"] = bool(lab.integration_acknowledged) if lab is not None else False
    return data


def _read_billing(tenant_id):
    return _text_values(SellerProfile.query_for_tenant(tenant_id).first(), BILLING_TEXT_FIELDS)


SECTION_READERS = {
    "S-1": _read_org_info,
    "S-2": _read_rows(SellerLocation, "locations"),
    "S-3": _read_rows(SellerProvider, "providers"),
    "S-4": _read_services,
    "S-5": _read_lab_network,
    "S-6": _read_billing,
}


def load_seller_section(tenant_id: int, section_code: str) -> dict:
    """Return the stored payload for one seller section."""
    meta = get_section_meta(section_code)
    if meta.read_only:
        raise ValidationError(f"Section '{meta.title}' has no stored payload")
    phase_service._get_tenant(tenant_id)
    return SECTION_READERS[section_code](tenant_id)


def save_seller_section(ctx: RequestContext, section_code: str, data: dict) -> dict[str, str]:
    """Persist one seller section and return the recomputed seller status map."""
    meta = get_section_meta(section_code)
    if meta.read_only:
        raise ValidationError(f"Section '{meta.title}' is read-only")
    if not isinstance(data, dict):
        raise ValidationError("Section payload must be a JSON object")
    if not ctx.is_elevated:
        phase_service.assert_seller_flow_editable(ctx.tenant_id)

    try:
        snapshot_data = SECTION_WRITERS[section_code](ctx, data)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Seller section saved",
        extra={"tenant_id": ctx.tenant_id, "section_id": section_code, "actor_id": ctx.actor_id},
    )
    record_snapshot_safely(meta.snapshot_id, snapshot_data, ctx.actor_id, ctx.tenant_id)
    return compute_seller_statuses(ctx.tenant_id)


def delete_seller_location(ctx: RequestContext, location_id: int) -> dict[str, str]:
    if not ctx.is_elevated:
        phase_service.assert_seller_flow_editable(ctx.tenant_id)
    delete_owned(SellerLocation, location_id, ctx.tenant_id, label="SellerLocation")
    return compute_seller_statuses(ctx.tenant_id)


def delete_seller_provider(ctx: RequestContext, provider_id: int) -> dict[str, str]:
    if not ctx.is_elevated:
        phase_service.assert_seller_flow_editable(ctx.tenant_id)
    delete_owned(SellerProvider, provider_id, ctx.tenant_id, label="SellerProvider")
    return compute_seller_statuses(ctx.tenant_id)
