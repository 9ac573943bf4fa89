"""
Admin Blueprint — platform administrator controls over any tenant's intake.

API Endpoints (JSON):
  GET    /api/v1/admin/tenants/<tid>/phases                  — phase list
  POST   /api/v1/admin/tenants/<tid>/phases/<n>/unlock       — open a phase (DRAFT)
  POST   /api/v1/admin/tenants/<tid>/phases/<n>/lock         — mark SUBMITTED, no gate
  POST   /api/v1/admin/tenants/<tid>/phases/<n>/reopen       — SUBMITTED → DRAFT
  POST   /api/v1/admin/tenants/<tid>/seller/reopen           — reopen the seller flow
  GET    /api/v1/admin/tenants/<tid>/sections/<id>           — stored buyer section payload
  PUT    /api/v1/admin/tenants/<tid>/sections/<id>           — save a buyer section
  DELETE /api/v1/admin/tenants/<tid>/locations/<id>          — remove a section 5 row
  DELETE /api/v1/admin/tenants/<tid>/providers/<id>          — remove a section 6 row
  GET    /api/v1/admin/tenants/<tid>/seller/sections/<code>  — stored seller section payload
  PUT    /api/v1/admin/tenants/<tid>/seller/sections/<code>  — save a seller section
  DELETE /api/v1/admin/tenants/<tid>/seller/locations/<id>   — remove an S-2 row
  DELETE /api/v1/admin/tenants/<tid>/seller/providers/<id>   — remove an S-3 row
  GET    /api/v1/admin/tenants/<tid>/overview                — onboarding overview
  GET    /api/v1/admin/tenants/<tid>/history                 — snapshot history

Every endpoint requires the platform_admin role. Section saves and row
deletes go through the same service path as self-service calls, with
is_elevated=True.
"""

import logging

from flask import Blueprint, jsonify, request

from intake.blueprints import json_body, register_error_handlers
from intake.models import db
from intake.services import (
    overview_service,
    phase_service,
    section_service,
    seller_section_service,
    snapshot_service,
)
from intake.services.context_service import require_elevated, resolve_context

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/v1/admin/tenants")
register_error_handlers(admin_bp)


@admin_bp.before_request
def _require_platform_admin():
    require_elevated()


def _commit():
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


# ═══════════════════════════════════════════════════════════════
# Phase controls
# ═══════════════════════════════════════════════════════════════


@admin_bp.route("/<int:tenant_id>/phases", methods=["GET"])
def list_phases(tenant_id):
    ctx = resolve_context(tenant_id)
    return jsonify({"phases": phase_service.list_phase_statuses(ctx.tenant_id)}), 200


@admin_bp.route("/<int:tenant_id>/phases/<int:phase>/unlock", methods=["POST"])
def unlock_phase(tenant_id, phase):
    ctx = resolve_context(tenant_id)
    result = phase_service.unlock_phase(ctx.tenant_id, phase)
    _commit()
    logger.info("Admin unlocked phase", extra={"tenant_id": tenant_id, "phase": phase, "actor_id": ctx.actor_id})
    return jsonify({"phase": result}), 200


@admin_bp.route("/<int:tenant_id>/phases/<int:phase>/lock", methods=["POST"])
def lock_phase(tenant_id, phase):
    ctx = resolve_context(tenant_id)
    result = phase_service.lock_phase(ctx.tenant_id, phase)
    _commit()
    logger.info("Admin locked phase", extra={"tenant_id": tenant_id, "phase": phase, "actor_id": ctx.actor_id})
    return jsonify({"phase": result}), 200


@admin_bp.route("/<int:tenant_id>/phases/<int:phase>/reopen", methods=["POST"])
def reopen_phase(tenant_id, phase):
    ctx = resolve_context(tenant_id)
    result = phase_service.unlock_phase_for_editing(ctx.tenant_id, phase)
    _commit()
    logger.info("Admin reopened phase", extra={"tenant_id": tenant_id, "phase": phase, "actor_id": ctx.actor_id})
    return jsonify({"phase": result}), 200


@admin_bp.route("/<int:tenant_id>/seller/reopen", methods=["POST"])
def reopen_seller(tenant_id):
    ctx = resolve_context(tenant_id)
    result = phase_service.unlock_seller_flow_for_editing(ctx.tenant_id)
    _commit()
    return jsonify({"flow": result}), 200


# ═══════════════════════════════════════════════════════════════
# Section edits on behalf of a tenant
# ═══════════════════════════════════════════════════════════════


@admin_bp.route("/<int:tenant_id>/sections/<int:section_id>", methods=["GET"])
def get_section(tenant_id, section_id):
    ctx = resolve_context(tenant_id)
    data = section_service.load_section(ctx.tenant_id, section_id)
    return jsonify({"section_id": section_id, "data": data}), 200


@admin_bp.route("/<int:tenant_id>/sections/<int:section_id>", methods=["PUT"])
def save_section(tenant_id, section_id):
    ctx = resolve_context(tenant_id)
    statuses = section_service.save_section(ctx, section_id, json_body())
    return jsonify({"statuses": {str(k): v for k, v in statuses.items()}}), 200


@admin_bp.route("/<int:tenant_id>/locations/<int:location_id>", methods=["DELETE"])
def delete_location(tenant_id, location_id):
    ctx = resolve_context(tenant_id)
    statuses = section_service.delete_location(ctx, location_id)
    return jsonify({"statuses": {str(k): v for k, v in statuses.items()}}), 200


@admin_bp.route("/<int:tenant_id>/providers/<int:provider_id>", methods=["DELETE"])
def delete_provider(tenant_id, provider_id):
    ctx = resolve_context(tenant_id)
    statuses = section_service.delete_provider(ctx, provider_id)
    return jsonify({"statuses": {str(k): v for k, v in statuses.items()}}), 200


@admin_bp.route("/<int:tenant_id>/seller/sections/<section_code>", methods=["GET"])
def get_seller_section(tenant_id, section_code):
    ctx = resolve_context(tenant_id)
    data = seller_section_service.load_seller_section(ctx.tenant_id, section_code)
    return jsonify({"section_id": section_code, "data": data}), 200


@admin_bp.route("/<int:tenant_id>/seller/sections/<section_code>", methods=["PUT"])
def save_seller_section(tenant_id, section_code):
    ctx = resolve_context(tenant_id)
    statuses = seller_section_service.save_seller_section(ctx, section_code, json_body())
    return jsonify({"statuses": statuses}), 200


@admin_bp.route("/<int:tenant_id>/seller/locations/<int:location_id>", methods=["DELETE"])
def delete_seller_location(tenant_id, location_id):
    ctx = resolve_context(tenant_id)
    return jsonify({"statuses": seller_section_service.delete_seller_location(ctx, location_id)}), 200


@admin_bp.route("/<int:tenant_id>/seller/providers/<int:provider_id>", methods=["DELETE"])
def delete_seller_provider(tenant_id, provider_id):
    ctx = resolve_context(tenant_id)
    return jsonify({"statuses": seller_section_service.delete_seller_provider(ctx, provider_id)}), 200


# ═══════════════════════════════════════════════════════════════
# Read-only views
# ═══════════════════════════════════════════════════════════════


@admin_bp.route("/<int:tenant_id>/overview", methods=["GET"])
def get_overview(tenant_id):
    ctx = resolve_context(tenant_id)
    return jsonify(overview_service.load_overview(ctx.tenant_id)), 200


@admin_bp.route("/<int:tenant_id>/history", methods=["GET"])
def get_history(tenant_id):
    ctx = resolve_context(tenant_id)
    limit = request.args.get("limit", type=int)
    items = snapshot_service.history(ctx.tenant_id, limit=limit)
    return jsonify({"items": items, "total": len(items)}), 200
