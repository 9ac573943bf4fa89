"""
Onboarding Blueprint — buyer intake form API for the caller's own tenant.

  GET    /api/v1/onboarding/overview             → statuses, phases, sections, locks
  GET    /api/v1/onboarding/statuses             → {section_id: status}
  GET    /api/v1/onboarding/sections/<id>        → stored payload of one section
  PUT    /api/v1/onboarding/sections/<id>        → save one section
  DELETE /api/v1/onboarding/locations/<id>       → remove a section 5 row
  DELETE /api/v1/onboarding/providers/<id>       → remove a section 6 row
  POST   /api/v1/onboarding/phases/<n>/submit    → submission gate
  GET    /api/v1/onboarding/phases               → phase list
  GET    /api/v1/onboarding/history              → section snapshots, newest first
  POST   /api/v1/onboarding/history/rollback     → restore snapshots as of a timestamp

Service layer owns all business logic and commits.
"""

import logging

from flask import Blueprint, jsonify, request

from intake.blueprints import json_body, register_error_handlers
from intake.core.exceptions import ValidationError
from intake.services import (
    overview_service,
    phase_service,
    section_service,
    snapshot_service,
    submission_service,
)
from intake.services.completion_service import compute_statuses
from intake.services.context_service import resolve_context
from intake.utils.helpers import parse_datetime

logger = logging.getLogger(__name__)

onboarding_bp = Blueprint("onboarding", __name__, url_prefix="/api/v1/onboarding")
register_error_handlers(onboarding_bp)


def _status_body(statuses: dict) -> dict:
    # JSON object keys are strings; keep the int ids readable for clients.
    return {"statuses": {str(k): v for k, v in statuses.items()}}


@onboarding_bp.route("/overview", methods=["GET"])
def get_overview():
    ctx = resolve_context()
    return jsonify(overview_service.load_overview(ctx.tenant_id)), 200


@onboarding_bp.route("/statuses", methods=["GET"])
def get_statuses():
    ctx = resolve_context()
    return jsonify(_status_body(compute_statuses(ctx.tenant_id))), 200


@onboarding_bp.route("/sections/<int:section_id>", methods=["GET"])
def get_section(section_id):
    ctx = resolve_context()
    data = section_service.load_section(ctx.tenant_id, section_id)
    return jsonify({"section_id": section_id, "data": data}), 200


@onboarding_bp.route("/sections/<int:section_id>", methods=["PUT"])
def save_section(section_id):
    ctx = resolve_context()
    statuses = section_service.save_section(ctx, section_id, json_body())
    return jsonify(_status_body(statuses)), 200


@onboarding_bp.route("/locations/<int:location_id>", methods=["DELETE"])
def delete_location(location_id):
    ctx = resolve_context()
    statuses = section_service.delete_location(ctx, location_id)
    return jsonify(_status_body(statuses)), 200


@onboarding_bp.route("/providers/<int:provider_id>", methods=["DELETE"])
def delete_provider(provider_id):
    ctx = resolve_context()
    statuses = section_service.delete_provider(ctx, provider_id)
    return jsonify(_status_body(statuses)), 200


@onboarding_bp.route("/phases/<int:phase>/submit", methods=["POST"])
def submit_phase(phase):
    ctx = resolve_context()
    result = submission_service.submit(ctx.tenant_id, phase, actor_id=ctx.actor_id)
    return jsonify({"success": True, "phase": result}), 200


@onboarding_bp.route("/phases", methods=["GET"])
def list_phases():
    ctx = resolve_context()
    return jsonify({"phases": phase_service.list_phase_statuses(ctx.tenant_id)}), 200


@onboarding_bp.route("/history", methods=["GET"])
def get_history():
    ctx = resolve_context()
    limit = request.args.get("limit", type=int)
    items = snapshot_service.history(ctx.tenant_id, limit=limit)
    return jsonify({"items": items, "total": len(items)}), 200


@onboarding_bp.route("/history/rollback", methods=["POST"])
def rollback_history():
    ctx = resolve_context()
    data = json_body()
    try:
        timestamp = parse_datetime(data.get("timestamp"))
    except ValueError as exc:
        raise ValidationError(str(exc), details={"timestamp": "invalid"}) from exc
    restored = snapshot_service.rollback_to(ctx.tenant_id, timestamp, ctx.actor_id)
    return jsonify({"restored": restored, "timestamp": timestamp.isoformat()}), 200
