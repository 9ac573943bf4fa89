"""
Seller Blueprint — seller intake flow API for the caller's own tenant.

  GET    /api/v1/seller/statuses           → {section_code: status} + flow status
  GET    /api/v1/seller/sections/<code>    → stored payload of one seller section
  PUT    /api/v1/seller/sections/<code>    → save one seller section
  DELETE /api/v1/seller/locations/<id>     → remove an S-2 row
  DELETE /api/v1/seller/providers/<id>     → remove an S-3 row
  POST   /api/v1/seller/submit             → seller submission gate
"""

from flask import Blueprint, jsonify

from intake.blueprints import json_body, register_error_handlers
from intake.services import phase_service, seller_section_service, submission_service
from intake.services.context_service import resolve_context
from intake.services.seller_completion_service import compute_seller_statuses

seller_bp = Blueprint("seller", __name__, url_prefix="/api/v1/seller")
register_error_handlers(seller_bp)


@seller_bp.route("/statuses", methods=["GET"])
def get_statuses():
    ctx = resolve_context()
    return jsonify({
        "statuses": compute_seller_statuses(ctx.tenant_id),
        "flow": phase_service.seller_flow_status(ctx.tenant_id),
    }), 200


@seller_bp.route("/sections/<section_code>", methods=["GET"])
def get_section(section_code):
    ctx = resolve_context()
    data = seller_section_service.load_seller_section(ctx.tenant_id, section_code)
    return jsonify({"section_id": section_code, "data": data}), 200


@seller_bp.route("/sections/<section_code>", methods=["PUT"])
def save_section(section_code):
    ctx = resolve_context()
    statuses = seller_section_service.save_seller_section(ctx, section_code, json_body())
    return jsonify({"statuses": statuses}), 200


@seller_bp.route("/locations/<int:location_id>", methods=["DELETE"])
def delete_location(location_id):
    ctx = resolve_context()
    return jsonify({"statuses": seller_section_service.delete_seller_location(ctx, location_id)}), 200


@seller_bp.route("/providers/<int:provider_id>", methods=["DELETE"])
def delete_provider(provider_id):
    ctx = resolve_context()
    return jsonify({"statuses": seller_section_service.delete_seller_provider(ctx, provider_id)}), 200


@seller_bp.route("/submit", methods=["POST"])
def submit_seller():
    ctx = resolve_context()
    flow = submission_service.submit_seller_flow(ctx.tenant_id, actor_id=ctx.actor_id)
    return jsonify({"success": True, "flow": flow}), 200
