"""Leads blueprint — /api/leads/*

Route Map:
  GET    /api/leads                     — Active leads, paginated (?page, ?limit)
  GET    /api/leads/search?q=           — Free-text search (max 50)
  GET    /api/leads/status/<status>     — Active leads in one status bucket
  GET    /api/leads/stats               — Counts per status
  GET    /api/leads/duplicates          — Duplicate check (?email, ?instagram, ?website, ?exclude_id)
  GET    /api/leads/<id>                — Single lead (active or not)
  POST   /api/leads                     — Create lead (rate limited)
  PATCH  /api/leads/<id>                — Partial update
  DELETE /api/leads/<id>                — Soft delete (active -> "no")
"""

from flask import Blueprint, current_app, jsonify, request

from leaddesk.blueprints import (
    error_response,
    json_body,
    pagination_args,
    result_response,
)
from leaddesk.extensions import limiter
from leaddesk.services.registry import get_services

leads_bp = Blueprint("leads", __name__, url_prefix="/api/leads")


@leads_bp.route("", methods=["GET"])
def list_leads():
    page, limit = pagination_args(current_app.config["LEADS_PAGE_SIZE"])
    result = get_services().leads.get_leads(page=page, limit=limit)
    if not result["error"]:
        result = dict(result, page=page, limit=limit)
    return result_response(result, error_status=500)


@leads_bp.route("/search", methods=["GET"])
def search_leads():
    term = (request.args.get("q") or "").strip()
    if not term:
        return error_response("Search term is required.", 400)
    return result_response(get_services().leads.search_leads(term), error_status=500)


@leads_bp.route("/status/<status>", methods=["GET"])
def leads_by_status(status):
    return result_response(get_services().leads.get_leads_by_status(status), error_status=400)


@leads_bp.route("/stats", methods=["GET"])
def lead_stats():
    stats = get_services().leads.get_leads_stats()
    if stats["error"]:
        return error_response(stats["error"], 500)
    return jsonify(ok=True, data={k: v for k, v in stats.items() if k != "error"})


@leads_bp.route("/duplicates", methods=["GET"])
def check_duplicates():
    check = get_services().leads.check_duplicates(
        request.args.get("email"),
        request.args.get("instagram"),
        request.args.get("website"),
        exclude_id=request.args.get("exclude_id", type=int),
    )
    if check["error"]:
        return error_response(check["error"], 500)
    return jsonify(ok=True, data={k: v for k, v in check.items() if k != "error"})


@leads_bp.route("/<int:lead_id>", methods=["GET"])
def get_lead(lead_id):
    return result_response(get_services().leads.get_lead_by_id(lead_id), error_status=500)


@leads_bp.route("", methods=["POST"])
@limiter.limit(lambda: current_app.config["LEAD_CREATE_RATE_LIMIT"])
def create_lead():
    data = json_body()
    if data is None:
        return error_response("Invalid request.", 400)
    return result_response(get_services().leads.create_lead(data), success_status=201)


@leads_bp.route("/<int:lead_id>", methods=["PATCH", "PUT"])
def update_lead(lead_id):
    data = json_body()
    if data is None:
        return error_response("Invalid request.", 400)
    return result_response(get_services().leads.update_lead(lead_id, data))


@leads_bp.route("/<int:lead_id>", methods=["DELETE"])
def delete_lead(lead_id):
    return result_response(get_services().leads.delete_lead(lead_id))
