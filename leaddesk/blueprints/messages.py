"""Messages blueprint — /api/messages/*

Route Map:
  GET    /api/messages                  — All messages with lead name/email, paginated
  GET    /api/messages/grouped          — Messages grouped by lead, newest first
  GET    /api/messages/stats            — Counts by direction and kind
  GET    /api/messages/lead/<lead_id>   — One lead's messages, paginated
  GET    /api/messages/<id>             — Single message
  POST   /api/messages                  — Log a message
  PATCH  /api/messages/<id>             — Partial update (lead_id is fixed)
  DELETE /api/messages/<id>             — Hard delete
"""

from flask import Blueprint, current_app, jsonify

from leaddesk.blueprints import (
    error_response,
    json_body,
    pagination_args,
    result_response,
)
from leaddesk.services.registry import get_services

messages_bp = Blueprint("messages", __name__, url_prefix="/api/messages")


@messages_bp.route("", methods=["GET"])
def list_messages():
    page, limit = pagination_args(current_app.config["MESSAGES_PAGE_SIZE"])
    result = get_services().messages.get_all_messages(page=page, limit=limit)
    return result_response(result, error_status=500)


@messages_bp.route("/grouped", methods=["GET"])
def grouped_messages():
    return result_response(
        get_services().messages.get_messages_grouped_by_lead(), error_status=500
    )


@messages_bp.route("/stats", methods=["GET"])
def message_stats():
    stats = get_services().messages.get_messages_stats()
    if stats["error"]:
        return error_response(stats["error"], 500)
    return jsonify(ok=True, data={k: v for k, v in stats.items() if k != "error"})


@messages_bp.route("/lead/<int:lead_id>", methods=["GET"])
def lead_messages(lead_id):
    page, limit = pagination_args(current_app.config["LEAD_MESSAGES_PAGE_SIZE"])
    result = get_services().messages.get_messages_by_lead(lead_id, page=page, limit=limit)
    return result_response(result, error_status=500)


@messages_bp.route("/<int:message_id>", methods=["GET"])
def get_message(message_id):
    return result_response(
        get_services().messages.get_message_by_id(message_id), error_status=500
    )


@messages_bp.route("", methods=["POST"])
def create_message():
    data = json_body()
    if data is None:
        return error_response("Invalid request.", 400)
    return result_response(get_services().messages.create_message(data), success_status=201)


@messages_bp.route("/<int:message_id>", methods=["PATCH", "PUT"])
def update_message(message_id):
    data = json_body()
    if data is None:
        return error_response("Invalid request.", 400)
    return result_response(get_services().messages.update_message(message_id, data))


@messages_bp.route("/<int:message_id>", methods=["DELETE"])
def delete_message(message_id):
    return result_response(get_services().messages.delete_message(message_id))
