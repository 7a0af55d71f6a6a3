"""Dashboard blueprint — /api/dashboard/*

Route Map:
  GET  /api/dashboard               — Lead, message and product stats in one call
  POST /api/dashboard/cache/clear   — Drop every cached lead/message result
"""

import logging

from flask import Blueprint, jsonify

from leaddesk.services.registry import get_services

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")

logger = logging.getLogger(__name__)


def _strip_error(stats):
    return {k: v for k, v in stats.items() if k != "error"}


@dashboard_bp.route("", methods=["GET"])
def overview():
    services = get_services()
    sections = {
        "leads": services.leads.get_leads_stats(),
        "messages": services.messages.get_messages_stats(),
        "products": services.products.get_products_stats(),
    }

    # Partial dashboards are still useful — report failed sections by name.
    errors = {name: stats["error"] for name, stats in sections.items() if stats["error"]}
    for name, error in errors.items():
        logger.error(f"Dashboard: {name} stats failed: {error}")

    return jsonify(
        ok=not errors,
        data={name: _strip_error(stats) for name, stats in sections.items()},
        errors=errors,
    )


@dashboard_bp.route("/cache/clear", methods=["POST"])
def clear_cache():
    get_services().clear_caches()
    logger.info("Service caches cleared")
    return jsonify(ok=True)
