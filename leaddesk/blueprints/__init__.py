"""JSON API blueprints plus the helpers they share.

Every endpoint answers ``{"ok": true, "data": ...}`` on success and
``{"ok": false, "error": "..."}`` on failure. Service results already carry
the error text; these helpers only pick the HTTP status.
"""

from flask import current_app, jsonify, request

from leaddesk.services.base import NOT_FOUND


def json_body():
    """Return the request JSON object, or None if the body isn't a JSON object."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def pagination_args(default_limit):
    """Read ?page= and ?limit= with sane bounds."""
    page = request.args.get("page", 1, type=int) or 1
    limit = request.args.get("limit", default_limit, type=int) or default_limit
    limit = min(max(limit, 1), current_app.config.get("MAX_PAGE_SIZE", 200))
    return max(page, 1), limit


def error_response(message, status):
    return jsonify(ok=False, error=message), status


def result_response(result, success_status=200, error_status=422):
    """Turn a service result dict into a JSON response.

    Results tagged with code "not_found" map to 404; any other error uses
    error_status.
    """
    error = result.get("error")
    if error:
        status = 404 if result.get("code") == NOT_FOUND else error_status
        return error_response(error, status)

    payload = {"ok": True}
    payload.update({k: v for k, v in result.items() if k not in ("error", "code")})
    return jsonify(payload), success_status
