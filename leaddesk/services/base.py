"""Shared plumbing for the entity services.

Service methods never raise. Every public method is wrapped with
``service_call`` which turns backend failures and unexpected exceptions
into the result dict the callers check (``{"data": None, "error": msg}`` by
default), after rolling back the session so the next call starts clean.
"""

import logging
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError


def backend_message(exc):
    """Return the database driver's message for a SQLAlchemy error."""
    orig = getattr(exc, "orig", None)
    return str(orig or exc).strip()


def failure(message):
    return {"data": None, "error": message}


NOT_FOUND = "not_found"


def not_found(message):
    """Failure tagged with code "not_found" so the API layer answers 404."""
    return {"data": None, "error": message, "code": NOT_FOUND}


def service_call(action, on_error=failure):
    """Catch errors at the service boundary.

    Args:
        action: Short gerund phrase used in logs and the generic message,
            e.g. "creating lead".
        on_error: Builds the failure result from an error message. Defaults
            to ``{"data": None, "error": message}``.
    """

    def decorator(f):
        logger = logging.getLogger(f.__module__)

        @wraps(f)
        def decorated(self, *args, **kwargs):
            try:
                return f(self, *args, **kwargs)
            except SQLAlchemyError as e:
                self.session.rollback()
                message = backend_message(e)
                logger.error(f"Error {action}: {message}")
                return on_error(message)
            except Exception:
                self.session.rollback()
                logger.exception(f"Unexpected error {action}")
                return on_error(f"Unexpected error while {action}.")

        return decorated

    return decorator


def page_window(page, limit, max_limit=None):
    """Clamp 1-indexed page/limit and return (page, limit, offset)."""
    page = max(int(page or 1), 1)
    limit = max(int(limit or 1), 1)
    if max_limit is not None:
        limit = min(limit, max_limit)
    return page, limit, (page - 1) * limit
