"""Shared serialization helpers for model to_dict() methods."""


def isoformat(value):
    """Render a datetime as ISO-8601, passing None through."""
    return value.isoformat() if value is not None else None
