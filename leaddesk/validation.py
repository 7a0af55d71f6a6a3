"""Input validation for leads, messages and products.

Each validator takes a raw payload dict (JSON body or service call) and
returns ``(cleaned, errors)``. ``cleaned`` only carries the keys that were
supplied (plus defaults on create), so it can be applied directly as a
partial update. ``errors`` is a list of human-readable strings; empty means
valid.

Free text is run through bleach.clean() to strip HTML tags.
"""

import re
from datetime import datetime

import bleach

from leaddesk.models.lead import Lead
from leaddesk.models.message import Message
from leaddesk.models.product import Product

# Simple email regex — not exhaustive, just sanity-check
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Instagram handle, with or without the leading @
INSTAGRAM_RE = re.compile(r"^@?[a-zA-Z0-9._]{1,30}$")

NOTES_MAX_LENGTH = 1000

BRAZILIAN_STATES = {
    "AC", "AL", "AP", "AM", "BA", "CE", "DF", "ES", "GO", "MA", "MT", "MS",
    "MG", "PA", "PB", "PR", "PE", "PI", "RJ", "RN", "RS", "RO", "RR", "SC",
    "SP", "SE", "TO",
}

LEAD_REQUIRED_FIELDS = {
    "name": "Name",
    "phone": "Phone",
    "decision_maker": "Decision maker",
    "address": "Address",
    "city": "City",
    "state": "State",
}

# Older clients send the product reference under these keys.
PRODUCT_ID_ALIASES = ("product_id", "id_product", "id_produto")


def sanitize(text):
    """Strip all HTML tags from user input."""
    if text is None:
        return text
    return bleach.clean(str(text), tags=[], strip=True).strip()


def _clean_str(value):
    if value is None:
        return ""
    return str(value).strip()


def normalize_instagram(handle):
    """Return the handle with exactly one leading @."""
    cleaned = handle.strip()
    return cleaned if cleaned.startswith("@") else f"@{cleaned}"


def format_phone(phone):
    """Format a Brazilian phone number as (DD) NNNNN-NNNN / (DD) NNNN-NNNN.

    Numbers that don't have 10 or 11 digits are returned unchanged.
    """
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 11:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    return phone


def _parse_positive_int(value):
    """Return value as a positive int, or None if it isn't one."""
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _extract_product_id(data):
    """Pick the product reference out of the payload, honoring legacy keys.

    Returns (present, value).
    """
    for key in PRODUCT_ID_ALIASES:
        if key in data:
            return True, data[key]
    return False, None


def validate_lead(data, partial=False):
    """Validate a lead payload.

    Args:
        data: Raw field dict.
        partial: True for updates — only supplied keys are checked and
            required fields are enforced only when present.

    Returns:
        tuple: (cleaned dict, list of error strings)
    """
    cleaned = {}
    errors = []

    for field, label in LEAD_REQUIRED_FIELDS.items():
        if partial and field not in data:
            continue
        value = _clean_str(data.get(field))
        if not value:
            errors.append(f"{label} is required.")
            continue
        cleaned[field] = value

    if "name" in cleaned and len(cleaned["name"]) > 255:
        errors.append("Name is too long.")
    if "phone" in cleaned and len(cleaned["phone"]) > 50:
        errors.append("Phone is too long.")
    if "state" in cleaned:
        state = cleaned["state"].upper()
        if state not in BRAZILIAN_STATES:
            errors.append(f"Invalid state '{cleaned['state']}'.")
        cleaned["state"] = state

    # --- Optional contact fields (blank clears to None) ---
    if "email" in data:
        email = _clean_str(data.get("email")).lower()
        if email and not EMAIL_RE.match(email):
            errors.append("A valid email is required.")
        cleaned["email"] = email or None

    if "instagram" in data:
        handle = _clean_str(data.get("instagram"))
        if handle and not INSTAGRAM_RE.match(handle):
            errors.append(
                "Invalid Instagram handle (e.g. @username or username)."
            )
        cleaned["instagram"] = normalize_instagram(handle) if handle else None

    if "website" in data:
        website = _clean_str(data.get("website"))
        if len(website) > 500:
            errors.append("Website is too long.")
        cleaned["website"] = website or None

    present, raw_product_id = _extract_product_id(data)
    if present:
        if raw_product_id in (None, ""):
            cleaned["product_id"] = None
        else:
            product_id = _parse_positive_int(raw_product_id)
            if product_id is None:
                errors.append("Product must be a positive integer id.")
            cleaned["product_id"] = product_id

    # --- Classification ---
    if "status" in data or not partial:
        status = _clean_str(data.get("status")) or "none"
        if status not in Lead.STATUSES:
            errors.append(
                f"Invalid status '{status}'. Must be one of: {', '.join(Lead.STATUSES)}"
            )
        cleaned["status"] = status

    if "active" in data or not partial:
        active = _clean_str(data.get("active")) or "yes"
        if active not in Lead.ACTIVE_VALUES:
            errors.append("Active must be 'yes' or 'no'.")
        cleaned["active"] = active

    if "notes" in data:
        notes = sanitize(data.get("notes")) or ""
        if len(notes) > NOTES_MAX_LENGTH:
            errors.append(f"Notes must be at most {NOTES_MAX_LENGTH} characters.")
        cleaned["notes"] = notes or None

    return cleaned, errors


def _parse_timestamp(value):
    if isinstance(value, datetime):
        return value
    text = _clean_str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def validate_message(data, partial=False):
    """Validate a message payload. Same contract as validate_lead()."""
    cleaned = {}
    errors = []

    if partial:
        if "lead_id" in data:
            errors.append("A message cannot be moved to another lead.")
    else:
        lead_id = _parse_positive_int(data.get("lead_id"))
        if lead_id is None:
            errors.append("Lead is required.")
        cleaned["lead_id"] = lead_id

    if "body" in data or not partial:
        body = sanitize(data.get("body")) or ""
        if not body:
            errors.append("Message cannot be empty.")
        cleaned["body"] = body

    for field, choices in (
        ("channel", Message.CHANNELS),
        ("kind", Message.KINDS),
    ):
        if partial and field not in data:
            continue
        value = _clean_str(data.get(field))
        if value not in choices:
            errors.append(
                f"Invalid {field} '{value}'. Must be one of: {', '.join(choices)}"
            )
        cleaned[field] = value

    if "direction" in data or not partial:
        direction = _clean_str(data.get("direction")) or "sent"
        if direction not in Message.DIRECTIONS:
            errors.append("Direction must be 'sent' or 'received'.")
        cleaned["direction"] = direction

    if data.get("sent_at"):
        sent_at = _parse_timestamp(data["sent_at"])
        if sent_at is None:
            errors.append("sent_at must be an ISO-8601 timestamp.")
        else:
            cleaned["sent_at"] = sent_at

    return cleaned, errors


def validate_product(data, partial=False):
    """Validate a product payload. Same contract as validate_lead()."""
    cleaned = {}
    errors = []

    if "name" in data or not partial:
        name = _clean_str(data.get("name"))
        if not name:
            errors.append("Product name is required.")
        elif len(name) > 255:
            errors.append("Product name is too long.")
        cleaned["name"] = name

    for field, label in (
        ("description", "Description"),
        ("sales_prompt", "Sales prompt"),
    ):
        if partial and field not in data:
            continue
        text = sanitize(data.get(field)) or ""
        if len(text) < Product.MIN_TEXT_LENGTH:
            errors.append(
                f"{label} must be at least {Product.MIN_TEXT_LENGTH} characters "
                f"(currently {len(text)})."
            )
        cleaned[field] = text

    if "active" in data:
        if not isinstance(data["active"], bool):
            errors.append("Active must be true or false.")
        cleaned["active"] = bool(data["active"])
    elif not partial:
        cleaned["active"] = True

    return cleaned, errors
