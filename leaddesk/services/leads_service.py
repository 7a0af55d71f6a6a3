"""Leads service — cached reads, duplicate prevention, soft delete.

Reads go through the service's CacheManager with a TTL per query type.
Writes run the duplicate check first (email, Instagram handle, website must
be unique among active leads), hit the database, then drop every cached
group they could have made stale. Invalidation is coarse: any
lead write clears all paged lists, per-status lists, duplicate checks,
stats and searches.

All public methods return result dicts and never raise; see services.base.
"""

import json
import logging

from sqlalchemy import func, or_

from leaddesk.cache import MISS, CacheManager
from leaddesk.extensions import db
from leaddesk.models.lead import Lead
from leaddesk.models.product import Product
from leaddesk.services.base import (
    NOT_FOUND,
    failure,
    not_found,
    page_window,
    service_call,
)
from leaddesk.validation import normalize_instagram, validate_lead

logger = logging.getLogger(__name__)

# TTLs in minutes
LIST_TTL = 2
DETAIL_TTL = 5
DUPLICATES_TTL = 1  # leads are entered in quick bursts
SEARCH_TTL = 3
STATS_TTL = 5
STATUS_TTL = 3

SEARCH_LIMIT = 50

# Key groups dropped on every lead write.
WRITE_INVALIDATES = ("leads_page", "leads_status", "duplicates", "stats", "search")

SEARCH_COLUMNS = (
    Lead.name,
    Lead.email,
    Lead.phone,
    Lead.instagram,
    Lead.decision_maker,
    Lead.city,
)


def _detail_key(lead_id):
    # Trailing suffix keeps "lead_1" from matching "lead_12" on invalidate.
    return f"lead_{lead_id}_detail"


def _no_duplicate(error=None):
    return {"is_duplicate": False, "field": None, "existing_lead": None, "error": error}


def _empty_stats(error):
    stats = {"total": 0}
    stats.update({status: 0 for status in Lead.STATUSES})
    stats["error"] = error
    return stats


def duplicate_message(check):
    """Error text for a failed duplicate check."""
    existing = check["existing_lead"] or {}
    return f"A lead with this {check['field']} already exists: {existing.get('name')}"


class LeadsService:
    def __init__(self, cache=None, session=None):
        self.cache = cache if cache is not None else CacheManager()
        self.session = session if session is not None else db.session

    def _active(self):
        return self.session.query(Lead).filter(Lead.active == "yes")

    def _invalidate_writes(self, lead_id=None):
        for group in WRITE_INVALIDATES:
            self.cache.invalidate(group)
        if lead_id is not None:
            self.cache.invalidate(_detail_key(lead_id))

    # ─── Reads ──────────────────────────────────────────────

    @service_call("fetching leads")
    def get_leads(self, page=1, limit=50):
        """Active leads, newest first, one page at a time.

        Returns:
            dict: {"data": [lead dicts], "error": None, "count": total active}
        """
        page, limit, offset = page_window(page, limit)
        cache_key = f"leads_page_{page}_limit_{limit}"

        cached = self.cache.get(cache_key)
        if cached is not MISS:
            return cached

        query = self._active()
        total = query.count()
        leads = (
            query
            .order_by(Lead.created_at.desc(), Lead.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

        result = {
            "data": [lead.to_dict() for lead in leads],
            "error": None,
            "count": total,
        }
        self.cache.set(cache_key, result, LIST_TTL)
        return result

    @service_call("fetching lead")
    def get_lead_by_id(self, lead_id):
        """Single lead by id, active or not."""
        cache_key = _detail_key(lead_id)

        cached = self.cache.get(cache_key)
        if cached is not MISS:
            return cached

        lead = self.session.get(Lead, lead_id)
        if lead is None:
            return not_found(f"Lead {lead_id} not found.")

        result = {"data": lead.to_dict(), "error": None}
        self.cache.set(cache_key, result, DETAIL_TTL)
        return result

    @service_call("checking duplicates", on_error=_no_duplicate)
    def check_duplicates(self, email, instagram=None, website=None, exclude_id=None):
        """Look for an active lead sharing the email, Instagram handle or website.

        Blank values are ignored; if all three are blank nothing is queried.
        When several fields collide the reported one is picked in the order
        email, instagram, website.

        Returns:
            dict: {"is_duplicate", "field", "existing_lead", "error"}
        """
        values = {
            "email": (email or "").strip().lower(),
            "instagram": (instagram or "").strip(),
            "website": (website or "").strip(),
        }
        if values["instagram"]:
            values["instagram"] = normalize_instagram(values["instagram"])

        if not any(values.values()):
            return _no_duplicate()

        # Values may contain "_" themselves, so encode them unambiguously.
        cache_key = "duplicates_" + json.dumps(
            [values["email"], values["instagram"], values["website"], exclude_id or None]
        )
        cached = self.cache.get(cache_key)
        if cached is not MISS:
            return cached

        conditions = [
            getattr(Lead, field) == value
            for field, value in values.items()
            if value
        ]
        query = self._active().filter(or_(*conditions))
        if exclude_id:
            query = query.filter(Lead.id != exclude_id)
        matches = query.order_by(Lead.created_at.asc(), Lead.id.asc()).all()

        result = _no_duplicate()
        for field in Lead.DUPLICATE_FIELDS:
            value = values[field]
            hit = next(
                (lead for lead in matches if value and getattr(lead, field) == value),
                None,
            )
            if hit is not None:
                result = {
                    "is_duplicate": True,
                    "field": field,
                    "existing_lead": hit.to_dict(),
                    "error": None,
                }
                break

        self.cache.set(cache_key, result, DUPLICATES_TTL)
        return result

    @service_call("searching leads")
    def search_leads(self, term):
        """Case-insensitive substring search over the main contact columns."""
        normalized = (term or "").strip().lower()
        cache_key = f"search_{normalized}"

        cached = self.cache.get(cache_key)
        if cached is not MISS:
            return cached

        pattern = f"%{normalized}%"
        leads = (
            self._active()
            .filter(or_(*[column.ilike(pattern) for column in SEARCH_COLUMNS]))
            .order_by(Lead.created_at.desc(), Lead.id.desc())
            .limit(SEARCH_LIMIT)
            .all()
        )

        result = {"data": [lead.to_dict() for lead in leads], "error": None}
        self.cache.set(cache_key, result, SEARCH_TTL)
        return result

    @service_call("computing lead stats", on_error=_empty_stats)
    def get_leads_stats(self):
        """Active lead counts per status bucket, plus the total."""
        cache_key = "stats_leads"

        cached = self.cache.get(cache_key)
        if cached is not MISS:
            return cached

        rows = (
            self.session.query(Lead.status, func.count(Lead.id))
            .filter(Lead.active == "yes")
            .group_by(Lead.status)
            .all()
        )

        stats = _empty_stats(None)
        for status, count in rows:
            stats["total"] += count
            if status in stats:
                stats[status] = count

        self.cache.set(cache_key, stats, STATS_TTL)
        return stats

    @service_call("fetching leads by status")
    def get_leads_by_status(self, status):
        if status not in Lead.STATUSES:
            return failure(
                f"Invalid status '{status}'. Must be one of: {', '.join(Lead.STATUSES)}"
            )

        cache_key = f"leads_status_{status}"
        cached = self.cache.get(cache_key)
        if cached is not MISS:
            return cached

        leads = (
            self._active()
            .filter(Lead.status == status)
            .order_by(Lead.created_at.desc(), Lead.id.desc())
            .all()
        )

        result = {"data": [lead.to_dict() for lead in leads], "error": None}
        self.cache.set(cache_key, result, STATUS_TTL)
        return result

    # ─── Writes ─────────────────────────────────────────────

    def _product_missing(self, cleaned):
        product_id = cleaned.get("product_id")
        return product_id is not None and self.session.get(Product, product_id) is None

    @service_call("creating lead")
    def create_lead(self, data):
        """Validate, reject duplicates, insert.

        Returns:
            dict: {"data": lead dict, "error": None} or {"data": None, "error": msg}
        """
        cleaned, errors = validate_lead(data)
        if errors:
            return failure(" ".join(errors))

        check = self.check_duplicates(
            cleaned.get("email"),
            cleaned.get("instagram"),
            cleaned.get("website"),
        )
        if check["error"]:
            return failure(check["error"])
        if check["is_duplicate"]:
            logger.info(
                f"Rejected lead '{cleaned['name']}': duplicate {check['field']} "
                f"of lead {check['existing_lead']['id']}"
            )
            return failure(duplicate_message(check))

        if self._product_missing(cleaned):
            return not_found(f"Product {cleaned['product_id']} not found.")

        lead = Lead(**cleaned)
        self.session.add(lead)
        self.session.commit()

        self._invalidate_writes()
        logger.info(f"Created lead {lead.id} ({lead.name})")
        return {"data": lead.to_dict(), "error": None}

    @service_call("updating lead")
    def update_lead(self, lead_id, data):
        """Apply only the supplied fields to an existing lead."""
        cleaned, errors = validate_lead(data, partial=True)
        if errors:
            return failure(" ".join(errors))
        if not cleaned:
            return failure("No fields to update.")

        lead = self.session.get(Lead, lead_id)
        if lead is None:
            return not_found(f"Lead {lead_id} not found.")

        # A reactivated lead must not collide with active leads on its
        # stored contact fields either.
        reactivating = cleaned.get("active") == "yes" and not lead.is_active
        if reactivating:
            contact = {
                field: cleaned.get(field, getattr(lead, field))
                for field in Lead.DUPLICATE_FIELDS
            }
        else:
            contact = {field: cleaned.get(field) for field in Lead.DUPLICATE_FIELDS}

        if any(contact.values()):
            check = self.check_duplicates(
                contact["email"],
                contact["instagram"],
                contact["website"],
                exclude_id=lead_id,
            )
            if check["error"]:
                return failure(check["error"])
            if check["is_duplicate"]:
                return failure(duplicate_message(check))

        if self._product_missing(cleaned):
            return not_found(f"Product {cleaned['product_id']} not found.")

        for field, value in cleaned.items():
            setattr(lead, field, value)
        self.session.commit()

        self._invalidate_writes(lead_id)
        logger.info(f"Updated lead {lead_id}: {', '.join(sorted(cleaned))}")
        return {"data": lead.to_dict(), "error": None}

    @service_call("deactivating lead", on_error=lambda message: {"error": message})
    def delete_lead(self, lead_id):
        """Soft delete: mark the lead inactive, keep the row."""
        lead = self.session.get(Lead, lead_id)
        if lead is None:
            return {"error": f"Lead {lead_id} not found.", "code": NOT_FOUND}

        lead.active = "no"
        self.session.commit()

        self._invalidate_writes(lead_id)
        logger.info(f"Deactivated lead {lead_id}")
        return {"error": None}

    def clear_cache(self):
        self.cache.invalidate()
