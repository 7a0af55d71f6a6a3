"""Messages service — outreach log reads/writes and the per-lead grouped view.

Cached the same way as leads. Any message write drops every per-lead page,
every all-messages page, the grouped view and the stats in one go; the
grouped view is one aggregate entry and is never patched in place.
"""

import logging
from collections import Counter

from leaddesk.cache import MISS, CacheManager
from leaddesk.extensions import db
from leaddesk.models.lead import Lead
from leaddesk.models.message import Message
from leaddesk.services.base import (
    NOT_FOUND,
    failure,
    not_found,
    page_window,
    service_call,
)
from leaddesk.validation import validate_message

logger = logging.getLogger(__name__)

# TTLs in minutes
LEAD_PAGE_TTL = 3
DETAIL_TTL = 5
ALL_PAGE_TTL = 2
STATS_TTL = 5
GROUPED_TTL = 3

GROUPED_KEY = "messages_grouped_by_lead"
STATS_KEY = "stats_messages"

WRITE_INVALIDATES = ("messages_lead", "messages_page", GROUPED_KEY, STATS_KEY)


def _detail_key(message_id):
    return f"message_{message_id}_detail"


def _empty_stats(error):
    return {
        "total": 0,
        "sent": 0,
        "received": 0,
        "first_contact": 0,
        "follow_up": 0,
        "error": error,
    }


class MessagesService:
    def __init__(self, cache=None, session=None):
        self.cache = cache if cache is not None else CacheManager()
        self.session = session if session is not None else db.session

    def _invalidate_writes(self, message_id=None):
        for group in WRITE_INVALIDATES:
            self.cache.invalidate(group)
        if message_id is not None:
            self.cache.invalidate(_detail_key(message_id))

    # ─── Writes ─────────────────────────────────────────────

    @service_call("creating message")
    def create_message(self, data):
        """Log a message against an existing lead."""
        cleaned, errors = validate_message(data)
        if errors:
            return failure(" ".join(errors))

        if self.session.get(Lead, cleaned["lead_id"]) is None:
            return not_found(f"Lead {cleaned['lead_id']} not found.")

        message = Message(**cleaned)
        self.session.add(message)
        self.session.commit()

        self._invalidate_writes()
        logger.info(
            f"Logged {message.direction} {message.kind} message {message.id} "
            f"on lead {message.lead_id} via {message.channel}"
        )
        return {"data": message.to_dict(), "error": None}

    @service_call("updating message")
    def update_message(self, message_id, data):
        cleaned, errors = validate_message(data, partial=True)
        if errors:
            return failure(" ".join(errors))
        if not cleaned:
            return failure("No fields to update.")

        message = self.session.get(Message, message_id)
        if message is None:
            return not_found(f"Message {message_id} not found.")

        for field, value in cleaned.items():
            setattr(message, field, value)
        self.session.commit()

        self._invalidate_writes(message_id)
        return {"data": message.to_dict(), "error": None}

    @service_call("deleting message", on_error=lambda message: {"error": message})
    def delete_message(self, message_id):
        """Hard delete. Messages have no soft-delete flag."""
        message = self.session.get(Message, message_id)
        if message is None:
            return {"error": f"Message {message_id} not found.", "code": NOT_FOUND}

        self.session.delete(message)
        self.session.commit()

        self._invalidate_writes(message_id)
        logger.info(f"Deleted message {message_id}")
        return {"error": None}

    # ─── Reads ──────────────────────────────────────────────

    @service_call("fetching messages")
    def get_messages_by_lead(self, lead_id, page=1, limit=20):
        """One lead's messages, newest first, paginated."""
        page, limit, offset = page_window(page, limit)
        cache_key = f"messages_lead_{lead_id}_page_{page}_limit_{limit}"

        cached = self.cache.get(cache_key)
        if cached is not MISS:
            return cached

        query = self.session.query(Message).filter(Message.lead_id == lead_id)
        total = query.count()
        messages = (
            query
            .order_by(Message.created_at.desc(), Message.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

        result = {
            "data": [m.to_dict() for m in messages],
            "error": None,
            "count": total,
        }
        self.cache.set(cache_key, result, LEAD_PAGE_TTL)
        return result

    @service_call("fetching message")
    def get_message_by_id(self, message_id):
        cache_key = _detail_key(message_id)

        cached = self.cache.get(cache_key)
        if cached is not MISS:
            return cached

        message = self.session.get(Message, message_id)
        if message is None:
            return not_found(f"Message {message_id} not found.")

        result = {"data": message.to_dict(), "error": None}
        self.cache.set(cache_key, result, DETAIL_TTL)
        return result

    @service_call("fetching all messages")
    def get_all_messages(self, page=1, limit=50):
        """Every message, newest first, each with its lead's name and email."""
        page, limit, offset = page_window(page, limit)
        cache_key = f"messages_page_{page}_limit_{limit}"

        cached = self.cache.get(cache_key)
        if cached is not MISS:
            return cached

        query = (
            self.session.query(Message, Lead.name, Lead.email)
            .join(Lead, Message.lead_id == Lead.id)
        )
        total = query.count()
        rows = (
            query
            .order_by(Message.created_at.desc(), Message.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

        data = []
        for message, lead_name, lead_email in rows:
            item = message.to_dict()
            item["lead"] = {"name": lead_name, "email": lead_email}
            data.append(item)

        result = {"data": data, "error": None, "count": total}
        self.cache.set(cache_key, result, ALL_PAGE_TTL)
        return result

    @service_call("computing message stats", on_error=_empty_stats)
    def get_messages_stats(self):
        """Counts by direction (sent/received) and kind (first contact/follow-up)."""
        cached = self.cache.get(STATS_KEY)
        if cached is not MISS:
            return cached

        rows = self.session.query(Message.direction, Message.kind).all()
        directions = Counter(direction for direction, _ in rows)
        kinds = Counter(kind for _, kind in rows)

        stats = {
            "total": len(rows),
            "sent": directions["sent"],
            "received": directions["received"],
            "first_contact": kinds["first_contact"],
            "follow_up": kinds["follow_up"],
            "error": None,
        }
        self.cache.set(STATS_KEY, stats, STATS_TTL)
        return stats

    @service_call("grouping messages by lead")
    def get_messages_grouped_by_lead(self):
        """All messages partitioned by lead.

        Returns:
            dict: {"data": [{"lead": {...}, "messages": [...]}, ...], "error": None}

            One entry per lead with at least one message. Groups are ordered
            by their most recent message; messages inside a group are sorted
            by sent_at, newest first.
        """
        cached = self.cache.get(GROUPED_KEY)
        if cached is not MISS:
            return cached

        rows = (
            self.session.query(Message, Lead)
            .join(Lead, Message.lead_id == Lead.id)
            .order_by(Message.sent_at.desc(), Message.id.desc())
            .all()
        )

        groups = {}  # lead id -> (lead, [messages]); insertion order = recency
        for message, lead in rows:
            groups.setdefault(lead.id, (lead, []))[1].append(message)

        data = []
        for lead, messages in groups.values():
            messages.sort(key=lambda m: m.sent_at, reverse=True)
            data.append({
                "lead": lead.identity(),
                "messages": [m.to_dict() for m in messages],
            })

        result = {"data": data, "error": None}
        self.cache.set(GROUPED_KEY, result, GROUPED_TTL)
        return result

    def clear_cache(self):
        self.cache.invalidate()
