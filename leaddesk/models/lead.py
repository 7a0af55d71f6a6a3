"""Lead model.

A prospect contact tracked through the outreach pipeline. Leads are never
hard-deleted: "deleting" flips ``active`` to "no" and the row drops out of
every default listing, search, stat and duplicate check.
"""

from leaddesk.extensions import db
from leaddesk.models.base import isoformat


class Lead(db.Model):
    __tablename__ = "leads"

    # -- Pipeline status buckets --
    STATUSES = [
        "none",
        "no_response",
        "not_interested",
        "maybe",
        "medium_interest",
        "very_interested",
        "busy",
    ]

    ACTIVE_VALUES = ["yes", "no"]

    # Fields compared by the duplicate check, in reporting precedence.
    DUPLICATE_FIELDS = ["email", "instagram", "website"]

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True, index=True)
    phone = db.Column(db.String(50), nullable=False)
    instagram = db.Column(db.String(120), nullable=True, index=True)
    decision_maker = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(500), nullable=False)
    city = db.Column(db.String(255), nullable=False)
    state = db.Column(db.String(2), nullable=False)
    website = db.Column(db.String(500), nullable=True, index=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id"),
        nullable=True,
    )
    status = db.Column(db.String(50), default="none", nullable=False)
    active = db.Column(db.String(3), default="yes", nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)  # free-form, max 1000 chars
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def is_active(self):
        return self.active == "yes"

    def identity(self):
        """Minimal identity fields shown next to messages."""
        return {
            "id": self.id,
            "name": self.name,
            "instagram": self.instagram,
            "phone": self.phone,
            "email": self.email,
        }

    def to_dict(self):
        from leaddesk.validation import format_phone

        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "phone_display": format_phone(self.phone or ""),
            "instagram": self.instagram,
            "decision_maker": self.decision_maker,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "website": self.website,
            "product_id": self.product_id,
            "status": self.status,
            "active": self.active,
            "notes": self.notes,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Lead {self.name} ({self.status})>"
