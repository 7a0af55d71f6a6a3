"""Message model — outreach log.

One outreach event (sent or received) on a lead: first contact or follow-up,
over one channel. Displayed per lead as a timeline, newest first.
"""

from datetime import datetime, timezone

from leaddesk.extensions import db
from leaddesk.models.base import isoformat


class Message(db.Model):
    __tablename__ = "messages"

    CHANNELS = [
        "facebook",
        "whatsapp",
        "instagram",
        "in_person",
        "email",
        "phone_call",
    ]
    KINDS = ["first_contact", "follow_up"]
    DIRECTIONS = ["sent", "received"]

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    lead_id = db.Column(
        db.Integer,
        db.ForeignKey("leads.id"),
        nullable=False,
        index=True,
    )
    body = db.Column(db.Text, nullable=False)
    channel = db.Column(db.String(50), nullable=False)
    kind = db.Column(db.String(50), nullable=False)  # first_contact | follow_up
    direction = db.Column(db.String(20), default="sent", nullable=False)
    sent_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "lead_id": self.lead_id,
            "body": self.body,
            "channel": self.channel,
            "kind": self.kind,
            "direction": self.direction,
            "sent_at": isoformat(self.sent_at),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Message {self.kind} via {self.channel} on lead {self.lead_id}>"
