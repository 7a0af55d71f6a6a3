"""Product model — the catalog of offerings a lead can be pitched.

Products are retired by switching ``active`` off; rows are kept so leads
that reference them stay intact.
"""

from leaddesk.extensions import db
from leaddesk.models.base import isoformat


class Product(db.Model):
    __tablename__ = "products"

    MIN_TEXT_LENGTH = 100  # description and sales_prompt

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    sales_prompt = db.Column(db.Text, nullable=False)  # consultative pitch script
    active = db.Column(db.Boolean, nullable=False, default=True)
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
            "name": self.name,
            "description": self.description,
            "sales_prompt": self.sales_prompt,
            "active": self.active,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Product {self.name} ({'active' if self.active else 'inactive'})>"
