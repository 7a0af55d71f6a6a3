"""Products service — catalog CRUD and active/inactive stats.

Low traffic, so no cache. Products are never deleted; retiring one means
toggling ``active`` off.
"""

import logging

from sqlalchemy import func

from leaddesk.extensions import db
from leaddesk.models.product import Product
from leaddesk.services.base import failure, not_found, service_call
from leaddesk.validation import validate_product

logger = logging.getLogger(__name__)


def _empty_stats(error):
    return {"total": 0, "ativos": 0, "inativos": 0, "error": error}


class ProductsService:
    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    @service_call("fetching products")
    def get_products(self):
        products = (
            self.session.query(Product)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .all()
        )
        return {"data": [p.to_dict() for p in products], "error": None}

    @service_call("fetching product")
    def get_product_by_id(self, product_id):
        product = self.session.get(Product, product_id)
        if product is None:
            return not_found(f"Product {product_id} not found.")
        return {"data": product.to_dict(), "error": None}

    @service_call("creating product")
    def create_product(self, data):
        cleaned, errors = validate_product(data)
        if errors:
            return failure(" ".join(errors))

        product = Product(**cleaned)
        self.session.add(product)
        self.session.commit()

        logger.info(f"Created product {product.id} ({product.name})")
        return {"data": product.to_dict(), "error": None}

    @service_call("updating product")
    def update_product(self, product_id, data):
        cleaned, errors = validate_product(data, partial=True)
        if errors:
            return failure(" ".join(errors))
        if not cleaned:
            return failure("No fields to update.")

        product = self.session.get(Product, product_id)
        if product is None:
            return not_found(f"Product {product_id} not found.")

        for field, value in cleaned.items():
            setattr(product, field, value)
        self.session.commit()

        return {"data": product.to_dict(), "error": None}

    @service_call("toggling product status")
    def toggle_product_status(self, product_id):
        """Flip a product between active and inactive.

        Read-modify-write with no version check: two concurrent toggles can
        cancel each other out. Fine for a single operator.
        """
        current = self.get_product_by_id(product_id)
        if current["error"]:
            return current

        product = self.session.get(Product, product_id)
        product.active = not current["data"]["active"]
        self.session.commit()

        logger.info(
            f"Product {product_id} is now {'active' if product.active else 'inactive'}"
        )
        return {"data": product.to_dict(), "error": None}

    @service_call("computing product stats", on_error=_empty_stats)
    def get_products_stats(self):
        rows = (
            self.session.query(Product.active, func.count(Product.id))
            .group_by(Product.active)
            .all()
        )

        stats = _empty_stats(None)
        for active, count in rows:
            stats["total"] += count
            stats["ativos" if active else "inativos"] += count
        return stats

    def get_catalog(self):
        """Product list plus stats, as the catalog page loads them together.

        A stats failure is logged and reported as zero counts; only a list
        failure fails the call.
        """
        products = self.get_products()
        stats = self.get_products_stats()

        if stats["error"]:
            logger.error(f"Error loading product stats: {stats['error']}")

        return {
            "data": products["data"],
            "stats": {k: v for k, v in stats.items() if k != "error"},
            "error": products["error"],
        }
