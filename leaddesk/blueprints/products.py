"""Products blueprint — /api/products/*

Route Map:
  GET    /api/products                  — Catalog: all products + active/inactive stats
  GET    /api/products/<id>             — Single product
  POST   /api/products                  — Create product
  PATCH  /api/products/<id>             — Partial update
  POST   /api/products/<id>/toggle      — Flip active/inactive
"""

from flask import Blueprint

from leaddesk.blueprints import error_response, json_body, result_response
from leaddesk.services.registry import get_services

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.route("", methods=["GET"])
def catalog():
    return result_response(get_services().products.get_catalog(), error_status=500)


@products_bp.route("/<int:product_id>", methods=["GET"])
def get_product(product_id):
    return result_response(
        get_services().products.get_product_by_id(product_id), error_status=500
    )


@products_bp.route("", methods=["POST"])
def create_product():
    data = json_body()
    if data is None:
        return error_response("Invalid request.", 400)
    return result_response(get_services().products.create_product(data), success_status=201)


@products_bp.route("/<int:product_id>", methods=["PATCH", "PUT"])
def update_product(product_id):
    data = json_body()
    if data is None:
        return error_response("Invalid request.", 400)
    return result_response(get_services().products.update_product(product_id, data))


@products_bp.route("/<int:product_id>/toggle", methods=["POST"])
def toggle_product(product_id):
    return result_response(get_services().products.toggle_product_status(product_id))
