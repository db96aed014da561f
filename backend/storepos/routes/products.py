# backend/storepos/routes/products.py
"""
Product catalog routes.

SECURITY: All routes require authentication.
- Any role can browse the catalog (the register needs it)
- Create/update require ADMIN or MANAGER
- Delete (deactivate) requires ADMIN

price/cost are decimal amounts on the wire and cents in the database.
"""
from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import ConflictError, ProductNotFoundError, ValidationError
from ..models.auth import ROLE_ADMIN, ROLE_MANAGER
from ..services import catalog_service
from ..validation import parse_int
from . import error_response


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products_route():
    """Query: search, categoryId, includeInactive"""
    try:
        category_id = request.args.get("categoryId")
        products = catalog_service.list_products(
            search=request.args.get("search"),
            category_id=parse_int(category_id, "categoryId") if category_id else None,
            include_inactive=request.args.get("includeInactive", "false").lower() == "true",
        )
    except ValidationError as e:
        return error_response(e, 400)
    return jsonify([product.to_dict() for product in products])


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = catalog_service.get_product(product_id)
    except ProductNotFoundError as e:
        return error_response(e, 404)
    return jsonify(product.to_dict())


@products_bp.post("")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def create_product_route():
    """
    Body: {name, sku, price, categoryId, cost?, barcode?, description?,
           imageUrl?, initialStock?, minQuantity?}
    """
    try:
        product = catalog_service.create_product(
            request.get_json(silent=True),
            default_min_quantity=current_app.config.get("DEFAULT_MIN_QUANTITY", 5),
        )
    except ValidationError as e:
        return error_response(e, 400)
    except ConflictError as e:
        return error_response(e, 409)
    return jsonify(product.to_dict()), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def update_product_route(product_id: int):
    try:
        product = catalog_service.update_product(product_id, request.get_json(silent=True))
    except ProductNotFoundError as e:
        return error_response(e, 404)
    except ValidationError as e:
        return error_response(e, 400)
    except ConflictError as e:
        return error_response(e, 409)
    return jsonify(product.to_dict())


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_product_route(product_id: int):
    try:
        product = catalog_service.deactivate_product(product_id)
    except ProductNotFoundError as e:
        return error_response(e, 404)
    return jsonify(product.to_dict())
