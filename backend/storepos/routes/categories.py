# backend/storepos/routes/categories.py
from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import CategoryNotFoundError, ConflictError, ValidationError
from ..models.auth import ROLE_ADMIN, ROLE_MANAGER
from ..services import catalog_service
from . import error_response


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories_route():
    include_inactive = request.args.get("includeInactive", "false").lower() == "true"
    rows = catalog_service.list_categories(include_inactive=include_inactive)
    return jsonify([category.to_dict(product_count=count) for category, count in rows])


@categories_bp.post("")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def create_category_route():
    try:
        category = catalog_service.create_category(request.get_json(silent=True))
    except ValidationError as e:
        return error_response(e, 400)
    except ConflictError as e:
        return error_response(e, 409)
    return jsonify(category.to_dict()), 201


@categories_bp.put("/<int:category_id>")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def update_category_route(category_id: int):
    try:
        category = catalog_service.update_category(category_id, request.get_json(silent=True))
    except CategoryNotFoundError as e:
        return error_response(e, 404)
    except ValidationError as e:
        return error_response(e, 400)
    except ConflictError as e:
        return error_response(e, 409)
    return jsonify(category.to_dict())


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_category_route(category_id: int):
    try:
        category = catalog_service.deactivate_category(category_id)
    except CategoryNotFoundError as e:
        return error_response(e, 404)
    return jsonify(category.to_dict())
