# backend/storepos/routes/users.py
"""
Staff account administration.

SECURITY: ADMIN only. Accounts are deactivated rather than deleted because
orders keep a reference to the cashier who rang them up.
"""
from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import ConflictError, UserNotFoundError, ValidationError
from ..models.auth import ROLE_ADMIN
from ..services import auth_service
from ..validation import require_json_object
from . import error_response


users_bp = Blueprint("users", __name__, url_prefix="/api/users")

# Wire key -> auth_service patch key
_USER_PATCH_FIELDS = {
    "name": "name",
    "email": "email",
    "role": "role",
    "isActive": "is_active",
    "password": "password",
}


@users_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_users_route():
    return jsonify([user.to_dict() for user in auth_service.list_users()])


@users_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_user_route():
    """Body: {name, email, password, role}"""
    try:
        data = require_json_object(request.get_json(silent=True))
        missing = [k for k in ("name", "email", "password", "role") if not data.get(k)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        user = auth_service.create_user(
            name=data["name"],
            email=data["email"],
            password=data["password"],
            role=data["role"],
        )
    except ValidationError as e:
        return error_response(e, 400)
    except ConflictError as e:
        return error_response(e, 409)

    return jsonify(user.to_dict()), 201


@users_bp.put("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_user_route(user_id: int):
    try:
        data = require_json_object(request.get_json(silent=True))
        unknown = [k for k in data if k not in _USER_PATCH_FIELDS]
        if unknown:
            raise ValidationError(f"Field not allowed: {unknown[0]}")
        if "isActive" in data and not isinstance(data["isActive"], bool):
            raise ValidationError("isActive must be true or false")

        patch = {_USER_PATCH_FIELDS[k]: v for k, v in data.items()}
        user = auth_service.update_user(user_id, patch, actor_user_id=g.current_user.id)
    except UserNotFoundError as e:
        return error_response(e, 404)
    except ValidationError as e:
        return error_response(e, 400)
    except ConflictError as e:
        return error_response(e, 409)

    return jsonify(user.to_dict())


@users_bp.delete("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_user_route(user_id: int):
    try:
        user = auth_service.deactivate_user(user_id, actor_user_id=g.current_user.id)
    except UserNotFoundError as e:
        return error_response(e, 404)
    except ValidationError as e:
        return error_response(e, 400)

    return jsonify(user.to_dict())
