# backend/storepos/routes/inventory.py
"""
Inventory routes.

SECURITY: All routes require authentication.
- Any role can view stock levels and movement history
- Manual adjustments require ADMIN or MANAGER

Stock only changes through the ledger; there is no endpoint that sets a
quantity directly.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import InsufficientStockError, InventoryNotFoundError, ValidationError
from ..extensions import db
from ..models.auth import ROLE_ADMIN, ROLE_MANAGER
from ..services import build_services
from ..validation import parse_int, parse_note, require_json_object
from . import error_response


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
def list_inventory_route():
    ledger = build_services(db.session).ledger
    return jsonify([inventory.to_dict() for inventory in ledger.list_inventory()])


@inventory_bp.get("/low-stock")
@require_auth
def low_stock_route():
    """Products at or below their reorder threshold, emptiest first."""
    ledger = build_services(db.session).ledger
    return jsonify([inventory.to_dict() for inventory in ledger.list_low_stock()])


@inventory_bp.get("/<int:product_id>/movements")
@require_auth
def list_movements_route(product_id: int):
    ledger = build_services(db.session).ledger
    try:
        movements = ledger.list_movements(
            product_id,
            limit=current_app.config.get("MOVEMENT_HISTORY_LIMIT", 50),
        )
    except InventoryNotFoundError as e:
        return error_response(e, 404)
    return jsonify([movement.to_dict() for movement in movements])


@inventory_bp.post("/<int:product_id>/adjust")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def adjust_inventory_route(product_id: int):
    """
    Manual signed adjustment (stock count corrections, shrink, damage).

    Body: {quantity: <non-zero int>, note?}
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        if payload.get("quantity") is None:
            raise ValidationError("quantity is required")
        delta = parse_int(payload["quantity"], "quantity")

        note = parse_note(payload.get("note"))

        inventory = build_services(db.session).ledger.adjust(product_id, delta, note)
    except InventoryNotFoundError as e:
        return error_response(e, 404)
    except (ValidationError, InsufficientStockError) as e:
        return error_response(e, 400)
    except Exception:
        current_app.logger.exception("Failed to adjust inventory")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Inventory for product %s adjusted by %s (user %s), now %s",
        product_id, delta, g.current_user.id, inventory.quantity,
    )
    return jsonify(inventory.to_dict())
