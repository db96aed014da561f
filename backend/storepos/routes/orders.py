# Overview: Flask API routes for orders; checkout, order lookup and refunds.

# backend/storepos/routes/orders.py
"""
Order routes.

SECURITY: All routes require authentication.
- Any role can ring up and look up orders
- Refunds require ADMIN or MANAGER

Amounts on the wire are decimals (discountAmount: 5.5); the engines work in
integer cents.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import (
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    OrderNotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from ..extensions import db
from ..models.auth import ROLE_ADMIN, ROLE_MANAGER
from ..money import to_cents
from ..services import build_services
from ..validation import parse_cart_items, parse_int, parse_note, require_json_object
from . import error_response


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@require_auth
def create_order_route():
    """
    Checkout.

    Body: {items: [{productId, quantity}], paymentMethod, discountAmount?, note?}
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        items = parse_cart_items(payload.get("items"))

        discount = payload.get("discountAmount")
        discount_cents = 0 if discount is None else to_cents(discount, "discountAmount")

        note = parse_note(payload.get("note"))

        order = build_services(db.session).orders.checkout(
            cashier_id=g.current_user.id,
            items=items,
            payment_method=payload.get("paymentMethod"),
            discount_cents=discount_cents,
            note=note,
        )
    except (ValidationError, ProductNotFoundError, InsufficientStockError) as e:
        return error_response(e, 400)
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Order %s completed by user %s: total_cents=%s items=%s",
        order.order_number, g.current_user.id, order.total_cents, len(order.items),
    )
    return jsonify(order.to_dict()), 201


@orders_bp.get("")
@require_auth
def list_orders_route():
    """
    List orders, newest first.

    Query: page, limit, startDate, endDate, status
    """
    try:
        result = build_services(db.session).orders.list_orders(
            page=parse_int(request.args.get("page", "1"), "page"),
            limit=parse_int(request.args.get("limit", "20"), "limit"),
            start=request.args.get("startDate"),
            end=request.args.get("endDate"),
            status=request.args.get("status"),
        )
    except ValidationError as e:
        return error_response(e, 400)

    return jsonify({
        "orders": [order.to_dict() for order in result["orders"]],
        "total": result["total"],
        "page": result["page"],
        "limit": result["limit"],
    })


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    try:
        order = build_services(db.session).orders.get_order(order_id)
    except OrderNotFoundError as e:
        return error_response(e, 404)
    return jsonify(order.to_dict())


@orders_bp.post("/<int:order_id>/refund")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def refund_order_route(order_id: int):
    """Full refund: status to REFUNDED and every line's stock restored."""
    try:
        order = build_services(db.session).refunds.refund(order_id, actor_user_id=g.current_user.id)
    except NotFoundError as e:
        return error_response(e, 404)
    except (InvalidStateError, ValidationError) as e:
        return error_response(e, 400)
    except Exception:
        current_app.logger.exception("Failed to refund order")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Order %s refunded by user %s", order.order_number, g.current_user.id,
    )
    return jsonify(order.to_dict())
