# backend/storepos/routes/reports.py
"""
Sales reporting routes.

SECURITY: ADMIN or MANAGER. Reports count COMPLETED orders only; refunded
orders drop out of revenue.
"""
from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import ValidationError
from ..models.auth import ROLE_ADMIN, ROLE_MANAGER
from ..services import reporting_service
from ..validation import parse_int
from . import error_response


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales/summary")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def sales_summary_route():
    return jsonify(reporting_service.sales_summary())


@reports_bp.get("/sales/daily")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def daily_sales_route():
    try:
        days = parse_int(request.args.get("days", "30"), "days")
        rows = reporting_service.daily_sales(days=days)
    except ValidationError as e:
        return error_response(e, 400)
    return jsonify(rows)


@reports_bp.get("/products/top")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def top_products_route():
    try:
        rows = reporting_service.top_products(
            limit=parse_int(request.args.get("limit", "10"), "limit"),
            start=request.args.get("startDate"),
            end=request.args.get("endDate"),
        )
    except ValidationError as e:
        return error_response(e, 400)
    return jsonify(rows)


@reports_bp.get("/payment-methods")
@require_auth
@require_role(ROLE_ADMIN, ROLE_MANAGER)
def payment_methods_route():
    try:
        rows = reporting_service.payment_method_totals(
            start=request.args.get("startDate"),
            end=request.args.get("endDate"),
        )
    except ValidationError as e:
        return error_response(e, 400)
    return jsonify(rows)
