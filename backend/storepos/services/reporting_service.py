# Overview: Service-layer operations for reporting; read-only aggregates over completed orders.

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func

from ..errors import ValidationError
from ..extensions import db
from ..models import Order, OrderItem, Product
from ..models.orders import ORDER_STATUS_COMPLETED
from ..money import from_cents
from storepos.time_utils import parse_date_bound, start_of_day, start_of_month, utcnow


MAX_DAILY_DAYS = 366
MAX_TOP_PRODUCTS = 100


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    try:
        return parse_date_bound(start), parse_date_bound(end, end=True)
    except ValueError:
        raise ValidationError("startDate/endDate must be ISO-8601 dates")


def _completed_orders(start_dt: datetime | None = None, end_dt: datetime | None = None):
    query = db.session.query(Order).filter(Order.status == ORDER_STATUS_COMPLETED)
    if start_dt is not None:
        query = query.filter(Order.created_at >= start_dt)
    if end_dt is not None:
        query = query.filter(Order.created_at <= end_dt)
    return query


def _revenue_and_count(start_dt: datetime) -> dict:
    revenue_cents, orders = (
        _completed_orders(start_dt)
        .with_entities(func.coalesce(func.sum(Order.total_cents), 0), func.count(Order.id))
        .one()
    )
    return {"revenue": from_cents(int(revenue_cents)), "orders": int(orders)}


def sales_summary(now: datetime | None = None) -> dict:
    """Today and month-to-date revenue plus the all-time completed order count."""
    now = now or utcnow()
    return {
        "today": _revenue_and_count(start_of_day(now)),
        "month": _revenue_and_count(start_of_month(now)),
        "total": {"orders": _completed_orders().count()},
    }


def daily_sales(days: int = 30, now: datetime | None = None) -> list[dict]:
    """
    One row per calendar day (UTC) over the last `days` days, oldest first.

    Days without sales are included with zeros so charts have no gaps.
    """
    if days < 1 or days > MAX_DAILY_DAYS:
        raise ValidationError(f"days must be between 1 and {MAX_DAILY_DAYS}")

    now = now or utcnow()
    first_day = start_of_day(now) - timedelta(days=days - 1)

    buckets: dict[str, dict] = {}
    for offset in range(days):
        day = (first_day + timedelta(days=offset)).date().isoformat()
        buckets[day] = {"date": day, "revenue_cents": 0, "orders": 0}

    rows = (
        _completed_orders(first_day)
        .with_entities(Order.created_at, Order.total_cents)
        .all()
    )
    for created_at, total_cents in rows:
        bucket = buckets.get(created_at.date().isoformat())
        if bucket is None:
            continue
        bucket["revenue_cents"] += total_cents
        bucket["orders"] += 1

    return [
        {"date": b["date"], "revenue": from_cents(b["revenue_cents"]), "orders": b["orders"]}
        for b in buckets.values()
    ]


def top_products(*, limit: int = 10, start: str | None = None, end: str | None = None) -> list[dict]:
    if limit < 1 or limit > MAX_TOP_PRODUCTS:
        raise ValidationError(f"limit must be between 1 and {MAX_TOP_PRODUCTS}")
    start_dt, end_dt = _parse_range(start, end)

    total_quantity = func.sum(OrderItem.quantity).label("total_quantity")
    query = (
        db.session.query(
            Product,
            total_quantity,
            func.sum(OrderItem.subtotal_cents).label("total_revenue_cents"),
            func.count(func.distinct(OrderItem.order_id)).label("order_count"),
        )
        .join(OrderItem, OrderItem.product_id == Product.id)
        .join(Order, Order.id == OrderItem.order_id)
        .filter(Order.status == ORDER_STATUS_COMPLETED)
    )
    if start_dt is not None:
        query = query.filter(Order.created_at >= start_dt)
    if end_dt is not None:
        query = query.filter(Order.created_at <= end_dt)

    rows = (
        query.group_by(Product.id)
        .order_by(total_quantity.desc(), Product.id.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "product": {"id": product.id, "name": product.name, "sku": product.sku},
            "totalQuantity": int(qty or 0),
            "totalRevenue": from_cents(int(revenue or 0)),
            "orderCount": int(order_count or 0),
        }
        for product, qty, revenue, order_count in rows
    ]


def payment_method_totals(*, start: str | None = None, end: str | None = None) -> list[dict]:
    start_dt, end_dt = _parse_range(start, end)
    rows = (
        _completed_orders(start_dt, end_dt)
        .with_entities(
            Order.payment_method,
            func.coalesce(func.sum(Order.total_cents), 0),
            func.count(Order.id),
        )
        .group_by(Order.payment_method)
        .order_by(Order.payment_method.asc())
        .all()
    )
    return [
        {"paymentMethod": method, "total": from_cents(int(total)), "orders": int(count)}
        for method, total, count in rows
    ]
