from __future__ import annotations

from sqlalchemy import event, inspect

from ..extensions import db
from ..money import from_cents
from storepos.time_utils import to_utc_z


ORDER_STATUS_PENDING = "PENDING"
ORDER_STATUS_COMPLETED = "COMPLETED"
ORDER_STATUS_REFUNDED = "REFUNDED"
ORDER_STATUS_CANCELLED = "CANCELLED"

ORDER_STATUSES = (
    ORDER_STATUS_PENDING,
    ORDER_STATUS_COMPLETED,
    ORDER_STATUS_REFUNDED,
    ORDER_STATUS_CANCELLED,
)

PAYMENT_METHODS = ("CASH", "CREDIT_CARD", "DEBIT_CARD", "LINE_PAY", "OTHER")

# Amounts are fixed at checkout and kept for audit, including after refund
FROZEN_AMOUNT_FIELDS = ("subtotal_cents", "discount_cents", "tax_cents", "total_cents")


class Order(db.Model):
    """
    A completed checkout.

    Orders are created directly as COMPLETED together with their items and
    stock decrements. REFUNDED flips the status only; the amounts stay as
    rung up. PENDING and CANCELLED are reserved for future flows.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("order_number", name="uq_orders_order_number"),
        db.Index("ix_orders_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number printed on receipts (e.g., "ORD-20261019-000042")
    order_number = db.Column(db.String(32), nullable=False)

    status = db.Column(db.String(16), nullable=False, default=ORDER_STATUS_COMPLETED, index=True)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)

    # Label only; no gateway processing
    payment_method = db.Column(db.String(16), nullable=False)
    note = db.Column(db.String(255), nullable=True)

    cashier_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    # Refund audit trail
    refunded_at = db.Column(db.DateTime(timezone=True), nullable=True)
    refunded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    cashier = db.relationship("User", foreign_keys=[cashier_id])
    refunded_by = db.relationship("User", foreign_keys=[refunded_by_user_id])
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.id",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Order id={self.id} number={self.order_number!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "status": self.status,
            "subtotal": from_cents(self.subtotal_cents),
            "discountAmount": from_cents(self.discount_cents),
            "taxAmount": from_cents(self.tax_cents),
            "total": from_cents(self.total_cents),
            "paymentMethod": self.payment_method,
            "note": self.note,
            "createdAt": to_utc_z(self.created_at),
            "refundedAt": to_utc_z(self.refunded_at) if self.refunded_at else None,
            "cashier": {"id": self.cashier.id, "name": self.cashier.name} if self.cashier else None,
            "items": [item.to_dict() for item in self.items],
        }


class OrderItem(db.Model):
    """Order line; unit_price_cents is a snapshot of Product.price_cents at checkout."""
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    subtotal_cents = db.Column(db.Integer, nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "unitPrice": from_cents(self.unit_price_cents),
            "subtotal": from_cents(self.subtotal_cents),
            "product": self.product.to_summary() if self.product else None,
        }


@event.listens_for(Order, "before_update")
def _order_amounts_are_frozen(mapper, connection, target):
    state = inspect(target)
    changed = [name for name in FROZEN_AMOUNT_FIELDS if state.attrs[name].history.has_changes()]
    if changed:
        raise RuntimeError(f"Order amounts are frozen after checkout: {', '.join(changed)}")


@event.listens_for(OrderItem, "before_update")
def _order_item_is_immutable(mapper, connection, target):
    raise RuntimeError("OrderItem records are immutable")


@event.listens_for(OrderItem, "before_delete")
def _order_item_cannot_be_deleted(mapper, connection, target):
    raise RuntimeError("OrderItem records cannot be deleted")
