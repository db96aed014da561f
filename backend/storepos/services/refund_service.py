"""
Refund Engine

WHY: A refund must put back exactly what the checkout took, exactly once.
The COMPLETED -> REFUNDED transition is a compare-and-set in the same unit
of work as the stock restores, so two refund attempts can never both see
COMPLETED and both credit stock.

Amounts on the order are never touched; a refunded order keeps its original
subtotal/discount/total for audit.
"""

from __future__ import annotations

from sqlalchemy import update

from ..errors import InvalidStateError, OrderNotFoundError
from ..models import Order
from ..models.orders import ORDER_STATUS_COMPLETED, ORDER_STATUS_REFUNDED
from storepos.time_utils import utcnow
from .concurrency import lock_for_update, unit_of_work


class RefundEngine:
    def __init__(self, session, ledger):
        self.session = session
        self.ledger = ledger

    def refund(self, order_id: int, actor_user_id: int | None = None) -> Order:
        with unit_of_work(self.session):
            order = (
                lock_for_update(self.session.query(Order).filter_by(id=order_id))
                .populate_existing()
                .first()
            )
            if order is None:
                raise OrderNotFoundError("Order not found", details={"order_id": order_id})

            if order.status != ORDER_STATUS_COMPLETED:
                raise InvalidStateError(
                    f"Order {order.order_number} has status {order.status} and cannot be refunded",
                    details={"status": order.status},
                )

            result = self.session.execute(
                update(Order)
                .where(Order.id == order.id, Order.status == ORDER_STATUS_COMPLETED)
                .values(
                    status=ORDER_STATUS_REFUNDED,
                    refunded_at=utcnow(),
                    refunded_by_user_id=actor_user_id,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                # Lost the race to another refund of the same order
                self.session.refresh(order)
                raise InvalidStateError(
                    f"Order {order.order_number} has status {order.status} and cannot be refunded",
                    details={"status": order.status},
                )

            for item in order.items:
                self.ledger.restore_for_refund(
                    item.product_id,
                    item.quantity,
                    note=f"Refund {order.order_number}",
                )

        self.session.refresh(order)
        return order
