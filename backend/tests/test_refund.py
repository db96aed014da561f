"""
Refund engine tests.

Verifies:
- A refund restores exactly what the checkout took, with RETURN movements
- A second refund is rejected and writes nothing
- Order amounts never change, including through refund
"""

import pytest
from sqlalchemy import update

from storepos.errors import InvalidStateError, OrderNotFoundError
from storepos.models import Order
from storepos.models.orders import ORDER_STATUS_COMPLETED, ORDER_STATUS_REFUNDED
from storepos.services import refund_service


@pytest.fixture
def sold(services, cashier, make_product):
    """Product with stock 10 at price 20, and an order for 3 of it with 5 off."""
    product = make_product(price=20, stock=10)
    order = services.orders.checkout(
        cashier_id=cashier.id,
        items=[{"product_id": product.id, "quantity": 3}],
        payment_method="CASH",
        discount_cents=500,
    )
    return product, order


class TestRefund:
    def test_refund_restores_stock_once(self, services, manager, sold, quantity_of, movements_of):
        product, order = sold
        assert quantity_of(product.id) == 7

        refunded = services.refunds.refund(order.id, actor_user_id=manager.id)

        assert refunded.status == ORDER_STATUS_REFUNDED
        assert refunded.refunded_at is not None
        assert refunded.refunded_by_user_id == manager.id
        assert quantity_of(product.id) == 10
        returns = [m for m in movements_of(product.id) if m.type == "RETURN"]
        assert [(m.quantity, m.note) for m in returns] == [(3, f"Refund {order.order_number}")]

    def test_second_refund_rejected_without_side_effects(
        self, services, manager, sold, quantity_of, movements_of
    ):
        product, order = sold
        services.refunds.refund(order.id, actor_user_id=manager.id)
        movement_count = len(movements_of(product.id))

        with pytest.raises(InvalidStateError) as exc:
            services.refunds.refund(order.id, actor_user_id=manager.id)

        assert "REFUNDED" in str(exc.value)
        assert exc.value.details == {"status": ORDER_STATUS_REFUNDED}
        assert quantity_of(product.id) == 10
        assert len(movements_of(product.id)) == movement_count

    def test_status_flipped_after_locked_read_is_rejected_without_side_effects(
        self, services, manager, sold, db_session, quantity_of, movements_of, monkeypatch
    ):
        product, order = sold
        real_utcnow = refund_service.utcnow

        def concurrent_refund_lands_first():
            # Runs while the engine builds its status UPDATE, after the read
            db_session.execute(
                update(Order)
                .where(Order.id == order.id)
                .values(status=ORDER_STATUS_REFUNDED)
                .execution_options(synchronize_session=False)
            )
            return real_utcnow()

        monkeypatch.setattr(refund_service, "utcnow", concurrent_refund_lands_first)

        with pytest.raises(InvalidStateError) as exc:
            services.refunds.refund(order.id, actor_user_id=manager.id)

        assert exc.value.details == {"status": ORDER_STATUS_REFUNDED}
        assert quantity_of(product.id) == 7
        assert [m.type for m in movements_of(product.id)] == ["IN", "OUT"]

    def test_multi_line_refund_restores_each_line(self, services, cashier, manager, make_product, quantity_of):
        a = make_product(stock=10)
        b = make_product(stock=4)
        order = services.orders.checkout(
            cashier_id=cashier.id,
            items=[{"product_id": a.id, "quantity": 6}, {"product_id": b.id, "quantity": 4}],
            payment_method="DEBIT_CARD",
        )
        assert (quantity_of(a.id), quantity_of(b.id)) == (4, 0)

        services.refunds.refund(order.id, actor_user_id=manager.id)

        assert (quantity_of(a.id), quantity_of(b.id)) == (10, 4)

    def test_refund_after_later_sales_adds_back_only_its_own_quantity(
        self, services, cashier, manager, sold, quantity_of
    ):
        product, order = sold
        services.orders.checkout(
            cashier_id=cashier.id,
            items=[{"product_id": product.id, "quantity": 5}],
            payment_method="CASH",
        )
        assert quantity_of(product.id) == 2

        services.refunds.refund(order.id, actor_user_id=manager.id)

        assert quantity_of(product.id) == 5

    def test_unknown_order(self, services):
        with pytest.raises(OrderNotFoundError):
            services.refunds.refund(123456)

    def test_conservation_holds_through_sale_and_refund(self, services, manager, sold, quantity_of, movements_of):
        product, order = sold
        services.refunds.refund(order.id, actor_user_id=manager.id)

        assert quantity_of(product.id) == sum(m.quantity for m in movements_of(product.id))


class TestAmountsFrozen:
    def test_amounts_unchanged_by_refund(self, services, manager, sold):
        _, order = sold
        before = (order.subtotal_cents, order.discount_cents, order.tax_cents, order.total_cents)
        assert before == (6000, 500, 0, 5500)

        services.refunds.refund(order.id, actor_user_id=manager.id)
        after = services.orders.get_order(order.id)

        assert (after.subtotal_cents, after.discount_cents, after.tax_cents, after.total_cents) == before

    def test_amounts_cannot_be_edited(self, services, sold, db_session):
        _, order = sold
        order = services.orders.get_order(order.id)

        order.total_cents = 1
        with pytest.raises(RuntimeError):
            db_session.flush()
        db_session.rollback()

        assert services.orders.get_order(order.id).total_cents == 5500

    def test_order_items_cannot_be_edited(self, services, sold, db_session):
        _, order = sold
        item = services.orders.get_order(order.id).items[0]

        item.quantity = 1
        with pytest.raises(RuntimeError):
            db_session.flush()
        db_session.rollback()

    def test_non_amount_fields_can_change(self, services, sold, db_session):
        _, order = sold
        order = services.orders.get_order(order.id)
        assert order.status == ORDER_STATUS_COMPLETED

        order.note = "Receipt reprinted"
        db_session.commit()

        assert services.orders.get_order(order.id).note == "Receipt reprinted"
