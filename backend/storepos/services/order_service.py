"""
Order Engine - checkout and order reads

WHY: Checkout is the one place where pricing, stock and the order document
meet. It must be all-or-nothing: either the order, its items and every stock
decrement commit together, or none of them exist afterwards.

CHECKOUT STEPS:
1. Validate and normalize the cart (duplicate product ids are merged)
2. Load the referenced active products with their inventory in one read
3. Reject unknown/inactive products and short stock against that snapshot
4. Price every line from the catalog (never from the client)
5. Allocate the order number, insert Order + OrderItems
6. Decrement stock through the ledger; the conditional UPDATE there is the
   backstop if another checkout drained the product since step 2
"""

from __future__ import annotations

from sqlalchemy.orm import contains_eager

from ..errors import (
    InsufficientStockError,
    OrderNotFoundError,
    ProductNotFoundError,
    StockConflictError,
    ValidationError,
)
from ..models import Inventory, Order, OrderItem, Product
from ..models.orders import ORDER_STATUS_COMPLETED, ORDER_STATUSES, PAYMENT_METHODS
from storepos.time_utils import parse_date_bound, utcnow
from .concurrency import unit_of_work


DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def normalize_cart(items) -> list[tuple[int, int]]:
    """
    Validate cart lines and merge repeated products.

    Returns [(product_id, quantity)] in first-seen order. Merging before the
    stock check means two lines for the same product are checked against
    their combined quantity, not each on its own.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("Cart cannot be empty")

    merged: dict[int, int] = {}
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")

        product_id = item.get("product_id")
        quantity = item.get("quantity")

        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError(f"items[{index}].productId must be an integer")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be a positive integer")

        merged[product_id] = merged.get(product_id, 0) + quantity

    return list(merged.items())


class OrderEngine:
    def __init__(self, session, ledger, numbers):
        self.session = session
        self.ledger = ledger
        self.numbers = numbers

    def checkout(
        self,
        *,
        cashier_id: int,
        items,
        payment_method: str,
        discount_cents: int = 0,
        note: str | None = None,
    ) -> Order:
        lines = normalize_cart(items)

        if not payment_method:
            raise ValidationError("paymentMethod is required")
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(
                f"paymentMethod must be one of: {', '.join(PAYMENT_METHODS)}",
                details={"payment_method": payment_method},
            )
        if discount_cents is None:
            discount_cents = 0
        if discount_cents < 0:
            raise ValidationError("discountAmount must be >= 0")

        with unit_of_work(self.session):
            products = self._load_sellable_products([product_id for product_id, _ in lines])

            missing = [product_id for product_id, _ in lines if product_id not in products]
            if missing:
                raise ProductNotFoundError(
                    "Some products do not exist or are inactive",
                    details={"product_ids": missing},
                )

            short = []
            for product_id, quantity in lines:
                on_hand = products[product_id].inventory.quantity
                if on_hand < quantity:
                    short.append({
                        "product_id": product_id,
                        "product_name": products[product_id].name,
                        "requested_quantity": quantity,
                        "on_hand": on_hand,
                    })
            if short:
                raise InsufficientStockError(
                    f"{short[0]['product_name']} has insufficient stock",
                    details={"items": short},
                )

            priced = []
            for product_id, quantity in lines:
                unit_price_cents = products[product_id].price_cents
                priced.append((product_id, quantity, unit_price_cents, unit_price_cents * quantity))

            subtotal_cents = sum(line_total for _, _, _, line_total in priced)
            if discount_cents > subtotal_cents:
                raise ValidationError(
                    "discountAmount cannot exceed the order subtotal",
                    details={"subtotal_cents": subtotal_cents, "discount_cents": discount_cents},
                )
            tax_cents = 0
            total_cents = subtotal_cents - discount_cents + tax_cents

            now = utcnow()
            order = Order(
                order_number=self.numbers.next_order_number(self.session, now),
                status=ORDER_STATUS_COMPLETED,
                subtotal_cents=subtotal_cents,
                discount_cents=discount_cents,
                tax_cents=tax_cents,
                total_cents=total_cents,
                payment_method=payment_method,
                note=note,
                cashier_id=cashier_id,
                created_at=now,
            )
            self.session.add(order)
            self.session.flush()

            for product_id, quantity, unit_price_cents, line_total in priced:
                self.session.add(OrderItem(
                    order_id=order.id,
                    product_id=product_id,
                    quantity=quantity,
                    unit_price_cents=unit_price_cents,
                    subtotal_cents=line_total,
                ))
            self.session.flush()

            for product_id, quantity, _, _ in priced:
                try:
                    self.ledger.decrement_for_sale(product_id, quantity, note=f"Order {order.order_number}")
                except InsufficientStockError as exc:
                    raise StockConflictError(
                        f"{products[product_id].name} has insufficient stock",
                        details=exc.details,
                    ) from exc

            order_id = order.id

        return self.get_order(order_id)

    def _load_sellable_products(self, product_ids: list[int]) -> dict[int, Product]:
        rows = (
            self.session.query(Product)
            .join(Inventory, Inventory.product_id == Product.id)
            .options(contains_eager(Product.inventory))
            .filter(Product.id.in_(product_ids), Product.is_active.is_(True))
            .all()
        )
        return {product.id: product for product in rows}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_order(self, order_id: int) -> Order:
        order = self.session.get(Order, order_id)
        if order is None:
            raise OrderNotFoundError("Order not found", details={"order_id": order_id})
        return order

    def list_orders(
        self,
        *,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        start: str | None = None,
        end: str | None = None,
        status: str | None = None,
    ) -> dict:
        """Newest first; start/end are inclusive ISO-8601 bounds."""
        if page < 1:
            raise ValidationError("page must be >= 1")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        query = self.session.query(Order)

        if status:
            if status not in ORDER_STATUSES:
                raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}")
            query = query.filter(Order.status == status)

        try:
            start_dt = parse_date_bound(start)
            end_dt = parse_date_bound(end, end=True)
        except ValueError:
            raise ValidationError("startDate/endDate must be ISO-8601 dates")
        if start_dt is not None:
            query = query.filter(Order.created_at >= start_dt)
        if end_dt is not None:
            query = query.filter(Order.created_at <= end_dt)

        total = query.count()
        orders = (
            query.order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {"orders": orders, "total": total, "page": page, "limit": limit}
