# Overview: Service-layer operations for inventory; the single writer of stock quantities.

# backend/storepos/services/inventory_service.py

from __future__ import annotations

from sqlalchemy import update

from ..errors import InsufficientStockError, InventoryNotFoundError, ValidationError
from ..models import Inventory, InventoryMovement, Product
from ..models.inventory import (
    MOVEMENT_ADJUSTMENT,
    MOVEMENT_IN,
    MOVEMENT_OUT,
    MOVEMENT_RETURN,
)
from storepos.time_utils import utcnow
from .concurrency import unit_of_work
"""
Inventory Ledger invariants (authoritative)

- quantity >= 0 after every committed operation. Enforced at the write by a
  conditional UPDATE (... WHERE quantity >= :needed); zero rows affected means
  the change would go negative and the operation is rejected with the
  quantity untouched. The CHECK constraint on the table is a second net.
- A quantity change and its movement row are written in the same unit of
  work; they commit together or not at all.
- SUM(movement.quantity) == quantity for every product.

Public vs. internal:
- adjust() owns its unit of work (manual adjustments from the API).
- receive(), decrement_for_sale(), restore_for_refund() and set_min_quantity()
  only flush; they run inside the caller's unit (product creation, product
  update, checkout, refund).
"""


DEFAULT_MOVEMENT_LIMIT = 50


class InventoryLedger:
    def __init__(self, session):
        self.session = session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_inventory(self, product_id: int) -> Inventory:
        inventory = self.session.query(Inventory).filter_by(product_id=product_id).first()
        if inventory is None:
            raise InventoryNotFoundError(
                "Inventory record not found",
                details={"product_id": product_id},
            )
        return inventory

    def list_inventory(self) -> list[Inventory]:
        return (
            self.session.query(Inventory)
            .join(Product, Product.id == Inventory.product_id)
            .order_by(Product.name.asc(), Inventory.id.asc())
            .all()
        )

    def list_low_stock(self) -> list[Inventory]:
        return (
            self.session.query(Inventory)
            .join(Product, Product.id == Inventory.product_id)
            .filter(Inventory.quantity <= Inventory.min_quantity)
            .order_by(Inventory.quantity.asc(), Product.name.asc())
            .all()
        )

    def list_movements(self, product_id: int, limit: int = DEFAULT_MOVEMENT_LIMIT) -> list[InventoryMovement]:
        """Most recent first, bounded by limit."""
        inventory = self.get_inventory(product_id)
        return (
            self.session.query(InventoryMovement)
            .filter_by(inventory_id=inventory.id)
            .order_by(InventoryMovement.created_at.desc(), InventoryMovement.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def is_low_stock(inventory: Inventory) -> bool:
        return inventory.quantity <= inventory.min_quantity

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_inventory(
        self,
        product: Product,
        *,
        min_quantity: int = 5,
        initial_quantity: int = 0,
        note: str | None = "Initial stock",
    ) -> Inventory:
        """
        Create the one-to-one stock record for a new product.

        Initial stock goes through receive() so the IN movement exists and
        the balance reconciles with the log from the first row.
        """
        if min_quantity < 0:
            raise ValidationError("minQuantity must be >= 0")
        if initial_quantity < 0:
            raise ValidationError("initialStock must be >= 0")

        inventory = Inventory(
            product_id=product.id,
            quantity=0,
            min_quantity=min_quantity,
            updated_at=utcnow(),
        )
        self.session.add(inventory)
        self.session.flush()

        if initial_quantity > 0:
            self.receive(product.id, initial_quantity, note)
        return inventory

    def set_min_quantity(self, product_id: int, min_quantity: int) -> Inventory:
        """Change the reorder threshold; quantity and movements are untouched."""
        if isinstance(min_quantity, bool) or not isinstance(min_quantity, int):
            raise ValidationError("minQuantity must be an integer")
        if min_quantity < 0:
            raise ValidationError("minQuantity must be >= 0")

        inventory = self.get_inventory(product_id)
        inventory.min_quantity = min_quantity
        inventory.updated_at = utcnow()
        self.session.flush()
        return inventory

    def adjust(self, product_id: int, delta: int, note: str | None = None) -> Inventory:
        """Manual signed adjustment; one ADJUSTMENT movement."""
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise ValidationError("quantity must be an integer")
        if delta == 0:
            raise ValidationError("quantity must be non-zero")

        with unit_of_work(self.session):
            inventory = self._apply(product_id, delta, MOVEMENT_ADJUSTMENT, note or "Manual adjustment")
        return inventory

    def receive(self, product_id: int, quantity: int, note: str | None = None) -> Inventory:
        if quantity <= 0:
            raise ValidationError("quantity must be > 0 to receive stock")
        return self._apply(product_id, quantity, MOVEMENT_IN, note)

    def decrement_for_sale(self, product_id: int, quantity: int, note: str | None = None) -> Inventory:
        if quantity <= 0:
            raise ValidationError("quantity must be > 0 for a sale")
        return self._apply(product_id, -quantity, MOVEMENT_OUT, note)

    def restore_for_refund(self, product_id: int, quantity: int, note: str | None = None) -> Inventory:
        # No upper bound: stock has no nominal capacity
        if quantity <= 0:
            raise ValidationError("quantity must be > 0 for a return")
        return self._apply(product_id, quantity, MOVEMENT_RETURN, note)

    def _apply(self, product_id: int, delta: int, movement_type: str, note: str | None) -> Inventory:
        """
        Apply a signed delta and append its movement, without committing.

        Decrements carry the guard in the WHERE clause so a concurrent writer
        can never take the balance below zero between read and write.
        """
        inventory = self.get_inventory(product_id)
        now = utcnow()

        stmt = update(Inventory).where(Inventory.product_id == product_id)
        if delta < 0:
            stmt = stmt.where(Inventory.quantity >= -delta)
        stmt = stmt.values(
            quantity=Inventory.quantity + delta,
            updated_at=now,
        ).execution_options(synchronize_session=False)

        result = self.session.execute(stmt)
        if result.rowcount == 0:
            # Nothing written; report against the freshest balance we can see
            self.session.refresh(inventory)
            product = inventory.product
            name = product.name if product is not None else f"Product {product_id}"
            raise InsufficientStockError(
                f"{name} has insufficient stock",
                details={
                    "product_id": product_id,
                    "product_name": name,
                    "available": inventory.quantity,
                    "requested_change": delta,
                },
            )

        self.session.add(InventoryMovement(
            inventory_id=inventory.id,
            type=movement_type,
            quantity=delta,
            note=note,
            created_at=now,
        ))
        self.session.flush()
        self.session.refresh(inventory)
        return inventory
