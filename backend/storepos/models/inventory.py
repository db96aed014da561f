from __future__ import annotations

from sqlalchemy import event

from ..extensions import db
from storepos.time_utils import to_utc_z
"""
Inventory invariants (authoritative)

- Inventory.quantity is the running balance; it is never negative.
- Every change to quantity writes exactly one InventoryMovement in the same
  DB transaction, so SUM(movement.quantity) == quantity for every product.
- Movements are signed effects: IN and RETURN positive, OUT negative,
  ADJUSTMENT as given.
- Movements are append-only (no updates/deletes).
- Only services.inventory_service.InventoryLedger writes these tables.
"""


MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"
MOVEMENT_ADJUSTMENT = "ADJUSTMENT"
MOVEMENT_RETURN = "RETURN"

MOVEMENT_TYPES = (MOVEMENT_IN, MOVEMENT_OUT, MOVEMENT_ADJUSTMENT, MOVEMENT_RETURN)


class Inventory(db.Model):
    __tablename__ = "inventory"
    __table_args__ = (
        db.UniqueConstraint("product_id", name="uq_inventory_product"),
        db.CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    # Reorder threshold; advisory only, never blocks a sale
    min_quantity = db.Column(db.Integer, nullable=False, default=5)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    product = db.relationship(
        "Product",
        backref=db.backref("inventory", uselist=False, lazy="joined"),
    )

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_quantity

    def to_dict(self, include_product: bool = True) -> dict:
        data = {
            "id": self.id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "minQuantity": self.min_quantity,
            "isLowStock": self.is_low_stock,
            "updatedAt": to_utc_z(self.updated_at),
        }
        if include_product and self.product is not None:
            product = self.product.to_summary()
            product["category"] = self.product.category.to_dict() if self.product.category else None
            data["product"] = product
        return data


class InventoryMovement(db.Model):
    __tablename__ = "inventory_movements"
    __table_args__ = (
        db.Index("ix_invmove_inventory_created", "inventory_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    inventory_id = db.Column(db.Integer, db.ForeignKey("inventory.id"), nullable=False, index=True)

    # IN, OUT, ADJUSTMENT, RETURN
    type = db.Column(db.String(16), nullable=False, index=True)

    # Signed effect on Inventory.quantity
    quantity = db.Column(db.Integer, nullable=False)

    note = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    inventory = db.relationship(
        "Inventory",
        backref=db.backref("movements", lazy="dynamic"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "quantity": self.quantity,
            "note": self.note,
            "createdAt": to_utc_z(self.created_at),
        }


@event.listens_for(InventoryMovement, "before_update")
def _movement_is_immutable(mapper, connection, target):
    raise RuntimeError("InventoryMovement records are immutable")


@event.listens_for(InventoryMovement, "before_delete")
def _movement_cannot_be_deleted(mapper, connection, target):
    raise RuntimeError("InventoryMovement records cannot be deleted")
