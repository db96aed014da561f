from __future__ import annotations

from ..extensions import db
from ..money import from_cents
from storepos.time_utils import to_utc_z


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_categories_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    # Hex color used by the register UI for category tabs
    color = db.Column(db.String(16), nullable=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self, product_count: int | None = None) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "sortOrder": self.sort_order,
            "isActive": self.is_active,
        }
        if product_count is not None:
            data["productCount"] = product_count
        return data


class Product(db.Model):
    """
    Product master data.

    SKU is unique across the outlet. Prices live in cents; order lines copy
    price_cents at checkout, so editing a price never rewrites history.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.Index("ix_products_name", "name"),
        db.Index("ix_products_active", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(64), nullable=False)
    barcode = db.Column(db.String(64), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False)
    cost_cents = db.Column(db.Integer, nullable=False, default=0)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)
    image_url = db.Column(db.String(512), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r}>"

    def to_summary(self) -> dict:
        """Compact form embedded in order lines and inventory rows."""
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "price": from_cents(self.price_cents),
        }

    def to_dict(self) -> dict:
        inventory = self.inventory
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "barcode": self.barcode,
            "description": self.description,
            "price": from_cents(self.price_cents),
            "cost": from_cents(self.cost_cents),
            "imageUrl": self.image_url,
            "isActive": self.is_active,
            "categoryId": self.category_id,
            "category": self.category.to_dict() if self.category else None,
            "inventory": (
                {"quantity": inventory.quantity, "minQuantity": inventory.min_quantity}
                if inventory is not None
                else None
            ),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
