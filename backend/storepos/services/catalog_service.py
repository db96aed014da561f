# Overview: Service-layer operations for categories and products.

"""
Catalog Service

Products and categories are never hard-deleted: orders and movements keep
pointing at them, so DELETE deactivates. A new product gets its inventory
record in the same unit of work, with any initial stock booked as an IN
movement through the ledger.
"""

from __future__ import annotations

from sqlalchemy import func, or_

from ..errors import CategoryNotFoundError, ConflictError, ProductNotFoundError, ValidationError
from ..extensions import db
from ..models import Category, Product
from ..validation import ModelValidationPolicy, parse_int, validate_payload
from .concurrency import unit_of_work
from .inventory_service import InventoryLedger


CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={
        "name": "name",
        "color": "color",
        "sortOrder": "sort_order",
        "isActive": "is_active",
    },
    required_on_create={"name"},
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name": "name",
        "sku": "sku",
        "barcode": "barcode",
        "description": "description",
        "price": "price_cents",
        "cost": "cost_cents",
        "categoryId": "category_id",
        "imageUrl": "image_url",
        "isActive": "is_active",
    },
    required_on_create={"name", "sku", "price", "categoryId"},
    money_fields={"price", "cost"},
)


# ----------------------------------------------------------------------
# Categories
# ----------------------------------------------------------------------

def list_categories(include_inactive: bool = False) -> list[tuple[Category, int]]:
    """Categories in display order, each with its active product count."""
    counts = (
        db.session.query(Product.category_id, func.count(Product.id).label("product_count"))
        .filter(Product.is_active.is_(True))
        .group_by(Product.category_id)
        .subquery()
    )
    query = (
        db.session.query(Category, func.coalesce(counts.c.product_count, 0))
        .outerjoin(counts, counts.c.category_id == Category.id)
    )
    if not include_inactive:
        query = query.filter(Category.is_active.is_(True))
    rows = query.order_by(Category.sort_order.asc(), Category.name.asc()).all()
    return [(category, int(count)) for category, count in rows]


def get_category(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise CategoryNotFoundError("Category not found", details={"category_id": category_id})
    return category


def _ensure_category_name_free(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Category).filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise ConflictError(f"Category '{name}' already exists")


def create_category(payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    _ensure_category_name_free(patch["name"])

    with unit_of_work(db.session):
        category = Category(**patch)
        db.session.add(category)
    return category


def update_category(category_id: int, payload: dict) -> Category:
    category = get_category(category_id)
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    if "name" in patch:
        _ensure_category_name_free(patch["name"], exclude_id=category.id)

    with unit_of_work(db.session):
        for key, value in patch.items():
            setattr(category, key, value)
    return category


def deactivate_category(category_id: int) -> Category:
    category = get_category(category_id)
    with unit_of_work(db.session):
        category.is_active = False
    return category


# ----------------------------------------------------------------------
# Products
# ----------------------------------------------------------------------

def list_products(
    *,
    search: str | None = None,
    category_id: int | None = None,
    include_inactive: bool = False,
) -> list[Product]:
    query = db.session.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Product.name.ilike(pattern),
            Product.sku.ilike(pattern),
            Product.barcode.ilike(pattern),
        ))
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError("Product not found", details={"product_id": product_id})
    return product


def _ensure_sku_free(sku: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError(f"SKU '{sku}' already exists")


def _ensure_category_exists(category_id: int) -> None:
    if db.session.get(Category, category_id) is None:
        raise ValidationError("categoryId does not reference an existing category")


def create_product(payload: dict, *, default_min_quantity: int = 5) -> Product:
    """
    Create a product and its inventory record.

    Accepts the product fields plus initialStock and minQuantity, which go to
    the inventory record.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)

    initial_stock = payload.pop("initialStock", None)
    min_quantity = payload.pop("minQuantity", None)
    initial_stock = 0 if initial_stock is None else parse_int(initial_stock, "initialStock")
    min_quantity = default_min_quantity if min_quantity is None else parse_int(min_quantity, "minQuantity")

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    _ensure_sku_free(patch["sku"])
    _ensure_category_exists(patch["category_id"])

    ledger = InventoryLedger(db.session)
    with unit_of_work(db.session):
        product = Product(**patch)
        db.session.add(product)
        db.session.flush()
        ledger.create_inventory(
            product,
            min_quantity=min_quantity,
            initial_quantity=initial_stock,
        )
    return product


def update_product(product_id: int, payload: dict) -> Product:
    """
    Partial update of catalog fields.

    Stock is not editable here (adjust through the inventory endpoints);
    minQuantity is, since it is only a reorder threshold.
    """
    product = get_product(product_id)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)

    if "initialStock" in payload:
        raise ValidationError("Stock cannot be changed here; use an inventory adjustment")
    min_quantity = payload.pop("minQuantity", None)
    if min_quantity is not None:
        min_quantity = parse_int(min_quantity, "minQuantity")

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    if "sku" in patch:
        _ensure_sku_free(patch["sku"], exclude_id=product.id)
    if "category_id" in patch:
        _ensure_category_exists(patch["category_id"])

    with unit_of_work(db.session):
        for key, value in patch.items():
            setattr(product, key, value)
        if min_quantity is not None:
            InventoryLedger(db.session).set_min_quantity(product.id, min_quantity)
    return product


def deactivate_product(product_id: int) -> Product:
    product = get_product(product_id)
    with unit_of_work(db.session):
        product.is_active = False
    return product
