from .auth import User, SessionToken
from .catalog import Category, Product
from .inventory import Inventory, InventoryMovement
from .orders import Order, OrderItem
from .documents import DocumentSequence

__all__ = [
    'User', 'SessionToken',
    'Category', 'Product',
    'Inventory', 'InventoryMovement',
    'Order', 'OrderItem',
    'DocumentSequence',
]
