"""
Service wiring.

The core engines take their session explicitly. Routes build them per
request from the Flask-SQLAlchemy scoped session (whose lifecycle the app
factory owns); tests build them the same way.
"""

from __future__ import annotations

from dataclasses import dataclass

from .document_service import OrderNumberGenerator
from .inventory_service import InventoryLedger
from .order_service import OrderEngine
from .refund_service import RefundEngine


@dataclass
class Services:
    ledger: InventoryLedger
    orders: OrderEngine
    refunds: RefundEngine


def build_services(session) -> Services:
    ledger = InventoryLedger(session)
    return Services(
        ledger=ledger,
        orders=OrderEngine(session, ledger, OrderNumberGenerator()),
        refunds=RefundEngine(session, ledger),
    )
