"""
Reporting tests.

Verifies:
- Only COMPLETED orders count (refunds drop out)
- Summary, daily, top products and payment method aggregates
"""

from datetime import timedelta

import pytest

from storepos.errors import ValidationError
from storepos.services import reporting_service
from storepos.time_utils import utcnow


@pytest.fixture
def sales(services, cashier, manager, make_product):
    """Two completed orders (CASH 55, LINE_PAY 70) and one refunded order."""
    water = make_product(price=20, stock=50, name="Water")
    coffee = make_product(price=35, stock=50, name="Coffee")

    services.orders.checkout(
        cashier_id=cashier.id, items=[{"product_id": water.id, "quantity": 3}],
        payment_method="CASH", discount_cents=500,
    )
    services.orders.checkout(
        cashier_id=cashier.id, items=[{"product_id": coffee.id, "quantity": 2}], payment_method="LINE_PAY",
    )
    refunded = services.orders.checkout(
        cashier_id=cashier.id, items=[{"product_id": coffee.id, "quantity": 10}], payment_method="CASH",
    )
    services.refunds.refund(refunded.id, actor_user_id=manager.id)
    return water, coffee


class TestReportingService:
    def test_summary_counts_completed_only(self, sales):
        summary = reporting_service.sales_summary()

        assert summary["today"] == {"revenue": 125, "orders": 2}
        assert summary["month"] == {"revenue": 125, "orders": 2}
        assert summary["total"] == {"orders": 2}

    def test_daily_has_a_row_per_day(self, sales):
        rows = reporting_service.daily_sales(days=7)

        assert len(rows) == 7
        assert rows[-1]["date"] == utcnow().date().isoformat()
        assert rows[-1]["revenue"] == 125
        assert rows[-1]["orders"] == 2
        assert all(r["orders"] == 0 for r in rows[:-1])

    def test_daily_days_bounds(self):
        with pytest.raises(ValidationError):
            reporting_service.daily_sales(days=0)

    def test_top_products_by_quantity(self, sales):
        water, coffee = sales

        rows = reporting_service.top_products(limit=10)

        assert [r["product"]["id"] for r in rows] == [water.id, coffee.id]
        assert rows[0]["totalQuantity"] == 3
        assert rows[0]["totalRevenue"] == 60
        assert rows[1]["totalQuantity"] == 2
        assert rows[1]["orderCount"] == 1

    def test_top_products_date_window(self, sales):
        tomorrow = (utcnow() + timedelta(days=1)).date().isoformat()
        assert reporting_service.top_products(start=tomorrow) == []

    def test_payment_methods(self, sales):
        rows = reporting_service.payment_method_totals()

        assert rows == [
            {"paymentMethod": "CASH", "total": 55, "orders": 1},
            {"paymentMethod": "LINE_PAY", "total": 70, "orders": 1},
        ]


class TestReportEndpoints:
    def test_summary(self, client, manager_headers, sales):
        resp = client.get("/api/reports/sales/summary", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.get_json()["total"]["orders"] == 2

    def test_daily(self, client, admin_headers, sales):
        resp = client.get("/api/reports/sales/daily?days=3", headers=admin_headers)
        assert resp.status_code == 200
        assert len(resp.get_json()) == 3

    @pytest.mark.parametrize(
        "path",
        [
            "/api/reports/sales/daily?days=0",
            "/api/reports/sales/daily?days=abc",
            "/api/reports/products/top?limit=0",
            "/api/reports/products/top?startDate=later",
            "/api/reports/payment-methods?endDate=31-12-2026",
        ],
    )
    def test_bad_parameters(self, client, manager_headers, path):
        assert client.get(path, headers=manager_headers).status_code == 400

    def test_top_products(self, client, manager_headers, sales):
        resp = client.get("/api/reports/products/top?limit=1", headers=manager_headers)
        assert resp.status_code == 200
        assert len(resp.get_json()) == 1

    def test_payment_methods(self, client, manager_headers, sales):
        resp = client.get("/api/reports/payment-methods", headers=manager_headers)
        assert resp.status_code == 200
        assert {r["paymentMethod"] for r in resp.get_json()} == {"CASH", "LINE_PAY"}
