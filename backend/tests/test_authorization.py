"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Cashier role denied manager/admin operations (403)
- Manager denied admin-only operations (403)
- Admin can perform privileged operations
"""

import pytest


# =============================================================================
# UNAUTHENTICATED ACCESS — 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
            ("GET", "/api/users"),
            ("POST", "/api/users"),
            ("GET", "/api/categories"),
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/orders"),
            ("POST", "/api/orders"),
            ("GET", "/api/orders/1"),
            ("POST", "/api/orders/1/refund"),
            ("GET", "/api/inventory"),
            ("GET", "/api/inventory/low-stock"),
            ("GET", "/api/inventory/1/movements"),
            ("POST", "/api/inventory/1/adjust"),
            ("GET", "/api/reports/sales/summary"),
        ],
    )
    def test_requires_auth(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token_rejected(self, client):
        resp = client.get("/api/orders", headers={"Authorization": "Bearer not-a-real-token"})
        assert resp.status_code == 401

    def test_non_bearer_scheme_rejected(self, client):
        resp = client.get("/api/orders", headers={"Authorization": "Basic YWRtaW46YWRtaW4="})
        assert resp.status_code == 401

    def test_health_is_public(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["status"] == "ok"
        assert data["database"]["status"] == "healthy"
        assert data["timestamp"].endswith("Z")


# =============================================================================
# CASHIER DENIED MANAGER/ADMIN OPERATIONS — 403
# =============================================================================


class TestCashierDenied:
    @pytest.mark.parametrize(
        "method,path,body",
        [
            ("GET", "/api/users", None),
            ("POST", "/api/users", {"name": "x", "email": "x@x.com", "password": "P@ssw0rd123!", "role": "ADMIN"}),
            ("POST", "/api/categories", {"name": "Contraband"}),
            ("POST", "/api/products", {"name": "x", "sku": "X", "price": 1, "categoryId": 1}),
            ("POST", "/api/orders/1/refund", None),
            ("POST", "/api/inventory/1/adjust", {"quantity": 10}),
            ("GET", "/api/reports/sales/summary", None),
            ("GET", "/api/reports/sales/daily", None),
            ("GET", "/api/reports/products/top", None),
            ("GET", "/api/reports/payment-methods", None),
        ],
    )
    def test_forbidden(self, client, cashier_headers, method, path, body):
        resp = getattr(client, method.lower())(path, json=body, headers=cashier_headers)
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "Permission denied"


class TestManagerDeniedAdminOnly:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/users"),
            ("DELETE", "/api/products/1"),
            ("DELETE", "/api/categories/1"),
        ],
    )
    def test_forbidden(self, client, manager_headers, method, path):
        resp = getattr(client, method.lower())(path, headers=manager_headers)
        assert resp.status_code == 403


# =============================================================================
# PRIVILEGED ROLES ALLOWED
# =============================================================================


class TestPrivilegedAllowed:
    def test_admin_lists_users(self, client, admin_headers):
        assert client.get("/api/users", headers=admin_headers).status_code == 200

    def test_manager_views_reports(self, client, manager_headers):
        assert client.get("/api/reports/sales/summary", headers=manager_headers).status_code == 200

    def test_cashier_reads_catalog_and_stock(self, client, cashier_headers):
        assert client.get("/api/products", headers=cashier_headers).status_code == 200
        assert client.get("/api/categories", headers=cashier_headers).status_code == 200
        assert client.get("/api/inventory", headers=cashier_headers).status_code == 200


class TestCors:
    def test_allowed_origin_echoed(self, client):
        resp = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    def test_unknown_origin_ignored(self, client):
        resp = client.get("/api/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers
