"""
CLI command tests (flask system / users / catalog).
"""

from storepos.models import Category, Product, User


def run(app, *args):
    return app.test_cli_runner().invoke(args=list(args))


class TestSystemCommands:
    def test_init_creates_default_users_idempotently(self, app, db_session):
        first = run(app, "system", "init")
        second = run(app, "system", "init")

        assert first.exit_code == 0, first.output
        assert second.exit_code == 0, second.output
        assert "already exists" in second.output
        db_session.expire_all()
        roles = sorted(u.role for u in db_session.query(User).all())
        assert roles == ["ADMIN", "CASHIER", "MANAGER"]

    def test_default_admin_can_log_in(self, app, client):
        run(app, "system", "init")

        resp = client.post("/api/auth/login", json={"email": "admin@storepos.local", "password": "Password123!"})

        assert resp.status_code == 200
        assert resp.get_json()["user"]["role"] == "ADMIN"


class TestUserCommands:
    def test_create_and_list(self, app):
        result = run(
            app, "users", "create",
            "--name", "Weekend Cashier",
            "--email", "weekend@storepos.local",
            "--password", "Password123!",
            "--role", "CASHIER",
        )
        assert result.exit_code == 0, result.output

        listing = run(app, "users", "list")
        assert "weekend@storepos.local" in listing.output
        assert "CASHIER" in listing.output

    def test_create_rejects_weak_password(self, app):
        result = run(
            app, "users", "create",
            "--name", "Weak", "--email", "weak@storepos.local", "--password", "weak", "--role", "CASHIER",
        )
        assert result.exit_code != 0
        assert "at least 8 characters" in result.output


class TestCatalogCommands:
    def test_seed_demo_books_opening_stock(self, app, db_session, quantity_of, movements_of):
        result = run(app, "catalog", "seed-demo")
        assert result.exit_code == 0, result.output

        db_session.expire_all()
        assert db_session.query(Category).count() == 4
        assert db_session.query(Product).count() == 8
        water = db_session.query(Product).filter_by(sku="DRK001").one()
        assert quantity_of(water.id) == 100
        assert [(m.type, m.quantity) for m in movements_of(water.id)] == [("IN", 100)]

    def test_seed_demo_is_idempotent(self, app, db_session):
        run(app, "catalog", "seed-demo")
        again = run(app, "catalog", "seed-demo")

        assert again.exit_code == 0, again.output
        assert "Created 0 demo products" in again.output
        db_session.expire_all()
        assert db_session.query(Product).count() == 8
