# Overview: Pytest coverage for the JSON API and CLI commands.

import io

from shopbill.cli import import_products, init_system, low_stock, stats
from shopbill.models import User


class TestCatalogApi:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.get_json() == {"status": "ok", "db": "ok"}

    def test_category_and_product_flow(self, client):
        resp = client.post("/api/categories", json={"name_en": "Dairy", "name_ta": "பால் பொருட்கள்"})
        assert resp.status_code == 201
        category_id = resp.get_json()["id"]

        resp = client.post("/api/products", json={
            "product_code": "2", "name_en": "Milk", "name_ta": "பால்", "category_id": category_id,
            "price": 54, "tax_percentage": 5, "tax_inclusive": True, "unit": "L", "stock": 40,
        })
        assert resp.status_code == 201
        product = resp.get_json()
        assert product["price_cents"] == 5400
        assert product["tax_percentage"] == "5.00"

        assert client.get("/api/products/by-code/2").get_json()["item"]["id"] == product["id"]
        assert client.get("/api/products/by-code/99").get_json() == {"item": None}

        resp = client.delete(f"/api/categories/{category_id}")
        assert resp.status_code == 409

    def test_validation_and_conflict_statuses(self, client, category, rice):
        resp = client.post("/api/products", json={"name_en": "X", "name_ta": "X", "category_id": category.id,
                                                  "price": 10, "product_code": "1"})
        assert resp.status_code == 409

        resp = client.post("/api/products", json={"name_en": "X", "category_id": category.id})
        assert resp.status_code == 400
        assert "name_ta" in resp.get_json()["error"]

        assert client.get("/api/products/999").status_code == 404

    def test_search(self, client, rice, milk):
        resp = client.get("/api/products/search?q=1")
        names = [p["name_en"] for p in resp.get_json()["items"]]
        assert names[0] == "Rice"

    def test_stock_adjustment(self, client, rice):
        resp = client.post(f"/api/products/{rice.id}/stock", json={"delta": -120})
        assert resp.get_json() == {"product_id": rice.id, "stock": -20}

    def test_bulk_and_file_import(self, client, category):
        resp = client.post("/api/products/bulk", json={"products": [
            {"product_code": "10", "name_en": "Dal", "name_ta": "பருப்பு", "category_id": category.id, "price": 120},
        ]})
        assert resp.status_code == 201
        assert resp.get_json()["inserted"] == 1

        sheet = f"product_code,name_en,name_ta,category_id,price\n11,Oil,எண்ணெய்,{category.id},180\n"
        resp = client.post(
            "/api/products/import",
            data={"file": (io.BytesIO(sheet.encode("utf-8")), "products.csv")},
            content_type="multipart/form-data",
        )
        assert resp.status_code == 201
        assert resp.get_json()["inserted"] == 1

        assert client.post("/api/products/import", data={}).status_code == 400


class TestBillsApi:
    def test_create_correct_and_print(self, client, rice, cashier):
        resp = client.post("/api/bills", json={
            "items": [{"product_id": rice.id, "quantity": 2}],
            "created_by": cashier.id,
        })
        assert resp.status_code == 201
        body = resp.get_json()
        bill_id = body["bill"]["id"]
        assert body["bill"]["grand_total_cents"] == 12600
        assert body["bill"]["items"][0]["name_en"] == "Rice"
        assert body["oversold"] == []

        resp = client.put(f"/api/bills/{bill_id}", json={
            "items": [{"product_id": rice.id, "quantity": 101}],
            "corrected_by": cashier.id,
        })
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["bill"]["status"] == "CORRECTED"
        assert body["oversold"] == [{"product_id": rice.id, "stock": -1}]

        resp = client.post(f"/api/bills/{bill_id}/print-status", json={"print_status": "printed"})
        assert resp.get_json()["bill"]["print_status"] == "printed"

        assert client.get(f"/api/bills/{bill_id}").status_code == 200
        assert client.get("/api/bills").get_json()["count"] == 1
        assert client.get("/api/bills?offset=1").get_json()["count"] == 0

    def test_correction_without_items_is_rejected(self, client, rice, cashier):
        """A correction must carry a cart; leaving it out keeps the bill and stock as they were."""
        resp = client.post("/api/bills", json={
            "items": [{"product_id": rice.id, "quantity": 2}],
            "created_by": cashier.id,
        })
        bill_id = resp.get_json()["bill"]["id"]

        resp = client.put(f"/api/bills/{bill_id}", json={"corrected_by": cashier.id, "customer_id": None})
        assert resp.status_code == 400
        assert "items" in resp.get_json()["error"]

        resp = client.put(f"/api/bills/{bill_id}", json={"items": None, "corrected_by": cashier.id})
        assert resp.status_code == 400

        bill = client.get(f"/api/bills/{bill_id}").get_json()["bill"]
        assert bill["status"] != "CORRECTED"
        assert bill["grand_total_cents"] == 12600
        assert [item["quantity"] for item in bill["items"]] == [2]
        assert client.get(f"/api/products/{rice.id}").get_json()["stock"] == 98

        resp = client.put(f"/api/bills/{bill_id}", json={"items": [], "corrected_by": cashier.id})
        assert resp.status_code == 200
        assert resp.get_json()["bill"]["items"] == []
        assert client.get(f"/api/products/{rice.id}").get_json()["stock"] == 100

    def test_error_statuses(self, client, rice, cashier):
        resp = client.post("/api/bills", json={"items": [], "created_by": cashier.id})
        assert resp.status_code == 400
        resp = client.post("/api/bills", json={"items": [{"product_id": 999, "quantity": 1}], "created_by": cashier.id})
        assert resp.status_code == 404
        assert client.put("/api/bills/5", json={"items": [], "corrected_by": cashier.id}).status_code == 404
        assert client.get("/api/bills?date=yesterday").status_code == 400


class TestReportsApi:
    def test_reports(self, client, rice, milk, cashier):
        client.post("/api/bills", json={"items": [{"product_id": rice.id, "quantity": 2}], "created_by": cashier.id})

        resp = client.get("/api/reports/sales?start=2000-01-01&end=2999-12-31")
        assert resp.get_json()["total_revenue_cents"] == 12600

        rows = client.get("/api/reports/products?start=2000-01-01&end=2999-12-31").get_json()["rows"]
        assert rows[0]["quantity_sold"] == 2

        assert client.get("/api/reports/sales?start=2000-01-01").status_code == 400
        assert client.get("/api/reports/low-stock").get_json()["threshold"] == 10
        assert client.get("/api/reports/inventory-value").get_json() == {
            "inventory_value_cents": 6000 * 98 + 5400 * 40,
        }
        assert client.get("/api/reports/sold-per-product").get_json() == {"sold": {str(rice.id): 2}}


class TestAdminApi:
    def test_login(self, client, cashier):
        assert client.post("/api/admin/login", json={"username": "cashier", "pin": "1234"}).status_code == 200
        assert client.post("/api/admin/login", json={"username": "cashier", "pin": "9999"}).status_code == 401

    def test_protected_super_admin(self, client, super_admin):
        assert client.delete(f"/api/admin/users/{super_admin.id}").status_code == 409

    def test_reset_requires_confirm(self, client, rice):
        assert client.post("/api/admin/reset-all", json={}).status_code == 400
        resp = client.post("/api/admin/reset-all", json={"confirm": True})
        assert resp.status_code == 200
        assert client.get("/api/admin/stats").get_json()["products"] == 0
        assert client.get("/api/admin/stats").get_json()["users"] == 1

    def test_settings_roundtrip(self, client):
        assert client.get("/api/admin/settings").get_json() == {"settings": None}
        resp = client.put("/api/admin/settings", json={"shop_name": "Lakshmi Stores", "printer_width": 80})
        assert resp.get_json()["settings"]["printer_width"] == 80


class TestCli:
    def test_init_creates_super_admin(self, app, db_session):
        result = app.test_cli_runner().invoke(init_system)
        assert result.exit_code == 0
        assert "PASS Super admin: superadmin" in result.output
        db_session.expire_all()
        assert db_session.query(User).filter_by(role="super_admin").count() == 1

    def test_stats(self, app, rice):
        result = app.test_cli_runner().invoke(stats)
        assert result.exit_code == 0
        assert "products" in result.output

    def test_import_and_low_stock(self, app, db_session, category, tmp_path):
        sheet = tmp_path / "products.csv"
        sheet.write_text(
            "product_code,name_en,name_ta,category_id,price,stock\n"
            f"5,Tea,தேநீர்,{category.id},10,-3\n",
            encoding="utf-8",
        )
        result = app.test_cli_runner().invoke(import_products, [str(sheet)])
        assert result.exit_code == 0, result.output
        assert "Imported 1 products" in result.output

        result = app.test_cli_runner().invoke(low_stock, ["--threshold", "0"])
        assert "OVERSOLD" in result.output

    def test_import_failure_is_reported(self, app, db_session, tmp_path):
        sheet = tmp_path / "products.csv"
        sheet.write_text("product_code,name_en,name_ta,category_id,price\n5,Tea,T,999,10\n", encoding="utf-8")
        result = app.test_cli_runner().invoke(import_products, [str(sheet)])
        assert result.exit_code != 0
        assert "Category not found" in result.output
