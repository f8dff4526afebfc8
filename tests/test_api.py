"""
HTTP surface tests: routing, schemas, error mapping and the audit trail.
"""

import pytest

from models.log import Log


@pytest.fixture
def api_product(client, category, supplier):
    response = client.post("/products", json={
        "name": "Wireless Mouse",
        "sku": "ELEC-001",
        "category_id": category.id,
        "supplier_id": supplier.id,
        "buying_price": 15.99,
        "selling_price": 29.99,
        "stock_quantity": 10,
        "minimum_stock_level": 3,
    })
    assert response.status_code == 201, response.text
    return response.json()


class TestStockMovementsApi:

    def test_create_and_list(self, client, api_product):
        response = client.post("/stock-movements", json={
            "product_id": api_product["id"], "movement_type": "in", "quantity": 50, "reference_number": "D-1",
        }, headers={"X-Actor": "alice"})

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["effect"] == 50
        assert body["movement_type"] == "IN"
        assert body["created_by"] == "alice"
        assert body["product_sku"] == "ELEC-001"

        page = client.get("/stock-movements", params={"q": "mouse"}).json()
        assert page["total"] == 1
        assert page["items"][0]["id"] == body["id"]
        assert client.get(f"/products/{api_product['id']}").json()["stock_quantity"] == 60

    def test_insufficient_stock_is_409(self, client, api_product):
        response = client.post("/stock-movements", json={
            "product_id": api_product["id"], "movement_type": "OUT", "quantity": 11,
        })

        assert response.status_code == 409
        assert response.json()["code"] == "INSUFFICIENT_STOCK"

    def test_unknown_type_is_422(self, client, api_product):
        response = client.post("/stock-movements", json={
            "product_id": api_product["id"], "movement_type": "LOST", "quantity": 1,
        })

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_unknown_product_is_404(self, client):
        response = client.post("/stock-movements", json={"product_id": 999, "movement_type": "IN", "quantity": 1})

        assert response.status_code == 404
        assert response.json()["code"] == "PRODUCT_NOT_FOUND"

    def test_update_and_delete(self, client, api_product):
        created = client.post("/stock-movements", json={
            "product_id": api_product["id"], "movement_type": "OUT", "quantity": 4,
        }).json()

        patched = client.patch(f"/stock-movements/{created['id']}", json={"quantity": 6})
        assert patched.status_code == 200
        assert patched.json()["effect"] == -6
        assert client.get(f"/products/{api_product['id']}").json()["stock_quantity"] == 4

        assert client.delete(f"/stock-movements/{created['id']}").status_code == 204
        assert client.get(f"/products/{api_product['id']}").json()["stock_quantity"] == 10
        assert client.get(f"/stock-movements/{created['id']}").status_code == 404

    def test_summary_and_product_history(self, client, api_product):
        client.post("/stock-movements", json={
            "product_id": api_product["id"], "movement_type": "IN", "quantity": 5, "unit_price": 2.0,
        })

        summary = client.get("/stock-movements/summary").json()
        assert summary["total_in_quantity"] == 5
        assert summary["total_in_value"] == 10.0

        history = client.get(f"/stock-movements/by-product/{api_product['id']}").json()
        assert len(history) == 1

        report = client.get("/stock-movements/report").json()
        assert report["summary"]["total_movements"] == 1

    def test_writes_audit_log(self, client, db, api_product):
        client.post("/stock-movements", json={
            "product_id": api_product["id"], "movement_type": "IN", "quantity": 1,
        }, headers={"X-Actor": "auditor"})

        entry = db.query(Log).filter(Log.action == "STOCK_MOVEMENT_CREATE").one()
        assert entry.actor == "auditor"
        assert entry.meta["effect"] == 1

        logs = client.get("/logs", params={"actor": "auditor"}).json()
        assert logs["total"] == 1


class TestOrdersApi:

    def test_purchase_order_receive(self, client, api_product, supplier):
        created = client.post("/purchase-orders", json={
            "product_id": api_product["id"], "supplier_id": supplier.id, "quantity": 20, "unit_price": 14.5,
        })
        assert created.status_code == 201, created.text
        order = created.json()
        assert order["status"] == "Pending"
        assert order["supplier_name"] == "Tech Supplies Inc."

        received = client.post(f"/purchase-orders/{order['id']}/receive")
        assert received.status_code == 200
        assert received.json()["status"] == "Received"
        assert client.get(f"/products/{api_product['id']}").json()["stock_quantity"] == 30

        again = client.post(f"/purchase-orders/{order['id']}/receive")
        assert again.status_code == 422

    def test_sales_order_complete_and_cancel(self, client, api_product):
        order = client.post("/sales-orders", json={
            "product_id": api_product["id"], "quantity": 7, "unit_price": 29.99, "customer_name": "Ann",
        }).json()

        completed = client.post(f"/sales-orders/{order['id']}/complete")
        assert completed.status_code == 200
        assert completed.json()["status"] == "Completed"
        assert client.get(f"/products/{api_product['id']}").json()["stock_quantity"] == 3

        other = client.post("/sales-orders", json={
            "product_id": api_product["id"], "quantity": 1, "unit_price": 29.99, "customer_name": "Ben",
        }).json()
        cancelled = client.post(f"/sales-orders/{other['id']}/cancel")
        assert cancelled.json()["status"] == "Cancelled"

        listing = client.get("/sales-orders", params={"status": "Completed"}).json()
        assert listing["total"] == 1

    def test_sales_order_over_stock_is_409(self, client, api_product):
        response = client.post("/sales-orders", json={
            "product_id": api_product["id"], "quantity": 11, "unit_price": 1.0, "customer_name": "Ann",
        })
        assert response.status_code == 409

    def test_missing_order_is_404(self, client):
        response = client.post("/sales-orders/31337/complete")
        assert response.status_code == 404
        assert response.json()["code"] == "ORDER_NOT_FOUND"


class TestAlertsAndReportsApi:

    def test_alert_flow(self, client, api_product):
        client.post("/stock-movements", json={
            "product_id": api_product["id"], "movement_type": "OUT", "quantity": 8,
        })

        active = client.get("/low-stock-alerts").json()
        assert len(active) == 1
        assert active[0]["current_stock"] == 2

        sweep = client.post("/low-stock-alerts/generate").json()
        assert sweep == {"low_stock_product_count": 1, "products_checked": 1, "alerts_created": 0}

        resolved = client.post(f"/low-stock-alerts/{active[0]['id']}/resolve", json={"notes": "ordered"})
        assert resolved.status_code == 204
        assert client.get("/low-stock-alerts").json() == []
        assert len(client.get("/low-stock-alerts/all").json()) == 1

        assert client.post("/low-stock-alerts/999/resolve").status_code == 404

    def test_reports_and_dashboard(self, client, api_product):
        assert client.get("/reports/inventory").json()["total_value"] == pytest.approx(159.9)
        assert client.get("/reports/sales").json()["total_orders"] == 0
        assert client.get("/reports/profit-loss").json()["profit_margin"] == 0.0

        dashboard = client.get("/dashboard").json()
        assert dashboard["total_products"] == 1
        assert len(dashboard["monthly_sales_chart"]) == 6


class TestCatalogApi:

    def test_category_crud(self, client):
        created = client.post("/categories", json={"name": "Books", "description": "Books and publications"})
        assert created.status_code == 201
        category_id = created.json()["id"]

        patched = client.patch(f"/categories/{category_id}", json={"name": "Novels"})
        assert patched.json()["name"] == "Novels"

        assert client.delete(f"/categories/{category_id}").status_code == 204
        assert client.get(f"/categories/{category_id}").status_code == 404

    def test_category_in_use_is_422(self, client, api_product, category):
        response = client.delete(f"/categories/{category.id}")
        assert response.status_code == 422

    def test_supplier_and_customer(self, client):
        supplier = client.post("/suppliers", json={"name": "Fashion Source", "company_name": "Fashion Source Ltd."})
        assert supplier.status_code == 201
        customer = client.post("/customers", json={"name": "Acme"})
        assert customer.status_code == 201
        assert [c["name"] for c in client.get("/customers").json()] == ["Acme"]

    def test_product_explicit_stock_set(self, client, api_product):
        response = client.patch(f"/products/{api_product['id']}", json={"stock_quantity": 1})

        assert response.status_code == 200
        assert response.json()["stock_quantity"] == 1
        assert response.json()["is_low_stock"] is True
        assert len(client.get("/low-stock-alerts").json()) == 1

    def test_product_list(self, client, api_product):
        page = client.get("/products", params={"q": "elec"}).json()
        assert page["total"] == 1
        assert page["items"][0]["sku"] == "ELEC-001"
