"""
员工看板API集成测试
"""

import pytest

from canteen.config.settings import settings
from canteen.tests.utils.auth_helper import session_headers


@pytest.fixture
def orders_placed(client, sample_items):
    client.post("/api/v1/orders", headers=session_headers("GR1"), json={"items": {"burger": 2}})
    client.post("/api/v1/orders", headers=session_headers("GR2"), json={"items": {"coffee": 2, "burger": 1}})


class TestStaffAPI:
    """员工API测试"""

    def test_live_orders(self, client, orders_placed):
        response = client.get("/api/v1/staff/orders")

        assert response.status_code == 200
        orders = response.json()["data"]
        assert len(orders) == 2
        assert {o["identity"] for o in orders} == {"GR1", "GR2"}

    def test_order_detail(self, client, orders_placed):
        response = client.get("/api/v1/staff/orders/2024-01-15_GR2")
        assert response.status_code == 200
        assert response.json()["data"]["total_cents"] == 1400

        missing = client.get("/api/v1/staff/orders/2024-01-15_GR3")
        assert missing.status_code == 404
        assert missing.json()["error_code"] == "ORDER_NOT_FOUND"

    def test_stats(self, client, orders_placed):
        data = client.get("/api/v1/staff/stats").json()["data"]

        assert data["total_orders"] == 2
        assert data["total_revenue_cents"] == 1600 + 1400
        assert data["top_items"][0] == {"name": "Chicken Burger", "quantity": 3}

    def test_toggle_sold_out_blocks_orders(self, client, sample_items):
        response = client.put("/api/v1/staff/items/coffee/sold-out", json={"sold_out": True})
        assert response.status_code == 200
        assert response.json()["data"]["availability"] == "unavailable"

        order = client.post("/api/v1/orders", headers=session_headers("GR1"), json={"items": {"coffee": 1}})
        assert order.status_code == 409
        assert order.json()["error_code"] == "ITEM_DISABLED"

    def test_reset_requires_confirmation(self, client, orders_placed):
        response = client.post("/api/v1/staff/reset", json={"confirm": "yes"})
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        assert len(client.get("/api/v1/staff/orders").json()["data"]) == 2

    def test_reset(self, client, orders_placed):
        response = client.post("/api/v1/staff/reset", json={"confirm": "RESET"})

        assert response.status_code == 200
        assert response.json()["data"] == {"items_reset": 3, "orders_deleted": 2}
        assert client.get("/api/v1/staff/orders").json()["data"] == []
        assert client.get("/api/v1/menu/burger").json()["data"]["current_ordered"] == 0

    def test_logs(self, client, orders_placed):
        logs = client.get("/api/v1/staff/logs", params={"action": "order_placed"}).json()["data"]
        assert len(logs) == 2
        assert logs[0]["actor"] == "GR2"

    def test_staff_key_enforced_when_configured(self, client, monkeypatch, sample_items):
        monkeypatch.setattr(settings, "staff_key", "canteen-staff")

        denied = client.get("/api/v1/staff/orders")
        assert denied.status_code == 403

        wrong = client.get("/api/v1/staff/orders", headers={"X-Staff-Key": "nope"})
        assert wrong.status_code == 403

        allowed = client.get("/api/v1/staff/orders", headers={"X-Staff-Key": "canteen-staff"})
        assert allowed.status_code == 200


def test_health(client):
    response = client.get("/health")
    assert response.json()["status"] == "healthy"
