"""
订单API集成测试
测试会话、菜单和下单相关的API端点
"""

import pytest

from canteen.tests.utils.auth_helper import session_headers


class TestSessionAPI:
    """会话API测试"""

    def test_open_session(self, client):
        response = client.post("/api/v1/session", json={"identity": "GR1001"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"]["identity"] == "GR1001"

        token = data["data"]["token"]
        me = client.get("/api/v1/orders/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 404

    def test_invalid_identity(self, client):
        response = client.post("/api/v1/session", json={"identity": "bad id!"})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_bad_token(self, client):
        response = client.get("/api/v1/orders/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401
        assert response.json()["success"] is False


class TestMenuAPI:
    """菜单API测试"""

    def test_list_menu(self, client, sample_items):
        response = client.get("/api/v1/menu")

        assert response.status_code == 200
        items = {i["item_id"]: i for i in response.json()["data"]}
        assert items["burger"]["remaining"] == 5
        assert items["burger"]["availability"] == "low"
        assert items["coffee"]["availability"] == "available"

    def test_get_item(self, client, sample_items):
        response = client.get("/api/v1/menu/coffee")
        assert response.status_code == 200
        assert response.json()["data"]["price_cents"] == 300

    def test_get_missing_item(self, client):
        response = client.get("/api/v1/menu/ghost")
        assert response.status_code == 404
        assert response.json()["error_code"] == "ITEM_NOT_FOUND"

    def test_window_open_when_unrestricted(self, client):
        response = client.get("/api/v1/menu/window")
        assert response.json()["data"] == {"open": True, "start": None, "end": None}


class TestOrdersAPI:
    """订单API测试"""

    def test_create_order_success(self, client, auth_headers, sample_items):
        """测试成功下单"""
        response = client.post(
            "/api/v1/orders",
            headers=auth_headers,
            json={"items": {"burger": 2, "coffee": 1}},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["data"]["order_id"] == "2024-01-15_GR1001"
        assert data["data"]["total_cents"] == 1900
        assert data["data"]["status"] == "placed"
        assert data["data"]["items"][0] == {
            "item_id": "burger",
            "name": "Chicken Burger",
            "quantity": 2,
            "unit_price_cents": 800,
            "subtotal_cents": 1600,
        }

        me = client.get("/api/v1/orders/me", headers=auth_headers)
        assert me.status_code == 200
        assert me.json()["data"]["order_id"] == "2024-01-15_GR1001"

        menu = client.get("/api/v1/menu/burger").json()["data"]
        assert menu["current_ordered"] == 2

    def test_requires_session(self, client, sample_items):
        response = client.post("/api/v1/orders", json={"items": {"burger": 1}})
        assert response.status_code in (401, 403)

    def test_insufficient_stock(self, client, auth_headers, sample_items):
        response = client.post(
            "/api/v1/orders",
            headers=auth_headers,
            json={"items": {"coffee": 1, "burger": 6}},
        )

        assert response.status_code == 409
        data = response.json()
        assert data["error_code"] == "INSUFFICIENT_STOCK"
        assert data["details"]["item_id"] == "burger"
        assert client.get("/api/v1/menu/coffee").json()["data"]["current_ordered"] == 0

    def test_duplicate_order(self, client, auth_headers, sample_items):
        client.post("/api/v1/orders", headers=auth_headers, json={"items": {"burger": 1}})

        response = client.post("/api/v1/orders", headers=auth_headers, json={"items": {"coffee": 1}})

        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_ORDER"

    @pytest.mark.parametrize("items", [{}, {"burger": 0}, {"burger": -2}])
    def test_invalid_cart(self, client, auth_headers, sample_items, items):
        response = client.post("/api/v1/orders", headers=auth_headers, json={"items": items})
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_CART"

    @pytest.mark.parametrize("quantity", [True, "2", 2.0])
    def test_non_integer_quantity_is_rejected(self, client, auth_headers, db_helper, sample_items, quantity):
        """JSON 中的布尔、字符串、浮点数量不会被转换成整数下单"""
        response = client.post("/api/v1/orders", headers=auth_headers, json={"items": {"coffee": quantity}})

        assert response.status_code in (400, 422)
        assert response.json()["success"] is False
        assert db_helper.get_item_row("coffee")["current_ordered"] == 0
        assert db_helper.count_orders() == 0

    def test_unknown_item(self, client, auth_headers, sample_items):
        response = client.post("/api/v1/orders", headers=auth_headers, json={"items": {"ghost": 1}})
        assert response.status_code == 404
        assert response.json()["details"] == {"item_id": "ghost"}

    def test_different_students_share_stock(self, client, sample_items):
        first = client.post("/api/v1/orders", headers=session_headers("GR1"), json={"items": {"burger": 3}})
        second = client.post("/api/v1/orders", headers=session_headers("GR2"), json={"items": {"burger": 3}})

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["details"]["remaining"] == 2

    def test_events_after_order(self, client, auth_headers, sample_items):
        client.post("/api/v1/orders", headers=auth_headers, json={"items": {"donut": 2}})

        response = client.get("/api/v1/events", params={"since": 0})

        data = response.json()["data"]
        assert [e["kind"] for e in data["events"]] == ["item_updated", "order_placed"]
        assert data["last_seq"] == 2
        assert client.get("/api/v1/events", params={"since": 2}).json()["data"]["events"] == []
