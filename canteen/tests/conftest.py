"""
测试配置文件
提供测试所需的fixtures和配置
"""

import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient

from canteen.app import create_app
from canteen.core.database import DatabaseManager
from canteen.services import ServiceContainer
from canteen.services.events import ChangeFeed
from canteen.services.menu_service import MenuService
from canteen.services.order_query_service import OrderQueryService
from canteen.services.reservation_service import ReservationService
from canteen.tests.utils.auth_helper import session_headers
from canteen.tests.utils.db_helper import DatabaseHelper


class FixedClock:
    """可手动推进的时钟"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 1, 15, 10, 30))


@pytest.fixture
def test_db():
    """内存数据库"""
    db = DatabaseManager(":memory:")
    db.init_database()
    yield db
    db.close()


@pytest.fixture
def db_helper(test_db):
    return DatabaseHelper(test_db)


@pytest.fixture
def feed():
    return ChangeFeed(history_size=100)


@pytest.fixture
def menu_service(test_db, feed, clock):
    return MenuService(test_db, feed, clock)


@pytest.fixture
def sample_items(menu_service):
    """示例菜品"""
    return [
        menu_service.add_item("burger", "Chicken Burger", 800, 5, "Meal"),
        menu_service.add_item("coffee", "Premium Coffee", 300, 30, "Beverage"),
        menu_service.add_item("donut", "Chocolate Donut", 400, 10, "Dessert"),
    ]


@pytest.fixture
def reservation_service(test_db, feed, clock):
    """不限下单时间的下单服务"""
    return ReservationService(test_db, feed, clock, max_attempts=50, backoff_ms=1, window=None)


@pytest.fixture
def order_query_service(test_db, clock):
    return OrderQueryService(test_db, clock)


@pytest.fixture
def services(test_db, feed, clock):
    return ServiceContainer(test_db, feed, clock, window=None)


@pytest.fixture
def client(services):
    """测试客户端"""
    return TestClient(create_app(services))


@pytest.fixture
def auth_headers():
    """学生会话请求头"""
    return session_headers("GR1001")
