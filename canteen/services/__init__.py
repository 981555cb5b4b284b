"""
Business logic services.
Contains service layer implementations for core business operations.
"""

from datetime import datetime
from typing import Callable, Optional

from ..core.database import DatabaseManager, db_manager
from ..config.settings import settings
from .admin_service import AdminService
from .events import ChangeFeed
from .menu_service import MenuService
from .order_query_service import OrderQueryService
from .ordering_window import OrderingWindow
from .reservation_service import ReservationService, UNSET


class ServiceContainer:
    """按请求范围之外共享的服务实例集合，由 create_app 创建并挂在 app.state 上"""

    def __init__(self, db: Optional[DatabaseManager] = None,
                 feed: Optional[ChangeFeed] = None,
                 clock: Callable[[], datetime] = datetime.now,
                 window=UNSET):
        self.db = db or db_manager
        self.feed = feed or ChangeFeed(history_size=settings.event_history_size)
        self.clock = clock
        self.menu = MenuService(self.db, self.feed, clock)
        self.reservations = ReservationService(self.db, self.feed, clock, window=window)
        self.orders = OrderQueryService(self.db, clock)
        self.admin = AdminService(self.db, self.feed, clock)

    @property
    def window(self) -> Optional[OrderingWindow]:
        return self.reservations.window


__all__ = [
    "AdminService",
    "ChangeFeed",
    "MenuService",
    "OrderQueryService",
    "OrderingWindow",
    "ReservationService",
    "ServiceContainer",
]
