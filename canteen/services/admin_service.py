"""
日终重置服务
清空当天全部订单并把所有菜品的已售数量、手动下架标记归零
"""

from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..core.database import DatabaseManager, db_manager
from ..core.logger import init_log
from ..core.retry import run_with_retry
from ..config.settings import settings
from .events import ChangeFeed, DAY_RESET

logger = init_log(__name__)


class AdminService:
    """管理操作服务类"""

    def __init__(self, db: Optional[DatabaseManager] = None,
                 feed: Optional[ChangeFeed] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.db = db or db_manager
        self.feed = feed
        self.clock = clock

    def reset_day(self, actor: Optional[str] = None) -> Dict[str, Any]:
        """
        日终重置，在同一个事务中完成

        所有菜品 version 递增，与重置并发的下单事务会冲突并在重置后重新校验。

        Returns:
            dict: items_reset、orders_deleted
        """
        result = run_with_retry(
            lambda: self._reset(actor),
            settings.reservation_max_attempts,
            settings.reservation_backoff_ms,
        )
        logger.warning("day reset by %s: %s", actor, result)
        if self.feed is not None:
            self.feed.publish(DAY_RESET, result)
        return result

    def _reset(self, actor: Optional[str]) -> Dict[str, Any]:
        with self.db.transaction() as con:
            items_reset = con.execute(
                "UPDATE menu_items SET current_ordered=0, manual_sold_out=FALSE, "
                "version=version+1, updated_at=?",
                [self.clock()],
            ).fetchone()[0]
            orders_deleted = con.execute("DELETE FROM orders").fetchone()[0]
            result = {"items_reset": items_reset, "orders_deleted": orders_deleted}
            self.db.write_log(con, "day_reset", actor, result)
        return result
