"""
菜单服务模块
提供菜单查询、员工手动下架/上架以及默认菜单初始化

业务规则：
- current_ordered 只能由下单事务或日终重置修改，这里不提供直接修改接口
- 手动下架同样递增 version，与并发中的下单事务互相可见冲突
"""

import duckdb
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..core.database import DatabaseManager, db_manager
from ..core.exceptions import ConcurrencyError, ItemNotFoundError, ValidationError
from ..core.logger import init_log
from ..core.retry import run_with_retry
from ..config.settings import settings
from ..models.menu import MenuItem
from .events import ChangeFeed, ITEM_UPDATED

logger = init_log(__name__)

MENU_COLUMNS = (
    "item_id, name, category, price_cents, image_url, total_limit, "
    "current_ordered, manual_sold_out, version, updated_at"
)

# 默认菜单：(item_id, name, category, price_cents, total_limit, image_url)
DEFAULT_MENU = [
    ("premium-coffee", "Premium Coffee", "Beverage", 300, 30, "images/coffee.jpg"),
    ("veggie-sandwich", "Veggie Sandwich", "Snack", 500, 10, "images/sandwich.jpg"),
    ("chocolate-donut", "Chocolate Donut", "Dessert", 400, 0, "images/donut.jpg"),
    ("orange-juice", "Fresh Orange Juice", "Beverage", 450, 15, "images/juice.jpg"),
    ("chicken-burger", "Chicken Burger", "Meal", 800, 5, "images/burger.jpg"),
    ("apple-pie", "Apple Pie Slice", "Dessert", 350, 8, "images/pie.jpg"),
]


def row_to_item(row: tuple) -> MenuItem:
    """把 MENU_COLUMNS 顺序的查询结果转换为 MenuItem"""
    return MenuItem(
        item_id=row[0],
        name=row[1],
        category=row[2],
        price_cents=row[3],
        image_url=row[4],
        total_limit=row[5],
        current_ordered=row[6],
        manual_sold_out=bool(row[7]),
        version=row[8],
        updated_at=row[9],
    )


class MenuService:
    """菜单服务类"""

    def __init__(self, db: Optional[DatabaseManager] = None,
                 feed: Optional[ChangeFeed] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.db = db or db_manager
        self.feed = feed
        self.clock = clock

    def list_items(self) -> List[MenuItem]:
        """按分类、名称排序返回全部菜品"""
        rows = self.db.execute_query(
            f"SELECT {MENU_COLUMNS} FROM menu_items ORDER BY category, name"
        )
        return [row_to_item(r) for r in rows]

    def get_item(self, item_id: str) -> MenuItem:
        row = self.db.execute_one(
            f"SELECT {MENU_COLUMNS} FROM menu_items WHERE item_id=?", [item_id]
        )
        if not row:
            raise ItemNotFoundError(item_id)
        return row_to_item(row)

    def add_item(self, item_id: str, name: str, price_cents: int, total_limit: int,
                 category: Optional[str] = None, image_url: Optional[str] = None) -> MenuItem:
        """新增一个菜品，已售数量从 0 开始"""
        with self.db.transaction() as con:
            try:
                con.execute(
                    "INSERT INTO menu_items(item_id, name, category, price_cents, image_url, total_limit) "
                    "VALUES (?,?,?,?,?,?)",
                    [item_id, name, category, price_cents, image_url, total_limit],
                )
            except duckdb.ConstraintException as e:
                raise ValidationError(f"菜品 {item_id} 已存在或数据不合法", {"item_id": item_id, "reason": str(e)})
        return self.get_item(item_id)

    def seed_default_menu(self) -> int:
        """菜单为空时写入默认菜单，返回写入条数"""
        with self.db.transaction() as con:
            count = con.execute("SELECT COUNT(*) FROM menu_items").fetchone()[0]
            if count:
                return 0
            con.executemany(
                "INSERT INTO menu_items(item_id, name, category, price_cents, total_limit, image_url) "
                "VALUES (?,?,?,?,?,?)",
                [list(entry) for entry in DEFAULT_MENU],
            )
        logger.info("seeded %d default menu items", len(DEFAULT_MENU))
        return len(DEFAULT_MENU)

    def set_manual_sold_out(self, item_id: str, sold_out: bool, actor: Optional[str] = None) -> MenuItem:
        """
        员工手动下架/上架

        Raises:
            ItemNotFoundError: 菜品不存在
            ConflictRetryExhaustedError: 与下单事务持续冲突
        """
        item = run_with_retry(
            lambda: self._toggle(item_id, sold_out, actor),
            settings.reservation_max_attempts,
            settings.reservation_backoff_ms,
        )
        logger.info("item %s manual_sold_out=%s by %s", item_id, sold_out, actor)
        if self.feed is not None:
            self.feed.publish(ITEM_UPDATED, item_payload(item))
        return item

    def _toggle(self, item_id: str, sold_out: bool, actor: Optional[str]) -> MenuItem:
        with self.db.transaction() as con:
            row = con.execute(
                f"SELECT {MENU_COLUMNS} FROM menu_items WHERE item_id=?", [item_id]
            ).fetchone()
            if not row:
                raise ItemNotFoundError(item_id)
            item = row_to_item(row)
            now = self.clock()
            updated = con.execute(
                "UPDATE menu_items SET manual_sold_out=?, version=version+1, updated_at=? "
                "WHERE item_id=? AND version=?",
                [sold_out, now, item_id, item.version],
            ).fetchone()
            if not updated or updated[0] != 1:
                raise ConcurrencyError(details={"item_id": item_id})
            self.db.write_log(con, "stock_toggle", actor, {
                "item_id": item_id,
                "name": item.name,
                "manual_sold_out": sold_out,
            })
        return item.model_copy(update={
            "manual_sold_out": sold_out,
            "version": item.version + 1,
            "updated_at": now,
        })


def item_payload(item: MenuItem) -> Dict[str, Any]:
    """菜品变更事件的载荷"""
    return {
        "item_id": item.item_id,
        "current_ordered": item.current_ordered,
        "total_limit": item.total_limit,
        "remaining": item.remaining,
        "manual_sold_out": item.manual_sold_out,
    }
