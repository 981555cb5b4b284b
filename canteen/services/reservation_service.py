"""
下单服务模块
把购物车转换为订单的库存预占事务，是整个系统唯一需要并发正确性的写路径

事务流程（全部在同一个数据库事务中完成，要么全部生效，要么全部不生效）：
1. 检查同一身份当天是否已有订单
2. 按购物车顺序逐个读取菜品的最新状态
3. 手动下架或数量超过剩余量时整单失败，错误指明第一个不满足的菜品
4. 以读取时的 version 为条件写回新的已售数量
5. 写入订单及菜品快照，提交

提交时发现并发修改（version 不匹配或 DuckDB 写冲突）时从第 1 步整体重试，
重试次数用尽后以 ConflictRetryExhaustedError 失败，不会留下部分写入。

业务规则：
- 每个身份每天只能下一单，重复下单直接拒绝（DuplicateOrderError），不覆盖原订单
- 订单中的价格是提交时刻的快照，之后修改菜单价格不影响已有订单
"""

import duckdb
import json
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from ..core.database import DatabaseManager, db_manager
from ..core.exceptions import (
    ConcurrencyError,
    DatabaseError,
    DuplicateOrderError,
    InsufficientStockError,
    InvalidCartError,
    ItemNotFoundError,
    ManuallyDisabledError,
    OrderingClosedError,
    ReservationError,
)
from ..core.logger import init_log
from ..core.retry import run_with_retry
from ..config.settings import settings
from ..models.menu import MenuItem
from ..models.order import Order, OrderItem, OrderStatus, make_order_id
from .events import ChangeFeed, ITEM_UPDATED, ORDER_PLACED
from .menu_service import MENU_COLUMNS, item_payload, row_to_item
from .ordering_window import OrderingWindow

logger = init_log(__name__)

UNSET = object()


class ReservationService:
    """下单服务类"""

    def __init__(self, db: Optional[DatabaseManager] = None,
                 feed: Optional[ChangeFeed] = None,
                 clock: Callable[[], datetime] = datetime.now,
                 max_attempts: Optional[int] = None,
                 backoff_ms: Optional[int] = None,
                 window=UNSET):
        self.db = db or db_manager
        self.feed = feed
        self.clock = clock
        self.max_attempts = max_attempts if max_attempts is not None else settings.reservation_max_attempts
        self.backoff_ms = backoff_ms if backoff_ms is not None else settings.reservation_backoff_ms
        # window=None 表示不限制下单时间
        self.window: Optional[OrderingWindow] = (
            OrderingWindow.from_settings(settings) if window is UNSET else window
        )

    def place_order(self, identity: str, cart: Mapping[str, int]) -> Order:
        """
        下单

        Args:
            identity: 学生标识
            cart: 菜品ID -> 数量，按迭代顺序校验

        Returns:
            Order: 已提交的订单

        Raises:
            InvalidCartError: 购物车为空或数量非法
            OrderingClosedError: 不在下单时间窗口内
            DuplicateOrderError: 当天已下单
            ItemNotFoundError: 菜品不存在
            ManuallyDisabledError: 菜品被手动下架
            InsufficientStockError: 剩余数量不足
            ConflictRetryExhaustedError: 并发冲突重试次数用尽
        """
        entries: List[Tuple[str, int]] = []
        try:
            identity = self._validate_identity(identity)
            entries = self._validate_cart(cart)
            if self.window is not None and not self.window.is_open(self.clock()):
                window = self.window.describe()
                raise OrderingClosedError(window["start"], window["end"])

            order, items = run_with_retry(
                lambda: self._attempt(identity, entries),
                self.max_attempts,
                self.backoff_ms,
            )
        except ReservationError as e:
            logger.info("order rejected for %s: %s %s", identity, e.error_code, e.details)
            self._log_rejection(identity, entries, e)
            raise

        logger.info("order %s placed, total_cents=%d", order.order_id, order.total_cents)
        self._publish(order, items)
        return order

    def _validate_identity(self, identity) -> str:
        if not isinstance(identity, str) or not identity.strip():
            raise InvalidCartError("缺少下单身份")
        return identity.strip()

    def _validate_cart(self, cart: Mapping[str, int]) -> List[Tuple[str, int]]:
        if not cart:
            raise InvalidCartError("购物车为空")
        entries = []
        for item_id, quantity in cart.items():
            # bool 是 int 的子类，需要单独排除
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise InvalidCartError(f"菜品 {item_id} 的数量必须是正整数", item_id)
            entries.append((item_id, quantity))
        return entries

    def _attempt(self, identity: str, entries: List[Tuple[str, int]]) -> Tuple[Order, List[MenuItem]]:
        """执行一次完整的预占事务，冲突时抛出 ConcurrencyError 由外层重试"""
        now = self.clock()
        order_date = now.date()
        order_id = make_order_id(order_date, identity)

        with self.db.transaction() as con:
            existing = con.execute(
                "SELECT 1 FROM orders WHERE order_id=?", [order_id]
            ).fetchone()
            if existing:
                raise DuplicateOrderError(order_id)

            # 读取并校验，所有菜品都通过后才开始写
            staged: List[Tuple[MenuItem, int]] = []
            for item_id, quantity in entries:
                row = con.execute(
                    f"SELECT {MENU_COLUMNS} FROM menu_items WHERE item_id=?", [item_id]
                ).fetchone()
                if not row:
                    raise ItemNotFoundError(item_id)
                item = row_to_item(row)
                if item.manual_sold_out:
                    raise ManuallyDisabledError(item.item_id, item.name)
                if quantity > item.remaining:
                    raise InsufficientStockError(item.item_id, item.name, quantity, item.remaining)
                staged.append((item, quantity))

            updated_items = []
            for item, quantity in staged:
                new_count = item.current_ordered + quantity
                result = con.execute(
                    "UPDATE menu_items SET current_ordered=?, version=version+1, updated_at=? "
                    "WHERE item_id=? AND version=?",
                    [new_count, now, item.item_id, item.version],
                ).fetchone()
                if not result or result[0] != 1:
                    raise ConcurrencyError(details={"item_id": item.item_id})
                updated_items.append(item.model_copy(update={
                    "current_ordered": new_count,
                    "version": item.version + 1,
                    "updated_at": now,
                }))

            order_items = [
                OrderItem(
                    item_id=item.item_id,
                    name=item.name,
                    quantity=quantity,
                    unit_price_cents=item.price_cents,
                )
                for item, quantity in staged
            ]
            order = Order(
                order_id=order_id,
                identity=identity,
                order_date=order_date,
                items=order_items,
                total_cents=sum(i.subtotal_cents for i in order_items),
                status=OrderStatus.PLACED,
                created_at=now,
            )
            try:
                con.execute(
                    "INSERT INTO orders(order_id, identity, order_date, items_json, total_cents, status, created_at) "
                    "VALUES (?,?,?,?,?,?,?)",
                    [
                        order.order_id,
                        order.identity,
                        order.order_date,
                        json.dumps([i.model_dump() for i in order_items], ensure_ascii=False),
                        order.total_cents,
                        OrderStatus.PLACED.value,
                        order.created_at,
                    ],
                )
            except duckdb.ConstraintException as e:
                # 同一身份的订单在本事务读取之后被并发提交，重试时按重复下单处理
                raise ConcurrencyError(details={"order_id": order_id, "reason": str(e)})
            self.db.write_log(con, "order_placed", identity, {
                "order_id": order.order_id,
                "items": [{"item_id": i.item_id, "quantity": i.quantity} for i in order_items],
                "total_cents": order.total_cents,
            })

        return order, updated_items

    def _log_rejection(self, identity, entries: List[Tuple[str, int]], error: ReservationError):
        """记录下单失败日志（独立事务，不影响原错误的抛出）"""
        try:
            with self.db.transaction() as con:
                self.db.write_log(con, "order_rejected", identity if isinstance(identity, str) else None, {
                    "error_code": error.error_code,
                    "details": error.details,
                    "cart": dict(entries),
                })
        except (DatabaseError, ConcurrencyError):
            logger.exception("failed to record rejection for %s", identity)

    def _publish(self, order: Order, items: List[MenuItem]):
        if self.feed is None:
            return
        for item in items:
            self.feed.publish(ITEM_UPDATED, item_payload(item))
        self.feed.publish(ORDER_PLACED, {
            "order_id": order.order_id,
            "identity": order.identity,
            "items": [{"name": i.name, "quantity": i.quantity} for i in order.items],
            "total_cents": order.total_cents,
            "created_at": order.created_at.isoformat(),
        })
