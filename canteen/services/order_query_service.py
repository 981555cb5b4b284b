"""
订单查询服务
员工看板的实时订单列表和当日统计，以及学生查询自己当天的订单
"""

import json
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from ..core.database import DatabaseManager, db_manager
from ..core.exceptions import OrderNotFoundError
from ..models.order import Order, OrderItem, make_order_id

ORDER_COLUMNS = "order_id, identity, order_date, items_json, total_cents, status, created_at"


def row_to_order(row: tuple) -> Order:
    """把 ORDER_COLUMNS 顺序的查询结果转换为 Order"""
    items_raw = json.loads(row[3]) if isinstance(row[3], str) else (row[3] or [])
    return Order(
        order_id=row[0],
        identity=row[1],
        order_date=row[2],
        items=[OrderItem(**i) for i in items_raw],
        total_cents=row[4],
        status=row[5],
        created_at=row[6],
    )


class OrderQueryService:
    """订单查询服务类"""

    def __init__(self, db: Optional[DatabaseManager] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.db = db or db_manager
        self.clock = clock

    def today(self) -> date:
        return self.clock().date()

    def list_orders(self, day: Optional[date] = None) -> List[Order]:
        """指定日期的订单，最新的在前"""
        rows = self.db.execute_query(
            f"SELECT {ORDER_COLUMNS} FROM orders WHERE order_date=? ORDER BY created_at DESC, order_id DESC",
            [day or self.today()],
        )
        return [row_to_order(r) for r in rows]

    def get_order(self, order_id: str) -> Order:
        row = self.db.execute_one(
            f"SELECT {ORDER_COLUMNS} FROM orders WHERE order_id=?", [order_id]
        )
        if not row:
            raise OrderNotFoundError(order_id)
        return row_to_order(row)

    def get_my_order(self, identity: str, day: Optional[date] = None) -> Optional[Order]:
        """某个身份当天的订单，没有时返回 None"""
        order_id = make_order_id(day or self.today(), identity)
        row = self.db.execute_one(
            f"SELECT {ORDER_COLUMNS} FROM orders WHERE order_id=?", [order_id]
        )
        return row_to_order(row) if row else None

    def daily_stats(self, day: Optional[date] = None) -> Dict[str, Any]:
        """
        当日统计

        Returns:
            dict: total_orders、total_revenue_cents、top_items（按售出数量降序）
        """
        orders = self.list_orders(day)
        item_counts: Dict[str, int] = {}
        total_revenue = 0
        for order in orders:
            total_revenue += order.total_cents
            for item in order.items:
                item_counts[item.name] = item_counts.get(item.name, 0) + item.quantity

        top_items = sorted(item_counts.items(), key=lambda kv: (-kv[1], kv[0]))
        return {
            "date": (day or self.today()).isoformat(),
            "total_orders": len(orders),
            "total_revenue_cents": total_revenue,
            "top_items": [{"name": name, "quantity": qty} for name, qty in top_items],
        }

    def recent_logs(self, limit: int = 50, action: Optional[str] = None) -> List[Dict[str, Any]]:
        """操作日志，最新的在前"""
        query = "SELECT log_id, actor, action, detail_json, created_at FROM logs"
        params: list = []
        if action:
            query += " WHERE action=?"
            params.append(action)
        query += " ORDER BY log_id DESC LIMIT ?"
        params.append(limit)
        rows = self.db.execute_query(query, params)
        return [
            {
                "log_id": r[0],
                "actor": r[1],
                "action": r[2],
                "detail": json.loads(r[3]) if isinstance(r[3], str) else r[3],
                "created_at": str(r[4]),
            }
            for r in rows
        ]
