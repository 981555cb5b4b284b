"""
订单相关的请求/响应模式
"""

from pydantic import BaseModel, Field, StrictInt
from datetime import date, datetime
from typing import Dict, List
from ..models.order import Order, OrderStatus


class OrderCreateRequest(BaseModel):
    """下单请求，items 为 菜品ID -> 数量，按提交顺序校验"""
    # 严格整数：true、"2"、2.0 都不是合法数量
    items: Dict[str, StrictInt] = Field(..., description="购物车")


class OrderItemResponse(BaseModel):
    """订单菜品快照"""
    item_id: str
    name: str
    quantity: int
    unit_price_cents: int
    subtotal_cents: int


class OrderResponse(BaseModel):
    """订单响应"""
    order_id: str = Field(..., description="订单ID")
    identity: str = Field(..., description="学生标识")
    order_date: date = Field(..., description="下单日")
    items: List[OrderItemResponse] = Field(..., description="菜品快照")
    total_cents: int = Field(..., description="订单金额（分）")
    status: OrderStatus = Field(..., description="订单状态")
    created_at: datetime = Field(..., description="提交时间")

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            order_id=order.order_id,
            identity=order.identity,
            order_date=order.order_date,
            items=[
                OrderItemResponse(
                    item_id=i.item_id,
                    name=i.name,
                    quantity=i.quantity,
                    unit_price_cents=i.unit_price_cents,
                    subtotal_cents=i.subtotal_cents,
                )
                for i in order.items
            ],
            total_cents=order.total_cents,
            status=order.status,
            created_at=order.created_at,
        )


class TopItem(BaseModel):
    name: str
    quantity: int


class DailyStatsResponse(BaseModel):
    """当日统计"""
    date: str
    total_orders: int
    total_revenue_cents: int
    top_items: List[TopItem]


class ResetRequest(BaseModel):
    """日终重置确认，必须输入 RESET"""
    confirm: str = Field(..., description="确认口令")


class ResetResponse(BaseModel):
    items_reset: int
    orders_deleted: int
