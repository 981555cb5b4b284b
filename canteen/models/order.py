"""
订单相关数据模型
"""

from pydantic import Field
from datetime import date, datetime
from typing import List
from enum import Enum
from .base import BaseEntity


class OrderStatus(str, Enum):
    """订单状态枚举"""
    PLACED = "placed"   # 已下单


class OrderItem(BaseEntity):
    """订单中的菜品快照，与之后的菜单修改无关"""
    item_id: str = Field(..., description="菜品ID")
    name: str = Field(..., description="下单时的名称")
    quantity: int = Field(..., ge=1, description="数量")
    unit_price_cents: int = Field(..., ge=0, description="下单时的单价（分）")
    
    @property
    def subtotal_cents(self) -> int:
        return self.quantity * self.unit_price_cents


class Order(BaseEntity):
    """订单完整模型"""
    order_id: str = Field(..., description="订单ID")
    identity: str = Field(..., description="下单学生标识")
    order_date: date = Field(..., description="下单日")
    items: List[OrderItem] = Field(..., description="菜品快照")
    total_cents: int = Field(..., ge=0, description="订单总金额（分）")
    status: OrderStatus = Field(OrderStatus.PLACED, description="订单状态")
    created_at: datetime = Field(..., description="提交时间")


def make_order_id(order_date: date, identity: str) -> str:
    """订单ID由下单日和身份确定性生成，每人每天唯一"""
    return f"{order_date.isoformat()}_{identity}"
