"""
菜单相关的请求/响应模式
"""

from pydantic import BaseModel, Field
from typing import Optional
from ..models.menu import Availability, MenuItem


class MenuItemResponse(BaseModel):
    """菜品展示"""
    item_id: str = Field(..., description="菜品ID")
    name: str = Field(..., description="名称")
    category: Optional[str] = Field(None, description="分类")
    price_cents: int = Field(..., description="单价（分）")
    image_url: Optional[str] = Field(None, description="图片地址")
    total_limit: int = Field(..., description="本期可售总量")
    current_ordered: int = Field(..., description="已售数量")
    remaining: int = Field(..., description="剩余数量")
    manual_sold_out: bool = Field(..., description="员工手动下架")
    availability: Availability = Field(..., description="可售状态")

    @classmethod
    def from_item(cls, item: MenuItem, low_stock_threshold: int) -> "MenuItemResponse":
        return cls(
            item_id=item.item_id,
            name=item.name,
            category=item.category,
            price_cents=item.price_cents,
            image_url=item.image_url,
            total_limit=item.total_limit,
            current_ordered=item.current_ordered,
            remaining=max(item.remaining, 0),
            manual_sold_out=item.manual_sold_out,
            availability=item.availability(low_stock_threshold),
        )


class OrderingWindowResponse(BaseModel):
    """下单时间窗口状态"""
    open: bool = Field(..., description="当前是否可下单")
    start: Optional[str] = Field(None, description="开始时间 HH:MM")
    end: Optional[str] = Field(None, description="结束时间 HH:MM")


class SoldOutToggleRequest(BaseModel):
    """手动下架/上架请求"""
    sold_out: bool = Field(..., description="是否下架")
