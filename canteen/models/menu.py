"""
菜品相关数据模型
"""

from pydantic import Field
from datetime import datetime
from typing import Optional
from enum import Enum
from .base import BaseEntity, cents_to_amount


class Availability(str, Enum):
    """菜品可售状态"""
    AVAILABLE = "available"       # 正常可售
    LOW = "low"                   # 余量不多
    SOLD_OUT = "sold_out"         # 已售罄
    UNAVAILABLE = "unavailable"   # 员工手动下架


class MenuItem(BaseEntity):
    """菜品完整模型"""
    item_id: str = Field(..., description="菜品ID")
    name: str = Field(..., description="名称")
    category: Optional[str] = Field(None, description="分类")
    price_cents: int = Field(..., ge=0, description="单价（分）")
    image_url: Optional[str] = Field(None, description="图片地址")
    total_limit: int = Field(..., ge=0, description="本期可售总量")
    current_ordered: int = Field(0, ge=0, description="已售数量")
    manual_sold_out: bool = Field(False, description="员工手动下架")
    version: int = Field(0, description="乐观锁版本号")
    updated_at: Optional[datetime] = None
    
    @property
    def price(self) -> float:
        """单价（元）"""
        return cents_to_amount(self.price_cents)
    
    @property
    def remaining(self) -> int:
        """剩余可售数量"""
        return self.total_limit - self.current_ordered
    
    def availability(self, low_stock_threshold: int) -> Availability:
        """计算可售状态，手动下架优先于售罄"""
        if self.manual_sold_out:
            return Availability.UNAVAILABLE
        if self.remaining <= 0:
            return Availability.SOLD_OUT
        if self.remaining <= low_stock_threshold:
            return Availability.LOW
        return Availability.AVAILABLE
