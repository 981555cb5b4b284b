"""
员工看板路由模块
实时订单、当日统计、手动下架、日终重置、操作日志
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...schemas.menu import MenuItemResponse, SoldOutToggleRequest
from ...schemas.order import DailyStatsResponse, OrderResponse, ResetRequest, ResetResponse
from ...services import ServiceContainer
from ...config.settings import settings
from ...core.security import require_staff
from ...core.exceptions import ValidationError
from ...core.error_handler import create_success_response
from ..deps import get_services

router = APIRouter()


@router.get("/orders")
def live_orders(day: Optional[date] = None,
                staff: str = Depends(require_staff),
                services: ServiceContainer = Depends(get_services)):
    """指定日期（默认今天）的订单，最新的在前"""
    orders = services.orders.list_orders(day)
    data = [OrderResponse.from_order(o).model_dump(mode="json") for o in orders]
    return create_success_response(data, "查询成功")


@router.get("/orders/{order_id}")
def order_detail(order_id: str,
                 staff: str = Depends(require_staff),
                 services: ServiceContainer = Depends(get_services)):
    order = services.orders.get_order(order_id)
    return create_success_response(OrderResponse.from_order(order).model_dump(mode="json"), "查询成功")


@router.get("/stats")
def daily_stats(day: Optional[date] = None,
                staff: str = Depends(require_staff),
                services: ServiceContainer = Depends(get_services)):
    """当日订单数、营业额和热销菜品"""
    stats = DailyStatsResponse(**services.orders.daily_stats(day))
    return create_success_response(stats.model_dump(), "查询成功")


@router.put("/items/{item_id}/sold-out")
def toggle_sold_out(item_id: str, req: SoldOutToggleRequest,
                    staff: str = Depends(require_staff),
                    services: ServiceContainer = Depends(get_services)):
    """手动下架/上架"""
    item = services.menu.set_manual_sold_out(item_id, req.sold_out, actor=staff)
    data = MenuItemResponse.from_item(item, settings.low_stock_threshold)
    return create_success_response(data.model_dump(mode="json"), "更新成功")


@router.post("/reset")
def reset_day(req: ResetRequest,
              staff: str = Depends(require_staff),
              services: ServiceContainer = Depends(get_services)):
    """日终重置：删除全部订单，已售数量和手动下架标记归零"""
    if req.confirm != "RESET":
        raise ValidationError("请输入 RESET 确认重置", {"confirm": req.confirm})
    result = ResetResponse(**services.admin.reset_day(actor=staff))
    return create_success_response(result.model_dump(), "重置完成")


@router.get("/logs")
def logs(limit: int = Query(50, ge=1, le=500),
         action: Optional[str] = None,
         staff: str = Depends(require_staff),
         services: ServiceContainer = Depends(get_services)):
    """操作日志"""
    return create_success_response(services.orders.recent_logs(limit, action), "查询成功")
