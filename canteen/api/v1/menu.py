"""
菜单路由模块
"""

from fastapi import APIRouter, Depends

from ...schemas.menu import MenuItemResponse, OrderingWindowResponse
from ...services import ServiceContainer
from ...config.settings import settings
from ...core.error_handler import create_success_response
from ..deps import get_services

router = APIRouter()


@router.get("/menu")
def list_menu(services: ServiceContainer = Depends(get_services)):
    """菜单列表，附带剩余数量和可售状态"""
    items = services.menu.list_items()
    data = [
        MenuItemResponse.from_item(i, settings.low_stock_threshold).model_dump(mode="json")
        for i in items
    ]
    return create_success_response(data, "查询成功")


@router.get("/menu/window")
def ordering_window(services: ServiceContainer = Depends(get_services)):
    """当前是否在下单时间窗口内"""
    window = services.window
    if window is None:
        data = OrderingWindowResponse(open=True)
    else:
        data = OrderingWindowResponse(open=window.is_open(services.clock()), **window.describe())
    return create_success_response(data.model_dump(), "查询成功")


@router.get("/menu/{item_id}")
def get_menu_item(item_id: str, services: ServiceContainer = Depends(get_services)):
    """单个菜品"""
    item = services.menu.get_item(item_id)
    data = MenuItemResponse.from_item(item, settings.low_stock_threshold)
    return create_success_response(data.model_dump(mode="json"), "查询成功")
