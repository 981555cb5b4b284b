"""
订单路由模块
"""

from fastapi import APIRouter, Depends

from ...schemas.order import OrderCreateRequest, OrderResponse
from ...services import ServiceContainer
from ...core.security import get_identity
from ...core.exceptions import OrderNotFoundError
from ...core.error_handler import create_success_response
from ..deps import get_services

router = APIRouter()


@router.post("/orders", status_code=201)
def create_order(req: OrderCreateRequest,
                 identity: str = Depends(get_identity),
                 services: ServiceContainer = Depends(get_services)):
    """
    下单

    同步路由在线程池中执行，并发请求各自持有独立的数据库事务。
    失败时返回对应错误码，购物车调整后可以重新提交。
    """
    order = services.reservations.place_order(identity, req.items)
    data = OrderResponse.from_order(order).model_dump(mode="json")
    return create_success_response(data, "下单成功")


@router.get("/orders/me")
def get_my_order(identity: str = Depends(get_identity),
                 services: ServiceContainer = Depends(get_services)):
    """当前身份当天的订单"""
    order = services.orders.get_my_order(identity)
    if order is None:
        raise OrderNotFoundError(f"{services.orders.today().isoformat()}_{identity}")
    return create_success_response(OrderResponse.from_order(order).model_dump(mode="json"), "查询成功")
